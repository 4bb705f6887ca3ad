"""Orchestration — the per-question tool-calling loop."""

from diymcp.core.orchestration.loop import (
    CompletionModel,
    LoopEvent,
    LoopOutcome,
    LoopStatus,
    ToolLoop,
)
from diymcp.core.orchestration.session import (
    QuestionSession,
    format_tool_result,
    tool_call_signature,
)

__all__ = [
    "CompletionModel",
    "LoopEvent",
    "LoopOutcome",
    "LoopStatus",
    "QuestionSession",
    "ToolLoop",
    "format_tool_result",
    "tool_call_signature",
]
