"""Per-question loop state and the helpers that derive it.

A :class:`QuestionSession` is created for every question and thrown away
when the loop ends, so the loop itself keeps no state between questions.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

from diymcp.core.interface.models import ConversationHistory, ToolCall


def tool_call_signature(tool_calls: list[ToolCall]) -> str:
    """Key identifying which tools were requested with which arguments.

    Argument keys are sorted so that the same call with reordered keys
    produces the same signature.
    """
    return "|".join(
        f"{tc.name}:{json.dumps(tc.arguments, sort_keys=True, default=str)}" for tc in tool_calls
    )


def format_tool_result(text: str) -> str:
    """Best-effort human-readable rendering of a tool's text output.

    A JSON object with ``name``, ``price`` and ``description`` becomes
    ``"<name>: $<price> - <description>"``; anything else is returned as is.
    """
    try:
        parsed: Any = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return text
    if isinstance(parsed, dict) and all(parsed.get(k) for k in ("name", "price", "description")):
        return f"{parsed['name']}: ${parsed['price']} - {parsed['description']}"
    return text


class QuestionSession(BaseModel):
    """Mutable state of one question's tool-calling loop."""

    messages: ConversationHistory
    last_signature: str = ""
    repeat_count: int = 0
    history: list[str] = Field(default_factory=list)
    tool_invocations: list[ToolCall] = Field(default_factory=list)
    turns: int = 0

    def observe(self, tool_calls: list[ToolCall]) -> int:
        """Record this turn's signature and return the updated repeat count."""
        signature = tool_call_signature(tool_calls)
        if signature == self.last_signature:
            self.repeat_count += 1
        else:
            self.repeat_count = 0
            self.last_signature = signature
        return self.repeat_count

    def summary(self) -> str:
        """All tool results gathered so far, one per line."""
        return "\n".join(self.history)
