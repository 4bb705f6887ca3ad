"""ToolLoop — the tool-calling control loop for a single question.

Each turn sends the conversation and the tool catalog to the model.  A
textual answer ends the loop; tool-call requests are executed one at a
time through the :class:`ToolProvider`, their results are appended as
tool-role messages, and the loop goes round again.

A repeat guard bounds the number of tool invocations: when the model asks
for the exact same set of calls ``max_repeats + 1`` turns in a row, the
calls are not executed again.  Instead the model gets a summary of every
tool result so far and one last chance to answer; whatever it returns is
final.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Protocol

from pydantic import BaseModel

from diymcp.core.interface.models import (
    CanonicalMessage,
    CompletionResult,
    ConversationHistory,
    TextCompletion,
    ToolCall,
    ToolResult,
)
from diymcp.core.orchestration.session import QuestionSession, format_tool_result
from diymcp.protocols.errors import RemoteError, RequestTimeoutError, ToolNotFoundError
from diymcp.utils.telemetry import (
    ATTR_LOOP_STATUS,
    ATTR_REPEAT_COUNT,
    ATTR_TOOL_INVOCATIONS,
    ATTR_TURN,
    get_tracer,
)

if TYPE_CHECKING:
    from diymcp.protocols.provider import ToolProvider

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful coffee shop assistant. When asked for recommendations, use the "
    "available drink information and make a judgment. Do not repeatedly request the same "
    "information. After you have all drink details, always answer the user's question "
    "directly. If you already have all drink info, do not call tools again."
)

SUMMARY_PROMPT = (
    "You have already received all the information the tools can provide. "
    "Here is a summary:\n{summary}\n"
    "Please answer the user's question directly without calling any more tools."
)

SKIPPED_CALL_TEXT = "Skipped: this exact call was already made. Use the results above."


class CompletionModel(Protocol):
    """Anything that turns a conversation plus tools into a completion."""

    async def complete(
        self,
        history: ConversationHistory,
        tools: list[dict[str, Any]] | None = None,
    ) -> CompletionResult: ...


class LoopStatus(str, Enum):
    ANSWERED = "answered"
    FORCED = "forced"
    FORCED_UNRESOLVED = "forced_unresolved"


class LoopEvent(BaseModel):
    """Progress notification emitted while a question is being answered."""

    kind: Literal["tool_call", "tool_result", "loop_guard"]
    tool_call: ToolCall | None = None
    text: str = ""


class LoopOutcome(BaseModel):
    """How a question ended.

    ``answer`` is ``None`` only for ``FORCED_UNRESOLVED``: the model kept
    asking for tools after the loop stopped executing them, and those
    requests are in ``unresolved_tool_calls``.
    """

    status: LoopStatus
    answer: str | None
    turns: int
    tool_invocations: list[ToolCall]
    conversation: ConversationHistory
    unresolved_tool_calls: list[ToolCall] = []

    @property
    def forced(self) -> bool:
        return self.status is not LoopStatus.ANSWERED


class ToolLoop:
    """Answers questions by interleaving model turns with tool calls.

    Usage::

        loop = ToolLoop(ModelClient(config), mcp_client)
        outcome = await loop.ask("What kinds of drinks do you have?")
        print(outcome.answer)
    """

    def __init__(
        self,
        model: CompletionModel,
        tools: ToolProvider,
        *,
        system_prompt: str | None = DEFAULT_SYSTEM_PROMPT,
        max_repeats: int = 2,
        max_turns: int | None = None,
        on_event: Callable[[LoopEvent], None] | None = None,
    ) -> None:
        if max_repeats < 1:
            msg = "max_repeats must be at least 1"
            raise ValueError(msg)
        self.model = model
        self.tools = tools
        self.system_prompt = system_prompt
        self.max_repeats = max_repeats
        self.max_turns = max_turns
        self._on_event = on_event

    async def ask(
        self,
        question: str,
        *,
        history: ConversationHistory | None = None,
    ) -> LoopOutcome:
        """Run the loop for *question* until the model answers or the guard fires.

        Args:
            question: The user's question.
            history: A previous conversation to continue; a fresh one
                (system prompt + question) is started when omitted.

        Raises:
            CompletionClientError: The model call failed; the question is abandoned.
        """
        session = QuestionSession(messages=self._start_conversation(question, history))
        schemas = self.tools.tool_schemas()

        with _tracer.start_as_current_span("diymcp.loop.ask") as span:
            outcome = await self._run(session, schemas)
            span.set_attribute(ATTR_TURN, outcome.turns)
            span.set_attribute(ATTR_TOOL_INVOCATIONS, len(outcome.tool_invocations))
            span.set_attribute(ATTR_REPEAT_COUNT, session.repeat_count)
            span.set_attribute(ATTR_LOOP_STATUS, outcome.status.value)
        return outcome

    async def _run(self, session: QuestionSession, schemas: list[dict[str, Any]]) -> LoopOutcome:
        while True:
            result = await self._complete(session, schemas)
            if isinstance(result, TextCompletion):
                return self._outcome(session, LoopStatus.ANSWERED, result.text)

            session.messages.append(result.to_message())
            repeat_count = session.observe(result.tool_calls)

            if repeat_count >= self.max_repeats:
                return await self._force_answer(session, result.tool_calls, schemas)

            if self.max_turns is not None and session.turns >= self.max_turns:
                logger.warning("Stopping after %d turns without an answer", session.turns)
                self._skip_calls(session, result.tool_calls)
                return self._outcome(
                    session,
                    LoopStatus.FORCED_UNRESOLVED,
                    None,
                    unresolved=result.tool_calls,
                )

            for tool_call in result.tool_calls:
                await self._invoke(session, tool_call)

    async def _complete(
        self, session: QuestionSession, schemas: list[dict[str, Any]]
    ) -> CompletionResult:
        session.turns += 1
        return await self.model.complete(session.messages, schemas or None)

    async def _invoke(self, session: QuestionSession, tool_call: ToolCall) -> None:
        """Execute one tool call and fold its result into the conversation."""
        self._emit(LoopEvent(kind="tool_call", tool_call=tool_call))
        session.tool_invocations.append(tool_call)
        try:
            result = await self.tools.execute_tool(tool_call.name, tool_call.arguments)
            text = format_tool_result(result.text)
        except RemoteError as exc:
            text = f"Error: {exc.message}"
        except (ToolNotFoundError, RequestTimeoutError) as exc:
            text = f"Error: {exc}"

        logger.debug("Tool %s returned: %s", tool_call.name, text)
        self._emit(LoopEvent(kind="tool_result", tool_call=tool_call, text=text))
        session.history.append(text)
        session.messages.append(
            CanonicalMessage.tool(ToolResult.from_text(tool_call_id=tool_call.id, text=text))
        )

    async def _force_answer(
        self,
        session: QuestionSession,
        tool_calls: list[ToolCall],
        schemas: list[dict[str, Any]],
    ) -> LoopOutcome:
        """Stop executing tools and ask the model for a direct answer, once."""
        logger.warning(
            "Tool calls repeated %d times (%s); forcing a final answer",
            session.repeat_count + 1,
            session.last_signature,
        )
        self._emit(LoopEvent(kind="loop_guard", text=session.last_signature))
        self._skip_calls(session, tool_calls)
        session.messages.append(CanonicalMessage.user(SUMMARY_PROMPT.format(summary=session.summary())))

        result = await self._complete(session, schemas)
        if isinstance(result, TextCompletion):
            return self._outcome(session, LoopStatus.FORCED, result.text)

        logger.warning("Model still requested tools after the forced turn: %s", result.tool_calls)
        session.messages.append(result.to_message())
        self._skip_calls(session, result.tool_calls)
        return self._outcome(
            session,
            LoopStatus.FORCED_UNRESOLVED,
            None,
            unresolved=result.tool_calls,
        )

    def _skip_calls(self, session: QuestionSession, tool_calls: list[ToolCall]) -> None:
        # Every requested call needs a tool-role reply for the conversation to stay valid.
        for tool_call in tool_calls:
            session.messages.append(
                CanonicalMessage.tool(
                    ToolResult.from_text(tool_call_id=tool_call.id, text=SKIPPED_CALL_TEXT)
                )
            )

    def _start_conversation(
        self, question: str, history: ConversationHistory | None
    ) -> ConversationHistory:
        if history is not None:
            messages = history.copy_messages()
        else:
            messages = ConversationHistory()
            if self.system_prompt:
                messages.append(CanonicalMessage.system(self.system_prompt))
        messages.append(CanonicalMessage.user(question))
        return messages

    def _outcome(
        self,
        session: QuestionSession,
        status: LoopStatus,
        answer: str | None,
        *,
        unresolved: list[ToolCall] | None = None,
    ) -> LoopOutcome:
        if answer is not None:
            session.messages.append(CanonicalMessage.assistant(answer))
        return LoopOutcome(
            status=status,
            answer=answer,
            turns=session.turns,
            tool_invocations=list(session.tool_invocations),
            conversation=session.messages,
            unresolved_tool_calls=list(unresolved or []),
        )

    def _emit(self, event: LoopEvent) -> None:
        if self._on_event is not None:
            self._on_event(event)
