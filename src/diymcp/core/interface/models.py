"""Conversation models shared by the loop, the model client and the tool client.

Orchestration logic only ever sees these types; the transpiler converts
them to the chat-completion payload and the model client turns each
response into a :data:`CompletionResult`.  Every message carries text only.
"""

from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Content Parts
# ---------------------------------------------------------------------------


class TextContent(BaseModel):
    """Plain text content part."""

    type: Literal["text"] = "text"
    text: str


ContentPart = TextContent


def _parts(text: str) -> list[ContentPart]:
    return [TextContent(text=text)] if text else []


# ---------------------------------------------------------------------------
# Tool Calling
# ---------------------------------------------------------------------------


class ToolCall(BaseModel):
    """One tool the model wants run, with already-decoded arguments.

    Providers always send an id; the generated default only matters for
    calls built by hand.
    """

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    name: str
    arguments: dict[str, Any] = {}


class ToolResult(BaseModel):
    """Text a tool produced, tied back to the call that asked for it."""

    tool_call_id: str
    content: list[ContentPart] = []
    is_error: bool = False

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.content)

    @classmethod
    def from_text(cls, tool_call_id: str, text: str, *, is_error: bool = False) -> "ToolResult":
        return cls(tool_call_id=tool_call_id, content=[TextContent(text=text)], is_error=is_error)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class CanonicalMessage(BaseModel):
    """A single conversation message.

    ``assistant`` messages may carry ``tool_calls``; every ``tool`` message
    names the call it answers in ``tool_call_id``.
    """

    role: Literal["system", "user", "assistant", "tool"]
    content: list[ContentPart] = []
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.content)

    @classmethod
    def system(cls, text: str) -> "CanonicalMessage":
        return cls(role="system", content=_parts(text))

    @classmethod
    def user(cls, text: str) -> "CanonicalMessage":
        return cls(role="user", content=_parts(text))

    @classmethod
    def assistant(cls, text: str = "", tool_calls: list[ToolCall] | None = None) -> "CanonicalMessage":
        """An assistant turn; empty *text* leaves ``content`` empty."""
        return cls(role="assistant", content=_parts(text), tool_calls=tool_calls)

    @classmethod
    def tool(cls, result: ToolResult) -> "CanonicalMessage":
        return cls(role="tool", content=list(result.content), tool_call_id=result.tool_call_id)


class ConversationHistory(BaseModel):
    """Messages in the order they were exchanged.  Only ever appended to."""

    messages: list[CanonicalMessage] = []

    def append(self, message: CanonicalMessage) -> None:
        self.messages.append(message)

    def copy_messages(self) -> "ConversationHistory":
        """A new history holding the same messages, safe to extend."""
        return ConversationHistory(messages=list(self.messages))

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):  # type: ignore[override]
        return iter(self.messages)


# ---------------------------------------------------------------------------
# Completion Result: what one model turn produced
# ---------------------------------------------------------------------------


class TextCompletion(BaseModel):
    """The model produced a final textual answer."""

    kind: Literal["text"] = "text"
    text: str
    metadata: dict[str, Any] = {}


class ToolCallsCompletion(BaseModel):
    """The model asked for one or more tool invocations."""

    kind: Literal["tool_calls"] = "tool_calls"
    tool_calls: list[ToolCall]
    text: str = ""
    metadata: dict[str, Any] = {}

    def to_message(self) -> CanonicalMessage:
        """The assistant message that records this request in the conversation."""
        return CanonicalMessage.assistant(self.text, tool_calls=list(self.tool_calls))


CompletionResult = Annotated[TextCompletion | ToolCallsCompletion, Field(discriminator="kind")]
