"""Model interface — canonical messages and the completion client."""

from diymcp.core.interface.client import ModelClient
from diymcp.core.interface.config import ModelConfig
from diymcp.core.interface.errors import CompletionClientError
from diymcp.core.interface.models import (
    CanonicalMessage,
    CompletionResult,
    ContentPart,
    ConversationHistory,
    TextCompletion,
    TextContent,
    ToolCall,
    ToolCallsCompletion,
    ToolResult,
)

__all__ = [
    "CanonicalMessage",
    "CompletionClientError",
    "CompletionResult",
    "ContentPart",
    "ConversationHistory",
    "ModelClient",
    "ModelConfig",
    "TextCompletion",
    "TextContent",
    "ToolCall",
    "ToolCallsCompletion",
    "ToolResult",
]
