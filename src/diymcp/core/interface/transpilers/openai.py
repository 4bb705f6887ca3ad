"""OpenAI chat format: the wire shape LiteLLM accepts for every provider."""

import json
from typing import Any

from diymcp.core.interface.models import CanonicalMessage, ConversationHistory


class OpenAITranspiler:
    """Converts conversations to OpenAI chat messages."""

    def to_provider(self, history: ConversationHistory) -> dict[str, Any]:
        """Convert the conversation to OpenAI messages.

        Returns {"messages": [...]} where each message follows OpenAI's schema.
        """
        messages: list[dict[str, Any]] = []
        for msg in history:
            messages.append(self._message_to_openai(msg))
        return {"messages": messages}

    def _message_to_openai(self, msg: CanonicalMessage) -> dict[str, Any]:
        """Convert one message to OpenAI format."""
        result: dict[str, Any] = {"role": msg.role}

        if msg.role == "tool":
            result["tool_call_id"] = msg.tool_call_id
            result["content"] = msg.text
            return result

        result["content"] = msg.text if msg.content else None

        if msg.tool_calls:
            result["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {
                        "name": tc.name,
                        "arguments": serialize_arguments(tc.arguments),
                    },
                }
                for tc in msg.tool_calls
            ]

        return result


def parse_arguments(raw: Any) -> dict[str, Any]:
    """Parse JSON string arguments from a tool call.

    Already-decoded dicts pass through; anything undecodable is kept under
    ``"raw"``.
    """
    if isinstance(raw, dict):
        return raw
    if raw is None or raw == "":
        return {}
    try:
        result = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return {"raw": raw}
    if not isinstance(result, dict):
        return {"raw": raw}
    return result


def serialize_arguments(args: dict[str, Any]) -> str:
    """Serialize tool call arguments to JSON string for OpenAI."""
    return json.dumps(args)
