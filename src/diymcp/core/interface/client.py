"""ModelClient — unified async interface to LLMs via LiteLLM.

The rest of the system only ever hands over a ConversationHistory and
gets a CompletionResult back.
"""

from typing import Any

import litellm
from pydantic import ValidationError

from diymcp.core.interface.config import ModelConfig
from diymcp.core.interface.errors import CompletionClientError
from diymcp.core.interface.models import (
    CompletionResult,
    ConversationHistory,
    TextCompletion,
    ToolCall,
    ToolCallsCompletion,
)
from diymcp.core.interface.transpilers.openai import OpenAITranspiler, parse_arguments
from diymcp.utils.telemetry import (
    ATTR_FINISH_REASON,
    ATTR_MODEL,
    ATTR_PROVIDER,
    ATTR_TOKENS_COMPLETION,
    ATTR_TOKENS_PROMPT,
    ATTR_TOKENS_TOTAL,
    get_tracer,
)

_tracer = get_tracer(__name__)


class ModelClient:
    """Async client for generating LLM responses via LiteLLM.

    Failures are not retried unless ``config.num_retries`` says so; every
    error surfaces as :class:`CompletionClientError`.

    Usage::

        config = ModelConfig(model="openai/gpt-4o")
        client = ModelClient(config)
        result = await client.complete(history, tools=catalog.function_schemas())
    """

    def __init__(self, config: ModelConfig) -> None:
        self.config = config
        self._transpiler = OpenAITranspiler()

    async def complete(
        self,
        history: ConversationHistory,
        tools: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> CompletionResult:
        """Send the conversation and tool catalog; return text or tool calls.

        Args:
            history: The full conversation so far.
            tools: OpenAI-style function schemas. Omitted from the request when empty.
            **kwargs: Extra parameters forwarded to ``litellm.acompletion``.

        Raises:
            CompletionClientError: On any API failure or unusable response.
        """
        with _tracer.start_as_current_span("diymcp.model.complete") as span:
            span.set_attribute(ATTR_MODEL, self.config.model)
            span.set_attribute(ATTR_PROVIDER, self.config.provider)

            call_kwargs: dict[str, Any] = {
                **self.config.request_options(),
                "messages": self._prepare_messages(history),
                **kwargs,
            }
            if tools:
                call_kwargs["tools"] = tools
                call_kwargs["tool_choice"] = "auto"

            try:
                # LiteLLM type stubs are incomplete
                response = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]
            except Exception as exc:
                raise CompletionClientError(str(exc), model=self.config.model) from exc

            result = self._parse_response(response)

            usage: dict[str, Any] | None = result.metadata.get("usage")
            if isinstance(usage, dict):
                span.set_attribute(ATTR_TOKENS_PROMPT, int(usage.get("prompt_tokens", 0)))
                span.set_attribute(ATTR_TOKENS_COMPLETION, int(usage.get("completion_tokens", 0)))
                span.set_attribute(ATTR_TOKENS_TOTAL, int(usage.get("total_tokens", 0)))
            finish_reason = result.metadata.get("finish_reason")
            if finish_reason is not None:
                span.set_attribute(ATTR_FINISH_REASON, str(finish_reason))

            return result

    def _prepare_messages(self, history: ConversationHistory) -> list[dict[str, Any]]:
        """Convert the conversation to LiteLLM-compatible messages.

        LiteLLM expects OpenAI-style messages and handles provider adaptation
        (e.g. system prompt extraction for Anthropic) internally.
        """
        payload = self._transpiler.to_provider(history)
        result: list[dict[str, Any]] = payload["messages"]
        return result

    def _parse_response(self, response: Any) -> CompletionResult:
        """Convert a LiteLLM response object to a CompletionResult.

        LiteLLM returns OpenAI-compatible response objects regardless of
        the underlying provider.
        """
        try:
            choice = response.choices[0]
            message = choice.message
        except (AttributeError, IndexError, TypeError) as exc:
            msg = f"malformed response: {exc}"
            raise CompletionClientError(msg, model=self.config.model) from exc

        metadata: dict[str, Any] = {"finish_reason": choice.finish_reason}
        if getattr(response, "usage", None):
            metadata["usage"] = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        metadata["model"] = getattr(response, "model", self.config.model)

        text: str = message.content or ""
        if not message.tool_calls:
            return TextCompletion(text=text, metadata=metadata)
        try:
            tool_calls = [
                ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=parse_arguments(tc.function.arguments),
                )
                for tc in message.tool_calls
            ]
        except (AttributeError, TypeError, ValidationError) as exc:
            msg = f"malformed tool call: {exc}"
            raise CompletionClientError(msg, model=self.config.model) from exc
        return ToolCallsCompletion(tool_calls=tool_calls, text=text, metadata=metadata)
