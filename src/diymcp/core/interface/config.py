"""Model configuration: LiteLLM model string, credentials and request limits."""

from typing import Any

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """Which model answers questions and how each completion request is sent.

    ``model`` is a LiteLLM model string such as ``openai/gpt-4o-mini`` or
    ``anthropic/claude-3-5-haiku-latest``.  Without a ``provider/`` prefix
    LiteLLM assumes OpenAI.

    ``timeout`` and ``num_retries`` are handed to LiteLLM unchanged; by
    default a request waits indefinitely and is not retried.
    """

    model: str = "openai/gpt-4o-mini"
    api_key: str | None = None
    api_base: str | None = None
    max_tokens: int = Field(default=4096, gt=0)
    timeout: float | None = Field(default=None, gt=0)
    num_retries: int = Field(default=0, ge=0)
    extra: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @property
    def provider(self) -> str:
        """Provider prefix of :attr:`model` (``openai`` when there is none)."""
        prefix, sep, _ = self.model.partition("/")
        return prefix if sep else "openai"

    def request_options(self) -> dict[str, Any]:
        """Keyword arguments for ``litellm.acompletion`` derived from this config.

        Unset credentials and limits are left out so LiteLLM falls back to the
        environment and its own defaults.
        """
        options: dict[str, Any] = {"model": self.model, "max_tokens": self.max_tokens, **self.extra}
        if self.api_key:
            options["api_key"] = self.api_key
        if self.api_base:
            options["api_base"] = self.api_base
        if self.timeout is not None:
            options["timeout"] = self.timeout
        if self.num_retries:
            options["num_retries"] = self.num_retries
        return options
