"""Provider-specific transpiler implementations."""

from diymcp.core.interface.transpilers.openai import OpenAITranspiler

__all__ = ["OpenAITranspiler"]
