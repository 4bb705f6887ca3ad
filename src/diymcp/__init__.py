"""diymcp — a JSON-RPC tool client with an LLM tool-calling loop."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from diymcp.core.interface.client import ModelClient as ModelClient
    from diymcp.core.orchestration.loop import ToolLoop as ToolLoop
    from diymcp.protocols.mcp.client import MCPClient as MCPClient

_LAZY_EXPORTS = {
    "MCPClient": "diymcp.protocols.mcp.client",
    "ModelClient": "diymcp.core.interface.client",
    "ToolLoop": "diymcp.core.orchestration.loop",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'diymcp' has no attribute {name!r}")
