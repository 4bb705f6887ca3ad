"""ToolProvider protocol: the tool source a :class:`ToolLoop` drives.

:class:`~diymcp.protocols.mcp.client.MCPClient` satisfies it once connected;
tests use small in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from diymcp.core.interface.models import ToolResult


@runtime_checkable
class ToolProvider(Protocol):
    """A fixed tool catalog plus a way to run one tool at a time."""

    def tool_schemas(self) -> list[dict[str, Any]]:
        """Function schemas handed to the model on every completion request.

        The list is computed from an already-fetched catalog, so calling this
        never touches the server.  An empty list means the model is asked
        without tools.
        """
        ...

    async def execute_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Run *name* with *arguments* and return its textual result.

        Raises:
            RemoteError: The server answered with an error.
            ToolNotFoundError: *name* is not in the catalog.
        """
        ...
