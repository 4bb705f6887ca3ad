"""Tests for ``diymcp resources`` CLI commands."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from diymcp.cli import main
from diymcp.protocols.errors import RemoteError
from diymcp.protocols.mcp.catalog import Catalog
from diymcp.protocols.mcp.models import MCPResourceDef, ResourceReadResult, TextItem

_CATALOG = Catalog(resources=(MCPResourceDef(uri="menu://app", name="menu"),))


def _mock_client(mock_client_cls: MagicMock, catalog: Catalog = _CATALOG) -> MagicMock:
    mock_instance = mock_client_cls.return_value
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_instance.catalog = catalog
    return mock_instance


class TestResourcesList:
    def test_lists_resources(self) -> None:
        with patch("diymcp.protocols.mcp.client.MCPClient") as mock_client_cls:
            _mock_client(mock_client_cls)

            result = CliRunner().invoke(main, ["resources", "list"])

        assert result.exit_code == 0
        assert "menu://app" in result.output

    def test_no_resources(self) -> None:
        with patch("diymcp.protocols.mcp.client.MCPClient") as mock_client_cls:
            _mock_client(mock_client_cls, Catalog())

            result = CliRunner().invoke(main, ["resources", "list"])

        assert result.exit_code == 0
        assert "No resources available" in result.output

    def test_connection_failure(self) -> None:
        with patch("diymcp.protocols.mcp.client.MCPClient") as mock_client_cls:
            mock_instance = _mock_client(mock_client_cls)
            mock_instance.__aenter__ = AsyncMock(side_effect=FileNotFoundError("node"))

            result = CliRunner().invoke(main, ["resources", "list"])

        assert result.exit_code == 1
        assert "Connection error" in result.output


class TestResourcesRead:
    def test_reads_resource(self) -> None:
        with patch("diymcp.protocols.mcp.client.MCPClient") as mock_client_cls:
            mock_instance = _mock_client(mock_client_cls)
            mock_instance.read_resource = AsyncMock(
                return_value=ResourceReadResult(
                    contents=[TextItem(uri="menu://app", text='[{"name": "Latte", "price": 5}]')]
                )
            )

            result = CliRunner().invoke(main, ["resources", "read", "menu://app"])

        assert result.exit_code == 0
        mock_instance.read_resource.assert_awaited_once_with("menu://app")
        assert "Latte" in result.output

    def test_unknown_resource(self) -> None:
        with patch("diymcp.protocols.mcp.client.MCPClient") as mock_client_cls:
            mock_instance = _mock_client(mock_client_cls)
            mock_instance.read_resource = AsyncMock(side_effect=RemoteError(-32602, "Resource not found"))

            result = CliRunner().invoke(main, ["resources", "read", "menu://nope"])

        assert result.exit_code == 1
        assert "Resource not found" in result.output
