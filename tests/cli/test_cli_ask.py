"""Tests for ``diymcp ask``."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from diymcp.cli import main
from diymcp.core.interface.errors import CompletionClientError
from diymcp.core.interface.models import ConversationHistory, ToolCall
from diymcp.core.orchestration.loop import LoopOutcome, LoopStatus
from diymcp.protocols.mcp.catalog import Catalog


def _mock_client(mock_client_cls: MagicMock) -> MagicMock:
    mock_instance = mock_client_cls.return_value
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_instance.catalog = Catalog()
    return mock_instance


def _outcome(answer: str | None, status: LoopStatus = LoopStatus.ANSWERED, **kwargs: object) -> LoopOutcome:
    return LoopOutcome(
        status=status,
        answer=answer,
        turns=2,
        tool_invocations=[],
        conversation=ConversationHistory(),
        **kwargs,  # type: ignore[arg-type]
    )


class TestAsk:
    def test_prints_answer(self) -> None:
        with (
            patch("diymcp.protocols.mcp.client.MCPClient") as mock_client_cls,
            patch("diymcp.core.orchestration.loop.ToolLoop") as mock_loop_cls,
        ):
            mock_instance = _mock_client(mock_client_cls)
            mock_loop_cls.return_value.ask = AsyncMock(return_value=_outcome("We offer Latte and Mocha."))

            result = CliRunner().invoke(main, ["ask", "What kinds of drinks do you have?"])

        assert result.exit_code == 0
        assert "We offer Latte and Mocha." in result.output
        mock_loop_cls.return_value.ask.assert_awaited_once_with("What kinds of drinks do you have?")
        assert mock_loop_cls.call_args.args[1] is mock_instance

    def test_passes_loop_settings(self, tmp_path: Path) -> None:
        config = tmp_path / "diymcp.yaml"
        config.write_text("max_repeats: 3\nmax_turns: 8\nsystem_prompt: Be brief.\n")

        with (
            patch("diymcp.protocols.mcp.client.MCPClient") as mock_client_cls,
            patch("diymcp.core.orchestration.loop.ToolLoop") as mock_loop_cls,
        ):
            _mock_client(mock_client_cls)
            mock_loop_cls.return_value.ask = AsyncMock(return_value=_outcome("ok"))

            result = CliRunner().invoke(main, ["--config", str(config), "ask", "-q", "Hi"])

        assert result.exit_code == 0
        kwargs = mock_loop_cls.call_args.kwargs
        assert kwargs["max_repeats"] == 3
        assert kwargs["max_turns"] == 8
        assert kwargs["system_prompt"] == "Be brief."
        assert kwargs["on_event"] is None

    def test_unresolved_outcome(self) -> None:
        with (
            patch("diymcp.protocols.mcp.client.MCPClient") as mock_client_cls,
            patch("diymcp.core.orchestration.loop.ToolLoop") as mock_loop_cls,
        ):
            _mock_client(mock_client_cls)
            mock_loop_cls.return_value.ask = AsyncMock(
                return_value=_outcome(
                    None,
                    LoopStatus.FORCED_UNRESOLVED,
                    unresolved_tool_calls=[ToolCall(id="c1", name="getDrinkNames")],
                )
            )

            result = CliRunner().invoke(main, ["ask", "Drinks?"])

        assert result.exit_code == 0
        assert "No answer" in result.output
        assert "getDrinkNames" in result.output

    def test_completion_error_exits(self) -> None:
        with (
            patch("diymcp.protocols.mcp.client.MCPClient") as mock_client_cls,
            patch("diymcp.core.orchestration.loop.ToolLoop") as mock_loop_cls,
        ):
            _mock_client(mock_client_cls)
            mock_loop_cls.return_value.ask = AsyncMock(
                side_effect=CompletionClientError("missing api key", model="openai/gpt-4o-mini")
            )

            result = CliRunner().invoke(main, ["ask", "Hi"])

        assert result.exit_code == 1
        assert "AI error" in result.output
        assert "missing api key" in result.output
