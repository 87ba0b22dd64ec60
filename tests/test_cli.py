"""Tests for the command line entry point."""

from decimal import Decimal

import orjson
import pytest

from signal_service.__main__ import _dumps, cmd_list, parse_args
from signal_service.config import Settings
from signal_service.services.monitor import CycleResult


class TestParseArgs:
    def test_evaluate(self):
        args = parse_args(["evaluate", "BTCUSDT", "ETHUSDT"])
        assert args.command == "evaluate"
        assert args.symbols == ["BTCUSDT", "ETHUSDT"]

    def test_list_status(self):
        args = parse_args(["-v", "list", "--status", "completed"])
        assert args.verbose
        assert args.status == "completed"

    def test_invalid_status_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["list", "--status", "pending"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestOutput:
    def test_dumps_decimals_and_dataclasses(self):
        payload = {"price": Decimal("42000.5"), "cycle": CycleResult(checked=2, closed=1)}
        data = orjson.loads(_dumps(payload))

        assert data["price"] == "42000.5"
        assert data["cycle"]["checked"] == 2
        assert data["cycle"]["below_target"] is False

    @pytest.mark.asyncio
    async def test_list_without_database(self, capsys, tmp_path):
        settings = Settings(_env_file=None, engine_config_path=str(tmp_path / "none.yaml"))

        await cmd_list(settings, None)

        assert "No signals found." in capsys.readouterr().out
