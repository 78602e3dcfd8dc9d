"""
Tests for the command-line interface.

============================================================
TEST SCENARIOS
============================================================
1. Argument validation errors
2. Config built from YAML plus CLI overrides
3. One-shot modes print and exit 0
4. Exhausted sources exit 2 with "connection lost"

============================================================
"""

import json
from unittest.mock import patch

import pytest

from conftest import make_descriptor, make_news
from data_sources.exceptions import BadStatusError
from data_sources.models import HistoryPoint, SourceKind
from data_sources.registry import SourceRegistry
from orchestrator.cli import build_config, create_parser, main, validate_args


BAD = BadStatusError("HTTP 500", status_code=500)


def parse(*argv):
    return create_parser().parse_args(list(argv))


@pytest.fixture
def run_cli(make_service):
    """Run main() against a scripted service; returns (exit_code, gateway)."""
    def runner(argv, script, registry=None):
        service, gateway = make_service(script, registry=registry)
        with patch("orchestrator.cli.RadarService.from_config", return_value=service), \
                patch("orchestrator.cli.setup_logging"):
            return main(argv), gateway

    return runner


# ============================================================
# TEST: VALIDATION
# ============================================================

class TestValidateArgs:
    """validate_args error messages."""

    def test_defaults_valid(self):
        args = parse()
        assert args.mode == "analyze"
        assert validate_args(args) == []

    def test_history_requires_symbol(self):
        assert "--symbol is required for history mode" in validate_args(parse("--mode", "history"))

    def test_bad_timeframe(self):
        errors = validate_args(parse("--timeframe", "2H"))
        assert any("Unknown timeframe" in e for e in errors)

    def test_bad_interval_and_port(self):
        errors = validate_args(parse("--interval", "0", "--port", "70000"))
        assert len(errors) == 2

    def test_missing_config_file(self, tmp_path):
        errors = validate_args(parse("--config", str(tmp_path / "missing.yaml")))
        assert errors[0].startswith("Config file not found")

    def test_invalid_choice_exits(self):
        with pytest.raises(SystemExit):
            parse("--strategy", "parallel")


class TestBuildConfig:
    """YAML loading and CLI overrides."""

    def test_overrides(self, tmp_path):
        path = tmp_path / "radar.yaml"
        path.write_text("market_ttl_seconds: 30\nstrategy: sequential\n")

        config = build_config(parse(
            "--config", str(path), "--strategy", "race", "--horizon", "long",
            "--interval", "60", "--port", "9000",
        ))

        assert config.market_ttl_seconds == 30
        assert config.strategy == "race"
        assert config.default_horizon == "long"
        assert config.refresh_interval_seconds == 60
        assert config.api_port == 9000

    def test_no_overrides(self, tmp_path):
        path = tmp_path / "radar.yaml"
        path.write_text("race_width: 2\n")
        assert build_config(parse("--config", str(path))).race_width == 2


# ============================================================
# TEST: MAIN
# ============================================================

class TestMain:
    """End-to-end through main() with a scripted service."""

    def test_validation_failure_exit_code(self, capsys):
        assert main(["--mode", "history"]) == 1
        assert "--symbol is required" in capsys.readouterr().err

    def test_market(self, run_cli, assets, capsys):
        code, gateway = run_cli(["--mode", "market"], {"A": (0, assets)})

        assert code == 0
        assert gateway.calls == ["A"]
        assert f"{len(assets)} assets via test" in capsys.readouterr().out

    def test_analyze_json(self, run_cli, assets, capsys):
        script = {"A": (0, assets), "primary": (0, [make_news("BTC breakout")]), "rss1": (0, BAD), "rss2": (0, BAD)}

        code, _ = run_cli(["--mode", "analyze", "--horizon", "long", "--json"], script)

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["horizon"] == "long"
        assert len(data["all"]) == len(assets)

    def test_analyze_table(self, run_cli, assets, capsys):
        script = {"A": (0, assets), "primary": (0, BAD), "rss1": (0, BAD), "rss2": (0, BAD)}

        code, _ = run_cli(["--mode", "analyze"], script)

        out = capsys.readouterr().out
        assert code == 0
        assert "BEST" in out
        assert "TRUMP CARDS" in out

    def test_history(self, run_cli, capsys):
        points = [HistoryPoint(timestamp=1, price=100.0), HistoryPoint(timestamp=2, price=110.0)]

        code, gateway = run_cli(["--mode", "history", "--symbol", "eth", "--timeframe", "1w"], {"H1": (0, points)})

        assert code == 0
        assert gateway.params[0].symbol == "ETH"
        out = capsys.readouterr().out
        assert "ETH 1W: 2 points" in out
        assert "change=+10.00%" in out

    def test_news(self, run_cli, capsys):
        script = {"primary": (0, [make_news("ETH upgrade")]), "rss1": (0, BAD), "rss2": (0, BAD)}

        code, _ = run_cli(["--mode", "news"], script)

        assert code == 0
        assert "ETH upgrade" in capsys.readouterr().out

    def test_exhausted_exit_code(self, run_cli, capsys):
        registry = SourceRegistry([make_descriptor("A", kind=SourceKind.PRIMARY), make_descriptor("B")])

        code, _ = run_cli(["--mode", "market"], {"A": (0, BAD), "B": (0, BAD)}, registry=registry)

        assert code == 2
        assert "connection lost, retry (A, B)" in capsys.readouterr().err

    def test_service_closed(self, run_cli, assets):
        _, gateway = run_cli(["--mode", "market"], {"A": (0, assets)})
        assert gateway.closed
