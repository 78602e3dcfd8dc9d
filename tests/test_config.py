"""
Tests for AppConfig and the clock.

============================================================
TEST SCENARIOS
============================================================
1. Defaults are valid
2. Invalid values rejected at construction
3. Environment and YAML loading
4. Credentials masked in to_dict

============================================================
"""

from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from core.config import AppConfig, get_config, set_config


class TestAppConfig:
    """Validation and loading."""

    def test_defaults(self):
        config = AppConfig()
        assert config.market_ttl_seconds == 60.0
        assert config.market_deadline_ms == 2500
        assert config.strategy == "sequential"

    def test_fetch_deadlines_within_recommended_range(self):
        config = AppConfig()
        for name in ("market_deadline_ms", "race_deadline_ms", "history_deadline_ms", "news_deadline_ms"):
            assert 2500 <= getattr(config, name) <= 5000, name
        assert config.enabled_sources == []

    @pytest.mark.parametrize("overrides", [
        {"strategy": "random"},
        {"default_horizon": "medium"},
        {"race_width": 0},
        {"min_market_assets": 0},
        {"market_deadline_ms": 0},
        {"news_deadline_ms": -1},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            AppConfig(**overrides)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("RADAR_MARKET_TTL_SECONDS", "30")
        monkeypatch.setenv("RADAR_RACE_WIDTH", "2")
        monkeypatch.setenv("RADAR_STRATEGY", "race")
        monkeypatch.setenv("RADAR_ENABLED_SOURCES", "coingecko, coincap,")
        monkeypatch.setenv("RADAR_COINGECKO_API_KEY", "abc")

        config = AppConfig.from_env(load_dotenv_file=False)

        assert config.market_ttl_seconds == 30.0
        assert config.race_width == 2
        assert config.strategy == "race"
        assert config.enabled_sources == ["coingecko", "coincap"]
        assert config.coingecko_api_key == "abc"

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "radar.yaml"
        path.write_text("market_ttl_seconds: 15\nstrategy: race\nbogus: 1\n")

        config = AppConfig.from_yaml(path)

        assert config.market_ttl_seconds == 15
        assert config.strategy == "race"

    def test_from_yaml_invalid_falls_back(self, tmp_path):
        path = tmp_path / "radar.yaml"
        path.write_text("strategy: teleport\n")
        assert AppConfig.from_yaml(path) == AppConfig()

    def test_to_dict_masks_key(self):
        assert AppConfig(coingecko_api_key="secret").to_dict()["coingecko_api_key"] == "***"
        assert AppConfig().to_dict()["coingecko_api_key"] is None

    def test_singleton(self):
        config = AppConfig(race_width=5)
        set_config(config)
        try:
            assert get_config() is config
        finally:
            set_config(AppConfig())


class TestMockClock:
    """Manual time control."""

    def test_default_time(self):
        assert MockClock().now() == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_advance(self):
        clock = MockClock()
        start = clock.timestamp()
        clock.advance(seconds=30, minutes=1)
        assert clock.timestamp() - start == 90

    def test_timestamp_ms(self):
        clock = MockClock(datetime(2024, 1, 1))
        assert clock.timestamp_ms() == 1_704_067_200_000
