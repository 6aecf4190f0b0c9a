"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from signal_core.config import AppConfig, load_config, validate_config
from signal_core.errors import ConfigurationError

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "config.yaml.example"
DEFAULT_SYMBOLS = ["BTCUSDT", "ETHUSDT", "BNBUSDT", "SOLUSDT", "XRPUSDT"]


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in ("SIGNAL_DATABASE_URL", "SIGNAL_LOG_LEVEL", "SIGNAL_LOG_FORMAT", "SIGNAL_SYMBOLS"):
        monkeypatch.delenv(name, raising=False)


class TestAppConfig:
    def test_defaults(self):
        cfg = AppConfig()
        assert cfg.symbols == DEFAULT_SYMBOLS
        assert cfg.database.url is None
        assert cfg.logging.level == "INFO"
        assert cfg.logging.format == "json"
        assert cfg.monitor.score_threshold == 75
        assert cfg.monitor.max_active_signals == 10
        assert cfg.monitor.poll_interval_s == 0.5
        assert cfg.monitor.cycle_interval_s == 300
        assert (cfg.monitor.risk_reward.min, cfg.monitor.risk_reward.max) == (1.3, 2.0)
        assert cfg.scoring.probability_cap == 0.85

    def test_custom_symbols(self):
        cfg = AppConfig(symbols=["BTCUSDT"])
        assert cfg.symbols == ["BTCUSDT"]

    def test_band_contains_edges(self):
        band = AppConfig().monitor.risk_reward
        assert band.contains(1.3)
        assert band.contains(2.0)
        assert not band.contains(1.29)
        assert not band.contains(2.01)


class TestValidation:
    def test_weights_must_sum_to_one(self):
        with pytest.raises(ConfigurationError):
            validate_config({"scoring": {"weights": {"technical": 0.7}}})

    def test_inverted_band(self):
        with pytest.raises(ConfigurationError):
            validate_config({"monitor": {"risk_reward": {"min": 2.5, "max": 2.0}}})

    def test_macd_fast_must_be_shorter(self):
        with pytest.raises(ConfigurationError):
            validate_config({"indicators": {"macd_fast": 30}})

    def test_threshold_range(self):
        with pytest.raises(ConfigurationError):
            validate_config({"monitor": {"score_threshold": 120}})

    def test_empty_symbols(self):
        with pytest.raises(ConfigurationError):
            validate_config({"symbols": []})

    def test_candle_limit_below_indicator_needs(self):
        # macd_slow + macd_signal = 129 candles
        with pytest.raises(ConfigurationError, match="candle_limit"):
            validate_config({"indicators": {"macd_slow": 120}, "exchange": {"candle_limit": 100}})

    def test_candle_limit_below_volatility_window(self):
        with pytest.raises(ConfigurationError, match="candle_limit"):
            validate_config({"structure": {"volatility_window": 60}, "exchange": {"candle_limit": 50}})

    def test_candle_limit_exactly_enough(self):
        cfg = validate_config({"indicators": {"macd_slow": 120}, "exchange": {"candle_limit": 129}})
        assert cfg.indicators.min_candles == 129

    def test_risk_reward_target_outside_band(self):
        with pytest.raises(ConfigurationError, match="risk_reward_target"):
            validate_config({"targets": {"risk_reward_target": 3.0}})

    def test_risk_reward_target_follows_custom_band(self):
        cfg = validate_config(
            {
                "monitor": {"risk_reward": {"min": 2.5, "max": 4.0}},
                "targets": {"risk_reward_target": 3.0},
            }
        )
        assert cfg.monitor.risk_reward.contains(cfg.targets.risk_reward_target)

    def test_valid_overrides(self):
        cfg = validate_config({"monitor": {"max_active_signals": 3}})
        assert cfg.monitor.max_active_signals == 3


class TestLoadConfig:
    def test_load_example_config(self):
        cfg = load_config(EXAMPLE_CONFIG)
        assert cfg.symbols == DEFAULT_SYMBOLS
        assert cfg.exchange.candle_interval == "1m"
        assert cfg.monitor.score_threshold == 75
        assert cfg.indicators.bb_k == 2.0
        assert cfg.scoring.weights.technical == 0.4
        assert cfg.logging.format == "console"
        assert cfg.database.url is None

    def test_example_matches_defaults(self):
        cfg = load_config(EXAMPLE_CONFIG)
        defaults = AppConfig()
        assert cfg.indicators == defaults.indicators
        assert cfg.structure == defaults.structure
        assert cfg.scoring == defaults.scoring
        assert cfg.targets == defaults.targets
        assert cfg.monitor == defaults.monitor

    def test_load_nonexistent_file_returns_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "missing.yaml")
        assert cfg.symbols == DEFAULT_SYMBOLS

    def test_load_none_returns_defaults(self):
        cfg = load_config(None)
        assert cfg.symbols == DEFAULT_SYMBOLS

    def test_env_override_database_url(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_DATABASE_URL", "postgresql://test:test@db:5432/testdb")
        cfg = load_config(None)
        assert cfg.database.url == "postgresql://test:test@db:5432/testdb"

    def test_env_override_log_level(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_LOG_LEVEL", "DEBUG")
        cfg = load_config(None)
        assert cfg.logging.level == "DEBUG"

    def test_env_override_log_format(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_LOG_FORMAT", "console")
        cfg = load_config(None)
        assert cfg.logging.format == "console"

    def test_env_override_symbols(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_SYMBOLS", "btcusdt, ethusdt,")
        cfg = load_config(None)
        assert cfg.symbols == ["BTCUSDT", "ETHUSDT"]

    def test_env_overrides_yaml_values(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_DATABASE_URL", "postgresql://override@host/db")
        cfg = load_config(EXAMPLE_CONFIG)
        assert cfg.database.url == "postgresql://override@host/db"
        # Non-overridden values preserved
        assert cfg.logging.format == "console"

    def test_load_minimal_yaml(self, tmp_path):
        p = tmp_path / "minimal.yaml"
        p.write_text("symbols: [BTCUSDT]\n")
        cfg = load_config(p)
        assert cfg.symbols == ["BTCUSDT"]
        # Defaults still apply for unspecified sections
        assert cfg.monitor.max_active_signals == 10

    def test_invalid_yaml(self, tmp_path):
        p = tmp_path / "broken.yaml"
        p.write_text("symbols: [BTCUSDT\n")
        with pytest.raises(ConfigurationError):
            load_config(p)

    def test_non_mapping_yaml(self, tmp_path):
        p = tmp_path / "list.yaml"
        p.write_text("- BTCUSDT\n")
        with pytest.raises(ConfigurationError):
            load_config(p)

    def test_invalid_value_in_file(self, tmp_path):
        p = tmp_path / "bad.yaml"
        p.write_text("monitor:\n  poll_interval_s: -1\n")
        with pytest.raises(ConfigurationError):
            load_config(p)
