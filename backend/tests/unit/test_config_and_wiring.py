"""Tests for runtime settings, backtest presets and the DI bootstrap."""

from __future__ import annotations

from datetime import date

import pydantic
import pytest

from cuphandle.config import Settings, get_backtest_config
from cuphandle.domain.backtesting.models import UnresolvedTradePolicy
from cuphandle.infra.providers import (
    DiskCachedPriceSeriesProvider,
    YFinancePriceSeriesProvider,
)
from cuphandle.wiring.bootstrap import (
    get_holding_period_sweeper,
    get_price_series_provider,
)

from tests.unit.backtesting_fakes import FakePriceSeriesProvider


# ── Settings ─────────────────────────────────────────────────────────────


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in ("CACHE_DIR", "CACHE_ENABLED", "UNRESOLVED_POLICY", "LOG_LEVEL"):
            monkeypatch.delenv(f"CUPHANDLE_{var}", raising=False)

        s = Settings(_env_file=None)

        assert s.cache_dir == "StockData"
        assert s.cache_enabled is True
        assert s.unresolved_policy == "break_even"
        assert s.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CUPHANDLE_CACHE_DIR", "/tmp/prices")
        monkeypatch.setenv("CUPHANDLE_UNRESOLVED_POLICY", " Exclude ")
        monkeypatch.setenv("CUPHANDLE_LOG_LEVEL", "debug")

        s = Settings(_env_file=None)

        assert s.cache_dir == "/tmp/prices"
        assert s.unresolved_policy == "exclude"
        assert s.log_level == "DEBUG"

    def test_unknown_policy_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            Settings(_env_file=None, unresolved_policy="coin_flip")


# ── Presets ──────────────────────────────────────────────────────────────


class TestBacktestPresets:
    def test_default_preset(self):
        cfg = get_backtest_config("default")

        assert cfg.symbols == ["MSFT", "AAPL", "GOOG", "AMZN"]
        assert cfg.date_range().start == date(2008, 7, 1)
        assert cfg.hold_grid().values() == tuple(range(20, 121, 5))

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown backtest config"):
            get_backtest_config("nope")


# ── Bootstrap ────────────────────────────────────────────────────────────


class TestBootstrap:
    def test_cache_wraps_yfinance_when_enabled(self, tmp_path):
        provider = get_price_series_provider(cache_dir=tmp_path, cache_enabled=True)

        assert isinstance(provider, DiskCachedPriceSeriesProvider)
        assert provider.cache_dir == tmp_path

    def test_cache_disabled_returns_plain_yfinance(self):
        provider = get_price_series_provider(cache_enabled=False)
        assert isinstance(provider, YFinancePriceSeriesProvider)

    def test_cache_follows_settings_by_default(self):
        provider = get_price_series_provider(
            app_settings=Settings(_env_file=None, cache_enabled=False)
        )
        assert isinstance(provider, YFinancePriceSeriesProvider)

    def test_sweeper_policy_from_argument_or_settings(self):
        fake = FakePriceSeriesProvider()

        explicit = get_holding_period_sweeper(fake, unresolved_policy="exclude")
        from_settings = get_holding_period_sweeper(
            fake, app_settings=Settings(_env_file=None, unresolved_policy="exclude")
        )
        default = get_holding_period_sweeper(
            fake, app_settings=Settings(_env_file=None)
        )

        assert explicit._evaluator.unresolved_policy is UnresolvedTradePolicy.EXCLUDE
        assert from_settings._evaluator.unresolved_policy is UnresolvedTradePolicy.EXCLUDE
        assert default._evaluator.unresolved_policy is UnresolvedTradePolicy.BREAK_EVEN
