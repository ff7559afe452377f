"""Dependency injection bootstrap: the single place that binds ports to adapters.

The CLI never imports concrete providers directly; it asks these factories
for the abstractions and the use case wired on top of them.
"""

from __future__ import annotations

from pathlib import Path

from cuphandle.analysis.backtest.evaluator import BacktestEvaluator
from cuphandle.analysis.patterns.cup_handle import CupDetector
from cuphandle.config import Settings, settings
from cuphandle.domain.backtesting.models import UnresolvedTradePolicy
from cuphandle.domain.backtesting.ports import PriceSeriesProvider
from cuphandle.infra.providers.price_cache import DiskCachedPriceSeriesProvider
from cuphandle.infra.providers.yfinance_provider import YFinancePriceSeriesProvider
from cuphandle.use_cases.backtesting.sweep_holding_periods import HoldingPeriodSweeper


# ── Providers ────────────────────────────────────────────────────────────


def get_price_series_provider(
    *,
    cache_dir: str | Path | None = None,
    cache_enabled: bool | None = None,
    app_settings: Settings = settings,
) -> PriceSeriesProvider:
    """Return the Yahoo Finance provider, behind the disk cache when enabled."""
    provider: PriceSeriesProvider = YFinancePriceSeriesProvider()
    enabled = app_settings.cache_enabled if cache_enabled is None else cache_enabled
    if enabled:
        provider = DiskCachedPriceSeriesProvider(
            provider, cache_dir if cache_dir is not None else app_settings.cache_dir
        )
    return provider


# ── Use cases ────────────────────────────────────────────────────────────


def get_holding_period_sweeper(
    provider: PriceSeriesProvider,
    *,
    unresolved_policy: str | UnresolvedTradePolicy | None = None,
    app_settings: Settings = settings,
) -> HoldingPeriodSweeper:
    policy = UnresolvedTradePolicy(
        unresolved_policy
        if unresolved_policy is not None
        else app_settings.unresolved_policy
    )
    return HoldingPeriodSweeper(
        provider,
        detector=CupDetector(),
        evaluator=BacktestEvaluator(unresolved_policy=policy),
    )
