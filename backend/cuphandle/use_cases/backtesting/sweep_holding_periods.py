"""HoldingPeriodSweeper: find the holding period with the best basket win rate.

This use case contains the business rules for the sweep:
  1. Validate every parameter before touching the provider
  2. Fetch each symbol's series and detect cups once per run
  3. Skip symbols with no data or no cups, recording why
  4. For each holding period: evaluate every remaining symbol and sum
     the win rates
  5. Keep the holding period with the strictly greatest sum

The use case depends ONLY on the PriceSeriesProvider port: never on
yfinance, pandas, or the disk cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from cuphandle.analysis.backtest.evaluator import BacktestEvaluator
from cuphandle.analysis.patterns.cup_handle import CupDetector
from cuphandle.domain.backtesting.models import (
    Cup,
    DateRange,
    HoldingPeriodDetail,
    HoldingPeriodGrid,
    PriceSeries,
    SweepCondition,
    SweepIssue,
    SweepResult,
    SymbolResult,
    normalize_symbols,
    validate_cup_window,
)
from cuphandle.domain.backtesting.ports import PriceSeriesProvider
from cuphandle.domain.common.errors import (
    DataUnavailable,
    InsufficientData,
    InvalidParameters,
)

logger = logging.getLogger(__name__)


# ── Command (input) ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class SweepHoldingPeriodsCommand:
    """Immutable value object describing the sweep to execute."""

    symbols: tuple[str, ...]
    date_range: DateRange
    min_days: int
    max_days: int
    hold_grid: HoldingPeriodGrid

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbols", tuple(normalize_symbols(self.symbols)))
        if not isinstance(self.date_range, DateRange):
            raise InvalidParameters("date_range must be a DateRange")
        if not isinstance(self.hold_grid, HoldingPeriodGrid):
            raise InvalidParameters("hold_grid must be a HoldingPeriodGrid")
        validate_cup_window(self.min_days, self.max_days)


@dataclass(frozen=True)
class _PreparedSymbol:
    series: PriceSeries
    cups: tuple[Cup, ...]


# ── Use Case ─────────────────────────────────────────────────────────────


class HoldingPeriodSweeper:
    """Drive detection and evaluation across a holding-period grid.

    Skip-and-continue: a symbol whose data is unavailable or that yields no
    cups is left out of the basket and reported as a ``SweepIssue`` for
    every grid point.  The remaining basket has the same size for the
    whole grid, so comparing win-rate sums ranks grid points exactly as
    comparing their means would.
    """

    def __init__(
        self,
        provider: PriceSeriesProvider,
        detector: CupDetector | None = None,
        evaluator: BacktestEvaluator | None = None,
    ) -> None:
        self._provider = provider
        self._detector = detector if detector is not None else CupDetector()
        self._evaluator = evaluator if evaluator is not None else BacktestEvaluator()

    def run(
        self,
        symbols: Sequence[str],
        date_range: DateRange,
        min_days: int,
        max_days: int,
        hold_grid: HoldingPeriodGrid,
    ) -> SweepResult:
        cmd = SweepHoldingPeriodsCommand(
            symbols=tuple(symbols),
            date_range=date_range,
            min_days=min_days,
            max_days=max_days,
            hold_grid=hold_grid,
        )
        return self.execute(cmd)

    def execute(self, cmd: SweepHoldingPeriodsCommand) -> SweepResult:
        prepared, skipped = self._prepare_basket(cmd)
        if not prepared:
            raise InsufficientData(
                None,
                f"none of {len(cmd.symbols)} symbols produced a usable cup set",
            )

        basket_size = len(prepared)
        details: list[HoldingPeriodDetail] = []
        all_issues: list[SweepIssue] = list(skipped)
        best_hold_days: int | None = None
        best_rate = 0.0

        for hold_days in cmd.hold_grid.values():
            issues = [
                SweepIssue(
                    symbol=issue.symbol,
                    hold_days=hold_days,
                    condition=issue.condition,
                    detail=issue.detail,
                )
                for issue in skipped
            ]
            results: list[SymbolResult] = []
            total_rate = 0.0

            for symbol, item in prepared.items():
                result = self._evaluator.evaluate(item.cups, hold_days, item.series)
                results.append(result)
                if result.win_rate is None:
                    issues.append(
                        SweepIssue(
                            symbol=symbol,
                            hold_days=hold_days,
                            condition=SweepCondition.INSUFFICIENT_DATA,
                            detail=(
                                f"no resolved trades among {len(item.cups)} cups"
                            ),
                        )
                    )
                    continue
                total_rate += result.win_rate

            detail = HoldingPeriodDetail(
                hold_days=hold_days,
                basket_size=basket_size,
                symbol_results=tuple(results),
                issues=tuple(issues),
            )
            details.append(detail)
            all_issues.extend(issues[len(skipped):])

            logger.info(
                f"Holding {hold_days} days: total win rate {total_rate:.4f}, "
                f"average {total_rate / basket_size:.4f} over {basket_size} symbols"
            )

            if best_hold_days is None or total_rate > best_rate:
                best_hold_days = hold_days
                best_rate = total_rate

        assert best_hold_days is not None  # grid is never empty
        logger.info(
            f"Best holding period {best_hold_days} days, "
            f"average win rate {best_rate / basket_size:.4f}"
        )

        return SweepResult(
            best_hold_days=best_hold_days,
            best_total_rate=best_rate,
            basket_size=basket_size,
            details=tuple(details),
            issues=tuple(all_issues),
            skipped_symbols=tuple(issue.symbol for issue in skipped),
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _prepare_basket(
        self, cmd: SweepHoldingPeriodsCommand
    ) -> tuple[dict[str, _PreparedSymbol], list[SweepIssue]]:
        """Fetch and detect once per symbol; detection ignores the holding period."""
        prepared: dict[str, _PreparedSymbol] = {}
        skipped: list[SweepIssue] = []

        for symbol in cmd.symbols:
            try:
                series = self._provider.fetch_series(
                    symbol, cmd.date_range.start, cmd.date_range.end
                )
            except DataUnavailable as exc:
                logger.warning(f"Skipping {symbol}: {exc.reason}")
                skipped.append(
                    SweepIssue(
                        symbol=symbol,
                        hold_days=None,
                        condition=SweepCondition.DATA_UNAVAILABLE,
                        detail=exc.reason,
                    )
                )
                continue

            cups = self._detector.detect(series, cmd.min_days, cmd.max_days)
            if not cups:
                reason = (
                    f"no cups of {cmd.min_days}-{cmd.max_days} days "
                    f"in {len(series)} bars"
                )
                logger.warning(f"Skipping {symbol}: {reason}")
                skipped.append(
                    SweepIssue(
                        symbol=symbol,
                        hold_days=None,
                        condition=SweepCondition.INSUFFICIENT_DATA,
                        detail=reason,
                    )
                )
                continue

            logger.info(f"{symbol}: {len(cups)} cups in {len(series)} bars")
            prepared[symbol] = _PreparedSymbol(series=series, cups=cups)

        return prepared, skipped
