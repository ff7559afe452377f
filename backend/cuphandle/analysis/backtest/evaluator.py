"""Breakout backtest: buy each cup's breakout close, sell after N calendar days.

The sell point is the first bar dated strictly later than
``breakout_date + hold_days``.  When the series ends before that, the trade
is unresolved; how it is scored depends on ``UnresolvedTradePolicy``.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Sequence

from cuphandle.domain.backtesting.models import (
    BacktestOutcome,
    Cup,
    PriceSeries,
    SymbolResult,
    TradeResolution,
    UnresolvedTradePolicy,
    validate_hold_days,
)

logger = logging.getLogger(__name__)


def resolve_trade(
    breakout_date: date,
    breakout_price: float,
    hold_days: int,
    series: PriceSeries,
) -> TradeResolution:
    """Find the sell bar for a breakout and return the tagged gain."""
    sell_after = breakout_date + timedelta(days=hold_days)
    for point in series:
        if point.date > sell_after:
            return TradeResolution(
                gain=point.close - breakout_price,
                sell_date=point.date,
                sell_price=point.close,
            )
    return TradeResolution.unresolved()


def hypothetical_gain(
    breakout_date: date,
    breakout_price: float,
    hold_days: int,
    series: PriceSeries,
) -> float:
    """Sell price minus breakout price, or 0.0 when no sell bar exists."""
    resolution = resolve_trade(breakout_date, breakout_price, hold_days, series)
    return resolution.gain if resolution.resolved else 0.0


class BacktestEvaluator:
    """Score detected cups for one symbol at one holding period."""

    def __init__(
        self,
        unresolved_policy: UnresolvedTradePolicy = UnresolvedTradePolicy.BREAK_EVEN,
    ) -> None:
        self.unresolved_policy = UnresolvedTradePolicy(unresolved_policy)

    def evaluate(
        self,
        cups: Sequence[Cup],
        hold_days: int,
        series: PriceSeries,
    ) -> SymbolResult:
        validate_hold_days(hold_days)

        wins = 0
        losses = 0
        unresolved = 0
        outcomes: list[BacktestOutcome] = []

        for cup in cups:
            resolution = resolve_trade(cup.high_date, cup.high_price, hold_days, series)
            if not resolution.resolved:
                unresolved += 1
                if self.unresolved_policy is UnresolvedTradePolicy.EXCLUDE:
                    outcomes.append(
                        BacktestOutcome(
                            cup=cup,
                            hypothetical_gain=0.0,
                            gain_rate_pct=0.0,
                            is_win=False,
                            resolved=False,
                        )
                    )
                    continue

            gain = resolution.gain if resolution.resolved else 0.0
            gain_rate_pct = gain / cup.high_price * 100
            is_win = gain_rate_pct >= 0
            if is_win:
                wins += 1
            else:
                losses += 1
            outcomes.append(
                BacktestOutcome(
                    cup=cup,
                    hypothetical_gain=gain,
                    gain_rate_pct=gain_rate_pct,
                    is_win=is_win,
                    resolved=resolution.resolved,
                )
            )

        if unresolved:
            logger.warning(
                f"{series.symbol}: {unresolved} of {len(cups)} breakouts have no "
                f"sell bar {hold_days} days out "
                f"(policy={self.unresolved_policy.value})"
            )
        logger.debug(f"{series.symbol} hold={hold_days}: {wins}/{wins + losses} wins")

        return SymbolResult(
            symbol=series.symbol,
            hold_days=hold_days,
            win_count=wins,
            lose_count=losses,
            unresolved_count=unresolved,
            outcomes=tuple(outcomes),
        )
