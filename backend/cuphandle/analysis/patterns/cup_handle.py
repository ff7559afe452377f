"""Cup-with-handle detector.

Expected input orientation:
- Daily bars in chronological order (oldest -> newest).
- One forward pass; candidate enumeration is deterministic.

A cup is closed by the first day whose close strictly exceeds the tracked
high.  Equal closes extend the current decline window instead of resetting
it.  The decline length must satisfy ``min_days < cup_days < max_days``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterator

from cuphandle.domain.backtesting.models import (
    Cup,
    PricePoint,
    PriceSeries,
    validate_cup_window,
)

logger = logging.getLogger(__name__)

LOW_SENTINEL = math.inf


@dataclass(frozen=True)
class CupScanState:
    """Running state threaded through the scan; never mutated in place."""

    tracked_high: float = 0.0
    tracked_high_date: date | None = None
    tracked_low: float = LOW_SENTINEL
    decline_days: int = 0
    next_cup_id: int = 0


INITIAL_SCAN_STATE = CupScanState()


def advance_scan(
    state: CupScanState,
    point: PricePoint,
    min_days: int,
    max_days: int,
) -> tuple[CupScanState, Cup | None]:
    """Fold one bar into the scan state, returning any cup it completes."""
    if point.close > state.tracked_high:
        cup = None
        next_cup_id = state.next_cup_id
        if min_days < state.decline_days < max_days:
            cup = Cup(
                cup_id=state.next_cup_id,
                start_date=state.tracked_high_date,
                start_price=state.tracked_high,
                bottom_price=state.tracked_low,
                high_date=point.date,
                high_price=point.close,
                cup_days=state.decline_days,
            )
            next_cup_id += 1

        # A new high always opens a fresh tracking window.
        return (
            CupScanState(
                tracked_high=point.close,
                tracked_high_date=point.date,
                tracked_low=LOW_SENTINEL,
                decline_days=0,
                next_cup_id=next_cup_id,
            ),
            cup,
        )

    return (
        replace(
            state,
            tracked_low=min(state.tracked_low, point.low),
            decline_days=state.decline_days + 1,
        ),
        None,
    )


class CupDetector:
    """Single-pass cup scanner over a daily price series."""

    name = "cup_with_handle"

    def detect(
        self,
        series: PriceSeries,
        min_days: int,
        max_days: int,
    ) -> tuple[Cup, ...]:
        """Return every cup whose decline length lies strictly inside the window."""
        validate_cup_window(min_days, max_days)

        state = INITIAL_SCAN_STATE
        cups: list[Cup] = []
        for point in series:
            state, cup = advance_scan(state, point, min_days, max_days)
            if cup is not None:
                logger.debug(
                    f"{series.symbol} cup #{cup.cup_id}: "
                    f"{cup.start_date} {cup.start_price:.2f} -> "
                    f"bottom {cup.bottom_price:.2f} -> "
                    f"{cup.high_date} {cup.high_price:.2f} ({cup.cup_days} days)"
                )
                cups.append(cup)

        logger.debug(
            f"{series.symbol}: {len(cups)} cups in {len(series)} bars "
            f"(window {min_days}-{max_days} days)"
        )
        return tuple(cups)

    def scan_states(
        self,
        series: PriceSeries,
        min_days: int,
        max_days: int,
    ) -> Iterator[CupScanState]:
        """Yield the scan state after each bar, for diagnostics."""
        validate_cup_window(min_days, max_days)
        return _iter_states(series, min_days, max_days)


def _iter_states(
    series: PriceSeries, min_days: int, max_days: int
) -> Iterator[CupScanState]:
    state = INITIAL_SCAN_STATE
    for point in series:
        state, _ = advance_scan(state, point, min_days, max_days)
        yield state
