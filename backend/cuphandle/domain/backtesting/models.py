"""Domain models for cup detection and breakout backtesting.

Pure data - no I/O, no pandas.  Every record is a frozen dataclass so the
detector and evaluator can share series and cups freely across holding
periods without defensive copies.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from typing import Iterator, Sequence

from cuphandle.domain.common.errors import InvalidParameters, ValidationError


# ── Price data ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PricePoint:
    """One trading day of OHLCV data."""

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: int = 0
    adj_close: float | None = None

    def __post_init__(self) -> None:
        for name in ("open", "high", "low", "close", "volume"):
            if getattr(self, name) < 0:
                raise ValidationError(
                    f"{self.date.isoformat()}: {name} must be non-negative, "
                    f"got {getattr(self, name)}"
                )


@dataclass(frozen=True)
class PriceSeries:
    """Chronologically ordered daily bars for one symbol.

    Dates must be strictly increasing.  The detector relies on this order
    for its single forward pass and never re-sorts.
    """

    symbol: str
    points: tuple[PricePoint, ...] = ()

    def __post_init__(self) -> None:
        # Accept any sequence but store a tuple.
        if not isinstance(self.points, tuple):
            object.__setattr__(self, "points", tuple(self.points))
        for prev, cur in zip(self.points, self.points[1:]):
            if cur.date <= prev.date:
                raise ValidationError(
                    f"{self.symbol}: price dates must be strictly increasing "
                    f"({prev.date.isoformat()} then {cur.date.isoformat()})"
                )

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[PricePoint]:
        return iter(self.points)

    @property
    def dates(self) -> tuple[date, ...]:
        return tuple(p.date for p in self.points)

    @property
    def first_date(self) -> date | None:
        return self.points[0].date if self.points else None

    @property
    def last_date(self) -> date | None:
        return self.points[-1].date if self.points else None


# ── Run parameters ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar window requested from the price provider."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidParameters(
                f"date range start {self.start.isoformat()} must be before "
                f"end {self.end.isoformat()}"
            )


@dataclass(frozen=True)
class HoldingPeriodGrid:
    """Arithmetic grid of holding periods, inclusive of both ends."""

    start: int
    end: int
    step: int = 1

    def __post_init__(self) -> None:
        if self.start <= 0:
            raise InvalidParameters(
                f"holding period grid must start above 0, got {self.start}"
            )
        if self.end < self.start:
            raise InvalidParameters(
                f"holding period grid end {self.end} is below start {self.start}"
            )
        if self.step <= 0:
            raise InvalidParameters(
                f"holding period grid step must be positive, got {self.step}"
            )

    def values(self) -> tuple[int, ...]:
        return tuple(range(self.start, self.end + 1, self.step))

    def __len__(self) -> int:
        return len(self.values())


# ── Detection output ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Cup:
    """A detected prior-high -> decline -> breakout formation."""

    cup_id: int
    start_date: date | None
    start_price: float
    bottom_price: float
    high_date: date
    high_price: float
    cup_days: int

    @property
    def depth_pct(self) -> float | None:
        """Decline from the prior high to the cup bottom, in percent."""
        if self.start_price <= 0:
            return None
        return (self.start_price - self.bottom_price) / self.start_price * 100.0

    @property
    def breakout_pct(self) -> float | None:
        """Breakout close above the prior high, in percent."""
        if self.start_price <= 0:
            return None
        return (self.high_price - self.start_price) / self.start_price * 100.0


# ── Backtest output ──────────────────────────────────────────────────────


class UnresolvedTradePolicy(str, enum.Enum):
    """How to score a breakout whose holding window runs past the data."""

    # Legacy behaviour: the missing sell point counts as a 0.0 gain (a win).
    BREAK_EVEN = "break_even"
    # Leave the trade out of the win-rate denominator.
    EXCLUDE = "exclude"


@dataclass(frozen=True)
class TradeResolution:
    """Tagged hypothetical-trade result: resolved gain or no sell point."""

    gain: float | None
    sell_date: date | None = None
    sell_price: float | None = None

    @property
    def resolved(self) -> bool:
        return self.gain is not None

    @classmethod
    def unresolved(cls) -> TradeResolution:
        return cls(gain=None)


@dataclass(frozen=True)
class BacktestOutcome:
    """Hypothetical result of buying one cup's breakout."""

    cup: Cup
    hypothetical_gain: float
    gain_rate_pct: float
    is_win: bool
    resolved: bool = True


@dataclass(frozen=True)
class SymbolResult:
    """Win/lose tally for one symbol at one holding period."""

    symbol: str
    hold_days: int
    win_count: int = 0
    lose_count: int = 0
    unresolved_count: int = 0
    outcomes: tuple[BacktestOutcome, ...] = ()

    @property
    def trade_count(self) -> int:
        return self.win_count + self.lose_count

    @property
    def win_rate(self) -> float | None:
        """``win / (win + lose)``, or None when nothing was counted."""
        if self.trade_count == 0:
            return None
        return self.win_count / self.trade_count

    @property
    def is_defined(self) -> bool:
        return self.win_rate is not None


# ── Sweep output ─────────────────────────────────────────────────────────


class SweepCondition(str, enum.Enum):
    """Conditions reported by the sweep instead of aborting the run."""

    DATA_UNAVAILABLE = "data_unavailable"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class SweepIssue:
    """A symbol that did not contribute a win rate, and why."""

    symbol: str
    hold_days: int | None
    condition: SweepCondition
    detail: str


@dataclass(frozen=True)
class HoldingPeriodDetail:
    """Basket-level totals for one grid point."""

    hold_days: int
    basket_size: int
    symbol_results: tuple[SymbolResult, ...] = ()
    issues: tuple[SweepIssue, ...] = ()

    @property
    def total_rate(self) -> float:
        return float(
            sum(r.win_rate for r in self.symbol_results if r.win_rate is not None)
        )

    @property
    def average_rate(self) -> float:
        return self.total_rate / self.basket_size


@dataclass(frozen=True)
class SweepResult:
    """Best holding period over the grid plus per-grid-point detail."""

    best_hold_days: int
    best_total_rate: float
    basket_size: int
    details: tuple[HoldingPeriodDetail, ...] = ()
    issues: tuple[SweepIssue, ...] = ()
    skipped_symbols: tuple[str, ...] = ()

    @property
    def best_average_win_rate(self) -> float:
        return self.best_total_rate / self.basket_size

    def detail_for(self, hold_days: int) -> HoldingPeriodDetail | None:
        for detail in self.details:
            if detail.hold_days == hold_days:
                return detail
        return None


def validate_cup_window(min_days: int, max_days: int) -> None:
    """Raise InvalidParameters unless ``0 < min_days < max_days``."""
    if min_days <= 0 or max_days <= 0:
        raise InvalidParameters(
            f"cup day bounds must be positive, got min={min_days} max={max_days}"
        )
    if min_days >= max_days:
        raise InvalidParameters(
            f"cup min days ({min_days}) must be below max days ({max_days})"
        )


def validate_hold_days(hold_days: int) -> None:
    if hold_days <= 0:
        raise InvalidParameters(f"holding period must be positive, got {hold_days}")


def normalize_symbols(symbols: Sequence[str]) -> list[str]:
    """Trim, uppercase, deduplicate, and reject an empty basket."""
    seen: set[str] = set()
    normalized: list[str] = []
    for raw in symbols:
        symbol = str(raw).strip().upper()
        if symbol and symbol not in seen:
            seen.add(symbol)
            normalized.append(symbol)
    if not normalized:
        raise InvalidParameters("symbol basket must not be empty")
    return normalized
