"""
Backtest presets for the cup-and-handle holding-period sweep.

Defines the basket, history window, cup duration window, and holding-period
grid as named configurations:
- Default: the large-cap tech basket over 2008-07 to 2020-07
"""
from dataclasses import dataclass, field
from datetime import date

from cuphandle.domain.backtesting.models import DateRange, HoldingPeriodGrid


@dataclass
class BacktestConfig:
    """Parameters for one holding-period sweep"""

    # Identity
    name: str
    description: str = ""

    # Basket
    symbols: list[str] = field(default_factory=list)

    # History window
    start_date: date = date(2008, 7, 1)
    end_date: date = date(2020, 7, 1)

    # Cup decline length, exclusive on both ends (trading days)
    min_cup_days: int = 60
    max_cup_days: int = 120

    # Holding periods (calendar days), inclusive grid
    hold_start: int = 20
    hold_end: int = 120
    hold_step: int = 5

    def date_range(self) -> DateRange:
        return DateRange(start=self.start_date, end=self.end_date)

    def hold_grid(self) -> HoldingPeriodGrid:
        return HoldingPeriodGrid(
            start=self.hold_start, end=self.hold_end, step=self.hold_step
        )


DEFAULT_BACKTEST_CONFIG = BacktestConfig(
    name="default",
    description="Large-cap tech basket, 60-120 day cups, 20-120 day holds",
    symbols=["MSFT", "AAPL", "GOOG", "AMZN"],
)


BACKTEST_CONFIGS: dict[str, BacktestConfig] = {
    "default": DEFAULT_BACKTEST_CONFIG,
}


def get_backtest_config(name: str) -> BacktestConfig:
    """Get a backtest preset by name"""
    if name not in BACKTEST_CONFIGS:
        raise ValueError(
            f"Unknown backtest config: {name}. Valid options: {list(BACKTEST_CONFIGS.keys())}"
        )
    return BACKTEST_CONFIGS[name]
