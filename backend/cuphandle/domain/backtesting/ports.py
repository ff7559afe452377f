"""Ports (abstract interfaces) for the backtesting domain.

These define WHAT the domain needs from the outside world without
specifying HOW it's provided.  Concrete implementations live in infra/.
"""

from __future__ import annotations

import abc
from datetime import date

from cuphandle.domain.backtesting.models import PriceSeries


class PriceSeriesProvider(abc.ABC):
    """Supply daily bars for a symbol and date range."""

    @abc.abstractmethod
    def fetch_series(self, symbol: str, start: date, end: date) -> PriceSeries:
        """Return the full series, or raise ``DataUnavailable``.

        Implementations must block until the whole series is available;
        callers never receive a partial series.
        """
        ...
