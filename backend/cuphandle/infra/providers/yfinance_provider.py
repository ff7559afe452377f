"""Yahoo Finance adapter for the PriceSeriesProvider port."""

from __future__ import annotations

import logging
from datetime import date, timedelta

import yfinance as yf

from cuphandle.domain.backtesting.models import PriceSeries
from cuphandle.domain.backtesting.ports import PriceSeriesProvider
from cuphandle.domain.common.errors import DataUnavailable, ValidationError
from cuphandle.infra.serialization import series_from_frame

logger = logging.getLogger(__name__)


class YFinancePriceSeriesProvider(PriceSeriesProvider):
    """Download daily bars with ``yfinance.download``.

    Any library or network failure, an empty frame, or a frame without
    usable rows is reported as ``DataUnavailable`` so callers never have
    to tell "fetch failed" apart from "no data".
    """

    def __init__(self, interval: str = "1d") -> None:
        self._interval = interval

    def fetch_series(self, symbol: str, start: date, end: date) -> PriceSeries:
        symbol = symbol.upper()
        logger.info(f"Fetching {symbol} prices {start}..{end} from Yahoo Finance")
        try:
            df = yf.download(
                symbol,
                start=start.isoformat(),
                # yfinance treats ``end`` as exclusive.
                end=(end + timedelta(days=1)).isoformat(),
                interval=self._interval,
                auto_adjust=False,
                progress=False,
            )
        except Exception as exc:
            logger.error(f"Error downloading {symbol}: {exc}")
            raise DataUnavailable(symbol, f"download failed: {exc}") from exc

        if df is None or df.empty:
            raise DataUnavailable(symbol, f"no rows between {start} and {end}")

        try:
            series = series_from_frame(symbol, df)
        except (KeyError, ValueError, ValidationError) as exc:
            raise DataUnavailable(symbol, f"malformed price frame: {exc}") from exc

        if len(series) == 0:
            raise DataUnavailable(symbol, "every row had missing prices")
        return series
