"""On-disk cache in front of any PriceSeriesProvider.

One CSV file per ``(symbol, start, end)`` request, named
``{SYMBOL}_{YYYYMMDD}_{YYYYMMDD}.csv``.  Only successful fetches are
written; a ``DataUnavailable`` from the wrapped provider propagates
untouched and leaves no file behind.

File layout: a ``# bars=N`` line followed by the OHLCV CSV.  A file whose
row count does not match its header is treated as a torn write and
re-fetched, so callers only ever see complete series.
"""

from __future__ import annotations

import io
import logging
import os
import tempfile
from datetime import date
from pathlib import Path

import pandas as pd

from cuphandle.domain.backtesting.models import PriceSeries
from cuphandle.domain.backtesting.ports import PriceSeriesProvider
from cuphandle.domain.common.errors import ValidationError
from cuphandle.infra.serialization import frame_from_series, series_from_frame

logger = logging.getLogger(__name__)

BAR_COUNT_PREFIX = "# bars="


def _parse_bar_count(line: str) -> int:
    if not line.startswith(BAR_COUNT_PREFIX):
        raise ValueError("missing bar count header")
    return int(line[len(BAR_COUNT_PREFIX):])


class DiskCachedPriceSeriesProvider(PriceSeriesProvider):
    """Read-through file cache; delegates misses to ``inner``.

    The cache is best-effort: an unreadable file is discarded and
    re-fetched, and a failed write is logged without failing the fetch.
    """

    def __init__(self, inner: PriceSeriesProvider, cache_dir: str | Path) -> None:
        self._inner = inner
        self._cache_dir = Path(cache_dir)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def cache_path(self, symbol: str, start: date, end: date) -> Path:
        name = f"{symbol.upper()}_{start:%Y%m%d}_{end:%Y%m%d}.csv"
        return self._cache_dir / name

    def fetch_series(self, symbol: str, start: date, end: date) -> PriceSeries:
        path = self.cache_path(symbol, start, end)

        if path.is_file():
            cached = self._read(symbol, path)
            if cached is not None:
                logger.debug(f"Cache hit for {symbol} ({path.name})")
                return cached

        series = self._inner.fetch_series(symbol, start, end)
        self._write(series, path)
        return series

    def _read(self, symbol: str, path: Path) -> PriceSeries | None:
        try:
            header, _, body = path.read_text().partition("\n")
            expected = _parse_bar_count(header)
            df = pd.read_csv(io.StringIO(body), index_col="Date", parse_dates=True)
            series = series_from_frame(symbol, df)
        except (OSError, KeyError, ValueError, ValidationError) as exc:
            logger.warning(f"Discarding unreadable cache file {path}: {exc}")
            path.unlink(missing_ok=True)
            return None

        if len(df) != expected or len(series) != expected:
            logger.warning(
                f"Discarding incomplete cache file {path}: "
                f"{len(series)} of {expected} bars"
            )
            path.unlink(missing_ok=True)
            return None
        if expected == 0:
            logger.warning(f"Discarding empty cache file {path}")
            path.unlink(missing_ok=True)
            return None
        return series

    def _write(self, series: PriceSeries, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", newline="") as f:
                    f.write(f"{BAR_COUNT_PREFIX}{len(series)}\n")
                    frame_from_series(series).to_csv(f, date_format="%Y-%m-%d")
                os.replace(tmp_path, path)
            finally:
                Path(tmp_path).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning(f"Could not cache {series.symbol} to {path}: {exc}")
            return
        logger.info(f"Cached {len(series)} {series.symbol} bars to {path}")
