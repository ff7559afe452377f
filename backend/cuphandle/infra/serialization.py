"""Shared serialization helpers for the infrastructure layer.

These utilities handle conversions between pandas OHLCV frames (what
yfinance returns and what the disk cache stores) and the pure-Python
``PriceSeries`` the analysis layer consumes.
"""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

from cuphandle.domain.backtesting.models import PricePoint, PriceSeries

OHLCV_COLUMNS = ("Open", "High", "Low", "Close", "Volume")
ADJ_CLOSE_COLUMN = "Adj Close"


def _resolve_column(df: pd.DataFrame, preferred: str) -> str | None:
    if preferred in df.columns:
        return preferred
    if preferred.lower() in df.columns:
        return preferred.lower()
    return None


def normalize_ohlcv_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Return a naive-DatetimeIndex frame with canonical OHLCV columns.

    - Multi-level columns (``(field, ticker)``) are flattened to the field.
    - Rows with a missing price are dropped; missing Volume becomes 0.
    - Duplicate dates keep the last row; output is sorted oldest first.
    """
    frame = df.copy()
    if isinstance(frame.columns, pd.MultiIndex):
        frame.columns = frame.columns.get_level_values(0)
    frame = frame.loc[:, ~frame.columns.duplicated()]

    renamed: dict[str, str] = {}
    for col in (*OHLCV_COLUMNS, ADJ_CLOSE_COLUMN):
        resolved = _resolve_column(frame, col)
        if resolved is None:
            if col in ("Volume", ADJ_CLOSE_COLUMN):
                continue
            raise KeyError(f"Missing required column '{col}'")
        renamed[resolved] = col
    frame = frame.rename(columns=renamed)[list(renamed.values())]

    if "Volume" not in frame.columns:
        frame["Volume"] = 0

    index = pd.DatetimeIndex(pd.to_datetime(frame.index))
    if index.tz is not None:
        # Keep the exchange-local session date.
        index = index.tz_localize(None)
    frame.index = index.normalize()
    frame.index.name = "Date"

    frame = frame.dropna(subset=["Open", "High", "Low", "Close"])
    frame["Volume"] = frame["Volume"].fillna(0)
    frame = frame[~frame.index.duplicated(keep="last")].sort_index()
    return frame


def series_from_frame(symbol: str, df: pd.DataFrame) -> PriceSeries:
    """Convert an OHLCV DataFrame into an immutable ``PriceSeries``."""
    frame = normalize_ohlcv_frame(df)
    has_adj = ADJ_CLOSE_COLUMN in frame.columns

    points = []
    for ts, row in frame.iterrows():
        adj_close = None
        if has_adj and not _is_missing(row[ADJ_CLOSE_COLUMN]):
            adj_close = float(row[ADJ_CLOSE_COLUMN])
        points.append(
            PricePoint(
                date=ts.date(),
                open=float(row["Open"]),
                high=float(row["High"]),
                low=float(row["Low"]),
                close=float(row["Close"]),
                volume=int(row["Volume"]),
                adj_close=adj_close,
            )
        )
    return PriceSeries(symbol=symbol.upper(), points=tuple(points))


def frame_from_series(series: PriceSeries) -> pd.DataFrame:
    """Inverse of :func:`series_from_frame`, used for the on-disk cache."""
    index = pd.DatetimeIndex([pd.Timestamp(p.date) for p in series], name="Date")
    frame = pd.DataFrame(
        {
            "Open": np.array([p.open for p in series], dtype=float),
            "High": np.array([p.high for p in series], dtype=float),
            "Low": np.array([p.low for p in series], dtype=float),
            "Close": np.array([p.close for p in series], dtype=float),
            "Volume": np.array([p.volume for p in series], dtype=np.int64),
            ADJ_CLOSE_COLUMN: np.array(
                [np.nan if p.adj_close is None else p.adj_close for p in series],
                dtype=float,
            ),
        },
        index=index,
    )
    return frame


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return True
