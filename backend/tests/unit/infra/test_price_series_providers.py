"""Contract tests for the Yahoo Finance adapter and the on-disk price cache.

Verifies frame normalization, end-date handling, failure mapping to
DataUnavailable, and read-through cache semantics.
"""

from __future__ import annotations

import logging
from datetime import date
from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest

from cuphandle.domain.backtesting.models import DateRange, HoldingPeriodGrid
from cuphandle.domain.common.errors import DataUnavailable
from cuphandle.infra.providers import (
    DiskCachedPriceSeriesProvider,
    YFinancePriceSeriesProvider,
)
from cuphandle.infra.serialization import (
    frame_from_series,
    normalize_ohlcv_frame,
    series_from_frame,
)
from cuphandle.use_cases.backtesting.sweep_holding_periods import HoldingPeriodSweeper

from tests.unit.backtesting_fakes import (
    FakePriceSeriesProvider,
    make_series,
    scenario_b_series,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

START = date(2020, 1, 1)
END = date(2020, 7, 1)


def _make_price_df(days: int = 5, price: float = 100.0) -> pd.DataFrame:
    """Build a synthetic OHLCV DataFrame shaped like ``yf.download`` output."""
    dates = pd.bdate_range("2020-01-02", periods=days)
    close = price + np.arange(days, dtype=float)
    return pd.DataFrame(
        {
            "Open": close - 0.5,
            "High": close + 1.0,
            "Low": close - 1.0,
            "Close": close,
            "Adj Close": close * 0.98,
            "Volume": np.full(days, 1_000_000),
        },
        index=pd.DatetimeIndex(dates, name="Date"),
    )


def _multi_ticker_columns(df: pd.DataFrame, symbol: str) -> pd.DataFrame:
    out = df.copy()
    out.columns = pd.MultiIndex.from_product(
        [list(df.columns), [symbol]], names=["Price", "Ticker"]
    )
    return out


@pytest.fixture
def mock_yf():
    with patch("cuphandle.infra.providers.yfinance_provider.yf") as yf:
        yf.download.return_value = _make_price_df()
        yield yf


# ===================================================================
# Frame normalization
# ===================================================================


class TestNormalizeFrame:
    def test_lowercase_columns_are_canonicalized(self):
        df = _make_price_df().rename(columns=str.lower)

        frame = normalize_ohlcv_frame(df)

        assert list(frame.columns) == [
            "Open", "High", "Low", "Close", "Volume", "Adj Close",
        ]
        assert frame.index.name == "Date"

    def test_tz_aware_index_keeps_session_date(self):
        df = _make_price_df(days=2)
        df.index = pd.DatetimeIndex(
            ["2024-03-08 00:00", "2024-03-11 00:00"], tz="America/New_York"
        )

        series = series_from_frame("msft", df)

        assert series.symbol == "MSFT"
        assert series.dates == (date(2024, 3, 8), date(2024, 3, 11))

    def test_rows_with_missing_prices_are_dropped(self):
        df = _make_price_df(days=4)
        df.iloc[1, df.columns.get_loc("Low")] = np.nan

        series = series_from_frame("X", df)

        assert len(series) == 3
        assert date(2020, 1, 3) not in series.dates

    def test_missing_volume_defaults_to_zero(self):
        df = _make_price_df(days=3).drop(columns=["Volume", "Adj Close"])

        series = series_from_frame("X", df)

        assert [p.volume for p in series] == [0, 0, 0]
        assert all(p.adj_close is None for p in series)

    def test_duplicate_dates_keep_last_row_sorted(self):
        df = _make_price_df(days=3)
        dup = df.iloc[[0]].copy()
        dup["Close"] = 999.0
        df = pd.concat([df.iloc[::-1], dup])

        series = series_from_frame("X", df)

        assert series.dates == (date(2020, 1, 2), date(2020, 1, 3), date(2020, 1, 6))
        assert series.points[0].close == 999.0

    def test_missing_close_column_raises_key_error(self):
        with pytest.raises(KeyError):
            normalize_ohlcv_frame(_make_price_df().drop(columns=["Close"]))

    def test_frame_from_series_writes_adj_close_as_nan(self):
        series = make_series([10.0, 11.0])
        frame = frame_from_series(series)

        assert frame["Adj Close"].isna().all()
        assert frame["Close"].tolist() == [10.0, 11.0]


# ===================================================================
# Yahoo Finance adapter
# ===================================================================


class TestYFinanceProvider:
    def test_end_date_is_passed_inclusive(self, mock_yf):
        YFinancePriceSeriesProvider().fetch_series("msft", START, END)

        args, kwargs = mock_yf.download.call_args
        assert args == ("MSFT",)
        assert kwargs["start"] == "2020-01-01"
        assert kwargs["end"] == "2020-07-02"
        assert kwargs["auto_adjust"] is False
        assert kwargs["progress"] is False

    def test_multi_index_columns_are_flattened(self, mock_yf):
        mock_yf.download.return_value = _multi_ticker_columns(_make_price_df(), "MSFT")

        series = YFinancePriceSeriesProvider().fetch_series("MSFT", START, END)

        assert len(series) == 5
        assert series.points[0].close == 100.0
        assert series.points[0].adj_close == pytest.approx(98.0)

    def test_empty_frame_is_data_unavailable(self, mock_yf):
        mock_yf.download.return_value = pd.DataFrame()

        with pytest.raises(DataUnavailable) as exc_info:
            YFinancePriceSeriesProvider().fetch_series("NOPE", START, END)
        assert exc_info.value.symbol == "NOPE"

    def test_all_nan_rows_are_data_unavailable(self, mock_yf):
        df = _make_price_df(days=3)
        df["Close"] = np.nan
        mock_yf.download.return_value = df

        with pytest.raises(DataUnavailable, match="missing prices"):
            YFinancePriceSeriesProvider().fetch_series("X", START, END)

    def test_download_exception_is_wrapped(self, mock_yf):
        mock_yf.download.side_effect = ConnectionError("refused")

        with pytest.raises(DataUnavailable) as exc_info:
            YFinancePriceSeriesProvider().fetch_series("MSFT", START, END)
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert "refused" in exc_info.value.reason

    def test_negative_prices_are_data_unavailable(self, mock_yf):
        df = _make_price_df(days=3)
        df.iloc[1, df.columns.get_loc("Low")] = -1.0
        mock_yf.download.return_value = df

        with pytest.raises(DataUnavailable, match="non-negative"):
            YFinancePriceSeriesProvider().fetch_series("MSFT", START, END)

    def test_malformed_frame_is_data_unavailable(self, mock_yf):
        mock_yf.download.return_value = _make_price_df().drop(columns=["High"])

        with pytest.raises(DataUnavailable, match="malformed"):
            YFinancePriceSeriesProvider().fetch_series("MSFT", START, END)


# ===================================================================
# Disk cache
# ===================================================================


class TestDiskCache:
    @pytest.fixture
    def inner(self):
        return FakePriceSeriesProvider(
            series={"MSFT": make_series([10.0, 11.0, 12.0], symbol="MSFT")},
            failures={"BAD": "timeout"},
        )

    def test_cache_file_name(self, inner, tmp_path):
        cache = DiskCachedPriceSeriesProvider(inner, tmp_path)
        assert cache.cache_path("msft", START, END) == tmp_path / "MSFT_20200101_20200701.csv"

    def test_miss_writes_file_and_hit_skips_inner(self, inner, tmp_path):
        cache = DiskCachedPriceSeriesProvider(inner, tmp_path / "StockData")

        first = cache.fetch_series("MSFT", START, END)
        second = cache.fetch_series("MSFT", START, END)

        assert cache.cache_path("MSFT", START, END).exists()
        assert len(inner.calls) == 1
        assert second == first

    def test_failure_is_not_cached(self, inner, tmp_path):
        cache = DiskCachedPriceSeriesProvider(inner, tmp_path)

        with pytest.raises(DataUnavailable):
            cache.fetch_series("BAD", START, END)
        assert not cache.cache_path("BAD", START, END).exists()

    def test_corrupt_file_is_refetched(self, inner, tmp_path):
        cache = DiskCachedPriceSeriesProvider(inner, tmp_path)
        path = cache.cache_path("MSFT", START, END)
        path.write_text("garbage,more\n1,2\n")

        series = cache.fetch_series("MSFT", START, END)

        assert len(inner.calls) == 1
        assert [p.close for p in series] == [10.0, 11.0, 12.0]
        assert path.read_text().startswith("# bars=3\n")

    def test_empty_file_is_refetched(self, inner, tmp_path):
        cache = DiskCachedPriceSeriesProvider(inner, tmp_path)
        cache.cache_path("MSFT", START, END).write_text("")

        cache.fetch_series("MSFT", START, END)

        assert len(inner.calls) == 1

    def test_truncated_file_is_refetched_in_full(self, tmp_path):
        full = make_series(np.arange(10, 20, dtype=float), symbol="MSFT")
        inner = FakePriceSeriesProvider(series={"MSFT": full})
        cache = DiskCachedPriceSeriesProvider(inner, tmp_path)
        cache.fetch_series("MSFT", START, END)
        path = cache.cache_path("MSFT", START, END)

        # Bar-count line, CSV header and the first three rows only.
        lines = path.read_text().splitlines(keepends=True)
        path.write_text("".join(lines[:5]))

        series = cache.fetch_series("MSFT", START, END)

        assert len(inner.calls) == 2
        assert series == full
        assert DiskCachedPriceSeriesProvider(inner, tmp_path).fetch_series(
            "MSFT", START, END
        ) == full
        assert len(inner.calls) == 2

    def test_file_without_bar_count_is_refetched(self, inner, tmp_path):
        cache = DiskCachedPriceSeriesProvider(inner, tmp_path)
        path = cache.cache_path("MSFT", START, END)
        frame_from_series(make_series([1.0, 2.0], symbol="MSFT")).to_csv(
            path, date_format="%Y-%m-%d"
        )

        series = cache.fetch_series("MSFT", START, END)

        assert len(inner.calls) == 1
        assert len(series) == 3

    def test_blocked_cache_dir_still_returns_series(self, inner, tmp_path, caplog):
        blocked = tmp_path / "StockData"
        blocked.write_text("not a directory")
        cache = DiskCachedPriceSeriesProvider(inner, blocked)

        with caplog.at_level(logging.WARNING):
            series = cache.fetch_series("MSFT", START, END)

        assert [p.close for p in series] == [10.0, 11.0, 12.0]
        assert "Could not cache MSFT" in caplog.text
        assert blocked.read_text() == "not a directory"

    def test_failed_replace_leaves_no_partial_file(self, inner, tmp_path):
        cache = DiskCachedPriceSeriesProvider(inner, tmp_path)

        with patch(
            "cuphandle.infra.providers.price_cache.os.replace",
            side_effect=OSError("disk full"),
        ):
            series = cache.fetch_series("MSFT", START, END)

        assert len(series) == 3
        assert list(tmp_path.iterdir()) == []

    def test_sweep_survives_unwritable_cache(self, tmp_path):
        blocked = tmp_path / "StockData"
        blocked.write_text("")
        inner = FakePriceSeriesProvider(
            series={"X": scenario_b_series(symbol="X", trailing_days=200)}
        )
        sweeper = HoldingPeriodSweeper(DiskCachedPriceSeriesProvider(inner, blocked))

        result = sweeper.run(
            ["X"],
            DateRange(start=START, end=END),
            60,
            120,
            HoldingPeriodGrid(start=20, end=40, step=10),
        )

        assert result.basket_size == 1
        assert result.skipped_symbols == ()
