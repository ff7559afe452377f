"""Concrete PriceSeriesProvider adapters."""

from .price_cache import DiskCachedPriceSeriesProvider
from .yfinance_provider import YFinancePriceSeriesProvider

__all__ = [
    "DiskCachedPriceSeriesProvider",
    "YFinancePriceSeriesProvider",
]
