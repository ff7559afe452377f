"""Cup-and-handle breakout detection and holding-period backtesting."""

__version__ = "0.1.0"
