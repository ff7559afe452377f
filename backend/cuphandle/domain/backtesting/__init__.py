"""Backtesting domain: price series, cups, win-rate tallies, sweep results."""
