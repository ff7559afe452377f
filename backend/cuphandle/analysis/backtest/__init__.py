"""Breakout backtest evaluation."""

from .evaluator import BacktestEvaluator, hypothetical_gain, resolve_trade

__all__ = [
    "BacktestEvaluator",
    "hypothetical_gain",
    "resolve_trade",
]
