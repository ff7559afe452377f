"""Configuration module"""
from .settings import Settings, settings
from .backtest_config import (
    BacktestConfig,
    BACKTEST_CONFIGS,
    DEFAULT_BACKTEST_CONFIG,
    get_backtest_config,
)

__all__ = [
    # Settings
    "Settings",
    "settings",
    # Backtest presets
    "BacktestConfig",
    "BACKTEST_CONFIGS",
    "DEFAULT_BACKTEST_CONFIG",
    "get_backtest_config",
]
