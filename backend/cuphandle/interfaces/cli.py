"""
Command-line entry point for the cup-and-handle holding-period sweep.

Usage:
    cuphandle-backtest                                  # default basket and grid
    cuphandle-backtest --symbols NVDA AMD --hold-step 10
    cuphandle-backtest --unresolved-policy exclude --json
    cuphandle-backtest --no-cache                       # always hit Yahoo Finance
"""
import argparse
import logging
import sys
from datetime import date
from typing import List, Optional, TextIO

from cuphandle.config import DEFAULT_BACKTEST_CONFIG, settings
from cuphandle.domain.backtesting.models import (
    DateRange,
    HoldingPeriodGrid,
    SweepResult,
    normalize_symbols,
)
from cuphandle.domain.backtesting.ports import PriceSeriesProvider
from cuphandle.domain.common.errors import InsufficientData, InvalidParameters
from cuphandle.schemas.backtest import SweepReport
from cuphandle.wiring.bootstrap import (
    get_holding_period_sweeper,
    get_price_series_provider,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INSUFFICIENT_DATA = 1
EXIT_INVALID_PARAMETERS = 2


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    cfg = DEFAULT_BACKTEST_CONFIG
    parser = argparse.ArgumentParser(
        prog="cuphandle-backtest",
        description="Detect cup-and-handle breakouts and find the best holding period",
    )
    parser.add_argument("--symbols", nargs="+", default=list(cfg.symbols), help="Ticker basket")
    parser.add_argument("--start", type=_iso_date, default=cfg.start_date, help="History start (YYYY-MM-DD)")
    parser.add_argument("--end", type=_iso_date, default=cfg.end_date, help="History end (YYYY-MM-DD)")
    parser.add_argument("--min-cup-days", type=int, default=cfg.min_cup_days, help="Cup must last more than this many bars")
    parser.add_argument("--max-cup-days", type=int, default=cfg.max_cup_days, help="Cup must last fewer than this many bars")
    parser.add_argument("--hold-start", type=int, default=cfg.hold_start, help="First holding period (calendar days)")
    parser.add_argument("--hold-end", type=int, default=cfg.hold_end, help="Last holding period (inclusive)")
    parser.add_argument("--hold-step", type=int, default=cfg.hold_step, help="Holding period step")
    parser.add_argument(
        "--unresolved-policy",
        choices=["break_even", "exclude"],
        default=settings.unresolved_policy,
        help="Score trades with no sell bar as break-even wins or leave them out",
    )
    parser.add_argument("--cache-dir", default=settings.cache_dir, help="Directory for cached price files")
    parser.add_argument("--no-cache", action="store_true", help="Bypass the on-disk price cache")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    return parser


def format_text_report(result: SweepResult, out: TextIO) -> None:
    """Print per-holding-period win rates followed by the best result."""
    for detail in result.details:
        out.write(f"Holding period: {detail.hold_days} days " + "=" * 12 + "\n")
        for symbol_result in detail.symbol_results:
            rate = symbol_result.win_rate
            rate_text = "n/a" if rate is None else f"{rate:.4f}"
            out.write(
                f"  {symbol_result.symbol}: {symbol_result.win_count}/"
                f"{symbol_result.trade_count} -> {rate_text}"
            )
            if symbol_result.unresolved_count:
                out.write(f" ({symbol_result.unresolved_count} unresolved)")
            out.write("\n")
        for issue in detail.issues:
            out.write(f"  {issue.symbol}: skipped ({issue.condition.value}: {issue.detail})\n")
        out.write(f"  Average win rate: {detail.average_rate:.4f}\n\n")

    out.write(f"Best holding period: {result.best_hold_days} days\n")
    out.write(f"Best average win rate: {result.best_average_win_rate:.4f}\n")


def main(
    argv: Optional[List[str]] = None,
    *,
    provider: Optional[PriceSeriesProvider] = None,
    out: Optional[TextIO] = None,
) -> int:
    args = build_parser().parse_args(argv)
    out = out if out is not None else sys.stdout

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        date_range = DateRange(start=args.start, end=args.end)
        hold_grid = HoldingPeriodGrid(
            start=args.hold_start, end=args.hold_end, step=args.hold_step
        )
        if provider is None:
            provider = get_price_series_provider(
                cache_dir=args.cache_dir, cache_enabled=not args.no_cache
            )
        sweeper = get_holding_period_sweeper(
            provider, unresolved_policy=args.unresolved_policy
        )
        result = sweeper.run(
            args.symbols,
            date_range,
            args.min_cup_days,
            args.max_cup_days,
            hold_grid,
        )
    except InvalidParameters as exc:
        logger.error(f"Invalid parameters: {exc}")
        return EXIT_INVALID_PARAMETERS
    except InsufficientData as exc:
        logger.error(str(exc))
        return EXIT_INSUFFICIENT_DATA

    if args.json:
        report = SweepReport.from_result(
            result,
            symbols=normalize_symbols(args.symbols),
            start_date=args.start,
            end_date=args.end,
            min_cup_days=args.min_cup_days,
            max_cup_days=args.max_cup_days,
            unresolved_policy=args.unresolved_policy,
        )
        out.write(report.model_dump_json(indent=2) + "\n")
    else:
        format_text_report(result, out)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
