"""
Run the cup-and-handle holding-period sweep from a source checkout.

Usage:
    cd backend
    python scripts/run_cup_backtest.py                        # default basket
    python scripts/run_cup_backtest.py --symbols MSFT AAPL    # custom basket
    python scripts/run_cup_backtest.py --json > report.json
"""
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from cuphandle.interfaces.cli import main

if __name__ == "__main__":
    sys.exit(main())
