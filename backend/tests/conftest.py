"""
Shared pytest fixtures for backend tests.

Provides sample symbols and common test configuration.
"""
import pytest
import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))


@pytest.fixture
def test_symbols():
    """Common test symbols - the default large-cap tech basket."""
    return ['MSFT', 'AAPL', 'GOOG', 'AMZN']
