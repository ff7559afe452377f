"""Domain-level error hierarchy.

All domain exceptions inherit from DomainError so that the CLI layer can
catch a single base class and translate it to an exit code without leaking
domain internals.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainError):
    """A domain invariant or input constraint was violated."""


class InvalidParameters(ValidationError):
    """Backtest parameters were rejected before any fetch or scan began."""


class DataUnavailable(DomainError):
    """A price series could not be obtained for a symbol and date range."""

    def __init__(self, symbol: str, reason: str) -> None:
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Price data unavailable for {symbol}: {reason}")


class InsufficientData(DomainError):
    """Not enough detected cups (or resolved trades) to compute a win rate."""

    def __init__(self, symbol: str | None, reason: str) -> None:
        self.symbol = symbol
        self.reason = reason
        subject = symbol if symbol is not None else "basket"
        super().__init__(f"Insufficient data for {subject}: {reason}")
