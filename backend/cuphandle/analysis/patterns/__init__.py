"""Stable public APIs for cup pattern analysis."""

from .cup_handle import CupDetector, CupScanState, advance_scan

__all__ = [
    "CupDetector",
    "CupScanState",
    "advance_scan",
]
