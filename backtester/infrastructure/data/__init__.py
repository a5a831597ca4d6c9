"""
Historical candle data infrastructure.

This module provides candle sources for the engine and the validator
whose findings are surfaced as non-fatal warnings.
"""

from .candle_validator import CandleValidationResult, OHLCVCandleValidator, validate_candle_data
from .csv_candle_provider import CSVCandleProvider
from .memory_provider import InMemoryCandleProvider

__all__ = [
    "CSVCandleProvider",
    "CandleValidationResult",
    "InMemoryCandleProvider",
    "OHLCVCandleValidator",
    "validate_candle_data",
]
