"""
Candle data validation module.

Checks ordering, price signs, OHLC relationships and gaps. Unlike a hard
validator it never raises: every finding is returned as a human-readable
issue so the engine can surface it as a warning and keep running.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import pandas as pd
from loguru import logger

from backtester.core.constants import MAX_CANDLE_GAP_DAYS
from backtester.core.models.candle import Candle, candles_to_dataframe
from backtester.core.types.financial import SECONDS_PER_DAY


@dataclass
class CandleValidationResult:
    """Outcome of a validation pass."""

    valid: bool
    issues: list[str] = field(default_factory=list)


class OHLCVCandleValidator:
    """
    Candle validator with per-row issue reporting.

    Features:
    - Chronological ordering check
    - Negative price detection
    - OHLC relationship validation
    - Large gap detection (weekends and holidays tolerated)
    """

    def __init__(self, max_gap_days: int = MAX_CANDLE_GAP_DAYS):
        self.max_gap_seconds = max_gap_days * SECONDS_PER_DAY

    def validate(self, candles: Sequence[Candle]) -> CandleValidationResult:
        """
        Validate candle integrity.

        Args:
            candles: Candles ascending by time

        Returns:
            CandleValidationResult with every issue found
        """
        if not candles:
            return CandleValidationResult(valid=False, issues=["No candle data"])

        data = candles_to_dataframe(candles)
        issues: list[str] = []
        issues.extend(self._check_ordering(data))
        issues.extend(self._check_negative_prices(data))
        issues.extend(self._check_ohlc_relationships(data))
        issues.extend(self._check_gaps(data))

        if issues:
            logger.debug(f"Candle validation found {len(issues)} issues in {len(data)} rows")

        return CandleValidationResult(valid=not issues, issues=issues)

    def _check_ordering(self, data: pd.DataFrame) -> list[str]:
        """Report rows whose time does not advance past the previous row."""
        previous = data["time"].shift(1)
        out_of_order = data.index[(data["time"] <= previous) & previous.notna()]
        return [
            f"Out of order at index {i}: {int(data.at[i, 'time'])} <= {int(previous.at[i])}"
            for i in out_of_order
        ]

    def _check_negative_prices(self, data: pd.DataFrame) -> list[str]:
        """Report rows with any negative price."""
        negative = (data[["open", "high", "low", "close"]] < 0).any(axis=1)
        return [f"Negative price at index {i}" for i in data.index[negative]]

    def _check_ohlc_relationships(self, data: pd.DataFrame) -> list[str]:
        """Report rows violating high >= open/close >= low."""
        issues: list[str] = []
        high_below_low = data["high"] < data["low"]
        high_not_highest = (data["high"] < data["open"]) | (data["high"] < data["close"])
        low_not_lowest = (data["low"] > data["open"]) | (data["low"] > data["close"])

        for i in data.index:
            if high_below_low.at[i]:
                issues.append(f"High < Low at index {i}")
            if high_not_highest.at[i]:
                issues.append(f"High not highest at index {i}")
            if low_not_lowest.at[i]:
                issues.append(f"Low not lowest at index {i}")
        return issues

    def _check_gaps(self, data: pd.DataFrame) -> list[str]:
        """Report gaps longer than the tolerated number of days."""
        gaps = data["time"].diff()
        large = data.index[gaps > self.max_gap_seconds]
        return [
            f"Large gap of {round(gaps.at[i] / SECONDS_PER_DAY)} days at index {i}" for i in large
        ]


def validate_candle_data(candles: Sequence[Candle]) -> CandleValidationResult:
    """Validate candles with the default validator settings."""
    return OHLCVCandleValidator().validate(candles)
