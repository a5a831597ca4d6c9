"""
Candle timeframe enumerations.

This module defines the timeframes a backtest can be simulated on.
"""

from enum import StrEnum


class Timeframe(StrEnum):
    """
    Allowed backtest timeframes.

    Supports daily, hourly and fifteen-minute candles.
    """

    M15 = "15m"  # 15 minutes
    H1 = "1h"  # 1 hour
    D1 = "1d"  # 1 day

    @classmethod
    def to_seconds(cls, timeframe: "Timeframe") -> int:
        """
        Convert timeframe to seconds.

        Args:
            timeframe: Timeframe enum value

        Returns:
            Number of seconds in the timeframe
        """
        conversions = {
            cls.M15: 900,
            cls.H1: 3600,
            cls.D1: 86400,
        }
        return conversions[timeframe]

    @classmethod
    def candles_per_trading_day(cls, timeframe: "Timeframe") -> float:
        """
        Get the number of candles in one regular trading session.

        Args:
            timeframe: Timeframe enum value

        Returns:
            Candles per trading day (6.5 market hours for intraday data)
        """
        candles = {
            cls.M15: 26.0,
            cls.H1: 6.5,
            cls.D1: 1.0,
        }
        return candles[timeframe]

    @classmethod
    def from_string(cls, value: str) -> "Timeframe":
        """
        Convert string to Timeframe enum.

        Raises:
            ValueError: If timeframe is not supported
        """
        value_lower = value.lower()

        for tf in cls:
            if tf.value == value_lower:
                return tf

        raise ValueError(
            f"Unsupported timeframe: {value}. "
            f"Supported timeframes: {', '.join([tf.value for tf in cls])}"
        )

    @property
    def is_intraday(self) -> bool:
        """Check if timeframe is intraday (less than 1 day)."""
        return self in [self.M15, self.H1]
