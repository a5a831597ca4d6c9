"""
Candle domain model.

Candles are immutable values. OHLC geometry is checked by the candle
validator in the data layer, not here, so malformed rows still reach the
engine and are reported as warnings.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

import pandas as pd

from backtester.core.exceptions.backtest import DataError

CANDLE_COLUMNS = ["time", "open", "high", "low", "close", "volume"]


@dataclass(frozen=True, slots=True)
class Candle:
    """One OHLCV bar; time is the bar open in unix seconds."""

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float | None = None

    @property
    def timestamp(self) -> datetime:
        """Bar time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.time, tz=UTC)

    def is_weekend(self) -> bool:
        """Check if the bar falls on a Saturday or Sunday (UTC)."""
        return self.timestamp.weekday() >= 5

    def to_dict(self) -> dict:
        """Convert candle to dictionary."""
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


def candles_from_dataframe(data: pd.DataFrame) -> list[Candle]:
    """Build candles from a DataFrame with time/open/high/low/close[/volume] columns.

    The time column may hold unix seconds or datetimes.

    Raises:
        DataError: If required columns are missing
    """
    if data.empty:
        return []

    missing_columns = set(CANDLE_COLUMNS[:5]) - set(data.columns)
    if missing_columns:
        raise DataError(f"Missing required columns: {sorted(missing_columns)}")

    times = data["time"]
    if pd.api.types.is_datetime64_any_dtype(times):
        times = pd.to_datetime(times, utc=True).map(lambda ts: int(ts.timestamp()))

    has_volume = "volume" in data.columns
    candles = []
    for position, row in enumerate(data.itertuples(index=False)):
        volume = getattr(row, "volume") if has_volume else None
        candles.append(
            Candle(
                time=int(times.iloc[position]),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=None if volume is None or pd.isna(volume) else float(volume),
            )
        )
    return candles


def candles_to_dataframe(candles: Sequence[Candle]) -> pd.DataFrame:
    """Convert candles into a DataFrame with the standard candle columns."""
    return pd.DataFrame([candle.to_dict() for candle in candles], columns=CANDLE_COLUMNS)
