"""
Data access interfaces.
"""

from abc import ABC, abstractmethod

from backtester.core.enums import Timeframe
from backtester.core.models.candle import Candle


class IHistoricalDataProvider(ABC):
    """Abstract interface for historical candle sources."""

    @abstractmethod
    async def fetch_historical_data_range(
        self,
        symbol: str,
        start_date: int,
        end_date: int,
        timeframe: Timeframe,
        lookback: int,
    ) -> list[Candle]:
        """Load candles ascending by time covering [start - lookback candles, end].

        Args:
            symbol: Ticker symbol
            start_date: Range start in unix milliseconds
            end_date: Range end in unix milliseconds
            timeframe: Candle timeframe
            lookback: Number of warm-up candles wanted before start_date
        """
        pass
