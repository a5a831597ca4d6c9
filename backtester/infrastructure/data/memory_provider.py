"""
In-memory candle provider.
"""

from collections.abc import Iterable

from loguru import logger

from backtester.core.enums import Timeframe
from backtester.core.interfaces.data import IHistoricalDataProvider
from backtester.core.models.candle import Candle


class InMemoryCandleProvider(IHistoricalDataProvider):
    """Serves a fixed candle sequence, e.g. one prepared by a caller or a test.

    The whole history up to end_date is returned so the caller's own
    warm-up candles are always included.
    """

    def __init__(self, candles: Iterable[Candle]):
        self._candles = tuple(sorted(candles, key=lambda candle: candle.time))
        self.fetch_count = 0

    async def fetch_historical_data_range(
        self,
        symbol: str,
        start_date: int,
        end_date: int,
        timeframe: Timeframe,
        lookback: int,
    ) -> list[Candle]:
        """Return every stored candle with time <= end_date."""
        self.fetch_count += 1
        end_seconds = end_date / 1000
        candles = [candle for candle in self._candles if candle.time <= end_seconds]
        logger.debug(f"Serving {len(candles)} in-memory candles for {symbol} {timeframe}")
        return candles
