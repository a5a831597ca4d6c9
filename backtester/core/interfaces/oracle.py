"""
Decision oracle interface.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from backtester.core.models.candle import Candle
from backtester.core.models.recommendation import Recommendation, RecommendationOptions


class IDecisionOracle(ABC):
    """Abstract interface for point-in-time trading decisions.

    Implementations must only use the candles they are given; the engine
    guarantees the sequence ends at the current simulated candle.
    """

    @abstractmethod
    async def generate_recommendation(
        self,
        symbol: str,
        candles: Sequence[Candle],
        options: RecommendationOptions,
    ) -> Recommendation | None:
        """Return BUY/SELL/HOLD for the last candle, or None for no opinion."""
        pass
