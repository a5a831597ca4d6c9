"""
Shared fixtures: synthetic candle series and a scripted decision oracle.
"""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime

import pytest

from backtester.core.enums import ActionType
from backtester.core.interfaces.oracle import IDecisionOracle
from backtester.core.models.candle import Candle
from backtester.core.models.recommendation import Recommendation, RecommendationOptions

DAY = 86400
HOUR = 3600
# Wednesday, so index 5 of a daily series is a Monday
BASE_TIME = int(datetime(2024, 1, 3, tzinfo=UTC).timestamp())


def build_candles(
    closes: Sequence[float], start: int = BASE_TIME, step: int = DAY
) -> list[Candle]:
    """Candles opening at the previous close with a 0.5 wick on each side."""
    candles = []
    previous = closes[0]
    for i, close in enumerate(closes):
        candles.append(
            Candle(
                time=start + i * step,
                open=previous,
                high=max(previous, close) + 0.5,
                low=min(previous, close) - 0.5,
                close=close,
                volume=1000.0,
            )
        )
        previous = close
    return candles


class ScriptedOracle(IDecisionOracle):
    """Returns a fixed recommendation per candle index and records every call."""

    def __init__(
        self,
        script: dict[int, Recommendation] | None = None,
        default: Recommendation | None = None,
        on_call: Callable[[int], None] | None = None,
    ):
        self.script = script or {}
        self.default = default
        self.on_call = on_call
        self.calls: list[tuple[int, int]] = []
        self.options: list[RecommendationOptions] = []

    @property
    def called_indices(self) -> list[int]:
        return [length - 1 for length, _ in self.calls]

    async def generate_recommendation(
        self, symbol: str, candles: Sequence[Candle], options: RecommendationOptions
    ) -> Recommendation | None:
        index = len(candles) - 1
        self.calls.append((len(candles), candles[-1].time))
        self.options.append(options)
        if self.on_call is not None:
            self.on_call(index)
        return self.script.get(index, self.default)


@pytest.fixture
def rising_candles() -> list[Candle]:
    """Thirty daily candles closing at 100, 101, ..., 129."""
    return build_candles([100.0 + i for i in range(30)])


@pytest.fixture
def hourly_candles() -> list[Candle]:
    """Thirty hourly candles closing at 100, 101, ..., 129."""
    return build_candles([100.0 + i for i in range(30)], step=HOUR)


@pytest.fixture
def buy() -> Callable[..., Recommendation]:
    """Factory for BUY recommendations."""

    def make(price_target=None, stop_loss=None, confidence=80.0) -> Recommendation:
        return Recommendation(
            action=ActionType.BUY,
            confidence=confidence,
            rationale="scripted",
            price_target=price_target,
            stop_loss=stop_loss,
        )

    return make


@pytest.fixture
def candle_builder() -> Callable[..., list[Candle]]:
    """Factory building candle series from closing prices."""
    return build_candles


@pytest.fixture
def oracle_factory() -> type[ScriptedOracle]:
    """Factory for scripted oracles."""
    return ScriptedOracle
