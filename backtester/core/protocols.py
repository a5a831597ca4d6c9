"""
Core callable protocols.

This module defines the callback and collaborator signatures shared by the
engine, the data layer and the API without creating import cycles.
"""

from collections.abc import Sequence
from typing import Protocol

from backtester.core.enums import BacktestPhase
from backtester.core.models.candle import Candle


class IValidationResult(Protocol):
    """Protocol for the outcome of a candle validation pass."""

    valid: bool
    issues: list[str]


class ProgressCallback(Protocol):
    """Receives (phase, percent 0-100, message) updates from a run."""

    def __call__(self, phase: BacktestPhase, percent: float, message: str) -> None: ...


class CandleValidator(Protocol):
    """Checks candle geometry and ordering without raising."""

    def __call__(self, candles: Sequence[Candle]) -> IValidationResult: ...
