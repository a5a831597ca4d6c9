"""
Core enumerations for the backtest engine.

This module provides centralized enumerations for domain concepts
like timeframes, trade actions, trade outcomes and run phases.
"""

from .backtest_phase import BacktestPhase
from .position_types import ActionType, TradeOutcome
from .timeframes import Timeframe

__all__ = ["Timeframe", "ActionType", "TradeOutcome", "BacktestPhase"]
