"""
Backtest run phase enumeration.
"""

from enum import StrEnum


class BacktestPhase(StrEnum):
    """Phases reported through the progress callback and stored on results."""

    FETCHING_DATA = "fetching_data"
    RUNNING_SIMULATION = "running_simulation"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if the phase ends a run."""
        return self in [self.COMPLETE, self.ERROR, self.CANCELLED]
