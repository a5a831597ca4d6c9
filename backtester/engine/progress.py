"""
Progress reporting and cooperative cancellation for backtest runs.
"""

import threading

from loguru import logger

from backtester.core.constants import PROGRESS_STEP_PERCENT
from backtester.core.enums import BacktestPhase
from backtester.core.exceptions.backtest import BacktestCancelledError
from backtester.core.protocols import ProgressCallback


class CancellationToken:
    """Shared cancellation flag polled by a running backtest.

    Safe to trip from another thread or from inside a callback.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = "Backtest cancelled"

    def cancel(self, reason: str = "Backtest cancelled") -> None:
        """Request cancellation; the run stops at its next poll."""
        self.reason = reason
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise BacktestCancelledError when cancellation has been requested."""
        if self._event.is_set():
            raise BacktestCancelledError(self.reason)


class ProgressReporter:
    """Forwards progress to an optional callback at coarse granularity.

    Simulation progress is emitted once per `step_percent` bucket so long
    runs do not call back on every candle. Callback failures are logged
    and never interrupt the run.
    """

    def __init__(
        self, callback: ProgressCallback | None = None, step_percent: int = PROGRESS_STEP_PERCENT
    ):
        if step_percent <= 0:
            raise ValueError("step_percent must be positive")
        self._callback = callback
        self._step_percent = step_percent
        self._last_bucket: int | None = None
        self.phase: BacktestPhase | None = None

    def report(self, phase: BacktestPhase, percent: float, message: str) -> None:
        """Emit a progress update unconditionally."""
        self.phase = phase
        logger.debug(f"[{phase}] {percent:.0f}% {message}")
        if self._callback is None:
            return
        try:
            self._callback(phase, percent, message)
        except Exception as e:
            logger.error(f"Progress callback failed: {e}")

    def report_step(self, step: int, total_steps: int, message: str) -> bool:
        """Emit simulation progress when `step` enters a new percent bucket.

        Args:
            step: Zero-based simulation step
            total_steps: Number of simulation steps in the run
            message: Message to send if an update is emitted

        Returns:
            True if an update was emitted
        """
        if total_steps <= 0:
            return False
        percent = round(step / total_steps * 100)
        bucket = percent // self._step_percent
        if bucket == self._last_bucket:
            return False
        self._last_bucket = bucket
        self.report(BacktestPhase.RUNNING_SIMULATION, bucket * self._step_percent, message)
        return True
