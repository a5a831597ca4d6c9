"""
Bounded in-memory store of finished backtest results.

Owned and injected by its user; there is no process-global instance.
"""

from threading import RLock

from cachetools import LRUCache, TTLCache
from loguru import logger

from backtester.core.constants import MAX_SAVED_RESULTS
from backtester.core.models.backtest import BacktestResult


class ResultStore:
    """LRU store of backtest results with optional time-to-live.

    The least recently saved or read result is evicted once `max_results`
    is exceeded; with `ttl_seconds` set, results also expire.
    """

    def __init__(self, max_results: int = MAX_SAVED_RESULTS, ttl_seconds: float | None = None):
        if max_results <= 0:
            raise ValueError("max_results must be positive")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self._results: LRUCache[str, BacktestResult]
        if ttl_seconds is None:
            self._results = LRUCache(maxsize=max_results)
        else:
            self._results = TTLCache(maxsize=max_results, ttl=ttl_seconds)
        self._lock = RLock()

    def save(self, result: BacktestResult) -> None:
        """Store a result under its id."""
        with self._lock:
            self._results[result.id] = result
        logger.debug(f"Saved backtest result {result.id} ({len(self)} stored)")

    def get(self, result_id: str) -> BacktestResult | None:
        """Return a stored result, or None if unknown or evicted."""
        with self._lock:
            return self._results.get(result_id)

    def delete(self, result_id: str) -> bool:
        """Remove a result; returns True if it was stored."""
        with self._lock:
            return self._results.pop(result_id, None) is not None

    def list(self) -> list[BacktestResult]:
        """All stored results, newest first."""
        with self._lock:
            results = list(self._results.values())
        return sorted(results, key=lambda result: result.completed_at, reverse=True)

    def clear(self) -> None:
        """Remove every stored result."""
        with self._lock:
            self._results.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __contains__(self, result_id: object) -> bool:
        with self._lock:
            return result_id in self._results
