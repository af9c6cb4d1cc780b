"""
Thread-safe aggregation of job completion into a single progress value.

Workers call `report()` once per terminal job; readers call `snapshot()` at any
time or `subscribe()` to be told about every update. The counter only moves
forward and never exceeds the total fixed at construction.
"""
import threading
from typing import Callable, List, Optional, Tuple

from loguru import logger

ProgressObserver = Callable[[float, int], None]


class ProgressAggregator:
    """
    Accumulates completed-unit-equivalents out of a fixed total.

    Args:
        total: Number of units (jobs) in the run. Fixed for the aggregator's lifetime.
    """

    def __init__(self, total: int):
        if total < 0:
            raise ValueError(f"Progress total must be non-negative, got {total}.")
        self._total = int(total)
        self._completed = 0.0
        self._lock = threading.Lock()
        self._notify_lock = threading.Lock()
        self._observers: List[ProgressObserver] = []

    @property
    def total(self) -> int:
        return self._total

    def subscribe(self, observer: ProgressObserver) -> None:
        with self._lock:
            self._observers.append(observer)

    def report(self, fraction: Optional[float] = None) -> Tuple[float, int]:
        """
        Adds an increment and notifies observers.

        Args:
            fraction: Share of the total to add (e.g. `1 / total` for one job).
                      When omitted, exactly one unit is added.

        Returns:
            The snapshot after the update.
        """
        if fraction is not None and fraction < 0:
            raise ValueError(f"Progress increments must be non-negative, got {fraction}.")
        increment = 1.0 if fraction is None else fraction * self._total
        with self._lock:
            self._completed = min(self._completed + increment, float(self._total))
            snapshot = (self._completed, self._total)
        self._notify()
        return snapshot

    def snapshot(self) -> Tuple[float, int]:
        """Returns (completed, total) as one consistent pair."""
        with self._lock:
            return self._completed, self._total

    @property
    def done(self) -> bool:
        with self._lock:
            return self._completed >= self._total

    def _notify(self) -> None:
        # Notifications are serialized and re-read the counter: observers never see it go back.
        with self._notify_lock:
            completed, total = self.snapshot()
            with self._lock:
                observers = list(self._observers)
            for observer in observers:
                try:
                    observer(completed, total)
                except Exception as e:
                    logger.error(f"Progress observer {observer!r} raised: {e}")
