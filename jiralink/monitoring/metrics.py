"""
In-process counters for the bridge.

Each named operation (``webhook.comment_created``, ``webhook.dispatch``...)
keeps its durations, how often it raised, and for deliveries how many rooms
were reached or missed.
"""

import threading
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger


@dataclass
class OperationStats:
    durations: List[float] = field(default_factory=list)
    errors: int = 0
    delivered: int = 0
    failed: int = 0

    def summary(self) -> Dict[str, Any]:
        count = len(self.durations)
        total = sum(self.durations)
        return {
            'count': count,
            'total_time': round(total, 3),
            'avg_time': round(total / count, 3) if count else 0,
            'max_time': round(max(self.durations), 3) if count else 0,
            'errors': self.errors,
            'outcomes': {'ok': self.delivered, 'failed': self.failed},
        }


class PerformanceMetrics:
    """Thread-safe registry of OperationStats keyed by operation name."""

    def __init__(self):
        self._operations: Dict[str, OperationStats] = {}
        self._lock = threading.Lock()
        self.start_time = time.time()

    def _stats(self, operation: str) -> OperationStats:
        # caller holds the lock
        return self._operations.setdefault(operation, OperationStats())

    def record_timing(self, operation: str, duration: float):
        with self._lock:
            self._stats(operation).durations.append(duration)

    def record_error(self, operation: str):
        with self._lock:
            self._stats(operation).errors += 1

    def record_outcome(self, operation: str, ok: bool):
        """Count one room delivery as reached or missed."""
        with self._lock:
            stats = self._stats(operation)
            if ok:
                stats.delivered += 1
            else:
                stats.failed += 1

    @asynccontextmanager
    async def track(self, operation: str):
        """
        Time the wrapped block and count it as an error if it raises.

        Usage:
            async with metrics.track('webhook.comment_created'):
                ...
        """
        started = time.perf_counter()
        try:
            yield
        except Exception:
            self.record_error(operation)
            raise
        finally:
            self.record_timing(operation, time.perf_counter() - started)

    def get_stats(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """
        Summaries of recorded operations.

        Args:
            operation: One operation name, or None for every operation

        Returns:
            The operation's summary, or a dict of summaries keyed by name
        """
        with self._lock:
            if operation:
                return self._operations.get(operation, OperationStats()).summary()
            return {name: self._operations[name].summary() for name in sorted(self._operations)}

    def log_summary(self):
        for operation, stats in self.get_stats().items():
            logger.info(
                f"{operation}: count={stats['count']} avg={stats['avg_time']}s "
                f"errors={stats['errors']} delivered={stats['outcomes']['ok']} "
                f"failed={stats['outcomes']['failed']}"
            )

    def reset(self):
        with self._lock:
            self._operations.clear()
            self.start_time = time.time()


_metrics: Optional[PerformanceMetrics] = None


def get_metrics() -> PerformanceMetrics:
    """Process-wide PerformanceMetrics, created on first use."""
    global _metrics
    if _metrics is None:
        _metrics = PerformanceMetrics()
    return _metrics
