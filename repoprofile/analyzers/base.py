"""Base classes for analyzer plugins."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional

from ..config import ProfilingOptions


@dataclass(frozen=True)
class PerformanceMetrics:
    """Counters captured for an analyzer's most recent operation."""

    operation_name: str
    duration_ms: float = 0.0
    cache_hits: int = 0
    cache_misses: int = 0


class MetricsRecorder:
    """Mutable counters for one in-flight operation."""

    def __init__(self, operation_name: str) -> None:
        self.operation_name = operation_name
        self.cache_hits = 0
        self.cache_misses = 0
        self._started = time.perf_counter()

    def hit(self) -> None:
        self.cache_hits += 1

    def miss(self) -> None:
        self.cache_misses += 1

    def snapshot(self) -> PerformanceMetrics:
        return PerformanceMetrics(
            operation_name=self.operation_name,
            duration_ms=(time.perf_counter() - self._started) * 1000.0,
            cache_hits=self.cache_hits,
            cache_misses=self.cache_misses,
        )


class Analyzer(ABC):
    """Contract shared by every analyzer the organization profiler composes."""

    operation_name = "analysis"

    def __init__(self) -> None:
        self._last_metrics = PerformanceMetrics(operation_name=self.operation_name)

    @abstractmethod
    def analyze(self, path: str, options: Optional[ProfilingOptions] = None) -> Any:
        """Analyze the repository at ``path``."""

    @abstractmethod
    def capabilities(self) -> List[str]:
        """Return the capability names this analyzer provides."""

    def is_available(self) -> bool:
        """Return True when the analyzer's external requirements are present."""
        return True

    def performance_metrics(self) -> PerformanceMetrics:
        """Snapshot of the last completed operation.

        When one instance serves concurrent callers, the last writer wins.
        """
        return self._last_metrics

    def _record(self, recorder: MetricsRecorder) -> None:
        self._last_metrics = recorder.snapshot()


__all__ = ["Analyzer", "MetricsRecorder", "PerformanceMetrics"]
