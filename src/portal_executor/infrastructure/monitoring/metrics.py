"""
Execution metrics for the portal executor.

Keeps process-wide rolling counters updated after every execution attempt,
and samples the resident memory of child interpreter processes via psutil.
"""

from dataclasses import replace
from typing import Optional

import psutil

from portal_executor.domain.value_objects import ExecutionMetrics
from portal_executor.infrastructure.logging.logging_config import get_logger


logger = get_logger()


class MetricsAggregator:
    """
    Rolling counters and averages for all executions served by one command.

    The average is recomputed incrementally from the previous value; no
    history of durations is retained. All updates happen on the event loop
    thread, so no locking is needed.

    Examples:
        >>> metrics = MetricsAggregator()
        >>> metrics.record_execution(True, 10.0, 0)
        >>> metrics.record_execution(False, 30.0, 0)
        >>> metrics.snapshot().average_execution_time
        20.0
    """

    def __init__(self):
        self._metrics = ExecutionMetrics()

    def record_execution(self, success: bool, duration_ms: float, memory_used: int) -> None:
        """
        Record one completed attempt.

        Args:
            success: Classification of the attempt
            duration_ms: Wall-clock duration of the attempt
            memory_used: Sampled peak memory in bytes (0 when unknown)
        """
        current = self._metrics
        total = current.total_executions + 1
        average = (current.average_execution_time * (total - 1) + duration_ms) / total

        self._metrics = replace(
            current,
            total_executions=total,
            successful_executions=current.successful_executions + (1 if success else 0),
            failed_executions=current.failed_executions + (0 if success else 1),
            average_execution_time=average,
            peak_memory_usage=max(current.peak_memory_usage, memory_used),
        )

        logger.debug(
            "Recorded execution",
            success=success,
            duration_ms=f"{duration_ms:.2f}",
            total_executions=total,
        )

    def record_security_violation(self) -> None:
        self._metrics = replace(
            self._metrics, security_violations=self._metrics.security_violations + 1
        )

    def record_timeout(self) -> None:
        self._metrics = replace(self._metrics, timeouts=self._metrics.timeouts + 1)

    def snapshot(self) -> ExecutionMetrics:
        """Return the current counters. The snapshot is immutable."""
        return self._metrics


def sample_process_memory(pid: int) -> Optional[int]:
    """
    Get the resident memory of a process and all of its descendants.

    The value is approximate: it is a point-in-time RSS sum and misses
    short-lived spikes between samples.

    Args:
        pid: Process identifier

    Returns:
        RSS in bytes, or None if the process is gone or inaccessible
    """
    try:
        process = psutil.Process(pid)
        total = process.memory_info().rss
        for child in process.children(recursive=True):
            try:
                total += child.memory_info().rss
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return total
    except (psutil.NoSuchProcess, psutil.ZombieProcess, psutil.AccessDenied):
        return None
