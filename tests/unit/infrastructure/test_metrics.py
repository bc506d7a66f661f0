"""
Unit tests for the metrics aggregator and memory sampling.
"""

import os
from dataclasses import FrozenInstanceError

import pytest

from portal_executor.infrastructure.monitoring.metrics import MetricsAggregator, sample_process_memory


class TestMetricsAggregator:
    def test_initial_snapshot(self):
        snapshot = MetricsAggregator().snapshot()

        assert snapshot.total_executions == 0
        assert snapshot.average_execution_time == 0.0
        assert snapshot.success_rate == 0.0

    def test_running_average_matches_mean(self):
        metrics = MetricsAggregator()
        durations = [12.0, 7.5, 100.25, 0.5, 33.0]

        for index, duration in enumerate(durations):
            metrics.record_execution(index % 2 == 0, duration, 0)

        snapshot = metrics.snapshot()
        assert snapshot.average_execution_time == pytest.approx(sum(durations) / len(durations))
        assert snapshot.total_executions == 5
        assert snapshot.successful_executions == 3
        assert snapshot.failed_executions == 2

    def test_peak_memory_never_decreases(self):
        metrics = MetricsAggregator()
        peaks = []

        for memory in (500, 2000, 100, 0, 1500):
            metrics.record_execution(True, 1.0, memory)
            peaks.append(metrics.snapshot().peak_memory_usage)

        assert peaks == [500, 2000, 2000, 2000, 2000]

    def test_violation_and_timeout_counters_are_separate(self):
        metrics = MetricsAggregator()
        metrics.record_security_violation()
        metrics.record_timeout()
        metrics.record_timeout()

        snapshot = metrics.snapshot()
        assert snapshot.security_violations == 1
        assert snapshot.timeouts == 2
        assert snapshot.total_executions == 0

    def test_snapshot_is_immutable_and_detached(self):
        metrics = MetricsAggregator()
        before = metrics.snapshot()
        metrics.record_execution(True, 5.0, 10)

        assert before.total_executions == 0
        with pytest.raises(FrozenInstanceError):
            before.total_executions = 3


class TestSampleProcessMemory:
    def test_current_process(self):
        assert sample_process_memory(os.getpid()) > 0

    def test_missing_process(self):
        # pid_max on Linux is at most 2**22
        assert sample_process_memory(2**22 + 1) is None
