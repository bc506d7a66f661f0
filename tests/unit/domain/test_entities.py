"""
Unit tests for Domain Entities.

Tests the Execution entity state machine:
- Ordered INIT -> SPAWNED -> RUNNING transitions
- Single resolution of the terminal state
"""

from pathlib import Path

import pytest

from portal_executor.domain.entities import Execution, InvalidTransitionError
from portal_executor.domain.value_objects import ExecutionState


@pytest.fixture
def execution():
    return Execution(
        execution_id="exec_001",
        target=Path("/tmp/exec_001/user_code.py"),
        work_dir=Path("/tmp/exec_001"),
        timeout_ms=2500,
        memory_limit_mb=64,
    )


class TestExecutionTransitions:
    """Tests for the non-terminal transitions."""

    def test_new_execution_is_init(self, execution):
        assert execution.state == ExecutionState.INIT
        assert execution.pid is None
        assert execution.is_resolved is False

    def test_spawn_then_run(self, execution):
        execution.mark_as_spawned(4321)
        assert execution.state == ExecutionState.SPAWNED
        assert execution.pid == 4321
        assert execution.started_at is not None

        execution.mark_as_running()
        assert execution.state == ExecutionState.RUNNING

    def test_running_before_spawn_is_rejected(self, execution):
        with pytest.raises(InvalidTransitionError):
            execution.mark_as_running()

    def test_spawn_twice_is_rejected(self, execution):
        execution.mark_as_spawned(1)
        with pytest.raises(InvalidTransitionError):
            execution.mark_as_spawned(2)


class TestExecutionResolution:
    """Tests for terminal resolution."""

    def test_first_resolution_wins(self, execution):
        execution.mark_as_spawned(1)
        execution.mark_as_running()

        assert execution.resolve(ExecutionState.OUTPUT_LIMIT_KILLED, detail="stdout") is True
        assert execution.resolve(ExecutionState.TIMED_OUT) is False
        assert execution.resolve(ExecutionState.COMPLETED) is False

        assert execution.state == ExecutionState.OUTPUT_LIMIT_KILLED
        assert execution.termination_detail == "stdout"

    def test_spawn_error_resolves_from_init(self, execution):
        assert execution.resolve(ExecutionState.SPAWN_ERROR, detail="No such file") is True
        assert execution.is_resolved
        assert execution.completed_at is not None

    def test_non_terminal_state_rejected(self, execution):
        with pytest.raises(InvalidTransitionError):
            execution.resolve(ExecutionState.RUNNING)

    def test_duration_after_resolution(self, execution):
        assert execution.duration_ms is None
        execution.mark_as_spawned(1)
        execution.mark_as_running()
        execution.resolve(ExecutionState.COMPLETED)
        assert execution.duration_ms >= 0


class TestExecutionLimits:
    def test_unit_conversions(self, execution):
        assert execution.timeout_seconds == 2.5
        assert execution.memory_limit_bytes == 64 * 1024 * 1024

    def test_memory_peak_never_decreases(self, execution):
        for sample in (100, 300, 200):
            execution.record_memory_sample(sample)
        assert execution.peak_memory == 300
