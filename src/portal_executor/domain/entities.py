"""
Execution Entities

Core domain entity tracking one supervised interpreter process.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from portal_executor.domain.value_objects import ExecutionState


class InvalidTransitionError(RuntimeError):
    """Raised when a non-terminal transition is attempted out of order."""


@dataclass
class Execution:
    """
    Represents a single run of a code file inside its own process.

    The state machine is ``INIT -> SPAWNED -> RUNNING -> terminal``. Several
    observers (stream readers, the timeout, the close waiter) race to end an
    execution; ``resolve()`` lets exactly one of them win.
    """

    execution_id: str
    target: Path
    work_dir: Path
    timeout_ms: float
    memory_limit_mb: float
    state: ExecutionState = ExecutionState.INIT
    pid: Optional[int] = None
    peak_memory: int = 0
    termination_detail: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def mark_as_spawned(self, pid: int) -> None:
        """Record the pid of the freshly spawned process."""
        self._require(ExecutionState.INIT)
        self.state = ExecutionState.SPAWNED
        self.pid = pid
        self.started_at = datetime.utcnow()

    def mark_as_running(self) -> None:
        self._require(ExecutionState.SPAWNED)
        self.state = ExecutionState.RUNNING

    def resolve(self, state: ExecutionState, detail: Optional[str] = None) -> bool:
        """
        Move to a terminal state unless one was already reached.

        Args:
            state: Terminal state to enter
            detail: Optional note (e.g. which stream breached the cap)

        Returns:
            True if this call performed the transition, False if the
            execution was already resolved
        """
        if not state.is_terminal:
            raise InvalidTransitionError(f"{state.value} is not a terminal state")
        if self.is_resolved:
            return False
        self.state = state
        self.termination_detail = detail
        self.completed_at = datetime.utcnow()
        return True

    def record_memory_sample(self, rss_bytes: int) -> None:
        self.peak_memory = max(self.peak_memory, rss_bytes)

    @property
    def is_resolved(self) -> bool:
        return self.state.is_terminal

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def memory_limit_bytes(self) -> int:
        return int(self.memory_limit_mb * 1024 * 1024)

    @property
    def duration_ms(self) -> Optional[int]:
        """Calculate execution duration in milliseconds."""
        if self.started_at and self.completed_at:
            delta = self.completed_at - self.started_at
            return int(delta.total_seconds() * 1000)
        return None

    def _require(self, expected: ExecutionState) -> None:
        if self.state is not expected:
            raise InvalidTransitionError(
                f"Execution {self.execution_id} is {self.state.value}, expected {expected.value}"
            )
