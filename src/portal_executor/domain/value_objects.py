"""
Execution Value Objects

Immutable value objects for execution-related concepts.
"""

import signal
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ExecutionState(str, Enum):
    """State of a single supervised interpreter process."""

    INIT = "init"
    SPAWNED = "spawned"
    RUNNING = "running"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    OUTPUT_LIMIT_KILLED = "output_limit_killed"
    SPAWN_ERROR = "spawn_error"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {
        ExecutionState.COMPLETED,
        ExecutionState.TIMED_OUT,
        ExecutionState.OUTPUT_LIMIT_KILLED,
        ExecutionState.SPAWN_ERROR,
    }
)


@dataclass(frozen=True)
class ExecutionRequest:
    """
    Request to execute exercise code.

    Built by the request validator; every field is already checked against
    the configured limits when an instance reaches the execution pipeline.

    Attributes:
        code: User code to execute
        exercise_id: Exercise identifier (``[A-Za-z0-9_-]+``)
        run_tests: Whether ``test_code`` should be run and parsed
        test_code: Optional test script run instead of the user code
        timeout: Optional timeout in milliseconds
        memory_limit: Optional memory ceiling in megabytes
    """

    code: str
    exercise_id: str
    run_tests: bool
    test_code: Optional[str] = None
    timeout: Optional[float] = None
    memory_limit: Optional[float] = None

    @property
    def wants_tests(self) -> bool:
        """True when a test script was both requested and supplied."""
        return self.run_tests and bool(self.test_code)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ExecutionEnvironment:
    """Descriptor of the runtime that produced a result."""

    python_version: str
    platform: str
    containerized: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TestCase:
    """A single (possibly synthetic) test case extracted from test output."""

    __test__ = False

    name: str
    passed: bool
    error: Optional[str] = None
    execution_time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TestResult:
    """Structured outcome of a test run."""

    __test__ = False

    passed: bool
    output: str
    errors: Optional[str] = None
    execution_time: float = 0.0
    test_cases: List[TestCase] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "output": self.output,
            "errors": self.errors,
            "execution_time": self.execution_time,
            "test_cases": [case.to_dict() for case in self.test_cases],
        }


@dataclass(frozen=True)
class ExecutionResult:
    """
    Result of a code execution that ran to completion.

    Attributes:
        success: True when the interpreter exited with status zero
        output: Captured stdout, stripped
        errors: Captured stderr, stripped, or None when empty
        execution_time: Wall-clock duration in milliseconds
        memory_used: Approximate peak resident memory in bytes
        environment: Runtime descriptor
        test_result: Parsed test outcome when tests were requested
    """

    success: bool
    output: str
    execution_time: float
    memory_used: int
    environment: ExecutionEnvironment
    errors: Optional[str] = None
    test_result: Optional[TestResult] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "output": self.output,
            "errors": self.errors,
            "execution_time": self.execution_time,
            "memory_used": self.memory_used,
            "test_result": self.test_result.to_dict() if self.test_result else None,
            "environment": self.environment.to_dict(),
        }


@dataclass(frozen=True)
class ProcessOutcome:
    """
    Raw terminal observation of one interpreter process.

    Produced by the isolation layer and classified by the result parser.

    Attributes:
        state: Terminal state reached by the execution
        stdout: Decoded standard output captured so far
        stderr: Decoded standard error captured so far
        exit_code: Process return code (negative when killed by a signal)
        duration_ms: Wall-clock time from spawn to close
        memory_used: Sampled peak RSS in bytes
        timeout_ms: Effective timeout the process ran under
        limit_stream: Stream that breached the output cap, if any
        error: Underlying exception for spawn failures
    """

    state: ExecutionState
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    duration_ms: float = 0.0
    memory_used: int = 0
    timeout_ms: Optional[float] = None
    limit_stream: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def signal(self) -> Optional[signal.Signals]:
        """Signal that terminated the process, if it was killed by one."""
        if self.exit_code is None or self.exit_code >= 0:
            return None
        try:
            return signal.Signals(-self.exit_code)
        except ValueError:
            return None


@dataclass(frozen=True)
class ExecutionMetrics:
    """
    Snapshot of the process-wide execution counters.

    Attributes:
        total_executions: Attempts recorded, successful or not
        successful_executions: Attempts classified as success
        failed_executions: Attempts classified as failure
        average_execution_time: Running mean duration in milliseconds
        peak_memory_usage: Largest sampled memory in bytes
        security_violations: Submissions rejected by the screener
        timeouts: Processes killed for exceeding their timeout
    """

    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    average_execution_time: float = 0.0
    peak_memory_usage: int = 0
    security_violations: int = 0
    timeouts: int = 0

    @property
    def success_rate(self) -> float:
        """Successful executions as a percentage, rounded to two decimals."""
        if self.total_executions == 0:
            return 0.0
        return round(self.successful_executions / self.total_executions * 100, 2)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
