"""
Result interpretation for finished interpreter processes.

Turns a ProcessOutcome into an ExecutionResult or a classified
ExecutionError, and extracts structured test results from captured text.

Test parsing is line-oriented text classification, not a test protocol.
Outputs with several assertions, or that print a success marker and then
fail, can be misclassified. That imprecision is known and kept as is.
"""

import platform
import re
import signal
import sys
from typing import Optional

from portal_executor.domain.errors import ExecutionError
from portal_executor.domain.value_objects import (
    ExecutionEnvironment,
    ExecutionRequest,
    ExecutionResult,
    ExecutionState,
    ProcessOutcome,
    TestCase,
    TestResult,
)
from portal_executor.infrastructure.logging.logging_config import get_logger


logger = get_logger()


SUCCESS_MARKERS = ("All tests passed", "OK")
ASSERTION_MARKER = "AssertionError"
ASSERTION_PATTERN = re.compile(r"AssertionError: (.+)")


def parse_test_output(output: str, errors: Optional[str] = None) -> TestResult:
    """
    Classify captured test output.

    Three tiers, first match wins:
    1. a success marker on stdout -> one passing "Test Suite" case
    2. an AssertionError on stderr -> one failing case named after the
       assertion message (or "Unknown Test" when there is none)
    3. otherwise one "Code Execution" case that passes iff stderr is empty

    Args:
        output: Captured stdout
        errors: Captured stderr, or None

    Returns:
        TestResult; ``passed`` is only ever True for tier 1

    Examples:
        >>> parse_test_output("All tests passed").passed
        True
        >>> parse_test_output("", "AssertionError: add(2, 3) != 5").test_cases[0].name
        'add(2, 3) != 5'
    """
    if any(marker in output for marker in SUCCESS_MARKERS):
        return TestResult(
            passed=True,
            output=output,
            errors=errors,
            test_cases=[TestCase(name="Test Suite", passed=True)],
        )

    if errors and ASSERTION_MARKER in errors:
        match = ASSERTION_PATTERN.search(errors)
        message = match.group(1) if match else None
        return TestResult(
            passed=False,
            output=output,
            errors=errors,
            test_cases=[
                TestCase(
                    name=message or "Unknown Test",
                    passed=False,
                    error=message or "Test failed",
                )
            ],
        )

    return TestResult(
        passed=False,
        output=output,
        errors=errors,
        test_cases=[TestCase(name="Code Execution", passed=not errors, error=errors or None)],
    )


class ResultInterpreter:
    """
    Classifies process outcomes.

    Exit status zero with no kill is success; a non-zero status is a
    failed ExecutionResult; kills, timeouts and spawn failures become
    ExecutionError with the matching flag.
    """

    def __init__(self, containerized: bool, max_output_length: Optional[int] = None):
        """
        Args:
            containerized: Whether results were produced in sandbox mode
            max_output_length: Output cap, reported in output-limit errors
        """
        self.environment = ExecutionEnvironment(
            python_version=platform.python_version(),
            platform=sys.platform,
            containerized=containerized,
        )
        self._max_output_length = max_output_length

    def interpret(self, outcome: ProcessOutcome, request: ExecutionRequest) -> ExecutionResult:
        """
        Build the caller-facing result for one outcome.

        Args:
            outcome: Terminal observation from the isolation layer
            request: Validated request the outcome belongs to

        Returns:
            ExecutionResult for processes that closed on their own

        Raises:
            ExecutionError: for timeout, output-limit, spawn failure or
                externally killed processes
        """
        self._raise_for_termination(outcome)

        output = outcome.stdout.strip()
        errors = outcome.stderr.strip() or None

        test_result = None
        if request.wants_tests:
            test_result = parse_test_output(output, errors)
            logger.debug(
                "Parsed test output",
                passed=test_result.passed,
                test_cases=len(test_result.test_cases),
            )

        return ExecutionResult(
            success=outcome.exit_code == 0,
            output=output,
            errors=errors,
            execution_time=outcome.duration_ms,
            memory_used=outcome.memory_used,
            environment=self.environment,
            test_result=test_result,
        )

    def _raise_for_termination(self, outcome: ProcessOutcome) -> None:
        if outcome.state is ExecutionState.SPAWN_ERROR:
            raise ExecutionError("Process execution failed", outcome.error)

        if outcome.state is ExecutionState.TIMED_OUT:
            details = {"timeout_ms": outcome.timeout_ms} if outcome.timeout_ms is not None else None
            raise ExecutionError("Execution timed out", timeout=True, details=details)

        if outcome.state is ExecutionState.OUTPUT_LIMIT_KILLED:
            message = (
                "Error output length exceeded limit"
                if outcome.limit_stream == "stderr"
                else "Output length exceeded limit"
            )
            details = {"stream": outcome.limit_stream}
            if self._max_output_length is not None:
                details["max_output_length"] = self._max_output_length
            raise ExecutionError(message, output_limit=True, details=details)

        # Closed on its own but by a signal nobody in this process sent.
        # SIGKILL from outside is almost always a memory enforcer (cgroup/OOM killer).
        killed_by = outcome.signal
        if killed_by is not None:
            if killed_by == signal.SIGKILL:
                raise ExecutionError(
                    "Execution was killed, memory limit likely exceeded",
                    memory_limit=True,
                    details={"signal": killed_by.name},
                )
            raise ExecutionError(
                "Execution timed out or was killed",
                timeout=True,
                details={"signal": killed_by.name},
            )
