"""
Executor Domain Layer

Execution entity, value objects, error taxonomy and the static screener.
"""

from .entities import Execution, InvalidTransitionError
from .errors import ExecutionError, ExecutorError, ValidationError
from .services import SecurityScreener
from .value_objects import (
    ExecutionEnvironment,
    ExecutionMetrics,
    ExecutionRequest,
    ExecutionResult,
    ExecutionState,
    ProcessOutcome,
    TestCase,
    TestResult,
)

__all__ = [
    "Execution",
    "InvalidTransitionError",
    "ExecutorError",
    "ExecutionError",
    "ValidationError",
    "SecurityScreener",
    "ExecutionEnvironment",
    "ExecutionMetrics",
    "ExecutionRequest",
    "ExecutionResult",
    "ExecutionState",
    "ProcessOutcome",
    "TestCase",
    "TestResult",
]
