"""
Python Portal Executor

Hexagonal architecture implementation for supervised execution of
untrusted exercise code.
"""

__version__ = "1.0.0"

from .domain.errors import ExecutionError, ExecutorError, ValidationError
from .domain.value_objects import (
    ExecutionEnvironment,
    ExecutionMetrics,
    ExecutionRequest,
    ExecutionResult,
    TestCase,
    TestResult,
)

__all__ = [
    "ExecutorError",
    "ExecutionError",
    "ValidationError",
    "ExecutionEnvironment",
    "ExecutionMetrics",
    "ExecutionRequest",
    "ExecutionResult",
    "TestCase",
    "TestResult",
]
