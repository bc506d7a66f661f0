"""
Isolation Infrastructure

Subprocess supervision, the live-process registry and result parsing.
"""

from .registry import DuplicateExecutionError, ExecutionRegistry
from .result_parser import ResultInterpreter, parse_test_output
from .subprocess import SubprocessRunner, signal_process_group

__all__ = [
    "DuplicateExecutionError",
    "ExecutionRegistry",
    "ResultInterpreter",
    "SubprocessRunner",
    "parse_test_output",
    "signal_process_group",
]
