"""
Domain Errors

Error taxonomy surfaced by the execution pipeline.
"""

from typing import Any, Dict, Optional


class ExecutorError(Exception):
    """Base class for errors raised by the executor."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Caller-facing representation; never includes the wrapped cause."""
        error_dict: Dict[str, Any] = {"error": type(self).__name__, "message": self.message}
        if self.details:
            error_dict["details"] = self.details
        return error_dict


class ValidationError(ExecutorError):
    """Malformed, oversized or pattern-mismatched request. No process is spawned."""


class ExecutionError(ExecutorError):
    """
    Failure while screening or running code.

    Exactly which flag is set tells the caller what kind of failure
    occurred; a generic failure has none set and may wrap a cause.

    Args:
        message: Human-readable description
        cause: Underlying exception for generic failures
        security_violation: Static screening rejected the code
        timeout: Process exceeded its time allowance and was killed
        memory_limit: Process was killed for exceeding a memory bound
        output_limit: Process exceeded the output cap and was killed
        details: Extra caller-safe metadata
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        *,
        security_violation: bool = False,
        timeout: bool = False,
        memory_limit: bool = False,
        output_limit: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.cause = cause
        self.security_violation = security_violation
        self.timeout = timeout
        self.memory_limit = memory_limit
        self.output_limit = output_limit

    @property
    def flags(self) -> Dict[str, bool]:
        return {
            "security_violation": self.security_violation,
            "timeout": self.timeout,
            "memory_limit": self.memory_limit,
            "output_limit": self.output_limit,
        }

    @property
    def is_generic(self) -> bool:
        return not any(self.flags.values())

    def to_dict(self) -> Dict[str, Any]:
        error_dict = super().to_dict()
        error_dict.update(self.flags)
        return error_dict

    def __repr__(self) -> str:
        set_flags = [name for name, value in self.flags.items() if value]
        return f"ExecutionError(message={self.message!r}, flags={set_flags})"
