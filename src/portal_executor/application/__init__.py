"""
Application Layer

Orchestrates domain objects to execute use cases.
Contains commands, services, and DTOs.
"""

from .commands.execute_code import ExecuteCodeCommand
from .dto.execute_request import ExecuteRequestDTO, RequestLimits, RequestValidator
from .services.lifecycle_service import LifecycleService

__all__ = [
    # Commands
    "ExecuteCodeCommand",
    # DTOs
    "ExecuteRequestDTO",
    "RequestLimits",
    "RequestValidator",
    # Services
    "LifecycleService",
]
