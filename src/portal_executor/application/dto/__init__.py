"""
Application DTOs

Data transfer objects for the HTTP layer.
"""

from .execute_request import ExecuteRequestDTO, RequestLimits, RequestValidator

__all__ = ["ExecuteRequestDTO", "RequestLimits", "RequestValidator"]
