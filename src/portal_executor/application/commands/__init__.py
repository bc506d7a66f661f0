"""
Application Commands
"""

from .execute_code import ExecuteCodeCommand

__all__ = ["ExecuteCodeCommand"]
