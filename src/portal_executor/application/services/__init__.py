"""
Application Services
"""

from .lifecycle_service import LifecycleService

__all__ = ["LifecycleService"]
