"""
Persistence Infrastructure

Scoped per-execution working directories.
"""

from .workspace import WorkspaceManager

__all__ = ["WorkspaceManager"]
