"""
Workspace Port Interface

Defines the contract for per-execution working directories.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import AsyncContextManager


class IWorkspacePort(ABC):
    """
    Port interface for scoped working directories.

    Each execution gets a fresh directory that is removed on every exit
    path and never reused.
    """

    @abstractmethod
    def acquire(self, execution_id: str) -> AsyncContextManager[Path]:
        """
        Create a directory for one execution.

        Args:
            execution_id: Unique execution identifier

        Returns:
            Async context manager yielding the directory path and
            removing it recursively on exit
        """
        pass

    @abstractmethod
    def write_file(self, work_dir: Path, name: str, content: str) -> Path:
        """
        Write a source file into a working directory.

        Returns:
            Path of the written file
        """
        pass
