"""
Lifecycle Port Interface

Defines the contract for draining live processes on shutdown.
"""

from abc import ABC, abstractmethod
from typing import Optional


class ILifecyclePort(ABC):
    """Port interface for process-wide shutdown."""

    @abstractmethod
    async def shutdown(self, signum: Optional[int] = None) -> None:
        """
        Terminate every registered process and empty the registry.

        Args:
            signum: Signal that triggered the shutdown, if any
        """
        pass

    @abstractmethod
    def is_shutting_down(self) -> bool:
        pass
