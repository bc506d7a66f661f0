"""
Isolation Port Interface

Defines the contract for running a code file in a separate process.
This is an output port - implemented by the infrastructure layer.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from portal_executor.domain.entities import Execution
from portal_executor.domain.value_objects import ProcessOutcome

if TYPE_CHECKING:
    from portal_executor.infrastructure.isolation.registry import ExecutionRegistry


class IIsolationPort(ABC):
    """
    Port interface for supervised process execution.

    Implementations spawn the interpreter, enforce the execution's time,
    memory and output bounds, and resolve the execution exactly once.
    Every live process is held in ``registry`` until its terminal event.
    """

    @property
    @abstractmethod
    def registry(self) -> "ExecutionRegistry":
        """Registry holding the handles of this runner's live processes."""
        pass

    @abstractmethod
    async def run(self, execution: Execution) -> ProcessOutcome:
        """
        Run ``execution.target`` to a terminal state.

        Args:
            execution: Execution entity in the INIT state

        Returns:
            ProcessOutcome describing the terminal state reached. Spawn
            failures are reported as an outcome, not raised.
        """
        pass

    def get_active_count(self) -> int:
        """
        Get the number of processes currently alive.

        Returns:
            Count of registered process handles
        """
        return len(self.registry)
