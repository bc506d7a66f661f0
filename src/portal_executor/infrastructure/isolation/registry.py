"""
Registry of live interpreter processes.

Each runner owns (or is given) its own registry; there is no module-level
instance, so independent runners never see each other's processes.
"""

import asyncio
from typing import Dict, Iterator, List, Optional, Tuple

import structlog


logger = structlog.get_logger(__name__)


class DuplicateExecutionError(RuntimeError):
    """Raised when an execution id is registered twice."""


class ExecutionRegistry:
    """
    Maps execution ids to their live process handles.

    Mutated only at two points of an execution's life: ``register()`` right
    after spawn and ``release()`` at the terminal transition. Shutdown is
    the only other writer, via ``clear()``.
    """

    def __init__(self):
        self._handles: Dict[str, asyncio.subprocess.Process] = {}

    def register(self, execution_id: str, process: asyncio.subprocess.Process) -> None:
        if execution_id in self._handles:
            raise DuplicateExecutionError(f"Execution {execution_id} is already registered")
        self._handles[execution_id] = process
        logger.debug("Process registered", execution_id=execution_id, pid=process.pid)

    def release(self, execution_id: str) -> Optional[asyncio.subprocess.Process]:
        """
        Remove an execution's handle.

        Returns:
            The removed process, or None if it was already gone (e.g. the
            registry was cleared by shutdown)
        """
        process = self._handles.pop(execution_id, None)
        if process is not None:
            logger.debug("Process released", execution_id=execution_id, pid=process.pid)
        return process

    def get(self, execution_id: str) -> Optional[asyncio.subprocess.Process]:
        return self._handles.get(execution_id)

    def items(self) -> List[Tuple[str, asyncio.subprocess.Process]]:
        """Snapshot of the current entries, safe to iterate while others mutate."""
        return list(self._handles.items())

    def clear(self) -> None:
        self._handles.clear()

    def __contains__(self, execution_id: object) -> bool:
        return execution_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._handles))
