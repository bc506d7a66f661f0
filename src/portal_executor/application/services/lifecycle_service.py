"""
Lifecycle Service

Drains live interpreter processes on shutdown.
"""

import asyncio
import signal
from typing import Optional

import structlog

from portal_executor.domain.ports import ILifecyclePort
from portal_executor.infrastructure.isolation.registry import ExecutionRegistry
from portal_executor.infrastructure.isolation.subprocess import signal_process_group


logger = structlog.get_logger(__name__)


class LifecycleService(ILifecyclePort):
    """
    Service for process-wide shutdown.

    Handles:
    - Asking every registered process to terminate (SIGTERM)
    - Waiting a fixed grace window
    - Force-killing anything still registered (SIGKILL)
    - Emptying the registry unconditionally, on every call
    """

    def __init__(self, registry: ExecutionRegistry, grace_period: float = 1.0):
        """
        Initialize lifecycle service.

        Args:
            registry: Registry of live processes to drain
            grace_period: Seconds between SIGTERM and SIGKILL
        """
        self._registry = registry
        self._grace_period = grace_period
        self._is_shutting_down = False
        self._shutdown_complete = asyncio.Event()
        self._drain_lock = asyncio.Lock()

    async def shutdown(self, signum: Optional[int] = None) -> None:
        """
        Handle graceful shutdown.

        Every call drains the registry; a call made while another drain is
        in progress waits for it and then drains whatever is left.

        Args:
            signum: Signal that triggered the shutdown (SIGTERM=15, SIGINT=2, ...)
        """
        self._is_shutting_down = True
        if self._drain_lock.locked():
            logger.debug("Shutdown already in progress")

        async with self._drain_lock:
            try:
                await self._drain(signum)
            finally:
                self._registry.clear()
                self._shutdown_complete.set()

        logger.info("Shutdown complete")

    async def _drain(self, signum: Optional[int]) -> None:
        active = self._registry.items()
        logger.info("Starting shutdown", signal=signum, active_count=len(active))

        for execution_id, process in active:
            if signal_process_group(process, signal.SIGTERM):
                logger.debug("Sent SIGTERM", execution_id=execution_id, pid=process.pid)

        if active:
            await asyncio.sleep(self._grace_period)

        # Anything still registered ignored SIGTERM or has not been reaped yet
        for execution_id, process in self._registry.items():
            if signal_process_group(process, signal.SIGKILL):
                logger.warning("Force-killed execution", execution_id=execution_id, pid=process.pid)

    def is_shutting_down(self) -> bool:
        """
        Check if shutdown has been requested.

        Returns:
            True once shutdown was requested; new executions are refused from then on
        """
        return self._is_shutting_down

    async def wait_for_shutdown(self) -> None:
        """Wait for shutdown to complete."""
        await self._shutdown_complete.wait()
