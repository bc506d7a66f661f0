"""
Per-execution working directories.

Every execution gets ``<root>/<execution_id>``; the directory is created on
entry and removed recursively on every exit path.
"""

import asyncio
import shutil
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import structlog

from portal_executor.domain.ports import IWorkspacePort


logger = structlog.get_logger(__name__)


class WorkspaceManager(IWorkspacePort):
    """Creates and removes scoped working directories under a root."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def ensure_root(self) -> bool:
        """
        Create the root directory if needed.

        Returns:
            True if the root exists afterwards
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            logger.warning("Failed to create temp directory", path=str(self.root), error=str(e))
            return False

    @asynccontextmanager
    async def acquire(self, execution_id: str) -> AsyncIterator[Path]:
        work_dir = self.root / execution_id
        # exist_ok=False: a directory is never shared or reused across executions
        work_dir.mkdir(parents=True, exist_ok=False)
        logger.debug("Workspace created", execution_id=execution_id, path=str(work_dir))
        try:
            yield work_dir
        finally:
            await asyncio.to_thread(self._remove, work_dir)

    def write_file(self, work_dir: Path, name: str, content: str) -> Path:
        path = work_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    @staticmethod
    def _remove(work_dir: Path) -> None:
        try:
            shutil.rmtree(work_dir)
            logger.debug("Workspace removed", path=str(work_dir))
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to cleanup temp files", path=str(work_dir), error=str(e))
