"""
Supervised subprocess runner.

Runs one code file in a separate interpreter process and supervises it
until exactly one terminal event wins: normal close, timeout, output-limit
kill or spawn failure. The process runs in its own session so the whole
process group can be signalled.

Resource limits applied in sandbox mode are a best-effort pre-filter; real
isolation is expected from the surrounding container.
"""

import asyncio
import codecs
import os
import shutil
import signal
import time
from typing import Dict, List, Optional

from portal_executor.domain.entities import Execution
from portal_executor.domain.ports import IIsolationPort
from portal_executor.domain.value_objects import ExecutionState, ProcessOutcome
from portal_executor.infrastructure.config import Settings
from portal_executor.infrastructure.isolation.code_wrapper import build_command
from portal_executor.infrastructure.isolation.registry import ExecutionRegistry
from portal_executor.infrastructure.logging.logging_config import get_logger
from portal_executor.infrastructure.monitoring.metrics import MetricsAggregator, sample_process_memory


logger = get_logger()

_READ_CHUNK_SIZE = 4096


def signal_process_group(process: asyncio.subprocess.Process, sig: int) -> bool:
    """
    Send a signal to a process and everything in its session.

    Args:
        process: Process started with ``start_new_session=True``
        sig: Signal number

    Returns:
        True if a signal was delivered, False if the process was already gone
    """
    if process.returncode is not None:
        return False
    try:
        os.killpg(process.pid, sig)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Group leader already reaped and the pgid reused; fall back to the pid
        try:
            process.send_signal(sig)
        except ProcessLookupError:
            return False
    return True


def build_environment() -> Dict[str, str]:
    """
    Environment for the child interpreter.

    Nothing is inherited from the service: no search paths, no startup
    hooks, no user site-packages, fixed text encoding.
    """
    return {
        "PATH": os.defpath,
        "PYTHONPATH": "",
        "PYTHONSTARTUP": "",
        "PYTHONIOENCODING": "utf-8",
        "PYTHONDONTWRITEBYTECODE": "1",
        "PYTHONNOUSERSITE": "1",
        "LANG": "C.UTF-8",
    }


def _retrieve_exception(future: asyncio.Future) -> None:
    """Mark the outcome of a supervision future as read, also when its waiter was cancelled."""
    if not future.cancelled():
        future.exception()


class _StreamCapture:
    """Incrementally decoded text of one output stream."""

    def __init__(self, name: str):
        self.name = name
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._parts: List[str] = []
        self.length = 0

    def feed(self, chunk: bytes) -> None:
        text = self._decoder.decode(chunk)
        self._parts.append(text)
        self.length += len(text)

    def finish(self) -> None:
        tail = self._decoder.decode(b"", final=True)
        if tail:
            self._parts.append(tail)
            self.length += len(tail)

    @property
    def text(self) -> str:
        return "".join(self._parts)


class SubprocessRunner(IIsolationPort):
    """
    Executes code files in interpreter subprocesses.

    Every live process is held in the registry from spawn until its
    terminal transition. The runner never raises for process-level
    failures; it reports them as a ProcessOutcome for the result parser.
    """

    def __init__(
        self,
        settings: Settings,
        registry: Optional[ExecutionRegistry] = None,
        metrics: Optional[MetricsAggregator] = None,
    ):
        """
        Initialize the subprocess runner.

        Args:
            settings: Executor settings (interpreter, caps, sandbox flag)
            registry: Registry of live processes; a private one is created if omitted
            metrics: Aggregator notified of timeout kills
        """
        self._settings = settings
        self._registry = registry if registry is not None else ExecutionRegistry()
        self._metrics = metrics

    @property
    def registry(self) -> ExecutionRegistry:
        return self._registry

    async def run(self, execution: Execution) -> ProcessOutcome:
        """
        Spawn the interpreter for ``execution`` and supervise it to completion.

        Args:
            execution: Execution entity in the INIT state

        Returns:
            ProcessOutcome for whichever terminal event won
        """
        log = get_logger(execution_id=execution.execution_id)
        cmd = build_command(
            python_path=self._resolve_interpreter(),
            target=str(execution.target),
            enable_sandbox=self._settings.enable_sandbox,
            memory_limit_bytes=execution.memory_limit_bytes,
            timeout_seconds=execution.timeout_seconds,
        )

        start_time = time.perf_counter()
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(execution.work_dir),
                env=build_environment(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            execution.resolve(ExecutionState.SPAWN_ERROR, detail=str(e))
            log.error("Failed to spawn interpreter", python_path=self._settings.python_path, error=str(e))
            return ProcessOutcome(
                state=ExecutionState.SPAWN_ERROR,
                duration_ms=(time.perf_counter() - start_time) * 1000,
                error=e,
            )

        execution.mark_as_spawned(process.pid)
        self.registry.register(execution.execution_id, process)
        execution.mark_as_running()
        log.info(
            "Interpreter spawned",
            pid=process.pid,
            timeout_ms=execution.timeout_ms,
            memory_limit_mb=execution.memory_limit_mb,
            sandbox=self._settings.enable_sandbox,
        )

        stdout = _StreamCapture("stdout")
        stderr = _StreamCapture("stderr")
        sampler = asyncio.create_task(self._sample_memory(process, execution))

        supervised = asyncio.gather(
            process.wait(),
            self._pump(process.stdout, stdout, execution, process),
            self._pump(process.stderr, stderr, execution, process),
        )
        supervised.add_done_callback(_retrieve_exception)

        try:
            try:
                await asyncio.wait_for(supervised, timeout=execution.timeout_seconds)
            except asyncio.TimeoutError:
                if execution.resolve(ExecutionState.TIMED_OUT):
                    log.warning("Execution timed out", timeout_ms=execution.timeout_ms)
                    if self._metrics is not None:
                        self._metrics.record_timeout()
                signal_process_group(process, signal.SIGKILL)
                await process.wait()

            # No-op when the timeout or an output-limit kill already won
            execution.resolve(ExecutionState.COMPLETED)
        finally:
            sampler.cancel()
            try:
                await sampler
            except asyncio.CancelledError:
                pass
            if process.returncode is None:
                signal_process_group(process, signal.SIGKILL)
                await process.wait()
            self.registry.release(execution.execution_id)

        duration_ms = (time.perf_counter() - start_time) * 1000
        log.info(
            "Execution finished",
            state=execution.state.value,
            exit_code=process.returncode,
            duration_ms=round(duration_ms, 2),
            peak_memory=execution.peak_memory,
        )

        return ProcessOutcome(
            state=execution.state,
            stdout=stdout.text,
            stderr=stderr.text,
            exit_code=process.returncode,
            duration_ms=duration_ms,
            memory_used=execution.peak_memory,
            timeout_ms=execution.timeout_ms,
            limit_stream=(
                execution.termination_detail
                if execution.state is ExecutionState.OUTPUT_LIMIT_KILLED
                else None
            ),
        )

    async def _pump(
        self,
        stream: asyncio.StreamReader,
        capture: _StreamCapture,
        execution: Execution,
        process: asyncio.subprocess.Process,
    ) -> None:
        """Read a stream until EOF, killing the process once it exceeds the output cap."""
        while True:
            chunk = await stream.read(_READ_CHUNK_SIZE)
            if chunk:
                capture.feed(chunk)
            else:
                # Flushing the decoder can still add a replacement character
                capture.finish()

            if capture.length > self._settings.max_output_length:
                if execution.resolve(ExecutionState.OUTPUT_LIMIT_KILLED, detail=capture.name):
                    logger.warning(
                        "Output limit exceeded",
                        execution_id=execution.execution_id,
                        stream=capture.name,
                        max_output_length=self._settings.max_output_length,
                    )
                    signal_process_group(process, signal.SIGKILL)
                return
            if not chunk:
                return

    async def _sample_memory(self, process: asyncio.subprocess.Process, execution: Execution) -> None:
        """Poll RSS until the process exits; the recorded peak is approximate."""
        while process.returncode is None:
            rss = await asyncio.to_thread(sample_process_memory, process.pid)
            if rss is None:
                return
            execution.record_memory_sample(rss)
            await asyncio.sleep(self._settings.memory_poll_interval)

    def _resolve_interpreter(self) -> str:
        # The child gets a bare PATH, so resolve against the service's own PATH
        return shutil.which(self._settings.python_path) or self._settings.python_path
