"""
Integration tests for draining live processes on shutdown.
"""

import asyncio
import gc
import signal
import uuid

import pytest

from portal_executor.application.commands.execute_code import ExecuteCodeCommand
from portal_executor.application.services.lifecycle_service import LifecycleService
from portal_executor.domain.entities import Execution
from portal_executor.domain.errors import ExecutionError
from portal_executor.domain.value_objects import ExecutionState
from portal_executor.infrastructure.isolation.subprocess import SubprocessRunner
from tests.utils import valid_request, wait_until


pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def test_shutdown_terminates_running_execution(command):
    task = asyncio.create_task(
        command.execute(valid_request(code="while True:\n    pass", timeout=30000))
    )
    await wait_until(lambda: command.get_active_execution_count() == 1)

    await command.shutdown()

    assert command.get_active_execution_count() == 0
    with pytest.raises(ExecutionError) as exc_info:
        await asyncio.wait_for(task, timeout=5)

    assert exc_info.value.details == {"signal": "SIGTERM"}
    # Killed from outside, so not counted as a runner-detected timeout
    assert command.get_metrics().timeouts == 0


async def test_shutdown_force_kills_processes_ignoring_sigterm(settings, tmp_path):
    work_dir = tmp_path / "stubborn"
    work_dir.mkdir()
    ready = work_dir / "ready"
    target = work_dir / "user_code.py"
    target.write_text(
        "import pathlib, signal, time\n"
        "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
        f"pathlib.Path({str(ready)!r}).touch()\n"
        "time.sleep(60)\n",
        encoding="utf-8",
    )

    runner = SubprocessRunner(settings)
    lifecycle = LifecycleService(runner.registry, grace_period=0.2)
    execution = Execution(
        execution_id=str(uuid.uuid4()),
        target=target,
        work_dir=work_dir,
        timeout_ms=30000,
        memory_limit_mb=128,
    )

    task = asyncio.create_task(runner.run(execution))
    await wait_until(ready.exists)
    assert runner.get_active_count() == 1

    await lifecycle.shutdown(signal.SIGTERM)
    outcome = await asyncio.wait_for(task, timeout=5)

    assert outcome.state == ExecutionState.COMPLETED
    assert outcome.signal == signal.SIGKILL
    assert runner.get_active_count() == 0


async def test_no_execution_survives_a_second_shutdown(command):
    await command.shutdown()

    with pytest.raises(ExecutionError) as exc_info:
        await command.execute(valid_request(code="while True:\n    pass", timeout=30000))
    await command.shutdown()

    assert exc_info.value.message == "Executor is shutting down"
    assert command.get_active_execution_count() == 0


async def test_shutdown_drains_injected_runner(settings):
    runner = SubprocessRunner(settings)
    command = ExecuteCodeCommand(settings, isolation_port=runner)

    task = asyncio.create_task(
        command.execute(valid_request(code="while True:\n    pass", timeout=30000))
    )
    await wait_until(lambda: runner.get_active_count() == 1)
    assert command.get_active_execution_count() == 1

    await command.shutdown()

    assert runner.get_active_count() == 0
    with pytest.raises(ExecutionError) as exc_info:
        await asyncio.wait_for(task, timeout=5)
    assert exc_info.value.details == {"signal": "SIGTERM"}


async def test_cancelled_run_kills_process_quietly(settings, tmp_path):
    work_dir = tmp_path / "cancelled"
    work_dir.mkdir()
    target = work_dir / "user_code.py"
    target.write_text("while True:\n    pass\n", encoding="utf-8")

    runner = SubprocessRunner(settings)
    execution = Execution(
        execution_id=str(uuid.uuid4()),
        target=target,
        work_dir=work_dir,
        timeout_ms=30000,
        memory_limit_mb=128,
    )

    loop = asyncio.get_running_loop()
    reported = []
    loop.set_exception_handler(lambda _loop, context: reported.append(context))
    try:
        task = asyncio.create_task(runner.run(execution))
        await wait_until(lambda: runner.get_active_count() == 1)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0.05)
        gc.collect()
    finally:
        loop.set_exception_handler(None)

    assert runner.get_active_count() == 0
    assert [context.get("message") for context in reported] == []
