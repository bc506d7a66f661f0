"""
Execute Code Command

Main execution orchestrator use case.
Validates and screens a request, runs it in a supervised subprocess,
interprets the outcome and records metrics.
"""

import time
import uuid
from typing import Any, Mapping, Optional, Union

import structlog

from portal_executor.application.dto.execute_request import RequestLimits, RequestValidator
from portal_executor.application.services.lifecycle_service import LifecycleService
from portal_executor.domain.entities import Execution
from portal_executor.domain.errors import ExecutionError, ExecutorError
from portal_executor.domain.ports import IIsolationPort, IWorkspacePort
from portal_executor.domain.services import SecurityScreener
from portal_executor.domain.value_objects import ExecutionMetrics, ExecutionRequest, ExecutionResult
from portal_executor.infrastructure.config import Settings, get_settings
from portal_executor.infrastructure.isolation.registry import ExecutionRegistry
from portal_executor.infrastructure.isolation.result_parser import ResultInterpreter
from portal_executor.infrastructure.isolation.subprocess import SubprocessRunner
from portal_executor.infrastructure.monitoring.metrics import MetricsAggregator
from portal_executor.infrastructure.persistence.workspace import WorkspaceManager


logger = structlog.get_logger(__name__)


USER_CODE_FILE = "user_code.py"
TEST_CODE_FILE = "test_code.py"


class ExecuteCodeCommand:
    """
    Command handler for code execution use case.

    Orchestrates the execution flow:
    1. Validate the request against configured limits
    2. Screen the code statically (no process exists yet)
    3. Write the code into a fresh working directory
    4. Run it via the isolation port
    5. Interpret the outcome
    6. Record metrics, on success and on every failure path

    Untrusted code is never re-executed: there are no retries.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        isolation_port: Optional[IIsolationPort] = None,
        workspace_port: Optional[IWorkspacePort] = None,
        registry: Optional[ExecutionRegistry] = None,
        metrics: Optional[MetricsAggregator] = None,
    ):
        """
        Initialize the execute code command.

        Args:
            settings: Executor settings; process-wide settings if omitted
            isolation_port: Process runner; a SubprocessRunner if omitted
            workspace_port: Working-directory manager; rooted at ``settings.temp_dir`` if omitted
            registry: Registry of live processes for the default runner; an
                injected isolation port always brings its own
            metrics: Metrics aggregator
        """
        self._settings = settings or get_settings()
        self.metrics = metrics or MetricsAggregator()

        if isolation_port is None:
            isolation_port = SubprocessRunner(
                self._settings,
                registry=registry if registry is not None else ExecutionRegistry(),
                metrics=self.metrics,
            )
        elif registry is not None and registry is not isolation_port.registry:
            raise ValueError("registry must be the registry of the injected isolation port")
        self._isolation_port = isolation_port
        self.registry = isolation_port.registry

        self._validator = RequestValidator(RequestLimits.from_settings(self._settings))
        self._screener = SecurityScreener(
            allowed_modules=self._settings.allowed_modules,
            blocked_patterns=self._settings.blocked_patterns,
            on_violation=self.metrics.record_security_violation,
        )
        self._interpreter = ResultInterpreter(
            containerized=self._settings.enable_sandbox,
            max_output_length=self._settings.max_output_length,
        )
        self._lifecycle = LifecycleService(self.registry, self._settings.shutdown_grace_period)

        if workspace_port is None:
            workspace = WorkspaceManager(self._settings.temp_dir)
            workspace.ensure_root()
            workspace_port = workspace
        self._workspace_port = workspace_port

    def get_metrics(self) -> ExecutionMetrics:
        """Get a snapshot of the execution metrics."""
        return self.metrics.snapshot()

    def get_active_execution_count(self) -> int:
        """Get the number of live interpreter processes."""
        return self._isolation_port.get_active_count()

    async def execute(self, request: Union[Mapping[str, Any], ExecutionRequest]) -> ExecutionResult:
        """
        Execute code from request.

        This is the main entry point for code execution.

        Args:
            request: Raw request mapping or domain ExecutionRequest

        Returns:
            ExecutionResult of a process that ran to completion (which may
            still be unsuccessful, e.g. a non-zero exit)

        Raises:
            ValidationError: Malformed or out-of-bounds request
            ExecutionError: Security rejection, timeout, resource/output
                limit kill, shutdown in progress, or generic failure
        """
        start_time = time.perf_counter()
        execution_id = str(uuid.uuid4())

        try:
            self._refuse_if_shutting_down()
            validated = self._validator.validate(request)
            self._screener.screen(validated.code)

            logger.info(
                "Starting execution",
                execution_id=execution_id,
                exercise_id=validated.exercise_id,
                run_tests=validated.run_tests,
                code_length=len(validated.code),
            )
            result = await self._execute_code(validated, execution_id)

        except ExecutorError as e:
            self.metrics.record_execution(False, self._elapsed_ms(start_time), 0)
            logger.info("Execution rejected or failed", execution_id=execution_id, error=e.message)
            raise
        except Exception as e:
            self.metrics.record_execution(False, self._elapsed_ms(start_time), 0)
            logger.error("Execution failed", execution_id=execution_id, error=str(e), exc_info=True)
            raise ExecutionError("Code execution failed", e) from e

        self.metrics.record_execution(result.success, self._elapsed_ms(start_time), result.memory_used)
        logger.info(
            "Execution completed",
            execution_id=execution_id,
            success=result.success,
            execution_time_ms=round(result.execution_time, 2),
        )
        return result

    async def shutdown(self) -> None:
        """Terminate every live process and empty the registry."""
        await self._lifecycle.shutdown()

    async def _execute_code(self, request: ExecutionRequest, execution_id: str) -> ExecutionResult:
        timeout_ms = request.timeout or self._settings.execution_timeout
        memory_limit_mb = request.memory_limit or self._settings.memory_limit

        async with self._workspace_port.acquire(execution_id) as work_dir:
            target = self._workspace_port.write_file(work_dir, USER_CODE_FILE, request.code)
            if request.wants_tests:
                target = self._workspace_port.write_file(work_dir, TEST_CODE_FILE, request.test_code)

            execution = Execution(
                execution_id=execution_id,
                target=target,
                work_dir=work_dir,
                timeout_ms=timeout_ms,
                memory_limit_mb=memory_limit_mb,
            )
            # Shutdown may have started while the workspace was being prepared
            self._refuse_if_shutting_down()
            outcome = await self._isolation_port.run(execution)

        return self._interpreter.interpret(outcome, request)

    def _refuse_if_shutting_down(self) -> None:
        if self._lifecycle.is_shutting_down():
            raise ExecutionError("Executor is shutting down")

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000
