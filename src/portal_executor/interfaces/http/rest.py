"""
REST API Interface

FastAPI application serving as the HTTP interface for the executor.
Routing, response envelopes and status mapping only; every decision about
code execution is made by ExecuteCodeCommand.
"""

import json
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal_executor import __version__
from portal_executor.application.commands.execute_code import ExecuteCodeCommand
from portal_executor.domain.errors import ExecutionError, ValidationError
from portal_executor.infrastructure.config import get_settings
from portal_executor.infrastructure.logging import configure_logging, get_logger


logger = get_logger()

SERVICE_NAME = "python-portal-executor"
CORRELATION_HEADER = "x-correlation-id"


class APIResponse(BaseModel):
    """Envelope for every response."""

    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[str] = None
    details: Optional[dict] = None
    timestamp: str
    correlation_id: Optional[str] = None
    version: str = __version__


def _envelope(
    request: Request,
    status_code: int = status.HTTP_200_OK,
    *,
    data: Any = None,
    message: Optional[str] = None,
    error: Optional[str] = None,
    details: Optional[dict] = None,
) -> JSONResponse:
    body = APIResponse(
        success=error is None,
        data=data,
        message=message,
        error=error,
        details=details,
        timestamp=datetime.now(timezone.utc).isoformat(),
        correlation_id=getattr(request.state, "correlation_id", None),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def get_execute_command(request: Request) -> ExecuteCodeCommand:
    """Get the execute command bound to this application."""
    return request.app.state.execute_command


def create_app(command: Optional[ExecuteCodeCommand] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        command: Pre-built command (tests); built from settings on startup if omitted

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        On startup build the command if none was injected.
        On shutdown drain every live interpreter process.
        """
        if getattr(app.state, "execute_command", None) is None:
            settings = get_settings()
            configure_logging(settings.log_level, settings.log_format)
            app.state.execute_command = ExecuteCodeCommand(settings)
            app.state.max_concurrent_executions = settings.max_concurrent_executions

        logger.info("Executor starting", version=__version__)
        try:
            yield
        finally:
            logger.info("Executor shutting down")
            await app.state.execute_command.shutdown()

    app = FastAPI(title="Python Portal Executor", version=__version__, lifespan=lifespan)
    app.state.execute_command = command
    app.state.max_concurrent_executions = get_settings().max_concurrent_executions
    app.state.started_at = time.monotonic()

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or f"exec_{uuid.uuid4().hex}"
        request.state.correlation_id = correlation_id
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            error = f"Endpoint not found: {request.method} {request.url.path}"
        else:
            error = str(exc.detail)
        return _envelope(request, exc.status_code, error=error)

    def uptime() -> float:
        return round(time.monotonic() - app.state.started_at, 3)

    @app.get("/health")
    async def health(request: Request, command: ExecuteCodeCommand = Depends(get_execute_command)):
        return _envelope(
            request,
            data={
                "status": "healthy",
                "service": SERVICE_NAME,
                "version": __version__,
                "uptime": uptime(),
                "active_executions": command.get_active_execution_count(),
                "total_executions": command.get_metrics().total_executions,
            },
            message="Service is healthy",
        )

    @app.get("/health/ready")
    async def ready(request: Request, command: ExecuteCodeCommand = Depends(get_execute_command)):
        if command.get_active_execution_count() < app.state.max_concurrent_executions:
            return _envelope(request, data={"ready": True}, message="Service is ready")
        return _envelope(request, status.HTTP_503_SERVICE_UNAVAILABLE, error="Service overloaded")

    @app.get("/health/live")
    async def live(request: Request):
        return _envelope(request, data={"alive": True}, message="Service is alive")

    @app.post("/api/execute")
    async def execute(request: Request, command: ExecuteCodeCommand = Depends(get_execute_command)):
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _envelope(request, status.HTTP_400_BAD_REQUEST, error="Invalid JSON in request body")

        try:
            result = await command.execute(payload)
        except ValidationError as e:
            return _envelope(request, status.HTTP_400_BAD_REQUEST, error=e.message)
        except ExecutionError as e:
            logger.info(
                "Execution failed",
                correlation_id=request.state.correlation_id,
                **e.flags,
            )
            return _envelope(
                request, status.HTTP_422_UNPROCESSABLE_ENTITY, error=e.message, details=e.to_dict()
            )

        return _envelope(request, data=result.to_dict(), message="Code executed successfully")

    @app.get("/api/metrics")
    async def metrics(request: Request, command: ExecuteCodeCommand = Depends(get_execute_command)):
        snapshot = command.get_metrics()
        return _envelope(
            request,
            data={
                **snapshot.to_dict(),
                "active_executions": command.get_active_execution_count(),
                "success_rate": snapshot.success_rate,
                "uptime": uptime(),
            },
            message="Metrics retrieved successfully",
        )

    @app.get("/api/stats")
    async def stats(request: Request, command: ExecuteCodeCommand = Depends(get_execute_command)):
        snapshot = command.get_metrics()
        return _envelope(
            request,
            data={
                "total_executions": snapshot.total_executions,
                "successful_executions": snapshot.successful_executions,
                "failed_executions": snapshot.failed_executions,
                "average_execution_time": round(snapshot.average_execution_time),
                "peak_memory_usage_mb": round(snapshot.peak_memory_usage / 1024 / 1024),
                "security_violations": snapshot.security_violations,
                "timeouts": snapshot.timeouts,
                "active_executions": command.get_active_execution_count(),
            },
            message="Statistics retrieved successfully",
        )

    return app


app = create_app()
