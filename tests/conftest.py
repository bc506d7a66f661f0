"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

from portal_executor.application.commands.execute_code import ExecuteCodeCommand
from portal_executor.infrastructure.config import Settings


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: runs real interpreter processes")
    config.addinivalue_line("markers", "contract: exercises the HTTP interface")


@pytest.fixture
def temp_root(tmp_path) -> Path:
    """Root directory for per-execution working directories."""
    return tmp_path / "python-portal"


@pytest.fixture
def settings(temp_root) -> Settings:
    """Settings tuned for fast, deterministic tests."""
    return Settings(
        temp_dir=temp_root,
        python_path=sys.executable,
        enable_sandbox=False,
        execution_timeout=5000,
        memory_limit=128,
        max_output_length=1000,
        max_code_length=5000,
        memory_poll_interval=0.05,
        shutdown_grace_period=0.5,
        log_level="DEBUG",
        log_format="text",
    )


@pytest.fixture
def command(settings) -> ExecuteCodeCommand:
    """Execute command wired to real subprocesses."""
    return ExecuteCodeCommand(settings)
