"""
Environment configuration for the portal executor.

Loads configuration from environment variables using pydantic-settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ALLOWED_MODULES = [
    "math", "random", "string", "datetime", "json", "csv", "re",
    "itertools", "functools", "collections", "operator", "statistics",
    "decimal", "fractions", "uuid", "hashlib", "base64", "textwrap",
]

DEFAULT_BLOCKED_PATTERNS = [
    "import os", "import sys", "import subprocess", "import socket",
    "import urllib", "import requests", "import http", "import ftplib",
    "import smtplib", "import telnetlib", "import pickle", "import shelve",
    "open(", "file(", "__import__", "eval(", "exec(", "compile(",
    "globals()", "locals()", "dir()", "vars()", "input()", "raw_input(",
    "quit()", "exit()", "reload(", "delattr(", "setattr(", "getattr(",
    "__builtins__", "__file__", "__name__",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Execution limits
    execution_timeout: float = Field(default=10000, gt=0, description="Default timeout in milliseconds")
    memory_limit: float = Field(default=128, gt=0, description="Default memory ceiling in MB")
    max_output_length: int = Field(default=10000, ge=1, description="Per-stream output cap in characters")
    max_code_length: int = Field(default=50000, ge=1, description="Maximum code/test code length")

    # Accepted ranges for per-request overrides
    min_timeout_ms: float = Field(default=1000, gt=0)
    max_timeout_ms: float = Field(default=30000, gt=0)
    min_memory_limit_mb: float = Field(default=16, gt=0)
    max_memory_limit_mb: float = Field(default=512, gt=0)

    # Process
    enable_sandbox: bool = Field(default=True, description="Apply resource limits via bootstrap")
    python_path: str = Field(default="python3", description="Interpreter executable")
    temp_dir: Path = Field(default=Path("/tmp/python-portal"), description="Root of per-execution directories")
    memory_poll_interval: float = Field(default=0.1, gt=0, description="Memory sampling interval in seconds")
    shutdown_grace_period: float = Field(default=1.0, ge=0, description="Delay before SIGKILL on shutdown")

    # Screening
    allowed_modules: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_MODULES))
    blocked_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_BLOCKED_PATTERNS))

    # Service
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3002, ge=1, le=65535)
    max_concurrent_executions: int = Field(default=10, ge=1)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["text", "json"] = Field(
        default="json", description="Logging format - text for human-readable, json for structured logs"
    )

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.min_timeout_ms > self.max_timeout_ms:
            raise ValueError("min_timeout_ms cannot exceed max_timeout_ms")
        if self.min_memory_limit_mb > self.max_memory_limit_mb:
            raise ValueError("min_memory_limit_mb cannot exceed max_memory_limit_mb")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
