"""
Bootstrap generator for sandbox mode.

Builds the ``python -c`` snippet that lowers the interpreter's own resource
limits and then runs the target file as ``__main__``. The target path is
passed as ``argv[1]`` rather than interpolated into the snippet, so no
quoting of user-controlled paths is involved.
"""

import math
from typing import List

from portal_executor.infrastructure.logging.logging_config import get_logger


logger = get_logger()


# Enough for stdio plus the handful of files the interpreter opens itself
MAX_OPEN_FILES = 10


def generate_sandbox_bootstrap(memory_limit_bytes: int, cpu_seconds: int) -> str:
    """
    Generate the resource-limit bootstrap.

    The bootstrap:
    1. Caps the address space at ``memory_limit_bytes`` (RLIMIT_AS)
    2. Caps open file descriptors (RLIMIT_NOFILE)
    3. Caps CPU time as a backstop for the wall-clock timeout (RLIMIT_CPU)
    4. Runs ``sys.argv[1]`` with runpy as ``__main__``

    Args:
        memory_limit_bytes: Address-space ceiling in bytes
        cpu_seconds: CPU-time soft limit in seconds

    Returns:
        Python source to pass to ``-c``

    Examples:
        >>> "RLIMIT_AS" in generate_sandbox_bootstrap(64 * 1024 * 1024, 5)
        True
    """
    return f'''import resource
import runpy
import sys

resource.setrlimit(resource.RLIMIT_AS, ({memory_limit_bytes}, {memory_limit_bytes}))
resource.setrlimit(resource.RLIMIT_NOFILE, ({MAX_OPEN_FILES}, {MAX_OPEN_FILES}))
resource.setrlimit(resource.RLIMIT_CPU, ({cpu_seconds}, {cpu_seconds + 1}))

sys.argv = sys.argv[1:]
runpy.run_path(sys.argv[0], run_name="__main__")
'''


def cpu_seconds_for_timeout(timeout_seconds: float) -> int:
    """CPU allowance for a wall-clock timeout, rounded up plus one second of slack."""
    return math.ceil(timeout_seconds) + 1


def build_command(
    python_path: str,
    target: str,
    enable_sandbox: bool,
    memory_limit_bytes: int,
    timeout_seconds: float,
) -> List[str]:
    """
    Build the interpreter command line for one execution.

    Args:
        python_path: Interpreter executable
        target: Path of the code file to run
        enable_sandbox: Wrap the target in the resource-limit bootstrap
        memory_limit_bytes: Address-space ceiling for the bootstrap
        timeout_seconds: Wall-clock timeout, used to derive the CPU limit

    Returns:
        argv list ready for process creation
    """
    if not enable_sandbox:
        return [python_path, target]

    bootstrap = generate_sandbox_bootstrap(
        memory_limit_bytes=memory_limit_bytes,
        cpu_seconds=cpu_seconds_for_timeout(timeout_seconds),
    )
    logger.debug(
        "Sandbox bootstrap applied",
        memory_limit_bytes=memory_limit_bytes,
        max_open_files=MAX_OPEN_FILES,
    )
    return [python_path, "-c", bootstrap, target]
