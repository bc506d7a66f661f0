"""
Test utilities for portal executor tests.

Provides request builders and polling helpers shared across test modules.
"""

import asyncio
from typing import Any, Callable, Dict


def valid_request(**overrides: Any) -> Dict[str, Any]:
    """
    Build a wire-format execution request.

    Args:
        **overrides: Fields to replace or add (wire names, e.g. ``exerciseId``)

    Returns:
        Request mapping
    """
    request: Dict[str, Any] = {
        "code": 'print("Hello, World!")',
        "exerciseId": "test-exercise",
        "runTests": False,
    }
    request.update(overrides)
    return request


async def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> None:
    """
    Poll ``predicate`` until it returns True.

    Raises:
        AssertionError: If the predicate is still false after ``timeout`` seconds
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met within timeout")
        await asyncio.sleep(interval)
