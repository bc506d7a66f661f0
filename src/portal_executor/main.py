"""
Service entry point.
"""

import uvicorn

from portal_executor.infrastructure.config import get_settings


def entry_point() -> None:
    """Serve the HTTP API with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "portal_executor.interfaces.http.rest:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    entry_point()
