"""Main entry point for Turnstile."""

import uvicorn

from turnstile.config import get_settings


def main() -> None:
    """Run the Turnstile server."""
    settings = get_settings()

    uvicorn.run(
        "turnstile.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=False,
        # Counters are per process; more workers would multiply every limit
        workers=1,
    )


if __name__ == "__main__":
    main()
