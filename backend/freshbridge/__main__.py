"""Arranque del servidor con uvicorn: `python -m freshbridge`."""

import uvicorn

from freshbridge.core.config import ConfigurationError, get_settings
from freshbridge.core.logging import get_logger
from freshbridge.main import create_app, setup_logging

log = get_logger("freshbridge")


def run() -> None:
    settings = get_settings()
    setup_logging(settings)
    try:
        app = create_app(settings)
    except ConfigurationError as exc:
        log.error(
            "startup.missing_configuration",
            extra={"missing": settings.missing_required(), "error": str(exc)},
        )
        raise SystemExit(1) from exc

    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
