"""Punto de entrada principal para la aplicación FastAPI."""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from freshbridge.api.routes.diagnostics import ENDPOINTS
from freshbridge.api.routes.diagnostics import router as diagnostics_router
from freshbridge.api.routes.health import router as health_router
from freshbridge.channels.freshchat.router import router as freshchat_router
from freshbridge.channels.freshchat.service import FreshchatOrchestrator, build_orchestrator
from freshbridge.core.config import Settings, get_settings
from freshbridge.core.logging import configure_logging, get_logger, resolve_log_level
from freshbridge.core.middleware import RequestLoggingMiddleware
from freshbridge.core.security import masked_credentials

log = get_logger("freshbridge")


def setup_logging(settings: Settings) -> None:
    """Aplica la configuración de logging por ambiente."""
    default_log_level = logging.DEBUG if settings.environment != "production" else logging.INFO
    per_logger_files = None
    if settings.log_file_path:
        log_dir = Path(settings.log_file_path).parent
        per_logger_files = {
            "freshbridge.request": str(log_dir / "request.log"),
            "freshbridge.channels.freshchat": str(log_dir / "freshchat.log"),
        }
    configure_logging(
        level=resolve_log_level(settings.log_level, default=default_log_level),
        log_file=settings.log_file_path,
        per_logger_files=per_logger_files,
    )


def create_app(
    settings: Settings | None = None,
    *,
    orchestrator: FreshchatOrchestrator | None = None,
) -> FastAPI:
    """Crea y configura la instancia de FastAPI.

    Sin `orchestrator` se construyen los clientes reales; si falta configuración
    obligatoria se lanza `ConfigurationError` antes de aceptar tráfico.
    """
    settings = settings or get_settings()
    if orchestrator is None:
        orchestrator = build_orchestrator(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(
            "startup.ready",
            extra={
                "port": settings.port,
                "endpoints": ENDPOINTS,
                "credentials": masked_credentials(settings),
            },
        )
        yield
        await orchestrator.aclose(grace=settings.shutdown_grace_seconds)
        log.info("shutdown.complete")

    app = FastAPI(title="Freshchat Assistant Bridge", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.state.started_at = time.monotonic()

    app.add_middleware(
        RequestLoggingMiddleware,
        level=resolve_log_level(settings.request_log_level),
        skip_prefixes=settings.request_log_skip_prefixes,
    )

    app.include_router(diagnostics_router)
    app.include_router(health_router)
    app.include_router(freshchat_router)

    return app
