"""Rutas de diagnóstico y descripción del servicio."""

from typing import Any

from fastapi import APIRouter, Request

from freshbridge.core.security import credential_flags

router = APIRouter(tags=["info"])

ENDPOINTS = {
    "webhook": "POST /freshchat-webhook",
    "health": "GET /health",
    "test": "GET /test",
}


@router.get("/test", summary="Diagnóstico de configuración")
def diagnostics(request: Request) -> dict[str, Any]:
    """Reporta qué credenciales están presentes, nunca su valor."""
    state = request.app.state
    return {
        "status": "Server running",
        "config": credential_flags(state.settings),
        "active_threads": state.orchestrator.store.active_count,
    }


@router.get("/", summary="Descriptor del servicio")
def root() -> dict[str, Any]:
    return {
        "message": "Freshchat-OpenAI Integration Server",
        "endpoints": ENDPOINTS,
    }
