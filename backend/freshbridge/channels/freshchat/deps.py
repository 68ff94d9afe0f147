"""Dependencias reutilizables para rutas de Freshchat."""

from fastapi import Request

from .service import FreshchatOrchestrator


def get_orchestrator(request: Request) -> FreshchatOrchestrator:
    """Obtiene el orquestador registrado en `app.state` por la fábrica de la app."""
    return request.app.state.orchestrator
