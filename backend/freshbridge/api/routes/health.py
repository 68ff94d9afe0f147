"""Endpoint de salud para balanceadores y monitoreo."""

import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Estado del servicio")
def healthcheck(request: Request) -> dict[str, Any]:
    """Indica que el proceso está vivo, cuánto lleva arriba y cuántas conversaciones recuerda."""
    state = request.app.state
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - state.started_at, 3),
        "active_conversations": state.orchestrator.store.active_count,
    }
