"""Endpoint del webhook de Freshchat."""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from freshbridge.core.logging import get_logger

from . import schemas
from .deps import get_orchestrator
from .service import FreshchatOrchestrator

logger = get_logger("freshbridge.channels.freshchat")

router = APIRouter(tags=["freshchat"])


@router.post(
    "/freshchat-webhook",
    response_model=schemas.WebhookAck,
    responses={400: {"model": schemas.WebhookError}},
    summary="Webhook de eventos de Freshchat",
)
async def freshchat_webhook(
    request: Request,
    orchestrator: FreshchatOrchestrator = Depends(get_orchestrator),
):
    """Acusa recibo de inmediato; el turno con el asistente corre en segundo plano."""
    body = await request.body()
    try:
        payload = json.loads(body) if body else None
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("webhook.malformed_body", extra={"error": str(exc), "size": len(body)})
        return JSONResponse(
            status_code=400,
            content=schemas.WebhookError(error="Malformed JSON body").model_dump(),
        )
    return orchestrator.handle_webhook(payload)
