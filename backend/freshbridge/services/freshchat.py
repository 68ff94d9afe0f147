"""Integración con la API REST de Freshchat vía httpx."""

from __future__ import annotations

from typing import Any

import httpx

from freshbridge.core.config import MessageFormat
from freshbridge.core.logging import get_logger, log_event

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.freshchat.com/v2"

# Las revisiones de la API observadas aceptan sobres distintos; en `auto` se
# intenta el plano y, ante un 4xx, una sola vez el envuelto.
_FORMAT_SEQUENCE: dict[str, tuple[str, ...]] = {
    "auto": ("primary", "wrapped"),
    "primary": ("primary",),
    "wrapped": ("wrapped",),
}


class FreshchatError(RuntimeError):
    """Errores al hablar con Freshchat."""

    def __init__(
        self,
        message: str,
        *,
        conversation_id: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.conversation_id = conversation_id
        self.status_code = status_code


class DeliveryError(FreshchatError):
    """No fue posible entregar un mensaje en la conversación."""


class EscalationError(FreshchatError):
    """No fue posible asignar la conversación a un agente humano."""


def _is_client_error(status_code: int) -> bool:
    return 400 <= status_code < 500


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {"data": data}


class FreshchatClient:
    """Cliente mínimo para enviar mensajes y escalar conversaciones."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_API_URL,
        actor_id: str = "bot",
        message_format: MessageFormat = "auto",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if message_format not in _FORMAT_SEQUENCE:
            raise ValueError(f"Unknown Freshchat message format: {message_format!r}")
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.actor_id = actor_id
        self.message_format = message_format
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def build_message(self, text: str) -> dict[str, Any]:
        """Sobre plano de un mensaje saliente del bot."""
        return {
            "message_type": "normal",
            "message_parts": [{"text": {"content": text}}],
            "actor_type": "agent",
            "actor_id": self.actor_id,
        }

    def build_payload(self, text: str, shape: str) -> dict[str, Any]:
        message = self.build_message(text)
        if shape == "wrapped":
            return {"messages": [message]}
        return message

    async def _request(self, method: str, path: str, payload: dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.request(
                method, f"{self.base_url}{path}", headers=self._headers(), json=payload
            )

    async def send_message(self, conversation_id: str, text: str) -> dict[str, Any]:
        """Publica `text` en la conversación y retorna el cuerpo de la respuesta."""
        path = f"/conversations/{conversation_id}/messages"
        shapes = _FORMAT_SEQUENCE[self.message_format]
        for index, shape in enumerate(shapes):
            try:
                response = await self._request("POST", path, self.build_payload(text, shape))
            except httpx.RequestError as exc:
                msg = f"Error de red al enviar mensaje a Freshchat: {exc}"
                logger.exception(
                    "freshchat.send_network_error",
                    extra={"conversation_id": conversation_id, "payload_shape": shape},
                )
                raise DeliveryError(msg, conversation_id=conversation_id) from exc

            if response.status_code < 400:
                log_event(
                    logger,
                    "freshchat.message_sent",
                    conversation_id=conversation_id,
                    payload_shape=shape,
                    status_code=response.status_code,
                )
                return _safe_json(response)

            retry = _is_client_error(response.status_code) and index + 1 < len(shapes)
            logger.warning(
                "freshchat.send_rejected",
                extra={
                    "conversation_id": conversation_id,
                    "payload_shape": shape,
                    "status_code": response.status_code,
                    "body": response.text[:500],
                    "will_retry": retry,
                },
            )
            if not retry:
                raise DeliveryError(
                    "Freshchat respondió error al enviar mensaje"
                    f" (status={response.status_code}, body={response.text!r})",
                    conversation_id=conversation_id,
                    status_code=response.status_code,
                )

        # `_FORMAT_SEQUENCE` nunca está vacío; el ciclo siempre retorna o lanza.
        raise AssertionError("unreachable")  # pragma: no cover

    async def escalate(self, conversation_id: str) -> None:
        """Marca la conversación como asignada para que la tome un agente humano."""
        path = f"/conversations/{conversation_id}"
        try:
            response = await self._request("PUT", path, {"status": "assigned"})
        except httpx.RequestError as exc:
            msg = f"Error de red al escalar conversación en Freshchat: {exc}"
            logger.exception(
                "freshchat.escalate_network_error", extra={"conversation_id": conversation_id}
            )
            raise EscalationError(msg, conversation_id=conversation_id) from exc

        if response.status_code >= 400:
            logger.error(
                "freshchat.escalate_rejected",
                extra={
                    "conversation_id": conversation_id,
                    "status_code": response.status_code,
                    "body": response.text[:500],
                },
            )
            raise EscalationError(
                "Freshchat respondió error al escalar conversación"
                f" (status={response.status_code}, body={response.text!r})",
                conversation_id=conversation_id,
                status_code=response.status_code,
            )

        log_event(logger, "freshchat.conversation_escalated", conversation_id=conversation_id)
