"""Esquemas Pydantic para los webhooks de Freshchat."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

USER_ACTOR = "user"
MESSAGE_CREATE = "message_create"


class _Lenient(BaseModel):
    """Freshchat agrega campos sin aviso; se aceptan y se ignoran."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class Actor(_Lenient):
    actor_type: str | None = None
    actor_id: str | None = None


class TextContent(_Lenient):
    content: str | None = None


class MessagePart(_Lenient):
    text: TextContent | None = None


class WebhookMessage(_Lenient):
    conversation_id: str | None = None
    message_parts: list[MessagePart] | None = None


class WebhookData(_Lenient):
    message: WebhookMessage | None = None


class WebhookPayload(_Lenient):
    """Cuerpo completo de un evento entrante."""

    actor: Actor | None = None
    action: str | None = None
    data: WebhookData | None = None


class InboundEvent(BaseModel):
    """Lo mínimo que el puente necesita de un evento entrante."""

    actor_kind: str | None = None
    action: str | None = None
    conversation_id: str | None = None
    text: str | None = None

    @property
    def is_user_message(self) -> bool:
        return self.action == MESSAGE_CREATE and self.actor_kind == USER_ACTOR

    @property
    def is_complete(self) -> bool:
        return bool(self.conversation_id) and bool(self.text)

    @classmethod
    def from_payload(cls, payload: Any) -> InboundEvent:
        """Extrae el evento; cualquier cuerpo con otra forma da un evento vacío."""
        if not isinstance(payload, dict):
            return cls()
        try:
            parsed = WebhookPayload.model_validate(payload)
        except ValidationError:
            return cls()

        message = parsed.data.message if parsed.data else None
        text = None
        for part in (message.message_parts or []) if message else []:
            if part.text and part.text.content and part.text.content.strip():
                text = part.text.content
                break
        conversation_id = (message.conversation_id or "").strip() if message else ""
        return cls(
            actor_kind=parsed.actor.actor_type if parsed.actor else None,
            action=parsed.action,
            conversation_id=conversation_id or None,
            text=text,
        )


class WebhookAck(BaseModel):
    """Respuesta inmediata al webhook."""

    success: bool = True
    message: str | None = Field(default=None, description="Motivo del acuse.")


class WebhookError(BaseModel):
    success: bool = False
    error: str
