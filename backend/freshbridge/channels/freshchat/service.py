"""Orquestación webhook de Freshchat → asistente de OpenAI → Freshchat."""

from __future__ import annotations

from typing import Any

import httpx
from openai import AsyncOpenAI

from freshbridge.core.config import Settings
from freshbridge.core.logging import get_logger, log_event
from freshbridge.services import openai as openai_service
from freshbridge.services.assistant import AssistantClient
from freshbridge.services.conversations import ConversationStore
from freshbridge.services.freshchat import EscalationError, FreshchatClient
from freshbridge.services.polling import PollingPolicy
from freshbridge.services.tasks import TaskRegistry

from . import schemas

logger = get_logger("freshbridge.channels.freshchat")

IGNORED_ACK = "Not a user message"
INCOMPLETE_ACK = "Invalid data"
ACCEPTED_ACK = "Accepted"

FOLLOW_UP_MESSAGE = "A team member will be with you shortly. Thank you for your patience!"
APOLOGY_MESSAGE = (
    "I'm sorry, I'm having trouble responding right now. "
    "Let me connect you with a member of our team."
)


class FreshchatOrchestrator:
    """Recibe eventos, responde de inmediato y procesa cada turno en segundo plano."""

    def __init__(
        self,
        *,
        assistant: AssistantClient,
        chat: FreshchatClient,
        store: ConversationStore | None = None,
        tasks: TaskRegistry | None = None,
        serialize_turns: bool = True,
    ) -> None:
        self.assistant = assistant
        self.chat = chat
        self.store = store if store is not None else ConversationStore()
        self.tasks = tasks if tasks is not None else TaskRegistry()
        self.serialize_turns = serialize_turns

    def handle_webhook(self, payload: Any) -> schemas.WebhookAck:
        """Clasifica el evento y agenda el turno sin esperar a que termine."""
        event = schemas.InboundEvent.from_payload(payload)
        if not event.is_user_message:
            log_event(
                logger,
                "webhook.ignored",
                action=event.action,
                actor_type=event.actor_kind,
            )
            return schemas.WebhookAck(message=IGNORED_ACK)

        if not event.is_complete:
            logger.warning(
                "webhook.incomplete_event",
                extra={
                    "conversation_id": event.conversation_id,
                    "has_text": bool(event.text),
                },
            )
            return schemas.WebhookAck(message=INCOMPLETE_ACK)

        log_event(
            logger,
            "webhook.message_received",
            conversation_id=event.conversation_id,
            preview=event.text[:100],
        )
        self.tasks.spawn(
            self.process_turn(event.conversation_id, event.text),
            name=f"turn:{event.conversation_id}",
        )
        return schemas.WebhookAck(message=ACCEPTED_ACK)

    async def process_turn(self, conversation_id: str, text: str) -> None:
        """Procesa un mensaje de usuario de principio a fin. Nunca lanza."""
        if self.serialize_turns:
            async with self.store.lock(conversation_id):
                await self._run_turn(conversation_id, text)
        else:
            await self._run_turn(conversation_id, text)

    async def _run_turn(self, conversation_id: str, text: str) -> None:
        stage = "lookup"
        try:
            thread_id = self.store.get(conversation_id)

            stage = "assistant"
            result = await self.assistant.get_reply(text, thread_id)
            self.store.set(conversation_id, result.thread_id)

            stage = "deliver_reply"
            await self.chat.send_message(conversation_id, result.reply)

            if result.needs_escalation:
                stage = "escalate"
                await self._escalate_on_request(conversation_id, result.escalation_reason)
        except Exception:
            logger.exception(
                "turn.failed",
                extra={"conversation_id": conversation_id, "stage": stage},
            )
            await self._fallback(conversation_id)
            return

        log_event(
            logger,
            "turn.completed",
            conversation_id=conversation_id,
            thread_id=result.thread_id,
            escalated=result.needs_escalation,
        )

    async def _escalate_on_request(self, conversation_id: str, reason: str) -> None:
        log_event(
            logger, "turn.escalation_requested", conversation_id=conversation_id, reason=reason
        )
        try:
            await self.chat.escalate(conversation_id)
        except EscalationError:
            # Sin asignación no se promete un agente; sólo queda el registro.
            logger.exception(
                "turn.escalation_failed",
                extra={"conversation_id": conversation_id, "reason": reason},
            )
            return
        await self.chat.send_message(conversation_id, FOLLOW_UP_MESSAGE)

    async def _fallback(self, conversation_id: str) -> None:
        try:
            await self.chat.send_message(conversation_id, APOLOGY_MESSAGE)
        except Exception:
            logger.exception(
                "turn.fallback_message_failed", extra={"conversation_id": conversation_id}
            )
        try:
            await self.chat.escalate(conversation_id)
        except Exception:
            logger.exception(
                "turn.fallback_escalation_failed", extra={"conversation_id": conversation_id}
            )

    async def aclose(self, *, grace: float | None = None) -> None:
        """Espera los turnos en curso (hasta `grace` segundos) y libera clientes."""
        if not await self.tasks.join(timeout=grace):
            logger.warning(
                "shutdown.pending_turns_cancelled", extra={"pending": self.tasks.pending}
            )
            await self.tasks.cancel_all()
        await self.assistant.aclose()


def build_orchestrator(
    settings: Settings,
    *,
    openai_client: AsyncOpenAI | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FreshchatOrchestrator:
    """Arma el orquestador con los clientes reales a partir de la configuración."""
    settings.ensure_required()
    assistant = AssistantClient(
        openai_client or openai_service.build_openai_client(settings),
        settings.openai_assistant_id,
        policy=PollingPolicy(
            interval=settings.assistant_poll_interval_seconds,
            max_attempts=settings.assistant_poll_max_attempts,
        ),
    )
    chat = FreshchatClient(
        settings.freshchat_api_key,
        base_url=settings.freshchat_api_url,
        actor_id=settings.freshchat_actor_id,
        message_format=settings.freshchat_message_format,
        timeout=settings.freshchat_timeout_seconds,
        transport=transport,
    )
    return FreshchatOrchestrator(
        assistant=assistant,
        chat=chat,
        serialize_turns=settings.serialize_conversation_turns,
    )
