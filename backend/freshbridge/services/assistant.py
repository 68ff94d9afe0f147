"""Ronda completa contra un asistente de OpenAI (threads + runs)."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from freshbridge.core.logging import get_logger, log_event

from . import escalation
from .polling import PollFailed, PollingPolicy, PollTimeout

logger = get_logger(__name__)

Parser = Callable[[str], escalation.EscalationResult]


class AssistantError(RuntimeError):
    """Cualquier falla del asistente: creación, run fallido o timeout de sondeo."""

    def __init__(self, message: str, *, stage: str, thread_id: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.thread_id = thread_id


@dataclass(slots=True, frozen=True)
class TurnResult:
    """Resultado de un turno, ya sin la directiva de escalamiento."""

    reply: str
    thread_id: str
    needs_escalation: bool
    escalation_reason: str = ""
    raw_reply: str = ""
    run_id: str | None = None


def _message_text(message: Any) -> str:
    parts: list[str] = []
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) != "text":
            continue
        text = getattr(block, "text", None)
        value = getattr(text, "value", None)
        if value:
            parts.append(value)
    return "\n".join(parts)


class AssistantClient:
    """Envía un mensaje de usuario a un thread y espera la respuesta del asistente."""

    def __init__(
        self,
        client: AsyncOpenAI,
        assistant_id: str,
        *,
        policy: PollingPolicy | None = None,
        parser: Parser = escalation.parse,
    ) -> None:
        self._client = client
        self.assistant_id = assistant_id
        self.policy = policy or PollingPolicy()
        self._parse = parser

    async def get_reply(self, user_message: str, thread_id: str | None = None) -> TurnResult:
        """Ejecuta un turno completo.

        Sin `thread_id` se crea un thread nuevo; con él se reutiliza tal cual,
        sin verificar que exista. Ninguna falla se reintenta aquí.
        """
        threads = self._client.beta.threads
        stage = "thread_create"
        try:
            if not thread_id:
                thread = await threads.create()
                thread_id = thread.id
                log_event(logger, "assistant.thread_created", thread_id=thread_id)
            else:
                log_event(logger, "assistant.thread_reused", thread_id=thread_id)

            stage = "message_create"
            await threads.messages.create(thread_id=thread_id, role="user", content=user_message)

            stage = "run_create"
            run = await threads.runs.create(thread_id=thread_id, assistant_id=self.assistant_id)
            log_event(logger, "assistant.run_started", thread_id=thread_id, run_id=run.id)

            stage = "run_poll"
            await self.policy.wait_for(
                lambda: threads.runs.retrieve(run_id=run.id, thread_id=thread_id)
            )

            stage = "message_list"
            messages = await threads.messages.list(thread_id=thread_id, order="desc", limit=1)
        except PollFailed as exc:
            logger.error(
                "assistant.run_failed",
                extra={"thread_id": thread_id, "run_status": exc.status},
            )
            raise AssistantError(
                f"Assistant run {exc.status}", stage=stage, thread_id=thread_id
            ) from exc
        except PollTimeout as exc:
            logger.error(
                "assistant.run_timeout",
                extra={
                    "thread_id": thread_id,
                    "attempts": exc.attempts,
                    "run_status": exc.last_status,
                },
            )
            raise AssistantError(
                "Assistant response timeout", stage=stage, thread_id=thread_id
            ) from exc
        except OpenAIError as exc:
            logger.exception(
                "assistant.request_failed",
                extra={"thread_id": thread_id, "stage": stage},
            )
            raise AssistantError(str(exc), stage=stage, thread_id=thread_id) from exc

        data = list(getattr(messages, "data", None) or [])
        raw_reply = _message_text(data[0]) if data else ""
        if not raw_reply:
            raise AssistantError(
                "Assistant returned an empty reply", stage=stage, thread_id=thread_id
            )

        parsed = self._parse(raw_reply)
        log_event(
            logger,
            "assistant.reply_received",
            thread_id=thread_id,
            run_id=run.id,
            preview=parsed.clean_reply[:100],
            needs_escalation=parsed.needs_escalation,
            escalation_reason=parsed.reason or None,
        )
        return TurnResult(
            reply=parsed.clean_reply,
            thread_id=thread_id,
            needs_escalation=parsed.needs_escalation,
            escalation_reason=parsed.reason,
            raw_reply=raw_reply,
            run_id=run.id,
        )

    async def aclose(self) -> None:
        await self._client.close()
