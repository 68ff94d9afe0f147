"""Política de sondeo para runs del asistente."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

Sleeper = Callable[[float], Awaitable[Any]]

COMPLETED_STATUS = "completed"
DEFAULT_FAILURE_STATUSES = frozenset({"failed", "expired", "cancelled", "incomplete"})


class PollTimeout(Exception):
    """El run no llegó a un estado terminal dentro del presupuesto de intentos."""

    def __init__(self, attempts: int, last_status: str | None) -> None:
        super().__init__(f"run still '{last_status}' after {attempts} attempts")
        self.attempts = attempts
        self.last_status = last_status


class PollFailed(Exception):
    """El run terminó en un estado de error."""

    def __init__(self, status: str) -> None:
        super().__init__(f"run {status}")
        self.status = status


@dataclass(slots=True, frozen=True)
class PollingPolicy:
    """Intervalo fijo con tope de intentos.

    `sleep` se inyecta para que las pruebas no esperen en tiempo real.
    """

    interval: float = 1.0
    max_attempts: int = 30
    failure_statuses: frozenset[str] = DEFAULT_FAILURE_STATUSES
    sleep: Sleeper = field(default=asyncio.sleep, compare=False)

    async def wait_for(self, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Consulta `fetch` hasta obtener un objeto con `status == "completed"`.

        La primera consulta es inmediata; cada reintento espera `interval`.
        Lanza `PollFailed` en un estado de error y `PollTimeout` al agotar
        `max_attempts` reintentos.
        """
        current = await fetch()
        attempts = 0
        while True:
            status = getattr(current, "status", None)
            if status == COMPLETED_STATUS:
                return current
            if status in self.failure_statuses:
                raise PollFailed(status)
            if attempts >= self.max_attempts:
                raise PollTimeout(attempts, status)
            await self.sleep(self.interval)
            current = await fetch()
            attempts += 1
