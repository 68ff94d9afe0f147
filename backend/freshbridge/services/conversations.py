"""Mapa en memoria de conversación de Freshchat a thread del asistente.

Vive lo que vive el proceso: no hay persistencia ni expiración. Si dos
mensajes de la misma conversación se procesan a la vez sin tomar `lock()`,
ambos leen el mapa antes de que el otro escriba y gana la última escritura.
"""

from __future__ import annotations

import asyncio


class ConversationStore:
    """Asocia cada `conversation_id` con su `thread_id` vigente."""

    def __init__(self) -> None:
        self._threads: dict[str, str] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, conversation_id: str) -> str | None:
        return self._threads.get(conversation_id)

    def set(self, conversation_id: str, thread_id: str) -> None:
        self._threads[conversation_id] = thread_id

    def lock(self, conversation_id: str) -> asyncio.Lock:
        """Candado por conversación para serializar sus turnos."""
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = self._locks[conversation_id] = asyncio.Lock()
        return lock

    @property
    def active_count(self) -> int:
        return len(self._threads)

    def __len__(self) -> int:
        return len(self._threads)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._threads
