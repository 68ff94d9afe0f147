"""Registro de tareas desacopladas de la respuesta HTTP."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from freshbridge.core.logging import get_logger

logger = get_logger(__name__)


class TaskRegistry:
    """Mantiene referencias a las tareas en curso para poder esperarlas.

    Sin una referencia fuerte el event loop puede recolectar la tarea antes de
    que termine.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(
        self, coro: Coroutine[Any, Any, Any], *, name: str | None = None
    ) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("tasks.cancelled", extra={"task_name": task.get_name()})
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "tasks.unhandled_error",
                extra={"task_name": task.get_name()},
                exc_info=exc,
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def join(self, timeout: float | None = None) -> bool:
        """Espera las tareas vigentes (y las que éstas lancen). Retorna False si vence `timeout`."""
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while True:
            pending = {task for task in self._tasks if not task.done()}
            if not pending:
                break
            remaining = None if deadline is None else max(deadline - loop.time(), 0)
            _, still_pending = await asyncio.wait(pending, timeout=remaining)
            if still_pending:
                return False
        # Deja correr los callbacks de las tareas recién terminadas.
        await asyncio.sleep(0)
        return True

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
