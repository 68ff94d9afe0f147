"""Fixtures compartidas para las pruebas."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from freshbridge.channels.freshchat.service import FreshchatOrchestrator
from freshbridge.core.config import Settings
from freshbridge.main import create_app
from freshbridge.services.assistant import AssistantClient
from freshbridge.services.freshchat import FreshchatClient
from freshbridge.services.polling import PollingPolicy

FRESHCHAT_URL = "https://freshchat.test/v2"


def make_event(
    conversation_id: str | None = "c1",
    text: str | None = "What are your hours?",
    *,
    action: str = "message_create",
    actor_type: str = "user",
) -> dict[str, Any]:
    """Payload con la forma que Freshchat envía al webhook."""
    return {
        "actor": {"actor_type": actor_type, "actor_id": "u-1"},
        "action": action,
        "data": {
            "message": {
                "conversation_id": conversation_id,
                "message_parts": [{"text": {"content": text}}],
            }
        },
    }


def _text_message(value: str) -> SimpleNamespace:
    block = SimpleNamespace(type="text", text=SimpleNamespace(value=value))
    return SimpleNamespace(content=[block])


class FakeOpenAI:
    """Imita `AsyncOpenAI.beta.threads` con respuestas programables.

    Cada llamada cede el control al event loop, como lo haría una llamada de red.
    """

    def __init__(self, replies: list[str] | None = None, statuses: list[str] | None = None):
        self.replies = list(replies or ["We're open 9-5."])
        self.statuses = list(statuses or ["completed"])
        self.threads_created: list[str] = []
        self.messages_created: list[dict[str, Any]] = []
        self.runs_created: list[dict[str, Any]] = []
        self.retrieve_calls = 0
        self.closed = False
        self.gate: asyncio.Event | None = None
        self.fail_on: dict[str, Exception] = {}
        self.beta = SimpleNamespace(
            threads=SimpleNamespace(
                create=self._create_thread,
                messages=SimpleNamespace(create=self._create_message, list=self._list_messages),
                runs=SimpleNamespace(create=self._create_run, retrieve=self._retrieve_run),
            )
        )
        self._reply_for_thread: dict[str, str] = {}

    async def _suspend(self, operation: str) -> None:
        await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()
        if operation in self.fail_on:
            raise self.fail_on[operation]

    async def _create_thread(self) -> SimpleNamespace:
        await self._suspend("thread_create")
        thread_id = f"thread_{len(self.threads_created) + 1}"
        self.threads_created.append(thread_id)
        return SimpleNamespace(id=thread_id)

    async def _create_message(self, *, thread_id: str, role: str, content: str) -> SimpleNamespace:
        await self._suspend("message_create")
        self.messages_created.append({"thread_id": thread_id, "role": role, "content": content})
        return SimpleNamespace(id=f"msg_{len(self.messages_created)}")

    async def _create_run(self, *, thread_id: str, assistant_id: str) -> SimpleNamespace:
        await self._suspend("run_create")
        self.runs_created.append({"thread_id": thread_id, "assistant_id": assistant_id})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        self._reply_for_thread[thread_id] = reply
        return SimpleNamespace(id=f"run_{len(self.runs_created)}", status="queued")

    async def _retrieve_run(self, *, run_id: str, thread_id: str) -> SimpleNamespace:
        await self._suspend("run_retrieve")
        index = min(self.retrieve_calls, len(self.statuses) - 1)
        self.retrieve_calls += 1
        return SimpleNamespace(id=run_id, status=self.statuses[index])

    async def _list_messages(self, *, thread_id: str, order: str, limit: int) -> SimpleNamespace:
        await self._suspend("message_list")
        return SimpleNamespace(data=[_text_message(self._reply_for_thread[thread_id])])

    async def close(self) -> None:
        self.closed = True


@dataclass
class FreshchatRecorder:
    """Handler para `httpx.MockTransport` que registra y responde llamadas a Freshchat."""

    requests: list[dict[str, Any]] = field(default_factory=list)
    send_status: int = 201
    wrapped_status: int | None = None
    escalate_status: int = 200
    raise_on_send: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append(
            {
                "method": request.method,
                "path": request.url.path,
                "json": body,
                "authorization": request.headers.get("authorization"),
            }
        )
        if request.method == "PUT":
            return httpx.Response(self.escalate_status, json={"status": "assigned"})
        if self.raise_on_send is not None:
            raise self.raise_on_send
        status = self.send_status
        if isinstance(body, dict) and "messages" in body and self.wrapped_status is not None:
            status = self.wrapped_status
        return httpx.Response(status, json={"id": "m-1"} if status < 400 else {"error": "bad"})

    @property
    def sent_texts(self) -> list[str]:
        texts = []
        for entry in self.requests:
            if entry["method"] != "POST":
                continue
            payload = entry["json"]
            message = payload["messages"][0] if "messages" in payload else payload
            texts.append(message["message_parts"][0]["text"]["content"])
        return texts

    @property
    def escalations(self) -> list[str]:
        return [entry["path"] for entry in self.requests if entry["method"] == "PUT"]


@pytest.fixture(name="settings")
def fixture_settings() -> Settings:
    return Settings(
        _env_file=None,
        freshchat_api_key="fc-test-key",
        freshchat_api_url=FRESHCHAT_URL,
        openai_api_key="sk-test",
        openai_assistant_id="asst_test",
        assistant_poll_interval_seconds=0,
        assistant_poll_max_attempts=3,
        host="0.0.0.0",
        port=3000,
    )


@pytest.fixture(name="fake_openai")
def fixture_fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture(name="freshchat")
def fixture_freshchat() -> FreshchatRecorder:
    return FreshchatRecorder()


@pytest.fixture(name="orchestrator")
def fixture_orchestrator(
    fake_openai: FakeOpenAI, freshchat: FreshchatRecorder
) -> FreshchatOrchestrator:
    assistant = AssistantClient(
        fake_openai,  # type: ignore[arg-type]
        "asst_test",
        policy=PollingPolicy(interval=0, max_attempts=3),
    )
    chat = FreshchatClient(
        "fc-test-key",
        base_url=FRESHCHAT_URL,
        transport=httpx.MockTransport(freshchat),
    )
    return FreshchatOrchestrator(assistant=assistant, chat=chat)


@pytest.fixture(name="async_client")
async def fixture_async_client(
    settings: Settings, orchestrator: FreshchatOrchestrator
) -> AsyncClient:
    """Cliente asíncrono contra la app usando ASGITransport y dependencias falsas."""
    app = create_app(settings, orchestrator=orchestrator)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
