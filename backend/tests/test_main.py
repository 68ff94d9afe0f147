"""Pruebas de la fábrica de la app y del arranque."""

import pytest

from freshbridge import __main__ as entrypoint
from freshbridge.core.config import ConfigurationError, Settings
from freshbridge.main import create_app


def test_create_app_without_configuration_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("FRESHCHAT_API_KEY", "OPENAI_API_KEY", "ASSISTANT_ID", "OPENAI_ASSISTANT_ID"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(ConfigurationError):
        create_app(Settings(_env_file=None))


def test_create_app_builds_real_clients(settings: Settings) -> None:
    app = create_app(settings)

    orchestrator = app.state.orchestrator
    assert orchestrator.assistant.assistant_id == "asst_test"
    assert orchestrator.chat.base_url == "https://freshchat.test/v2"
    assert app.state.settings is settings


def test_run_exits_when_configuration_is_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    started: list[object] = []
    empty = Settings(_env_file=None, openai_api_key="")
    monkeypatch.setattr(entrypoint, "get_settings", lambda: empty)
    monkeypatch.setattr(entrypoint, "setup_logging", lambda _settings: None)
    monkeypatch.setattr(entrypoint.uvicorn, "run", lambda *a, **k: started.append(a))
    monkeypatch.delenv("FRESHCHAT_API_KEY", raising=False)
    monkeypatch.delenv("ASSISTANT_ID", raising=False)
    monkeypatch.delenv("OPENAI_ASSISTANT_ID", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        entrypoint.run()

    assert exc_info.value.code == 1
    assert started == []


def test_run_starts_uvicorn_on_configured_port(
    monkeypatch: pytest.MonkeyPatch, settings: Settings
) -> None:
    calls: list[dict] = []
    monkeypatch.setattr(entrypoint, "get_settings", lambda: settings)
    monkeypatch.setattr(entrypoint, "setup_logging", lambda _settings: None)
    monkeypatch.setattr(entrypoint.uvicorn, "run", lambda app, **kwargs: calls.append(kwargs))

    entrypoint.run()

    assert calls == [{"host": "0.0.0.0", "port": 3000, "log_config": None}]
