"""Cliente centralizado para interactuar con OpenAI."""

from openai import AsyncOpenAI

from freshbridge.core.config import ConfigurationError, Settings


def build_openai_client(settings: Settings) -> AsyncOpenAI:
    """Crea el cliente asíncrono que comparte toda la aplicación."""
    if not settings.openai_api_key:
        msg = "OPENAI_API_KEY is not configured"
        raise ConfigurationError(msg)
    return AsyncOpenAI(api_key=settings.openai_api_key)
