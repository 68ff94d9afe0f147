"""Configuración central basada en variables de entorno."""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MessageFormat = Literal["auto", "primary", "wrapped"]


class ConfigurationError(RuntimeError):
    """Falta configuración obligatoria para arrancar el servicio."""


class Settings(BaseSettings):
    """Valores globales leídos desde `.env` o el entorno."""

    environment: str = "development"
    log_level: str | None = Field(
        default=None,
        description="Nivel de logging global (ej. debug, info, warning). Cuando no se define, usa un valor por ambiente.",
    )
    log_file_path: str | None = Field(
        default=None,
        description="Archivo rotativo opcional; sin valor sólo se escribe a stdout.",
    )
    request_log_level: str = Field(
        default="info",
        description=(
            "Nivel mínimo para registrar solicitudes en middleware. "
            "Valores más altos (warning/error) reducen registros de peticiones exitosas."
        ),
    )
    request_log_skip_prefixes: tuple[str, ...] = Field(
        default=("/favicon", "/docs", "/openapi"),
        description="Prefijos de ruta para los que no se registrarán eventos de request.started/completed.",
    )

    # Freshchat
    freshchat_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FRESHBRIDGE_FRESHCHAT_API_KEY", "FRESHCHAT_API_KEY"),
    )
    freshchat_api_url: str = Field(
        default="https://api.freshchat.com/v2",
        validation_alias=AliasChoices("FRESHBRIDGE_FRESHCHAT_API_URL", "FRESHCHAT_API_URL"),
    )
    freshchat_actor_id: str = "bot"
    freshchat_message_format: MessageFormat = Field(
        default="auto",
        description=(
            "Forma del payload al enviar mensajes: `auto` intenta el formato plano y "
            "reintenta envuelto en `messages` ante un 4xx; `primary`/`wrapped` fijan uno."
        ),
    )
    freshchat_timeout_seconds: float = 10.0

    # OpenAI Assistants
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FRESHBRIDGE_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_assistant_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "FRESHBRIDGE_OPENAI_ASSISTANT_ID", "OPENAI_ASSISTANT_ID", "ASSISTANT_ID"
        ),
    )
    assistant_poll_interval_seconds: float = Field(default=1.0, ge=0)
    assistant_poll_max_attempts: int = Field(default=30, ge=1)

    serialize_conversation_turns: bool = Field(
        default=True,
        description="Procesa en serie los turnos de una misma conversación.",
    )
    shutdown_grace_seconds: float = Field(
        default=30.0,
        description="Tiempo máximo para esperar turnos en curso al apagar.",
    )

    host: str = "0.0.0.0"
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("FRESHBRIDGE_PORT", "PORT"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FRESHBRIDGE_",
        extra="ignore",
        populate_by_name=True,
    )

    def missing_required(self) -> list[str]:
        """Nombres de variables obligatorias que no tienen valor."""
        required = {
            "FRESHCHAT_API_KEY": self.freshchat_api_key,
            "OPENAI_API_KEY": self.openai_api_key,
            "ASSISTANT_ID": self.openai_assistant_id,
        }
        return [name for name, value in required.items() if not value]

    def ensure_required(self) -> None:
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(
                "Missing required environment variables: " + ", ".join(missing)
            )


def get_settings() -> Settings:
    """Construye la configuración a partir del entorno actual."""
    return Settings()
