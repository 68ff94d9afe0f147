"""Helpers para exponer credenciales sin filtrarlas."""

from freshbridge.core.config import Settings


def mask_secret(value: str | None) -> str | None:
    """Enmascara secretos para logging seguro."""
    if not value:
        return value
    if len(value) <= 4:
        return "***"
    return f"{value[:2]}***{value[-2:]}"


def credential_flags(settings: Settings) -> dict[str, bool]:
    """Indica qué credenciales obligatorias están presentes, sin revelar su valor."""
    return {
        "freshchat": bool(settings.freshchat_api_key),
        "openai": bool(settings.openai_api_key),
        "assistant": bool(settings.openai_assistant_id),
    }


def masked_credentials(settings: Settings) -> dict[str, str | None]:
    return {
        "freshchat_api_key": mask_secret(settings.freshchat_api_key),
        "openai_api_key": mask_secret(settings.openai_api_key),
        "openai_assistant_id": mask_secret(settings.openai_assistant_id),
    }
