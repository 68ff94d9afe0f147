"""Detección de la directiva de escalamiento que el asistente incrusta en su respuesta.

El prompt del asistente le indica escribir `ESCALATE_TO_HUMAN: <motivo>` cuando
no puede ayudar. Este módulo es el único que conoce ese formato.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

ESCALATION_MARKER = "ESCALATE_TO_HUMAN"
DEFAULT_REASON = "User request"
HANDOFF_MESSAGE = "Let me connect you with one of our team members who can better assist you."

_REASON_RE = re.compile(rf"{ESCALATION_MARKER}:[ \t]*(.+)")
# Quita el marcador y el texto que lo sigue en la misma línea.
_DIRECTIVE_RE = re.compile(rf"{ESCALATION_MARKER}(?::[^\r\n]*)?")


@dataclass(slots=True, frozen=True)
class EscalationResult:
    clean_reply: str
    needs_escalation: bool
    reason: str = ""


def parse(raw_reply: str) -> EscalationResult:
    """Separa la respuesta visible para el usuario de la señal de escalamiento."""
    if ESCALATION_MARKER not in raw_reply:
        return EscalationResult(clean_reply=raw_reply, needs_escalation=False)

    match = _REASON_RE.search(raw_reply)
    reason = match.group(1).strip() if match else ""
    clean_reply = _DIRECTIVE_RE.sub("", raw_reply).strip()
    return EscalationResult(
        clean_reply=clean_reply or HANDOFF_MESSAGE,
        needs_escalation=True,
        reason=reason or DEFAULT_REASON,
    )
