"""Heuristic labels derived from a work topic.

Best-effort only: the labels come from the topic text and are never checked
against the generated content.
"""

from .core import Format, Level

TOPIC_MAX_LENGTH = 80

_LEVEL_KEYWORDS: tuple[tuple[Level, tuple[str, ...]], ...] = (
    (Level.FUNDAMENTAL, ("fundamental", "basico")),
    (Level.MEDIO, ("medio",)),
    (Level.TECNICO, ("tecnico", "tecnologo")),
)

_SLIDES_KEYWORDS = ("slide", "apresentacao", "powerpoint")


def classify(topic: str) -> tuple[Level, Format]:
    """Return the (level, format) labels for ``topic``.

    >>> classify("Trabalho tecnico sobre redes")
    (<Level.TECNICO: 'Tecnico'>, <Format.DOCUMENTO: 'documento'>)
    """
    lowered = (topic or "").lower()

    level = Level.FACULDADE
    for candidate, keywords in _LEVEL_KEYWORDS:
        if any(k in lowered for k in keywords):
            level = candidate
            break

    fmt = Format.SLIDES if any(k in lowered for k in _SLIDES_KEYWORDS) else Format.DOCUMENTO
    return level, fmt


def make_topic(text: str) -> str:
    """Truncate ``text`` to the archived topic length, marking the cut."""
    if len(text) > TOPIC_MAX_LENGTH:
        return text[:TOPIC_MAX_LENGTH] + "..."
    return text
