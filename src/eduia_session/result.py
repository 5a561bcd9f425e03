"""Tagged result of a generation call and the extraction of its payload.

A GenerationResult is either successful or failed. A successful result may
carry text in three places, consulted in this order:

1. ``text``: the primary response field.
2. ``structured``: the raw structured response, searched for a text field.
3. Nothing: extraction yields an empty string.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from .core import ArtifactFile

# Keys searched in a structured response, in precedence order.
STRUCTURED_TEXT_KEYS = ("response", "text", "message", "content", "answer", "result")


@dataclass(frozen=True)
class GenerationResult:
    success: bool
    text: str | None = None
    structured: Mapping[str, Any] | None = None
    artifact_files: tuple[ArtifactFile, ...] = ()
    error: str | None = None

    @classmethod
    def ok(
        cls,
        text: str | None = None,
        *,
        structured: Mapping[str, Any] | None = None,
        artifact_files: tuple[ArtifactFile, ...] | list[ArtifactFile] = (),
    ) -> "GenerationResult":
        return cls(
            success=True,
            text=text,
            structured=structured,
            artifact_files=tuple(artifact_files),
        )

    @classmethod
    def failed(cls, error: str | None = None) -> "GenerationResult":
        return cls(success=False, error=error)


def extract_structured_text(data: Any, _depth: int = 0) -> str:
    """Find the first non-empty text field in a structured response."""
    if _depth > 4:
        return ""
    if isinstance(data, str):
        return data if data.strip() else ""
    if not isinstance(data, Mapping):
        return ""

    for key in STRUCTURED_TEXT_KEYS:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value

    # Nested objects, same key order
    for key in STRUCTURED_TEXT_KEYS:
        value = data.get(key)
        if isinstance(value, Mapping):
            text = extract_structured_text(value, _depth + 1)
            if text:
                return text
    return ""


def extract_text(result: GenerationResult) -> str:
    """Return the text of a successful result, or an empty string."""
    if result.text:
        return result.text
    if result.structured is not None:
        return extract_structured_text(result.structured)
    return ""


def extract_artifacts(result: GenerationResult) -> tuple[ArtifactFile, ...]:
    return tuple(f for f in result.artifact_files if f.file_url)
