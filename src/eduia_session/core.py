"""Core data models for eduia-session."""

import logging
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Level(str, Enum):
    FUNDAMENTAL = "Fundamental"
    MEDIO = "Medio"
    TECNICO = "Tecnico"
    FACULDADE = "Faculdade"


class Format(str, Enum):
    DOCUMENTO = "documento"
    SLIDES = "slides"


@dataclass(frozen=True)
class Identity:
    """The stable user id plus the id of the current work session."""

    user_id: str
    session_id: str


@dataclass(frozen=True)
class ArtifactFile:
    """A downloadable output returned alongside generated text."""

    file_url: str


@dataclass(frozen=True)
class Message:
    """A single turn of a work session."""

    id: str
    role: Role
    content: str
    timestamp: str  # "HH:MM"
    artifact_files: tuple[ArtifactFile, ...] = ()


@dataclass(frozen=True)
class HistoryEntry:
    """A completed generation, archived with derived metadata."""

    id: str
    topic: str
    level: Level
    format: Format
    content: str
    date: str  # "DD/MM/YYYY"
    point_cost: int
    page_count: int = 0
    messages: tuple[Message, ...] = ()


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Return an opaque id: random base-36 characters plus the time in ms."""
    rand = "".join(random.choices(_BASE36, k=11))
    return rand + _to_base36(int(time.time() * 1000))


def timestamp_now(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%H:%M")


def date_now(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%d/%m/%Y")


# ── Persisted shape ──────────────────────────────────────────────


def message_to_dict(msg: Message) -> dict:
    data = {
        "id": msg.id,
        "role": msg.role.value,
        "content": msg.content,
        "timestamp": msg.timestamp,
    }
    if msg.artifact_files:
        data["artifactFiles"] = [{"file_url": f.file_url} for f in msg.artifact_files]
    return data


def message_from_dict(data: dict) -> Message:
    files = data.get("artifactFiles") or []
    return Message(
        id=str(data["id"]),
        role=Role(data["role"]),
        content=str(data.get("content", "")),
        timestamp=str(data.get("timestamp", "")),
        artifact_files=tuple(
            ArtifactFile(file_url=str(f["file_url"]))
            for f in files
            if isinstance(f, dict) and f.get("file_url")
        ),
    )


def entry_to_dict(entry: HistoryEntry) -> dict:
    return {
        "id": entry.id,
        "topic": entry.topic,
        "level": entry.level.value,
        "format": entry.format.value,
        "pageCount": entry.page_count,
        "content": entry.content,
        "date": entry.date,
        "pointCost": entry.point_cost,
        "messages": [message_to_dict(m) for m in entry.messages],
    }


def entry_from_dict(data: dict) -> HistoryEntry:
    """Build a HistoryEntry from its stored dict.

    Unknown level/format values fall back to the classification defaults.
    Messages that cannot be decoded are dropped from the snapshot.
    """
    try:
        level = Level(data.get("level"))
    except ValueError:
        level = Level.FACULDADE
    try:
        fmt = Format(data.get("format"))
    except ValueError:
        fmt = Format.DOCUMENTO

    messages = []
    for raw in data.get("messages") or []:
        if not isinstance(raw, dict):
            continue
        try:
            messages.append(message_from_dict(raw))
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("Dropping undecodable message in entry %s: %s", data.get("id"), e)

    return HistoryEntry(
        id=str(data["id"]),
        topic=str(data.get("topic", "")),
        level=level,
        format=fmt,
        content=str(data.get("content", "")),
        date=str(data.get("date", "")),
        point_cost=int(data.get("pointCost", 0)),
        page_count=int(data.get("pageCount", 0)),
        messages=tuple(messages),
    )
