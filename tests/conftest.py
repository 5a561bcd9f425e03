"""Shared test fixtures for eduia-session."""

import asyncio

import pytest

from eduia_session.config import Settings
from eduia_session.context import AppContext
from eduia_session.core import ArtifactFile
from eduia_session.provider import Clipboard, GenerationProvider
from eduia_session.result import GenerationResult
from eduia_session.storage import KeyValueStore, MemoryStore, SQLiteStore

COST = 75


class ScriptedProvider(GenerationProvider):
    """Generation backend that replays queued results.

    Each queued item is a GenerationResult to return or an exception to
    raise. When the queue is empty a plain success is returned. Setting
    ``gate`` makes every call wait on it, to hold the orchestrator in
    the sending state.
    """

    name = "scripted"

    def __init__(self, *results):
        self.results = list(results)
        self.calls: list[tuple[str, str, dict]] = []
        self.gate: asyncio.Event | None = None

    def is_available(self) -> bool:
        return True

    async def generate(self, prompt, agent_id, context):
        self.calls.append((prompt, agent_id, dict(context)))
        if self.gate is not None:
            await self.gate.wait()
        item = self.results.pop(0) if self.results else GenerationResult.ok(f"Resposta para: {prompt}")
        if isinstance(item, BaseException):
            raise item
        return item


class RecordingClipboard(Clipboard):
    def __init__(self, ok: bool = True):
        self.ok = ok
        self.copied: list[str] = []

    def copy(self, text: str) -> bool:
        self.copied.append(text)
        return self.ok


class UnavailableStore(KeyValueStore):
    """Store whose every read and write raises, like a disabled backend."""

    def get(self, key):
        raise OSError("storage disabled")

    def set(self, key, value):
        raise OSError("storage disabled")

    def delete(self, key):
        raise OSError("storage disabled")

    def clear(self):
        raise OSError("storage disabled")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        store_path=tmp_path / "state.db",
        agent_url=None,
        agent_key=None,
        agent_id="agent-test",
        generation_cost=COST,
        initial_points=250,
    )


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def sqlite_store(tmp_path):
    return SQLiteStore(tmp_path / "state.db")


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def clipboard():
    return RecordingClipboard()


@pytest.fixture
def app_context(memory_store, provider, settings, clipboard):
    """A fresh context over an empty in-memory store."""
    return AppContext.load(memory_store, provider, settings=settings, clipboard=clipboard)


@pytest.fixture
def success_with_files():
    return GenerationResult.ok(
        "# Trabalho\n\nConteudo.",
        artifact_files=[ArtifactFile("https://files.example/trabalho.docx")],
    )
