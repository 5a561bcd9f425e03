"""Abstract base classes for the external collaborators."""

from abc import ABC, abstractmethod
from typing import TypedDict

from .result import GenerationResult


class GenerationContext(TypedDict):
    user_id: str
    session_id: str


class GenerationProvider(ABC):
    """Base class for content generation backends.

    A provider turns one prompt into one GenerationResult. Collaborator-side
    failures are reported as a failed result; transport failures (network
    errors, timeouts) are raised.
    """

    name: str  # "agent", "offline"

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if this backend can be called from this machine."""
        ...

    @abstractmethod
    async def generate(
        self, prompt: str, agent_id: str, context: GenerationContext
    ) -> GenerationResult:
        """Run one generation for ``prompt`` on behalf of ``context``."""
        ...


class Clipboard(ABC):
    """Best-effort system clipboard."""

    @abstractmethod
    def copy(self, text: str) -> bool:
        """Copy ``text``; return False instead of raising on failure."""
        ...
