"""Pick the generation backend and clipboard for this machine."""

import logging

from ..config import Settings, get_settings
from ..provider import Clipboard, GenerationProvider
from .agent import AgentHTTPProvider
from .clipboard import SystemClipboard
from .offline import OfflineProvider

logger = logging.getLogger(__name__)


def get_generation_provider(settings: Settings | None = None) -> GenerationProvider:
    """Return the agent provider when an endpoint is configured, else the offline one."""
    settings = settings or get_settings()
    if settings.agent_url:
        provider = AgentHTTPProvider(
            settings.agent_url,
            api_key=settings.agent_key,
            timeout=settings.agent_timeout,
        )
        if provider.is_available():
            return provider
    logger.info("No agent endpoint configured, using the offline generator")
    return OfflineProvider()


def get_clipboard() -> Clipboard:
    return SystemClipboard()
