"""Application context: the one owner of every store.

Surfaces (CLI, HTTP API) and tests build an AppContext instead of reaching
for module-level state, so each gets its own ledger, archive and session.
"""

import logging
from dataclasses import dataclass

from .archive import HistoryArchive
from .backends import get_clipboard, get_generation_provider
from .config import Settings, get_settings
from .identity import IdentityStore
from .ledger import Ledger
from .orchestrator import GenerationOrchestrator
from .provider import Clipboard, GenerationProvider
from .session import Session
from .storage import KeyValueStore, SQLiteStore, load_history

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    store: KeyValueStore
    identity: IdentityStore
    ledger: Ledger
    archive: HistoryArchive
    orchestrator: GenerationOrchestrator

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        provider: GenerationProvider,
        *,
        settings: Settings | None = None,
        clipboard: Clipboard | None = None,
    ) -> "AppContext":
        """Rehydrate identity, balance and history from ``store``."""
        settings = settings or get_settings()
        identity = IdentityStore(store)
        identity.ensure_user_id()
        session_id = identity.ensure_session_id()

        ledger = Ledger(store, initial_balance=settings.initial_points)
        archive = HistoryArchive(load_history(store))
        logger.debug(
            "Loaded context: balance=%d, %d archived works, session %s",
            ledger.balance, len(archive), session_id,
        )

        orchestrator = GenerationOrchestrator(
            identity=identity,
            ledger=ledger,
            archive=archive,
            store=store,
            provider=provider,
            settings=settings,
            clipboard=clipboard,
            session=Session(session_id),
        )
        return cls(
            settings=settings,
            store=store,
            identity=identity,
            ledger=ledger,
            archive=archive,
            orchestrator=orchestrator,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        provider: GenerationProvider | None = None,
        clipboard: Clipboard | None = None,
        store: KeyValueStore | None = None,
    ) -> "AppContext":
        """Build a context over the configured SQLite store and backends."""
        settings = settings or get_settings()
        return cls.load(
            store if store is not None else SQLiteStore(settings.store_path),
            provider or get_generation_provider(settings),
            settings=settings,
            clipboard=clipboard or get_clipboard(),
        )

    @property
    def session(self) -> Session:
        return self.orchestrator.session

    def reset_store(self) -> None:
        """Wipe the local store: initial balance, no history, new ids."""
        if self.orchestrator.busy:
            raise RuntimeError("Cannot reset while a generation is in flight")
        try:
            self.store.clear()
        except Exception as e:
            logger.warning("Could not clear the local store: %s", e)
        self.identity = IdentityStore(self.store)
        self.identity.ensure_user_id()
        session_id = self.identity.start_session()
        self.ledger.reset(self.settings.initial_points)
        self.archive.clear()

        self.orchestrator.identity = self.identity
        self.orchestrator.session = Session(session_id)
        self.orchestrator.notice = None
        logger.info("Local store reset")
