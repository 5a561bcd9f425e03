"""Generation orchestrator: one submit, one external call, one archived work.

States::

    IDLE -> SENDING -> SUCCEEDED -> IDLE
                    -> FAILED    -> IDLE

A submit is accepted only from IDLE, with non-empty input and an affordable
balance. The user message is appended as soon as the call starts. On success
the assistant message, the debit and the history entry are applied together,
with no await between them. On failure nothing is charged and nothing is
archived; the user message stays in the session. Every error ends here as a
Notice; none propagates to the caller.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from .archive import HistoryArchive
from .classify import classify, make_topic
from .config import PurchasePlan, Settings
from .core import HistoryEntry, Message, date_now, generate_id
from .identity import IdentityStore
from .ledger import Ledger
from .provider import Clipboard, GenerationProvider
from .result import extract_artifacts, extract_text
from .session import Session
from .storage import KeyValueStore, save_history

logger = logging.getLogger(__name__)

SUCCESS_TEXT = "Conteudo gerado com sucesso!"
GENERIC_FAILURE_TEXT = "Erro ao gerar conteudo. Tente novamente."
TRANSPORT_FAILURE_TEXT = "Erro de conexao. Verifique sua internet e tente novamente."
INSUFFICIENT_BALANCE_TEXT = "Pontos insuficientes. Compre mais pontos para continuar."
NOTICE_TTL = 4.0


class EduIAError(Exception):
    """Base class for errors handled by the orchestrator."""


class InsufficientBalance(EduIAError):
    def __init__(self, balance: int, cost: int):
        super().__init__(f"Balance {balance} is below the generation cost {cost}")
        self.balance = balance
        self.cost = cost


class GenerationFailed(EduIAError):
    """The generation backend reported a failure."""


class TransportFailure(EduIAError):
    """The generation call itself raised (network error, timeout...)."""


class OrchestratorState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SubmitStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    BUSY = "busy"
    EMPTY = "empty"


class NoticeKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    PURCHASE = "purchase"


@dataclass(frozen=True)
class Notice:
    """A dismissible message for the user."""

    kind: NoticeKind
    text: str
    created_at: float = field(default_factory=time.monotonic)
    ttl: float | None = None  # seconds; None stays until dismissed

    @property
    def transient(self) -> bool:
        return self.ttl is not None

    def expired(self, now: float | None = None) -> bool:
        if self.ttl is None:
            return False
        return (now if now is not None else time.monotonic()) - self.created_at >= self.ttl


@dataclass
class SubmitOutcome:
    status: SubmitStatus
    notice: Notice | None = None
    user_message: Message | None = None
    assistant_message: Message | None = None
    entry: HistoryEntry | None = None
    error: EduIAError | None = None

    @property
    def ok(self) -> bool:
        return self.status is SubmitStatus.SUCCEEDED


class GenerationOrchestrator:
    """Sole writer of the session, the ledger and the archive."""

    def __init__(
        self,
        *,
        identity: IdentityStore,
        ledger: Ledger,
        archive: HistoryArchive,
        store: KeyValueStore,
        provider: GenerationProvider,
        settings: Settings,
        clipboard: Clipboard | None = None,
        session: Session | None = None,
    ):
        self.identity = identity
        self.ledger = ledger
        self.archive = archive
        self.store = store
        self.provider = provider
        self.settings = settings
        self.clipboard = clipboard
        self.session = session or Session(identity.ensure_session_id())
        self.state = OrchestratorState.IDLE
        self.notice: Notice | None = None

    @property
    def cost(self) -> int:
        return self.settings.generation_cost

    @property
    def busy(self) -> bool:
        return self.state is not OrchestratorState.IDLE

    async def submit(self, text: str) -> SubmitOutcome:
        """Run one generation round for ``text``."""
        # No await before the state flips to SENDING: this is the single-flight guard.
        if self.state is not OrchestratorState.IDLE:
            logger.debug("Submit rejected, orchestrator is %s", self.state.value)
            return SubmitOutcome(SubmitStatus.BUSY)

        trimmed = (text or "").strip()
        if not trimmed:
            return SubmitOutcome(SubmitStatus.EMPTY)

        if not self.ledger.can_afford(self.cost):
            err = InsufficientBalance(self.ledger.balance, self.cost)
            self.notice = Notice(NoticeKind.INSUFFICIENT_BALANCE, INSUFFICIENT_BALANCE_TEXT)
            logger.info("%s", err)
            return SubmitOutcome(SubmitStatus.INSUFFICIENT_BALANCE, notice=self.notice, error=err)

        self.state = OrchestratorState.SENDING
        self.notice = None
        user_message = self.session.append_user(trimmed)
        identity = self.identity.identity

        try:
            try:
                result = await self.provider.generate(
                    trimmed,
                    self.settings.agent_id,
                    {"user_id": identity.user_id, "session_id": identity.session_id},
                )
            except Exception as e:
                logger.warning("Generation call via %s raised: %r", self.provider.name, e)
                return self._fail(
                    TransportFailure(str(e) or type(e).__name__),
                    TRANSPORT_FAILURE_TEXT,
                    user_message,
                )

            if not result.success:
                text = (result.error or "").strip() or GENERIC_FAILURE_TEXT
                logger.warning("Generation failed: %s", text)
                return self._fail(GenerationFailed(text), text, user_message)

            return self._succeed(result, user_message)
        finally:
            self.state = OrchestratorState.IDLE

    def start_new_work(self) -> Session:
        """Discard the current session and open an empty one under a new id."""
        if self.busy:
            raise RuntimeError("Cannot start new work while a generation is in flight")
        session_id = self.identity.start_session()
        self.session = self.session.reset(session_id)
        self.notice = None
        logger.info("Started new work session %s", session_id)
        return self.session

    def purchase(self, plan: PurchasePlan | int) -> Notice:
        """Credit the points of ``plan`` (or a raw amount)."""
        amount = plan.points if isinstance(plan, PurchasePlan) else int(plan)
        self.ledger.credit(amount)
        logger.info("Credited %d points, balance is now %d", amount, self.ledger.balance)
        self.notice = Notice(
            NoticeKind.PURCHASE,
            f"{_format_points(amount)} pontos adicionados com sucesso!",
            ttl=NOTICE_TTL,
        )
        return self.notice

    def copy(self, text: str) -> bool:
        if self.clipboard is None:
            return False
        return self.clipboard.copy(text)

    def dismiss_notice(self) -> None:
        self.notice = None

    # ── Private helpers ──────────────────────────────────────────────

    def _succeed(self, result, user_message: Message) -> SubmitOutcome:
        self.state = OrchestratorState.SUCCEEDED
        text = extract_text(result)
        artifacts = extract_artifacts(result)

        assistant_message = self.session.append_assistant(text, artifacts)
        self.ledger.debit(self.cost)

        topic = self.session.topic_source or user_message.content
        level, fmt = classify(topic)
        entry = HistoryEntry(
            id=generate_id(),
            topic=make_topic(topic),
            level=level,
            format=fmt,
            content=text,
            date=date_now(),
            point_cost=self.cost,
            page_count=0,
            messages=self.session.snapshot(),
        )
        self.archive.append(entry)
        self._persist_history()

        logger.info(
            "Generated %s/%s work %s, charged %d points (balance %d)",
            level.value, fmt.value, entry.id, self.cost, self.ledger.balance,
        )
        self.notice = Notice(NoticeKind.SUCCESS, SUCCESS_TEXT, ttl=NOTICE_TTL)
        return SubmitOutcome(
            SubmitStatus.SUCCEEDED,
            notice=self.notice,
            user_message=user_message,
            assistant_message=assistant_message,
            entry=entry,
        )

    def _fail(self, error: EduIAError, text: str, user_message: Message) -> SubmitOutcome:
        self.state = OrchestratorState.FAILED
        self.notice = Notice(NoticeKind.ERROR, text)
        return SubmitOutcome(
            SubmitStatus.FAILED,
            notice=self.notice,
            user_message=user_message,
            error=error,
        )

    def _persist_history(self) -> None:
        try:
            save_history(self.store, self.archive)
        except Exception as e:
            logger.warning("Could not persist history, keeping it in memory: %s", e)


def _format_points(amount: int) -> str:
    """Group thousands the pt-BR way: 2500 -> "2.500"."""
    return f"{amount:,}".replace(",", ".")
