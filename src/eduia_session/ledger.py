"""Client-side point balance.

The ledger is the only authority over the balance. It is debited only after
a generation succeeds and credited only by a purchase; the balance never
goes below zero.
"""

import logging

from .config import BALANCE_GAUGE_CEILING, DEFAULT_INITIAL_POINTS, LOW_BALANCE_THRESHOLD
from .storage import POINTS_KEY, KeyValueStore

logger = logging.getLogger(__name__)


class Ledger:
    def __init__(self, store: KeyValueStore, initial_balance: int = DEFAULT_INITIAL_POINTS):
        self._store = store
        self._balance = self._load(initial_balance)

    @property
    def balance(self) -> int:
        return self._balance

    def can_afford(self, cost: int) -> bool:
        return self._balance >= cost

    def debit(self, cost: int) -> None:
        """Spend ``cost`` points, clamping the balance at zero."""
        if cost > self._balance:
            logger.warning("Debit of %d exceeds balance %d, clamping to 0", cost, self._balance)
        self._balance = max(0, self._balance - cost)
        self._persist()

    def credit(self, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        self._balance += amount
        self._persist()

    def generations_remaining(self, cost: int) -> int:
        return self._balance // cost if cost > 0 else 0

    def is_low(self, threshold: int = LOW_BALANCE_THRESHOLD) -> bool:
        return self._balance < threshold

    def progress(self, ceiling: int = BALANCE_GAUGE_CEILING) -> float:
        """Balance as a percentage of ``ceiling``, capped at 100."""
        return min(100.0, self._balance / ceiling * 100)

    def reset(self, balance: int) -> None:
        self._balance = max(0, balance)
        self._persist()

    # ── Private helpers ──────────────────────────────────────────────

    def _load(self, initial_balance: int) -> int:
        try:
            raw = self._store.get(POINTS_KEY)
        except Exception as e:
            logger.warning("Could not read the stored balance, using %d: %s", initial_balance, e)
            return initial_balance
        if raw is None:
            return initial_balance
        try:
            value = int(raw)
        except ValueError:
            logger.warning("Stored balance %r is not an integer, using %d", raw, initial_balance)
            return initial_balance
        if value < 0:
            logger.warning("Stored balance %d is negative, using %d", value, initial_balance)
            return initial_balance
        return value

    def _persist(self) -> None:
        try:
            self._store.set(POINTS_KEY, str(self._balance))
        except Exception as e:
            logger.warning("Could not persist balance %d: %s", self._balance, e)
