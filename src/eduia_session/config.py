"""Configuration resolved from the environment, with platform-aware defaults."""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_AGENT_ID = "6998de3ee5ae4890f6e2bfa0"
DEFAULT_GENERATION_COST = 75
DEFAULT_INITIAL_POINTS = 250
DEFAULT_AGENT_TIMEOUT = 120.0

LOW_BALANCE_THRESHOLD = 150
BALANCE_GAUGE_CEILING = 500
RECENT_HISTORY_SIZE = 6


@dataclass(frozen=True)
class PurchasePlan:
    """A points package offered on the top-up screen."""

    key: str
    title: str
    points: int
    price: str
    best_value: bool = False

    def works(self, cost: int) -> int:
        """Number of generations the package pays for."""
        return self.points // cost


PURCHASE_PLANS: tuple[PurchasePlan, ...] = (
    PurchasePlan("basico", "Basico", 1000, "R$5"),
    PurchasePlan("popular", "Popular", 2500, "R$10", best_value=True),
    PurchasePlan("premium", "Premium", 4000, "R$25"),
)


def get_plan(key: str) -> PurchasePlan | None:
    for plan in PURCHASE_PLANS:
        if plan.key == key.lower():
            return plan
    return None


@dataclass(frozen=True)
class Settings:
    store_path: Path
    agent_url: str | None
    agent_key: str | None
    agent_id: str = DEFAULT_AGENT_ID
    agent_timeout: float = DEFAULT_AGENT_TIMEOUT
    generation_cost: int = DEFAULT_GENERATION_COST
    initial_points: int = DEFAULT_INITIAL_POINTS


def get_store_path() -> Path:
    """Return the path of the local SQLite state file."""
    env = os.environ.get("EDUIA_STORE_PATH")
    if env:
        return Path(env)

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "EduIA" / "state.db"
    elif sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "EduIA" / "state.db"
    else:  # Linux
        return Path.home() / ".local" / "share" / "eduia" / "state.db"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return default
    if value < 0:
        logger.warning("Ignoring %s=%r: must not be negative", name, raw)
        return default
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default


def get_settings() -> Settings:
    """Build the settings from EDUIA_* environment variables."""
    cost = _env_int("EDUIA_GENERATION_COST", DEFAULT_GENERATION_COST)
    if cost == 0:
        logger.warning("EDUIA_GENERATION_COST must be positive, using %d", DEFAULT_GENERATION_COST)
        cost = DEFAULT_GENERATION_COST

    return Settings(
        store_path=get_store_path(),
        agent_url=os.environ.get("EDUIA_AGENT_URL") or None,
        agent_key=os.environ.get("EDUIA_AGENT_KEY") or None,
        agent_id=os.environ.get("EDUIA_AGENT_ID") or DEFAULT_AGENT_ID,
        agent_timeout=_env_float("EDUIA_AGENT_TIMEOUT", DEFAULT_AGENT_TIMEOUT),
        generation_cost=cost,
        initial_points=_env_int("EDUIA_INITIAL_POINTS", DEFAULT_INITIAL_POINTS),
    )
