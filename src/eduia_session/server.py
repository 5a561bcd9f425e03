"""FastAPI web server for eduia-session."""

import logging

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import Response

from .archive import ALL
from .config import PURCHASE_PLANS, RECENT_HISTORY_SIZE, get_plan
from .context import AppContext
from .core import entry_to_dict, message_to_dict
from .export import entry_to_json, entry_to_markdown
from .orchestrator import SubmitStatus

logger = logging.getLogger(__name__)

app = FastAPI(title="eduia-session", version="0.1.0")

# Application context (loaded on first request)
_context: AppContext | None = None


def _get_context() -> AppContext:
    """Lazily build and cache the application context."""
    global _context
    if _context is None:
        _context = AppContext.from_settings()
        logger.info(
            "Loaded local store (balance %d, %d works, provider %s)",
            _context.ledger.balance,
            len(_context.archive),
            _context.orchestrator.provider.name,
        )
    return _context


def _entry_summary(entry) -> dict:
    """An archived work without its message snapshot."""
    data = entry_to_dict(entry)
    data.pop("messages")
    return data


def _notice_to_dict(notice) -> dict | None:
    if notice is None:
        return None
    return {"kind": notice.kind.value, "text": notice.text, "transient": notice.transient}


# ── Routes ───────────────────────────────────────────────────────


@app.get("/api/state")
async def get_state(samples: bool = Query(False, description="Show sample works if history is empty")):
    """Return balance, identity, the current session and recent works."""
    ctx = _get_context()
    cost = ctx.settings.generation_cost
    identity = ctx.identity.identity
    return {
        "balance": ctx.ledger.balance,
        "cost": cost,
        "generations_remaining": ctx.ledger.generations_remaining(cost),
        "low_balance": ctx.ledger.is_low(),
        "progress": ctx.ledger.progress(),
        "user_id": identity.user_id,
        "session_id": identity.session_id,
        "state": ctx.orchestrator.state.value,
        "messages": [message_to_dict(m) for m in ctx.session.snapshot()],
        "notice": _notice_to_dict(ctx.orchestrator.notice),
        "recent": [_entry_summary(e) for e in ctx.archive.recent(RECENT_HISTORY_SIZE, show_samples=samples)],
    }


@app.post("/api/work")
async def new_work():
    """Start a new work session."""
    ctx = _get_context()
    if ctx.orchestrator.busy:
        raise HTTPException(status_code=409, detail="A generation is in progress")
    session = ctx.orchestrator.start_new_work()
    return {"session_id": session.session_id, "messages": []}


@app.post("/api/messages")
async def send_message(text: str = Body(..., embed=True)):
    """Submit a prompt to the generation agent."""
    ctx = _get_context()
    outcome = await ctx.orchestrator.submit(text)

    if outcome.status is SubmitStatus.BUSY:
        raise HTTPException(status_code=409, detail="A generation is in progress")
    if outcome.status is SubmitStatus.EMPTY:
        raise HTTPException(status_code=422, detail="Message is empty")
    if outcome.status is SubmitStatus.INSUFFICIENT_BALANCE:
        raise HTTPException(status_code=402, detail=outcome.notice.text)
    if outcome.status is SubmitStatus.FAILED:
        logger.error("Generation failed for session %s: %s", ctx.session.session_id, outcome.error)
        raise HTTPException(status_code=502, detail=outcome.notice.text)

    return {
        "balance": ctx.ledger.balance,
        "notice": _notice_to_dict(outcome.notice),
        "messages": [message_to_dict(outcome.user_message), message_to_dict(outcome.assistant_message)],
        "entry": _entry_summary(outcome.entry),
    }


@app.get("/api/history")
async def get_history(
    search: str = Query("", description="Search in topics"),
    level: str = Query(ALL, description="Fundamental, Medio, Tecnico, Faculdade or all"),
    format: str = Query(ALL, description="documento, slides or all"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    samples: bool = Query(False, description="Show sample works if history is empty"),
):
    """Return archived works, newest first."""
    ctx = _get_context()
    entries = ctx.archive.filter(search, level, format, show_samples=samples)
    total = len(entries)
    entries = entries[offset: offset + limit]
    return {
        "total": total,
        "entries": [_entry_summary(e) for e in entries],
    }


@app.get("/api/history/{entry_id}")
async def get_entry(entry_id: str, samples: bool = Query(False)):
    """Return one archived work with its conversation."""
    ctx = _get_context()
    entry = ctx.archive.get(entry_id, show_samples=samples)
    if entry is None:
        raise HTTPException(status_code=404, detail="Work not found")
    return entry_to_dict(entry)


@app.get("/api/export/{entry_id}")
async def export_entry(
    entry_id: str,
    format: str = Query("md", description="Export format: md or json"),
    samples: bool = Query(False),
):
    """Export a work as Markdown or JSON."""
    ctx = _get_context()
    entry = ctx.archive.get(entry_id, show_samples=samples)
    if entry is None:
        raise HTTPException(status_code=404, detail="Work not found")

    safe_title = "".join(c if c.isalnum() or c in "-_ " else "" for c in entry.topic)[:50] or entry.id

    if format == "json":
        return Response(
            content=entry_to_json(entry),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{safe_title}.json"'},
        )
    else:
        return Response(
            content=entry_to_markdown(entry),
            media_type="text/markdown",
            headers={"Content-Disposition": f'attachment; filename="{safe_title}.md"'},
        )


@app.get("/api/plans")
async def get_plans():
    """Return the points packages on offer."""
    cost = _get_context().settings.generation_cost
    return [
        {
            "key": p.key,
            "title": p.title,
            "points": p.points,
            "price": p.price,
            "best_value": p.best_value,
            "works": p.works(cost),
        }
        for p in PURCHASE_PLANS
    ]


@app.post("/api/purchase/{plan_key}")
async def purchase(plan_key: str):
    """Credit the points of a package."""
    plan = get_plan(plan_key)
    if plan is None:
        raise HTTPException(status_code=404, detail=f"Unknown plan: {plan_key}")
    ctx = _get_context()
    notice = ctx.orchestrator.purchase(plan)
    return {"balance": ctx.ledger.balance, "notice": _notice_to_dict(notice)}
