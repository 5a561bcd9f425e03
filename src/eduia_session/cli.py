"""CLI entry point for eduia-session."""

import asyncio
import logging
from dataclasses import replace
from pathlib import Path

import click
import uvicorn

from .archive import ALL
from .config import PURCHASE_PLANS, get_plan, get_settings
from .context import AppContext
from .core import Format, Level
from .export import entry_to_json, entry_to_markdown
from .orchestrator import SubmitStatus
from .storage import MemoryStore

LEVEL_CHOICES = [ALL] + [lvl.value for lvl in Level]
FORMAT_CHOICES = [ALL] + [fmt.value for fmt in Format]


def _context(ctx: click.Context) -> AppContext:
    """Build the application context on first use."""
    obj = ctx.ensure_object(dict)
    if "app" not in obj:
        settings = get_settings()
        if obj.get("store_path"):
            settings = replace(settings, store_path=obj["store_path"])
        store = MemoryStore() if obj.get("no_persist") else None
        obj["app"] = AppContext.from_settings(settings, store=store)
    return obj["app"]


@click.group()
@click.option("--store", "store_path", type=click.Path(path_type=Path), default=None,
              help="Local state file (default: EDUIA_STORE_PATH or the platform data dir).")
@click.option("--no-persist", is_flag=True, help="Keep all state in memory for this run.")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity.")
@click.pass_context
def main(ctx: click.Context, store_path: Path | None, no_persist: bool, verbose: int):
    """Generate academic works with points, and browse their history."""
    level = logging.WARNING if verbose == 0 else logging.INFO if verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["store_path"] = store_path
    ctx.obj["no_persist"] = no_persist


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the local JSON API."""
    click.echo(f"Starting eduia-session on http://{host}:{port}")
    uvicorn.run("eduia_session.server:app", host=host, port=port, reload=False, workers=1)


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """Show the balance and the current session."""
    app = _context(ctx)
    cost = app.settings.generation_cost
    identity = app.identity.identity
    click.echo(f"Pontos: {app.ledger.balance} ({app.ledger.generations_remaining(cost)} trabalhos restantes, {cost} pts/trabalho)")
    if app.ledger.is_low():
        click.echo("Seus pontos estao acabando!")
    click.echo(f"Usuario: {identity.user_id}")
    click.echo(f"Sessao: {identity.session_id} ({len(app.session)} mensagens)")
    click.echo(f"Trabalhos no historico: {len(app.archive)}")


@main.command()
@click.pass_context
def new(ctx: click.Context):
    """Start a new work session."""
    session = _context(ctx).orchestrator.start_new_work()
    click.echo(f"Nova sessao: {session.session_id}")


@main.command()
@click.argument("text")
@click.pass_context
def send(ctx: click.Context, text: str):
    """Send TEXT to the generation agent (costs points on success)."""
    app = _context(ctx)
    outcome = asyncio.run(app.orchestrator.submit(text))

    if outcome.status is SubmitStatus.EMPTY:
        raise click.UsageError("Message is empty.")
    if outcome.status is SubmitStatus.BUSY:
        raise click.ClickException("A generation is already in progress.")
    if outcome.status is SubmitStatus.INSUFFICIENT_BALANCE:
        raise click.ClickException(
            f"{outcome.notice.text} Saldo: {app.ledger.balance} pts. Use 'eduia plans'."
        )
    if outcome.status is SubmitStatus.FAILED:
        raise click.ClickException(outcome.notice.text)

    click.echo(outcome.assistant_message.content)
    for idx, f in enumerate(outcome.assistant_message.artifact_files, 1):
        click.echo(f"Arquivo {idx}: {f.file_url}")
    click.echo("")
    click.echo(f"{outcome.notice.text} Saldo: {app.ledger.balance} pts.", err=True)


@main.command()
@click.option("--search", default="", help="Search in topics.")
@click.option("--level", type=click.Choice(LEVEL_CHOICES), default=ALL)
@click.option("--format", "fmt", type=click.Choice(FORMAT_CHOICES), default=ALL)
@click.option("--limit", default=20, show_default=True)
@click.option("--samples", is_flag=True, help="Show sample works when the history is empty.")
@click.pass_context
def history(ctx: click.Context, search: str, level: str, fmt: str, limit: int, samples: bool):
    """List archived works, newest first."""
    app = _context(ctx)
    entries = app.archive.filter(search, level, fmt, show_samples=samples)
    click.echo(f"{len(entries)} trabalho(s)")
    for entry in entries[:limit]:
        click.echo(f"{entry.id}  {entry.date}  {entry.level.value:<11} {entry.format.value:<9} {entry.point_cost} pts  {entry.topic}")


@main.command()
@click.argument("entry_id")
@click.option("--samples", is_flag=True)
@click.pass_context
def show(ctx: click.Context, entry_id: str, samples: bool):
    """Print the content of an archived work."""
    entry = _context(ctx).archive.get(entry_id, show_samples=samples)
    if entry is None:
        raise click.ClickException(f"Work not found: {entry_id}")
    click.echo(entry.content)


@main.command()
@click.argument("entry_id")
@click.option("--format", "fmt", type=click.Choice(["md", "json"]), default="md")
@click.option("--samples", is_flag=True)
@click.pass_context
def export(ctx: click.Context, entry_id: str, fmt: str, samples: bool):
    """Export an archived work as Markdown or JSON."""
    entry = _context(ctx).archive.get(entry_id, show_samples=samples)
    if entry is None:
        raise click.ClickException(f"Work not found: {entry_id}")
    click.echo(entry_to_json(entry) if fmt == "json" else entry_to_markdown(entry))


@main.command()
@click.pass_context
def plans(ctx: click.Context):
    """List the points packages."""
    cost = _context(ctx).settings.generation_cost
    for plan in PURCHASE_PLANS:
        tag = "  (melhor valor)" if plan.best_value else ""
        click.echo(f"{plan.key:<8} {plan.title:<8} {plan.points:>5} pontos  {plan.price:<5} ~{plan.works(cost)} trabalhos{tag}")


@main.command()
@click.argument("plan_key")
@click.pass_context
def buy(ctx: click.Context, plan_key: str):
    """Add the points of PLAN_KEY to the balance."""
    plan = get_plan(plan_key)
    if plan is None:
        raise click.BadParameter(f"unknown plan {plan_key!r}", param_hint="PLAN_KEY")
    app = _context(ctx)
    notice = app.orchestrator.purchase(plan)
    click.echo(f"{notice.text} Saldo: {app.ledger.balance} pts.")


@main.command()
@click.argument("entry_id")
@click.option("--samples", is_flag=True)
@click.pass_context
def copy(ctx: click.Context, entry_id: str, samples: bool):
    """Copy the content of an archived work to the clipboard."""
    app = _context(ctx)
    entry = app.archive.get(entry_id, show_samples=samples)
    if entry is None:
        raise click.ClickException(f"Work not found: {entry_id}")
    if not app.orchestrator.copy(entry.content):
        raise click.ClickException("Could not copy to the clipboard.")
    click.echo("Copiado")


@main.command()
@click.confirmation_option(prompt="This erases the balance, the history and the ids. Continue?")
@click.pass_context
def reset(ctx: click.Context):
    """Erase the local store."""
    app = _context(ctx)
    app.reset_store()
    click.echo(f"Store reset. Saldo: {app.ledger.balance} pts.")
