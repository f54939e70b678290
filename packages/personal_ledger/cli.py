# ruff: noqa: I001
"""CLI for the ``personal_ledger`` package.

A Typer-based console interface over the ledger, analytics and advisory
layers. Environment variables (notably ``OPENAI_API_KEY``) are loaded from a
local ``.env`` using ``python-dotenv`` before any command runs. Business
logic lives in the library modules; commands only parse arguments, call them
and print.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Annotated

import click
import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo

from .config import Settings, load_settings
from .errors import EntryValidationError
from .gateway import ResilientAdvisor, build_advisor
from .ledger import LedgerStore
from .logging_setup import configure_logging, get_logger
from .models import Category, Transaction, TransactionType
from .storage import BlobStore, JsonFileBlobStore, MemoryBlobStore, SqlBlobStore

_logger = get_logger("personal_ledger.cli")


# ---- Wiring -----------------------------------------------------------------


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.storage_backend == "memory":
        return MemoryBlobStore()
    if settings.storage_backend == "sql":
        return SqlBlobStore(settings.resolved_database_url)
    return JsonFileBlobStore(settings.data_dir)


def build_store(settings: Settings) -> LedgerStore:
    """Create the ledger over the configured backend and load it."""

    store = LedgerStore(build_blob_store(settings))
    store.load()
    return store


@dataclass(slots=True)
class _Runtime:
    settings: Settings
    store: LedgerStore
    gateway: ResilientAdvisor


def _runtime(ctx: typer.Context) -> _Runtime:
    if isinstance(ctx.obj, _Runtime):
        return ctx.obj
    try:
        settings = load_settings()
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e
    rt = _Runtime(settings=settings, store=build_store(settings), gateway=build_advisor(settings))
    ctx.obj = rt
    return rt


def _fail(message: str, code: int = 1) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code)


def _parse_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as e:
        raise _fail(f"invalid date {raw!r}; expected YYYY-MM-DD") from e


def _format_row(tx: Transaction) -> str:
    return "\t".join(
        [tx.id, tx.date.isoformat(), tx.description, f"{tx.amount:.2f}", tx.type, tx.category]
    )


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Personal finance ledger with spending analytics and AI-assisted advice. "
        "Loads OPENAI_API_KEY from a local .env; without it, local mock advice is used."
    ),
)

# Module-level argument object to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Path to a CSV with a header row and date,description,amount,type columns",
    dir_okay=False,
    file_okay=True,
    exists=False,  # handler reports a friendly error instead
    readable=True,
)


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Root command: load ``.env`` and configure logging once."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    limit: Annotated[
        int | None, typer.Option("--limit", "-n", min=1, help="Show at most N rows.")
    ] = None,
) -> None:
    """Print ledger rows, newest first, tab-separated."""

    rows = _runtime(ctx).store.snapshot()
    if limit is not None:
        rows = rows[:limit]
    for tx in rows:
        typer.echo(_format_row(tx))


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    when: Annotated[str, typer.Argument(metavar="DATE", help="YYYY-MM-DD")],
    description: Annotated[str, typer.Argument()],
    amount: Annotated[str, typer.Argument(help="Positive amount, e.g. 12.50")],
    tx_type: Annotated[
        TransactionType, typer.Option("--type", case_sensitive=False)
    ] = TransactionType.DEBIT,
    category: Annotated[
        Category | None,
        typer.Option(case_sensitive=False, help="Skip the suggestion and use this category."),
    ] = None,
) -> None:
    """Add a transaction; the category is suggested when not given."""

    from .entry import EntryDraft

    rt = _runtime(ctx)
    draft = EntryDraft(date=_parse_date(when), amount=amount, type=tx_type)
    draft.set_description(description)
    if category is not None:
        draft.category = category
    else:
        draft.suggest_category(rt.gateway)
    try:
        created = draft.submit(rt.store)
    except EntryValidationError as e:
        raise _fail(e.message) from e
    typer.echo(_format_row(created))


@app.command("edit")
def edit_cmd(
    ctx: typer.Context,
    transaction_id: Annotated[str, typer.Argument(metavar="ID")],
    when: Annotated[str | None, typer.Option("--date", help="YYYY-MM-DD")] = None,
    description: Annotated[str | None, typer.Option()] = None,
    amount: Annotated[str | None, typer.Option()] = None,
    tx_type: Annotated[
        TransactionType | None, typer.Option("--type", case_sensitive=False)
    ] = None,
    category: Annotated[Category | None, typer.Option(case_sensitive=False)] = None,
) -> None:
    """Replace fields of an existing transaction."""

    from .entry import EntryDraft

    rt = _runtime(ctx)
    existing = rt.store.get(transaction_id)
    if existing is None:
        raise _fail("Transaction not found")
    draft = EntryDraft.for_edit(existing)
    if when is not None:
        draft.date = _parse_date(when)
    if description is not None:
        draft.set_description(description)
    if amount is not None:
        draft.amount = amount
    if tx_type is not None:
        draft.type = tx_type
    if category is not None:
        draft.category = category
    try:
        updated = draft.submit(rt.store)
    except EntryValidationError as e:
        raise _fail(e.message) from e
    typer.echo(_format_row(updated))


@app.command("delete")
def delete_cmd(
    ctx: typer.Context,
    transaction_id: Annotated[str, typer.Argument(metavar="ID")],
) -> None:
    """Delete a transaction; unknown ids are a no-op."""

    if _runtime(ctx).store.delete(transaction_id):
        typer.echo(f"Deleted {transaction_id}")
    else:
        typer.echo(f"No transaction with id {transaction_id}; nothing deleted.")


@app.command("import-csv")
def import_csv_cmd(
    ctx: typer.Context,
    csv_path: Annotated[Path, CSV_PATH_ARGUMENT],
) -> None:
    """Bulk-import transactions from a simple CSV file."""

    from .ingest import import_csv_file

    rt = _runtime(ctx)
    try:
        report = import_csv_file(
            csv_path, rt.store, rt.gateway, max_workers=rt.settings.import_max_workers
        )
    except FileNotFoundError as e:
        raise _fail(f"CSV file not found: {csv_path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise _fail(f"could not read {csv_path}: {e}") from e
    typer.echo(f"Imported {len(report.added)} transactions ({len(report.errors)} skipped).")
    for err in report.errors:
        typer.echo(f"  {err}", err=True)


@app.command("summary")
def summary_cmd(ctx: typer.Context) -> None:
    """Print debit spend by category, largest first."""

    from .analytics import spend_by_category

    points = spend_by_category(_runtime(ctx).store.snapshot())
    if not points:
        typer.echo("No expenses recorded.")
        return
    width = max(len(p.category) for p in points)
    for p in points:
        typer.echo(f"{p.category:<{width}}  {p.amount:>8}")


@app.command("forecast")
def forecast_cmd(ctx: typer.Context) -> None:
    """Print cumulative actual spend merged with the 30-day forecast."""

    from .dashboard import DashboardView

    rt = _runtime(ctx)
    view = DashboardView(rt.store, rt.gateway)
    try:
        series = view.refresh_forecast() or []
    finally:
        view.close()
    typer.echo("date\tactual\tforecast")
    for point in series:
        actual = "" if point.actual is None else f"{point.actual:.2f}"
        forecast = "" if point.forecast is None else f"{point.forecast:.2f}"
        typer.echo(f"{point.date.isoformat()}\t{actual}\t{forecast}")


@app.command("insights")
def insights_cmd(ctx: typer.Context) -> None:
    """Print a short narrative about current spending."""

    rt = _runtime(ctx)
    typer.echo(rt.gateway.generate_insights(rt.store.snapshot()))


@app.command("suggest")
def suggest_cmd(
    ctx: typer.Context,
    description: Annotated[str, typer.Argument()],
) -> None:
    """Print the suggested category for a description."""

    typer.echo(_runtime(ctx).gateway.suggest_category(description))


@app.command("chat")
def chat_cmd(ctx: typer.Context) -> None:
    """Ask questions about your transactions interactively."""

    from .term_ui import run_chat

    rt = _runtime(ctx)
    if not sys.stdin.isatty():
        _logger.warning("chat:stdin_not_a_tty")
    run_chat(rt.gateway, rt.store, echo=typer.echo)


def main(argv: list[str] | None = None) -> int:
    """Console-script entry point; returns the process exit code."""

    try:
        rv = app(args=argv, standalone_mode=False)
    except typer.Abort:
        typer.echo("Aborted.", err=True)
        return 1
    except click.ClickException as e:
        e.show()
        return e.exit_code
    return rv if isinstance(rv, int) else 0


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    # Running as a module: `python -m personal_ledger.cli`
    sys.exit(main())
