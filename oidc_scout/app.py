"""Typer CLI entrypoint for oidc-scout."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, ScoutConfig
from .engine import DomainRecord
from .infra import SQLiteManager
from .logging_conf import MAIN_LOG_NAME, active_log_dir, configure_logging, tail_log
from .orchestrator import Orchestrator
from .ui import ProbeReporter, render_summary_table

app = typer.Typer(
    help="Discover OpenID Connect discovery endpoints across domain lists.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: ScoutConfig
    storage: SQLiteManager
    orchestrator: Orchestrator | None = None


def _fail(message: str) -> typer.Exit:
    console.print(message, style="red", markup=False, highlight=False)
    return typer.Exit(code=1)


def build_state(
    verbose: bool,
    db: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose, log_dir=repository.locator.logs_dir)
    config = repository.load_config(config_path)
    if db is not None:
        config = config.model_copy(update={"store_path": db})
    return AppState(repository=repository, config=config, storage=SQLiteManager())


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _get_orchestrator(ctx: typer.Context) -> Orchestrator:
    state = _get_state(ctx)
    if state.orchestrator is None:
        try:
            state.orchestrator = Orchestrator(state.config, state.storage)
        except (sqlite3.Error, OSError) as exc:
            raise _fail(f"Failed to open database {state.config.store_path}: {exc}")
    return state.orchestrator


def _clean_domain(domain: str) -> str:
    cleaned = domain.strip()
    if not cleaned:
        raise _fail("Domain is empty")
    return cleaned


def _list_label(valid: bool) -> str:
    return "valid" if valid else "invalid"


def _render_domains_table(title: str, records: Sequence[DomainRecord], style: str) -> Table:
    table = Table(title=f"{title} · {len(records)}", box=box.SIMPLE_HEAD)
    table.add_column("Domain", style=style, overflow="fold")
    table.add_column("Tested at", style="dim", no_wrap=True)
    for record in records:
        table.add_row(record.name, record.tested_at or "-")
    return table


app.add_typer(log_app, name="log", help="View log files.")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging on the console."),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database file (default: domains.db)."),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="YAML or JSON settings file."
    ),
) -> None:
    try:
        ctx.obj = build_state(verbose, db=db, config_path=config_path)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        raise _fail(f"Invalid configuration: {exc}")


@app.command("test", help="Probe every domain listed in FILE (one per line).")
def batch_test(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Path to file with domains to test."),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Prefix joined to each domain with '.'."),
    out: Optional[Path] = typer.Option(None, "--out", help="File to append discovered endpoint URLs to."),
    parallel: Optional[int] = typer.Option(
        None, "--parallel", "-p", min=1, help="Number of parallel probes (default: 1)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Timeout in seconds for each probe (default: 30)."
    ),
    retry_transport_errors: bool = typer.Option(
        False,
        "--retry-transport-errors",
        help="Do not store connection/DNS/TLS failures, so they are probed again next run.",
    ),
    quiet: bool = typer.Option(False, "--quiet", help="Skip the summary table."),
) -> None:
    if timeout is not None and timeout <= 0:
        raise typer.BadParameter("must be greater than 0", param_hint="--timeout")
    orchestrator = _get_orchestrator(ctx)
    state = _get_state(ctx)
    effective_parallel = parallel or state.config.parallel
    try:
        summary = orchestrator.run_batch(
            file,
            prefix=prefix,
            output_path=out,
            parallel=effective_parallel,
            timeout=timeout,
            persist_transport_errors=False if retry_transport_errors else None,
            reporter=ProbeReporter(console),
        )
    except (OSError, UnicodeDecodeError) as exc:
        raise _fail(f"Failed to open file {file}: {exc}")
    if not quiet:
        console.print(render_summary_table(summary, parallel=effective_parallel))


@app.command("list", help="List valid and invalid domains.")
def list_domains(ctx: typer.Context) -> None:
    orchestrator = _get_orchestrator(ctx)
    try:
        valid = orchestrator.list_domains(True)
        invalid = orchestrator.list_domains(False)
    except sqlite3.Error as exc:
        raise _fail(f"Query failed: {exc}")
    console.print(_render_domains_table("Valid domains", valid, "green"))
    console.print(_render_domains_table("Invalid domains", invalid, "red"))


def _add(ctx: typer.Context, domain: str, valid: bool) -> None:
    domain = _clean_domain(domain)
    orchestrator = _get_orchestrator(ctx)
    try:
        orchestrator.add_domain(domain, valid)
    except sqlite3.Error as exc:
        raise _fail(f"Failed to add domain: {exc}")
    console.print(f"Added {domain} to {_list_label(valid)} list", style="green", markup=False)


def _remove(ctx: typer.Context, domain: str, valid: bool | None) -> None:
    domain = _clean_domain(domain)
    orchestrator = _get_orchestrator(ctx)
    try:
        removed = orchestrator.remove_domain(domain, valid)
    except sqlite3.Error as exc:
        raise _fail(f"Failed to remove domain: {exc}")
    if valid is None:
        message = f"Removed {domain} from all lists" if removed else f"Domain {domain} not found"
    elif removed:
        message = f"Removed {domain} from {_list_label(valid)} list"
    else:
        message = f"Domain {domain} not found in {_list_label(valid)} list"
    console.print(message, style="green" if removed else "yellow", markup=False)


@app.command("add-valid", help="Add domain to the valid list.")
def add_valid(ctx: typer.Context, domain: str = typer.Argument(..., help="Domain name.")) -> None:
    _add(ctx, domain, True)


@app.command("add-invalid", help="Add domain to the invalid list.")
def add_invalid(ctx: typer.Context, domain: str = typer.Argument(..., help="Domain name.")) -> None:
    _add(ctx, domain, False)


@app.command("remove-valid", help="Remove domain from the valid list.")
def remove_valid(ctx: typer.Context, domain: str = typer.Argument(..., help="Domain name.")) -> None:
    _remove(ctx, domain, True)


@app.command("remove-invalid", help="Remove domain from the invalid list.")
def remove_invalid(ctx: typer.Context, domain: str = typer.Argument(..., help="Domain name.")) -> None:
    _remove(ctx, domain, False)


@app.command("remove", help="Remove domain from any list.")
def remove_any(ctx: typer.Context, domain: str = typer.Argument(..., help="Domain name.")) -> None:
    _remove(ctx, domain, None)


@log_app.command("show", help="Show the most recent lines of the main log.")
def log_show(
    tail: int = typer.Option(100, "--tail", min=1, help="Number of lines to show."),
) -> None:
    path = active_log_dir() / MAIN_LOG_NAME
    lines = tail_log(path, tail)
    if not lines:
        console.print(f"No log entries in {path}", style="dim", markup=False)
        return
    for line in lines:
        console.print(line.rstrip("\n"), markup=False, highlight=False, soft_wrap=True)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
