"""Human-readable per-domain report lines and run summary."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Iterable

from rich import box
from rich.console import Console
from rich.table import Table

from ..engine.probe import Classification, ProbeOutcome


@dataclass
class RunSummary:
    found: int = 0
    not_found: int = 0
    transport_error: int = 0
    timed_out: int = 0
    known: int = 0

    @property
    def probed(self) -> int:
        return self.found + self.not_found + self.transport_error + self.timed_out

    def as_dict(self) -> dict[str, int]:
        return {
            "found": self.found,
            "not_found": self.not_found,
            "transport_error": self.transport_error,
            "timed_out": self.timed_out,
            "known": self.known,
        }


_LINE_TEMPLATES = {
    Classification.FOUND: ("{domain}: OIDC endpoint found ✅", "green"),
    Classification.NOT_FOUND: ("{domain}: no OIDC endpoint ❌", "red"),
    Classification.TRANSPORT_ERROR: ("{domain}: no OIDC endpoint ❌", "red"),
    Classification.TIMED_OUT: ("{domain}: request timed out (skipped) ⏰", "yellow"),
}


def format_outcome(outcome: ProbeOutcome) -> str:
    template, _ = _LINE_TEMPLATES[outcome.classification]
    return template.format(domain=outcome.domain)


def format_known(domain: str, has_oidc: bool) -> str:
    return f"{domain}: already known (has_oidc={str(bool(has_oidc)).lower()})"


class ProbeReporter:
    """Print exactly one line per domain and keep running counts.

    ``already_known`` is called from worker threads while ``report`` runs on
    the consuming thread, so counters are guarded.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.summary = RunSummary()
        self._lock = Lock()

    def already_known(self, domain: str, has_oidc: bool) -> None:
        with self._lock:
            self.summary.known += 1
        self._print(format_known(domain, has_oidc), "dim")

    def report(self, outcome: ProbeOutcome) -> None:
        _, style = _LINE_TEMPLATES[outcome.classification]
        with self._lock:
            field = outcome.classification.value
            setattr(self.summary, field, getattr(self.summary, field) + 1)
        self._print(format_outcome(outcome), style)

    def consume(self, outcomes: Iterable[ProbeOutcome]) -> RunSummary:
        for outcome in outcomes:
            self.report(outcome)
        return self.summary

    def _print(self, line: str, style: str) -> None:
        self.console.print(line, style=style, markup=False, highlight=False, soft_wrap=True)


def render_summary_table(summary: RunSummary, parallel: int | None = None) -> Table:
    title = "Run summary"
    if parallel is not None:
        title += f" · parallel: {parallel}"
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("Outcome", style="cyan", no_wrap=True)
    table.add_column("Domains", justify="right")
    table.add_row("Endpoint found", str(summary.found), style="green")
    table.add_row("No endpoint", str(summary.not_found))
    table.add_row("Transport error", str(summary.transport_error))
    table.add_row("Timed out", str(summary.timed_out), style="yellow")
    table.add_row("Already known", str(summary.known), style="dim")
    return table


__all__ = [
    "ProbeReporter",
    "RunSummary",
    "format_known",
    "format_outcome",
    "render_summary_table",
]
