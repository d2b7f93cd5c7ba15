"""Route probe outcomes to the domain store and the endpoint log."""

from __future__ import annotations

import sqlite3
from threading import Lock

import structlog

from .exporter import BaseExporter
from .probe import Classification, ProbeOutcome
from .store import DomainStore


class ResultSink:
    """Persist non-timeout outcomes and append discovered endpoint URLs.

    The store serialises itself under its own lock while the exporter is
    guarded by ``_output_lock``, so writes to one never wait on the other.
    Write failures are logged and swallowed; the run carries on.
    """

    def __init__(
        self,
        store: DomainStore,
        exporter: BaseExporter | None = None,
        persist_transport_errors: bool = True,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.store = store
        self.exporter = exporter
        self.persist_transport_errors = persist_transport_errors
        self.logger = logger or structlog.get_logger("oidc_scout").bind(component="sink")
        self._output_lock = Lock()

    def should_record(self, outcome: ProbeOutcome) -> bool:
        if outcome.classification is Classification.TIMED_OUT:
            return False
        if outcome.classification is Classification.TRANSPORT_ERROR:
            return self.persist_transport_errors
        return True

    def record(self, outcome: ProbeOutcome) -> bool:
        """Apply the side effects for ``outcome``; return whether it was eligible."""

        if not self.should_record(outcome):
            return False
        try:
            self.store.upsert(outcome.domain, outcome.has_oidc)
        except sqlite3.Error as exc:
            self.logger.error(
                "persistence_write_failed",
                domain=outcome.domain,
                has_oidc=outcome.has_oidc,
                error=str(exc),
            )
        if outcome.has_oidc and outcome.endpoint_url and self.exporter is not None:
            self._append_endpoint(outcome)
        return True

    def _append_endpoint(self, outcome: ProbeOutcome) -> None:
        with self._output_lock:
            try:
                self.exporter.export(outcome.endpoint_url)
            except OSError as exc:
                self.logger.error(
                    "output_write_failed",
                    domain=outcome.domain,
                    path=str(getattr(self.exporter, "path", "")),
                    error=str(exc),
                )

    def close(self) -> None:
        if self.exporter is None:
            return
        with self._output_lock:
            try:
                self.exporter.close()
            except OSError as exc:
                self.logger.error("output_write_failed", error=str(exc))


__all__ = ["ResultSink"]
