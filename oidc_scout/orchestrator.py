"""Batch orchestrator wiring the domain list, store, probe, sink and reporter."""

from __future__ import annotations

from pathlib import Path

import httpx
import structlog

from .config import ScoutConfig, normalise_prefix
from .engine import DomainStore, Prober, ResultSink, WorkerPool
from .engine.exporter import EndpointFileExporter
from .infra import SQLiteManager
from .logging_conf import component_logger
from .ui import ProbeReporter, RunSummary


def apply_prefix(domain: str, prefix: str | None) -> str:
    if prefix:
        return f"{prefix}.{domain}"
    return domain


def parse_domains(lines, prefix: str | None = None) -> list[str]:
    """Turn raw lines into work items: trimmed, blanks skipped, prefix joined."""

    domains: list[str] = []
    for raw in lines:
        domain = raw.strip()
        if not domain:
            continue
        domains.append(apply_prefix(domain, prefix))
    return domains


def load_domains(path: Path, prefix: str | None = None) -> list[str]:
    """Read a newline-delimited domain list; duplicates are kept on purpose."""

    with Path(path).open("r", encoding="utf-8") as stream:
        return parse_domains(stream, prefix)


class Orchestrator:
    """Central coordinator for one store: batch runs and record maintenance."""

    def __init__(
        self,
        config: ScoutConfig,
        storage: SQLiteManager | None = None,
        transport: httpx.BaseTransport | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.storage = storage or SQLiteManager()
        self.transport = transport
        self.logger = logger or component_logger("orchestrator")
        self.store = DomainStore(self.storage, config.store_path)

    def run_batch(
        self,
        domains_file: Path,
        *,
        prefix: str | None = None,
        output_path: Path | None = None,
        parallel: int | None = None,
        timeout: float | None = None,
        persist_transport_errors: bool | None = None,
        reporter: ProbeReporter | None = None,
    ) -> RunSummary:
        prefix = normalise_prefix(prefix) if prefix is not None else self.config.prefix
        output_path = output_path if output_path is not None else self.config.output_path
        parallel = parallel if parallel is not None else self.config.parallel
        timeout = timeout if timeout is not None else self.config.timeout
        if persist_transport_errors is None:
            persist_transport_errors = self.config.persist_transport_errors
        if parallel < 1:
            raise ValueError("parallel must be >= 1")

        domains = load_domains(domains_file, prefix)
        return self.run_domains(
            domains,
            output_path=output_path,
            parallel=parallel,
            timeout=timeout,
            persist_transport_errors=persist_transport_errors,
            reporter=reporter,
        )

    def run_domains(
        self,
        domains: list[str],
        *,
        output_path: Path | None,
        parallel: int,
        timeout: float,
        persist_transport_errors: bool = True,
        reporter: ProbeReporter | None = None,
    ) -> RunSummary:
        reporter = reporter or ProbeReporter()
        exporter = EndpointFileExporter(output_path) if output_path else None
        sink = ResultSink(
            self.store,
            exporter,
            persist_transport_errors=persist_transport_errors,
            logger=component_logger("sink"),
        )
        prober = Prober(
            timeout,
            user_agent=self.config.user_agent,
            verify_tls=self.config.verify_tls,
            follow_redirects=self.config.follow_redirects,
            transport=self.transport,
            logger=component_logger("probe"),
        )
        pool = WorkerPool(
            self.store,
            prober,
            sink,
            parallel=parallel,
            on_known=reporter.already_known,
            logger=component_logger("worker_pool"),
        )
        self.logger.info(
            "batch_started",
            domains=len(domains),
            parallel=parallel,
            timeout=timeout,
            store=str(self.config.store_path),
        )
        outcomes = pool.run(domains)
        try:
            summary = reporter.consume(outcomes)
        finally:
            # workers must be done with the prober before its client closes
            outcomes.close()
            prober.close()
            sink.close()
        self.logger.info("batch_finished", **summary.as_dict())
        return summary

    # ------------------------------------------------------------------
    def add_domain(self, domain: str, has_oidc: bool) -> str:
        domain = domain.strip()
        if not domain:
            raise ValueError("Domain is empty")
        self.store.upsert(domain, has_oidc)
        return domain

    def remove_domain(self, domain: str, has_oidc: bool | None = None) -> bool:
        return self.store.remove(domain.strip(), has_oidc)

    def list_domains(self, has_oidc: bool | None = None):
        return self.store.list_domains(has_oidc)

    def close(self) -> None:
        self.store.close()


__all__ = ["Orchestrator", "apply_prefix", "load_domains", "parse_domains"]
