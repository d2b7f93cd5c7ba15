"""Fixed-size worker pool draining a pre-filled domain queue."""

from __future__ import annotations

import queue
import sqlite3
from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import Thread
from typing import Callable, Iterator, Protocol, Sequence

import structlog

from .probe import ProbeOutcome
from .sink import ResultSink
from .store import DomainStore

KnownCallback = Callable[[str, bool], None]

_CLOSED = object()


class SupportsProbe(Protocol):
    def probe(self, domain: str) -> ProbeOutcome: ...


class WorkerPool:
    """Fan domains out to ``parallel`` workers and fan outcomes back in.

    Each worker runs lookup -> probe -> sink -> emit per domain. Domains
    already present in the store are handed to ``on_known`` right away and
    never reach the result stream. A supervisor thread joins every worker
    and then closes the stream, which ends iteration over :meth:`run`.
    """

    def __init__(
        self,
        store: DomainStore,
        prober: SupportsProbe,
        sink: ResultSink,
        parallel: int = 1,
        on_known: KnownCallback | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if parallel < 1:
            raise ValueError("parallel must be >= 1")
        self.store = store
        self.prober = prober
        self.sink = sink
        self.parallel = parallel
        self.on_known = on_known
        self.logger = logger or structlog.get_logger("oidc_scout").bind(component="worker_pool")

    def run(self, domains: Sequence[str]) -> Iterator[ProbeOutcome]:
        """Yield outcomes in completion order until every worker has exited.

        Closing the generator early drops the domains not yet started and
        blocks until the in-flight ones finish, so the prober and sink can be
        released safely afterwards.
        """

        work: queue.Queue[str] = queue.Queue(maxsize=max(len(domains), 1))
        for domain in domains:
            work.put_nowait(domain)
        results: queue.Queue = queue.Queue()

        executor = ThreadPoolExecutor(max_workers=self.parallel, thread_name_prefix="probe")
        futures = [executor.submit(self._drain, work, results) for _ in range(self.parallel)]
        supervisor = Thread(
            target=self._close_when_done,
            args=(executor, futures, results),
            name="probe-supervisor",
            daemon=True,
        )
        supervisor.start()

        closed = False
        try:
            while True:
                item = results.get()
                if item is _CLOSED:
                    closed = True
                    break
                yield item
        finally:
            if not closed:
                dropped = self._discard_pending(work)
                self.logger.warning("worker_pool_cancelled", dropped=dropped)
            supervisor.join()

    # ------------------------------------------------------------------
    @staticmethod
    def _discard_pending(work: queue.Queue) -> int:
        dropped = 0
        while True:
            try:
                work.get_nowait()
            except queue.Empty:
                return dropped
            dropped += 1

    def _drain(self, work: queue.Queue, results: queue.Queue) -> None:
        while True:
            try:
                domain = work.get_nowait()
            except queue.Empty:
                return
            try:
                outcome = self._process(domain)
            except Exception:  # noqa: BLE001
                self.logger.exception("worker_item_failed", domain=domain)
                continue
            if outcome is not None:
                results.put(outcome)

    def _process(self, domain: str) -> ProbeOutcome | None:
        known = self._lookup(domain)
        if known is not None:
            if self.on_known is not None:
                self.on_known(domain, known)
            return None
        outcome = self.prober.probe(domain)
        self.sink.record(outcome)
        return outcome

    def _lookup(self, domain: str) -> bool | None:
        try:
            return self.store.lookup(domain)
        except sqlite3.Error as exc:
            self.logger.warning("store_lookup_failed", domain=domain, error=str(exc))
            return None

    def _close_when_done(
        self, executor: ThreadPoolExecutor, futures: list[Future], results: queue.Queue
    ) -> None:
        try:
            wait(futures)
            executor.shutdown(wait=True)
            for future in futures:
                error = future.exception()
                if error is not None:
                    self.logger.error("worker_crashed", error=repr(error))
        finally:
            results.put(_CLOSED)


__all__ = ["KnownCallback", "SupportsProbe", "WorkerPool"]
