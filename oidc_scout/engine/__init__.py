"""Engine components orchestrating lookup → probe → sink → report."""

from .probe import Classification, ProbeOutcome, Prober, well_known_url
from .sink import ResultSink
from .store import DomainRecord, DomainStore
from .worker_pool import WorkerPool

__all__ = [
    "Classification",
    "DomainRecord",
    "DomainStore",
    "ProbeOutcome",
    "Prober",
    "ResultSink",
    "WorkerPool",
    "well_known_url",
]
