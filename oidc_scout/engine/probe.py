"""Single-shot HTTPS probe of a domain's OpenID Connect discovery document."""

from __future__ import annotations

import socket
import time
from dataclasses import dataclass
from enum import Enum
from threading import Lock, Timer

import httpx
import structlog

WELL_KNOWN_PATH = "/.well-known/openid-configuration"
JSON_CONTENT_TYPE = "application/json"


class Classification(str, Enum):
    """Outcome categories of one probe."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    TRANSPORT_ERROR = "transport_error"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True, slots=True)
class ProbeOutcome:
    """Result of probing one domain; never persisted as such."""

    domain: str
    classification: Classification
    endpoint_url: str | None = None
    status_code: int | None = None
    error: str | None = None

    @property
    def has_oidc(self) -> bool:
        return self.classification is Classification.FOUND

    @property
    def timed_out(self) -> bool:
        return self.classification is Classification.TIMED_OUT


def well_known_url(domain: str) -> str:
    return f"https://{domain}{WELL_KNOWN_PATH}"


def is_discovery_response(status_code: int, content_type: str) -> bool:
    return status_code == 200 and JSON_CONTENT_TYPE in content_type


class ExchangeDeadline:
    """Wall-clock limit for one request/response exchange.

    ``httpx.Timeout`` restarts its clock for every connect, read and write,
    so a peer that trickles bytes never trips it. This timer shuts the
    connection's socket down when the deadline passes, which makes the
    blocked read fail right away. It learns the socket through httpcore's
    ``trace`` request extension.
    """

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self._deadline = time.monotonic() + seconds
        self._lock = Lock()
        self._socket: socket.socket | None = None
        self._fired = False
        self._timer = Timer(seconds, self._expire)
        self._timer.daemon = True

    @property
    def expired(self) -> bool:
        return self._fired or time.monotonic() >= self._deadline

    def start(self) -> "ExchangeDeadline":
        self._timer.start()
        return self

    def trace(self, event_name: str, info: dict) -> None:
        if event_name != "connection.connect_tcp.complete":
            return
        stream = info.get("return_value")
        sock = stream.get_extra_info("socket") if stream is not None else None
        if sock is None:
            return
        with self._lock:
            if self._socket is not None:
                # Previous hop of a redirect chain.
                self._socket.close()
            # A duplicate descriptor stays valid after TLS wraps the original.
            self._socket = sock.dup()
            if self._fired:
                self._shutdown()

    def cancel(self) -> None:
        self._timer.cancel()
        with self._lock:
            if self._socket is not None:
                self._socket.close()
                self._socket = None

    def _expire(self) -> None:
        with self._lock:
            self._fired = True
            self._shutdown()

    def _shutdown(self) -> None:
        if self._socket is None:
            return
        try:
            self._socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already disconnected by the peer.
            pass


class Prober:
    """Issue exactly one bounded GET per domain and classify the exchange.

    The same client is shared by every worker thread; ``httpx.Client`` is
    safe for that. Only the status line and headers are consumed, the body
    is never read. Each exchange runs under an :class:`ExchangeDeadline`, and
    any exchange that outlives it is classified as timed out whatever the
    response said.
    """

    def __init__(
        self,
        timeout: float,
        *,
        user_agent: str | None = None,
        verify_tls: bool = True,
        follow_redirects: bool = True,
        transport: httpx.BaseTransport | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self.logger = logger or structlog.get_logger("oidc_scout").bind(component="probe")
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            # Fresh connection per exchange: the deadline shuts its socket down.
            limits=httpx.Limits(max_connections=None, max_keepalive_connections=0),
            follow_redirects=follow_redirects,
            verify=verify_tls,
            headers={"User-Agent": user_agent} if user_agent else None,
            transport=transport,
        )

    def probe(self, domain: str) -> ProbeOutcome:
        url = well_known_url(domain)
        deadline = ExchangeDeadline(self.timeout).start()
        try:
            with self._client.stream("GET", url, extensions={"trace": deadline.trace}) as response:
                status_code = response.status_code
                content_type = response.headers.get("Content-Type", "")
        except httpx.TimeoutException as exc:
            return self._timed_out(domain, type(exc).__name__)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            if deadline.expired:
                return self._timed_out(domain, "DeadlineExceeded")
            self.logger.info(
                "probe_transport_error",
                domain=domain,
                error=type(exc).__name__,
                detail=str(exc),
            )
            return ProbeOutcome(domain, Classification.TRANSPORT_ERROR, error=type(exc).__name__)
        finally:
            deadline.cancel()

        if deadline.expired:
            return self._timed_out(domain, "DeadlineExceeded")
        if is_discovery_response(status_code, content_type):
            self.logger.debug("probe_found", domain=domain, status=status_code)
            return ProbeOutcome(domain, Classification.FOUND, endpoint_url=url, status_code=status_code)
        self.logger.debug(
            "probe_not_found", domain=domain, status=status_code, content_type=content_type
        )
        return ProbeOutcome(domain, Classification.NOT_FOUND, status_code=status_code)

    def _timed_out(self, domain: str, error: str) -> ProbeOutcome:
        self.logger.info("probe_timed_out", domain=domain, error=error, timeout=self.timeout)
        return ProbeOutcome(domain, Classification.TIMED_OUT, error=error)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Prober":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "Classification",
    "ExchangeDeadline",
    "JSON_CONTENT_TYPE",
    "ProbeOutcome",
    "Prober",
    "WELL_KNOWN_PATH",
    "is_discovery_response",
    "well_known_url",
]
