"""Shared fixtures: isolated home, SQLite store, and an in-memory network."""

from __future__ import annotations

import socket
from pathlib import Path
from threading import Event, Lock, Thread
from typing import Callable, Iterable, Mapping, Union

import httpx
import pytest

from oidc_scout.engine import DomainStore, Prober
from oidc_scout.infra import SQLiteManager
from oidc_scout.logging_conf import configure_logging

# Either (status, content type) or an httpx exception class to raise.
Behaviour = Union[tuple[int, str], type[Exception]]


class FakeNetwork:
    """Route requests by host to canned responses or raised httpx errors."""

    def __init__(self, routes: Mapping[str, Behaviour] | None = None) -> None:
        self.routes: dict[str, Behaviour] = dict(routes or {})
        self.calls: list[str] = []
        self.requests: list[httpx.Request] = []
        self._lock = Lock()
        self.before_response: Callable[[httpx.Request], None] | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.calls.append(request.url.host)
            self.requests.append(request)
        if self.before_response is not None:
            self.before_response(request)
        behaviour = self.routes.get(request.url.host, (404, "text/html"))
        if isinstance(behaviour, type) and issubclass(behaviour, Exception):
            raise behaviour("simulated failure", request=request)
        status, content_type = behaviour
        return httpx.Response(status, headers={"Content-Type": content_type}, request=request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def prober(self, timeout: float = 1.0) -> Prober:
        return Prober(timeout, transport=self.transport)


class StallingPeer:
    """Local TCP peer that accepts connections and never finishes a TLS handshake.

    With ``trickle`` set it sends the header of an oversized TLS record and then
    one byte every ``trickle`` seconds, so no single read ever waits long.
    Without it the peer stays silent.
    """

    def __init__(self, trickle: float | None = None) -> None:
        self.trickle = trickle
        self._stop = Event()
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._listener.settimeout(0.1)
        self._thread = Thread(target=self._serve, name="stalling-peer", daemon=True)
        self._connections: list[socket.socket] = []

    @property
    def domain(self) -> str:
        return f"127.0.0.1:{self._listener.getsockname()[1]}"

    def start(self) -> "StallingPeer":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        self._thread.join(timeout=5)
        for conn in self._connections:
            conn.close()
        self._listener.close()

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            self._connections.append(conn)
            if self.trickle is not None:
                Thread(target=self._trickle, args=(conn,), daemon=True).start()

    def _trickle(self, conn: socket.socket) -> None:
        # handshake record announcing a 16 KiB body
        payload = b"\x16\x03\x03\x40\x00" + b"\x00" * 16384
        for byte in payload:
            if self._stop.wait(self.trickle):
                return
            try:
                conn.sendall(bytes([byte]))
            except OSError:
                return


@pytest.fixture(scope="session", autouse=True)
def _session_logging(tmp_path_factory: pytest.TempPathFactory) -> None:
    configure_logging(log_dir=tmp_path_factory.mktemp("logs"))


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("OIDC_SCOUT_HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def storage() -> Iterable[SQLiteManager]:
    manager = SQLiteManager()
    yield manager
    manager.close_all()


@pytest.fixture
def store(tmp_path: Path, storage: SQLiteManager) -> DomainStore:
    return DomainStore(storage, tmp_path / "domains.db")


@pytest.fixture
def fake_network() -> Callable[..., FakeNetwork]:
    def _builder(routes: Mapping[str, Behaviour] | None = None) -> FakeNetwork:
        return FakeNetwork(routes)

    return _builder


@pytest.fixture
def domain_file(tmp_path: Path) -> Callable[[Iterable[str]], Path]:
    def _writer(lines: Iterable[str], name: str = "domains.txt") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _writer


@pytest.fixture
def stalling_peer(monkeypatch: pytest.MonkeyPatch) -> Iterable[Callable[..., StallingPeer]]:
    # the peer is reached directly, never through a proxy from the environment
    for name in ("HTTPS_PROXY", "https_proxy", "ALL_PROXY", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    peers: list[StallingPeer] = []

    def _start(trickle: float | None = None) -> StallingPeer:
        peer = StallingPeer(trickle).start()
        peers.append(peer)
        return peer

    yield _start
    for peer in peers:
        peer.stop()
