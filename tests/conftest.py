"""
pytest configuration and fixtures.
"""

import asyncio
import http.client
import os
import threading
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import ServerConfig, StaticServer
from staticserver.http import HTTPRequest


DATA_SIZE = 1000
DATA_BYTES = bytes(i % 256 for i in range(DATA_SIZE))
APP_JS = b"console.log('hello from app.js');\n" * 64


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """
    A small document root:

        index.html
        hello.txt
        data.bin          (1000 bytes)
        app.js            (compressible)
        logo.png
        docs/             (no index page)
            guide.html
            notes.txt
            api/
        with-index/
            index.html
    """
    (tmp_path / "index.html").write_bytes(b"<h1>Home</h1>")
    (tmp_path / "hello.txt").write_bytes(b"Hello, World!\n")
    (tmp_path / "data.bin").write_bytes(DATA_BYTES)
    (tmp_path / "app.js").write_bytes(APP_JS)
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 56)

    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "guide.html").write_bytes(b"<p>guide</p>")
    (docs / "notes.txt").write_bytes(b"notes")
    (docs / "api").mkdir()

    with_index = tmp_path / "with-index"
    with_index.mkdir()
    (with_index / "index.html").write_bytes(b"<h1>Section</h1>")

    return tmp_path


@pytest.fixture
def config(site: Path) -> ServerConfig:
    """Test configuration serving the site fixture."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root=str(site),
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def make_request():
    """Factory for HTTPRequest objects with lowercase header names."""
    def _make(path: str = "/", method: str = "GET", headers: dict = None,
              version: str = "HTTP/1.1") -> HTTPRequest:
        path, _, query = path.partition("?")
        return HTTPRequest(
            method=method,
            path=path,
            query=query,
            version=version,
            headers={k.lower(): v for k, v in (headers or {}).items()},
            client_address=("127.0.0.1", 54321),
        )
    return _make


def _drain(awaitable):
    async def _run():
        response = await awaitable
        body = response.body
        if response.stream is not None:
            body = b"".join([chunk async for chunk in response.stream])
        return response, body
    return asyncio.run(_run())


@pytest.fixture
def drain():
    """
    Await a handler coroutine and read its whole body in the same loop.

        response, body = drain(pipeline.respond(path, request))
    """
    return _drain


class LiveServer:
    """A StaticServer running on its own event loop in a background thread."""

    def __init__(self, config: ServerConfig):
        self.server = StaticServer(config)
        self.loop = asyncio.new_event_loop()
        self._ready = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_until_complete(self.server.start())
        self._ready.set()
        self.loop.run_forever()

        self.loop.run_until_complete(self.server.stop())
        pending = asyncio.all_tasks(self.loop)
        for task in pending:
            task.cancel()
        self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        self.loop.close()

    @property
    def port(self) -> int:
        return self.server.port

    def start(self):
        self._thread.start()
        if not self._ready.wait(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=5.0)

    def connect(self) -> http.client.HTTPConnection:
        return http.client.HTTPConnection("127.0.0.1", self.port, timeout=5)

    def request(self, method: str, path: str, headers: dict = None):
        """One request on a fresh connection. Returns (response, body)."""
        conn = self.connect()
        try:
            conn.request(method, path, headers=headers or {})
            response = conn.getresponse()
            return response, response.read()
        finally:
            conn.close()


@pytest.fixture
def live_server(config: ServerConfig) -> Generator[LiveServer, None, None]:
    """A running server on a free port, serving the site fixture."""
    server = LiveServer(config)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def live_server_factory(site: Path):
    """Start servers with custom settings; all are stopped after the test."""
    servers = []

    def _start(**overrides) -> LiveServer:
        settings = dict(host="127.0.0.1", port=0, root=str(site), log_level="WARNING")
        settings.update(overrides)
        server = LiveServer(ServerConfig(**settings))
        server.start()
        servers.append(server)
        return server

    yield _start

    for server in servers:
        server.stop()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every STATIC_* variable so config defaults apply."""
    for name in list(os.environ):
        if name.startswith("STATIC_"):
            monkeypatch.delenv(name)
    return monkeypatch
