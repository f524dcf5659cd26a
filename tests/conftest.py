"""
Pytest configuration and shared fixtures for managed-http tests.

Provides:
1. Settings with a short timeout
2. Local servers: a threaded echo server, a server that never answers and a
   server that cuts the body short
3. A counting mock transport tracking opened vs. closed response streams
"""

import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx
import pytest

from managed_http.config.settings import Settings, get_settings


# =============================================================================
# Settings
# =============================================================================

@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fast_settings(monkeypatch) -> Settings:
    """Settings with a half-second timeout."""
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "0.5")
    return Settings()


# =============================================================================
# Local servers
# =============================================================================

class EchoHandler(BaseHTTPRequestHandler):
    """Answers every GET with "<path>|<request body>"."""

    protocol_version = "HTTP/1.1"

    def do_GET(self):
        length = int(self.headers.get("Content-Length", 0))
        payload = self.rfile.read(length) if length else b""
        body = self.path.encode() + b"|" + payload
        self.send_response(200)
        self.send_header("Content-Type", "application/octet-stream")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def echo_server():
    """Base URL of a threaded local echo server."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), EchoHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()


@pytest.fixture
def silent_server():
    """Base URL of a socket that accepts connections but never answers."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(16)
    host, port = sock.getsockname()
    yield f"http://{host}:{port}"
    sock.close()


@pytest.fixture
def truncating_server():
    """Base URL of a server declaring 100 body bytes but sending only 10."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    host, port = sock.getsockname()

    def serve_once():
        conn, _ = sock.accept()
        with conn:
            data = b""
            while b"\r\n\r\n" not in data:
                chunk = conn.recv(4096)
                if not chunk:
                    return
                data += chunk
            conn.sendall(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Length: 100\r\n"
                b"Connection: close\r\n"
                b"\r\n"
                b"0123456789"
            )

    thread = threading.Thread(target=serve_once, daemon=True)
    thread.start()
    yield f"http://{host}:{port}"
    sock.close()
    thread.join(timeout=1)


@pytest.fixture
def closed_port_url():
    """URL pointing at a port nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    host, port = sock.getsockname()
    sock.close()
    return f"http://{host}:{port}/"


# =============================================================================
# Counting transport
# =============================================================================

class StreamTracker:
    """Counts response streams handed out and closed."""

    def __init__(self) -> None:
        self.opened = 0
        self.closed = 0
        self._lock = threading.Lock()

    @property
    def open(self) -> int:
        return self.opened - self.closed

    def on_open(self) -> None:
        with self._lock:
            self.opened += 1

    def on_close(self) -> None:
        with self._lock:
            self.closed += 1


class TrackedStream(httpx.SyncByteStream):
    """Body stream that reports its close and can fail mid-body."""

    def __init__(self, tracker, chunks, fail_after=None, close_error=None):
        self._tracker = tracker
        self._chunks = chunks
        self._fail_after = fail_after
        self._close_error = close_error
        tracker.on_open()

    def __iter__(self):
        for index, chunk in enumerate(self._chunks):
            if self._fail_after is not None and index >= self._fail_after:
                raise httpx.ReadError("connection reset by peer")
            yield chunk

    def close(self):
        self._tracker.on_close()
        if self._close_error is not None:
            raise self._close_error


@pytest.fixture
def tracker() -> StreamTracker:
    return StreamTracker()


@pytest.fixture
def make_stream(tracker):
    """Factory for tracked body streams sharing the test's tracker."""

    def _make(chunks, fail_after=None, close_error=None):
        return TrackedStream(tracker, chunks, fail_after=fail_after, close_error=close_error)

    return _make
