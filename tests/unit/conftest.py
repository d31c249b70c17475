# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import hpack
import httpcore
import hyperframe.frame
import pytest

from httptime.config import ProbeSettings

HTTP11_RESPONSE = [
    b"HTTP/1.1 200 OK\r\n",
    b"Content-Type: plain/text\r\n",
    b"Content-Length: 13\r\n",
    b"\r\n",
    b"Hello, world!",
]


def http2_response(status: bytes = b"200", body: bytes = b"Hello, world!") -> list[bytes]:
    return [
        hyperframe.frame.SettingsFrame().serialize(),
        hyperframe.frame.HeadersFrame(
            stream_id=1,
            data=hpack.Encoder().encode(
                [
                    (b":status", status),
                    (b"content-type", b"plain/text"),
                ]
            ),
            flags=["END_HEADERS"],
        ).serialize(),
        hyperframe.frame.DataFrame(stream_id=1, data=body, flags=["END_STREAM"]).serialize(),
    ]


class RecordingStream(httpcore.AsyncMockStream):
    def __init__(self, buffer, http2=False, writes=None):
        super().__init__(buffer, http2=http2)
        self.writes = writes if writes is not None else []

    async def write(self, buffer, timeout=None):
        self.writes.append(buffer)


class RecordingBackend(httpcore.AsyncMockBackend):
    """Mock backend that remembers connect targets and written bytes."""

    def __init__(self, buffer, http2=False):
        super().__init__(buffer, http2=http2)
        self.connected = []
        self.writes = []

    async def connect_tcp(self, host, port, timeout=None, local_address=None, socket_options=None):
        self.connected.append((host, port))
        return RecordingStream(list(self._buffer), http2=self._http2, writes=self.writes)


class FakeResolver:
    def __init__(self, addresses=("10.0.0.1",)):
        self.addresses = list(addresses)
        self.calls = []

    async def __call__(self, host, port):
        self.calls.append((host, port))
        return list(self.addresses)


class TickClock:
    """Deterministic clock advancing one millisecond per reading."""

    def __init__(self, step_ns=1_000_000):
        self.now = 0
        self.step_ns = step_ns

    def __call__(self):
        self.now += self.step_ns
        return self.now


@pytest.fixture
def settings():
    return ProbeSettings(timeout=5.0, request_delay=0.0, user_agent="httptime-tests/1.0")


@pytest.fixture
def recording_backend():
    return RecordingBackend(HTTP11_RESPONSE)


@pytest.fixture
def backend_factory():
    return RecordingBackend


@pytest.fixture
def http2_frames():
    return http2_response


@pytest.fixture
def fake_resolver():
    return FakeResolver()


@pytest.fixture
def tick_clock():
    return TickClock()


class _Handler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def do_GET(self):  # noqa: N802
        self.server.request_lines.append(self.requestline)
        self.server.request_headers.append(dict(self.headers.items()))
        body = self.server.body
        self.send_response(self.server.status)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("X-Probe", "1")
        self.end_headers()
        self.wfile.write(body)

    def do_POST(self):  # noqa: N802
        length = int(self.headers.get("Content-Length") or 0)
        self.server.request_bodies.append(self.rfile.read(length))
        self.do_GET()

    def log_message(self, format, *args):  # noqa: A002
        pass


@pytest.fixture
def http_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    server.daemon_threads = True
    server.body = b"hello from the test server"
    server.status = 200
    server.request_lines = []
    server.request_headers = []
    server.request_bodies = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)
