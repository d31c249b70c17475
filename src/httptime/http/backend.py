# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Instrumented httpcore network backend.

httpcore opens every socket through a network backend, which makes it the
place where socket-level lifecycle signals can be observed: the backend
reports socket creation, name resolution and TCP connect, and the streams it
returns report the TLS handshake, incoming data and close.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
import ssl
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import httpcore

from ..timings import DNS_LOOKUP, SOCKET_CLOSE, SOCKET_OPEN, TCP_CONNECTION, TLS_HANDSHAKE
from .recorder import ProbePhaseRecorder

logger = logging.getLogger(__name__)

Resolver = Callable[[str, int], Awaitable[list[str]]]


def is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


async def resolve_host(host: str, port: int) -> list[str]:
    """Resolve ``host`` to its addresses, in resolver order, without duplicates."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    addresses = list(dict.fromkeys(str(info[4][0]) for info in infos))
    if not addresses:
        raise socket.gaierror(socket.EAI_NONAME, f"No addresses found for {host}")
    return addresses


def downgrade_request_line(buffer: bytes) -> bytes:
    """Rewrite an ``HTTP/1.1`` request line to ``HTTP/1.0``; other bytes pass through."""
    line_end = buffer.find(b"\r\n")
    if line_end < 0:
        return buffer
    request_line = buffer[:line_end]
    if not request_line.endswith(b" HTTP/1.1"):
        return buffer
    return request_line[: -len(b"1.1")] + b"1.0" + buffer[line_end:]


class TimedNetworkStream(httpcore.AsyncNetworkStream):
    """Stream wrapper reporting TLS, first received data and close."""

    def __init__(
        self,
        stream: httpcore.AsyncNetworkStream,
        recorder: ProbePhaseRecorder,
        *,
        force_http10: bool = False,
    ):
        self._stream = stream
        self._recorder = recorder
        self._force_http10 = force_http10
        self._head_written = False

    async def read(self, max_bytes: int, timeout: float | None = None) -> bytes:
        data = await self._stream.read(max_bytes, timeout)
        if data:
            self._recorder.data_received()
        return data

    async def write(self, buffer: bytes, timeout: float | None = None) -> None:
        if self._force_http10 and not self._head_written:
            buffer = downgrade_request_line(buffer)
        self._head_written = True
        await self._stream.write(buffer, timeout)

    async def aclose(self) -> None:
        try:
            await self._stream.aclose()
        finally:
            self._recorder.mark(SOCKET_CLOSE)

    async def start_tls(
        self,
        ssl_context: ssl.SSLContext,
        server_hostname: str | None = None,
        timeout: float | None = None,
    ) -> httpcore.AsyncNetworkStream:
        stream = await self._stream.start_tls(ssl_context, server_hostname, timeout)
        self._recorder.mark(TLS_HANDSHAKE)
        return TimedNetworkStream(stream, self._recorder, force_http10=self._force_http10)

    def get_extra_info(self, info: str) -> Any:
        return self._stream.get_extra_info(info)


class TimedNetworkBackend(httpcore.AsyncNetworkBackend):
    """Backend wrapper that resolves names itself so the lookup can be timed."""

    def __init__(
        self,
        recorder: ProbePhaseRecorder,
        *,
        inner: httpcore.AsyncNetworkBackend | None = None,
        resolver: Resolver | None = None,
        force_http10: bool = False,
    ):
        self._recorder = recorder
        self._inner = inner or httpcore.AnyIOBackend()
        self._resolver = resolver or resolve_host
        self._force_http10 = force_http10

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float | None = None,
        local_address: str | None = None,
        socket_options: Iterable[Any] | None = None,
    ) -> httpcore.AsyncNetworkStream:
        self._recorder.mark(SOCKET_OPEN)
        if is_ip_address(host):
            addresses = [host.strip("[]")]
        else:
            addresses = await self._resolver(host, port)
            if not addresses:
                raise socket.gaierror(socket.EAI_NONAME, f"No addresses found for {host}")
            self._recorder.mark(DNS_LOOKUP)
            logger.debug("Resolved %s to %s", host, ", ".join(addresses))

        last_error: Exception = httpcore.ConnectError(f"Cannot connect to {host}:{port}")
        for address in addresses:
            try:
                stream = await self._inner.connect_tcp(
                    address,
                    port,
                    timeout=timeout,
                    local_address=local_address,
                    socket_options=socket_options,
                )
            except (httpcore.ConnectError, OSError) as exc:
                logger.debug("Connecting to %s:%s failed: %s", address, port, exc)
                last_error = exc
                continue
            self._recorder.mark(TCP_CONNECTION)
            return TimedNetworkStream(stream, self._recorder, force_http10=self._force_http10)

        raise last_error

    async def sleep(self, seconds: float) -> None:
        await self._inner.sleep(seconds)


__all__ = [
    "Resolver",
    "TimedNetworkBackend",
    "TimedNetworkStream",
    "downgrade_request_line",
    "is_ip_address",
    "resolve_host",
]
