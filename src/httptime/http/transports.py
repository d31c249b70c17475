# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transport strategies for the supported HTTP versions."""

from __future__ import annotations

import httpcore
import httpx

from ..errors import ConstructionError, InsecureSchemeError
from .backend import Resolver, TimedNetworkBackend
from .models import HTTP_VERSIONS
from .recorder import ProbePhaseRecorder


class TimedTransport(httpx.AsyncHTTPTransport):
    """
    httpx transport whose connection pool opens sockets through a
    ``TimedNetworkBackend``.

    One transport serves one probe; its pool holds a single connection that
    is closed together with the transport.
    """

    def __init__(
        self,
        recorder: ProbePhaseRecorder,
        *,
        verify: bool = True,
        http1: bool = True,
        http2: bool = False,
        force_http10: bool = False,
        network_backend: httpcore.AsyncNetworkBackend | None = None,
        resolver: Resolver | None = None,
    ):
        super().__init__(verify=verify, http1=http1, http2=http2, trust_env=False)
        self._pool = httpcore.AsyncConnectionPool(
            ssl_context=httpx.create_ssl_context(verify=verify, trust_env=False),
            max_connections=1,
            http1=http1,
            http2=http2,
            network_backend=TimedNetworkBackend(
                recorder,
                inner=network_backend,
                resolver=resolver,
                force_http10=force_http10,
            ),
        )


class TransportStrategy:
    """Builds the transport and request headers for one HTTP version."""

    http_version = "1.1"
    http1 = True
    http2 = False
    force_http10 = False

    def validate(self, scheme: str) -> None:
        if scheme not in ("http", "https"):
            raise ConstructionError(f'Unsupported URL scheme "{scheme}:"')

    def prepare_headers(self, headers: dict[str, str]) -> dict[str, str]:
        # No connection reuse: the socket closes as soon as the response is read.
        if "connection" not in headers:
            headers["connection"] = "close"
        return headers

    def build_transport(
        self,
        recorder: ProbePhaseRecorder,
        *,
        verify: bool = True,
        network_backend: httpcore.AsyncNetworkBackend | None = None,
        resolver: Resolver | None = None,
    ) -> TimedTransport:
        return TimedTransport(
            recorder,
            verify=verify,
            http1=self.http1,
            http2=self.http2,
            force_http10=self.force_http10,
            network_backend=network_backend,
            resolver=resolver,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} HTTP/{self.http_version}>"


class Http11Strategy(TransportStrategy):
    pass


class Http10Strategy(Http11Strategy):
    """HTTP/1.1 transport that advertises HTTP/1.0 in the request line."""

    http_version = "1.0"
    force_http10 = True


class Http2Strategy(TransportStrategy):
    http_version = "2.0"
    http1 = False
    http2 = True

    def validate(self, scheme: str) -> None:
        super().validate(scheme)
        if scheme != "https":
            raise InsecureSchemeError('HTTP/2 supports only the "https:" protocol.')

    def prepare_headers(self, headers: dict[str, str]) -> dict[str, str]:
        return headers


STRATEGIES: dict[str, type[TransportStrategy]] = {
    "1.0": Http10Strategy,
    "1.1": Http11Strategy,
    "2.0": Http2Strategy,
}


def select_strategy(http_version: str | None, scheme: str) -> TransportStrategy:
    """Pick and validate the strategy before any network activity happens."""
    version = str(http_version or "1.1").strip()
    if version == "2":
        version = "2.0"
    strategy_cls = STRATEGIES.get(version)
    if strategy_cls is None:
        supported = ", ".join(HTTP_VERSIONS)
        raise ConstructionError(f'Unsupported HTTP version "{http_version}", expected one of {supported}')
    strategy = strategy_cls()
    strategy.validate(scheme)
    return strategy


__all__ = [
    "Http10Strategy",
    "Http11Strategy",
    "Http2Strategy",
    "STRATEGIES",
    "TimedTransport",
    "TransportStrategy",
    "select_strategy",
]
