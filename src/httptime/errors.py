# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class HttptimeError(Exception):
    """Base class for every error raised by httptime."""

    code: str | None = None


class ConstructionError(HttptimeError, ValueError):
    """The request cannot be built: bad URL, scheme, version or count."""


class InsecureSchemeError(ConstructionError):
    """HTTP/2 was requested for a target that is not served over TLS."""

    code = "ERR_INSECURE_SCHEME"


class TransportError(HttptimeError):
    """The request failed below HTTP: DNS, connect, TLS or protocol errors."""

    def __init__(self, message: str, *, category: ErrorCategory = ErrorCategory.UNKNOWN_ERROR):
        super().__init__(message)
        self.category = category


class ProbeTimeoutError(HttptimeError, TimeoutError):
    """The configured timeout elapsed before the connection was closed."""

    code = "ETIMEDOUT"


class OutputWriteError(HttptimeError):
    """Writing the response to the output file failed."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(message)
        self.path = path


class ConsistencyError(HttptimeError):
    """Averaging was requested over results with different status codes."""

    def __init__(self, status_codes: Iterable[int]):
        self.status_codes = list(dict.fromkeys(status_codes))
        codes = ", ".join(str(code) for code in self.status_codes)
        super().__init__(f"Cannot average responses with different status codes: {codes}")


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.
    """
    import socket
    import ssl as ssl_module

    import httpx

    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorCategory.TIMEOUT

    # httpx wraps the original exception; the cause tells DNS and TLS failures apart.
    cause = exc.__cause__ or exc.__context__
    if isinstance(exc, httpx.ConnectError) and cause is not None and cause is not exc:
        category = categorize_exception(cause)
        if category is not ErrorCategory.UNKNOWN_ERROR:
            return category

    if isinstance(exc, (ssl_module.SSLError, ssl_module.CertificateError)):
        return ErrorCategory.SSL_ERROR

    if isinstance(exc, (socket.gaierror, socket.herror)):
        return ErrorCategory.DNS_ERROR

    if isinstance(exc, (httpx.RemoteProtocolError, httpx.LocalProtocolError)):
        return ErrorCategory.PROTOCOL_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (ConnectionError, ConnectionRefusedError, ConnectionResetError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Connection timed out",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.PROTOCOL_ERROR: "HTTP protocol error",
        ErrorCategory.UNKNOWN_ERROR: "Network error during request",
        None: "",
    }
    return mapping.get(category, "Request failed due to network error")


__all__ = [
    "ConsistencyError",
    "ConstructionError",
    "ErrorCategory",
    "HttptimeError",
    "InsecureSchemeError",
    "OutputWriteError",
    "ProbeTimeoutError",
    "TransportError",
    "categorize_exception",
    "error_category_to_reason",
]
