# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Single-request prober.

``send_probe`` sends one request, records the lifecycle timings through the
recorder attached to the transport, and builds a ``ProbeResult`` once the
socket is closed. Writing the output file happens after the timings are
complete, so it never shows up in them.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import httpcore
import httpx

from ..config import ProbeSettings, load_settings
from ..errors import (
    ConstructionError,
    ErrorCategory,
    HttptimeError,
    OutputWriteError,
    ProbeTimeoutError,
    TransportError,
    categorize_exception,
    error_category_to_reason,
)
from ..output import build_output_payload, write_output
from ..timings import CONTENT_TRANSFER, FIRST_BYTE
from .backend import Resolver
from .headers import basic_authorization, format_response_prologue, normalize_headers
from .models import Credentials, ProbeRequest, ProbeResult, WriteMode
from .recorder import ProbePhaseRecorder
from .transports import TransportStrategy, select_strategy

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/x-www-form-urlencoded"
DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ProbeTarget:
    """Transport parameters resolved from a ``ProbeRequest``."""

    url: httpx.URL
    scheme: str
    host: str
    port: int
    path: str
    method: str
    headers: dict[str, str]
    body: bytes | None
    strategy: TransportStrategy


@dataclass
class _Exchange:
    response: httpx.Response
    body: bytearray | None = None
    raw_headers: list[tuple[str, str]] = field(default_factory=list)


def _encode_body(data: str | bytes | None) -> bytes | None:
    if not data:
        return None
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def resolve_target(request: ProbeRequest, settings: ProbeSettings | None = None) -> ProbeTarget:
    """Validate the request and derive everything needed to send it."""
    settings = settings or load_settings()
    try:
        url = httpx.URL(request.url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ConstructionError(f"Invalid URL {request.url!r}: {exc}") from exc
    scheme = url.scheme.lower()
    if not url.host:
        raise ConstructionError(f"URL {request.url!r} has no host")
    strategy = select_strategy(request.http_version, scheme)

    credentials = request.credentials
    if credentials is None and url.username:
        credentials = Credentials(url.username, url.password)
    if url.userinfo:
        url = url.copy_with(userinfo=b"")

    body = _encode_body(request.data)
    method = (request.method or ("POST" if body else "GET")).strip().upper()

    headers = normalize_headers(request.headers)
    if credentials is not None:
        headers["authorization"] = basic_authorization(credentials.username, credentials.password)
    if body is not None:
        headers.setdefault("content-type", DEFAULT_CONTENT_TYPE)
        headers["content-length"] = str(len(body))
    headers.setdefault("user-agent", settings.user_agent)
    headers = strategy.prepare_headers(headers)

    return ProbeTarget(
        url=url,
        scheme=scheme,
        host=url.host,
        port=url.port or DEFAULT_PORTS[scheme],
        path=url.raw_path.decode("ascii"),
        method=method,
        headers=headers,
        body=body,
        strategy=strategy,
    )


def normalize_http_version(value: str) -> str:
    """``"HTTP/1.1"`` -> ``"1.1"``, ``"HTTP/2"`` -> ``"2.0"``."""
    version = value.upper().removeprefix("HTTP/")
    return f"{version}.0" if "." not in version else version


async def _exchange(
    target: ProbeTarget,
    recorder: ProbePhaseRecorder,
    transport: httpx.AsyncBaseTransport,
    *,
    timeout: float | None,
    collect_body: bool,
) -> _Exchange:
    body = bytearray() if collect_body else None
    async with httpx.AsyncClient(transport=transport, trust_env=False, follow_redirects=False) as client:
        http_request = httpx.Request(
            target.method,
            target.url,
            headers=target.headers,
            content=target.body,
            extensions={
                "trace": recorder.trace,
                "timeout": httpx.Timeout(timeout).as_dict(),
            },
        )
        logger.debug("%s %s via %r", target.method, target.url, target.strategy)
        recorder.start()
        response = await client.send(http_request, stream=True)
        try:
            async for chunk in response.aiter_raw():
                recorder.mark(FIRST_BYTE)
                if body is not None:
                    body.extend(chunk)
            recorder.mark(CONTENT_TRANSFER)
        finally:
            await response.aclose()
    return _Exchange(response=response, body=body, raw_headers=response.headers.multi_items())


async def send_probe(
    request: ProbeRequest,
    *,
    write_mode: WriteMode | None = None,
    settings: ProbeSettings | None = None,
    network_backend: httpcore.AsyncNetworkBackend | None = None,
    resolver: Resolver | None = None,
    clock: Callable[[], int] | None = None,
) -> ProbeResult:
    """
    Send one request and return its result with the lifecycle timings.

    ``write_mode`` overrides the request's own mode for the output file; the
    orchestrator uses it to append on every probe after the first.
    """
    settings = settings or load_settings()
    target = resolve_target(request, settings)
    verify = settings.verify_tls if request.verify_tls is None else request.verify_tls
    timeout = settings.timeout if request.timeout is None else request.timeout
    if timeout is not None and timeout <= 0:
        timeout = None
    collect_body = bool(request.output_file) or request.return_response

    recorder = ProbePhaseRecorder(clock) if clock is not None else ProbePhaseRecorder()
    transport = target.strategy.build_transport(
        recorder,
        verify=verify,
        network_backend=network_backend,
        resolver=resolver,
    )

    try:
        coro = _exchange(target, recorder, transport, timeout=timeout, collect_body=collect_body)
        if timeout is not None:
            exchange = await asyncio.wait_for(coro, timeout)
        else:
            exchange = await coro
    except HttptimeError:
        raise
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        raise ProbeTimeoutError(f"Connection timed out after {timeout}s: {target.url}") from exc
    except (httpx.HTTPError, httpcore.ProtocolError, OSError) as exc:
        category = categorize_exception(exc)
        reason = error_category_to_reason(category)
        raise TransportError(f"{reason}: {exc}", category=category) from exc

    # The result is only built once the socket close has been observed.
    if not recorder.closed:
        raise TransportError(
            f"Connection to {target.url} ended without closing its socket",
            category=ErrorCategory.UNKNOWN_ERROR,
        )

    response = exchange.response
    http_version = normalize_http_version(response.http_version)

    output_error: str | None = None
    if request.output_file and exchange.body is not None:
        prologue = None
        if request.include_headers:
            prologue = format_response_prologue(
                http_version,
                response.status_code,
                response.reason_phrase,
                exchange.raw_headers,
            )
        mode = write_mode or request.write_mode
        try:
            await write_output(request.output_file, build_output_payload(bytes(exchange.body), prologue), mode)
        except OutputWriteError as exc:
            fail = settings.fail_on_output_error if request.fail_on_output_error is None else request.fail_on_output_error
            if fail:
                raise
            logger.warning("%s", exc)
            output_error = str(exc)

    return ProbeResult(
        http_version=http_version,
        status_code=response.status_code,
        status_message=response.reason_phrase,
        timings=recorder.timings,
        headers=dict(response.headers.items()) if request.include_headers else None,
        response=bytes(exchange.body) if request.return_response and exchange.body is not None else None,
        output_error=output_error,
    )


__all__ = ["ProbeTarget", "normalize_http_version", "resolve_target", "send_probe"]
