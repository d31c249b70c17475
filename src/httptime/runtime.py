# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Run one or several timed requests and fold their results."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Union

import httpcore

from .config import ProbeSettings, load_settings
from .errors import ConsistencyError, ConstructionError
from .http.backend import Resolver
from .http.models import ProbeRequest, ProbeResult, WriteMode
from .http.probe import send_probe
from .timings import compute_average_durations, compute_durations, create_timings_from_durations

logger = logging.getLogger(__name__)

RequestInput = Union[ProbeRequest, Mapping[str, Any], str]


def coerce_request(request: RequestInput) -> ProbeRequest:
    """Accept a ``ProbeRequest``, a mapping of its fields, or a bare URL."""
    if isinstance(request, ProbeRequest):
        return request
    if isinstance(request, str):
        return ProbeRequest(url=request)
    if isinstance(request, Mapping):
        return ProbeRequest.from_mapping(request)
    raise ConstructionError(f"Unsupported request type: {type(request).__name__}")


async def nettime(
    request: RequestInput,
    *,
    settings: ProbeSettings | None = None,
    network_backend: httpcore.AsyncNetworkBackend | None = None,
    resolver: Resolver | None = None,
) -> ProbeResult | list[ProbeResult]:
    """
    Time ``request``.

    A request count of one returns a single result. Larger counts send the
    request that many times, one after the other, pausing ``request_delay``
    milliseconds between them, and return every result in order. The first
    probe writes the output file with the request's own write mode and the
    following ones append to it. Any error ends the whole run.
    """
    probe_request = coerce_request(request)
    settings = settings or load_settings()
    count = probe_request.request_count
    if not isinstance(count, int) or count < 1:
        raise ConstructionError(f"Request count must be a positive integer, got {count!r}")

    if count == 1:
        return await send_probe(
            probe_request,
            settings=settings,
            network_backend=network_backend,
            resolver=resolver,
        )

    delay = settings.request_delay if probe_request.request_delay is None else probe_request.request_delay
    write_mode = probe_request.write_mode
    results: list[ProbeResult] = []
    for index in range(count):
        if index and delay > 0:
            await asyncio.sleep(delay / 1000)
        logger.debug("Request %d of %d", index + 1, count)
        result = await send_probe(
            probe_request,
            write_mode=write_mode,
            settings=settings,
            network_backend=network_backend,
            resolver=resolver,
        )
        results.append(result)
        write_mode = WriteMode.APPEND
    return results


def average_results(results: Sequence[ProbeResult]) -> ProbeResult:
    """
    Fold several results into one with averaged timings.

    Results must share a status code; the version and status line of the
    first result are kept.
    """
    if not results:
        raise ValueError("Cannot average an empty list of results")
    status_codes = [result.status_code for result in results]
    if len(set(status_codes)) > 1:
        raise ConsistencyError(status_codes)

    averaged = compute_average_durations(compute_durations(result.timings) for result in results)
    first = results[0]
    return ProbeResult(
        http_version=first.http_version,
        status_code=first.status_code,
        status_message=first.status_message,
        timings=create_timings_from_durations(averaged),
    )


def measure(
    request: RequestInput,
    *,
    average: bool = False,
    settings: ProbeSettings | None = None,
) -> ProbeResult | list[ProbeResult]:
    """Synchronous wrapper around ``nettime`` for scripts and callers without a loop."""
    outcome = asyncio.run(nettime(request, settings=settings))
    if average and isinstance(outcome, list):
        return average_results(outcome)
    return outcome


__all__ = ["average_results", "coerce_request", "measure", "nettime"]
