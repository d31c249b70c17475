# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-probe lifecycle state.

A ``ProbePhaseRecorder`` belongs to exactly one in-flight probe. Transport
observers call ``mark`` as lifecycle signals arrive; the first signal for a
phase fixes its timestamp and later duplicates are ignored. The progression
is ``IDLE -> SOCKET_OPEN -> [DNS_LOOKUP] -> TCP_CONNECTED -> [TLS_HANDSHAKE]
-> FIRST_BYTE -> CONTENT_TRANSFERRED -> CLOSED``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from ..timings import (
    CONTENT_TRANSFER,
    DNS_LOOKUP,
    FIRST_BYTE,
    SOCKET_CLOSE,
    SOCKET_OPEN,
    TCP_CONNECTION,
    TLS_HANDSHAKE,
    Timestamp,
    TimingVector,
)

logger = logging.getLogger(__name__)


class ProbeState(str, Enum):
    IDLE = "idle"
    SOCKET_OPEN = SOCKET_OPEN
    DNS_LOOKUP = DNS_LOOKUP
    TCP_CONNECTED = TCP_CONNECTION
    TLS_HANDSHAKE = TLS_HANDSHAKE
    FIRST_BYTE = FIRST_BYTE
    CONTENT_TRANSFERRED = CONTENT_TRANSFER
    CLOSED = SOCKET_CLOSE


class ProbePhaseRecorder:
    """Collects the timing vector of a single probe."""

    def __init__(self, clock: Callable[[], int] = time.perf_counter_ns):
        self._clock = clock
        self._origin: int | None = None
        self._timings: TimingVector = {}
        self._request_sent = False
        self.state = ProbeState.IDLE

    def start(self) -> int:
        if self._origin is None:
            self._origin = self._clock()
        return self._origin

    def mark(self, phase: str) -> bool:
        """Record ``phase`` now unless it was already recorded."""
        if phase in self._timings:
            return False
        origin = self.start()
        self._timings[phase] = Timestamp.from_ns(max(0, self._clock() - origin))
        self.state = ProbeState(phase)
        logger.debug("%s at %s", phase, tuple(self._timings[phase]))
        return True

    def request_sent(self) -> None:
        self._request_sent = True

    def data_received(self) -> None:
        # Connection-level reads before the request went out are not response data.
        if self._request_sent:
            self.mark(FIRST_BYTE)

    async def trace(self, event_name: str, info: dict[str, Any]) -> None:  # noqa: ARG002
        """
        httpcore ``trace`` extension callback.

        HTTP/1.x reports the first byte on the first socket read after the
        request went out. An HTTP/2 socket also carries connection frames
        (SETTINGS, WINDOW_UPDATE), so there the first byte is the arrival of
        the response headers.
        """
        if event_name == "http11.send_request_body.complete":
            self.request_sent()
        elif event_name == "http2.receive_response_headers.complete":
            self.mark(FIRST_BYTE)
        elif event_name.endswith("receive_response_body.complete"):
            self.mark(CONTENT_TRANSFER)

    @property
    def closed(self) -> bool:
        return SOCKET_CLOSE in self._timings

    @property
    def timings(self) -> TimingVector:
        return dict(self._timings)


__all__ = ["ProbePhaseRecorder", "ProbeState"]
