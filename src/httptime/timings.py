# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Timing vector utilities.

Every timing is a ``Timestamp`` of whole seconds plus nanoseconds, measured
from the start of a probe with a monotonic clock. A timing vector maps phase
names to timestamps in the order the phases occurred. The helpers here are
pure and can be used without sending any request.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import NamedTuple, Union

NS_PER_SECOND = 1_000_000_000
NS_PER_MILLISECOND = 1_000_000

SOCKET_OPEN = "socketOpen"
DNS_LOOKUP = "dnsLookup"
TCP_CONNECTION = "tcpConnection"
TLS_HANDSHAKE = "tlsHandshake"
FIRST_BYTE = "firstByte"
CONTENT_TRANSFER = "contentTransfer"
SOCKET_CLOSE = "socketClose"

PHASES = (
    SOCKET_OPEN,
    DNS_LOOKUP,
    TCP_CONNECTION,
    TLS_HANDSHAKE,
    FIRST_BYTE,
    CONTENT_TRANSFER,
    SOCKET_CLOSE,
)


class Timestamp(NamedTuple):
    seconds: int
    nanoseconds: int

    @classmethod
    def from_ns(cls, total: int) -> "Timestamp":
        seconds, nanoseconds = divmod(int(total), NS_PER_SECOND)
        return cls(seconds, nanoseconds)

    @property
    def total_ns(self) -> int:
        return self.seconds * NS_PER_SECOND + self.nanoseconds


ZERO = Timestamp(0, 0)

TimestampLike = Union[Timestamp, Sequence[int]]
TimingVector = dict[str, Timestamp]


def _as_timestamp(value: TimestampLike) -> Timestamp:
    if isinstance(value, Timestamp):
        return value
    seconds, nanoseconds = value
    return Timestamp(int(seconds), int(nanoseconds))


def _ordered_phases(phases: Iterable[str]) -> list[str]:
    """Known phases in lifecycle order, unknown ones after them as first seen."""
    seen = list(dict.fromkeys(phases))
    known = [phase for phase in PHASES if phase in seen]
    return known + [phase for phase in seen if phase not in PHASES]


def get_duration(start: TimestampLike, end: TimestampLike) -> Timestamp:
    """Return ``end - start``, borrowing a second when the nanoseconds underflow."""
    start_ts = _as_timestamp(start)
    end_ts = _as_timestamp(end)
    seconds = end_ts.seconds - start_ts.seconds
    nanoseconds = end_ts.nanoseconds - start_ts.nanoseconds
    if nanoseconds < 0:
        seconds -= 1
        nanoseconds += NS_PER_SECOND
    if seconds < 0:
        raise ValueError(f"End timestamp {tuple(end_ts)} precedes start timestamp {tuple(start_ts)}")
    return Timestamp(seconds, nanoseconds)


def get_milliseconds(duration: TimestampLike) -> int:
    """Convert a duration to whole milliseconds, rounding half up."""
    seconds, nanoseconds = _as_timestamp(duration)
    return seconds * 1000 + (nanoseconds + NS_PER_MILLISECOND // 2) // NS_PER_MILLISECOND


def compute_durations(timings: Mapping[str, TimestampLike], start: TimestampLike = ZERO) -> TimingVector:
    """Duration of every phase measured from ``start``."""
    return {phase: get_duration(start, value) for phase, value in timings.items()}


def compute_average_durations(runs: Iterable[Mapping[str, TimestampLike]]) -> TimingVector:
    """
    Average per-phase durations across several runs.

    A phase missing from a run is left out of that phase's mean instead of
    counting as zero. Means are floored to whole nanoseconds.
    """
    totals: dict[str, int] = {}
    counts: dict[str, int] = {}
    for run in runs:
        for phase, value in run.items():
            totals[phase] = totals.get(phase, 0) + _as_timestamp(value).total_ns
            counts[phase] = counts.get(phase, 0) + 1
    return {phase: Timestamp.from_ns(totals[phase] // counts[phase]) for phase in _ordered_phases(totals)}


def create_timings_from_durations(
    durations: Mapping[str, TimestampLike],
    base: TimestampLike = ZERO,
) -> TimingVector:
    """Turn durations back into absolute timestamps by adding them to ``base``."""
    base_ns = _as_timestamp(base).total_ns
    return {phase: Timestamp.from_ns(base_ns + _as_timestamp(value).total_ns) for phase, value in durations.items()}


def timings_to_milliseconds(timings: Mapping[str, TimestampLike]) -> dict[str, int]:
    return {phase: get_milliseconds(value) for phase, value in timings.items()}


__all__ = [
    "CONTENT_TRANSFER",
    "DNS_LOOKUP",
    "FIRST_BYTE",
    "PHASES",
    "SOCKET_CLOSE",
    "SOCKET_OPEN",
    "TCP_CONNECTION",
    "TLS_HANDSHAKE",
    "Timestamp",
    "TimingVector",
    "ZERO",
    "compute_average_durations",
    "compute_durations",
    "create_timings_from_durations",
    "get_duration",
    "get_milliseconds",
    "timings_to_milliseconds",
]
