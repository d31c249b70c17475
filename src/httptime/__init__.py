# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
httptime package entrypoint.

httptime times a single HTTP/1.0, HTTP/1.1 or HTTP/2 request phase by phase
(socket open, DNS lookup, TCP connect, TLS handshake, first byte, content
transfer, socket close) and can repeat the measurement and average the
results. Timings are monotonic ``(seconds, nanoseconds)`` pairs measured from
the start of each request.
"""

from .config import ProbeSettings, load_settings
from .errors import (
    ConsistencyError,
    ConstructionError,
    ErrorCategory,
    HttptimeError,
    InsecureSchemeError,
    OutputWriteError,
    ProbeTimeoutError,
    TransportError,
)
from .http import Credentials, ProbeRequest, ProbeResult, WriteMode, send_probe
from .log import setup_logging
from .runtime import average_results, measure, nettime
from .timings import (
    PHASES,
    Timestamp,
    compute_average_durations,
    compute_durations,
    create_timings_from_durations,
    get_duration,
    get_milliseconds,
    timings_to_milliseconds,
)
from .version import __version__

__all__ = [
    "PHASES",
    "ConsistencyError",
    "ConstructionError",
    "Credentials",
    "ErrorCategory",
    "HttptimeError",
    "InsecureSchemeError",
    "OutputWriteError",
    "ProbeRequest",
    "ProbeResult",
    "ProbeSettings",
    "ProbeTimeoutError",
    "Timestamp",
    "TransportError",
    "WriteMode",
    "average_results",
    "compute_average_durations",
    "compute_durations",
    "create_timings_from_durations",
    "get_duration",
    "get_milliseconds",
    "load_settings",
    "measure",
    "nettime",
    "send_probe",
    "setup_logging",
    "timings_to_milliseconds",
    "__version__",
]
