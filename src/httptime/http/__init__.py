# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Timed HTTP transport exports."""

from .backend import TimedNetworkBackend, TimedNetworkStream, resolve_host
from .headers import format_response_prologue, normalize_headers, parse_header_line
from .models import Credentials, ProbeRequest, ProbeResult, WriteMode
from .probe import ProbeTarget, resolve_target, send_probe
from .recorder import ProbePhaseRecorder, ProbeState
from .transports import Http10Strategy, Http11Strategy, Http2Strategy, TimedTransport, select_strategy

__all__ = [
    "Credentials",
    "Http10Strategy",
    "Http11Strategy",
    "Http2Strategy",
    "ProbePhaseRecorder",
    "ProbeRequest",
    "ProbeResult",
    "ProbeState",
    "ProbeTarget",
    "TimedNetworkBackend",
    "TimedNetworkStream",
    "TimedTransport",
    "WriteMode",
    "format_response_prologue",
    "normalize_headers",
    "parse_header_line",
    "resolve_host",
    "resolve_target",
    "select_strategy",
    "send_probe",
]
