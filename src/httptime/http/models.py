# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe request/result data models used across httptime."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Union

from ..timings import TimingVector

HeaderInput = Union[Mapping[str, str], Sequence[str]]

HTTP_VERSIONS = ("1.0", "1.1", "2.0")


class WriteMode(str, Enum):
    """How the output file is opened for one probe."""

    TRUNCATE = "truncate"
    APPEND = "append"

    @property
    def file_mode(self) -> str:
        return "ab" if self is WriteMode.APPEND else "wb"


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = ""


@dataclass(frozen=True)
class ProbeRequest:
    """
    Immutable description of the request(s) to time.

    Fields left as ``None`` fall back to ``ProbeSettings`` when the probe runs.
    """

    url: str
    method: str | None = None
    headers: HeaderInput | None = None
    data: str | bytes | None = None
    http_version: str = "1.1"
    verify_tls: bool | None = None
    credentials: Credentials | None = None
    timeout: float | None = None
    output_file: str | os.PathLike[str] | None = None
    write_mode: WriteMode = WriteMode.TRUNCATE
    include_headers: bool = False
    return_response: bool = False
    fail_on_output_error: bool | None = None
    request_count: int = 1
    request_delay: float | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProbeRequest:
        """Build a request from a dict, ignoring keys that are not request fields."""
        known = {item.name for item in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        credentials = values.get("credentials")
        if isinstance(credentials, Mapping):
            values["credentials"] = Credentials(
                username=str(credentials.get("username") or ""),
                password=str(credentials.get("password") or ""),
            )
        write_mode = values.get("write_mode")
        if isinstance(write_mode, str):
            values["write_mode"] = WriteMode(write_mode)
        return cls(**values)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one probe, or the average of several."""

    http_version: str
    status_code: int
    status_message: str
    timings: TimingVector = field(default_factory=dict)
    headers: dict[str, str] | None = None
    response: bytes | None = None
    output_error: str | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping in which optional attributes are absent rather than null."""
        data: dict[str, Any] = {
            "httpVersion": self.http_version,
            "statusCode": self.status_code,
            "statusMessage": self.status_message,
            "timings": {phase: list(value) for phase, value in self.timings.items()},
        }
        if self.headers is not None:
            data["headers"] = dict(self.headers)
        if self.response is not None:
            data["response"] = self.response
        if self.output_error is not None:
            data["outputError"] = self.output_error
        return data


__all__ = [
    "Credentials",
    "HTTP_VERSIONS",
    "HeaderInput",
    "ProbeRequest",
    "ProbeResult",
    "WriteMode",
]
