# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header normalization utilities.

Request headers arrive either as a mapping or as ``"Name: value"`` lines
(the form a command line collects them in). Both are reduced to a dict with
trimmed, lowercase names so later lookups do not depend on caller casing.
"""

from __future__ import annotations

import base64
from collections.abc import Iterable, Mapping
from typing import Any

CRLF = "\r\n"


def parse_header_line(line: str) -> tuple[str, str] | None:
    """Split ``"Name: value"``; lines without a colon or a name are ignored."""
    name, colon, value = str(line).partition(":")
    if not colon:
        return None
    name = name.strip().lower()
    if not name:
        return None
    return name, value.strip()


def _coerce_header_items(headers: Any) -> Iterable[tuple[object, object]]:
    if not headers:
        return ()
    if isinstance(headers, Mapping):
        return headers.items()
    if isinstance(headers, (str, bytes)):
        headers = [headers]
    pairs: list[tuple[object, object]] = []
    for item in headers:
        if isinstance(item, bytes):
            item = item.decode("latin-1")
        if isinstance(item, str):
            parsed = parse_header_line(item)
            if parsed is not None:
                pairs.append(parsed)
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            pairs.append((item[0], item[1]))
    return pairs


def normalize_headers(headers: Any) -> dict[str, str]:
    """Return a lowercase-keyed copy of a header mapping or list of header lines."""
    out: dict[str, str] = {}
    for key, value in _coerce_header_items(headers):
        if key is None:
            continue
        name = str(key).strip().lower()
        if not name:
            continue
        out[name] = "" if value is None else str(value)
    return out


def basic_authorization(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def format_response_prologue(
    http_version: str,
    status_code: int,
    status_message: str,
    headers: Iterable[tuple[str, str]] = (),
) -> bytes:
    """Status line and header block framed like a raw HTTP response, blank line included."""
    lines = [f"HTTP/{http_version} {status_code} {status_message}"]
    lines.extend(f"{name}: {value}" for name, value in headers)
    return (CRLF.join(lines) + CRLF + CRLF).encode("latin-1", errors="replace")


__all__ = [
    "basic_authorization",
    "format_response_prologue",
    "normalize_headers",
    "parse_header_line",
]
