# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Writing received responses to an output file."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from .errors import OutputWriteError
from .http.models import WriteMode

logger = logging.getLogger(__name__)


def build_output_payload(body: bytes, prologue: bytes | None = None) -> bytes:
    return prologue + body if prologue else bytes(body)


def _write_file(path: Path, data: bytes, file_mode: str) -> None:
    with open(path, file_mode) as handle:
        handle.write(data)


async def write_output(
    path: str | os.PathLike[str],
    data: bytes,
    mode: WriteMode = WriteMode.TRUNCATE,
) -> None:
    """Write ``data`` in one go, truncating or appending; the file is never left open."""
    target = Path(path)
    logger.debug("Writing %d bytes to %s (%s)", len(data), target, mode.value)
    try:
        await asyncio.to_thread(_write_file, target, data, mode.file_mode)
    except OSError as exc:
        raise OutputWriteError(f"Writing {target} failed: {exc}", path=str(target)) from exc


__all__ = ["build_output_payload", "write_output"]
