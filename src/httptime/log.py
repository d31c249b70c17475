# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for httptime."""

from __future__ import annotations

import logging
import os

DEFAULT_LOG_LEVEL = os.getenv("HTTPTIME_LOG_LEVEL", "WARNING").upper()

# httpx/httpcore log every trace event at DEBUG, which drowns the phase log.
TRANSPORT_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str | None = None, *, transport_debug: bool = False) -> None:
    """Configure standard logging; transport libraries stay at WARNING unless asked."""
    effective_level = getattr(logging, (level or DEFAULT_LOG_LEVEL).upper(), logging.WARNING)
    logging.basicConfig(
        level=effective_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    transport_level = effective_level if transport_debug else max(effective_level, logging.WARNING)
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)


__all__ = ["setup_logging"]
