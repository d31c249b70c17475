# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for httptime."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"httptime/{__version__}"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _optional_float_env(name: str, default: float | None) -> float | None:
    try:
        value = os.getenv(name)
        if value is None:
            return default
        parsed = float(value)
        return parsed if parsed > 0 else None
    except ValueError:
        return default


@dataclass
class ProbeSettings:
    """Defaults applied to probe requests that leave a field unset."""

    timeout: float | None = None
    request_delay: float = 100.0
    verify_tls: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    fail_on_output_error: bool = True

    @classmethod
    def from_env(cls) -> "ProbeSettings":
        """Create settings from environment variables (evaluated at call time)."""
        request_delay = _float_env("HTTPTIME_REQUEST_DELAY", cls.request_delay)
        if request_delay < 0:
            request_delay = cls.request_delay
        return cls(
            timeout=_optional_float_env("HTTPTIME_TIMEOUT", cls.timeout),
            request_delay=request_delay,
            verify_tls=_bool_env("HTTPTIME_VERIFY_TLS", cls.verify_tls),
            user_agent=os.getenv("HTTPTIME_USER_AGENT", cls.user_agent),
            fail_on_output_error=_bool_env("HTTPTIME_FAIL_ON_OUTPUT_ERROR", cls.fail_on_output_error),
        )


def load_settings() -> ProbeSettings:
    """Load probe settings from environment with sensible defaults."""
    return ProbeSettings.from_env()
