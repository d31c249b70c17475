# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import importlib
import logging

import pytest

from httptime import log


@pytest.fixture
def basic_config_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(log.logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    yield calls
    for name in log.TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)


@pytest.fixture
def reload_log(monkeypatch):
    yield lambda: importlib.reload(log)
    monkeypatch.delenv("HTTPTIME_LOG_LEVEL", raising=False)
    importlib.reload(log)


def test_setup_logging_reads_env_level(monkeypatch, reload_log, basic_config_calls):
    monkeypatch.setenv("HTTPTIME_LOG_LEVEL", "debug")
    reload_log()

    log.setup_logging()

    assert basic_config_calls[-1]["level"] == logging.DEBUG
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_setup_logging_argument_overrides_env(basic_config_calls):
    log.setup_logging("error")
    assert basic_config_calls[-1]["level"] == logging.ERROR

    log.setup_logging("not-a-level")
    assert basic_config_calls[-1]["level"] == logging.WARNING


def test_transport_debug_keeps_library_loggers_verbose(basic_config_calls):
    log.setup_logging("DEBUG", transport_debug=True)

    assert logging.getLogger("httpx").level == logging.DEBUG
    assert logging.getLogger("httpcore").level == logging.DEBUG
