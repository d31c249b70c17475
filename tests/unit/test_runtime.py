# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio

import pytest

from httptime import runtime
from httptime.errors import ConsistencyError, ConstructionError
from httptime.http.models import Credentials, ProbeRequest, ProbeResult, WriteMode
from httptime.timings import Timestamp, get_milliseconds


def _result(status_code=200, first_byte_ms=10, dns=True):
    timings = {"socketOpen": Timestamp(0, 1_000_000)}
    if dns:
        timings["dnsLookup"] = Timestamp(0, 3_000_000)
    timings["tcpConnection"] = Timestamp(0, 5_000_000)
    timings["firstByte"] = Timestamp(0, first_byte_ms * 1_000_000)
    timings["contentTransfer"] = Timestamp(0, (first_byte_ms + 1) * 1_000_000)
    timings["socketClose"] = Timestamp(0, (first_byte_ms + 2) * 1_000_000)
    return ProbeResult(http_version="1.1", status_code=status_code, status_message="OK", timings=timings)


class FakeProbe:
    def __init__(self, results):
        self.results = iter(results)
        self.write_modes = []
        self.requests = []

    async def __call__(self, request, *, write_mode=None, settings=None, network_backend=None, resolver=None):
        self.requests.append(request)
        self.write_modes.append(write_mode)
        return next(self.results)


@pytest.fixture
def fake_probe(monkeypatch):
    def install(results):
        probe = FakeProbe(results)
        monkeypatch.setattr(runtime, "send_probe", probe)
        return probe

    return install


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []

    async def fake_sleep(seconds):
        recorded.append(seconds)

    monkeypatch.setattr(runtime.asyncio, "sleep", fake_sleep)
    return recorded


def test_single_request_returns_one_result(settings, fake_probe):
    probe = fake_probe([_result()])
    outcome = asyncio.run(runtime.nettime("http://example.com/", settings=settings))

    assert isinstance(outcome, ProbeResult)
    assert probe.write_modes == [None]
    assert probe.requests[0].url == "http://example.com/"


def test_repeated_requests_append_after_the_first(settings, fake_probe, sleeps):
    probe = fake_probe([_result(), _result(first_byte_ms=12), _result(first_byte_ms=14)])
    request = ProbeRequest(url="http://example.com/", request_count=3, request_delay=250)
    outcome = asyncio.run(runtime.nettime(request, settings=settings))

    assert isinstance(outcome, list)
    assert len(outcome) == 3
    assert [get_milliseconds(result.timings["firstByte"]) for result in outcome] == [10, 12, 14]
    assert probe.write_modes == [WriteMode.TRUNCATE, WriteMode.APPEND, WriteMode.APPEND]
    assert sleeps == [0.25, 0.25]


def test_repeated_requests_keep_an_explicit_append_mode(settings, fake_probe, sleeps):
    probe = fake_probe([_result(), _result()])
    request = ProbeRequest(url="http://example.com/", request_count=2, write_mode=WriteMode.APPEND)
    asyncio.run(runtime.nettime(request, settings=settings))

    assert probe.write_modes == [WriteMode.APPEND, WriteMode.APPEND]


def test_delay_defaults_to_settings(fake_probe, sleeps):
    fake_probe([_result(), _result()])
    settings = runtime.ProbeSettings(request_delay=100.0)
    asyncio.run(runtime.nettime(ProbeRequest(url="http://example.com/", request_count=2), settings=settings))

    assert sleeps == [0.1]


def test_zero_delay_does_not_sleep(settings, fake_probe, sleeps):
    fake_probe([_result(), _result()])
    asyncio.run(runtime.nettime(ProbeRequest(url="http://example.com/", request_count=2), settings=settings))

    assert sleeps == []


def test_error_ends_the_run(settings, monkeypatch):
    calls = []

    async def failing_probe(request, **kwargs):
        calls.append(request)
        if len(calls) == 2:
            raise ConstructionError("boom")
        return _result()

    monkeypatch.setattr(runtime, "send_probe", failing_probe)
    with pytest.raises(ConstructionError):
        asyncio.run(runtime.nettime(ProbeRequest(url="http://example.com/", request_count=4), settings=settings))
    assert len(calls) == 2


@pytest.mark.parametrize("count", [0, -1, 1.5])
def test_invalid_request_count(settings, count):
    with pytest.raises(ConstructionError):
        asyncio.run(runtime.nettime(ProbeRequest(url="http://example.com/", request_count=count), settings=settings))


def test_coerce_request_from_mapping():
    request = runtime.coerce_request(
        {
            "url": "http://example.com/",
            "credentials": {"username": "user"},
            "write_mode": "append",
            "unknown": True,
        }
    )

    assert request.credentials == Credentials("user", "")
    assert request.write_mode is WriteMode.APPEND


def test_coerce_request_rejects_other_types():
    with pytest.raises(ConstructionError):
        runtime.coerce_request(42)


def test_average_results():
    averaged = runtime.average_results([_result(first_byte_ms=10), _result(first_byte_ms=20, dns=False)])

    assert averaged.status_code == 200
    assert averaged.http_version == "1.1"
    assert get_milliseconds(averaged.timings["firstByte"]) == 15
    assert get_milliseconds(averaged.timings["dnsLookup"]) == 3
    assert averaged.headers is None
    assert averaged.response is None


def test_average_of_one_result_is_identity():
    result = _result()
    assert runtime.average_results([result]).timings == result.timings


def test_average_rejects_mixed_status_codes():
    with pytest.raises(ConsistencyError) as excinfo:
        runtime.average_results([_result(200), _result(200), _result(404)])

    assert excinfo.value.status_codes == [200, 404]
    assert str(excinfo.value) == "Cannot average responses with different status codes: 200, 404"


def test_average_rejects_empty_input():
    with pytest.raises(ValueError):
        runtime.average_results([])


def test_repeated_requests_write_the_file_once_per_response(settings, recording_backend, tmp_path):
    target = tmp_path / "out.txt"
    target.write_bytes(b"stale")
    request = ProbeRequest(url="http://127.0.0.1/", request_count=2, output_file=target)
    results = asyncio.run(runtime.nettime(request, settings=settings, network_backend=recording_backend))

    assert [result.status_code for result in results] == [200, 200]
    assert target.read_bytes() == b"Hello, world!Hello, world!"


def test_repeated_requests_write_prologue_per_response(settings, recording_backend, tmp_path):
    target = tmp_path / "out.txt"
    request = ProbeRequest(url="http://127.0.0.1/", request_count=2, output_file=target, include_headers=True)
    asyncio.run(runtime.nettime(request, settings=settings, network_backend=recording_backend))

    single = b"HTTP/1.1 200 OK\r\ncontent-type: plain/text\r\ncontent-length: 13\r\n\r\nHello, world!"
    assert target.read_bytes() == single * 2
