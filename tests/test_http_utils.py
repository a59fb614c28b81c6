from __future__ import annotations

import pytest

from bnote_dash import http_utils
from bnote_dash.config import RetryConfig
from conftest import DummyResponse

NO_WAIT = RetryConfig(wait_min_seconds=0, wait_max_seconds=0, max_attempts=3)


class DummySession:
    def __init__(self, responses: list[DummyResponse]):
        self.responses = responses
        self.calls = 0

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        response = self.responses[min(self.calls, len(self.responses) - 1)]
        self.calls += 1
        return response


def _opts(session, **kwargs) -> http_utils.RequestOptions:
    return http_utils.RequestOptions(
        prefix="test",
        session=session,
        method="POST",
        url="https://example.com",
        json_body={"method": "eth_blockNumber"},
        retry_config=NO_WAIT,
        **kwargs,
    )


def test_cached_json_request_hits_cache(temp_cache):
    session = DummySession([DummyResponse(200, {"value": 1})])

    first = http_utils.cached_json_request(_opts(session))
    second = http_utils.cached_json_request(_opts(session))

    assert first == {"value": 1}
    assert second == {"value": 1}
    # Only first call should hit network because of cache reuse.
    assert session.calls == 1
    assert list(temp_cache.glob("test_*.json"))


def test_force_refresh_bypasses_cache(temp_cache):
    session = DummySession([DummyResponse(200, {"value": 1})])
    http_utils.cached_json_request(_opts(session))
    http_utils.cached_json_request(_opts(session, force_refresh=True))
    assert session.calls == 2


def test_should_cache_false_skips_store(temp_cache):
    session = DummySession([DummyResponse(200, {"error": "boom"})])
    opts = _opts(session, should_cache=lambda payload: "error" not in payload)
    http_utils.cached_json_request(opts)
    http_utils.cached_json_request(opts)
    assert session.calls == 2
    assert not list(temp_cache.glob("test_*.json"))


def test_retries_transient_status_then_succeeds(temp_cache):
    session = DummySession(
        [DummyResponse(503, {}), DummyResponse(200, {"value": 2})]
    )
    assert http_utils.cached_json_request(_opts(session)) == {"value": 2}
    assert session.calls == 2


def test_gives_up_after_max_attempts(temp_cache):
    session = DummySession([DummyResponse(502, {})])
    with pytest.raises(http_utils.TransientHTTPError, match="Status 502"):
        http_utils.cached_json_request(_opts(session))
    assert session.calls == NO_WAIT.max_attempts


def test_rate_limit_records_sane_retry_after(temp_cache):
    response = DummyResponse(429, {}, headers={"Retry-After": "0"})
    session = DummySession([response, DummyResponse(200, {"ok": True})])
    assert http_utils.cached_json_request(_opts(session)) == {"ok": True}

    with pytest.raises(http_utils.TransientHTTPError) as excinfo:
        http_utils._request_once(_opts(DummySession([DummyResponse(429, {}, {"Retry-After": "12"})])))
    assert excinfo.value.retry_after == 12

    with pytest.raises(http_utils.TransientHTTPError) as excinfo:
        http_utils._request_once(_opts(DummySession([DummyResponse(429, {}, {"Retry-After": "86400"})])))
    assert excinfo.value.retry_after is None
