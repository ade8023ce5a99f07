from __future__ import annotations

import json

import httpx
import pytest

from charge_watch.clients.http_client import HttpRequestError, JsonHttpClient
from charge_watch.guard import BreakerOpenError, BreakerOptions, BreakerState, CircuitBreaker


def make_client(handler, clock, threshold=2):
    breaker = CircuitBreaker(BreakerOptions(failure_threshold=threshold, reset_timeout=60.0), clock=clock)
    return JsonHttpClient(
        "https://vehicle.example.com/",
        breaker,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_post_sends_json_and_returns_parsed_body(clock):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        seen["token"] = request.headers.get("timaToken")
        seen["content_type"] = request.headers.get("Content-Type")
        return httpx.Response(200, json={"returnSuccess": True, "data": {"soc": 77}})

    client = make_client(handler, clock)

    result = await client.post("/api/vehicle/condition", {"vins": ["VIN1"]}, headers={"timaToken": "t-1"})

    assert result == {"returnSuccess": True, "data": {"soc": 77}}
    assert seen["url"] == "https://vehicle.example.com/api/vehicle/condition"
    assert seen["body"] == {"vins": ["VIN1"]}
    assert seen["token"] == "t-1"
    assert seen["content_type"] == "application/json"


@pytest.mark.asyncio
async def test_http_error_counts_as_breaker_failure(clock):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream unavailable")

    client = make_client(handler, clock)

    with pytest.raises(HttpRequestError) as exc_info:
        await client.post("/api/x", {})

    assert exc_info.value.status_code == 503
    assert exc_info.value.body_preview == "upstream unavailable"
    assert client.breaker.failure_count == 1


@pytest.mark.asyncio
async def test_invalid_json_body_raises(clock):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    client = make_client(handler, clock)

    with pytest.raises(HttpRequestError) as exc_info:
        await client.post("/api/x", {})

    assert exc_info.value.status_code == 200
    assert "maintenance" in exc_info.value.body_preview


@pytest.mark.asyncio
async def test_open_breaker_skips_request(clock):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    client = make_client(handler, clock, threshold=2)
    for _ in range(2):
        with pytest.raises(HttpRequestError):
            await client.post("/api/x", {}, label="vehicle-data[VIN1]")
    assert client.breaker.state == BreakerState.OPEN

    with pytest.raises(BreakerOpenError) as exc_info:
        await client.post("/api/x", {}, label="vehicle-data[VIN1]")

    assert len(calls) == 2
    assert exc_info.value.label == "vehicle-data[VIN1]"


@pytest.mark.asyncio
async def test_transport_error_counts_as_breaker_failure(clock):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler, clock)

    with pytest.raises(httpx.ConnectError):
        await client.post("/api/x", {})

    assert client.breaker.failure_count == 1
