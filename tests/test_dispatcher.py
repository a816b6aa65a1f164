from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from ovhcloud.dispatcher import SignedDispatcher
from ovhcloud.errors import OvhApiError
from ovhcloud.signatures import sign
from ovhcloud.types import ApiResponse

ORIGIN = "https://api.us.ovhcloud.com/1.0"


def _dispatcher(handler, consumer_key: str | None = None, now=lambda: 1000000000) -> SignedDispatcher:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SignedDispatcher("K", "S", consumer_key, http_client=http_client, now=now)


def _recorder(captured: list[httpx.Request], status: int = 200, payload: object = None):
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status, json=payload if payload is not None else {"ok": True})

    return handler


def test_unauthenticated_request_sends_application_headers_only() -> None:
    captured: list[httpx.Request] = []
    dispatcher = _dispatcher(_recorder(captured))

    response = asyncio.run(dispatcher.get("/auth/time"))

    assert response == ApiResponse(ok=True, data={"ok": True}, status_code=200)
    request = captured[0]
    assert str(request.url) == f"{ORIGIN}/auth/time"
    assert request.method == "GET"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["X-Ovh-Application"] == "K"
    assert request.headers["X-Ovh-Timestamp"] == "1000000000"
    assert "X-Ovh-Consumer" not in request.headers
    assert "X-Ovh-Signature" not in request.headers
    assert request.content == b""


def test_authenticated_get_signs_empty_body() -> None:
    captured: list[httpx.Request] = []
    dispatcher = _dispatcher(_recorder(captured), consumer_key="T")

    asyncio.run(dispatcher.get("/me"))

    request = captured[0]
    assert request.headers["X-Ovh-Consumer"] == "T"
    assert request.headers["X-Ovh-Signature"] == sign("S", "T", "GET", f"{ORIGIN}/me", "", 1000000000)


def test_body_sent_is_byte_identical_to_signed_body() -> None:
    captured: list[httpx.Request] = []
    dispatcher = _dispatcher(_recorder(captured), consumer_key="T")

    asyncio.run(dispatcher.post("/order/cart", {"a": 1}))

    request = captured[0]
    assert request.content == b'{"a":1}'
    timestamp = int(request.headers["X-Ovh-Timestamp"])
    assert request.headers["X-Ovh-Signature"] == sign(
        "S",
        "T",
        "POST",
        f"{ORIGIN}/order/cart",
        request.content.decode("utf-8"),
        timestamp,
    )


def test_non_ascii_body_is_sent_as_signed_utf8() -> None:
    captured: list[httpx.Request] = []
    dispatcher = _dispatcher(_recorder(captured), consumer_key="T")

    asyncio.run(dispatcher.put("/me", {"name": "café"}))

    request = captured[0]
    assert request.content == '{"name":"café"}'.encode("utf-8")
    assert request.headers["X-Ovh-Signature"] == sign(
        "S",
        "T",
        "PUT",
        f"{ORIGIN}/me",
        '{"name":"café"}',
        1000000000,
    )


def test_timestamp_is_read_once_per_call() -> None:
    ticks = iter([1000, 2000, 3000])
    captured: list[httpx.Request] = []
    dispatcher = _dispatcher(_recorder(captured), consumer_key="T", now=lambda: next(ticks))

    asyncio.run(dispatcher.get("/me"))

    request = captured[0]
    assert request.headers["X-Ovh-Timestamp"] == "1000"
    assert request.headers["X-Ovh-Signature"] == sign("S", "T", "GET", f"{ORIGIN}/me", "", 1000)


@pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
def test_convenience_methods_match_request(method: str) -> None:
    captured: list[httpx.Request] = []
    dispatcher = _dispatcher(_recorder(captured), consumer_key="T")
    wrapper = getattr(dispatcher, method.lower())

    async def run() -> tuple[ApiResponse, ApiResponse]:
        first = await wrapper("/me", {"x": 1})
        second = await dispatcher.request("/me", method, {"x": 1})
        return first, second

    first, second = asyncio.run(run())

    assert first == second
    assert [request.method for request in captured] == [method, method]
    assert dict(captured[0].headers) == dict(captured[1].headers)
    assert captured[0].content == captured[1].content


def test_consumer_assignment_transitions_modes() -> None:
    captured: list[httpx.Request] = []
    dispatcher = _dispatcher(_recorder(captured))

    async def run() -> None:
        await dispatcher.get("/me")
        dispatcher.consumer = "T"
        await dispatcher.get("/me")
        dispatcher.consumer = None
        await dispatcher.get("/me")

    asyncio.run(run())

    assert ["X-Ovh-Signature" in request.headers for request in captured] == [False, True, False]
    assert dispatcher.consumer is None
    assert dispatcher.authenticated is False


def test_authenticate_and_clear_consumer() -> None:
    dispatcher = _dispatcher(_recorder([]))

    state = dispatcher.authenticate("T")
    assert state.authenticated is True
    assert dispatcher.consumer == "T"

    state = dispatcher.clear_consumer()
    assert state.authenticated is False
    assert dispatcher.consumer is None

    with pytest.raises(ValueError):
        dispatcher.authenticate("")


def test_in_flight_request_keeps_token_snapshot() -> None:
    captured: list[httpx.Request] = []
    release = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        await release.wait()
        return httpx.Response(200, json={})

    dispatcher = _dispatcher(handler, consumer_key="first")

    async def run() -> None:
        task = asyncio.create_task(dispatcher.get("/me"))
        while not captured:
            await asyncio.sleep(0)
        dispatcher.consumer = "second"
        release.set()
        await task

    asyncio.run(run())

    request = captured[0]
    assert request.headers["X-Ovh-Consumer"] == "first"
    assert request.headers["X-Ovh-Signature"] == sign("S", "first", "GET", f"{ORIGIN}/me", "", 1000000000)


def test_concurrent_calls_are_signed_independently() -> None:
    captured: list[httpx.Request] = []
    dispatcher = _dispatcher(_recorder(captured), consumer_key="T")

    async def run() -> list[ApiResponse]:
        return await asyncio.gather(*(dispatcher.get(f"/dedicated/server/ns{i}") for i in range(5)))

    responses = asyncio.run(run())

    assert all(response.ok for response in responses)
    for request in captured:
        assert request.headers["X-Ovh-Signature"] == sign(
            "S", "T", "GET", str(request.url), "", 1000000000
        )


def test_non_success_status_is_returned_not_raised() -> None:
    dispatcher = _dispatcher(
        _recorder([], status=403, payload={"class": "Client::Forbidden", "message": "Invalid signature"}),
        consumer_key="T",
    )

    response = asyncio.run(dispatcher.get("/me"))

    assert response.ok is False
    assert response.status_code == 403
    with pytest.raises(OvhApiError) as exc_info:
        response.raise_for_status()
    assert exc_info.value.status_code == 403
    assert exc_info.value.error_class == "Client::Forbidden"
    assert exc_info.value.message == "Invalid signature"


def test_response_unpacks_to_ok_and_data() -> None:
    dispatcher = _dispatcher(_recorder([], payload={"nichandle": "ab1234-ovh"}))

    ok, data = asyncio.run(dispatcher.get("/me"))

    assert ok is True
    assert data == {"nichandle": "ab1234-ovh"}


def test_empty_response_body_parses_to_none() -> None:
    dispatcher = _dispatcher(lambda request: httpx.Response(200, content=b""))

    response = asyncio.run(dispatcher.post("/auth/logout"))

    assert response.data is None
    assert response.ok is True


def test_non_json_response_body_raises() -> None:
    dispatcher = _dispatcher(lambda request: httpx.Response(502, content=b"<html>bad gateway</html>"))

    with pytest.raises(json.JSONDecodeError):
        asyncio.run(dispatcher.get("/me"))


def test_transport_errors_propagate() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    dispatcher = _dispatcher(handler)

    with pytest.raises(httpx.ConnectError):
        asyncio.run(dispatcher.get("/me"))


def test_serialization_error_happens_before_network() -> None:
    captured: list[httpx.Request] = []
    dispatcher = _dispatcher(_recorder(captured), consumer_key="T")

    with pytest.raises(TypeError):
        asyncio.run(dispatcher.post("/order/cart", {"bad": object()}))

    assert captured == []


def test_path_is_appended_verbatim() -> None:
    captured: list[httpx.Request] = []
    dispatcher = _dispatcher(_recorder(captured))

    asyncio.run(dispatcher.get("/vrack/pn-1/allowedServices?serviceFamily=dedicatedServer"))

    assert str(captured[0].url) == f"{ORIGIN}/vrack/pn-1/allowedServices?serviceFamily=dedicatedServer"


def test_custom_endpoint_by_name_and_url() -> None:
    async def run() -> tuple[str, str]:
        async with httpx.AsyncClient() as http_client:
            named = SignedDispatcher("K", "S", endpoint="ovh-eu", http_client=http_client)
            explicit = SignedDispatcher("K", "S", endpoint="https://example.test/1.0/", http_client=http_client)
            return named.endpoint, explicit.endpoint

    named, explicit = asyncio.run(run())

    assert named == "https://eu.api.ovh.com/1.0"
    assert explicit == "https://example.test/1.0"


def test_injected_client_is_left_open() -> None:
    async def run() -> bool:
        async with httpx.AsyncClient() as http_client:
            async with SignedDispatcher("K", "S", http_client=http_client):
                pass
            return http_client.is_closed

    assert asyncio.run(run()) is False


def test_owned_client_is_closed_by_context_manager() -> None:
    async def run() -> SignedDispatcher:
        async with SignedDispatcher("K", "S") as dispatcher:
            pass
        return dispatcher

    dispatcher = asyncio.run(run())

    assert dispatcher._client.is_closed is True
