import httpx
import pytest

from spherestay.api.client import format_query_params, redact
from spherestay.api.errors import ApiError, ErrorKind, kind_for_status
from tests.factories import Recorder, json_response


@pytest.mark.parametrize(
    "status,kind",
    [
        (400, ErrorKind.CLIENT),
        (401, ErrorKind.UNAUTHORIZED),
        (403, ErrorKind.FORBIDDEN),
        (404, ErrorKind.NOT_FOUND),
        (422, ErrorKind.CLIENT),
        (500, ErrorKind.SERVER),
        (503, ErrorKind.SERVER),
    ],
)
def test_kind_for_status(status, kind):
    assert kind_for_status(status) is kind


def test_retryable_kinds():
    assert ApiError(ErrorKind.NETWORK).retryable
    assert ApiError(ErrorKind.SERVER).retryable
    assert ApiError(ErrorKind.MALFORMED).retryable
    assert ApiError(ErrorKind.CLIENT).retryable
    assert ApiError(ErrorKind.FORBIDDEN).retryable
    assert not ApiError(ErrorKind.NOT_FOUND).retryable


def test_format_query_params():
    assert format_query_params({
        "limit": 6,
        "mpesaEnabled": True,
        "amenities": ["wifi", "pool"],
        "search": None,
        "minRating": 4.5,
    }) == {"limit": "6", "mpesaEnabled": "true", "amenities": "wifi,pool", "minRating": "4.5"}


def test_redact_masks_nested_secrets():
    assert redact({"email": "a@b.co", "password": "hunter22", "data": [{"token": "t"}]}) == {
        "email": "a@b.co",
        "password": "**REDACTED**",
        "data": [{"token": "**REDACTED**"}],
    }


async def test_get_returns_json(make_client):
    recorder = Recorder(json_response({"data": []}))
    client = make_client(recorder)
    assert await client.get("/api/properties", params={"limit": 6}) == {"data": []}
    assert recorder.requests[0].url.params["limit"] == "6"
    assert "authorization" not in recorder.requests[0].headers


async def test_bearer_token_is_attached(make_client):
    async def token():
        return "abc123"

    recorder = Recorder(json_response({}))
    client = make_client(recorder, token_provider=token)
    await client.get("/api/users/me")
    assert recorder.requests[0].headers["authorization"] == "Bearer abc123"


async def test_error_uses_backend_message(make_client):
    client = make_client(Recorder(json_response({"message": "Property not found"}, status=404)))
    with pytest.raises(ApiError) as info:
        await client.get("/api/properties/missing")
    assert info.value.kind is ErrorKind.NOT_FOUND
    assert info.value.status == 404
    assert info.value.message == "Property not found"
    assert info.value.url.endswith("/api/properties/missing")


async def test_error_without_message_gets_generic_one(make_client):
    client = make_client(Recorder(httpx.Response(502, text="Bad Gateway")))
    with pytest.raises(ApiError) as info:
        await client.get("/api/properties")
    assert info.value.kind is ErrorKind.SERVER
    assert info.value.message == "Request failed with status 502"


async def test_transport_failure_is_network_error(make_client):
    client = make_client(Recorder(httpx.ConnectError("connection refused")))
    with pytest.raises(ApiError) as info:
        await client.get("/api/properties")
    assert info.value.kind is ErrorKind.NETWORK
    assert info.value.status is None


async def test_non_json_success_is_malformed(make_client):
    client = make_client(Recorder(httpx.Response(200, text="<html>maintenance</html>")))
    with pytest.raises(ApiError) as info:
        await client.get("/api/properties")
    assert info.value.kind is ErrorKind.MALFORMED


async def test_empty_body_returns_none(make_client):
    client = make_client(Recorder(httpx.Response(204)))
    assert await client.delete("/api/wishlist/p1") is None


async def test_unauthorized_runs_callback(make_client):
    calls = []

    async def on_401():
        calls.append(True)

    client = make_client(Recorder(json_response({"message": "Token expired"}, status=401)))
    client.on_unauthorized(on_401)
    with pytest.raises(ApiError):
        await client.get("/api/users/me")
    assert calls == [True]
