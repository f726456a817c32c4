import httpx
import pytest

from spherestay.api.errors import ApiError, ErrorKind
from spherestay.session import Session
from tests.factories import Recorder, json_response

USER = {"_id": "u1", "email": "wanjiku@example.com", "role": "user"}


@pytest.fixture
def session(store):
    return Session(store)


def bind(session, make_client, recorder):
    client = make_client(recorder, token_provider=session.token)
    session.bind(client)
    return client


async def test_unbound_session_has_no_client(session):
    with pytest.raises(RuntimeError):
        session.client


async def test_login_stores_token_and_user(session, make_client):
    recorder = Recorder(json_response({"status": "success", "token": "tok", "data": {"user": USER}}))
    bind(session, make_client, recorder)
    user = await session.login("wanjiku@example.com", "secret123")
    assert user == USER
    assert await session.token() == "tok"
    assert await session.is_authenticated()
    assert session.role == "user"
    assert not session.is_admin
    assert recorder.body() == {"email": "wanjiku@example.com", "password": "secret123"}


async def test_logout_clears_state(session, make_client, store):
    bind(session, make_client, Recorder(json_response({"token": "tok", "user": USER})))
    await session.login("wanjiku@example.com", "secret123")
    await session.logout()
    assert session.user is None
    assert await store.get_token() is None


async def test_refresh_without_token_skips_request(session, make_client):
    recorder = Recorder(json_response({"user": USER}))
    bind(session, make_client, recorder)
    assert await session.refresh() is None
    assert recorder.requests == []


async def test_refresh_sends_bearer_token(session, make_client, store):
    await store.set_token("tok")
    recorder = Recorder(json_response({"data": {"user": USER}}))
    bind(session, make_client, recorder)
    assert await session.refresh() == USER
    assert recorder.requests[0].url.path == "/api/users/me"
    assert recorder.requests[0].headers["authorization"] == "Bearer tok"


async def test_unauthorized_response_clears_token(session, make_client, store):
    await store.set_token("expired")
    session.user = USER
    bind(session, make_client, Recorder(json_response({"message": "jwt expired"}, status=401)))
    assert await session.refresh() is None
    assert await store.get_token() is None
    assert session.user is None


async def test_other_errors_propagate(session, make_client, store):
    await store.set_token("tok")
    bind(session, make_client, Recorder(json_response({}, status=500)))
    with pytest.raises(ApiError) as info:
        await session.refresh()
    assert info.value.kind is ErrorKind.SERVER


async def test_signup_with_files_is_multipart(session, make_client):
    recorder = Recorder(json_response({"token": "new", "data": {"user": USER}}))
    bind(session, make_client, recorder)
    await session.signup({"email": "wanjiku@example.com"}, files={"photo": ("me.png", b"png", "image/png")})
    assert recorder.requests[0].headers["content-type"].startswith("multipart/form-data")
    assert await session.token() == "new"


async def test_update_password_replaces_token(session, make_client, store):
    await store.set_token("old")
    recorder = Recorder(json_response({"token": "rotated", "data": {"user": USER}}))
    bind(session, make_client, recorder)
    await session.update_password("old-pass", "new-pass-1", "new-pass-1")
    assert recorder.requests[0].method == "PATCH"
    assert recorder.body()["passwordCurrent"] == "old-pass"
    assert await store.get_token() == "rotated"


@pytest.mark.parametrize("role,admin,superadmin", [
    ("user", False, False),
    ("admin", True, False),
    ("superadmin", True, True),
])
async def test_admin_roles(session, role, admin, superadmin):
    session.user = {**USER, "role": role}
    assert session.is_admin is admin
    assert session.is_superadmin is superadmin


async def test_submit_verification_uploads_documents(session, make_client, store):
    await store.set_token("tok")
    verified = {**USER, "verificationStatus": "pending"}
    recorder = Recorder(json_response({"data": {"user": verified}}))
    bind(session, make_client, recorder)
    user = await session.submit_verification(
        [("id.png", b"front", "image/png"), ("selfie.jpg", b"me", "image/jpeg")],
        fields={"documentType": "national_id"},
    )
    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/api/users/submitVerification"
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert request.content.count(b'name="documents"') == 2
    assert b"national_id" in request.content
    assert user == verified
    assert session.user == verified


async def test_upgrade_role_updates_user(session, make_client):
    host = {**USER, "role": "host"}
    recorder = Recorder(json_response({"user": host}))
    bind(session, make_client, recorder)
    assert await session.upgrade_role({"role": "host", "businessName": "Pwani Stays"}) == host
    assert recorder.requests[0].method == "PATCH"
    assert recorder.requests[0].url.path == "/api/users/upgradeRole"
    assert recorder.body() == {"role": "host", "businessName": "Pwani Stays"}
    assert session.role == "host"


async def test_delete_account_sends_password_and_forgets_session(session, make_client, store):
    await store.set_token("tok")
    session.user = USER
    recorder = Recorder(httpx.Response(204))
    bind(session, make_client, recorder)
    await session.delete_account("secret123")
    assert recorder.requests[0].method == "DELETE"
    assert recorder.requests[0].url.path == "/api/users/deleteMe"
    assert recorder.body() == {"password": "secret123"}
    assert session.user is None
    assert await store.get_token() is None


async def test_failed_delete_account_keeps_session(session, make_client, store):
    await store.set_token("tok")
    session.user = USER
    bind(session, make_client, Recorder(json_response({"message": "Incorrect password"}, status=400)))
    with pytest.raises(ApiError) as info:
        await session.delete_account("wrong")
    assert info.value.message == "Incorrect password"
    assert await store.get_token() == "tok"
