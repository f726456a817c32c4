import httpx
import pytest

from spherestay.api.client import ApiClient
from spherestay.models.store import LocalStore
from tests.factories import BASE_URL


@pytest.fixture
async def make_client():
    clients = []

    def factory(handler, token_provider=None) -> ApiClient:
        client = ApiClient(BASE_URL, token_provider=token_provider, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.close()


@pytest.fixture
async def store(tmp_path):
    async with LocalStore(tmp_path / "store.db") as s:
        yield s
