import asyncio

import httpx
import pytest

from spherestay.api.client import ApiClient
from spherestay.api.errors import ApiError, ErrorKind
from spherestay.api.query import QueryCache, query_key
from tests.factories import Recorder, json_response


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def make_cache(client, clock, **kwargs) -> QueryCache:
    kwargs.setdefault("retry_delay", 0)
    return QueryCache(client, stale_time=60, cache_time=120, clock=clock, **kwargs)


def test_query_key_ignores_param_order():
    assert query_key("/x", {"a": 1, "b": True}) == query_key("/x", {"b": True, "a": 1})
    assert query_key("/x", {"a": None}) == query_key("/x")


async def test_not_found_is_not_retried(make_client, clock):
    recorder = Recorder(json_response({"message": "nope"}, status=404))
    cache = make_cache(make_client(recorder), clock)
    result = await cache.fetch("/api/properties/x")
    assert result.error.kind is ErrorKind.NOT_FOUND
    assert len(recorder.requests) == 1


@pytest.mark.parametrize("status,kind", [
    (400, ErrorKind.CLIENT),
    (401, ErrorKind.UNAUTHORIZED),
    (403, ErrorKind.FORBIDDEN),
])
async def test_other_client_errors_are_retried(make_client, clock, status, kind):
    recorder = Recorder(json_response({}, status=status))
    cache = make_cache(make_client(recorder), clock)
    result = await cache.fetch("/api/properties")
    assert result.error.kind is kind
    assert len(recorder.requests) == 4


def test_should_retry_stops_after_max_retries():
    cache = QueryCache(client=None, max_retries=3)
    error = ApiError(ErrorKind.FORBIDDEN, status=403)
    assert cache.should_retry(3, error)
    assert not cache.should_retry(4, error)
    assert not cache.should_retry(1, ApiError(ErrorKind.NOT_FOUND, status=404))


async def test_server_error_retried_three_times(make_client, clock):
    recorder = Recorder(json_response({}, status=500))
    cache = make_cache(make_client(recorder), clock)
    result = await cache.fetch("/api/properties")
    assert result.error.kind is ErrorKind.SERVER
    assert not result.ok
    assert len(recorder.requests) == 4


async def test_retry_recovers_from_transient_failure(make_client, clock):
    recorder = Recorder(
        httpx.ConnectError("down"),
        json_response({}, status=503),
        json_response({"data": [{"_id": "a"}]}),
    )
    cache = make_cache(make_client(recorder), clock)
    result = await cache.fetch("/api/properties")
    assert result.ok
    assert result.data == {"data": [{"_id": "a"}]}
    assert len(recorder.requests) == 3


async def test_fresh_entries_are_served_from_memory(make_client, clock):
    recorder = Recorder(json_response([1]), json_response([2]))
    cache = make_cache(make_client(recorder), clock)
    assert (await cache.fetch("/x")).data == [1]
    clock.now += 30
    result = await cache.fetch("/x")
    assert result.data == [1]
    assert not result.is_stale
    assert len(recorder.requests) == 1


async def test_stale_entries_are_refetched(make_client, clock):
    recorder = Recorder(json_response([1]), json_response([2]))
    cache = make_cache(make_client(recorder), clock)
    await cache.fetch("/x")
    clock.now += 61
    assert (await cache.fetch("/x")).data == [2]
    assert len(recorder.requests) == 2


async def test_failed_refetch_keeps_last_good_data(make_client, clock):
    recorder = Recorder(json_response([1]), json_response({}, status=404))
    cache = make_cache(make_client(recorder), clock)
    await cache.fetch("/x")
    clock.now += 61
    result = await cache.fetch("/x")
    assert result.data == [1]
    assert result.error.kind is ErrorKind.NOT_FOUND
    assert result.is_stale


async def test_concurrent_fetches_share_one_request(clock):
    release = asyncio.Event()
    requests = []

    class SlowTransport(httpx.AsyncBaseTransport):
        async def handle_async_request(self, request):
            requests.append(request)
            await release.wait()
            return json_response(["shared"])

    client = ApiClient("http://api.test", transport=SlowTransport())
    cache = make_cache(client, clock)
    tasks = [asyncio.create_task(cache.fetch("/x", {"page": 1})) for _ in range(5)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*tasks)
    await client.close()
    assert [r.data for r in results] == [["shared"]] * 5
    assert len(requests) == 1


async def test_cancelled_fetch_does_not_populate_cache(clock):
    started = asyncio.Event()

    class HangingTransport(httpx.AsyncBaseTransport):
        async def handle_async_request(self, request):
            started.set()
            await asyncio.sleep(3600)

    client = ApiClient("http://api.test", transport=HangingTransport())
    cache = make_cache(client, clock)
    task = asyncio.create_task(cache.fetch("/x"))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.sleep(0)
    await client.close()
    snapshot = cache.peek("/x")
    assert snapshot.updated_at is None
    assert snapshot.data is None


async def test_prune_evicts_idle_entries(make_client, clock):
    cache = make_cache(make_client(Recorder(json_response([]))), clock)
    await cache.fetch("/a")
    clock.now += 100
    await cache.fetch("/b")
    clock.now += 30
    assert cache.prune() == 1
    assert cache.peek("/a") is None
    assert cache.peek("/b") is not None


async def test_invalidate(make_client, clock):
    cache = make_cache(make_client(Recorder(json_response([]))), clock)
    await cache.fetch("/a", {"p": 1})
    await cache.fetch("/a", {"p": 2})
    await cache.fetch("/b")
    assert cache.invalidate("/a") == 2
    assert len(cache) == 1
