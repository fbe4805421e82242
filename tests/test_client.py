import json

import httpx
import pytest

from focusflow.client.api import ApiError, FocusFlowClient
from focusflow.client.cache import FOCUS_SESSIONS, TASKS, QueryCache
from focusflow.client.context import ClientContext

# ---------------------------------------------------------------------------
# Client context
# ---------------------------------------------------------------------------


def test_hydrate_missing_file_is_anonymous(tmp_path):
    context = ClientContext.hydrate(tmp_path / "nope.json")
    assert context.is_authenticated is False
    assert context.user is None
    assert context.total_focus_time == 0


def test_hydrate_corrupt_file_is_anonymous(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")
    context = ClientContext.hydrate(path)
    assert context.is_authenticated is False


def test_sign_in_persists_and_hydrates(tmp_path):
    path = tmp_path / "nested" / "session.json"
    context = ClientContext(path)
    context.sign_in(
        {"access_token": "a1", "refresh_token": "r1"},
        user={"id": "u1", "total_focus_time": 50},
    )

    restored = ClientContext.hydrate(path)
    assert restored.access_token == "a1"
    assert restored.user_id == "u1"
    assert restored.total_focus_time == 50


def test_logout_clears_memory_and_file(tmp_path):
    path = tmp_path / "session.json"
    context = ClientContext(path)
    context.sign_in({"access_token": "a1", "refresh_token": "r1"}, user={"id": "u1"})

    context.logout()
    assert context.is_authenticated is False
    assert context.user is None
    assert not path.exists()

    # Logging out twice is harmless
    context.logout()
    assert context.user["total_focus_time"] == 125


# ---------------------------------------------------------------------------
# Query cache
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_cache_fetches_once_until_invalidated():
    cache = QueryCache()
    calls = []

    async def fetch():
        calls.append(1)
        return ["session"]

    assert await cache.get(FOCUS_SESSIONS, fetch) == ["session"]
    assert await cache.get(FOCUS_SESSIONS, fetch) == ["session"]
    assert len(calls) == 1

    cache.invalidate(FOCUS_SESSIONS)
    await cache.get(FOCUS_SESSIONS, fetch)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_cache_invalidation_is_idempotent():
    cache = QueryCache()
    notified = []
    cache.subscribe(FOCUS_SESSIONS, notified.append)

    async def fetch():
        return []

    await cache.get(FOCUS_SESSIONS, fetch)
    assert cache.invalidate(FOCUS_SESSIONS) is True
    assert cache.invalidate(FOCUS_SESSIONS) is False
    assert notified == [FOCUS_SESSIONS]

    # Never-loaded keys notify nobody
    assert cache.invalidate(TASKS) is False


@pytest.mark.asyncio
async def test_cache_unsubscribe():
    cache = QueryCache()
    notified = []
    unsubscribe = cache.subscribe(TASKS, notified.append)

    async def fetch():
        return []

    await cache.get(TASKS, fetch)
    unsubscribe()
    cache.invalidate(TASKS)
    assert notified == []


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_api_error_on_http_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"detail": "An account with this email already exists"})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    api = FocusFlowClient(ClientContext(), http=http)

    with pytest.raises(ApiError) as exc_info:
        await api.register("dup@example.com", "password123", "Dup", "Licate")
    assert exc_info.value.status_code == 409
    assert "already exists" in exc_info.value.detail
    assert api.context.is_authenticated is False
    await http.aclose()


@pytest.mark.asyncio
async def test_api_error_on_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused")

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    api = FocusFlowClient(ClientContext(), http=http)

    with pytest.raises(ApiError) as exc_info:
        await api.list_tasks()
    assert exc_info.value.status_code is None
    await http.aclose()


@pytest.mark.asyncio
async def test_bearer_header_sent():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json=[])

    context = ClientContext()
    context.access_token = "tok"
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    api = FocusFlowClient(context, http=http)

    await api.list_tasks(completed=False)
    assert seen["auth"] == "Bearer tok"
    await http.aclose()


@pytest.mark.asyncio
async def test_register_signs_in(client, tmp_path, test_user):
    context = ClientContext(tmp_path / "session.json")
    api = FocusFlowClient(context, http=client)

    user = await api.register("fresh@example.com", "password123", "Fresh", "Man")
    assert context.is_authenticated
    # /users/me resolves to the overridden test user
    assert user["id"] == str(test_user.id)

    saved = json.loads((tmp_path / "session.json").read_text(encoding="utf-8"))
    assert saved["access_token"] == context.access_token


@pytest.mark.asyncio
async def test_client_against_app(api):
    created = await api.create_task("Problem set 3", priority="urgent")
    assert created["priority"] == "urgent"

    tasks = await api.list_tasks(completed=False)
    assert [t["title"] for t in tasks] == ["Problem set 3"]

    stats = await api.get_stats("daily")
    assert stats["period"] == "daily"
