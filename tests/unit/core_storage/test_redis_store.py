import pytest

from core_storage import RedisStore

fakeredis = pytest.importorskip("fakeredis")


@pytest.fixture
def redis_store():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    return RedisStore(client, namespace="test", page_size=10)


@pytest.mark.asyncio
async def test_point_round_trip(redis_store):
    await redis_store.set("users:1", {"name": "jo", "age": 20})
    assert await redis_store.get("users:1") == {"name": "jo", "age": 20}
    assert await redis_store.get("users:2") is None


@pytest.mark.asyncio
async def test_values_live_under_the_namespace(redis_store):
    await redis_store.set("users:1", {"name": "jo"}, {"label1": "users:name_jo"})
    raw = redis_store._r
    assert await raw.exists("test:item:users:1") == 1
    assert await raw.hgetall("test:labels:users:1") == {"label1": "users:name_jo"}
    assert await raw.zcard("test:label:label1") == 1


@pytest.mark.asyncio
async def test_wildcard_listing(redis_store):
    for i in range(3):
        await redis_store.set(f"users:{i}", {"n": i})
    await redis_store.set("orders:1", {"n": -1})

    first = await redis_store.get("users:*", {"limit": 2})
    assert [item["key"] for item in first["items"]] == ["users:0", "users:1"]
    assert first["last_key"] == "users:1"

    rest = await redis_store.get("users:*", {"start": first["last_key"], "limit": 2})
    assert [item["value"] for item in rest["items"]] == [{"n": 2}]
    assert rest["last_key"] is None


@pytest.mark.asyncio
async def test_label_lookup_prefix_exact_and_paging(redis_store):
    await redis_store.set("users:1", {"name": "john"}, {"label1": "users:name_john"})
    await redis_store.set("users:2", {"name": "jane"}, {"label1": "users:name_jane"})
    await redis_store.set("users:3", {"name": "bill"}, {"label1": "users:name_bill"})

    page = await redis_store.get_by_label("label1", "users:name_j*")
    assert {item["key"] for item in page["items"]} == {"users:1", "users:2"}

    page = await redis_store.get_by_label("label1", "users:name_john")
    assert [item["key"] for item in page["items"]] == ["users:1"]

    # jane sorts before john
    first = await redis_store.get_by_label("label1", "users:name_j*", {"limit": 1})
    assert [item["key"] for item in first["items"]] == ["users:2"]
    assert first["last_key"] == "users:2"
    second = await redis_store.get_by_label("label1", "users:name_j*", {"limit": 1, "start": first["last_key"]})
    assert [item["key"] for item in second["items"]] == ["users:1"]
    assert second["last_key"] is None


@pytest.mark.asyncio
async def test_label_rewrite_drops_stale_entry(redis_store):
    await redis_store.set("users:1", {"v": 1}, {"label1": "users:name_john"})
    await redis_store.set("users:1", {"v": 2}, {"label1": "users:name_jim"})

    assert (await redis_store.get_by_label("label1", "users:name_john*"))["items"] == []
    page = await redis_store.get_by_label("label1", "users:name_jim*")
    assert page["items"] == [{"key": "users:1", "value": {"v": 2}}]


@pytest.mark.asyncio
async def test_remove_clears_labels(redis_store):
    await redis_store.set("users:1", {"v": 1}, {"label1": "users:name_john"})
    assert await redis_store.remove("users:1") is True
    assert await redis_store.remove("users:1") is False
    assert await redis_store.get("users:1") is None
    assert (await redis_store.get_by_label("label1", "users:name_*"))["items"] == []


def test_requires_a_client():
    with pytest.raises(ValueError):
        RedisStore(None)
