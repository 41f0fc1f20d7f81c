import pytest

from core_storage import MemoryStore


@pytest.mark.asyncio
async def test_point_get_and_set_copy_values(store):
    value = {"name": "jo", "tags": ["a"]}
    stored = await store.set("users:1", value)
    assert stored == value

    value["tags"].append("b")
    fetched = await store.get("users:1")
    assert fetched == {"name": "jo", "tags": ["a"]}

    fetched["name"] = "changed"
    assert (await store.get("users:1"))["name"] == "jo"


@pytest.mark.asyncio
async def test_missing_point_key_is_none(store):
    assert await store.get("users:nope") is None


@pytest.mark.asyncio
async def test_wildcard_listing_is_sorted_and_paged():
    store = MemoryStore(page_size=2)
    for i in range(5):
        await store.set(f"users:{i}", {"n": i})
    await store.set("orders:1", {"n": -1})

    first = await store.get("users:*")
    assert [item["key"] for item in first["items"]] == ["users:0", "users:1"]
    assert first["last_key"] == "users:1"
    assert first["next"] is True

    rest = await store.get("users:*", {"start": first["last_key"], "limit": 10})
    assert [item["key"] for item in rest["items"]] == ["users:2", "users:3", "users:4"]
    assert rest["last_key"] is None
    assert rest["next"] is False


@pytest.mark.asyncio
async def test_wildcard_without_matches(store):
    assert await store.get("nothing:*") == {"items": [], "last_key": None, "next": False}


@pytest.mark.asyncio
async def test_get_by_label_prefix_and_exact(store):
    await store.set("users:1", {"name": "john"}, {"label1": "users:name_john"})
    await store.set("users:2", {"name": "joan"}, {"label1": "users:name_joan"})
    await store.set("users:3", {"name": "bill"}, {"label1": "users:name_bill"})

    page = await store.get_by_label("label1", "users:name_jo*")
    assert [item["key"] for item in page["items"]] == ["users:1", "users:2"]

    page = await store.get_by_label("label1", "users:name_john")
    assert [item["value"] for item in page["items"]] == [{"name": "john"}]

    page = await store.get_by_label("label2", "users:name_jo*")
    assert page["items"] == []


@pytest.mark.asyncio
async def test_label_rewrite_replaces_only_given_slots(store):
    await store.set("users:1", {"v": 1}, {"label1": "users:name_john", "label2": "users:age_20"})
    await store.set("users:1", {"v": 2}, {"label1": "users:name_jim"})

    assert (await store.get_by_label("label1", "users:name_john*"))["items"] == []
    assert len((await store.get_by_label("label1", "users:name_jim*"))["items"]) == 1
    # label2 was not part of the rewrite and keeps its entry
    page = await store.get_by_label("label2", "users:age_20*")
    assert page["items"] == [{"key": "users:1", "value": {"v": 2}}]


@pytest.mark.asyncio
async def test_unknown_label_slot_is_rejected(store):
    with pytest.raises(ValueError):
        await store.set("users:1", {}, {"label9": "x"})


@pytest.mark.asyncio
async def test_remove(store):
    await store.set("users:1", {"v": 1}, {"label1": "users:name_john"})
    assert await store.remove("users:1") is True
    assert await store.remove("users:1") is False
    assert await store.get("users:1") is None
    assert (await store.get_by_label("label1", "users:name_*"))["items"] == []
