import pytest

from core_labels import LabelError, LabelIndexer, LabelLookup

COLLECTION = "testcollection"


def _message(text):
    return f"LabelMap Error for collection '{COLLECTION}': {text}"


def _name_length(item):
    return f"the length of the name is {len(item['name'])}"


LABELS = {
    "notALabel": "normal schema",
    "label1": "name",
    "label2": _name_length,
    "label3": {"name": "user_details", "concat": ["name", "age"]},
    "label4": 5,
}

ITEM = {"name": "John", "age": "20"}


@pytest.fixture
def indexer():
    return LabelIndexer(COLLECTION, LABELS)


def test_tables_only_hold_label_slots(indexer):
    assert dict(indexer.label_names) == {
        "name": "label1",
        "label2": "label2",
        "user_details": "label3",
        "label4": "label4",
    }
    assert "notALabel" not in indexer.labels_config
    with pytest.raises(TypeError):
        indexer.label_names["other"] = "label5"


@pytest.mark.asyncio
async def test_create_label_keys(indexer):
    keys = await indexer.create_label_keys(COLLECTION, ITEM)
    assert keys == {
        "label1": f"{COLLECTION}:name_John",
        "label2": f"{COLLECTION}:label2_the length of the name is 4",
        "label3": f"{COLLECTION}:user_details_John:20",
        "label4": f"{COLLECTION}:label4",
    }


@pytest.mark.asyncio
async def test_label_derivation_is_pure(indexer):
    assert await indexer.create_label_keys(COLLECTION, ITEM) == await indexer.create_label_keys(COLLECTION, dict(ITEM))


@pytest.mark.asyncio
async def test_skipped_labels_are_left_out(indexer):
    keys = await indexer.create_label_keys(COLLECTION, ITEM, ["name"])
    assert "label1" not in keys
    assert keys["label3"] == f"{COLLECTION}:user_details_John:20"


@pytest.mark.asyncio
async def test_field_label_with_missing_value():
    keys = await LabelIndexer(COLLECTION, {"label1": "name"}).create_label_keys(COLLECTION, {})
    assert keys == {"label1": f"{COLLECTION}:name_"}


@pytest.mark.asyncio
async def test_computed_and_async_labels():
    async def region(item, ctx):
        return f"{ctx['label_name']}={item['region']}"

    indexer = LabelIndexer(COLLECTION, {
        "label1": {"name": "by_region", "computed": region},
        "label2": {"name": "by_value", "value": lambda item: item["region"].upper()},
    })
    keys = await indexer.create_label_keys(COLLECTION, {"region": "eu"})
    assert keys == {
        "label1": f"{COLLECTION}:by_region_by_region=eu",
        "label2": f"{COLLECTION}:by_value_EU",
    }


@pytest.mark.asyncio
async def test_concat_must_be_an_array():
    indexer = LabelIndexer(COLLECTION, {"label1": {"name": "user_details", "concat": "name"}})
    with pytest.raises(LabelError) as exc:
        await indexer.create_label_keys(COLLECTION, ITEM)
    assert str(exc.value) == _message("concat must be an array for 'user_details'")


@pytest.mark.asyncio
async def test_concat_key_must_exist():
    indexer = LabelIndexer(COLLECTION, {"label1": {"name": "user_details", "concat": ["name", "missingKey"]}})
    with pytest.raises(LabelError) as exc:
        await indexer.create_label_keys(COLLECTION, ITEM)
    assert str(exc.value) == _message("Concat key is missing for 'user_details'")


@pytest.mark.asyncio
async def test_single_concat_key():
    indexer = LabelIndexer(COLLECTION, {"label1": {"name": "user_details", "concat": ["missingKey"]}})
    keys = await indexer.create_label_keys(COLLECTION, {"name": "John", "missingKey": "Doe"})
    assert keys == {"label1": f"{COLLECTION}:user_details_Doe"}


@pytest.mark.asyncio
async def test_label_callable_failure_is_wrapped():
    def broken(item):
        raise RuntimeError("Test error")

    indexer = LabelIndexer(COLLECTION, {"label1": broken})
    with pytest.raises(LabelError) as exc:
        await indexer.create_label_keys(COLLECTION, ITEM)
    assert str(exc.value) == _message("Error in label1 : Test error")


def test_get_arguments_for_get_by_label(indexer):
    lookup = indexer.get_arguments_for_get_by_label(COLLECTION, {"name": "John"})
    assert lookup == LabelLookup("label1", f"{COLLECTION}:name_John*")
    assert lookup.label_number == "label1"


def test_get_arguments_with_empty_value(indexer):
    lookup = indexer.get_arguments_for_get_by_label(COLLECTION, {"name": ""})
    assert lookup == ("label1", f"{COLLECTION}:name_*")


def test_get_arguments_keeps_existing_wildcard(indexer):
    lookup = indexer.get_arguments_for_get_by_label(COLLECTION, {"age": 1, "user_details": "Jo*"})
    assert lookup == ("label3", f"{COLLECTION}:user_details_Jo*")


@pytest.mark.parametrize("value, rendered", [(0, "0"), (False, "False"), (None, "")])
def test_get_arguments_with_falsy_values(value, rendered):
    indexer = LabelIndexer(COLLECTION, {"label1": "n"})
    lookup = indexer.get_arguments_for_get_by_label(COLLECTION, {"n": value})
    assert lookup == ("label1", f"{COLLECTION}:n_{rendered}*")


def test_get_arguments_without_mapped_label(indexer):
    with pytest.raises(LabelError) as exc:
        indexer.get_arguments_for_get_by_label(COLLECTION, {"firstName": "XXXX"})
    assert str(exc.value) == _message(
        f"No mapped label found for filter '{{\"firstName\":\"XXXX\"}}' for collection '{COLLECTION}'"
    )


def test_get_arguments_on_empty_filter():
    indexer = LabelIndexer(COLLECTION, {"label1": "name"})
    with pytest.raises(LabelError) as exc:
        indexer.get_arguments_for_get_by_label(COLLECTION, {})
    assert "No mapped label found for filter '{}'" in str(exc.value)


def test_get_label_number():
    indexer = LabelIndexer(COLLECTION, {"label1": "name"})
    assert indexer.get_label_number("name") == "label1"
    with pytest.raises(LabelError) as exc:
        indexer.get_label_number("missingLabel")
    assert str(exc.value) == _message("No label for 'missingLabel'")


def test_has_label_and_is_label():
    indexer = LabelIndexer(COLLECTION, {"label1": "name", "label2": "age"})
    assert indexer.has_label("name")
    assert indexer.has_label("age")
    assert not indexer.has_label("missingLabel")
    assert LabelIndexer.is_label("label5")
    assert not LabelIndexer.is_label("label6")


def test_label_name_claimed_twice():
    with pytest.raises(LabelError):
        LabelIndexer(COLLECTION, {"label1": "name", "label2": {"name": "name", "concat": ["name"]}})
