"""
Tests for the object helpers: paths, deep merge, uuids and ordered JSON.
"""

import json

from babele.utils import (
    collection_from_uuid,
    deep_merge,
    document_id_from_uuid,
    expand_object,
    flatten_object,
    get_property,
    json_stringify_order,
    set_property,
    source_uuid,
)


class TestPaths:
    """Tests for dot-path access."""

    def test_get_nested_property(self):
        data = {"system": {"description": {"value": "x"}}}
        assert get_property(data, "system.description.value") == "x"

    def test_get_missing_property_returns_default(self):
        assert get_property({"a": {}}, "a.b.c") is None
        assert get_property({"a": 1}, "a.b", "fallback") == "fallback"

    def test_get_list_index(self):
        assert get_property({"faces": [{"name": "A"}, {"name": "B"}]}, "faces.1.name") == "B"
        assert get_property({"faces": []}, "faces.0.name") is None

    def test_set_property_creates_parents(self):
        data = {}
        set_property(data, "a.b.c", 1)
        assert data == {"a": {"b": {"c": 1}}}

    def test_expand_and_flatten(self):
        flat = {"name": "x", "system.description.value": "y"}
        nested = expand_object(flat)
        assert nested == {"name": "x", "system": {"description": {"value": "y"}}}
        assert flatten_object(nested) == flat


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_merges_mappings_recursively(self):
        result = deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3, "d": 4}})
        assert result == {"a": {"b": 1, "c": 3, "d": 4}}

    def test_lists_replace(self):
        assert deep_merge({"a": [1, 2, 3]}, {"a": [9]}) == {"a": [9]}

    def test_none_never_overwrites(self):
        assert deep_merge({"a": 1}, {"a": None}) == {"a": 1}

    def test_none_never_creates_keys(self):
        assert deep_merge({}, {"a": None, "b": {"c": None}}) == {"b": {}}

    def test_not_inplace_leaves_original(self):
        original = {"a": {"b": 1}}
        result = deep_merge(original, {"a": {"b": 2}}, inplace=False)
        assert original == {"a": {"b": 1}}
        assert result == {"a": {"b": 2}}

    def test_result_does_not_alias_other(self):
        other = {"a": {"b": [1]}}
        result = deep_merge({}, other)
        result["a"]["b"].append(2)
        assert other == {"a": {"b": [1]}}


class TestUuids:
    """Tests for compendium uuid helpers."""

    def test_collection_and_document_id(self):
        uuid = "Compendium.dnd5e.items.Item.abc123"
        assert collection_from_uuid(uuid) == "dnd5e.items"
        assert document_id_from_uuid(uuid) == "abc123"

    def test_non_compendium_uuid(self):
        assert collection_from_uuid("Actor.abc") is None
        assert document_id_from_uuid("Item.abc") is None
        assert collection_from_uuid(None) is None

    def test_source_uuid_precedence(self):
        data = {
            "uuid": "Compendium.world.a.Item.3",
            "_stats": {"compendiumSource": "Compendium.world.b.Item.2"},
            "flags": {"core": {"sourceId": "Compendium.world.c.Item.1"}},
        }
        assert source_uuid(data) == "Compendium.world.c.Item.1"
        del data["flags"]
        assert source_uuid(data) == "Compendium.world.b.Item.2"
        del data["_stats"]
        assert source_uuid(data) == "Compendium.world.a.Item.3"
        assert source_uuid({"uuid": "Item.1"}) == ""


class TestJsonStringifyOrder:
    """Tests for deterministic serialization."""

    def test_keys_sorted_at_every_level(self):
        text = json_stringify_order({"b": 1, "a": {"d": 1, "c": 2}})
        assert text == json.dumps({"a": {"c": 2, "d": 1}, "b": 1}, indent=4) + "\n"

    def test_generated_ids_follow_sorted_keys(self):
        obj = {"zzzzzzzzzzzzzzzzzzzzzz1": 1, "name": "x", "aaaaaaaaaaaaaaaaaaaaaa2": 2, "label": "y"}
        keys = list(json.loads(json_stringify_order(obj)))
        assert keys == ["label", "name", "zzzzzzzzzzzzzzzzzzzzzz1", "aaaaaaaaaaaaaaaaaaaaaa2"]

    def test_removal_keys_dropped(self):
        assert json.loads(json_stringify_order({"a": 1, "-=b": None})) == {"a": 1}

    def test_unicode_kept(self):
        assert "Äxte" in json_stringify_order({"name": "Äxte"})

    def test_output_is_stable(self):
        obj = {"entries": {"B": {"name": "b"}, "A": {"name": "a"}}, "collection": "x"}
        assert json_stringify_order(obj) == json_stringify_order(json.loads(json_stringify_order(obj)))
