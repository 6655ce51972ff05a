"""
Tests for TranslatedCompendium lookup, translation and metadata stamping.
"""

import copy

import pytest

from babele.engine import Babele
from babele.models import CompendiumMetadata, Translation
from babele.translated_compendium import TranslatedCompendium, is_translated, stamp_translation_metadata

from conftest import ITEMS_METADATA, ITEMS_TRANSLATION_DE, ITEM_DOCUMENTS


@pytest.fixture
def engine(host):
    return Babele(host)


@pytest.fixture
def items(engine):
    metadata = CompendiumMetadata.model_validate(ITEMS_METADATA)
    tc = TranslatedCompendium(metadata, Translation.model_validate(ITEMS_TRANSLATION_DE), engine)
    engine.packs[tc.collection] = tc
    return tc


def longsword():
    return copy.deepcopy(ITEM_DOCUMENTS[0])


class TestMetadata:
    """Tests for translation markers."""

    def test_stamp_writes_both_placements(self):
        data = stamp_translation_metadata({"name": "Dolch"}, True, "Dagger")
        assert data["translated"] is True
        assert data["hasTranslation"] is True
        assert data["originalName"] == "Dagger"
        assert data["flags"]["babele"] == {"translated": True, "hasTranslation": True, "originalName": "Dagger"}

    def test_is_translated_reads_either_placement(self):
        assert is_translated({"translated": True})
        assert is_translated({"flags": {"babele": {"translated": True}}})
        assert not is_translated({"name": "x"})
        assert not is_translated(None)


class TestLookup:
    """Tests for entry lookup."""

    def test_state(self, items):
        assert items.translated
        assert items.label == "Gegenstände"
        assert items.collection == "dnd5e.items"

    def test_lookup_by_name(self, items):
        assert items.translations_for(longsword())["name"] == "Langschwert"

    def test_lookup_by_id(self, items):
        items.translations["longsword"] = {"name": "Langschwert (id)"}
        data = {"_id": "longsword", "name": "Renamed"}
        assert items.translations_for(data)["name"] == "Langschwert (id)"

    def test_name_wins_over_id(self, items):
        items.translations["longsword"] = {"name": "by id"}
        assert items.translations_for(longsword())["name"] == "Langschwert"

    def test_lookup_by_source_document_id(self, items):
        items.translations["longsword"] = {"name": "by uuid"}
        data = {"_id": "copy", "name": "Copy", "flags": {"core": {"sourceId": "Compendium.dnd5e.items.Item.longsword"}}}
        assert items.translations_for(data)["name"] == "by uuid"

    def test_document_from_other_pack_is_refused(self, items):
        data = {"name": "Longsword", "_stats": {"compendiumSource": "Compendium.other.items.Item.x"}}
        assert not items.has_translation(data)
        assert items.translations_for(data) == {}
        assert items.has_translation(data, check_uuid=False)

    def test_untranslated_compendium(self, engine):
        tc = TranslatedCompendium(CompendiumMetadata.model_validate(ITEMS_METADATA), None, engine)
        assert not tc.translated
        assert not tc.has_translation(longsword())
        assert tc.label == "Items"


class TestTranslate:
    """Tests for document translation."""

    def test_translate_document(self, items):
        original = longsword()
        result = items.translate(original)
        assert result["name"] == "Langschwert"
        assert result["system"]["description"]["value"] == "Eine vielseitige Klinge."
        assert result["type"] == "weapon"
        assert result["originalName"] == "Longsword"
        assert result["flags"]["babele"]["hasTranslation"] is True
        assert original == ITEM_DOCUMENTS[0]

    def test_translate_is_idempotent(self, items):
        once = items.translate(longsword())
        assert items.translate(once) is once

    def test_translations_only(self, items):
        assert items.translate(longsword(), translations_only=True) == {
            "name": "Langschwert",
            "system": {"description": {"value": "Eine vielseitige Klinge."}},
        }

    def test_missing_entry_is_marked(self, items):
        rope = copy.deepcopy(ITEM_DOCUMENTS[3])
        result = items.translate(rope)
        assert result["name"] == "Rope"
        assert result["hasTranslation"] is False
        assert result["translated"] is True

    def test_none(self, items):
        assert items.translate(None) is None
        assert items.translate_field("name", None) is None

    def test_translate_field(self, items):
        assert items.translate_field("name", longsword()) == "Langschwert"

    def test_translate_field_of_translated_document_extracts(self, items):
        translated = items.translate(longsword())
        assert items.translate_field("name", translated) == "Langschwert"

    def test_extract(self, items):
        assert items.extract(longsword()) == {"name": "Longsword", "description": "A versatile blade."}
        assert items.extract_field("description", longsword()) == "A versatile blade."


class TestReferences:
    """Tests for fallback reference collections."""

    @pytest.fixture
    def spells(self, engine, items):
        metadata = CompendiumMetadata(name="weapons", type="Item", package_name="homebrew", package_type="module")
        translation = Translation.model_validate({
            "reference": "dnd5e.items",
            "entries": {"Longsword": {"description": "Homebrew-Klinge."}},
        })
        tc = TranslatedCompendium(metadata, translation, engine)
        engine.packs[tc.collection] = tc
        return tc

    def test_own_entries_layer_over_reference(self, spells):
        result = spells.translate(longsword())
        assert result["name"] == "Langschwert"
        assert result["system"]["description"]["value"] == "Homebrew-Klinge."

    def test_reference_only_entry(self, spells):
        dagger = copy.deepcopy(ITEM_DOCUMENTS[1])
        assert spells.has_translation(dagger)
        assert spells.translate(dagger)["name"] == "Dolch"

    def test_reference_cycle_terminates(self, spells, items):
        items.references = ["homebrew.weapons"]
        rope = copy.deepcopy(ITEM_DOCUMENTS[3])
        assert not spells.has_translation(rope)
        assert spells.translate(rope)["hasTranslation"] is False
