"""
Tests for compendium packs and the directory-backed LocalWorld host.
"""

import pytest

from babele.engine import Babele
from babele.host import CompendiumPack, HostError, LocalWorld
from babele.models import Folder

from conftest import GOBLIN, ITEMS_METADATA, ITEMS_TRANSLATION_DE, ITEM_DOCUMENTS, MONSTERS_METADATA, write_json


pytestmark = pytest.mark.anyio


@pytest.fixture
def world_dir(tmp_path):
    """A world on disk next to a German translation module."""
    world = tmp_path / "worlds" / "test-world"
    write_json(world / "world.json", {
        "id": "test-world",
        "system": "dnd5e",
        "language": "de",
        "modules": [
            {"id": "lang-de", "version": "2.0.0"},
            {"version": "no id"},
        ],
    })
    write_json(world / "packs" / "items.json", {"metadata": ITEMS_METADATA, "documents": ITEM_DOCUMENTS})
    write_json(world / "packs" / "monsters.json", {
        "metadata": MONSTERS_METADATA,
        "folders": [{"id": "f1", "name": "Humanoids"}],
        "documents": [GOBLIN],
    })
    write_json(world / "packs" / "broken.json", {"metadata": {"label": "No type"}})
    write_json(world / "folders.json", [{"id": "s1", "name": "Equipment"}])
    write_json(tmp_path / "worlds" / "modules" / "lang-de" / "compendium" / "dnd5e.items.json", ITEMS_TRANSLATION_DE)
    return world


class TestCompendiumPack:
    """Tests for CompendiumPack."""

    def test_index_built_from_documents(self):
        pack = CompendiumPack(ITEMS_METADATA, documents=ITEM_DOCUMENTS)
        assert pack.collection == "dnd5e.items"
        assert pack.index[0] == {
            "_id": "longsword",
            "name": "Longsword",
            "type": "weapon",
            "uuid": "Compendium.dnd5e.items.Item.longsword",
        }

    def test_label(self):
        pack = CompendiumPack(ITEMS_METADATA)
        assert pack.label == "Items"
        pack.translated_label = "Gegenstände"
        assert pack.label == "Gegenstände"

    async def test_documents_are_copies(self):
        pack = CompendiumPack(ITEMS_METADATA, documents=[{"_id": "a", "name": "A"}])
        documents = await pack.get_documents()
        documents[0]["name"] = "changed"
        assert (await pack.get_document("a"))["name"] == "A"
        assert (await pack.get_document("A"))["_id"] == "a"
        assert await pack.get_document("missing") is None


class TestLocalWorld:
    """Tests for LocalWorld."""

    def test_reads_world(self, world_dir, caplog):
        world = LocalWorld(world_dir)
        assert world.world_id == "test-world"
        assert world.system_id == "dnd5e"
        assert world.language == "de"
        assert list(world.modules) == ["lang-de"]
        assert world.modules["lang-de"].version == "2.0.0"
        assert sorted(p.collection for p in world.packs) == ["dnd5e.items", "dnd5e.monsters"]
        assert world.get_pack("dnd5e.monsters").folders == [Folder(id="f1", name="Humanoids")]
        assert world.folders == [Folder(id="s1", name="Equipment")]
        assert "Skipping invalid pack broken.json" in caplog.text

    def test_language_override(self, world_dir):
        assert LocalWorld(world_dir, language="fr").language == "fr"

    def test_missing_world(self, tmp_path):
        with pytest.raises(HostError):
            LocalWorld(tmp_path / "nope")

    def test_invalid_manifest(self, tmp_path):
        (tmp_path / "world.json").write_text("{oops")
        with pytest.raises(HostError):
            LocalWorld(tmp_path)

    async def test_engine_on_local_world(self, world_dir):
        world = LocalWorld(world_dir)
        engine = Babele(world)
        engine.register({"module": "lang-de", "lang": "de", "dir": "compendium"})
        assert await engine.init()
        names = [entry["name"] for entry in world.get_pack("dnd5e.items").index]
        assert names == ["Äxte", "Dolch", "Langschwert", "Rope"]
        assert "dnd5e.monsters" not in engine.packs

    def test_translate_folders(self, world_dir):
        world = LocalWorld(world_dir)
        assert world.translate_folders({"Equipment": "Ausrüstung", "Other": "Andere"}) == 1
        assert world.folders[0].name == "Ausrüstung"
        assert world.translate_folders({"Equipment": "Gegenstände"}) == 1
        assert world.folders[0].name == "Gegenstände"
        assert world.translate_folders({}) == 0
        assert world.folders[0].name == "Equipment"

    def test_reset_translation(self, world_dir):
        pack = LocalWorld(world_dir).get_pack("dnd5e.monsters")
        pack.index = [{"_id": "goblin", "name": "Kobold"}]
        pack.translated_label = "Monster"
        pack.folders[0].translate({"Humanoids": "Humanoide"})

        pack.reset_translation()
        assert pack.index == pack.source_index
        assert pack.index[0]["name"] == "Goblin"
        assert pack.label == MONSTERS_METADATA["label"]
        assert pack.folders[0].name == "Humanoids"
