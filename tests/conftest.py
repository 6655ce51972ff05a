"""
Pytest configuration and fixtures for babele tests.
"""

import json
import sys
from pathlib import Path
import pytest

# Add src directory to Python path to allow importing babele
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from babele.host import CompendiumPack, Host
from babele.storage.files import LocalFileProvider


# Configure anyio to only use asyncio (not trio)
@pytest.fixture
def anyio_backend():
    return "asyncio"


# ==============================================================================
# Sample data
# ==============================================================================

ITEMS_METADATA = {
    "name": "items",
    "label": "Items",
    "type": "Item",
    "packageName": "dnd5e",
    "packageType": "system",
}

MONSTERS_METADATA = {
    "name": "monsters",
    "label": "Monsters",
    "type": "Actor",
    "packageName": "dnd5e",
    "packageType": "system",
}

ITEM_DOCUMENTS = [
    {
        "_id": "longsword",
        "name": "Longsword",
        "type": "weapon",
        "system": {"description": {"value": "A versatile blade."}},
    },
    {
        "_id": "dagger",
        "name": "Dagger",
        "type": "weapon",
        "system": {"description": {"value": "A small blade."}},
    },
    {
        "_id": "axe",
        "name": "Axe",
        "type": "weapon",
        "system": {"description": {"value": "A chopping tool."}},
    },
    {
        "_id": "rope",
        "name": "Rope",
        "type": "loot",
        "system": {"description": {"value": "Fifty feet of hempen rope."}},
    },
]

GOBLIN = {
    "_id": "goblin",
    "name": "Goblin",
    "type": "npc",
    "system": {"details": {"biography": {"value": "A small, black-hearted humanoid."}}},
    "prototypeToken": {"name": "Goblin"},
    "items": [
        {
            "_id": "goblindagger",
            "name": "Dagger",
            "type": "weapon",
            "flags": {"core": {"sourceId": "Compendium.dnd5e.items.Item.dagger"}},
            "system": {"description": {"value": "A small blade."}},
        },
        {
            "_id": "goblinbite",
            "name": "Bite",
            "type": "weapon",
            "system": {"description": {"value": "Teeth."}},
        },
    ],
}

ITEMS_TRANSLATION_DE = {
    "label": "Gegenstände",
    "entries": {
        "Longsword": {"name": "Langschwert", "description": "Eine vielseitige Klinge."},
        "Dagger": {"name": "Dolch", "description": "Eine kleine Klinge."},
        "Axe": {"name": "Äxte"},
    },
}

MONSTERS_TRANSLATION_DE = {
    "label": "Monster",
    "entries": {
        "Goblin": {"name": "Kobold", "description": "Ein kleiner, hinterhältiger Humanoide."},
    },
}


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


def make_packs() -> list[CompendiumPack]:
    return [
        CompendiumPack(ITEMS_METADATA, documents=json.loads(json.dumps(ITEM_DOCUMENTS))),
        CompendiumPack(MONSTERS_METADATA, documents=[json.loads(json.dumps(GOBLIN))]),
    ]


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def data_dir(tmp_path):
    """A data directory with one German translation module."""
    root = tmp_path / "data"
    module_dir = root / "modules" / "lang-de" / "compendium"
    write_json(module_dir / "dnd5e.items.json", ITEMS_TRANSLATION_DE)
    write_json(module_dir / "dnd5e.monsters.json", MONSTERS_TRANSLATION_DE)
    return root


@pytest.fixture
def host(data_dir):
    """An in-memory German host serving files from ``data_dir``."""
    return Host(
        files=LocalFileProvider(data_dir),
        packs=make_packs(),
        language="de",
        system_id="dnd5e",
        world_id="test-world",
    )


@pytest.fixture
def de_module():
    return {"module": "lang-de", "lang": "de", "dir": "compendium"}
