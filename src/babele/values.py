"""
Constants shared across the translation engine.

Holds the supported compendium document types, the built-in field mapping
for each of them and a few reserved names used in translation files.
"""

DEFAULT_MAPPINGS: dict[str, dict] = {
    "Adventure": {
        "name": "name",
        "description": "description",
        "caption": "caption",
        "folders": {"path": "folders", "converter": "nameCollection"},
        "journals": {"path": "journal", "converter": "adventureJournals"},
        "scenes": {"path": "scenes", "converter": "adventureScenes"},
        "macros": {"path": "macros", "converter": "adventureMacros"},
        "playlists": {"path": "playlists", "converter": "adventurePlaylists"},
        "tables": {"path": "tables", "converter": "tableResultsCollection"},
        "items": {"path": "items", "converter": "adventureItems"},
        "actors": {"path": "actors", "converter": "adventureActors"},
        "cards": {"path": "cards", "converter": "adventureCards"},
    },
    "Actor": {
        "name": "name",
        "description": "system.details.biography.value",
        "items": {"path": "items", "converter": "fromPack"},
        "tokenName": {"path": "prototypeToken.name", "converter": "name"},
    },
    "Cards": {
        "name": "name",
        "description": "description",
        "cards": {"path": "cards", "converter": "deckCards"},
    },
    "Folder": {},
    "Item": {
        "name": "name",
        "description": "system.description.value",
    },
    "JournalEntry": {
        "name": "name",
        "description": "content",
        "pages": {"path": "pages", "converter": "pages"},
    },
    "Macro": {
        "name": "name",
        "command": "command",
    },
    "Playlist": {
        "name": "name",
        "description": "description",
        "sounds": {"path": "sounds", "converter": "playlistSounds"},
    },
    "RollTable": {
        "name": "name",
        "description": "description",
        "results": {"path": "results", "converter": "tableResults"},
    },
    "Scene": {
        "name": "name",
        "drawings": {"path": "drawings", "converter": "textCollection"},
        "notes": {"path": "notes", "converter": "textCollection"},
    },
}

SUPPORTED_PACKS: tuple[str, ...] = (
    "Adventure",
    "Actor",
    "Cards",
    "Folder",
    "Item",
    "JournalEntry",
    "Macro",
    "Playlist",
    "RollTable",
    "Scene",
)

# Translation files whose collection ends with this suffix only carry
# sidebar folder names and never belong to a document pack.
PACK_FOLDER_TRANSLATION_NAME_SUFFIX = "_packs-folders"

# Written in place of dynamic (converter-backed) fields in extracted skeletons
CONVERTER_PLACEHOLDER = "{{converter}}"

DEFAULT_PRIORITY = 100
DEFAULT_LANGUAGE = "en"


def is_supported_type(document_type: str | None) -> bool:
    """Check whether a compendium document type can be translated."""
    if not document_type:
        return False
    return document_type in SUPPORTED_PACKS


__all__ = [
    "DEFAULT_MAPPINGS",
    "SUPPORTED_PACKS",
    "PACK_FOLDER_TRANSLATION_NAME_SUFFIX",
    "CONVERTER_PLACEHOLDER",
    "DEFAULT_PRIORITY",
    "DEFAULT_LANGUAGE",
    "is_supported_type",
]
