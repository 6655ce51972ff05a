"""
Data models for translation files, providers and compendium metadata.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .values import DEFAULT_PRIORITY

# Translation data for a single field: a literal string or a nested entry
TranslationEntryData = Union[str, dict[str, Any]]
# Translations for one document, keyed by field name
TranslationEntry = dict[str, Any]
# Field name -> source path, or a dynamic mapping {"converter", "path"}
Mapping = dict[str, Union[str, dict[str, str]]]


class DynamicMapping(BaseModel):
    """A mapped field that is resolved through a registered converter."""
    converter: str = Field(..., description="Name of a registered converter")
    path: str = Field(..., description="Dot-delimited path of the source value")


class Translation(BaseModel):
    """The parsed contents of one translation JSON file.

    The ``entries`` key comes in two wire shapes:

    1. ``{"Original Name": {"name": "...", ...}, ...}``
    2. ``[{"id": "Original Name", "name": "...", ...}, ...]`` (legacy)

    Both are normalized into one ordered dict keyed by original name or id.
    ``entries_format`` remembers which shape was read.
    """
    model_config = ConfigDict(extra="allow")

    collection: str | None = Field(default=None, description="Target pack collection")
    label: str | None = Field(default=None, description="Translated pack label")
    mapping: Mapping | None = Field(default=None, description="Mapping overrides")
    entries: dict[str, Any] = Field(default_factory=dict)
    entries_format: Literal["object", "legacy"] = "object"
    folders: dict[str, str] = Field(default_factory=dict, description="Embedded folder names")
    reference: list[str] | None = Field(default=None, description="Fallback collections")
    module: str | None = Field(default=None, description="Id of the providing module")

    @model_validator(mode="before")
    @classmethod
    def _normalize_entries(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        entries = data.get("entries")
        if isinstance(entries, list):
            normalized: dict[str, TranslationEntry] = {}
            for entry in entries:
                if not isinstance(entry, dict):
                    continue
                key = entry.get("id")
                if not isinstance(key, str):
                    continue
                normalized[key] = entry
            data = {**data, "entries": normalized, "entries_format": "legacy"}
        elif entries is None and "entries" in data:
            data = {**data, "entries": {}}
        return data

    @field_validator("reference", mode="before")
    @classmethod
    def _normalize_reference(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("mapping", mode="before")
    @classmethod
    def _dump_dynamic_mappings(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                key: item.model_dump() if isinstance(item, DynamicMapping) else item
                for key, item in value.items()
            }
        return value

    def to_file_dict(self) -> dict[str, Any]:
        """Convert back to the JSON file layout, honouring ``entries_format``."""
        data = self.model_dump(exclude_none=True, exclude={"entries_format", "module"})
        if self.entries_format == "legacy":
            data["entries"] = [
                {"id": key, **{k: v for k, v in entry.items() if k != "id"}}
                for key, entry in self.entries.items()
            ]
        if not self.folders:
            data.pop("folders", None)
        return data


class BabeleModule(BaseModel):
    """A provider of translation files for one language.

    Accepts both the historic keys (``module``, ``lang``, ``dir``) and the
    descriptive ones (``id``, ``language``, ``directories``). A single
    directory string is normalized to a list.
    """
    model_config = ConfigDict(populate_by_name=True)

    module: str = Field(..., validation_alias=AliasChoices("module", "id"))
    lang: str = Field(..., validation_alias=AliasChoices("lang", "language"))
    dir: list[str] = Field(default_factory=list, validation_alias=AliasChoices("dir", "directories"))
    priority: int = DEFAULT_PRIORITY
    zip_file: str | None = Field(default=None, validation_alias=AliasChoices("zip_file", "zipFile"))
    custom_mappings: dict[str, Mapping] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("custom_mappings", "customMappings"),
    )

    @field_validator("dir", mode="before")
    @classmethod
    def _normalize_dir(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        if value is None:
            return []
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, value: Any) -> Any:
        return DEFAULT_PRIORITY if value is None else value

    @property
    def id(self) -> str:
        return self.module


class CompendiumMetadata(BaseModel):
    """Metadata of a compendium pack as exposed by the host."""
    model_config = ConfigDict(extra="allow")

    name: str
    label: str = ""
    type: str
    package_name: str = Field(default="world", validation_alias=AliasChoices("package_name", "packageName"))
    package_type: str = Field(default="world", validation_alias=AliasChoices("package_type", "packageType"))
    id: str | None = None

    @property
    def collection(self) -> str:
        """The stable collection key, e.g. ``dnd5e.items`` or ``world.monsters``."""
        if self.id:
            return self.id
        prefix = "world" if self.package_type == "world" else self.package_name
        return f"{prefix}.{self.name}"


class Folder(BaseModel):
    """A named folder, either inside a pack or in the compendium sidebar.

    ``original_name`` holds the untranslated name while a translation is
    applied, so folders can be translated again from their source name.
    """
    id: str | None = None
    name: str
    original_name: str | None = None

    def translate(self, translations: dict[str, str]) -> bool:
        """Rename from ``translations`` keyed by the untranslated name."""
        source = self.original_name or self.name
        translated = translations.get(source)
        self.name = translated or source
        self.original_name = source if translated else None
        return bool(translated)


class ModuleInfo(BaseModel):
    """Installed-module information used to validate cached translations."""
    id: str
    version: str | None = None
    active: bool = True


class ActorTranslationReport(BaseModel):
    """Result of translating the embedded items of an actor on demand."""
    updates: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    translated: int = 0
    untranslated: int = 0
    log: list[str] = Field(default_factory=list)


__all__ = [
    "TranslationEntry",
    "TranslationEntryData",
    "Mapping",
    "DynamicMapping",
    "Translation",
    "BabeleModule",
    "CompendiumMetadata",
    "Folder",
    "ModuleInfo",
    "ActorTranslationReport",
]
