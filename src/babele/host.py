"""
The environment the translation engine runs in.

A :class:`Host` exposes the compendium packs to translate, the sidebar
folders, the installed modules and a :class:`FileProvider` for translation
files. :class:`LocalWorld` builds a host from a world directory on disk::

    world/
        world.json              {"id", "system", "language", "modules": [...]}
        packs/<name>.json       {"metadata": {...}, "folders": [...], "documents": [...]}
        folders.json            [{"id", "name"}, ...]       (optional)
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import BabeleError
from .models import CompendiumMetadata, Folder, ModuleInfo
from .storage.files import FileProvider, LocalFileProvider
from .values import DEFAULT_LANGUAGE


logger = logging.getLogger("babele")

INDEX_FIELDS = ("_id", "name", "type", "img", "folder", "sort")


class HostError(BabeleError):
    """A world directory or pack file is invalid."""
    pass


class CompendiumPack:
    """A compendium pack: metadata, a lightweight index, folders and documents.

    The engine rebuilds ``index`` from ``source_index``, translated and
    re-sorted, and sets ``translated_label`` on every initialization.
    """

    def __init__(
        self,
        metadata: CompendiumMetadata | dict[str, Any],
        documents: list[dict] | None = None,
        folders: list[Folder | dict[str, Any]] | None = None,
        index: list[dict] | None = None,
    ):
        if not isinstance(metadata, CompendiumMetadata):
            metadata = CompendiumMetadata.model_validate(metadata)
        self.metadata = metadata
        self._documents = documents or []
        self.folders = [f if isinstance(f, Folder) else Folder.model_validate(f) for f in folders or []]
        self.source_index = index if index is not None else self.build_index()
        self.index = copy.deepcopy(self.source_index)
        self.translated_label: str | None = None

    @property
    def collection(self) -> str:
        return self.metadata.collection

    @property
    def document_type(self) -> str:
        return self.metadata.type

    @property
    def label(self) -> str:
        return self.translated_label or self.metadata.label

    def document_uuid(self, document_id: str) -> str:
        return f"Compendium.{self.collection}.{self.document_type}.{document_id}"

    def build_index(self) -> list[dict]:
        index = []
        for document in self._documents:
            entry = {key: document[key] for key in INDEX_FIELDS if key in document}
            if document.get("_id"):
                entry["uuid"] = self.document_uuid(document["_id"])
            index.append(entry)
        return index

    def reset_translation(self) -> None:
        """Restore the untranslated index, label and folder names."""
        self.index = copy.deepcopy(self.source_index)
        self.translated_label = None
        for folder in self.folders:
            folder.translate({})

    async def get_documents(self) -> list[dict]:
        """Return copies of the pack's documents."""
        return copy.deepcopy(self._documents)

    async def get_document(self, key: str) -> dict | None:
        """Find a document by id or name."""
        for document in self._documents:
            if document.get("_id") == key or document.get("name") == key:
                return copy.deepcopy(document)
        return None

    def __repr__(self) -> str:
        return f"CompendiumPack({self.collection!r}, {self.document_type}, {len(self._documents)} documents)"


class Host:
    """In-memory host environment.

    Args:
        files: Provider for translation files
        packs: Compendium packs of the world
        language: Active language
        system_id: Id of the active game system
        world_id: Id of the active world
        folders: Compendium sidebar folders
        modules: Installed modules by id
    """

    def __init__(
        self,
        files: FileProvider,
        packs: list[CompendiumPack] | None = None,
        language: str = DEFAULT_LANGUAGE,
        system_id: str = "system",
        world_id: str = "world",
        folders: list[Folder] | None = None,
        modules: dict[str, ModuleInfo] | None = None,
    ):
        self.files = files
        self.packs = list(packs or [])
        self.language = language
        self.system_id = system_id
        self.world_id = world_id
        self.folders = list(folders or [])
        self.modules = dict(modules or {})

    def get_pack(self, collection: str) -> CompendiumPack | None:
        return next((p for p in self.packs if p.collection == collection), None)

    def translate_folders(self, translations: dict[str, str]) -> int:
        """Rename sidebar folders from their untranslated names.

        Folders missing from ``translations`` get their original name back.
        """
        return sum(folder.translate(translations) for folder in self.folders)


class LocalWorld(Host):
    """A host backed by a world directory on disk.

    Translation files are served from ``data_dir`` (the directory holding
    ``modules/`` and ``systems/``); it defaults to the world's parent.
    """

    def __init__(
        self,
        world_dir: Path | str,
        data_dir: Path | str | None = None,
        language: str | None = None,
    ):
        self.world_dir = Path(world_dir)
        if not self.world_dir.is_dir():
            raise HostError(f"World directory not found: {self.world_dir}")

        manifest = self._read_json(self.world_dir / "world.json", default={})
        modules = {}
        for raw in manifest.get("modules", []):
            try:
                module = ModuleInfo.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping invalid module entry in world.json: {e}")
                continue
            modules[module.id] = module

        folders = [
            Folder.model_validate(f)
            for f in self._read_json(self.world_dir / "folders.json", default=[])
        ]

        super().__init__(
            files=LocalFileProvider(data_dir if data_dir is not None else self.world_dir.parent),
            packs=self._load_packs(),
            language=language or manifest.get("language") or DEFAULT_LANGUAGE,
            system_id=manifest.get("system", "system"),
            world_id=manifest.get("id", self.world_dir.name),
            folders=folders,
            modules=modules,
        )

    @staticmethod
    def _read_json(path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise HostError(f"Cannot read {path}: {e}") from e

    def _load_packs(self) -> list[CompendiumPack]:
        packs = []
        packs_dir = self.world_dir / "packs"
        if not packs_dir.is_dir():
            return packs

        for path in sorted(packs_dir.glob("*.json")):
            data = self._read_json(path, default={})
            metadata = data.get("metadata") or {}
            metadata.setdefault("name", path.stem)
            try:
                pack = CompendiumPack(
                    metadata,
                    documents=data.get("documents", []),
                    folders=data.get("folders", []),
                )
            except ValidationError as e:
                logger.warning(f"Skipping invalid pack {path.name}: {e}")
                continue
            packs.append(pack)

        logger.debug(f"Loaded {len(packs)} packs from {packs_dir}")
        return packs


__all__ = ["CompendiumPack", "Host", "HostError", "LocalWorld"]
