"""
Discovery and loading of translation files.

Translation files are collected from three kinds of source:

1. the configured translations directory of the world (``<directory>/<lang>``)
2. the translations directory bundled with the game system
3. every registered module for the active language, either a directory
   or a zip archive

Every source gets a priority: the world directory 0, the system directory
and modules their declared priority (default 100). Lower numbers win.
"""

import asyncio
import io
import json
import logging
import time
import zipfile
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Iterable

from pydantic import ValidationError

from ..errors import FileProviderError, TranslationLoadError
from ..models import BabeleModule, Translation
from ..utils import deep_merge
from ..values import DEFAULT_PRIORITY, PACK_FOLDER_TRANSLATION_NAME_SUFFIX, is_supported_type
from .cache import TranslationCache

if TYPE_CHECKING:
    from ..host import Host


logger = logging.getLogger("babele")

WORLD_DIRECTORY_PRIORITY = 0


def parse_translation(content: bytes | str, source: str) -> Translation:
    """Parse the content of one translation file.

    Raises:
        TranslationLoadError: If the content is not a valid translation
    """
    try:
        data = json.loads(content)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TranslationLoadError(f"Invalid JSON in {source}: {e}") from e
    if not isinstance(data, dict):
        raise TranslationLoadError(f"Expected an object in {source}, got {type(data).__name__}")
    try:
        return Translation.model_validate(data)
    except ValidationError as e:
        raise TranslationLoadError(f"Invalid translation file {source}: {e}") from e


def merge_by_priority(
    priority_map: dict[int, list[Translation]],
) -> tuple[dict[str, Translation], dict[str, str]]:
    """Collapse translations of all priorities into one per collection.

    Buckets are walked from the lowest (strongest) priority up. A later,
    weaker translation for a collection already seen only contributes the
    fields the stronger one lacks. Folder files (``*_packs-folders``) are
    merged into one map of sidebar folder names the same way.

    Returns:
        (translations by collection, sidebar folder translations)
    """
    translations: dict[str, Translation] = {}
    system_folders: dict[str, str] = {}

    for priority in sorted(priority_map):
        for translation in priority_map[priority]:
            collection = translation.collection
            if not collection:
                continue

            if collection.endswith(PACK_FOLDER_TRANSLATION_NAME_SUFFIX):
                names = {k: v for k, v in translation.entries.items() if isinstance(v, str)}
                system_folders = {**names, **system_folders}
                continue

            existing = translations.get(collection)
            if existing is None:
                translations[collection] = translation
                continue

            merged = deep_merge(
                translation.model_dump(exclude_none=True),
                existing.model_dump(exclude_none=True),
            )
            translations[collection] = Translation.model_validate(merged)

    return translations, system_folders


class TranslationLoader:
    """Loads the translation files of every source for one language.

    Args:
        host: The host environment (packs and file provider)
        language: Active language
        modules: Registered translation providers
        directory: The world translations directory, if configured
        system_translations_dir: The system's bundled translations directory
        cache: Cache for translations loaded from modules
    """

    def __init__(
        self,
        host: "Host",
        language: str,
        modules: Iterable[BabeleModule],
        directory: str | None = None,
        system_translations_dir: str | None = None,
        cache: TranslationCache | None = None,
    ):
        self.host = host
        self.language = language
        self.modules = [m for m in modules if m.lang == language]
        self.directory = directory
        self.system_translations_dir = system_translations_dir
        self.cache = cache
        self._priority_map: dict[int, list[Translation]] = {}
        self._all_files: list[str] = []
        self._cached_files: list[str] | None = None

    # =========================================================================
    # Entry point
    # =========================================================================

    async def load_translations(self) -> dict[int, list[Translation]] | None:
        """Load every source concurrently.

        Returns:
            Translations grouped by priority, or None when nothing was found
        """
        start = time.perf_counter()
        self._priority_map = {}
        self._all_files = []
        self._cached_files = None

        tasks = []
        if self.directory and self.directory.strip():
            path = f"{self.directory.strip().strip('/')}/{self.language}"
            tasks.append(self._load_directory(path, WORLD_DIRECTORY_PRIORITY))

        if self.system_translations_dir:
            path = f"systems/{self.host.system_id}/{self.system_translations_dir.strip('/')}/{self.language}"
            tasks.append(self._load_directory(path, DEFAULT_PRIORITY))

        for module in self.modules:
            cached = self.cache.get_module_data(module.module) if self.cache else None
            if cached:
                logger.debug(f"Using {len(cached)} cached translations of {module.module}")
                for translation in cached:
                    translation.module = module.module
                    self._add(module.priority, translation)
                continue
            tasks.append(self._load_module(module))

        results = await asyncio.gather(*tasks, return_exceptions=True)

        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"Translation source failed: {result}")
            elif result is not None:
                module_id, translations = result
                self._save_module(module_id, translations)

        if self.cache and self.host.files.can_browse and self._all_files:
            self.cache.save_file_list(self._all_files)

        total = sum(len(bucket) for bucket in self._priority_map.values())
        elapsed = time.perf_counter() - start
        logger.info(f"Loaded {total} translation files for '{self.language}' in {elapsed:.2f}s")

        if total == 0:
            return None
        return self._priority_map

    # =========================================================================
    # Sources
    # =========================================================================

    async def _load_module(self, module: BabeleModule) -> tuple[str, list[Translation]]:
        """Load a module's directories, or its archive when it declares one.

        A directory that fails to load is skipped; the others still count.
        """
        loaded: list[Translation] = []
        directories = module.dir or [""]
        for directory in directories:
            base = "/".join(p for p in (f"modules/{module.module}", directory.strip("/")) if p)
            try:
                if module.zip_file:
                    translations = await self._load_archive(f"{base}/{module.zip_file}")
                else:
                    translations = await self._load_files(base)
            except TranslationLoadError as e:
                logger.warning(f"Skipping translations of {module.module} in {base}: {e}")
                continue

            for translation in translations:
                translation.module = module.module
                self._add(module.priority, translation)
            loaded.extend(translations)
        return module.module, loaded

    async def _load_directory(self, directory: str, priority: int) -> None:
        for translation in await self._load_files(directory):
            self._add(priority, translation)

    async def _load_files(self, directory: str) -> list[Translation]:
        files = await self._files_from_directory(directory)
        return await self._get_json_content(files)

    async def _files_from_directory(self, directory: str) -> list[str]:
        files = self.host.files
        if not files.can_browse:
            prefix = directory.rstrip("/") + "/"
            return [
                f for f in self._cached_file_list()
                if f.startswith(prefix) and "/" not in f[len(prefix):]
            ]

        try:
            found = await files.browse(directory, extensions=(".json",))
        except FileProviderError as e:
            logger.warning(f"Cannot list translation files in {directory}: {e}")
            return []
        self._all_files.extend(found)
        return found

    def _cached_file_list(self) -> list[str]:
        if self._cached_files is None:
            self._cached_files = self.cache.load_file_list() if self.cache else []
            if not self._cached_files:
                logger.warning("Translation files cannot be listed and no cached file list exists")
        return self._cached_files

    async def _get_json_content(self, files: list[str]) -> list[Translation]:
        accepted = [(f, self._collection_name(f)) for f in files]
        accepted = [(f, c) for f, c in accepted if self._accepts(c)]

        results = await asyncio.gather(
            *(self._fetch_translation(f, c) for f, c in accepted),
            return_exceptions=True,
        )

        translations = []
        for (path, _), result in zip(accepted, results):
            if isinstance(result, Exception):
                logger.warning(f"Skipping translation file {path}: {result}")
            else:
                translations.append(result)
        return translations

    async def _fetch_translation(self, path: str, collection: str) -> Translation:
        try:
            content = await self.host.files.fetch(path)
        except FileProviderError as e:
            raise TranslationLoadError(str(e)) from e
        translation = parse_translation(content, path)
        if not translation.collection:
            translation.collection = collection
        return translation

    async def _load_archive(self, path: str) -> list[Translation]:
        """Load every translation file inside a zip archive."""
        try:
            content = await self.host.files.fetch(path)
        except FileProviderError as e:
            raise TranslationLoadError(f"Cannot fetch archive {path}: {e}") from e

        try:
            archive = zipfile.ZipFile(io.BytesIO(content))
        except zipfile.BadZipFile as e:
            raise TranslationLoadError(f"Invalid archive {path}: {e}") from e

        translations = []
        with archive:
            for info in archive.infolist():
                if info.is_dir() or not info.filename.lower().endswith(".json"):
                    continue
                collection = self._collection_name(info.filename)
                if not self._accepts(collection):
                    continue
                source = f"{path}:{info.filename}"
                try:
                    translation = parse_translation(archive.read(info), source)
                except TranslationLoadError as e:
                    logger.warning(f"Skipping translation file {source}: {e}")
                    continue
                if not translation.collection:
                    translation.collection = collection
                translations.append(translation)

        logger.debug(f"Loaded {len(translations)} translations from archive {path}")
        return translations

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _collection_name(path: str) -> str:
        name = PurePosixPath(path).name
        return name[:-5] if name.lower().endswith(".json") else name

    def _accepts(self, collection: str) -> bool:
        """Folder files and files for installed packs of a supported type."""
        if collection.endswith(PACK_FOLDER_TRANSLATION_NAME_SUFFIX):
            return True
        pack = self.host.get_pack(collection)
        return pack is not None and is_supported_type(pack.document_type)

    def _add(self, priority: int, translation: Translation) -> None:
        self._priority_map.setdefault(priority, []).append(translation)

    def _save_module(self, module_id: str, translations: list[Translation]) -> None:
        if not self.cache or not translations:
            return
        info = self.host.modules.get(module_id)
        version = info.version if info else None
        self.cache.save_module_data(module_id, version, translations)


__all__ = [
    "TranslationLoader",
    "merge_by_priority",
    "parse_translation",
    "WORLD_DIRECTORY_PRIORITY",
]
