"""
Babele - the translation engine.

Owns the converter registry and the registered translation providers,
drives the loader and keeps one TranslatedCompendium per translated
collection of the host.

Usage:
    engine = Babele(LocalWorld("worlds/my-world"), directory="translations")
    engine.register({"module": "my-translation", "lang": "de", "dir": "compendium"})
    if await engine.init():
        item = engine.translate("dnd5e.items", item_data)
"""

import copy
import logging
import time
from pathlib import Path
from typing import Any, Literal

from .collation import Collator
from .converters import Converter, default_converters
from .errors import BabeleError
from .host import CompendiumPack, Host
from .models import ActorTranslationReport, BabeleModule, Translation
from .storage import TranslationCache, TranslationLoader, merge_by_priority
from .translated_compendium import TranslatedCompendium
from .utils import collection_from_uuid, deep_merge, get_property, json_stringify_order, source_uuid
from .values import is_supported_type


logger = logging.getLogger("babele")


class Babele:
    """
    Orchestrates loading and applying compendium translations.

    Args:
        host: The host environment exposing packs, folders and files
        directory: World translations directory (files live in ``<directory>/<lang>``)
        cache: Translation cache; a disabled cache is used when omitted
    """

    def __init__(
        self,
        host: Host,
        directory: str | None = None,
        cache: TranslationCache | None = None,
    ):
        self.host = host
        self.directory = directory
        self.cache = cache or TranslationCache(None, host.system_id, host.world_id)

        self.converters: dict[str, Any] = {}
        self.translations: dict[str, Translation] = {}
        self.packs: dict[str, TranslatedCompendium] = {}

        self._modules: dict[str, BabeleModule] = {}
        self._system_folders: dict[str, str] = {}
        self._system_translations_dir: str | None = None
        self._initialized = False

        self.register_converters(default_converters())

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def language(self) -> str:
        return self.host.language

    @property
    def modules(self) -> list[BabeleModule]:
        return list(self._modules.values())

    # =========================================================================
    # Registration
    # =========================================================================

    def register_converters(self, converters: dict[str, Any]) -> None:
        """Add converters, replacing registered ones with the same name.

        Converter instances are bound to this engine; plain callables with
        the converter signature are registered as is.
        """
        for converter in converters.values():
            if isinstance(converter, Converter):
                converter.bind(self)
        self.converters = {**self.converters, **converters}

    def register(self, module: BabeleModule | dict[str, Any]) -> BabeleModule:
        """Register a translation provider.

        Registering the same provider id again adds its directories to the
        first registration.
        """
        if not isinstance(module, BabeleModule):
            module = BabeleModule.model_validate(module)

        existing = self._modules.get(module.module)
        if existing is None:
            self._modules[module.module] = module
            logger.debug(f"Registered translation provider {module.module} ({module.lang}, priority {module.priority})")
            return module

        existing.dir.extend(d for d in module.dir if d not in existing.dir)
        deep_merge(existing.custom_mappings, module.custom_mappings)
        if module.zip_file and not existing.zip_file:
            existing.zip_file = module.zip_file
        return existing

    def supported(self, document_type: str | None) -> bool:
        return is_supported_type(document_type)

    def set_system_translations_dir(self, directory: str) -> None:
        self._system_translations_dir = directory

    def custom_mapping(self, module_id: str, document_type: str) -> dict | None:
        """The mapping a provider declares for one document type, if any."""
        module = self._modules.get(module_id)
        if module is None:
            return None
        return module.custom_mappings.get(document_type)

    # =========================================================================
    # Initialization
    # =========================================================================

    async def init(self) -> bool:
        """Load the translations and set up the translated compendiums.

        Returns:
            True when translations are active, False when none exist for
            the active language
        """
        if self._initialized:
            return True

        self.cache.init(self.host.modules)
        loader = TranslationLoader(
            self.host,
            self.language,
            self.modules,
            directory=self.directory,
            system_translations_dir=self._system_translations_dir,
            cache=self.cache,
        )
        buckets = await loader.load_translations()
        if not buckets:
            logger.info(f"No translations available for '{self.language}'")
            return False

        translations, system_folders = merge_by_priority(buckets)
        if not translations and not system_folders:
            return False

        start = time.perf_counter()
        packs: dict[str, TranslatedCompendium] = {}
        for collection, translation in translations.items():
            pack = self.host.get_pack(collection)
            if pack is None or not self.supported(pack.document_type):
                continue
            packs[collection] = TranslatedCompendium(pack.metadata, translation, self)

        self.translations = translations
        self.packs = packs
        self._system_folders = system_folders

        for pack in self.host.packs:
            pack.reset_translation()
            tc = packs.get(pack.collection)
            if tc is None:
                continue
            pack.index = self.translate_index(copy.deepcopy(pack.source_index), pack.collection)
            pack.translated_label = tc.label
            for folder in pack.folders:
                folder.translate(tc.folders)

        count = self.host.translate_folders(system_folders)
        logger.debug(f"Translated {count} sidebar folders")

        elapsed = time.perf_counter() - start
        logger.info(f"Translated {len(packs)} compendium indexes in {elapsed:.2f}s")

        self._initialized = True
        return True

    async def reload(self) -> bool:
        """Discard the loaded state and load every source again."""
        self._initialized = False
        return await self.init()

    def clear_cache(self) -> None:
        self.cache.clear()

    # =========================================================================
    # Translation
    # =========================================================================

    def translate_index(self, index: list[dict], collection: str) -> list[dict]:
        """Translate index entries and sort them by translated name."""
        collator = Collator(self.language)
        translated = [self.translate(collection, data) or data for data in index]
        return sorted(translated, key=lambda data: collator.sort_key(data.get("name")))

    def translate(self, pack: str, data: dict, translations_only: bool = False) -> dict:
        """Translate a document of collection ``pack``.

        Documents of untranslated collections, and documents without a
        translation in a collection without dynamic fields, are returned
        unchanged.
        """
        tc = self.packs.get(pack)
        if tc is None or not (tc.has_translation(data) or tc.mapping.is_dynamic()):
            return data
        translated = tc.translate(data, translations_only=translations_only)
        return data if translated is None else translated

    def translate_field(self, field: str, pack: str, data: dict) -> Any:
        tc = self.packs.get(pack)
        if tc is None:
            return None
        if not (tc.has_translation(data) or tc.mapping.is_dynamic()):
            return tc.extract_field(field, data)
        return tc.translate_field(field, data)

    def extract(self, pack: str, data: dict) -> dict[str, Any]:
        tc = self.packs.get(pack)
        return tc.extract(data) if tc is not None else {}

    def extract_field(self, pack: str, field: str, data: dict) -> Any:
        tc = self.packs.get(pack)
        return tc.extract_field(field, data) if tc is not None else None

    def find_translated_pack(self, data: dict, document_type: str) -> TranslatedCompendium | None:
        """Find the translated compendium that knows an embedded document.

        The pack the document was created from is asked first, then every
        translated pack of ``document_type``.
        """
        source = self.packs.get(collection_from_uuid(source_uuid(data)) or "")
        if source is not None and source.translated and source.has_translation(data, check_uuid=False):
            return source

        for tc in self.packs.values():
            if tc.translated and tc.document_type == document_type and tc.has_translation(data):
                return tc
        return None

    def translate_actor(self, actor: dict) -> ActorTranslationReport:
        """Translate the items embedded in an actor.

        Returns:
            The item updates (translated fields plus ``_id``) with a
            per-item log
        """
        items = actor.get("items") or []
        report = ActorTranslationReport(total=len(items))

        for item in items:
            name = str(item.get("name", ""))
            tc = next(
                (p for p in self.packs.values() if p.translated and p.has_translation(item)),
                None,
            )
            if tc is None:
                report.log.append(f"{name.ljust(61, '.')}not found")
                report.untranslated += 1
                continue

            translated = tc.translate(item, translations_only=True)
            if not translated:
                continue
            report.updates.append(deep_merge(translated, {"_id": item.get("_id")}))
            report.log.append(f"{name.ljust(68, '.')}ok")
            report.translated += 1

        logger.info(
            f"Translated actor {actor.get('name')}: {report.translated} of {report.total} items"
        )
        return report

    # =========================================================================
    # Export
    # =========================================================================

    async def export_translations_file(
        self,
        pack: CompendiumPack | str,
        format: Literal["object", "legacy"] = "object",
        path: Path | str | None = None,
    ) -> str:
        """Build a translation skeleton for every document of a pack.

        Args:
            pack: The pack or its collection key
            format: ``"object"`` (entries keyed by name) or ``"legacy"`` (array)
            path: Optional file to write the result to

        Returns:
            The serialized translation file
        """
        if isinstance(pack, str):
            found = self.host.get_pack(pack)
            if found is None:
                raise BabeleError(f"Compendium not found: {pack}")
            pack = found

        collection = pack.collection
        tc = self.packs.get(collection) or TranslatedCompendium(pack.metadata, None, self)

        entries: dict[str, Any] | list[dict[str, Any]] = [] if format == "legacy" else {}
        for document in await pack.get_documents():
            name = str(get_property(document, "flags.babele.originalName") or document.get("name"))
            extracted = tc.extract(document)
            if isinstance(entries, list):
                entries.append(deep_merge({"id": name}, extracted))
            else:
                entries[name] = extracted

        file = {
            "collection": collection,
            "label": pack.metadata.label,
            "entries": entries,
            "mapping": tc.mapping.mapping,
        }
        text = json_stringify_order(file)

        if path is not None:
            Path(path).write_text(text, encoding="utf-8")
            logger.info(f"Exported {len(entries)} entries of {collection} to {path}")
        return text


__all__ = ["Babele"]
