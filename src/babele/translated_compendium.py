"""
TranslatedCompendium - binds a mapping to one pack's translation data.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from .mapping import CompendiumMapping
from .models import CompendiumMetadata, Translation, TranslationEntry
from .utils import collection_from_uuid, deep_merge, document_id_from_uuid, source_uuid

if TYPE_CHECKING:
    from .engine import Babele


def is_translated(data: dict | None) -> bool:
    """Whether a document already carries translation metadata."""
    if not data:
        return False
    if data.get("translated"):
        return True
    flags = data.get("flags") or {}
    return bool((flags.get("babele") or {}).get("translated"))


def stamp_translation_metadata(data: dict, has_translation: bool, original_name: Any) -> dict:
    """Write the translation markers into ``data``.

    Markers are written both at top level (read by older translation
    modules and compendium indexes) and under ``flags.babele``.
    """
    marker = {
        "translated": True,
        "hasTranslation": has_translation,
        "originalName": original_name,
    }
    return deep_merge(data, {**marker, "flags": {"babele": dict(marker)}})


class TranslatedCompendium:
    """The translation authority for one compendium collection.

    Without a Translation the instance is untranslated and passes documents
    through. With one, entries are looked up by original name, then by id,
    then by the id of the compendium document a copy was created from.

    Attributes:
        metadata: Pack metadata as provided by the host
        mapping: CompendiumMapping for the pack's document type
        translations: Original name/id -> TranslationEntry
        translated: Whether translation data was supplied
        references: Collections consulted when the direct lookup misses
        folders: Embedded folder name translations
    """

    def __init__(
        self,
        metadata: CompendiumMetadata,
        translation: Translation | None = None,
        engine: Babele | None = None,
    ):
        self.metadata = metadata
        self.engine = engine
        self.translation = translation
        self.translations: dict[str, TranslationEntry] = {}
        self.folders: dict[str, str] = {}
        self.translated = False
        self.references: list[str] | None = None
        self.label = metadata.label
        self._resolving = False

        mapping = copy.deepcopy(self.custom_mapping(metadata.type) or {})
        if translation is not None:
            deep_merge(mapping, translation.mapping)
        self.mapping = CompendiumMapping(metadata.type, mapping, engine, self)

        if translation is not None:
            self.translated = True
            if translation.label:
                self.label = translation.label
            if translation.reference:
                self.references = list(translation.reference)
            self.translations = dict(translation.entries)
            self.folders = dict(translation.folders)

    @property
    def collection(self) -> str:
        return self.metadata.collection

    @property
    def document_type(self) -> str:
        return self.metadata.type

    @property
    def translations_object(self) -> dict[str, TranslationEntry]:
        return dict(self.translations)

    def custom_mapping(self, document_type: str) -> dict | None:
        """The mapping the providing module declares for ``document_type``."""
        if self.engine is None or self.translation is None or not self.translation.module:
            return None
        return self.engine.custom_mapping(self.translation.module, document_type)

    # =========================================================================
    # Lookup
    # =========================================================================

    def _is_same_collection(self, uuid: str) -> bool:
        return collection_from_uuid(uuid) == self.collection

    def _lookup(self, data: dict) -> TranslationEntry | None:
        for key in (data.get("name"), data.get("_id"), document_id_from_uuid(source_uuid(data))):
            if isinstance(key, str) and key in self.translations:
                return self.translations[key]
        return None

    def _reference_packs(self):
        if not self.references or self.engine is None:
            return
        for reference in self.references:
            pack = self.engine.packs.get(reference)
            if pack is not None and pack is not self and pack.translated:
                yield pack

    def has_translation(self, data: dict, check_uuid: bool = True) -> bool:
        """Does a translation for ``data`` exist in this compendium?

        Args:
            data: Original document data
            check_uuid: Refuse documents created from another pack
        """
        uuid = source_uuid(data)
        if check_uuid and uuid and not self._is_same_collection(uuid):
            return False
        if self._lookup(data) is not None:
            return True
        return self._reference_pack_for(data) is not None

    def _reference_pack_for(self, data: dict) -> TranslatedCompendium | None:
        # The uuid was already checked against this pack; references are
        # asked about the document itself.
        if self._resolving:
            return None
        self._resolving = True
        try:
            for pack in self._reference_packs():
                if pack.has_translation(data, check_uuid=False):
                    return pack
        finally:
            self._resolving = False
        return None

    def translations_for(self, data: dict, check_uuid: bool = True) -> TranslationEntry:
        """Return this compendium's own translation entry for ``data`` or ``{}``."""
        uuid = source_uuid(data)
        if check_uuid and uuid and not self._is_same_collection(uuid):
            return {}
        return self._lookup(data) or {}

    # =========================================================================
    # Translation and extraction
    # =========================================================================

    def extract(self, data: dict) -> dict[str, Any]:
        return self.mapping.extract(data)

    def extract_field(self, field: str, data: dict) -> Any:
        return self.mapping.extract_field(field, data)

    def translate_field(self, field: str, data: dict | None) -> Any:
        if data is None:
            return None
        if is_translated(data):
            return self.extract_field(field, data)
        return self.mapping.translate_field(field, data, self.translations_for(data))

    def translate(
        self,
        data: dict | None,
        translations_only: bool = False,
        check_uuid: bool = True,
    ) -> dict | None:
        """Translate a document.

        Entries found directly in this compendium are layered over the result
        of the first reference pack that knows the document.

        Args:
            data: Original document data
            translations_only: Return only the translated fragment
            check_uuid: Refuse documents created from another pack

        Returns:
            The merged document with translation markers, the translated
            fragment, or None for no data
        """
        if data is None:
            return None
        if is_translated(data):
            return data

        has_translation = self.has_translation(data, check_uuid=check_uuid)
        translated_data = self.mapping.map(data, self.translations_for(data, check_uuid=check_uuid))

        reference_pack = self._reference_pack_for(data) if has_translation else None
        if reference_pack is not None:
            from_reference = reference_pack.translate(data, translations_only=True, check_uuid=False) or {}
            translated_data = deep_merge(from_reference, translated_data)

        if translations_only:
            return translated_data

        stamp_translation_metadata(translated_data, has_translation, data.get("name"))
        return deep_merge(data, translated_data, inplace=False)

    def __repr__(self) -> str:
        state = "translated" if self.translated else "untranslated"
        return f"TranslatedCompendium({self.collection!r}, {self.document_type}, {state})"


__all__ = ["TranslatedCompendium", "is_translated", "stamp_translation_metadata"]
