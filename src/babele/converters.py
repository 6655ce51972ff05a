"""
Converters for structurally complex fields.

A converter translates one mapped value that is not a plain string: lists
of embedded documents, table results, journal pages, cards and so on. All
converters share one call signature::

    converter(value, translation, document=None, tc=None, full_translation=None)

where ``value`` is the original value at the mapped path, ``translation``
the translation entry for that field, ``document`` the full original
document, ``tc`` the owning TranslatedCompendium and ``full_translation``
the whole translation entry of the document.

Converters never modify their inputs and hand the original value back
unchanged when there is nothing to translate. Any callable with the same
signature can be registered next to the built-in strategies below.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

from .mapping import CompendiumMapping
from .utils import deep_merge

if TYPE_CHECKING:
    from .engine import Babele
    from .translated_compendium import TranslatedCompendium

ConverterFn = Callable[..., Any]


def _present(**values: Any) -> dict[str, Any]:
    """Keep only the keyword arguments that carry a value."""
    return {key: value for key, value in values.items() if value is not None}


class Converter(ABC):
    """Base class for converter strategies.

    Strategies that need to look at other packs get the engine through
    :meth:`bind`, which the engine calls when the converter is registered.
    """

    def __init__(self) -> None:
        self.engine: Babele | None = None

    def bind(self, engine: Babele) -> "Converter":
        self.engine = engine
        return self

    def _engine(self, tc: TranslatedCompendium | None) -> Babele | None:
        if self.engine is not None:
            return self.engine
        return tc.engine if tc is not None else None

    @abstractmethod
    def __call__(
        self,
        value: Any,
        translation: Any,
        document: dict | None = None,
        tc: TranslatedCompendium | None = None,
        full_translation: dict | None = None,
    ) -> Any:
        """Translate ``value`` using ``translation``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MappedField(Converter):
    """Resolve a field through the owning compendium's mapping.

    A literal string translation is returned as is, otherwise the owning
    TranslatedCompendium translates ``field`` of the full document (used to
    give prototype tokens the translated actor name).
    """

    def __init__(self, field: str):
        super().__init__()
        self.field = field

    def __call__(self, value, translation, document=None, tc=None, full_translation=None):
        if isinstance(translation, str):
            return translation
        if tc is None or document is None:
            return None
        return tc.translate_field(self.field, document)

    def __repr__(self) -> str:
        return f"MappedField({self.field!r})"


class FieldCollection(Converter):
    """Translate one property of every object in a list.

    The translation maps original property values to translated ones, e.g.
    ``{"Old Gate": "Altes Tor"}`` for the ``text`` of scene notes.
    """

    def __init__(self, field: str):
        super().__init__()
        self.field = field

    def __call__(self, value, translation, document=None, tc=None, full_translation=None):
        if not translation or not isinstance(translation, dict) or not isinstance(value, list):
            return value

        result = []
        for data in value:
            translated = translation.get(data.get(self.field)) if isinstance(data, dict) else None
            if not translated:
                result.append(data)
                continue
            result.append(deep_merge(data, {self.field: translated, "translated": True}, inplace=False))
        return result

    def __repr__(self) -> str:
        return f"FieldCollection({self.field!r})"


def _translate_table_results(results: list, translations: Any, engine: Babele | None) -> list:
    """Translate table rows by ``"{low}-{high}"`` range key.

    Rows without a range translation that point at another collection get
    the translated name of the referenced document.
    """
    translated_results = []
    for data in results:
        if not isinstance(data, dict):
            translated_results.append(data)
            continue

        if isinstance(translations, dict):
            low, high = (list(data.get("range") or []) + [None, None])[:2]
            translation = translations.get(f"{low}-{high}")
            if translation:
                translated_results.append(
                    deep_merge(data, {"text": translation, "translated": True}, inplace=False)
                )
                continue

        collection = data.get("documentCollection")
        if collection and engine is not None:
            text = engine.translate_field("name", collection, {"name": data.get("text")})
            if text:
                translated_results.append(deep_merge(data, {"text": text, "translated": True}, inplace=False))
                continue

        translated_results.append(data)
    return translated_results


class TableResults(Converter):
    """Translate the results of a roll table."""

    def __call__(self, value, translation, document=None, tc=None, full_translation=None):
        if not isinstance(value, list):
            return value
        return _translate_table_results(value, translation, self._engine(tc))


class TableResultsCollection(Converter):
    """Translate a list of roll tables (e.g. the tables of an adventure).

    Tables are looked up by name; name, description and results are
    substituted, results from the table's own ``results`` entry.
    """

    def __call__(self, value, translation, document=None, tc=None, full_translation=None):
        if not translation or not isinstance(translation, dict) or not isinstance(value, list):
            return value

        engine = self._engine(tc)
        result = []
        for data in value:
            table_translation = translation.get(data.get("name")) if isinstance(data, dict) else None
            if not isinstance(table_translation, dict):
                result.append(data)
                continue

            update = _present(
                name=table_translation.get("name"),
                description=table_translation.get("description"),
            )
            update["results"] = _translate_table_results(
                data.get("results") or [], table_translation.get("results"), engine
            )
            update["translated"] = True
            result.append(deep_merge(data, update, inplace=False))
        return result


class Pages(Converter):
    """Translate journal entry pages, looked up by page name."""

    def __call__(self, value, translation, document=None, tc=None, full_translation=None):
        if not translation or not isinstance(translation, dict) or not isinstance(value, list):
            return value

        result = []
        for data in value:
            page = translation.get(data.get("name")) if isinstance(data, dict) else None
            if not isinstance(page, dict):
                result.append(data)
                continue

            update = _present(name=page.get("name"), src=page.get("src"))
            if page.get("caption") is not None:
                update["image"] = {"caption": page["caption"]}
            if page.get("text") is not None:
                update["text"] = {"content": page["text"]}
            video = _present(width=page.get("width"), height=page.get("height"))
            if video:
                update["video"] = video
            update["translated"] = True
            result.append(deep_merge(data, update, inplace=False))
        return result


class DeckCards(Converter):
    """Translate the cards of a deck, looked up by card name.

    Faces are matched by position; the shared back face is translated from
    the card's ``back`` entry.
    """

    def __call__(self, value, translation, document=None, tc=None, full_translation=None):
        if not translation or not isinstance(translation, dict) or not isinstance(value, list):
            return value

        result = []
        for data in value:
            card = translation.get(data.get("name")) if isinstance(data, dict) else None
            if not isinstance(card, dict):
                result.append(data)
                continue

            update = _present(
                name=card.get("name"),
                description=card.get("description"),
                suit=card.get("suit"),
            )

            face_translations = card.get("faces")
            if isinstance(face_translations, list) and data.get("faces"):
                faces = []
                for index, face in enumerate(data["faces"]):
                    face_translation = face_translations[index] if index < len(face_translations) else None
                    if isinstance(face_translation, dict):
                        face = deep_merge(
                            face,
                            _present(
                                img=face_translation.get("img"),
                                name=face_translation.get("name"),
                                text=face_translation.get("text"),
                            ),
                            inplace=False,
                        )
                    faces.append(face)
                update["faces"] = faces

            back = card.get("back")
            if isinstance(back, dict):
                back_update = _present(img=back.get("img"), name=back.get("name"), text=back.get("text"))
                if back_update:
                    update["back"] = back_update

            update["translated"] = True
            result.append(deep_merge(data, update, inplace=False))
        return result


class PlaylistSounds(Converter):
    """Translate playlist sounds, looked up by sound name."""

    def __call__(self, value, translation, document=None, tc=None, full_translation=None):
        if not translation or not isinstance(translation, dict) or not isinstance(value, list):
            return value

        result = []
        for data in value:
            sound = translation.get(data.get("name")) if isinstance(data, dict) else None
            if not isinstance(sound, dict):
                result.append(data)
                continue
            update = _present(name=sound.get("name"), description=sound.get("description"))
            update["translated"] = True
            result.append(deep_merge(data, update, inplace=False))
        return result


def _translate_embedded(
    documents: Any,
    document_type: str,
    translations: Any,
    mapping: CompendiumMapping,
    engine: Babele | None,
) -> Any:
    """Translate a list of embedded documents.

    Each document is translated from the inline translation keyed by id or
    name when there is one. Otherwise the loaded translated packs are
    searched for one that knows the document. Documents without a value are
    dropped, order is preserved.
    """
    if not isinstance(documents, list):
        return documents

    result = []
    for data in documents:
        if not isinstance(data, dict):
            if data:
                result.append(data)
            continue

        if isinstance(translations, dict) and translations:
            translation = translations.get(data.get("_id")) or translations.get(data.get("name"))
            if isinstance(translation, dict) and translation:
                translated = mapping.map(data, translation)
                translated["translated"] = True
                result.append(deep_merge(data, translated, inplace=False))
                continue

        pack = engine.find_translated_pack(data, document_type) if engine is not None else None
        value = pack.translate(data) if pack is not None else data
        if value:
            result.append(value)
    return result


class FromPack(Converter):
    """Translate embedded documents (e.g. the items of an actor).

    Args:
        mapping: Optional mapping override for the embedded documents
        document_type: Document type of the embedded documents
    """

    def __init__(self, mapping: dict | None = None, document_type: str = "Item"):
        super().__init__()
        self.mapping = mapping
        self.document_type = document_type
        self._compendium_mapping: CompendiumMapping | None = None

    def bind(self, engine: Babele) -> "FromPack":
        super().bind(engine)
        self._compendium_mapping = None
        return self

    def _dynamic_mapping(self, engine: Babele | None) -> CompendiumMapping:
        # Built on first use, once every converter it may reference is registered
        if self._compendium_mapping is None:
            self._compendium_mapping = CompendiumMapping(self.document_type, self.mapping, engine)
        return self._compendium_mapping

    def __call__(self, value, translation, document=None, tc=None, full_translation=None):
        engine = self._engine(tc)
        return _translate_embedded(
            value, self.document_type, translation, self._dynamic_mapping(engine), engine
        )

    def __repr__(self) -> str:
        return f"FromPack(document_type={self.document_type!r})"


class FromDefaultMapping(Converter):
    """Translate embedded documents of an adventure with their type's mapping.

    The mapping is the default mapping of ``document_type`` extended with the
    custom mapping the providing module declares for that type.
    """

    def __init__(self, document_type: str):
        super().__init__()
        self.document_type = document_type

    def __call__(self, value, translation, document=None, tc=None, full_translation=None):
        engine = self._engine(tc)
        override = tc.custom_mapping(self.document_type) if tc is not None else None
        mapping = CompendiumMapping(self.document_type, override, engine, tc)
        return _translate_embedded(value, self.document_type, translation, mapping, engine)

    def __repr__(self) -> str:
        return f"FromDefaultMapping({self.document_type!r})"


def default_converters() -> dict[str, Converter]:
    """Create the built-in converter registry."""
    return {
        "fromPack": FromPack(),
        "name": MappedField("name"),
        "nameCollection": FieldCollection("name"),
        "textCollection": FieldCollection("text"),
        "tableResults": TableResults(),
        "tableResultsCollection": TableResultsCollection(),
        "pages": Pages(),
        "deckCards": DeckCards(),
        "playlistSounds": PlaylistSounds(),
        "adventureItems": FromDefaultMapping("Item"),
        "adventureActors": FromDefaultMapping("Actor"),
        "adventureCards": FromDefaultMapping("Cards"),
        "adventureJournals": FromDefaultMapping("JournalEntry"),
        "adventurePlaylists": FromDefaultMapping("Playlist"),
        "adventureMacros": FromDefaultMapping("Macro"),
        "adventureScenes": FromDefaultMapping("Scene"),
    }


__all__ = [
    "Converter",
    "ConverterFn",
    "MappedField",
    "FieldCollection",
    "TableResults",
    "TableResultsCollection",
    "Pages",
    "DeckCards",
    "PlaylistSounds",
    "FromPack",
    "FromDefaultMapping",
    "default_converters",
]
