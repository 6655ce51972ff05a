"""
Full field mapping for one compendium document type.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from ..models import DynamicMapping
from ..utils import deep_merge
from ..values import CONVERTER_PLACEHOLDER, DEFAULT_MAPPINGS
from .field_mapping import FieldMapping

if TYPE_CHECKING:
    from ..engine import Babele
    from ..translated_compendium import TranslatedCompendium


def _plain_mapping(mapping: dict | None) -> dict:
    if not mapping:
        return {}
    return {
        key: value.model_dump() if isinstance(value, DynamicMapping) else value
        for key, value in mapping.items()
    }


class CompendiumMapping:
    """Aggregates the FieldMappings of one document type.

    The built-in default mapping of ``document_type`` is merged with the
    optional override; override keys win.

    Attributes:
        document_type: The compendium document type (e.g. "Item")
        mapping: The merged field -> path/dynamic mapping
        fields: One FieldMapping per mapped field
    """

    def __init__(
        self,
        document_type: str,
        mapping: dict | None = None,
        engine: Babele | None = None,
        tc: TranslatedCompendium | None = None,
    ):
        self.document_type = document_type
        self.mapping: dict[str, Any] = deep_merge(
            copy.deepcopy(DEFAULT_MAPPINGS.get(document_type, {})),
            _plain_mapping(mapping),
        )
        self.fields = [FieldMapping(key, value, engine, tc) for key, value in self.mapping.items()]

    def _field(self, name: str) -> FieldMapping | None:
        return next((f for f in self.fields if f.field == name), None)

    def map(self, data: dict, translations: dict | str | None) -> dict:
        """Translate every mapped field and merge the partial results.

        Args:
            data: Original data to translate
            translations: The translation entry found for the original data
        """
        result: dict = {}
        for field in self.fields:
            deep_merge(result, field.map(data, translations))
        return result

    def translate_field(self, name: str, data: dict, translations: dict | str | None) -> Any:
        field = self._field(name)
        if field is None:
            return None
        return field.translate(data, translations)

    def extract_field(self, name: str, data: dict) -> Any:
        field = self._field(name)
        if field is None:
            return None
        return field.extract_value(data)

    def extract(self, data: dict) -> dict[str, Any]:
        """Build an editable translation skeleton for ``data``.

        Dynamic fields are written as a placeholder instead of their value.
        """
        result: dict[str, Any] = {}
        for field in self.fields:
            if field.is_dynamic:
                result[field.field] = CONVERTER_PLACEHOLDER
            else:
                deep_merge(result, field.extract(data))
        return result

    def is_dynamic(self) -> bool:
        """A compendium is dynamic as soon as one of its fields is."""
        return any(f.is_dynamic for f in self.fields)


__all__ = ["CompendiumMapping"]
