"""
Mapping, translation and extraction of a single document field.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from ..models import DynamicMapping
from ..utils import expand_object, get_property

if TYPE_CHECKING:
    from ..engine import Babele
    from ..translated_compendium import TranslatedCompendium

logger = logging.getLogger("babele")


class FieldMapping:
    """Map, translate or extract the value of one field defined by a mapping.

    A field is either a literal path (``"system.description.value"``) or a
    dynamic mapping naming a converter registered on the engine. The
    converter is looked up once, at construction time.

    Example:
        >>> field = FieldMapping("description", "system.description.value")
        >>> field.map({"system": {"description": {"value": "A blade."}}}, {"description": "Eine Klinge."})
        {'system': {'description': {'value': 'Eine Klinge.'}}}
    """

    def __init__(
        self,
        field: str,
        mapping: str | dict | DynamicMapping,
        engine: Babele | None = None,
        tc: TranslatedCompendium | None = None,
    ):
        self.field = field
        self.tc = tc
        self.converter: Callable[..., Any] | None = None
        self.converter_name: str | None = None

        if isinstance(mapping, DynamicMapping):
            mapping = mapping.model_dump()

        if isinstance(mapping, dict):
            self.path: str = mapping.get("path", field)
            self.converter_name = mapping.get("converter")
            self._dynamic = True
            if engine is not None and self.converter_name:
                self.converter = engine.converters.get(self.converter_name)
            if self.converter is None:
                logger.debug(
                    f"Converter '{self.converter_name}' for field '{field}' is not registered, "
                    "the field will not be translated"
                )
        else:
            self.path = mapping
            self._dynamic = False

    @property
    def is_dynamic(self) -> bool:
        """Whether the mapping declares a converter for this field."""
        return self._dynamic

    def extract_value(self, data: dict | None) -> Any:
        """Resolve the configured path against ``data``.

        Returns:
            The value at ``path`` or None when absent
        """
        return get_property(data, self.path)

    def translate(self, data: dict, translations: dict | str | None) -> Any:
        """Translate the value at ``path``.

        Args:
            data: Original document data
            translations: The translation entry found for the document

        Returns:
            The translated value, or None when there is nothing to translate
        """
        original_value = self.extract_value(data)
        if not original_value:
            return None

        entry = translations if isinstance(translations, dict) else {}
        if self._dynamic:
            if self.converter is None:
                return None
            return self.converter(original_value, entry.get(self.field), data, self.tc, entry)

        if isinstance(original_value, str):
            return entry.get(self.field)
        return None

    def map(self, data: dict, translations: dict | str | None) -> dict:
        """Translate the field and nest the result under ``path``.

        Returns:
            A partial document, or ``{}`` when there is no translated value
        """
        value = self.translate(data, translations)
        if value:
            return expand_object({self.path: value})
        return {}

    def extract(self, data: dict) -> dict[str, Any]:
        """Extract the original value keyed by field name."""
        return {self.field: self.extract_value(data)}

    def __repr__(self) -> str:
        target = f"{self.converter_name}:{self.path}" if self._dynamic else self.path
        return f"FieldMapping({self.field!r} -> {target!r})"


__all__ = ["FieldMapping"]
