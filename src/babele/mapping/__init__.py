"""
Declarative field mappings: one FieldMapping per translatable field,
aggregated per document type by CompendiumMapping.
"""

from .field_mapping import FieldMapping
from .compendium_mapping import CompendiumMapping

__all__ = ["FieldMapping", "CompendiumMapping"]
