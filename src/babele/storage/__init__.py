"""
Loading, caching and merging of translation files.
"""

from .files import FileProvider, HttpFileProvider, LocalFileProvider
from .cache import CachedModule, TranslationCache
from .loader import TranslationLoader, merge_by_priority, parse_translation

__all__ = [
    "FileProvider",
    "LocalFileProvider",
    "HttpFileProvider",
    "CachedModule",
    "TranslationCache",
    "TranslationLoader",
    "merge_by_priority",
    "parse_translation",
]
