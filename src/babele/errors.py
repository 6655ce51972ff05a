"""
Exceptions raised by the translation engine.
"""


class BabeleError(Exception):
    """Base class for translation engine errors."""
    pass


class TranslationLoadError(BabeleError):
    """A translation file or archive could not be fetched or parsed."""
    pass


class FileProviderError(BabeleError):
    """A file could not be listed or retrieved from its provider."""
    pass


class CacheError(BabeleError):
    """The local translation cache could not be read or written."""
    pass


__all__ = ["BabeleError", "TranslationLoadError", "FileProviderError", "CacheError"]
