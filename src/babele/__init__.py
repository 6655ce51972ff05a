"""
Babele - translation overlays for game compendium packs.
"""

from .engine import Babele
from .host import CompendiumPack, Host, LocalWorld
from .models import *
from .storage import TranslationCache

from importlib.metadata import PackageNotFoundError, version as _get_version

try:
    __version__ = _get_version("babele")
except PackageNotFoundError:
    __version__ = "1.0.0"  # Fallback if metadata unavailable
__all__ = ["Babele", "CompendiumPack", "Host", "LocalWorld", "TranslationCache"]
