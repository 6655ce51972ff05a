"""
JSON-file cache for translations loaded from modules.

Each module's parsed translations are stored under
``<cache_dir>/<system_id>/modules/<module_id>.json`` together with the
module version and the worlds the module is active in. On start-up
:meth:`TranslationCache.init` drops records of modules that were
uninstalled, updated or deactivated.

A cache that cannot be read or written never fails a load: the problem is
logged and the entry is treated as missing.
"""

import json
import logging
import re
import shutil
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from ..errors import CacheError
from ..models import ModuleInfo, Translation


logger = logging.getLogger("babele")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class CachedModule(BaseModel):
    """One module's cached translations."""
    module_id: str
    system_id: str
    version: str | None = None
    worlds: list[str] = Field(default_factory=list)
    translations: list[Translation] = Field(default_factory=list)
    cached_at: str | None = None


class TranslationCache:
    """Stores parsed module translations between sessions.

    Args:
        cache_dir: Root directory; ``None`` disables caching
        system_id: Id of the active game system
        world_id: Id of the active world
    """

    def __init__(self, cache_dir: Path | str | None, system_id: str, world_id: str):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self.system_id = system_id
        self.world_id = world_id

    @property
    def enabled(self) -> bool:
        return self.cache_dir is not None

    def _system_dir(self) -> Path:
        return self.cache_dir / _UNSAFE_CHARS.sub("_", self.system_id)

    def _module_path(self, module_id: str) -> Path:
        return self._system_dir() / "modules" / f"{_UNSAFE_CHARS.sub('_', module_id)}.json"

    def _files_path(self) -> Path:
        return self._system_dir() / "files.json"

    # =========================================================================
    # Low-level IO
    # =========================================================================

    def _read(self, path: Path) -> CachedModule | None:
        if not path.exists():
            return None
        try:
            return CachedModule.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise CacheError(f"Corrupt cache file {path}: {e}") from e

    def _write(self, path: Path, record: CachedModule) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(record.model_dump_json(exclude_none=True), encoding="utf-8")
        except OSError as e:
            raise CacheError(f"Cannot write cache file {path}: {e}") from e

    def _delete(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise CacheError(f"Cannot delete cache file {path}: {e}") from e

    def _records(self) -> list[tuple[Path, CachedModule]]:
        folder = self._system_dir() / "modules"
        if not folder.is_dir():
            return []
        records = []
        for path in sorted(folder.glob("*.json")):
            try:
                record = self._read(path)
            except CacheError as e:
                logger.warning(f"{e}, discarding")
                self._delete(path)
                continue
            if record is not None:
                records.append((path, record))
        return records

    # =========================================================================
    # Public API
    # =========================================================================

    def init(self, installed_modules: dict[str, ModuleInfo]) -> None:
        """Validate cached records against the installed modules.

        A record is dropped when its module is gone or its version changed.
        For a module that is inactive in the current world the world is
        removed from the record, and the record dropped once no world uses
        it. Active modules get the current world added.
        """
        if not self.enabled:
            return
        try:
            for path, record in self._records():
                module = installed_modules.get(record.module_id)
                if module is None:
                    logger.debug(f"Cache: {record.module_id} is no longer installed")
                    self._delete(path)
                    continue
                if module.version != record.version:
                    logger.debug(
                        f"Cache: {record.module_id} changed version "
                        f"{record.version} -> {module.version}"
                    )
                    self._delete(path)
                    continue

                if not module.active:
                    if self.world_id in record.worlds:
                        record.worlds.remove(self.world_id)
                        if not record.worlds:
                            self._delete(path)
                        else:
                            self._write(path, record)
                elif self.world_id not in record.worlds:
                    record.worlds.append(self.world_id)
                    self._write(path, record)
        except CacheError as e:
            logger.warning(f"Translation cache validation failed: {e}")

    def get_module_data(self, module_id: str) -> list[Translation] | None:
        """Cached translations of ``module_id``, or None on a miss."""
        if not self.enabled:
            return None
        try:
            record = self._read(self._module_path(module_id))
        except CacheError as e:
            logger.warning(f"{e}, ignoring cached translations")
            return None
        if record is None:
            return None
        return record.translations

    def save_module_data(self, module_id: str, version: str | None, translations: list[Translation]) -> None:
        if not self.enabled:
            return
        record = CachedModule(
            module_id=module_id,
            system_id=self.system_id,
            version=version,
            worlds=[self.world_id],
            translations=translations,
            cached_at=datetime.now().isoformat(),
        )
        try:
            self._write(self._module_path(module_id), record)
            logger.debug(f"Cached {len(translations)} translations of {module_id}")
        except CacheError as e:
            logger.warning(str(e))

    def save_file_list(self, files: list[str]) -> None:
        """Remember the translation files found while browsing was possible."""
        if not self.enabled:
            return
        path = self._files_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(sorted(set(files)), indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Cannot write file list {path}: {e}")

    def load_file_list(self) -> list[str]:
        if not self.enabled:
            return []
        path = self._files_path()
        if not path.exists():
            return []
        try:
            files = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Corrupt file list {path}: {e}")
            return []
        return [f for f in files if isinstance(f, str)] if isinstance(files, list) else []

    def clear(self) -> None:
        """Remove every cached record of the current system."""
        if not self.enabled:
            return
        folder = self._system_dir()
        if folder.exists():
            shutil.rmtree(folder, ignore_errors=True)
            logger.info(f"Cleared translation cache {folder}")


__all__ = ["CachedModule", "TranslationCache"]
