"""
Settings for the babele server.

Values are read from the environment (a ``.env`` file is loaded first):

    BABELE_LANGUAGE                 Active language (default: the world language)
    BABELE_DIRECTORY                World translations directory
    BABELE_SYSTEM_TRANSLATIONS_DIR  Translations directory bundled with the system
    BABELE_WORLD_DIR                World directory to serve
    BABELE_DATA_DIR                 Directory holding modules/ and systems/
    BABELE_CACHE_DIR                Translation cache directory (unset disables caching)
    BABELE_MODULES_FILE             YAML list of translation providers
    BABELE_LOG_LEVEL                Logging level (default "INFO")
"""

import logging
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import BabeleError
from .models import BabeleModule


logger = logging.getLogger("babele")


class ConfigError(BabeleError):
    """Error reading the provider registry file."""
    pass


class BabeleSettings(BaseModel):
    """Runtime settings of the translation server."""
    language: str | None = None
    directory: str | None = None
    system_translations_dir: str | None = None
    world_dir: Path = Field(default_factory=lambda: Path("world"))
    data_dir: Path | None = None
    cache_dir: Path | None = None
    modules_file: Path | None = None
    log_level: str = "INFO"

    @field_validator("directory", "system_translations_dir", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value):
        return value.upper() if isinstance(value, str) else value


_ENV_VARS = {
    "language": "BABELE_LANGUAGE",
    "directory": "BABELE_DIRECTORY",
    "system_translations_dir": "BABELE_SYSTEM_TRANSLATIONS_DIR",
    "world_dir": "BABELE_WORLD_DIR",
    "data_dir": "BABELE_DATA_DIR",
    "cache_dir": "BABELE_CACHE_DIR",
    "modules_file": "BABELE_MODULES_FILE",
    "log_level": "BABELE_LOG_LEVEL",
}


def load_settings(env_file: Path | str | None = None) -> BabeleSettings:
    """Build settings from the environment after loading ``.env``."""
    if not load_dotenv(env_file):
        logger.debug(".env file not found, using the process environment")

    values = {}
    for field, var in _ENV_VARS.items():
        value = os.getenv(var)
        if value:
            values[field] = value
    return BabeleSettings.model_validate(values)


def load_modules_file(path: Path | str) -> list[BabeleModule]:
    """Read translation providers from a YAML file.

    The file holds a list of provider descriptors (or a mapping with a
    ``modules`` list). Invalid entries are skipped with a warning.

    Raises:
        ConfigError: If the file cannot be read or is not valid YAML
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read modules file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("modules")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigError(f"Expected a list of modules in {path}")

    modules = []
    for index, entry in enumerate(data):
        try:
            modules.append(BabeleModule.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping invalid module #{index} in {path}: {e}")
    logger.debug(f"Loaded {len(modules)} translation providers from {path}")
    return modules


__all__ = ["BabeleSettings", "ConfigError", "load_settings", "load_modules_file"]
