"""
File providers for translation sources.

A provider lists translation files in a directory and returns their raw
bytes. Paths are forward-slash separated and relative to the provider root
(e.g. ``modules/my-translation/compendium/de/dnd5e.items.json``).

The HTTP provider cannot list directories; the loader falls back to the
cached file list in that case.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

import httpx

from ..errors import FileProviderError


logger = logging.getLogger("babele")


DEFAULT_TIMEOUT = 30.0
MAX_RETRIES = 3
RETRY_BACKOFF = 2.0


class FileProvider(ABC):
    """Lists and reads files below a root."""

    #: Whether :meth:`browse` is allowed for this provider
    can_browse: bool = True

    @abstractmethod
    async def browse(self, directory: str, extensions: Iterable[str] = (".json",)) -> list[str]:
        """List the files directly inside ``directory`` with one of ``extensions``."""

    @abstractmethod
    async def fetch(self, path: str) -> bytes:
        """Return the raw content of ``path``."""

    async def fetch_json(self, path: str) -> Any:
        content = await self.fetch(path)
        try:
            return json.loads(content)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FileProviderError(f"Invalid JSON in {path}: {e}") from e

    async def close(self) -> None:
        pass


class LocalFileProvider(FileProvider):
    """Serves files from a directory on disk."""

    def __init__(self, root: Path | str, can_browse: bool = True):
        self.root = Path(root)
        self.can_browse = can_browse

    def _resolve(self, path: str) -> Path:
        resolved = (self.root / path.strip("/")).resolve()
        if not resolved.is_relative_to(self.root.resolve()):
            raise FileProviderError(f"Path escapes provider root: {path}")
        return resolved

    async def browse(self, directory: str, extensions: Iterable[str] = (".json",)) -> list[str]:
        if not self.can_browse:
            raise FileProviderError(f"Browsing is not permitted: {directory}")

        folder = self._resolve(directory)
        if not folder.is_dir():
            raise FileProviderError(f"Directory not found: {directory}")

        suffixes = tuple(ext.lower() for ext in extensions)
        root = self.root.resolve()
        return sorted(
            path.relative_to(root).as_posix()
            for path in folder.iterdir()
            if path.is_file() and path.suffix.lower() in suffixes
        )

    async def fetch(self, path: str) -> bytes:
        file_path = self._resolve(path)
        try:
            return await asyncio.to_thread(file_path.read_bytes)
        except OSError as e:
            raise FileProviderError(f"Cannot read {path}: {e}") from e

    def __repr__(self) -> str:
        return f"LocalFileProvider({str(self.root)!r})"


class HttpFileProvider(FileProvider):
    """Fetches files from a web server.

    Timeouts, rate limiting and server errors are retried with exponential
    backoff. Directory listing is not available over HTTP.
    """

    can_browse = False

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def browse(self, directory: str, extensions: Iterable[str] = (".json",)) -> list[str]:
        raise FileProviderError(f"Directory listing is not supported over HTTP: {directory}")

    async def fetch(self, path: str) -> bytes:
        url = f"{self.base_url}/{path.lstrip('/')}"
        client = self._get_client()
        last_error: Exception | None = None

        for attempt in range(MAX_RETRIES):
            try:
                response = await client.get(url)

                if response.status_code == 429:
                    wait = RETRY_BACKOFF ** attempt
                    logger.warning(f"Rate limited fetching {url}, waiting {wait}s")
                    last_error = httpx.HTTPStatusError(
                        "Rate limited (HTTP 429)", request=response.request, response=response
                    )
                    await asyncio.sleep(wait)
                    continue

                response.raise_for_status()
                return response.content

            except httpx.TimeoutException as e:
                logger.warning(f"Timeout fetching {url}, attempt {attempt + 1}")
                last_error = e
                await asyncio.sleep(RETRY_BACKOFF ** attempt)

            except httpx.HTTPStatusError as e:
                if e.response.status_code >= 500:
                    logger.warning(f"Server error {e.response.status_code} fetching {url}, attempt {attempt + 1}")
                    last_error = e
                    await asyncio.sleep(RETRY_BACKOFF ** attempt)
                else:
                    raise FileProviderError(f"HTTP error fetching {url}: {e}") from e

            except httpx.HTTPError as e:
                raise FileProviderError(f"Cannot fetch {url}: {e}") from e

        raise FileProviderError(f"Failed to fetch {url} after {MAX_RETRIES} retries: {last_error}")

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    def __repr__(self) -> str:
        return f"HttpFileProvider({self.base_url!r})"


__all__ = ["FileProvider", "LocalFileProvider", "HttpFileProvider"]
