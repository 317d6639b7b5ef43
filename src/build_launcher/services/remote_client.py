"""Client for the published build: remote manifest and file payloads."""

import os
import time
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import quote

import aiofiles
import httpx
from loguru import logger
from pydantic import ValidationError

from build_launcher.config import LauncherConfig
from build_launcher.schemas import FileEntry, Manifest
from build_launcher.services.exceptions import DownloadError, NetworkError, ParseError

RatioCallback = Callable[[float], None]

TEMP_SUFFIX = ".download"


def create_http_client(timeout: float = 30.0) -> httpx.AsyncClient:
    """Create the HTTP client used for manifest and file requests."""
    # Large files stream for a long time, only the gaps between chunks are bounded
    return httpx.AsyncClient(
        timeout=httpx.Timeout(connect=10.0, read=timeout, write=timeout, pool=timeout),
        follow_redirects=True,
    )


class RemoteManifestClient:
    """
    Fetches the authoritative manifest and streams build files to disk.

    Features:
    - Manifest cached for `cache_ttl` seconds; only successful fetches are cached
    - Files written to a temporary name and renamed into place once complete
    - Transport and HTTP failures surfaced as NetworkError
    """

    def __init__(
        self,
        base_url: str,
        manifest_url: str,
        cache_ttl: float = 60.0,
        chunk_size: int = 64 * 1024,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.base_url = base_url.rstrip("/")
        self.manifest_url = manifest_url
        self.cache_ttl = cache_ttl
        self.chunk_size = chunk_size
        self._owns_client = client is None
        self.client = client or create_http_client()
        self._clock = clock
        self._cached: Optional[Manifest] = None
        self._fetched_at: float = 0.0
        # Set by a failed fetch, cleared by the next successful one
        self.last_error: Optional[str] = None

    @classmethod
    def from_config(
        cls, config: LauncherConfig, client: Optional[httpx.AsyncClient] = None
    ) -> "RemoteManifestClient":
        return cls(
            base_url=config.remote_base_url,
            manifest_url=config.remote_manifest_url,
            cache_ttl=config.manifest_cache_ttl,
            chunk_size=config.download_chunk_size,
            client=client or create_http_client(config.http_timeout),
        )

    async def __aenter__(self) -> "RemoteManifestClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def file_url(self, path: str) -> str:
        return f"{self.base_url}/{quote(path, safe='/')}"

    def invalidate(self) -> None:
        """Forget the cached manifest."""
        self._cached = None
        self._fetched_at = 0.0

    def _cache_is_fresh(self) -> bool:
        return self._cached is not None and self._clock() - self._fetched_at < self.cache_ttl

    async def fetch_manifest(self, force: bool = False) -> Manifest:
        """
        Get the remote manifest.

        Args:
            force: Skip the cache read. A successful result is still cached.

        Returns:
            The published manifest

        Raises:
            NetworkError: If the request fails or returns a non-200 status
            ParseError: If the payload is not a valid manifest
        """
        if not force and self._cache_is_fresh():
            logger.debug("Using cached remote manifest")
            return self._cached  # type: ignore[return-value]

        try:
            manifest = await self._request_manifest()
        except (NetworkError, ParseError) as e:
            self.last_error = str(e)
            raise

        self._cached = manifest
        self._fetched_at = self._clock()
        self.last_error = None
        logger.info(f"Remote manifest version={manifest.version} files={manifest.total_files}")
        return manifest

    async def _request_manifest(self) -> Manifest:
        logger.debug(f"Fetching remote manifest: {self.manifest_url}")
        try:
            response = await self.client.get(self.manifest_url)
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch remote manifest: {e}")
            raise NetworkError(f"Failed to fetch {self.manifest_url}: {e}") from e

        if response.status_code != 200:
            logger.error(f"HTTP {response.status_code} while requesting {self.manifest_url}")
            raise NetworkError(f"HTTP {response.status_code} while requesting {self.manifest_url}")

        try:
            return Manifest.model_validate(response.json())
        except ValueError as e:
            # json.JSONDecodeError and pydantic's ValidationError are both ValueErrors
            kind = "invalid manifest" if isinstance(e, ValidationError) else "invalid JSON"
            logger.error(f"Remote manifest is malformed ({kind}): {e}")
            raise ParseError(f"Remote manifest is malformed ({kind}): {e}") from e

    async def fetch_file(
        self, entry: FileEntry, dest: Path, on_ratio: Optional[RatioCallback] = None
    ) -> Path:
        """
        Stream one build file to `dest`.

        Bytes go to a temporary file beside `dest`, which is renamed onto
        `dest` only after the body has been fully received.

        Args:
            entry: Manifest entry to download
            dest: Final location of the file
            on_ratio: Receives download progress in [0, 1); 1.0 once in place

        Returns:
            dest

        Raises:
            NetworkError: If the request fails or returns a non-200 status
            DownloadError: If the file cannot be written
        """
        url = self.file_url(entry.path)
        temp_path = dest.with_name(dest.name + TEMP_SUFFIX)
        logger.debug(f"Downloading {url} -> {dest}")

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            async with self.client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise NetworkError(f"HTTP {response.status_code} while downloading {entry.path}")

                expected = entry.size_bytes
                if expected <= 0:
                    expected = int(response.headers.get("content-length") or 0) or 1

                downloaded = 0
                async with aiofiles.open(temp_path, "wb") as f:
                    async for chunk in response.aiter_bytes(self.chunk_size):
                        await f.write(chunk)
                        downloaded += len(chunk)
                        if on_ratio is not None:
                            on_ratio(min(downloaded / expected, 0.999))

            os.replace(temp_path, dest)
        except NetworkError:
            temp_path.unlink(missing_ok=True)
            raise
        except httpx.HTTPError as e:
            temp_path.unlink(missing_ok=True)
            logger.error(f"Failed to download {entry.path}: {e}")
            raise NetworkError(f"Failed to download {entry.path}: {e}") from e
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            logger.error(f"Failed to write {dest}: {e}")
            raise DownloadError(f"Failed to write {dest}: {e}") from e

        if on_ratio is not None:
            on_ratio(1.0)
        return dest
