"""Fetch runtime release archives, caching them on disk."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import requests

from .errors import AcquisitionError
from .utils import ensure_directory

logger = logging.getLogger(__name__)

DEFAULT_MIRROR = "https://github.com/electron/electron/releases/download/"
CHUNK_SIZE = 1024 * 1024


def archive_name(platform: str, arch: str, version: str) -> str:
    return f"electron-v{version}-{platform}-{arch}.zip"


def default_cache_dir() -> Path:
    override = os.environ.get("ELECTRON_CACHE")
    if override:
        return Path(override)
    return Path.home() / ".electron"


class ArtifactFetcher:
    """Downloads ``electron-v<version>-<platform>-<arch>.zip`` from a release mirror."""

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        mirror: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 60.0,
    ) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir else default_cache_dir()
        mirror = mirror or os.environ.get("ELECTRON_MIRROR") or DEFAULT_MIRROR
        self.mirror = mirror if mirror.endswith("/") else mirror + "/"
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "ArtifactFetcher":
        return cls(cache_dir=options.get("cache"), mirror=options.get("mirror"))

    def url_for(self, platform: str, arch: str, version: str) -> str:
        return f"{self.mirror}v{version}/{archive_name(platform, arch, version)}"

    def fetch(self, platform: str, arch: str, version: str) -> Path:
        version = version[1:] if version.startswith("v") else version
        target = self.cache_dir / archive_name(platform, arch, version)
        if target.is_file():
            logger.debug("Using cached %s", target)
            return target

        url = self.url_for(platform, arch, version)
        logger.info("Downloading %s", url)
        partial = target.with_name(target.name + ".part")
        try:
            ensure_directory(self.cache_dir)
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with open(partial, "wb") as handle:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            handle.write(chunk)
            partial.replace(target)
        except (requests.RequestException, OSError) as exc:
            partial.unlink(missing_ok=True)
            raise AcquisitionError(
                f"Failed to download {url}: {exc}", platform=platform, arch=arch
            ) from exc
        return target
