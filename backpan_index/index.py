"""
An interface to the BackPAN index.

    index = BackPANIndex()

    files = index.files()
    dists = index.dists()
    releases = index.releases("Acme-Pony")
    release = index.release("Acme-Pony", "1.23")

Constructing a BackPANIndex downloads the index and compiles it into a
local SQLite database if necessary. Initial creation is slow, but it is
cached in the cache directory.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from backpan_index.core.debug import disable_debug_logging, enable_debug_logging
from backpan_index.data.index_status import IndexStatus, build_status
from backpan_index.data.models import IndexConfig
from backpan_index.domain.models import Distribution, File, Release
from backpan_index.services.importer.index_downloader import IndexDownloader
from backpan_index.services.importer.index_loader import IndexLoader, LoadResult
from backpan_index.storage.db_manager import IndexStore

logger = logging.getLogger(__name__)


class BackPANIndex:
    """Read-only access to files, distributions and releases on BackPAN."""

    def __init__(
        self,
        config: Optional[IndexConfig] = None,
        downloader: Optional[IndexDownloader] = None,
        **overrides: Any,
    ):
        if config is None:
            config = IndexConfig(**overrides)
        elif overrides:
            config = IndexConfig(**{**config.model_dump(), **overrides})
        self.config = config

        # Debug output is switched off again by close().
        self._debug_logging = config.debug
        if self._debug_logging:
            enable_debug_logging()

        try:
            self.loader = IndexLoader(config, downloader=downloader)
        except Exception:
            self._release_debug_logging()
            raise
        try:
            self.last_load: LoadResult = self.loader.load()
        except Exception:
            self.close()
            raise
        logger.debug(f"BackPAN index ready: {self.last_load}")

    @property
    def store(self) -> IndexStore:
        if self.loader.store is None:
            raise RuntimeError("BackPAN index is closed")
        return self.loader.store

    def files(self) -> List[File]:
        """All files on BackPAN."""
        return self.store.get_files()

    def file(self, prefix: str) -> Optional[File]:
        """The file at prefix, e.g. "authors/id/L/LB/LBROCARD/Acme-Colour-0.16.tar.gz"."""
        return self.store.get_file(prefix)

    def dists(self) -> List[Distribution]:
        """All distributions on BackPAN."""
        return self.store.get_dists()

    def dist(self, name: str) -> Optional[Distribution]:
        return self.store.get_dist(name)

    def dist_names(self) -> List[str]:
        return [d.name for d in self.dists()]

    def releases(self, dist: Optional[str] = None) -> List[Release]:
        """All releases on BackPAN, or only the releases of dist."""
        return self.store.get_releases(dist)

    def release(self, dist: str, version: str) -> Optional[Release]:
        """
        The release of dist with exactly this version string. If several
        files carry the same dist and version, the earliest upload wins.
        """
        return self.store.get_release(dist, version)

    def file_count(self) -> int:
        return self.store.count_files()

    def total_size(self) -> int:
        """How big is BackPAN, in bytes."""
        return self.store.total_size()

    def status(self) -> IndexStatus:
        loader = self.loader
        return build_status(
            index_url=self.config.index_url,
            archive_path=loader.archive_path,
            index_path=loader.index_path,
            database_path=loader.db_path,
            file_count=self.store.count_files(),
            release_count=self.store.count_releases(),
        )

    def _release_debug_logging(self) -> None:
        if self._debug_logging:
            self._debug_logging = False
            disable_debug_logging()

    def close(self) -> None:
        self.loader.close()
        self._release_debug_logging()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
