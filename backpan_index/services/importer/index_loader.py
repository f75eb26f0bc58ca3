"""
Load the BackPAN index into the local database.

The index is only downloaded when upstream has something newer, and the
database is only rebuilt when it is missing, stale, empty or older than the
downloaded index.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel

from backpan_index.data.index_status import needs_rebuild, needs_refresh
from backpan_index.data.models import IndexConfig
from backpan_index.data.repository import DATABASE_FILENAME, get_cache_dir
from backpan_index.domain.records import parse_line
from backpan_index.services.importer.index_downloader import IndexDownloader, index_paths
from backpan_index.storage.db_manager import IndexStore
from backpan_index.storage.sqlite_db_manager import SqliteIndexStore

logger = logging.getLogger(__name__)

StoreFactory = Callable[[Path, str], IndexStore]

_PROGRESS_EVERY = 100_000


class LoadResult(BaseModel):
    """What a single load() call did."""

    fetched: bool = False
    rebuilt: bool = False
    lines_read: int = 0
    lines_skipped: int = 0
    files_written: int = 0
    releases_written: int = 0


class IndexLoader:
    """
    Keeps the cached index and the database in `config.cache_dir` current.

    Not safe to run concurrently against the same cache directory.
    """

    def __init__(
        self,
        config: IndexConfig,
        downloader: Optional[IndexDownloader] = None,
        store_factory: StoreFactory = SqliteIndexStore,
    ):
        self.config = config
        self.cache_dir = get_cache_dir(config)
        self.archive_path, self.index_path = index_paths(config.index_url, self.cache_dir)
        self.db_path = self.cache_dir / DATABASE_FILENAME
        self.downloader = downloader or IndexDownloader(timeout=config.timeout_seconds)
        self._store_factory = store_factory
        self.store: Optional[IndexStore] = None

    def fetch_index(self) -> bool:
        """
        Download and extract the index if upstream has a newer one.

        Returns:
            True when a new index was fetched.

        Raises:
            FetchError: the download failed.
            ExtractError: the downloaded archive could not be extracted.
        """
        url = self.config.index_url
        if not needs_refresh(
            self.index_path,
            url,
            ttl=self.config.ttl_seconds,
            force=self.config.no_cache,
            last_modified=self.downloader.last_modified,
        ):
            return False

        self.downloader.download(url, self.archive_path)
        self.downloader.extract(self.archive_path, self.index_path)

        # If the index itself is older than the ttl this prevents us from
        # immediately looking again.
        self.index_path.touch()
        return True

    def load(self) -> LoadResult:
        """
        Bring the database up to date and leave it open on `self.store`.

        Fetch and extract failures propagate before the database is touched.
        """
        result = LoadResult()

        logger.info("Fetching BackPAN index...")
        result.fetched = self.fetch_index()
        logger.info("Done.")

        rebuild = needs_rebuild(
            self.db_path,
            self.archive_path,
            ttl=self.config.ttl_seconds,
            force=self.config.no_cache,
        )
        if self.store is not None:
            self.store.close()
            self.store = None

        if rebuild and self.db_path.exists():
            logger.debug(f"Removing stale database {self.db_path}")
            self.db_path.unlink()

        self.store = self._store_factory(self.db_path, self.config.mirror_url)
        self.store.initialize()

        if not rebuild and self.store.is_empty():
            logger.debug("Database is empty, rebuilding")
            rebuild = True

        if not rebuild:
            logger.debug(f"Database {self.db_path} is up to date")
            return result

        self._populate(self.store, result)
        result.rebuilt = True
        return result

    def _populate(self, store: IndexStore, result: LoadResult) -> None:
        logger.info("Populating database...")

        with store.transaction():
            with open(self.index_path, "r", encoding="utf-8", errors="replace") as fh:
                for line in fh:
                    result.lines_read += 1
                    if result.lines_read % _PROGRESS_EVERY == 0:
                        logger.debug(f"Read {result.lines_read} index lines")

                    parsed = parse_line(line, only_authors=self.config.only_authors)
                    if parsed is None:
                        result.lines_skipped += 1
                        continue

                    store.upsert_file(parsed.file)
                    result.files_written += 1

                    if parsed.release is not None:
                        store.upsert_release(parsed.release)
                        result.releases_written += 1

        logger.info(
            f"Done. {result.files_written} files, {result.releases_written} releases, "
            f"{result.lines_skipped} lines skipped"
        )

    def close(self) -> None:
        if self.store is not None:
            self.store.close()
            self.store = None
        self.downloader.close()
