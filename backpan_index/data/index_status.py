"""
Decide when the cached BackPAN index and its database are stale, and report
their current state.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

LastModified = Callable[[str], Optional[float]]


def _mtime(path: Path) -> Optional[float]:
    try:
        return path.stat().st_mtime
    except FileNotFoundError:
        return None


def needs_refresh(
    local_path: Path,
    remote_url: str,
    ttl: int,
    force: bool,
    last_modified: LastModified,
) -> bool:
    """
    Should the index be downloaded again?

    Upstream is only asked for its Last-Modified time once the local copy is
    older than ttl. Before asking, the local copy is touched so that the next
    upstream check waits for another full ttl, whatever the answer.

    Args:
        local_path: The extracted index file.
        remote_url: URL of the upstream index.
        ttl: Seconds the local copy is trusted without asking upstream.
        force: Always refresh (no-cache mode).
        last_modified: Returns upstream's modification time in epoch
            seconds, or None when it cannot be determined.
    """
    local_mod_time = _mtime(local_path)
    if local_mod_time is None:
        logger.debug(f"{local_path} does not exist, fetching")
        return True

    if force:
        return True

    local_age = time.time() - local_mod_time
    if local_age <= ttl:
        logger.debug(f"{local_path} is {local_age:.0f}s old, within ttl of {ttl}s")
        return False

    # Known quirk: this marks the local copy as fresh even if the HEAD
    # request below fails.
    local_path.touch()

    remote_mod_time = last_modified(remote_url)
    if remote_mod_time is None:
        logger.debug(f"Could not determine Last-Modified for {remote_url}")
        return False

    logger.debug(
        f"Remote index modified at {remote_mod_time:.0f}, "
        f"local copy at {local_mod_time:.0f}"
    )
    return remote_mod_time > local_mod_time


def needs_rebuild(db_path: Path, archive_path: Path, ttl: int, force: bool) -> bool:
    """
    Should the database be rebuilt from the extracted index?

    The loader additionally rebuilds when either table turns out to be empty,
    which can only be checked after connecting.
    """
    db_mtime = _mtime(db_path)
    if db_mtime is None or force:
        return True

    if time.time() - db_mtime > ttl:
        return True

    # No matter what, rebuild if we got a new index archive.
    archive_mtime = _mtime(archive_path)
    return archive_mtime is not None and db_mtime < archive_mtime


def _as_datetime(timestamp: Optional[float]) -> Optional[datetime]:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class IndexStatus(BaseModel):
    """Status information for the local BackPAN index."""

    index_url: str
    archive_path: str = Field(description="Path to the downloaded, compressed index")
    index_path: str = Field(description="Path to the extracted index")
    database_path: str = Field(description="Path to the SQLite database")
    archive_exists: bool = False
    index_exists: bool = False
    database_exists: bool = False
    last_fetched: Optional[datetime] = Field(default=None, description="When the index archive was last downloaded")
    last_checked: Optional[datetime] = Field(default=None, description="When upstream was last checked for a newer index")
    database_built: Optional[datetime] = Field(default=None, description="When the database was last rebuilt")
    file_count: int = 0
    release_count: int = 0


def build_status(
    index_url: str,
    archive_path: Path,
    index_path: Path,
    database_path: Path,
    file_count: int = 0,
    release_count: int = 0,
) -> IndexStatus:
    return IndexStatus(
        index_url=index_url,
        archive_path=str(archive_path),
        index_path=str(index_path),
        database_path=str(database_path),
        archive_exists=archive_path.exists(),
        index_exists=index_path.exists(),
        database_exists=database_path.exists(),
        last_fetched=_as_datetime(_mtime(archive_path)),
        last_checked=_as_datetime(_mtime(index_path)),
        database_built=_as_datetime(_mtime(database_path)),
        file_count=file_count,
        release_count=release_count,
    )
