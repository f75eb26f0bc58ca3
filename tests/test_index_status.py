"""
Tests for the cache freshness rules.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List, Optional

import pytest

from backpan_index.data.index_status import build_status, needs_rebuild, needs_refresh
from helpers import INDEX_URL, set_age

TTL = 3600


class RemoteClock:
    """Stand-in for IndexDownloader.last_modified that records its calls."""

    def __init__(self, mod_time: Optional[float]):
        self.mod_time = mod_time
        self.calls: List[str] = []

    def __call__(self, url: str) -> Optional[float]:
        self.calls.append(url)
        return self.mod_time


class TestNeedsRefresh:
    def test_missing_local_copy(self, tmp_path: Path) -> None:
        remote = RemoteClock(None)
        assert needs_refresh(tmp_path / "backpan.txt", INDEX_URL, TTL, False, remote)
        assert remote.calls == []

    def test_force(self, tmp_path: Path) -> None:
        local = tmp_path / "backpan.txt"
        local.write_text("")
        remote = RemoteClock(None)
        assert needs_refresh(local, INDEX_URL, TTL, True, remote)
        assert remote.calls == []

    def test_within_ttl_does_not_ask_upstream(self, tmp_path: Path) -> None:
        local = tmp_path / "backpan.txt"
        local.write_text("")
        set_age(local, 60)
        remote = RemoteClock(time.time())
        assert not needs_refresh(local, INDEX_URL, TTL, False, remote)
        assert remote.calls == []

    def test_stale_and_upstream_newer(self, tmp_path: Path) -> None:
        local = tmp_path / "backpan.txt"
        local.write_text("")
        set_age(local, TTL * 2)
        remote = RemoteClock(time.time() - 10)
        assert needs_refresh(local, INDEX_URL, TTL, False, remote)
        assert remote.calls == [INDEX_URL]

    def test_stale_and_upstream_older(self, tmp_path: Path) -> None:
        local = tmp_path / "backpan.txt"
        local.write_text("")
        local_mtime = set_age(local, TTL * 2)
        remote = RemoteClock(local_mtime - 1000)
        assert not needs_refresh(local, INDEX_URL, TTL, False, remote)
        assert remote.calls == [INDEX_URL]

    def test_stale_copy_is_touched_before_asking(self, tmp_path: Path) -> None:
        local = tmp_path / "backpan.txt"
        local.write_text("")
        set_age(local, TTL * 2)
        remote = RemoteClock(None)

        assert not needs_refresh(local, INDEX_URL, TTL, False, remote)
        assert time.time() - local.stat().st_mtime < 60

        # Touched, so the next check stays local.
        assert not needs_refresh(local, INDEX_URL, TTL, False, remote)
        assert len(remote.calls) == 1

    def test_unknown_upstream_time_is_quiet(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        local = tmp_path / "backpan.txt"
        local.write_text("")
        set_age(local, TTL * 2)

        with caplog.at_level(logging.DEBUG, logger="backpan_index"):
            assert not needs_refresh(local, INDEX_URL, TTL, False, RemoteClock(None))
        assert any("Last-Modified" in r.getMessage() for r in caplog.records)
        assert all(r.levelno < logging.WARNING for r in caplog.records)


class TestNeedsRebuild:
    def test_missing_database(self, tmp_path: Path) -> None:
        assert needs_rebuild(tmp_path / "backpan.sqlite", tmp_path / "backpan.txt.gz", TTL, False)

    def test_fresh_database(self, tmp_path: Path) -> None:
        db = tmp_path / "backpan.sqlite"
        archive = tmp_path / "backpan.txt.gz"
        archive.write_bytes(b"")
        set_age(archive, 100)
        db.write_bytes(b"")
        assert not needs_rebuild(db, archive, TTL, False)

    def test_force(self, tmp_path: Path) -> None:
        db = tmp_path / "backpan.sqlite"
        db.write_bytes(b"")
        assert needs_rebuild(db, tmp_path / "backpan.txt.gz", TTL, True)

    def test_database_older_than_ttl(self, tmp_path: Path) -> None:
        db = tmp_path / "backpan.sqlite"
        db.write_bytes(b"")
        set_age(db, TTL + 60)
        assert needs_rebuild(db, tmp_path / "backpan.txt.gz", TTL, False)

    def test_database_older_than_archive(self, tmp_path: Path) -> None:
        db = tmp_path / "backpan.sqlite"
        archive = tmp_path / "backpan.txt.gz"
        db.write_bytes(b"")
        set_age(db, 100)
        archive.write_bytes(b"")
        assert needs_rebuild(db, archive, TTL, False)


class TestBuildStatus:
    def test_missing_files(self, tmp_path: Path) -> None:
        status = build_status(
            INDEX_URL,
            tmp_path / "backpan.txt.gz",
            tmp_path / "backpan.txt",
            tmp_path / "backpan.sqlite",
        )
        assert status.index_url == INDEX_URL
        assert not (status.archive_exists or status.index_exists or status.database_exists)
        assert status.last_fetched is None
        assert status.last_checked is None
        assert status.database_built is None
        assert status.file_count == 0

    def test_existing_files(self, tmp_path: Path) -> None:
        for name in ("backpan.txt.gz", "backpan.txt", "backpan.sqlite"):
            (tmp_path / name).write_bytes(b"")
        status = build_status(
            INDEX_URL,
            tmp_path / "backpan.txt.gz",
            tmp_path / "backpan.txt",
            tmp_path / "backpan.sqlite",
            file_count=6,
            release_count=4,
        )
        assert status.archive_exists and status.index_exists and status.database_exists
        assert status.last_fetched is not None
        assert status.last_fetched.tzinfo is not None
        assert status.database_built is not None
        assert (status.file_count, status.release_count) == (6, 4)
