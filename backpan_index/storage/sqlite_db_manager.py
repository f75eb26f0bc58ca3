"""
SQLite storage for the BackPAN index.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from backpan_index.domain.errors import StoreError
from backpan_index.domain.models import DEFAULT_MIRROR_URL, Distribution, File, Release
from backpan_index.storage.db_manager import IndexStore

logger = logging.getLogger(__name__)

SCHEMA = {
    "files": """
        CREATE TABLE IF NOT EXISTS files (
            prefix      TEXT            PRIMARY KEY,
            date        INTEGER         NOT NULL,
            size        INTEGER         NOT NULL CHECK ( size >= 0 )
        )
    """,
    "releases": """
        CREATE TABLE IF NOT EXISTS releases (
            id          INTEGER         PRIMARY KEY,
            file        TEXT            NOT NULL UNIQUE REFERENCES files(prefix),
            dist        TEXT            NOT NULL,
            version     TEXT            NOT NULL,
            maturity    TEXT            NOT NULL,
            cpanid      TEXT            NOT NULL,
            -- Might be different than dist-version
            distvname   TEXT            NOT NULL
        )
    """,
    "releases_dist_index": """
        CREATE INDEX IF NOT EXISTS releases_dist ON releases (dist, version)
    """,
    "distributions": """
        CREATE VIEW IF NOT EXISTS distributions AS
            SELECT DISTINCT dist AS name FROM releases
    """,
}

_RELEASE_COLUMNS = """
    r.id, r.dist, r.version, r.maturity, r.cpanid, r.distvname,
    f.prefix, f.date, f.size
"""


class SqliteIndexStore(IndexStore):
    """Reads and writes the BackPAN index database."""

    def __init__(self, db_path: Path, mirror_url: str = DEFAULT_MIRROR_URL):
        self.db_path = db_path
        self.mirror_url = mirror_url
        self.conn: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        """Open connection to the database, creating the file if needed."""
        if self.conn is None:
            logger.debug(f"Connecting to index database: {self.db_path}")
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            # Transactions are managed explicitly by transaction().
            # The HTTP layer reads from a worker thread pool.
            self.conn = sqlite3.connect(
                str(self.db_path),
                isolation_level=None,
                check_same_thread=False,
            )
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON")
        return self.conn

    def initialize(self) -> None:
        conn = self.connect()
        try:
            for name, sql in SCHEMA.items():
                logger.debug(f"Ensuring schema object {name}")
                conn.execute(sql)
        except sqlite3.Error as e:
            raise StoreError(f"Failed to create schema in {self.db_path}: {e}") from e

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None

    @contextmanager
    def transaction(self) -> Iterator[SqliteIndexStore]:
        conn = self.connect()
        conn.execute("BEGIN")
        try:
            yield self
        except Exception:
            conn.execute("ROLLBACK")
            raise
        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StoreError(f"Failed to commit to {self.db_path}: {e}") from e

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert_file(self, file: File) -> None:
        try:
            self.connect().execute(
                """
                INSERT INTO files (prefix, date, size)
                VALUES (?, ?, ?)
                ON CONFLICT (prefix) DO UPDATE SET
                    date = excluded.date,
                    size = excluded.size
                """,
                (file.prefix, file.date, file.size),
            )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to store file {file.prefix}: {e}") from e

    def upsert_release(self, release: Release) -> None:
        try:
            self.connect().execute(
                """
                INSERT INTO releases (file, dist, version, maturity, cpanid, distvname)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (file) DO UPDATE SET
                    dist = excluded.dist,
                    version = excluded.version,
                    maturity = excluded.maturity,
                    cpanid = excluded.cpanid,
                    distvname = excluded.distvname
                """,
                (
                    release.prefix,
                    release.dist,
                    release.version,
                    release.maturity.value,
                    release.cpanid,
                    release.distvname,
                ),
            )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to store release {release.prefix}: {e}") from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _file_from_row(self, row: sqlite3.Row) -> File:
        return File(
            prefix=row["prefix"],
            date=row["date"],
            size=row["size"],
            mirror_url=self.mirror_url,
        )

    def _release_from_row(self, row: sqlite3.Row) -> Release:
        return Release(
            id=row["id"],
            file=self._file_from_row(row),
            dist=row["dist"],
            version=row["version"],
            maturity=row["maturity"],
            cpanid=row["cpanid"],
            distvname=row["distvname"],
        )

    def _dist_from_row(self, row: sqlite3.Row) -> Distribution:
        return Distribution(
            name=row["name"],
            release_count=row["release_count"],
            first_release_date=row["first_release_date"],
            latest_release_date=row["latest_release_date"],
        )

    def count_files(self) -> int:
        return self.connect().execute("SELECT COUNT(*) FROM files").fetchone()[0]

    def count_releases(self) -> int:
        return self.connect().execute("SELECT COUNT(*) FROM releases").fetchone()[0]

    def total_size(self) -> int:
        row = self.connect().execute("SELECT COALESCE(SUM(size), 0) FROM files").fetchone()
        return row[0]

    def get_files(self) -> List[File]:
        cursor = self.connect().execute("SELECT prefix, date, size FROM files ORDER BY prefix")
        return [self._file_from_row(row) for row in cursor]

    def get_file(self, prefix: str) -> Optional[File]:
        row = self.connect().execute(
            "SELECT prefix, date, size FROM files WHERE prefix = ? LIMIT 1",
            (prefix,),
        ).fetchone()
        return self._file_from_row(row) if row else None

    _DIST_QUERY = """
        SELECT
            d.name,
            COUNT(r.id) AS release_count,
            MIN(f.date) AS first_release_date,
            MAX(f.date) AS latest_release_date
        FROM distributions d
        JOIN releases r ON r.dist = d.name
        JOIN files f ON f.prefix = r.file
    """

    def get_dists(self) -> List[Distribution]:
        cursor = self.connect().execute(
            self._DIST_QUERY + " GROUP BY d.name ORDER BY d.name"
        )
        return [self._dist_from_row(row) for row in cursor]

    def get_dist(self, name: str) -> Optional[Distribution]:
        row = self.connect().execute(
            self._DIST_QUERY + " WHERE d.name = ? GROUP BY d.name",
            (name,),
        ).fetchone()
        return self._dist_from_row(row) if row else None

    def get_releases(self, dist: Optional[str] = None) -> List[Release]:
        sql = f"SELECT {_RELEASE_COLUMNS} FROM releases r JOIN files f ON f.prefix = r.file"
        params: tuple = ()
        if dist is not None:
            sql += " WHERE r.dist = ?"
            params = (dist,)
        sql += " ORDER BY f.date, r.id"
        cursor = self.connect().execute(sql, params)
        return [self._release_from_row(row) for row in cursor]

    def get_release(self, dist: str, version: str) -> Optional[Release]:
        row = self.connect().execute(
            f"""
            SELECT {_RELEASE_COLUMNS}
            FROM releases r
            JOIN files f ON f.prefix = r.file
            WHERE r.dist = ? AND r.version = ?
            ORDER BY f.date, r.id
            LIMIT 1
            """,
            (dist, version),
        ).fetchone()
        return self._release_from_row(row) if row else None

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
