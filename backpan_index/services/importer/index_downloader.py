"""
Download and extract the BackPAN index.
"""
from __future__ import annotations

import bz2
import gzip
import logging
import posixpath
import shutil
import urllib.parse
import zipfile
import zlib
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Optional, Tuple

import httpx

from backpan_index.domain.errors import ExtractError, FetchError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def index_paths(index_url: str, cache_dir: Path) -> Tuple[Path, Path]:
    """
    Local paths for the compressed index and its extracted form.

    backpan.txt.gz from the URL lands at <cache_dir>/backpan.txt.gz and is
    extracted to <cache_dir>/backpan.txt.
    """
    name = posixpath.basename(urllib.parse.urlparse(index_url).path)
    if not name:
        raise ValueError(f"Cannot derive a file name from index URL {index_url}")
    archive_path = (cache_dir / name).absolute()
    index_path = archive_path.with_suffix("") if archive_path.suffix else archive_path.with_name(name + ".txt")
    return archive_path, index_path


class IndexDownloader:
    """Fetches the index over HTTP and unpacks it next to the download."""

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = 60.0):
        self._owns_client = client is None
        self.client = client or httpx.Client(follow_redirects=True, timeout=timeout)

    def last_modified(self, url: str) -> Optional[float]:
        """Upstream's Last-Modified time in epoch seconds, None if unknown."""
        try:
            response = self.client.head(url)
        except httpx.HTTPError as e:
            logger.debug(f"HEAD {url} failed: {e}")
            return None

        if not response.is_success:
            logger.debug(f"HEAD {url} returned {response.status_code}")
            return None

        header = response.headers.get("last-modified")
        if not header:
            return None
        try:
            return parsedate_to_datetime(header).timestamp()
        except (TypeError, ValueError):
            logger.debug(f"Unparseable Last-Modified header from {url}: {header!r}")
            return None

    def download(self, url: str, dest: Path) -> Path:
        """
        Stream url into dest.

        Raises:
            FetchError: non-success status or transport failure. Nothing is
                left at dest in that case.
        """
        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = dest.with_name(dest.name + ".tmp")
        tmp_path.unlink(missing_ok=True)

        logger.debug(f"Downloading {url} to {dest}")
        try:
            with self.client.stream("GET", url) as response:
                if not response.is_success:
                    raise FetchError(
                        f"Error fetching {url}: {response.status_code}",
                        url=url,
                        status_code=response.status_code,
                    )
                with open(tmp_path, "wb") as f:
                    for chunk in response.iter_bytes(_CHUNK_SIZE):
                        f.write(chunk)
        except httpx.HTTPError as e:
            tmp_path.unlink(missing_ok=True)
            raise FetchError(f"Error fetching {url}: {e}", url=url) from e
        except FetchError:
            tmp_path.unlink(missing_ok=True)
            raise

        tmp_path.replace(dest)
        logger.debug(f"Downloaded {dest.stat().st_size} bytes to {dest}")
        return dest

    def extract(self, archive_path: Path, dest: Path) -> Path:
        """
        Decompress a .gz, .bz2 or single-file .zip archive to dest.

        Raises:
            ExtractError: the archive is corrupt or the format is unsupported.
        """
        suffix = archive_path.suffix.lower()
        tmp_path = dest.with_name(dest.name + ".tmp")

        logger.debug(f"Extracting {archive_path} to {dest}")
        try:
            if suffix == ".gz":
                with gzip.open(archive_path, "rb") as src, open(tmp_path, "wb") as dst:
                    shutil.copyfileobj(src, dst, _CHUNK_SIZE)
            elif suffix == ".bz2":
                with bz2.open(archive_path, "rb") as src, open(tmp_path, "wb") as dst:
                    shutil.copyfileobj(src, dst, _CHUNK_SIZE)
            elif suffix == ".zip":
                with zipfile.ZipFile(archive_path, "r") as zip_ref:
                    members = [m for m in zip_ref.infolist() if not m.is_dir()]
                    if len(members) != 1:
                        raise ExtractError(
                            f"Expected exactly one file in {archive_path}, found {len(members)}"
                        )
                    with zip_ref.open(members[0], "r") as src, open(tmp_path, "wb") as dst:
                        shutil.copyfileobj(src, dst, _CHUNK_SIZE)
            else:
                raise ExtractError(f"Unsupported archive format: {archive_path.name}")
        except ExtractError:
            tmp_path.unlink(missing_ok=True)
            raise
        except (OSError, EOFError, zlib.error, zipfile.BadZipFile) as e:
            tmp_path.unlink(missing_ok=True)
            raise ExtractError(f"Could not extract {archive_path}: {e}") from e

        tmp_path.replace(dest)
        return dest

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
