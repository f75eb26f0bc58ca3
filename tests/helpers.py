"""
Shared helpers for the backpan-index tests.
"""

from __future__ import annotations

import gzip
import os
import time
from email.utils import formatdate
from pathlib import Path
from typing import List, Optional

import httpx

from backpan_index.services.importer.index_downloader import IndexDownloader

INDEX_URL = "http://backpan.test/tmp/backpan.txt.gz"

ACME_COLOUR = "authors/id/L/LB/LBROCARD/Acme-Colour-0.16.tar.gz 1100000000 1000\n"
ACME_CHECKSUMS = "authors/id/L/LB/LBROCARD/CHECKSUMS 1100000001 50\n"

SAMPLE_INDEX = (
    ACME_COLOUR
    + ACME_CHECKSUMS
    + "authors/id/L/LB/LBROCARD/Acme-Colour-0.16.readme 1100000000 300\n"
    + "authors/id/L/LB/LBROCARD/Acme-Colour-0.17_01.tar.gz 1100000500 1100\n"
    + "authors/id/S/SC/SCHWERN/Test-Simple-0.88.tar.gz 1230000000 70000\n"
    + "authors/id/S/SC/SCHWERN/Test-Simple-0.89_01.tar.gz 1240000000 71000\n"
    + "modules/by-module/Acme/Acme-Colour-0.16.tar.gz 1100000000 1000\n"
    + "authors/id/X/XX/XXX/empty-file.tar.gz 1100000000 0\n"
)


def gzip_bytes(text: str) -> bytes:
    return gzip.compress(text.encode("utf-8"))


def set_age(path: Path, seconds: float) -> float:
    """Backdate path's mtime by seconds and return the new mtime."""
    mtime = time.time() - seconds
    os.utime(path, (mtime, mtime))
    return mtime


class FakeUpstream:
    """An httpx MockTransport handler standing in for the BackPAN index server."""

    def __init__(
        self,
        body: bytes,
        last_modified: Optional[float] = None,
        status_code: int = 200,
    ):
        self.body = body
        self.last_modified = last_modified
        self.status_code = status_code
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code)

        headers = {}
        if self.last_modified is not None:
            headers["Last-Modified"] = formatdate(self.last_modified, usegmt=True)
        if request.method == "HEAD":
            return httpx.Response(200, headers=headers)
        return httpx.Response(200, headers=headers, content=self.body)

    def count(self, method: str) -> int:
        return sum(1 for r in self.requests if r.method == method)

    def downloader(self) -> IndexDownloader:
        client = httpx.Client(transport=httpx.MockTransport(self.handler))
        return IndexDownloader(client=client)
