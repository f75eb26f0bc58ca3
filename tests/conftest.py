"""
Top-level test configuration for backpan-index.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from backpan_index.data.models import IndexConfig
from helpers import INDEX_URL, SAMPLE_INDEX, FakeUpstream, gzip_bytes

# Keep tests away from the user's real cache and debug settings
os.environ.pop("PARSE_BACKPAN_PACKAGES_DEBUG", None)
os.environ.pop("BACKPAN_INDEX_CONFIG", None)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream(gzip_bytes(SAMPLE_INDEX))


@pytest.fixture
def config(tmp_path: Path) -> IndexConfig:
    return IndexConfig(cache_dir=tmp_path / "cache", index_url=INDEX_URL, debug=False)
