from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from backpan_index.domain.models import DEFAULT_MIRROR_URL

DEFAULT_INDEX_URL = "http://www.astray.com/tmp/backpan.txt.gz"
DEBUG_ENV_VAR = "PARSE_BACKPAN_PACKAGES_DEBUG"


class IndexConfig(BaseModel):
    """
    Options for downloading and caching the BackPAN index.
    Passed explicitly to the loader; nothing is kept in module globals, so
    several independent indexes can live in one process.
    """

    no_cache: bool = Field(
        default=False,
        description="Ignore every freshness check: always refetch the index and rebuild the database.",
    )
    cache_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding the downloaded index and the database. "
        "Falls back to BACKPAN_INDEX_CACHE_DIR, then ~/.backpan_index/cache.",
    )
    index_url: str = Field(
        default=DEFAULT_INDEX_URL,
        description="URL of the gzipped BackPAN index.",
    )
    mirror_url: str = Field(
        default=DEFAULT_MIRROR_URL,
        description="Base URL of the BackPAN mirror used to build file URLs.",
    )
    only_authors: bool = Field(
        default=True,
        description="Only load files under authors/.",
    )
    debug: bool = Field(
        default_factory=lambda: bool(os.environ.get(DEBUG_ENV_VAR)),
        description="Log progress to stderr.",
    )
    ttl_seconds: int = Field(
        default=60 * 60,
        ge=0,
        description="How long the cached index and database are trusted before checking upstream.",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="HTTP timeout for index downloads and Last-Modified checks.",
    )
