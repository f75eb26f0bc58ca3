from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from backpan_index.core.dependencies import get_index
from backpan_index.data.index_status import IndexStatus
from backpan_index.domain.models import Distribution, File, Release
from backpan_index.index import BackPANIndex

logger = logging.getLogger(__name__)
router = APIRouter()

# ---------------------------------------------------------------------------
# 1. GET /status
# ---------------------------------------------------------------------------

@router.get("/status")
def get_status(index: BackPANIndex = Depends(get_index)) -> IndexStatus:
    return index.status()


# ---------------------------------------------------------------------------
# 2. Distributions
# ---------------------------------------------------------------------------

@router.get("/dists")
def list_dists(index: BackPANIndex = Depends(get_index)) -> List[str]:
    """Names of all distributions on BackPAN."""
    return index.dist_names()


@router.get("/dists/{name}")
def get_dist(name: str, index: BackPANIndex = Depends(get_index)) -> Distribution:
    dist = index.dist(name)
    if dist is None:
        raise HTTPException(status_code=404, detail="Distribution not found")
    return dist


@router.get("/dists/{name}/releases")
def list_releases(name: str, index: BackPANIndex = Depends(get_index)) -> List[Release]:
    if index.dist(name) is None:
        raise HTTPException(status_code=404, detail="Distribution not found")
    return index.releases(name)


@router.get("/dists/{name}/releases/{version}")
def get_release(name: str, version: str, index: BackPANIndex = Depends(get_index)) -> Release:
    release = index.release(name, version)
    if release is None:
        raise HTTPException(status_code=404, detail="Release not found")
    return release


# ---------------------------------------------------------------------------
# 3. Files
# ---------------------------------------------------------------------------

@router.get("/files/{prefix:path}")
def get_file(prefix: str, index: BackPANIndex = Depends(get_index)) -> File:
    """A file by its full path, e.g. /files/authors/id/L/LB/LBROCARD/Acme-Colour-0.16.tar.gz"""
    file = index.file(prefix)
    if file is None:
        raise HTTPException(status_code=404, detail="File not found")
    return file
