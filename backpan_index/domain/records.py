"""
Turn raw BackPAN index lines into File and Release records.
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from backpan_index.domain.distname import (
    distname_info,
    is_non_release,
    maturity_for,
    split_author_path,
    split_distvname,
    strip_package_suffix,
)
from backpan_index.domain.errors import ParseSkip
from backpan_index.domain.models import File, Release

logger = logging.getLogger(__name__)

AUTHORS_PREFIX = "authors/"

# SQLite INTEGER is a signed 64-bit value.
_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


class ParsedLine(BaseModel):
    """The records produced by a single index line."""

    file: File
    release: Optional[Release] = None


def parse_file(line: str, only_authors: bool = True) -> File:
    """
    Parse "<prefix> <date> <size>" into a File.

    Raises:
        ParseSkip: the line has no size, a zero size, non-numeric or
            out-of-range fields, or lies outside the author area while
            only_authors is set.
    """
    fields = line.split()
    if len(fields) < 3:
        raise ParseSkip("missing size")

    prefix, date, size = fields[0], fields[1], fields[2]
    try:
        size_value = int(size)
        date_value = int(date)
    except ValueError:
        raise ParseSkip(f"non-numeric date or size ({date!r}, {size!r})")

    if not all(_INT64_MIN <= v <= _INT64_MAX for v in (date_value, size_value)):
        raise ParseSkip(f"date or size out of range ({date}, {size})")
    if not size_value:
        raise ParseSkip("zero size")
    if only_authors and not prefix.startswith(AUTHORS_PREFIX):
        raise ParseSkip("outside the author area")

    return File(prefix=prefix, date=date_value, size=size_value)


def parse_release(file: File) -> Release:
    """
    Derive the Release carried by a File.

    Raises:
        ParseSkip: the file is a readme/meta companion, is not a release
            archive, or no distribution name or author could be extracted.
    """
    prefix = file.prefix
    if is_non_release(prefix):
        raise ParseSkip("not a release file")

    distvname, _extension = split_distvname(prefix)
    if not distvname:
        raise ParseSkip("not a release archive")

    dist, version, is_developer = distname_info(distvname)
    dist = strip_package_suffix(dist or "")
    if not dist:
        raise ParseSkip("no distribution name")

    cpanid, _remainder = split_author_path(prefix)
    if not cpanid:
        raise ParseSkip("no author id")

    return Release(
        file=file,
        dist=dist,
        version=version or "",
        maturity=maturity_for(is_developer),
        cpanid=cpanid,
        distvname=distvname,
    )


def parse_line(line: str, only_authors: bool = True) -> Optional[ParsedLine]:
    """
    Parse one index line. Returns None when the line yields no File; the
    Release is None when the File is not a recognisable release.
    """
    try:
        file = parse_file(line, only_authors=only_authors)
    except ParseSkip as e:
        logger.debug(f"Skipping index line {line.rstrip()!r}: {e}")
        return None

    try:
        release = parse_release(file)
    except ParseSkip as e:
        logger.debug(f"No release for {file.prefix}: {e}")
        release = None

    return ParsedLine(file=file, release=release)
