"""
Heuristics for turning CPAN archive paths into distribution metadata.

Upload filenames are controlled by thousands of different authors, so
nothing here is guaranteed to match. Every function is pure and returns
None (or an empty value) when a path does not look like a release; callers
decide whether that means skipping the record.
"""
from __future__ import annotations

import re
from typing import Optional, Tuple

from backpan_index.domain.models import Maturity

# authors/id/L/LB/LBROCARD/Acme-Colour-0.16.tar.gz
_AUTHOR_PATH_RE = re.compile(
    r"^(((.*?/)?authors/)?id/)?([A-Z])/(\4[A-Z])/(\5[-A-Z0-9]*)/"
)

_ARCHIVE_RE = re.compile(
    r"([^/]+)\.(tar\.(?:g?z|bz2)|zip|tgz)$",
    re.IGNORECASE,
)

# Splits "Name-Of-Dist-1.23" into ("Name-Of-Dist", "-1.23"). The name is a
# run of words where each word ends either in a letter that is not followed
# by another letter, or in a digit directly followed by a dash. A word
# ending in "v"/"V" right after a separator starts the version instead.
# Word characters are matched one at a time so long digit runs cannot
# backtrack exponentially.
_DIST_VERSION_RE = re.compile(
    r"""
    ^
    (
      (?:
        [-+.]*
        (?:[A-Za-z0-9]|(?<=\D)_|(?<=\d)_(?=\D))*
        (?:
          [A-Za-z](?=[^A-Za-z]|$)
          |
          \d(?=-)
        )
        (?<![._-][vV])
      )+
    )
    (.*)
    $
    """,
    re.VERBOSE | re.DOTALL,
)

_PERL_RE = re.compile(r"^perl-?\d+\.(\d+)(?:\D(\d+))?(-(?:TRIAL|RC)\d+)?$")

_NON_RELEASE_SUFFIX_RE = re.compile(r"\.(readme|meta)$")


def split_author_path(prefix: str) -> Tuple[Optional[str], str]:
    """
    Split an author-area path into the author's PAUSE id and the path
    below the author directory.

    Returns:
        (cpanid, remainder). cpanid is None when the path does not follow
        the A/AB/ABCDEF convention, in which case remainder is the
        normalised input.
    """
    path = re.sub(r"//+", "/", prefix)
    match = _AUTHOR_PATH_RE.match(path)
    if not match:
        return None, path
    return match.group(6), path[match.end():]


def split_distvname(prefix: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (distvname, extension) for a release archive path."""
    match = _ARCHIVE_RE.search(prefix)
    if not match:
        return None, None
    return match.group(1), match.group(2)


def is_non_release(prefix: str) -> bool:
    """True for the per-release companion files that are never releases."""
    return _NON_RELEASE_SUFFIX_RE.search(prefix) is not None


def strip_package_suffix(dist: str) -> str:
    """Drop the ".pm" some authors add to their distribution names."""
    return re.sub(r"\.pm$", "", dist, flags=re.IGNORECASE)


def _is_developer(distvname: str, version: str) -> bool:
    perl = _PERL_RE.match(distvname)
    if perl:
        minor, patch, trial = perl.groups()
        if int(minor) > 6 and int(minor) & 1:
            return True
        if patch and int(patch) >= 50:
            return True
        return bool(trial)

    return bool(re.search(r"\d\D\d+_\d", version) or "-TRIAL" in version)


def distname_info(distvname: Optional[str]) -> Tuple[Optional[str], Optional[str], bool]:
    """
    Split a "<dist>-<version>" token into its parts.

    Returns:
        (dist, version, is_developer). dist is None only when distvname is
        empty; version is None when none could be found.
    """
    if not distvname:
        return None, None, False

    match = _DIST_VERSION_RE.match(distvname)
    if not match:
        return distvname, None, False
    dist, version = match.group(1), match.group(2)

    if dist.endswith("-undef") and not version:
        dist = dist[: -len("-undef")]

    version = re.sub(r"-withoutworldwriteables$", "", version)

    # Unicode-Collate-Standard-V3_1_1-0.1: V3_1_1 belongs to the name
    named_v = re.match(r"(-[Vv].*)-(\d.*)", version)
    if named_v:
        dist += named_v.group(1)
        version = named_v.group(2)

    # Task-Deprecations5_14-1.00: 5_14 belongs to the name
    named_underscore = re.match(r"(.+_.*)-(\d.*)", version)
    if named_underscore:
        dist += named_underscore.group(1)
        version = named_underscore.group(2)

    # CGI.pm-3.05
    dist = re.sub(r"\.pm$", "", dist)

    if not version:
        trailing = re.search(r"-(\d+\w)$", dist)
        if trailing:
            dist = dist[: trailing.start()]
            version = trailing.group(1)

    if re.match(r"^\d+$", version):
        last_word = re.search(r"-(\w+)$", dist)
        if last_word:
            dist = dist[: last_word.start()]
            version = last_word.group(1) + version

    if re.search(r"\d\.\d", version):
        version = re.sub(r"^[-_.]+", "", version)
    else:
        version = re.sub(r"^[-_]+", "", version)

    if not version:
        return dist, None, False

    return dist, version, _is_developer(distvname, version)


def maturity_for(is_developer: bool) -> Maturity:
    return Maturity.DEVELOPER if is_developer else Maturity.RELEASED
