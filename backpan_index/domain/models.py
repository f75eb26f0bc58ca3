from __future__ import annotations

import posixpath
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

DEFAULT_MIRROR_URL = "http://backpan.cpan.org"


class Maturity(str, Enum):
    RELEASED = "released"
    DEVELOPER = "developer"
    UNKNOWN = "unknown"


class File(BaseModel):
    """
    A single path on BackPAN: a release tarball, a readme, a CHECKSUMS file
    or anything else that was ever uploaded.
    Persisted in the `files` table, keyed by prefix.
    """

    prefix: str = Field(description="Full path of the file on CPAN, e.g. authors/id/L/LB/LBROCARD/Foo-1.0.tar.gz")
    date: int = Field(description="Upload date in UNIX epoch seconds.")
    # The CHECK (size >= 0) constraint in the store is what rejects negative sizes.
    size: int = Field(description="Size of the file in bytes.")

    # Base URL of the BackPAN mirror used to build `url`. Filled in by the store
    # when records are read back and excluded from serialisation.
    mirror_url: str = Field(
        default=DEFAULT_MIRROR_URL,
        exclude=True,
        description="Base URL of the BackPAN mirror serving this file.",
    )

    @computed_field
    @property
    def filename(self) -> str:
        return posixpath.basename(self.prefix)

    @computed_field
    @property
    def url(self) -> str:
        return f"{self.mirror_url.rstrip('/')}/{self.prefix}"


class Release(BaseModel):
    """
    One release (tarball/zip) of a distribution, e.g. Acme-Pony-1.2.3.tar.gz
    is a release of the Acme-Pony distribution.
    """

    id: Optional[int] = Field(default=None, description="Surrogate key assigned by the store.")
    file: File
    dist: str = Field(min_length=1)
    version: str = ""
    maturity: Maturity = Maturity.UNKNOWN
    cpanid: str = Field(description="PAUSE id of the author of the release.")
    # Name and version exactly as they appear in the filename. Might be
    # different than "{dist}-{version}".
    distvname: str

    @field_validator("maturity", mode="before")
    @classmethod
    def _coerce_maturity(cls, value: Any) -> Any:
        if isinstance(value, Maturity):
            return value
        try:
            return Maturity(value)
        except ValueError:
            return Maturity.UNKNOWN

    @property
    def prefix(self) -> str:
        return self.file.prefix

    @property
    def date(self) -> int:
        return self.file.date

    @property
    def filename(self) -> str:
        return self.file.filename

    @property
    def url(self) -> str:
        return self.file.url


class Distribution(BaseModel):
    """
    A named distribution. Not stored on its own; derived from the distinct
    `dist` values of all releases.
    """

    name: str
    release_count: int = 0
    first_release_date: Optional[int] = None
    latest_release_date: Optional[int] = None
