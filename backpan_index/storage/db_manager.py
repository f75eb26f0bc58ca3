from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import List, Optional

from backpan_index.domain.models import Distribution, File, Release


class IndexStore(ABC):
    """
    Abstract base class for the storage behind the BackPAN index.
    Every query is an explicit, typed operation.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Open the store and create the schema if it does not exist yet."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """
        Context manager wrapping a single transaction: committed on normal
        exit, rolled back when the block raises.
        """
        pass

    @abstractmethod
    def upsert_file(self, file: File) -> None:
        """Insert a file, replacing any existing file with the same prefix."""
        pass

    @abstractmethod
    def upsert_release(self, release: Release) -> None:
        """Insert a release, replacing any existing release of the same file."""
        pass

    @abstractmethod
    def count_files(self) -> int:
        pass

    @abstractmethod
    def count_releases(self) -> int:
        pass

    def is_empty(self) -> bool:
        """True when either table has no rows."""
        return not self.count_files() or not self.count_releases()

    @abstractmethod
    def total_size(self) -> int:
        """Sum of the sizes of all files, in bytes."""
        pass

    @abstractmethod
    def get_files(self) -> List[File]:
        pass

    @abstractmethod
    def get_file(self, prefix: str) -> Optional[File]:
        pass

    @abstractmethod
    def get_dists(self) -> List[Distribution]:
        pass

    @abstractmethod
    def get_dist(self, name: str) -> Optional[Distribution]:
        pass

    @abstractmethod
    def get_releases(self, dist: Optional[str] = None) -> List[Release]:
        """All releases, or only those of one distribution."""
        pass

    @abstractmethod
    def get_release(self, dist: str, version: str) -> Optional[Release]:
        pass
