"""
This module defines the core domain models for the application.

These classes represent the pure, technology-agnostic entities and data
structures that the application's business logic operates on.
"""

import dataclasses
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlsplit

from abc import ABC, abstractmethod
from typing import Optional, Tuple

from .exceptions import InvalidBackupError


# --- Domain Models ---

@dataclasses.dataclass(frozen=True)
class PackageKey:
    """Identifies the package of one agency for one month of one year."""

    aid: str
    month: int
    year: int

    def __str__(self) -> str:
        return f"{self.aid} {self.month:02d}/{self.year}"


@dataclasses.dataclass(frozen=True)
class BackupDescriptor:
    """A single backup file belonging to a package, as stored."""

    url: str
    hash: str = ""
    size: Optional[int] = None

    def local_name(self) -> str:
        """
        Name of the file on disk: the base name of the URL path, or the
        content hash when the URL path has none.

        Raises:
            InvalidBackupError: If neither yields a usable name.
        """
        name = PurePosixPath(unquote(urlsplit(self.url).path)).name
        if name in ("", ".", ".."):
            name = self.hash
        if not name:
            raise InvalidBackupError(
                f"Backup {self.url!r} has neither a file name nor a hash"
            )
        return name


@dataclasses.dataclass(frozen=True)
class PackageRecord:
    """The backups stored for a package, in stored order."""

    key: PackageKey
    backups: Tuple[BackupDescriptor, ...] = ()


@dataclasses.dataclass(frozen=True)
class ArchivedBackup:
    """
    A domain model representing a downloaded backup file on disk,
    defined by its location and the URL it was retrieved from.
    """

    path: Path
    url: str


# --- Ports (Interfaces) ---

class PackageStore(ABC):
    """A port for any store of package records."""

    @abstractmethod
    def find_package(self, key: PackageKey) -> PackageRecord:
        """
        Fetches the package record for a key.
        Raises PackageNotFoundError when there is none.
        """
        pass


class Downloader(ABC):
    """A port for any file downloader."""

    @abstractmethod
    def download(
        self, backup: BackupDescriptor, destination: Path
    ) -> ArchivedBackup:
        """Downloads a single backup to a destination path."""
        pass
