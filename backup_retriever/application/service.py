"""
The core application service, containing pure business logic.

This module defines the main orchestrator (PackageRetrievalService) for the
retrieval process, the saver (PackageSaver) that downloads the backups of
one package, and the reporter that prints what was retrieved.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

from tqdm.contrib.logging import logging_redirect_tqdm

from .domain import BackupDescriptor, Downloader, PackageKey, PackageStore
from .exceptions import OutputDirectoryError

logger = logging.getLogger(__name__)


class PackageSaver:
    """Downloads the backups of a package, in order, into one directory."""

    def __init__(self, downloader: Downloader, output_dir: Path):
        """Initializes the saver with its downloader port."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.downloader = downloader
        self.output_dir = output_dir

    def save(self, backups: Iterable[BackupDescriptor]) -> List[str]:
        """Downloads every backup, stopping at the first failure.

        Args:
            backups: The descriptors to download.

        Returns:
            The source URLs of the downloaded backups, in order.

        Raises:
            DownloadError: If any download fails. Files written before the
                           failure are left in place.
            InvalidBackupError: If a descriptor has no usable local name.
        """

        files = []
        for backup in backups:
            destination = self.output_dir / backup.local_name()
            archive = self.downloader.download(backup, destination)
            files.append(archive.url)

        self.logger.info(f"Saved {len(files)} backups to {self.output_dir}")
        return files


class PackageRetrievalService:
    """Orchestrates the lookup of a package and the download of its backups."""

    def __init__(
        self,
        store: PackageStore,
        downloader: Downloader,
        output_dir: str,
    ):
        """Initializes the service and the package saver."""
        self.store = store
        self.output_dir = Path(output_dir)
        self.saver = PackageSaver(downloader, self.output_dir)

    def _ensure_output_dir(self):
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(
                f"Error creating output folder ({self.output_dir}): {e}"
            ) from e

    def run(self, key: PackageKey) -> List[str]:
        """Retrieves the package for `key` and downloads all its backups.

        Returns:
            The source URLs of the downloaded backups, in stored order.

        Raises:
            RetrieverError: On the first lookup or download failure.
        """

        logger.info(f"Starting retrieval of package {key}")

        record = self.store.find_package(key)
        self._ensure_output_dir()

        if not record.backups:
            logger.info("Package has no backups to download.")
            return []

        with logging_redirect_tqdm():
            downloads = self.saver.save(record.backups)

        logger.info("All backups downloaded.")
        return downloads


def report_downloads(downloads: List[str], stream: Optional[TextIO] = None):
    """Prints the retrieved URLs, one per line."""
    if stream is None:
        stream = sys.stdout
    for url in downloads:
        print(url, file=stream)
