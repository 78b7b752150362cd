"""OpenStack Swift implementation of the Downloader port."""

import logging
from pathlib import Path
from typing import Optional

import requests
from keystoneauth1.exceptions import ClientException as KeystoneError
from swiftclient.client import Connection
from swiftclient.exceptions import ClientException

from ..application.domain import ArchivedBackup, BackupDescriptor, Downloader
from ..application.exceptions import DownloadError

from .downloader import write_chunks


def connect_swift(
    auth_url: str,
    username: str,
    api_key: str,
    domain: str,
    project: Optional[str] = None,
) -> Connection:
    """
    Build a Keystone v3 authenticated Swift connection without retries.

    The token is scoped to `project`, or to a project named after the user
    when none is given.
    """
    return Connection(
        authurl=auth_url,
        user=username,
        key=api_key,
        auth_version="3",
        os_options={
            "user_domain_name": domain,
            "project_domain_name": domain,
            "project_name": project or username,
        },
        retries=0,
    )


class SwiftDownloader(Downloader):
    """A downloader that fetches backups from a Swift container by name."""

    def __init__(
        self,
        connection: Connection,
        container: str,
        chunk_size: int,
        show_progress: bool = True,
    ):
        """Initializes the downloader adapter."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.connection = connection
        self.container = container
        self.chunk_size = chunk_size
        self.show_progress = show_progress

    def download(
        self, backup: BackupDescriptor, destination: Path
    ) -> ArchivedBackup:
        """
        Stream the object named after the backup's local name into
        `destination`.

        Raises:
            DownloadError: If the object cannot be fetched or written.
        """

        object_name = backup.local_name()
        self.logger.info(
            f"Downloading {object_name} from container {self.container}..."
        )
        try:
            headers, body = self.connection.get_object(
                self.container, object_name, resp_chunk_size=self.chunk_size
            )
            length = headers.get("content-length")
            write_chunks(
                body,
                destination,
                int(length) if length else backup.size,
                self.show_progress,
            )
        except (
            ClientException, KeystoneError, requests.RequestException, OSError
        ) as e:
            raise DownloadError(
                f"Error while downloading {object_name} from container "
                f"{self.container}: {e}"
            ) from e
        self.logger.info(f"Finished downloading {destination.name}")

        return ArchivedBackup(path=destination, url=backup.url)
