"""HTTP implementation of the Downloader port."""

import logging
from pathlib import Path
from typing import Generator, Iterable, Optional

import httpx
from tqdm import tqdm

from ..application.domain import ArchivedBackup, BackupDescriptor, Downloader
from ..application.exceptions import DownloadError


def write_chunks(
    chunks: Iterable[bytes],
    target_file: Path,
    total_size: Optional[int],
    show_progress: bool = True,
) -> int:
    """
    Write byte chunks to a newly created file, updating a TQDM progress bar.

    Returns:
        The number of bytes written.
    """
    target_file.parent.mkdir(parents=True, exist_ok=True)
    with open(target_file, "wb") as f, tqdm(
        total=total_size or None,
        unit="B",
        unit_scale=True,
        desc=target_file.name,
        disable=not show_progress,
    ) as progress_bar:
        for chunk in chunks:
            f.write(chunk)
            progress_bar.update(len(chunk))
        return progress_bar.n


def init_http_client() -> Generator[httpx.Client, None, None]:
    """Container resource yielding a shared HTTP client and closing it after."""
    client = httpx.Client(follow_redirects=True)
    try:
        yield client
    finally:
        client.close()


class HttpDownloader(Downloader):
    """A downloader that streams files via a blocking HTTP GET."""

    def __init__(
        self,
        client: httpx.Client,
        chunk_size: int,
        timeout: Optional[float] = None,
        check_status: bool = False,
        show_progress: bool = True,
    ):
        """Initializes the downloader adapter."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.client = client
        self.chunk_size = chunk_size
        self.timeout = timeout
        self.check_status = check_status
        self.show_progress = show_progress

    def _check_response(self, response: httpx.Response):
        """Reject or flag a non-success response depending on the policy."""
        if response.is_success:
            return
        if self.check_status:
            response.raise_for_status()
        self.logger.warning(
            f"{response.url} answered {response.status_code}; "
            f"saving the body anyway."
        )

    def _stream_from_network(self, backup: BackupDescriptor, target_file: Path):
        """Manage the network request and the streaming process."""
        with self.client.stream(
            "GET", backup.url, timeout=self.timeout
        ) as response:
            self._check_response(response)
            length = response.headers.get("Content-Length")
            total_size = (
                int(length) if length and length.isdigit() else backup.size
            )
            write_chunks(
                response.iter_bytes(self.chunk_size),
                target_file,
                total_size,
                self.show_progress,
            )

    def download(
        self, backup: BackupDescriptor, destination: Path
    ) -> ArchivedBackup:
        """
        Stream a backup into a newly created file at `destination`.

        This is the public method that fulfills the Downloader port contract.
        An existing file at the destination is overwritten.

        Args:
            backup: The descriptor of the backup to download.
            destination: The final desired path for the file.

        Returns:
            An ArchivedBackup object representing the file on disk.

        Raises:
            DownloadError: If the request or writing the file fails.
        """

        self.logger.info(f"Downloading {backup.url}...")
        try:
            self._stream_from_network(backup, destination)
        except (
            httpx.HTTPError, httpx.InvalidURL, httpx.StreamError, OSError
        ) as e:
            raise DownloadError(
                f"Error while downloading file {backup.url}: {e}"
            ) from e
        self.logger.info(f"Finished downloading {destination.name}")

        return ArchivedBackup(path=destination, url=backup.url)


class FallbackDownloader(Downloader):
    """Tries a primary downloader and falls back to a second one on failure."""

    def __init__(self, primary: Downloader, fallback: Downloader):
        """Initializes the downloader with its primary and fallback ports."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.primary = primary
        self.fallback = fallback

    def download(
        self, backup: BackupDescriptor, destination: Path
    ) -> ArchivedBackup:
        """Downloads with the primary, retrying once with the fallback."""
        try:
            return self.primary.download(backup, destination)
        except DownloadError as e:
            self.logger.warning(
                f"{e}. Falling back to {self.fallback.__class__.__name__}."
            )
        return self.fallback.download(backup, destination)
