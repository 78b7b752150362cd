"""Shared fixtures for the backup retriever tests."""

from pathlib import Path
from typing import Dict, List

import httpx
import pytest

from backup_retriever.application.domain import (
    ArchivedBackup,
    BackupDescriptor,
    Downloader,
    PackageKey,
    PackageRecord,
    PackageStore,
)
from backup_retriever.application.exceptions import PackageNotFoundError
from backup_retriever.settings import SWIFT_KEYS

REQUIRED_ENV = {
    "AID": "TJSP",
    "MONTH": "08",
    "YEAR": "2021",
    "MONGODB_URI": "mongodb://localhost:27017",
    "MONGODB_DBNAME": "dadosjusbr",
    "MONGODB_BCOLL": "backups",
}

SWIFT_ENV = {
    "SWIFT_USERNAME": "retriever",
    "SWIFT_APIKEY": "secret-key",
    "SWIFT_AUTHURL": "https://auth.example.org/v3",
    "SWIFT_DOMAIN": "default",
    "SWIFT_CONTAINER": "dadosjusbr",
}


@pytest.fixture
def base_env(monkeypatch):
    """An environment holding exactly the required settings."""
    for key in [*REQUIRED_ENV, "OUTPUT_FOLDER", "SWIFT_PROJECT", *SWIFT_KEYS]:
        monkeypatch.delenv(key, raising=False)
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


class FakeStore(PackageStore):
    """An in-memory package store recording every lookup."""

    def __init__(self, records: Dict[PackageKey, PackageRecord]):
        self.records = records
        self.lookups: List[PackageKey] = []

    def find_package(self, key: PackageKey) -> PackageRecord:
        self.lookups.append(key)
        if key not in self.records:
            raise PackageNotFoundError(f"No package found for {key}")
        return self.records[key]


class RecordingDownloader(Downloader):
    """A downloader that never touches the network."""

    def __init__(self):
        self.calls = []

    def download(
        self, backup: BackupDescriptor, destination: Path
    ) -> ArchivedBackup:
        self.calls.append((backup, destination))
        return ArchivedBackup(path=destination, url=backup.url)


def mock_http_client(routes: Dict[str, object]) -> httpx.Client:
    """
    Build an httpx client answering from `routes`: bytes are served with a
    200, an httpx.Response is returned as is, and an exception is raised.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        answer = routes.get(str(request.url))
        if answer is None:
            return httpx.Response(404, content=b"not found")
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, content=answer)

    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def key() -> PackageKey:
    return PackageKey(aid="tjsp", month=8, year=2021)
