"""MongoDB implementation of the PackageStore port."""

import logging
from typing import Any, Generator

from pydantic import ValidationError
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError

from ..application.domain import (
    BackupDescriptor,
    PackageKey,
    PackageRecord,
    PackageStore,
)
from ..application.exceptions import (
    PackageNotFoundError,
    StoreConnectionError,
    StoreError,
)

from .decorators import retry_until_deadline
from .store_models import BackupDetails, PackageDocument

logger = logging.getLogger(__name__)

# Upper bound for a single server selection; the overall wait is governed
# by the connect timeout.
_SERVER_SELECTION_TIMEOUT_MS = 5000


def connect_store(uri: str, connect_timeout: float) -> MongoClient:
    """
    Create a Mongo client and wait until the server answers a ping.

    Args:
        uri: The MongoDB connection string.
        connect_timeout: Seconds to keep retrying the ping before giving up.

    Returns:
        A connected MongoClient.

    Raises:
        StoreConnectionError: If the URI is invalid or the server cannot be
                              reached within the timeout.
    """

    try:
        client = MongoClient(
            uri,
            serverSelectionTimeoutMS=min(
                _SERVER_SELECTION_TIMEOUT_MS, int(connect_timeout * 1000) or 1
            ),
        )
    except PyMongoError as e:
        raise StoreConnectionError(
            f"Error creating mongo client: {e}"
        ) from e

    @retry_until_deadline(connect_timeout, ConnectionFailure)
    def ping():
        client.admin.command("ping")

    try:
        ping()
    except PyMongoError as e:
        client.close()
        raise StoreConnectionError(f"Error connecting to mongo: {e}") from e

    logger.info("Connected to mongo.")
    return client


def init_mongo_client(
    uri: str, connect_timeout: float
) -> Generator[MongoClient, None, None]:
    """Container resource yielding a connected client and closing it after."""
    client = connect_store(uri, connect_timeout)
    try:
        yield client
    finally:
        client.close()
        logger.info("Disconnected from mongo.")


class MongoPackageStore(PackageStore):
    """A package store backed by a MongoDB collection."""

    def __init__(self, client: MongoClient, database: str, collection: str):
        """Initializes the store adapter."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.collection = client[database][collection]

    def _map_to_domain(self, dto: BackupDetails) -> BackupDescriptor:
        """Maps a single stored backup entry to a domain model."""
        return BackupDescriptor(url=dto.url, hash=dto.hash or "", size=dto.size)

    def _execute_find(self, key: PackageKey) -> Any:
        """Executes the raw query, projecting only the backups."""
        return self.collection.find_one(
            {"aid": key.aid, "year": key.year, "month": key.month},
            projection={"_id": False, "backups": True},
        )

    def find_package(self, key: PackageKey) -> PackageRecord:
        """
        Fetches the package stored for an agency and period.

        Args:
            key: The agency id, month and year to look for.

        Returns:
            The package record with its backups in stored order.

        Raises:
            PackageNotFoundError: If no document matches the key.
            StoreError: If the query fails or the document is malformed.
        """

        self.logger.info(f"Searching for package {key}...")

        try:
            raw_doc = self._execute_find(key)
        except PyMongoError as e:
            raise StoreError(
                f"Error searching for agency id {key.aid!r} "
                f"({key.month:02d}/{key.year}): {e}"
            ) from e

        if raw_doc is None:
            raise PackageNotFoundError(
                f"No package found for agency id {key.aid!r} "
                f"({key.month:02d}/{key.year})"
            )

        try:
            document = PackageDocument.model_validate(raw_doc)
        except ValidationError as e:
            raise StoreError(
                f"Malformed package for agency id {key.aid!r} "
                f"({key.month:02d}/{key.year}): {e}"
            ) from e

        backups = tuple(self._map_to_domain(dto) for dto in document.backups)
        self.logger.info(f"Found {len(backups)} backups for {key}.")

        return PackageRecord(key=key, backups=backups)
