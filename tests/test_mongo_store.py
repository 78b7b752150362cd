"""Tests for the MongoDB package store."""

from unittest.mock import MagicMock, patch

import pytest
from pymongo.errors import (
    InvalidURI,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
)

from backup_retriever.application.domain import BackupDescriptor
from backup_retriever.application.exceptions import (
    PackageNotFoundError,
    StoreConnectionError,
    StoreError,
)
from backup_retriever.infrastructure.mongo_store import (
    MongoPackageStore,
    connect_store,
    init_mongo_client,
)


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def store(collection):
    client = MagicMock()
    client.__getitem__.return_value.__getitem__.return_value = collection
    return MongoPackageStore(client, database="dadosjusbr", collection="backups")


def test_queries_by_agency_and_period(store, collection, key):
    collection.find_one.return_value = {"backups": []}

    store.find_package(key)

    collection.find_one.assert_called_once_with(
        {"aid": "tjsp", "year": 2021, "month": 8},
        projection={"_id": False, "backups": True},
    )


def test_maps_backups_in_stored_order(store, collection, key):
    collection.find_one.return_value = {
        "backups": [
            {"url": "http://x/a.zip", "hash": "aaa", "size": 10},
            {"url": "http://x/b.zip"},
        ]
    }

    record = store.find_package(key)

    assert record.key == key
    assert record.backups == (
        BackupDescriptor(url="http://x/a.zip", hash="aaa", size=10),
        BackupDescriptor(url="http://x/b.zip", hash="", size=None),
    )


def test_document_without_backups_is_empty(store, collection, key):
    collection.find_one.return_value = {}

    assert store.find_package(key).backups == ()


def test_missing_document_is_not_found(store, collection, key):
    collection.find_one.return_value = None

    with pytest.raises(PackageNotFoundError, match="tjsp"):
        store.find_package(key)


def test_query_failure_is_store_error(store, collection, key):
    collection.find_one.side_effect = PyMongoError("cursor died")

    with pytest.raises(StoreError, match="cursor died"):
        store.find_package(key)


def test_malformed_document_is_store_error(store, collection, key):
    collection.find_one.return_value = {"backups": [{"hash": "no url"}]}

    with pytest.raises(StoreError, match="Malformed"):
        store.find_package(key)


@patch("backup_retriever.infrastructure.mongo_store.MongoClient")
def test_connect_pings_server(mongo_client):
    client = connect_store("mongodb://localhost:27017", connect_timeout=1)

    assert client is mongo_client.return_value
    client.admin.command.assert_called_once_with("ping")


@patch("backup_retriever.infrastructure.mongo_store.MongoClient")
def test_connect_invalid_uri(mongo_client):
    mongo_client.side_effect = InvalidURI("bad scheme")

    with pytest.raises(StoreConnectionError, match="bad scheme"):
        connect_store("http://nope", connect_timeout=1)


@patch("backup_retriever.infrastructure.mongo_store.MongoClient")
def test_connect_gives_up_after_timeout(mongo_client):
    mongo_client.return_value.admin.command.side_effect = (
        ServerSelectionTimeoutError("no servers")
    )

    with pytest.raises(StoreConnectionError, match="no servers"):
        connect_store("mongodb://localhost:27017", connect_timeout=0)

    mongo_client.return_value.close.assert_called_once()


@patch("backup_retriever.infrastructure.mongo_store.MongoClient")
def test_connect_auth_failure_is_not_retried(mongo_client):
    command = mongo_client.return_value.admin.command
    command.side_effect = OperationFailure("Authentication failed")

    with pytest.raises(StoreConnectionError, match="Authentication failed"):
        connect_store("mongodb://localhost:27017", connect_timeout=60)

    assert command.call_count == 1


@patch("backup_retriever.infrastructure.mongo_store.MongoClient")
def test_resource_closes_client(mongo_client):
    resource = init_mongo_client("mongodb://localhost:27017", 1)

    client = next(resource)
    resource.close()

    client.close.assert_called_once()
