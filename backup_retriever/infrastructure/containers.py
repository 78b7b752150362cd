"""
Dependency Injection container for the backup retriever.

This container uses the `dependency-injector` library to wire together the
store, the downloaders and the retrieval service from the validated
configuration. Clients are resources so that they are closed on shutdown.
"""

from dependency_injector import containers, providers

from ..application.domain import PackageStore
from ..application.service import PackageRetrievalService

from .cloud_downloader import SwiftDownloader, connect_swift
from .downloader import FallbackDownloader, HttpDownloader, init_http_client
from .mongo_store import MongoPackageStore, init_mongo_client


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    config = providers.Configuration()

    cli_args = providers.Configuration()

    mongo_client = providers.Resource(
        init_mongo_client,
        uri=config.mongodb.uri,
        connect_timeout=config.mongodb.connect_timeout,
    )

    http_client = providers.Resource(init_http_client)

    swift_connection = providers.Singleton(
        connect_swift,
        auth_url=config.swift.auth_url,
        username=config.swift.username,
        api_key=config.swift.api_key,
        domain=config.swift.domain,
        project=config.swift.project,
    )

    package_store: providers.Factory[PackageStore] = providers.Factory(
        MongoPackageStore,
        client=mongo_client,
        database=config.mongodb.dbname,
        collection=config.mongodb.backup_collection,
    )

    http_downloader = providers.Factory(
        HttpDownloader,
        client=http_client,
        chunk_size=config.downloader.chunk_size,
        timeout=config.downloader.timeout,
        check_status=config.downloader.check_status,
        show_progress=cli_args.progress,
    )

    # The fallback only sees failures, so error statuses must raise here.
    checked_http_downloader = providers.Factory(
        HttpDownloader,
        client=http_client,
        chunk_size=config.downloader.chunk_size,
        timeout=config.downloader.timeout,
        check_status=True,
        show_progress=cli_args.progress,
    )

    cloud_downloader = providers.Factory(
        SwiftDownloader,
        connection=swift_connection,
        container=config.swift.container,
        chunk_size=config.downloader.chunk_size,
        show_progress=cli_args.progress,
    )

    downloader = providers.Selector(
        config.download_mode,
        http=http_downloader,
        cloud=providers.Factory(
            FallbackDownloader,
            primary=checked_http_downloader,
            fallback=cloud_downloader,
        ),
    )

    retrieval_service = providers.Factory(
        PackageRetrievalService,
        store=package_store,
        downloader=downloader,
        output_dir=config.output_folder,
    )
