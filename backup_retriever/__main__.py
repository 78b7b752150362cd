"""
Entry point for the backup retriever.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .application.exceptions import ConfigurationError, RetrieverError
from .application.service import report_downloads
from .infrastructure.containers import Container
from .settings import container_config, load_settings, package_key

logger = logging.getLogger(__name__)


def setup_logging(level: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level, force=True)


def run_application(args: argparse.Namespace) -> int:
    """Wires and runs the application using the DI container.

    Returns:
        The process exit status.
    """

    try:
        settings = load_settings()
    except ConfigurationError as e:
        setup_logging(level="INFO")
        logger.error(f"An application error occurred: {e}")
        return 1

    setup_logging(level=str(settings.get("logging.level", "INFO")).upper())

    container = Container()
    container.config.from_dict(container_config(settings))
    container.cli_args.from_dict(vars(args))

    try:
        retrieval_service = container.retrieval_service()
        downloads = retrieval_service.run(package_key(settings))
    except RetrieverError as e:
        logger.error(f"An application error occurred: {e}")
        return 1
    finally:
        container.shutdown_resources()

    report_downloads(downloads)
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the command line flags."""
    parser = argparse.ArgumentParser(
        description="Download the backups stored for an agency and period. "
        "The package is chosen with the AID, MONTH and YEAR environment "
        "variables."
    )

    parser.add_argument(
        "--no-progress",
        dest="progress",
        action="store_false",
        help="Do not show download progress bars.",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Runs the retriever and exits with its status."""
    sys.exit(run_application(parse_args(argv)))


if __name__ == "__main__":
    main()
