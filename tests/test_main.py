"""Tests for the command line entry point."""

from unittest.mock import patch

import pytest

from backup_retriever import __main__ as entry_point
from backup_retriever.application.domain import PackageKey
from backup_retriever.application.exceptions import (
    DownloadError,
    PackageNotFoundError,
)


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch.object(entry_point, "setup_logging"):
        yield


@pytest.fixture
def container():
    with patch.object(entry_point, "Container") as container_cls:
        yield container_cls.return_value


def test_missing_configuration_fails_before_wiring(base_env, container):
    base_env.delenv("MONGODB_URI")

    assert entry_point.run_application(entry_point.parse_args([])) == 1
    container.retrieval_service.assert_not_called()


def test_success_prints_downloads(base_env, container, capsys):
    service = container.retrieval_service.return_value
    service.run.return_value = ["http://x/a.zip", "http://x/b.zip"]

    status = entry_point.run_application(entry_point.parse_args([]))

    assert status == 0
    service.run.assert_called_once_with(
        PackageKey(aid="tjsp", month=8, year=2021)
    )
    assert capsys.readouterr().out == "http://x/a.zip\nhttp://x/b.zip\n"
    container.shutdown_resources.assert_called_once()


@pytest.mark.parametrize(
    "error",
    [PackageNotFoundError("no package"), DownloadError("refused")],
)
def test_application_error_exits_non_zero(base_env, container, capsys, error):
    container.retrieval_service.return_value.run.side_effect = error

    assert entry_point.run_application(entry_point.parse_args([])) == 1
    assert capsys.readouterr().out == ""
    container.shutdown_resources.assert_called_once()


def test_progress_flag(base_env, container):
    entry_point.run_application(entry_point.parse_args(["--no-progress"]))

    container.cli_args.from_dict.assert_called_once_with({"progress": False})


def test_main_exits_with_status(base_env, container):
    container.retrieval_service.return_value.run.return_value = []

    with pytest.raises(SystemExit) as exc_info:
        entry_point.main([])

    assert exc_info.value.code == 0
