"""
Loads and validates the Dynaconf settings for the backup retriever.

Required values come from the process environment; tuning defaults live in
config/settings.toml. Validation happens once, before anything touches the
network or the database.
"""

import os
from pathlib import Path
from typing import Any, Dict

from dynaconf import Dynaconf, ValidationError, Validator

from .application.domain import PackageKey
from .application.exceptions import ConfigurationError

PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_OUTPUT_FOLDER = "output"

SWIFT_KEYS = (
    "SWIFT_USERNAME",
    "SWIFT_APIKEY",
    "SWIFT_AUTHURL",
    "SWIFT_DOMAIN",
    "SWIFT_CONTAINER",
)


def parse_decimal(value: Any) -> int:
    """
    Parse an integer in base 10, so that a month like "08" is eight.

    Raises:
        ValueError: If the value is not a decimal integer.
    """
    text = str(value).strip()
    if isinstance(value, bool) or not _is_decimal_text(text):
        raise ValueError(f"not a decimal integer: {value!r}")
    return int(text, 10)


def _is_decimal_text(text: str) -> bool:
    return text.isascii() and text.isdigit()


def _is_decimal_in(low: int, high: int):
    def check(value) -> bool:
        try:
            return low <= parse_decimal(value) <= high
        except ValueError:
            return False
    return check


def _is_filled(value) -> bool:
    return value is not None and str(value).strip() != ""


def _is_placeholder(value) -> bool:
    return "YOUR_" in str(value).upper()


VALIDATORS = [
    Validator(
        "AID",
        must_exist=True,
        condition=_is_filled,
        messages={"condition": "AID must be a non-empty agency id"},
    ),
    Validator(
        "MONTH",
        must_exist=True,
        condition=_is_decimal_in(1, 12),
        messages={"condition": "MONTH must be a decimal number from 1 to 12"},
    ),
    Validator(
        "YEAR",
        must_exist=True,
        condition=_is_decimal_in(1, 9999),
        messages={"condition": "YEAR must be a positive decimal number"},
    ),
    Validator(
        "MONGODB_URI",
        "MONGODB_DBNAME",
        "MONGODB_BCOLL",
        must_exist=True,
        condition=_is_filled,
    ),
    Validator("OUTPUT_FOLDER", default=DEFAULT_OUTPUT_FOLDER),
]


def _check_period_text():
    """
    MONTH and YEAR must be plain digits as written in the environment;
    TOML casting would otherwise read "1_2" as 12.
    """
    for name in ("MONTH", "YEAR"):
        raw = os.environ.get(name)
        if raw is not None and not _is_decimal_text(raw.strip()):
            raise ConfigurationError(
                f"{name} must be a decimal number, got {raw!r}"
            )


def _check_swift(settings: Dynaconf):
    """Cloud credentials are all-or-nothing and must not be placeholders."""
    given = [key for key in SWIFT_KEYS if _is_filled(settings.get(key))]
    if not given:
        return
    missing = sorted(set(SWIFT_KEYS) - set(given))
    if missing:
        raise ConfigurationError(
            f"Incomplete cloud storage configuration, missing: "
            f"{', '.join(missing)}"
        )
    placeholders = [
        key for key in (*given, "SWIFT_PROJECT")
        if _is_placeholder(settings.get(key, ""))
    ]
    if placeholders:
        raise ConfigurationError(
            f"Cloud storage settings {', '.join(placeholders)} are "
            f"placeholders. Please check your environment."
        )


def load_settings(**overrides) -> Dynaconf:
    """
    Build and validate the settings object.

    Args:
        **overrides: Extra Dynaconf options, mostly useful in tests.

    Raises:
        ConfigurationError: If a required value is missing or malformed.
    """

    options = dict(
        root_path=PROJECT_ROOT,
        settings_files=["config/settings.toml"],
        secrets=["config/.secrets.toml"],
        envvar_prefix=False,
    )
    options.update(overrides)
    settings = Dynaconf(**options)
    settings.validators.register(*VALIDATORS)

    try:
        settings.validators.validate()
    except ValidationError as e:
        raise ConfigurationError(
            f"Error loading config values from environment: {e}"
        ) from e
    _check_period_text()
    _check_swift(settings)

    return settings


def package_key(settings: Dynaconf) -> PackageKey:
    """The package to retrieve, with the agency id lower-cased."""
    return PackageKey(
        aid=str(settings.AID).strip().lower(),
        month=parse_decimal(settings.MONTH),
        year=parse_decimal(settings.YEAR),
    )


def download_mode(settings: Dynaconf) -> str:
    """'cloud' when Swift credentials are configured, 'http' otherwise."""
    if all(_is_filled(settings.get(key)) for key in SWIFT_KEYS):
        return "cloud"
    return "http"


def container_config(settings: Dynaconf) -> Dict[str, Any]:
    """Flatten validated settings into the dict the DI container expects."""
    return {
        "download_mode": download_mode(settings),
        "output_folder": str(settings.OUTPUT_FOLDER),
        "mongodb": {
            "uri": str(settings.MONGODB_URI),
            "dbname": str(settings.MONGODB_DBNAME),
            "backup_collection": str(settings.MONGODB_BCOLL),
            "connect_timeout": settings.get("mongodb.connect_timeout", 60),
        },
        "downloader": {
            "chunk_size": settings.get("downloader.chunk_size", 65536),
            "timeout": settings.get("downloader.timeout"),
            "check_status": settings.get("downloader.check_status", False),
        },
        "swift": {
            "username": settings.get("SWIFT_USERNAME"),
            "api_key": settings.get("SWIFT_APIKEY"),
            "auth_url": settings.get("SWIFT_AUTHURL"),
            "domain": settings.get("SWIFT_DOMAIN"),
            "container": settings.get("SWIFT_CONTAINER"),
            "project": settings.get("SWIFT_PROJECT"),
        },
    }
