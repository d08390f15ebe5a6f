"""
Configuration module for the BTA workload calculator.

Single source of truth for:
- Where the session state and the admin catalog override are stored
- Azure Blob connection settings (when storing in the cloud)
- Default period settings and logging level

All values can be overridden via environment variables in Azure / local.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional

from .schema import PeriodSettings

STORAGE_BACKENDS = ("local", "azure")
LOG_LEVELS = ("trace", "debug", "info", "success", "warning", "error", "critical")


def _get_env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _get_env_choice(name: str, choices: tuple, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip().lower()
    return value if value in choices else default


@dataclass
class Config:
    """
    Runtime configuration for the calculator.

    All fields default from environment variables but can be overridden
    programmatically by constructing Config(...) manually if needed.
    """

    # Local JSON blobs (last write wins)
    state_path: str = "data/bta-ums-v1.json"
    catalog_override_path: str = "data/bta-katalog-admin-v1.json"

    # "local" or "azure"; with azure the paths above are used as blob names
    storage_backend: str = "local"
    azure_blob_connection_string: Optional[str] = None
    azure_blob_container_name: Optional[str] = None

    # Period defaults applied when stored settings are unset or invalid
    semester_weeks: int = 14
    year_weeks: int = 52

    log_level: str = "INFO"
    app_version: str = "0.1.0"

    @property
    def period_settings(self) -> PeriodSettings:
        return PeriodSettings(semester_weeks=self.semester_weeks, year_weeks=self.year_weeks)

    @classmethod
    def from_env(cls) -> "Config":
        """
        Construct a Config object by reading environment variables.

        Environment variables (all optional):
        - BTA_STATE_PATH
        - BTA_CATALOG_OVERRIDE_PATH
        - BTA_STORAGE_BACKEND  (local/azure)
        - BTA_AZURE_BLOB_CONNECTION_STRING
        - BTA_AZURE_BLOB_CONTAINER_NAME
        - BTA_SEMESTER_WEEKS  (int > 0)
        - BTA_YEAR_WEEKS      (int > 0)
        - BTA_LOG_LEVEL       (loguru level name, unknown -> INFO)
        - BTA_APP_VERSION
        """
        defaults = cls()
        return cls(
            state_path=os.getenv("BTA_STATE_PATH", defaults.state_path),
            catalog_override_path=os.getenv(
                "BTA_CATALOG_OVERRIDE_PATH", defaults.catalog_override_path
            ),
            storage_backend=_get_env_choice(
                "BTA_STORAGE_BACKEND", STORAGE_BACKENDS, defaults.storage_backend
            ),
            azure_blob_connection_string=os.getenv(
                "BTA_AZURE_BLOB_CONNECTION_STRING"
            ),
            azure_blob_container_name=os.getenv(
                "BTA_AZURE_BLOB_CONTAINER_NAME"
            ),
            semester_weeks=_get_env_int("BTA_SEMESTER_WEEKS", defaults.semester_weeks),
            year_weeks=_get_env_int("BTA_YEAR_WEEKS", defaults.year_weeks),
            log_level=_get_env_choice(
                "BTA_LOG_LEVEL", LOG_LEVELS, defaults.log_level
            ).upper(),
            app_version=os.getenv("BTA_APP_VERSION", defaults.app_version),
        )


# Convenience singleton-style accessor if you want a shared config
_DEFAULT_CONFIG: Optional[Config] = None


def get_config(force_reload: bool = False) -> Config:
    """
    Return a process-wide Config instance.

    Use `force_reload=True` if environment variables changed at runtime
    and you want to refresh.
    """
    global _DEFAULT_CONFIG
    if _DEFAULT_CONFIG is None or force_reload:
        _DEFAULT_CONFIG = Config.from_env()
    return _DEFAULT_CONFIG
