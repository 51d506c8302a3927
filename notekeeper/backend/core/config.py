"""
Configuration Management.

Two sources, nothing hardcoded:

    config/.env                 secrets (DB_PASSWORD, JWT_SECRET) via pydantic-settings
    config/settings/*.yaml      everything else, one strict schema per file

Both are cached; tests clear the caches or patch the getters.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

from notekeeper.backend.core.config_schema import (
    ApplicationSchema,
    ConcurrencySchema,
    DatabaseSchema,
    FeaturesSchema,
    LoggingSchema,
    SecuritySchema,
    StorageSchema,
)

PROJECT_MARKER = ".project_root"

# attribute name -> (schema, file under config/settings/)
_SECTIONS: dict[str, tuple[type[BaseModel], str]] = {
    "application": (ApplicationSchema, "application.yaml"),
    "database": (DatabaseSchema, "database.yaml"),
    "logging": (LoggingSchema, "logging.yaml"),
    "features": (FeaturesSchema, "features.yaml"),
    "security": (SecuritySchema, "security.yaml"),
    "storage": (StorageSchema, "storage.yaml"),
    "concurrency": (ConcurrencySchema, "concurrency.yaml"),
}


def find_project_root() -> Path:
    """Walk up from the working directory to the .project_root marker."""
    for candidate in (Path.cwd(), *Path.cwd().parents):
        if (candidate / PROJECT_MARKER).exists():
            return candidate
    raise RuntimeError(f"Project root not found: no {PROJECT_MARKER} above {Path.cwd()}")


def validate_project_root() -> Path:
    """find_project_root() for entry points: exits instead of raising."""
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Read one file from config/settings/ (an empty file yields {})."""
    path = find_project_root() / "config" / "settings" / filename
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets only. Everything tunable lives in YAML."""

    db_password: str = ""
    jwt_secret: str

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppConfig:
    """
    Typed view over config/settings/*.yaml.

    Every file is validated when the object is built, so a typo or a
    missing key stops the process at startup rather than at first use.
    """

    def __init__(self) -> None:
        for name, (schema, filename) in _SECTIONS.items():
            raw = load_yaml_config(filename)
            try:
                section = schema(**raw)
            except ValidationError as e:
                raise ValueError(f"Invalid configuration in {filename}:\n{e}") from e
            setattr(self, f"_{name}", section)

    @property
    def application(self) -> ApplicationSchema:
        return self._application

    @property
    def database(self) -> DatabaseSchema:
        return self._database

    @property
    def logging(self) -> LoggingSchema:
        return self._logging

    @property
    def features(self) -> FeaturesSchema:
        return self._features

    @property
    def security(self) -> SecuritySchema:
        return self._security

    @property
    def storage(self) -> StorageSchema:
        """Upload directory, size ceiling and allowed MIME types."""
        return self._storage

    @property
    def concurrency(self) -> ConcurrencySchema:
        return self._concurrency


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=str(find_project_root() / "config" / ".env"))


@lru_cache
def get_app_config() -> AppConfig:
    return AppConfig()


def get_database_url() -> str:
    """
    SQLAlchemy URL from database.yaml plus DB_PASSWORD.

    For sqlite drivers `name` is the database file path and no
    credentials are used.
    """
    db = get_app_config().database
    if db.driver.startswith("sqlite"):
        url = URL.create(db.driver, database=db.name)
    else:
        url = URL.create(
            db.driver,
            username=db.user,
            password=get_settings().db_password,
            host=db.host,
            port=db.port,
            database=db.name,
        )
    return url.render_as_string(hide_password=False)
