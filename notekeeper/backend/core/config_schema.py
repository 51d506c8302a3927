"""
Configuration Schemas.

One model per file in config/settings/, named after it
(application.yaml -> ApplicationSchema). AppConfig builds them at
startup, so a missing key, a wrong type or an unknown key fails there
with the offending file named, not later as a KeyError.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _StrictBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


# application.yaml


class ServerSchema(_StrictBase):
    host: str
    port: int = Field(ge=1, le=65535)


class CorsSchema(_StrictBase):
    origins: list[str] = Field(default_factory=list)


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str = ""
    environment: Literal["development", "staging", "production", "test"]
    debug: bool = False
    api_prefix: str = Field(pattern=r"^/")
    docs_enabled: bool = True
    server: ServerSchema
    cors: CorsSchema


# database.yaml
# For sqlite drivers only `driver` and `name` (the file path) matter.


class DatabaseSchema(_StrictBase):
    driver: str
    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    name: str
    user: str = ""
    pool_size: int = Field(default=5, ge=1)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout: int = Field(default=30, ge=1)
    pool_recycle: int = 1800
    echo: bool = False


# logging.yaml


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool = True


class FileHandlerSchema(_StrictBase):
    enabled: bool = False
    path: str = "logs/system.jsonl"
    max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    backup_count: int = Field(default=5, ge=0)


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"
    handlers: HandlersSchema


# features.yaml


class FeaturesSchema(_StrictBase):
    auth_registration_enabled: bool
    security_startup_checks_enabled: bool
    security_cors_enforce_production: bool


# security.yaml


class JwtSchema(_StrictBase):
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(gt=0)
    audience: str


class PasswordPolicySchema(_StrictBase):
    min_length: int = Field(ge=1)
    max_length: int = Field(ge=1)


class SecretsValidationSchema(_StrictBase):
    jwt_secret_min_length: int = Field(default=32, ge=1)


class SecuritySchema(_StrictBase):
    jwt: JwtSchema
    password: PasswordPolicySchema
    secrets_validation: SecretsValidationSchema


# storage.yaml


class StorageSchema(_StrictBase):
    upload_dir: str
    max_upload_bytes: int = Field(gt=0)
    allowed_mime_types: list[str]


# concurrency.yaml


class ThreadPoolSchema(_StrictBase):
    max_workers: int = Field(ge=1)


class ConcurrencySchema(_StrictBase):
    thread_pool: ThreadPoolSchema
