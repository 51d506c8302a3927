"""
Startup Safety Checks.

Run from the lifespan when features.security_startup_checks_enabled is
set. Every check runs; all failures are reported together and the
process refuses to serve.
"""

import os
from pathlib import Path

from notekeeper.backend.core.config import AppConfig, Settings, find_project_root, get_app_config, get_settings
from notekeeper.backend.core.logging import get_logger

logger = get_logger(__name__)


class StartupSecurityError(RuntimeError):
    """One or more startup checks failed."""


def _secret_strength(config: AppConfig, settings: Settings) -> list[str]:
    minimum = config.security.secrets_validation.jwt_secret_min_length
    length = len(settings.jwt_secret)
    if length < minimum:
        return [f"JWT_SECRET is {length} chars, minimum is {minimum}"]
    return []


def _production_safety(config: AppConfig, settings: Settings) -> list[str]:
    app = config.application
    if app.environment != "production":
        return []

    problems = []
    if app.debug:
        problems.append("debug is true in production")
    if app.docs_enabled:
        problems.append("docs_enabled is true in production")
    if config.features.security_cors_enforce_production:
        local = [origin for origin in app.cors.origins if "localhost" in origin or "127.0.0.1" in origin]
        if local:
            problems.append(f"CORS origins point at localhost in production: {local}")
    return problems


def _upload_dir_writable(config: AppConfig, settings: Settings) -> list[str]:
    upload_dir = Path(config.storage.upload_dir)
    if not upload_dir.is_absolute():
        upload_dir = find_project_root() / upload_dir
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return [f"upload_dir {upload_dir} cannot be created: {e}"]
    if not os.access(upload_dir, os.W_OK):
        return [f"upload_dir {upload_dir} is not writable"]
    return []


CHECKS = (_secret_strength, _production_safety, _upload_dir_writable)


def run_startup_checks() -> None:
    """
    Raises:
        StartupSecurityError: listing every failed check
    """
    config = get_app_config()
    settings = get_settings()

    errors = [problem for check in CHECKS for problem in check(config, settings)]
    if errors:
        for error in errors:
            logger.error("Startup check failed", extra={"check": error})
        raise StartupSecurityError(
            f"Startup blocked by {len(errors)} failed check(s):\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    logger.info(
        "Startup checks passed",
        extra={"environment": config.application.environment, "checks_run": len(CHECKS)},
    )
