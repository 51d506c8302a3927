#!/usr/bin/env python3
"""
Notekeeper operator script.

One command, one --action:

    python run.py --action server --reload -v      serve the API with uvicorn
    python run.py --action init-db                 create tables from ORM metadata
    python run.py --action create-admin --username root --email root@example.com
    python run.py --action health                  import/config/secrets self-check
    python run.py --action config                  print YAML settings (never secrets)
    python run.py --action test --test-type unit   run pytest
"""

import asyncio
import subprocess
import sys
from pathlib import Path

import click

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from notekeeper.backend.core.logging import get_logger, setup_logging

ACTIONS = ("server", "health", "config", "test", "info", "create-admin", "init-db")


def validate_project_root() -> Path:
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


@click.command()
@click.option("--action", type=click.Choice(ACTIONS), default="info", help="What to do.")
@click.option("--verbose", "-v", is_flag=True, help="INFO level logging.")
@click.option("--debug", "-d", is_flag=True, help="DEBUG level logging.")
@click.option("--host", default=None, help="Bind address (server).")
@click.option("--port", default=None, type=int, help="Bind port (server).")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes (server).")
@click.option(
    "--test-type",
    type=click.Choice(["all", "unit", "integration"]),
    default="all",
    help="Test subset (test).",
)
@click.option("--coverage", is_flag=True, help="Collect coverage (test).")
@click.option("--username", default=None, help="Admin username (create-admin).")
@click.option("--email", default=None, help="Admin email (create-admin).")
@click.option("--password", default=None, help="Admin password (create-admin); prompted if omitted.")
def main(
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    test_type: str,
    coverage: bool,
    username: str | None,
    email: str | None,
    password: str | None,
) -> None:
    """
    Notes API Entry Point.

    Serve the API, prepare the database, create admin accounts,
    inspect configuration, or run the tests.
    """
    validate_project_root()

    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"
    setup_logging(level=log_level, format_type="console")
    logger = get_logger(__name__)
    logger.debug("Operator action", extra={"action": action, "log_level": log_level})

    if action == "server":
        run_server(logger, host, port, reload)
    elif action == "health":
        check_health(logger)
    elif action == "config":
        show_config(logger)
    elif action == "test":
        run_tests(logger, test_type, coverage)
    elif action == "init-db":
        init_db(logger)
    elif action == "create-admin":
        create_admin(logger, username, email, password)
    else:
        show_info()


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start uvicorn in a child process against the lazy app factory."""
    from notekeeper.backend.core.config import get_app_config

    server = get_app_config().application.server
    host = host or server.host
    port = port or server.port

    cmd = [
        sys.executable, "-m", "uvicorn", "notekeeper.backend.main:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        cmd.append("--reload")

    logger.info("Starting server", extra={"host": host, "port": port, "reload": reload})
    click.echo(f"Serving on http://{host}:{port} (Ctrl+C to stop)\n")
    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server exited with failure", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def _probe(name: str, probe) -> tuple[str, bool, str | None]:
    try:
        return name, True, probe()
    except Exception as e:
        return name, False, f"{type(e).__name__}: {e}"


def check_health(logger) -> None:
    """Import the app and load every config source without touching the network."""
    from notekeeper.backend.core.config import get_app_config, get_settings

    def _yaml() -> str:
        return f"App: {get_app_config().application.name}"

    def _secrets() -> None:
        get_settings()

    def _app() -> str:
        from notekeeper.backend.main import get_app
        return f"Title: {get_app().title}"

    def _models() -> str:
        from notekeeper.backend.models import Base
        return f"Tables: {', '.join(sorted(Base.metadata.tables))}"

    results = [
        _probe("YAML configuration", _yaml),
        _probe("Secrets (config/.env)", _secrets),
        _probe("FastAPI application", _app),
        _probe("Database models", _models),
    ]

    click.echo("Health Check Results:")
    click.echo("-" * 50)
    for name, passed, detail in results:
        mark = click.style("PASS", fg="green") if passed else click.style("FAIL", fg="red")
        click.echo(f"  {mark}  {name}" + (f" ({detail})" if detail else ""))
        if not passed:
            logger.warning("Health check failed", extra={"check": name, "error": detail})
    click.echo("-" * 50)

    if not all(passed for _, passed, _ in results):
        click.echo(click.style("Some checks failed.", fg="yellow"))
        sys.exit(1)
    click.echo(click.style("All checks passed.", fg="green"))


def show_config(logger) -> None:
    """Print each YAML section. Secrets from .env are never shown."""
    from notekeeper.backend.core.config import get_app_config

    try:
        config = get_app_config()
    except (FileNotFoundError, ValueError) as e:
        logger.error("Configuration invalid", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"), err=True)
        sys.exit(1)

    for section in ("application", "database", "logging", "features", "security", "storage", "concurrency"):
        click.echo(f"{section.title()} Settings ({section}.yaml):")
        click.echo("-" * 40)
        for key, value in getattr(config, section).model_dump().items():
            click.echo(f"  {key}: {value}")
        click.echo()


def init_db(logger) -> None:
    """Create every table from ORM metadata (Alembic is for later schema changes)."""
    from notekeeper.backend.core.database import create_all_tables, dispose_engine

    async def _create() -> None:
        try:
            await create_all_tables()
        finally:
            await dispose_engine()

    try:
        asyncio.run(_create())
    except Exception as e:
        logger.error("Table creation failed", extra={"error": str(e)})
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    click.echo(click.style("Database tables created.", fg="green"))


def create_admin(logger, username: str | None, email: str | None, password: str | None) -> None:
    """Create an admin account. Registration over HTTP never grants admin."""
    from notekeeper.backend.core.database import dispose_engine, get_session_factory
    from notekeeper.backend.core.exceptions import ApplicationError
    from notekeeper.backend.models.user import UserRole
    from notekeeper.backend.services.auth import AuthService

    username = username or click.prompt("Username")
    email = email or click.prompt("Email")
    password = password or click.prompt("Password", hide_input=True, confirmation_prompt=True)

    async def _create() -> str:
        try:
            async with get_session_factory()() as session:
                user = await AuthService(session).create_user(
                    username, email, password, role=UserRole.ADMIN
                )
                await session.commit()
                return user.id
        finally:
            await dispose_engine()

    try:
        user_id = asyncio.run(_create())
    except ApplicationError as e:
        logger.error("Admin creation failed", extra={"code": e.code, "error": e.message})
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        sys.exit(1)

    logger.info("Admin created", extra={"user_id": user_id})
    click.echo(click.style(f"Admin '{username}' created (id={user_id}).", fg="green"))


def run_tests(logger, test_type: str, coverage: bool) -> None:
    target = {"unit": "tests/unit", "integration": "tests/integration"}.get(test_type, "tests")
    cmd = [sys.executable, "-m", "pytest", target, "-v"]
    if coverage:
        cmd += ["--cov=notekeeper", "--cov-report=term-missing"]

    logger.info("Running tests", extra={"cmd": cmd})
    click.echo(f"Running: {' '.join(cmd)}\n")
    sys.exit(subprocess.run(cmd).returncode)


def show_info() -> None:
    from notekeeper.backend.core.config import get_app_config

    app = get_app_config().application
    click.echo(f"{app.name} {app.version}")
    click.echo(app.description)
    click.echo()
    click.echo("Actions:")
    click.echo("  server        serve the API (--host, --port, --reload)")
    click.echo("  init-db       create database tables")
    click.echo("  create-admin  create an admin account (--username, --email, --password)")
    click.echo("  health        self-check imports, configuration and secrets")
    click.echo("  config        print YAML settings")
    click.echo("  test          run pytest (--test-type, --coverage)")
    click.echo("  info          this message")


if __name__ == "__main__":
    main()
