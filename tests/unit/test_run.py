"""
Unit Tests for run.py Entry Script.

Tests individual functions with mocked dependencies.
"""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from run import main, validate_project_root


class TestValidateProjectRoot:
    """Tests for validate_project_root function."""

    def test_validate_project_root_succeeds_when_marker_exists(self, tmp_path):
        """Should return path when .project_root exists."""
        (tmp_path / ".project_root").touch()

        with patch("run.PROJECT_ROOT", tmp_path):
            assert validate_project_root() == tmp_path

    def test_validate_project_root_exits_when_marker_missing(self, tmp_path):
        """Should exit with error when .project_root is missing."""
        with patch("run.PROJECT_ROOT", tmp_path):
            with pytest.raises(SystemExit) as exc_info:
                validate_project_root()
            assert exc_info.value.code == 1


class TestMainCLI:
    """Tests for main CLI entry point."""

    @pytest.fixture
    def runner(self):
        """Create Click test runner."""
        return CliRunner()

    def test_help_displays_usage(self, runner):
        """Should display help text with --help."""
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "Notes API Entry Point" in result.output
        assert "--action" in result.output
        assert "--username" in result.output

    def test_info_action_lists_actions(self, runner):
        """Should display application info with --action info."""
        result = runner.invoke(main, ["--action", "info"])

        assert result.exit_code == 0
        assert "Notekeeper" in result.output
        assert "create-admin" in result.output
        assert "init-db" in result.output

    def test_debug_flag_sets_debug_logging(self, runner):
        """Should configure DEBUG level logging with --debug."""
        with patch("run.setup_logging") as mock_setup:
            runner.invoke(main, ["--action", "info", "--debug"])

        mock_setup.assert_called_once()
        assert mock_setup.call_args.kwargs["level"] == "DEBUG"

    def test_config_action_shows_sections(self, runner, test_settings):
        """Should print every YAML section and never a secret value."""
        result = runner.invoke(main, ["--action", "config"])

        assert result.exit_code == 0
        assert "Application Settings" in result.output
        assert "Storage Settings" in result.output
        assert "jwt_secret_min_length" in result.output
        assert test_settings.jwt_secret not in result.output
        assert test_settings.db_password not in result.output

    def test_health_action_runs_checks(self, runner):
        """Should run every health check."""
        result = runner.invoke(main, ["--action", "health"])

        assert "Health Check Results" in result.output
        assert "Database models" in result.output

    def test_invalid_action_shows_error(self, runner):
        result = runner.invoke(main, ["--action", "invalid"])

        assert result.exit_code != 0
        assert "Invalid value" in result.output


class TestCreateAdmin:
    """Tests for the create-admin action."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_missing_password_is_prompted(self, runner):
        """Should prompt for any credential not given as an option."""
        with patch("run.asyncio.run", return_value="user-1") as mock_run:
            result = runner.invoke(
                main,
                ["--action", "create-admin", "--username", "root", "--email", "root@example.com"],
                input="s3cret-pass\ns3cret-pass\n",
            )

        assert result.exit_code == 0
        assert "Password" in result.output
        assert "Admin 'root' created (id=user-1)" in result.output
        mock_run.assert_called_once()
        mock_run.call_args.args[0].close()

    def test_application_error_exits_nonzero(self, runner):
        from notekeeper.backend.core.exceptions import ConflictError

        def _fail(coro):
            coro.close()
            raise ConflictError("Username or email already registered")

        with patch("run.asyncio.run", side_effect=_fail):
            result = runner.invoke(
                main,
                [
                    "--action", "create-admin",
                    "--username", "root",
                    "--email", "root@example.com",
                    "--password", "s3cret-pass",
                ],
            )

        assert result.exit_code == 1
        assert "already registered" in result.output
