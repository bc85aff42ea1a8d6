"""
Unit tests for CLI main entry point.

Tests CLI infrastructure including command groups, global options,
configuration loading and workspace initialization.
"""

from click.testing import CliRunner

from vigil._version import __version__
from vigil.cli.main import cli


class TestCLIMain:
    """Test CLI main entry point."""

    def test_cli_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        assert 'Vigil' in result.output
        assert '--config' in result.output
        assert '--log-level' in result.output
        assert '--verbose' in result.output
        for group in ('heartbeat', 'merkle', 'attestation', 'init'):
            assert group in result.output

    def test_cli_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_cli_with_config_path(self, sample_config_path):
        runner = CliRunner()
        result = runner.invoke(cli, ['-c', str(sample_config_path), 'heartbeat', 'status'])

        assert result.exit_code == 0
        assert 'Heartbeat daemon: stopped' in result.output

    def test_cli_with_invalid_config(self, temp_dir):
        config_path = temp_dir / 'config.yaml'
        config_path.write_text("heartbeat:\n  interval_seconds: -5\n")

        runner = CliRunner()
        result = runner.invoke(cli, ['-c', str(config_path), 'heartbeat', 'status'])

        assert result.exit_code == 1
        assert 'Invalid configuration' in result.output

    def test_cli_invalid_log_level(self):
        runner = CliRunner()
        result = runner.invoke(cli, ['--log-level', 'LOUD', 'merkle', 'root'])

        assert result.exit_code == 2


class TestInitCommand:
    """Test the init command."""

    def test_init_creates_workspace_and_config(self, temp_dir):
        config_path = temp_dir / 'conf' / 'config.yaml'
        workspace = temp_dir / 'ws'

        runner = CliRunner()
        result = runner.invoke(
            cli, ['-l', 'ERROR', '-c', str(config_path), 'init', '--workspace', str(workspace)]
        )

        assert result.exit_code == 0, result.output
        assert workspace.is_dir()
        assert config_path.exists()
        assert f"path: {workspace}" in config_path.read_text()
        assert 'Vigil initialized successfully' in result.output

    def test_init_keeps_existing_config(self, sample_config_path, temp_dir):
        original = sample_config_path.read_text()

        runner = CliRunner()
        result = runner.invoke(cli, ['-c', str(sample_config_path), 'init'])

        assert result.exit_code == 0, result.output
        assert 'Configuration already exists' in result.output
        assert sample_config_path.read_text() == original
        assert (temp_dir / 'workspace').is_dir()
