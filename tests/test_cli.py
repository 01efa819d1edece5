"""Tests for CLI interface."""

import os
import tempfile

import yaml
from click.testing import CliRunner

from src.account_migrate.cli.main import cli


def _write_config(directory, object_types):
    path = os.path.join(directory, 'config.yaml')
    with open(path, 'w') as f:
        yaml.safe_dump({'migration': {'object_types': object_types}}, f)
    return path


CUSTOMERS_AND_SUBSCRIPTIONS = {
    'customers': {
        'provider': 'tests.fakes:create_customer_provider',
        'options': {'ids': ['cus_1', 'cus_2']},
    },
    'subscriptions': {
        'provider': 'tests.fakes:create_subscription_provider',
        'depends_on': ['customers'],
        'options': {'customers': {'sub_1': 'cus_1'}},
    },
}


class TestCLI:
    """Test CLI commands."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_cli_help(self):
        """Test CLI help command."""
        result = self.runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        assert 'Account Migration Tool' in result.output
        for command in ['init', 'status', 'recreate', 'revert', 'confirm', 'copy']:
            assert command in result.output

    def test_cli_version(self):
        """Test CLI version command."""
        result = self.runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert '0.1.0' in result.output

    def test_init_command(self):
        """Test init command."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = os.path.join(temp_dir, 'test_config.yaml')

            result = self.runner.invoke(cli, ['init', '--output', config_path])

            assert result.exit_code == 0
            assert 'Configuration template created' in result.output
            assert os.path.exists(config_path)

            with open(config_path, 'r') as f:
                content = f.read()
                assert 'migration:' in content
                assert 'object_types:' in content

    def test_init_command_default_output(self):
        """Test init command with default output."""
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['init'])

            assert result.exit_code == 0
            assert os.path.exists('config.yaml')

    def test_recreate_command_success(self):
        """Test successful recreate command."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write_config(temp_dir, CUSTOMERS_AND_SUBSCRIPTIONS)

            result = self.runner.invoke(cli, ['--config', config_path, 'recreate'])

            assert result.exit_code == 0, result.output
            assert 'Recreate Summary' in result.output
            assert 'Recreate completed successfully' in result.output

    def test_recreate_command_failure(self):
        """Test that fatal item errors make the command fail."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write_config(
                temp_dir,
                {
                    'customers': {
                        'provider': 'tests.fakes:create_failing_provider',
                        'options': {'ids': ['cus_1']},
                    },
                },
            )

            result = self.runner.invoke(cli, ['--config', config_path, 'recreate'])

            assert result.exit_code == 1
            assert 'Errors (1)' in result.output
            assert 'Failed to recreate customers cus_1' in result.output

    def test_copy_command(self):
        """Test copy command."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write_config(temp_dir, CUSTOMERS_AND_SUBSCRIPTIONS)

            result = self.runner.invoke(cli, ['--config', config_path, 'copy'])

            assert result.exit_code == 0, result.output
            assert 'Copy Summary' in result.output

    def test_confirm_command_warnings(self):
        """Test that confirm warnings are shown without failing."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write_config(temp_dir, CUSTOMERS_AND_SUBSCRIPTIONS)

            result = self.runner.invoke(cli, ['--config', config_path, 'confirm'])

            assert result.exit_code == 0, result.output
            assert 'Warnings (1)' in result.output

    def test_revert_command(self):
        """Test revert command with nothing to revert."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write_config(temp_dir, CUSTOMERS_AND_SUBSCRIPTIONS)

            result = self.runner.invoke(cli, ['--config', config_path, 'revert'])

            assert result.exit_code == 0, result.output
            assert 'Revert Summary' in result.output

    def test_bad_provider_path(self):
        """Test that an unknown provider module fails the command."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write_config(
                temp_dir, {'customers': {'provider': 'tests.nowhere:factory'}}
            )

            result = self.runner.invoke(cli, ['--config', config_path, 'recreate'])

            assert result.exit_code == 1
            assert 'Recreate failed' in result.output

    def test_status_command(self):
        """Test status command."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write_config(temp_dir, CUSTOMERS_AND_SUBSCRIPTIONS)

            result = self.runner.invoke(cli, ['--config', config_path, 'status'])

            assert result.exit_code == 0, result.output
            assert 'customers' in result.output
            assert 'subscriptions' in result.output

    def test_missing_config(self):
        """Test that commands fail without any configuration."""
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['recreate'])

            assert result.exit_code == 1
            assert 'No configuration found' in result.output
