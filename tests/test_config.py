"""
Tests for Mockingbird Configuration

Tests MockConfig defaults, validation, YAML and environment loading.
"""

import logging

import pytest

from mockingbird.config import MockConfig
from mockingbird.errors import ConfigError


class TestMockConfig:
    """Test MockConfig dataclass."""

    def test_default_config(self):
        """Test default configuration values."""
        config = MockConfig()

        assert config.host == '127.0.0.1'
        assert config.port == 5000
        assert config.api_prefix == '/api'
        assert config.render_mode == 'single_pass'
        assert config.route_policy == 'first_match'
        assert config.admin_enabled is True
        assert config.seed_demo is True
        assert config.definition_files == []

    def test_logging_level(self):
        """Test the log level maps to a logging constant."""
        assert MockConfig(log_level='warning').logging_level == logging.WARNING

    @pytest.mark.parametrize('options', [
        {'render_mode': 'lazy'},
        {'route_policy': 'longest_match'},
        {'log_level': 'verbose'},
        {'port': 0},
        {'port': 70000},
        {'admin_prefix': 'admin'},
        {'api_prefix': 'api'},
    ])
    def test_validate_rejects(self, options):
        """Test out-of-range values are rejected."""
        with pytest.raises(ConfigError):
            MockConfig(**options).validate()

    def test_from_dict_unknown_option(self):
        """Test unknown options are rejected."""
        with pytest.raises(ConfigError) as exc_info:
            MockConfig.from_dict({'prot': 8080})

        assert 'prot' in str(exc_info.value)

    def test_from_dict_single_file(self):
        """Test a single definition file may be given as a string."""
        config = MockConfig.from_dict({'definition_files': 'endpoints.yaml'})

        assert config.definition_files == ['endpoints.yaml']


class TestConfigLoading:
    """Test loading configuration from YAML and the environment."""

    def test_from_yaml(self, tmp_path):
        """Test loading a YAML config file."""
        path = tmp_path / 'mockingbird.yaml'
        path.write_text(
            "port: 8080\n"
            "render_mode: sequential\n"
            "seed_demo: false\n"
            "definition_files:\n"
            "  - endpoints.json\n"
        )

        config = MockConfig.from_yaml(str(path))

        assert config.port == 8080
        assert config.render_mode == 'sequential'
        assert config.seed_demo is False
        assert config.definition_files == ['endpoints.json']

    def test_from_empty_yaml(self, tmp_path):
        """Test an empty file gives the defaults."""
        path = tmp_path / 'empty.yaml'
        path.write_text('')

        assert MockConfig.from_yaml(str(path)) == MockConfig()

    def test_from_yaml_not_a_mapping(self, tmp_path):
        """Test a YAML list is rejected."""
        path = tmp_path / 'list.yaml'
        path.write_text('- a\n- b\n')

        with pytest.raises(ConfigError):
            MockConfig.from_yaml(str(path))

    def test_from_env(self):
        """Test MOCKINGBIRD_* variables override the base config."""
        environ = {
            'MOCKINGBIRD_PORT': '9000',
            'MOCKINGBIRD_ADMIN_ENABLED': 'false',
            'MOCKINGBIRD_SEED_DEMO': 'yes',
            'MOCKINGBIRD_API_PREFIX': '/v1',
            'UNRELATED': 'x',
        }

        config = MockConfig.from_env(environ, base=MockConfig(host='0.0.0.0'))

        assert config.port == 9000
        assert config.admin_enabled is False
        assert config.seed_demo is True
        assert config.api_prefix == '/v1'
        assert config.host == '0.0.0.0'

    def test_from_env_invalid_port(self):
        """Test a non-numeric port is rejected."""
        with pytest.raises(ConfigError):
            MockConfig.from_env({'MOCKINGBIRD_PORT': 'eighty'})
