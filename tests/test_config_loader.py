"""Tests for config loading and environment substitution."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from msgbridge.config_loader import (
    DEFAULT_PORT,
    get_log_level,
    get_server_settings,
    load_config,
    resolve_env_path,
)
from msgbridge.core.exceptions import ConfigurationError


CONFIG_YAML = """\
upstream:
  base_url: http://localhost:9000/v1
  api_key: ${TEST_UPSTREAM_KEY}
  model_map:
    claude-x: $TEST_MAPPED_MODEL
server:
  host: 0.0.0.0
  port: 9100
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config_test.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        """Test a missing config file raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Config file not found"):
            load_config(str(tmp_path / "nope.yaml"))

    def test_non_mapping_yaml(self, tmp_path):
        """Test a YAML document that isn't a mapping is rejected."""
        path = tmp_path / "config_list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_env_substitution_from_process(self, config_file, monkeypatch):
        """Test ${VAR} and $VAR are resolved from the environment."""
        monkeypatch.setenv("TEST_UPSTREAM_KEY", "sk-env")
        monkeypatch.setenv("TEST_MAPPED_MODEL", "gpt-4o")

        config = load_config(str(config_file))

        assert config["upstream"]["api_key"] == "sk-env"
        assert config["upstream"]["model_map"] == {"claude-x": "gpt-4o"}

    def test_env_file_wins_over_process(self, config_file, monkeypatch):
        """Test values from the paired .env file take priority."""
        monkeypatch.setenv("TEST_UPSTREAM_KEY", "sk-env")
        monkeypatch.delenv("TEST_MAPPED_MODEL", raising=False)
        (config_file.parent / ".env_test").write_text(
            "TEST_UPSTREAM_KEY=sk-file\nTEST_MAPPED_MODEL=gpt-4o-mini\n", encoding="utf-8"
        )

        config = load_config(str(config_file))

        assert config["upstream"]["api_key"] == "sk-file"
        assert config["upstream"]["model_map"]["claude-x"] == "gpt-4o-mini"

    def test_unset_variable_keeps_placeholder(self, config_file, monkeypatch):
        """Test an unset variable leaves the literal placeholder."""
        monkeypatch.delenv("TEST_UPSTREAM_KEY", raising=False)

        config = load_config(str(config_file))

        assert config["upstream"]["api_key"] == "${TEST_UPSTREAM_KEY}"

    def test_substitution_disabled(self, config_file, monkeypatch):
        """Test substitute_env=False returns raw values."""
        monkeypatch.setenv("TEST_UPSTREAM_KEY", "sk-env")

        config = load_config(str(config_file), substitute_env=False)

        assert config["upstream"]["api_key"] == "${TEST_UPSTREAM_KEY}"

    def test_config_path_from_environment(self, config_file, monkeypatch):
        """Test MSGBRIDGE_CONFIG selects the file when no path is given."""
        monkeypatch.setenv("MSGBRIDGE_CONFIG", str(config_file))

        config = load_config()

        assert config["server"]["port"] == 9100

    def test_default_config_loads(self):
        """Test the shipped default config parses."""
        config = load_config("configs/config_default.yaml", substitute_env=False)

        assert "upstream" in config


class TestResolveEnvPath:
    def test_named_config_pairs_with_suffix(self, tmp_path):
        """Test config_<name>.yaml pairs with .env_<name>."""
        assert resolve_env_path(tmp_path / "config_prod.yaml") == tmp_path / ".env_prod"

    def test_other_config_pairs_with_dotenv(self, tmp_path):
        """Test any other file name pairs with .env."""
        assert resolve_env_path(tmp_path / "gateway.yaml") == tmp_path / ".env"


class TestServerSettings:
    def test_from_config(self, monkeypatch):
        """Test host and port come from the server section."""
        monkeypatch.delenv("MSGBRIDGE_HOST", raising=False)
        monkeypatch.delenv("MSGBRIDGE_PORT", raising=False)

        assert get_server_settings({"server": {"host": "0.0.0.0", "port": 9100}}) == ("0.0.0.0", 9100)

    def test_environment_overrides(self, monkeypatch):
        """Test MSGBRIDGE_HOST and MSGBRIDGE_PORT win over the config."""
        monkeypatch.setenv("MSGBRIDGE_HOST", "10.0.0.1")
        monkeypatch.setenv("MSGBRIDGE_PORT", "7000")

        assert get_server_settings({"server": {"host": "0.0.0.0", "port": 9100}}) == ("10.0.0.1", 7000)

    def test_invalid_port_falls_back(self, monkeypatch):
        """Test an unparseable port uses the default."""
        monkeypatch.delenv("MSGBRIDGE_HOST", raising=False)
        monkeypatch.setenv("MSGBRIDGE_PORT", "not-a-port")

        assert get_server_settings({})[1] == DEFAULT_PORT

    def test_log_level(self):
        """Test the log level is upper-cased with an INFO default."""
        assert get_log_level({"logging": {"level": "debug"}}) == "DEBUG"
        assert get_log_level({}) == "INFO"
