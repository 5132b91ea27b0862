"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from linkaudit.infrastructure.config import AppConfig, load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "linkaudit-test",
        "http": {
            "timeout_seconds": 5.0,
            "user_agent": "TestAgent/1.0",
        },
        "check": {"max_concurrent": 12, "success_policy": "exact"},
        "logging": {"level": "DEBUG", "format": "console", "dir": str(tmp_path / "logs")},
        "database": {"host": "db.test", "name": "moodle", "user": "auditor"},
        "report": {"owner_url_template": "https://lms.test/course/{owner_id}"},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    """Load with no YAML, no ENV, no CLI: pure defaults."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "linkaudit"
        assert config.http_timeout_seconds == 3.0
        assert config.http_follow_redirects is True
        assert config.max_concurrent is None
        assert config.success_policy == "2xx"
        assert config.log_level == "WARNING"
        assert config.log_format == "console"
        assert config.log_file_name == "log.txt"
        assert config.database.driver == "mysql+pymysql"
        assert config.database.table == "mdl_url"

    def test_log_format_is_a_single_setting(self) -> None:
        assert "environment" not in AppConfig.model_fields
        config = load_config(cli_overrides={"log_format": "json"})
        assert config.log_format == "json"

    def test_default_credentials_are_missing(self) -> None:
        config = load_config()
        assert config.database.missing_credentials == ["name", "user", "password"]


class TestYamlOverrides:
    def test_yaml_overrides_defaults(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "linkaudit-test"
        assert config.http_timeout_seconds == 5.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.max_concurrent == 12
        assert config.success_policy == "exact"
        assert config.log_level == "DEBUG"
        assert config.log_dir == tmp_path / "logs"
        assert config.database.host == "db.test"
        assert config.database.table == "mdl_url"  # default preserved
        assert config.owner_url_template == "https://lms.test/course/{owner_id}"

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_empty_yaml_keeps_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).http_timeout_seconds == 3.0


class TestEnvOverrides:
    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LINKAUDIT_LOG_LEVEL", "ERROR")
        monkeypatch.setenv("LINKAUDIT_HTTP_TIMEOUT_SECONDS", "7.5")
        monkeypatch.setenv("LINKAUDIT_DB_PASSWORD", "from-env")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "ERROR"
        assert config.http_timeout_seconds == 7.5
        assert config.database.password == "from-env"
        assert config.database.user == "auditor"  # YAML kept
        assert config.app_name == "linkaudit-test"

    def test_dotenv_file_participates_as_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("LINKAUDIT_MAX_CONCURRENT", raising=False)
        dotenv = tmp_path / ".env"
        dotenv.write_text("LINKAUDIT_MAX_CONCURRENT=3\n", encoding="utf-8")

        # monkeypatch removes the variable dotenv sets on teardown
        config = load_config(dotenv_path=dotenv)
        assert config.max_concurrent == 3

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "absent.env")


class TestCliOverrides:
    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LINKAUDIT_LOG_LEVEL", "ERROR")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={
                "log_level": "INFO",
                "max_concurrent": 2,
                "db_host": "cli.host",
                "db_url": "sqlite:///x.db",
            },
        )
        assert config.log_level == "INFO"
        assert config.max_concurrent == 2
        assert config.database.host == "cli.host"
        assert config.database.url == "sqlite:///x.db"
        assert config.database.missing_credentials == []

    def test_cli_can_disable_log_file(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config, cli_overrides={"log_dir": None})
        assert config.log_dir is None


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"http_timeout_seconds": 0},
            {"max_concurrent": 0},
            {"success_policy": "3xx"},
            {"log_level": "LOUD"},
            {"owner_url_template": "https://lms.test/no-placeholder"},
        ],
    )
    def test_invalid_values_rejected(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides=overrides)

    def test_password_hidden_from_repr(self) -> None:
        config = load_config(cli_overrides={"db_password": "secret"})
        assert config.database.password == "secret"
        assert "secret" not in repr(config.database)
        assert "secret" not in repr(config)
