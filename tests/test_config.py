"""Tests for configuration management."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from xeroview.config import XERO_AUTH_URL, AppConfig

_ENV_KEYS = (
    "CLIENT_ID",
    "CLIENT_SECRET",
    "SCOPES",
    "REDIRECT_URL",
    "XEROVIEW_HOST",
    "XEROVIEW_PORT",
    "XEROVIEW_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # setenv first so monkeypatch also removes anything load_dotenv adds
    for key in _ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


class TestConfig:
    def test_default_config(self) -> None:
        config = AppConfig()
        assert config.port == 3000
        assert config.host == "0.0.0.0"
        assert config.redirect_url == "http://localhost:3000/auth/xero/callback"
        assert config.auth_url == XERO_AUTH_URL
        assert "offline_access" in config.scopes
        assert config.keep_alive_timeout == 60
        assert config.graceful_timeout == 15.0
        assert config.expiry_buffer == 60
        assert not config.is_configured

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "xeroview.yaml"
        config_file.write_text(yaml.dump({
            "client_id": "yaml-id",
            "client_secret": "yaml-secret",
            "scopes": ["openid", "accounting.contacts"],
            "port": 8080,
        }))

        config = AppConfig.load(str(config_file))
        assert config.client_id == "yaml-id"
        assert config.scopes == ["openid", "accounting.contacts"]
        assert config.port == 8080
        assert config.is_configured

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        config_file = tmp_path / "xeroview.yaml"
        config_file.write_text(yaml.dump({"client_id": "yaml-id"}))
        monkeypatch.setenv("CLIENT_ID", "env-id")
        monkeypatch.setenv("CLIENT_SECRET", "env-secret")
        monkeypatch.setenv("SCOPES", "openid, offline_access,accounting.contacts")
        monkeypatch.setenv("XEROVIEW_PORT", "4000")

        config = AppConfig.load(str(config_file))
        assert config.client_id == "env-id"
        assert config.client_secret == "env-secret"
        assert config.scopes == ["openid", "offline_access", "accounting.contacts"]
        assert config.port == 4000

    def test_load_with_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XEROVIEW_HOST", "127.0.0.1")
        config = AppConfig.load(None, host="localhost", port=None, log_level="DEBUG")
        assert config.host == "localhost"
        assert config.port == 3000
        assert config.log_level == "DEBUG"

    def test_dotenv_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("CLIENT_ID=dotenv-id\nCLIENT_SECRET=dotenv-secret\n")

        config = AppConfig.load(env_file=str(env_file))
        assert config.client_id == "dotenv-id"
        assert config.client_secret == "dotenv-secret"

    def test_real_env_beats_dotenv(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("CLIENT_ID=dotenv-id\n")
        monkeypatch.setenv("CLIENT_ID", "env-id")

        config = AppConfig.load()
        assert config.client_id == "env-id"

    def test_missing_dotenv_is_not_an_error(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("INFO", logger="xeroview.config"):
            config = AppConfig.load()
        assert config.client_id == ""
        assert "No .env file found" in caplog.text

    def test_missing_config_file(self) -> None:
        config = AppConfig.load("/nonexistent/config.yaml", env_file=None)
        assert config.port == 3000

    def test_invalid_port(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(port=70000)

    def test_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(ValidationError):
            config.port = 1
