"""Tests for environment configuration."""

from pathlib import Path

from ghostshare.config import (
    DEFAULT_USER_ID,
    get_db_path,
    get_ghostshare_home,
    load_settings,
    resolve_user_id,
)


class TestPaths:
    def test_data_dir_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GHOSTSHARE_DATA_DIR", str(tmp_path / "data"))
        assert get_ghostshare_home() == tmp_path / "data"
        assert get_db_path() == tmp_path / "data" / "ghostshare.db"

    def test_db_path_env_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GHOSTSHARE_DB_PATH", str(tmp_path / "other.db"))
        assert get_db_path() == tmp_path / "other.db"


class TestUserId:
    def test_explicit_wins(self, monkeypatch):
        monkeypatch.setenv("GHOSTSHARE_USER_ID", "env-user")
        assert resolve_user_id("alice") == "alice"
        assert resolve_user_id() == "env-user"

    def test_default(self):
        assert resolve_user_id() == DEFAULT_USER_ID


class TestLoadSettings:
    def test_defaults(self, tmp_path):
        settings = load_settings()
        assert settings.user_id == "default"
        assert settings.log_level == "INFO"
        assert settings.db_path.name == "ghostshare.db"

    def test_explicit_arguments(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GHOSTSHARE_LOG_LEVEL", "warning")
        settings = load_settings(user_id="alice", db_path=str(tmp_path / "x.db"))
        assert settings.user_id == "alice"
        assert settings.db_path == Path(tmp_path / "x.db")
        assert settings.log_level == "WARNING"
        assert load_settings(log_level="debug").log_level == "DEBUG"
