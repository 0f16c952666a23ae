"""Unit tests for settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

from knowledge_hub.config.loader import load_config
from knowledge_hub.config.settings import Settings


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("AUTH_SECRET", raising=False)
        monkeypatch.delenv("DB_PATH", raising=False)
        settings = Settings(_env_file=None)

        assert settings.db_path == "data/knowledge_hub.db"
        assert settings.identifier_prefix == "KB"
        assert settings.counter_initial_value == 1000
        assert settings.summary_budget == 140
        assert settings.split_marker == "Task type"
        assert settings.auth_enabled() is False

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("AUTH_SECRET", "s3cret")
        monkeypatch.setenv("SEARCH_MAX_LIMIT", "25")
        monkeypatch.setenv("EDITOR_ROLES", '["editor"]')
        settings = Settings(_env_file=None)

        assert settings.auth_enabled() is True
        assert settings.search_max_limit == 25
        assert settings.editor_roles == ["editor"]


class TestLoadConfig:
    def test_missing_file_gets_defaults(self, tmp_path: Path, test_settings) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=test_settings)

        assert config["app"]["cors_origins"] == ["*"]
        assert config["ingestion"]["import_tags"] == ["bulk"]
        assert config["ingestion"]["upload_tags"] == ["upload"]
        assert config["store"]["db_path"] == test_settings.db_path
        assert config["auth"]["enabled"] is False

    def test_yaml_values_merged_with_settings(self, tmp_path: Path, test_settings) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "app:\n"
            "  name: custom\n"
            "  cors_origins: ['http://desk.local']\n"
            "ingestion:\n"
            "  import_tags: [sop]\n"
            "store:\n"
            "  db_path: ignored.db\n"
        )

        config = load_config(str(path), settings=test_settings)

        assert config["app"]["name"] == "custom"
        assert config["app"]["cors_origins"] == ["http://desk.local"]
        assert config["app"]["port"] == test_settings.app_port
        assert config["ingestion"]["import_tags"] == ["sop"]
        assert config["ingestion"]["upload_tags"] == ["upload"]
        assert config["store"]["db_path"] == test_settings.db_path

    def test_repo_config_file(self, project_root: Path, test_settings) -> None:
        config = load_config(str(project_root / "config" / "config.yaml"), settings=test_settings)

        assert ".docx" in config["ingestion"]["allowed_extensions"]
        assert config["identifiers"]["prefix"] == "KB"
