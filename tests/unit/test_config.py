"""Unit tests for Settings validation and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.config.loader import load_config
from src.config.settings import Settings, validate_settings
from src.utils.errors import ConfigurationError


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {"openai_api_key": "sk-test"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:
    def test_defaults(self) -> None:
        settings = _settings()
        assert settings.openai_embedding_model == "text-embedding-3-large"
        assert settings.embedding_dimension == 3072
        assert settings.chunk_size == 1000
        assert settings.chunk_overlap == 200
        assert settings.max_file_size == 50 * 1024 * 1024
        assert settings.allow_index_recreation is False
        assert settings.validation_errors() == []

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("CHUNK_SIZE", "500")
        monkeypatch.setenv("ALLOW_INDEX_RECREATION", "true")

        settings = Settings(_env_file=None)

        assert settings.openai_api_key == "sk-env"
        assert settings.chunk_size == 500
        assert settings.allow_index_recreation is True

    def test_missing_api_key_reported(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        settings = Settings(_env_file=None)
        assert "OPENAI_API_KEY is required" in settings.validation_errors()

    @pytest.mark.parametrize(
        ("field", "value", "fragment"),
        [
            ("openai_temperature", 3.0, "OPENAI_TEMPERATURE"),
            ("embedding_dimension", 0, "EMBEDDING_DIMENSION"),
            ("vector_store", "pinecone", "VECTOR_STORE"),
            ("max_file_size", 0, "MAX_FILE_SIZE"),
            ("chunk_overlap", 1000, "CHUNK_OVERLAP"),
            ("dedup_threshold", 1.5, "DEDUP_THRESHOLD"),
            ("upsert_batch_size", 0, "UPSERT_BATCH_SIZE"),
            ("rate_limit_max_requests", 0, "RATE_LIMIT_MAX_REQUESTS"),
        ],
    )
    def test_invalid_values_reported(self, field: str, value: object, fragment: str) -> None:
        errors = _settings(**{field: value}).validation_errors()
        assert any(fragment in error for error in errors)

    def test_validate_settings_raises_with_every_problem(self) -> None:
        settings = _settings(openai_api_key="", chunk_size=0)

        with pytest.raises(ConfigurationError) as exc_info:
            validate_settings(settings)

        message = exc_info.value.message
        assert "OPENAI_API_KEY" in message
        assert "CHUNK_SIZE" in message

    def test_validate_settings_passes(self) -> None:
        validate_settings(_settings())


class TestLoadConfig:
    def test_yaml_values_merged_with_settings(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "app:\n  title: docchat\n  version: 9.9.9\napi:\n  cors_origins: [http://localhost:3000]\n",
            encoding="utf-8",
        )

        config = load_config(str(config_file), settings=_settings(app_port=9000, chunk_size=640))

        assert config["app"]["title"] == "docchat"
        assert config["app"]["version"] == "9.9.9"
        assert config["app"]["port"] == 9000
        assert config["api"]["cors_origins"] == ["http://localhost:3000"]
        assert config["ingestion"]["chunk_size"] == 640

    def test_missing_file_yields_settings_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=_settings())
        assert config["retrieval"]["max_search_results"] == 5
        assert "api" not in config
