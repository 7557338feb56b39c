"""Unit tests for application settings configuration."""

import json
from pathlib import Path

from craftmatch import config
from craftmatch.config import Settings


def test_settings_uses_backend_env_file_independent_of_cwd():
    """Settings should always include backend/.env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_backend_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_backend_env in normalized
    assert str(Path(".env")) in normalized


def test_default_tunables(monkeypatch):
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.setattr(config, "_SETTINGS_FILE", Path("does-not-exist.json"))
    settings = Settings(_env_file=None)

    assert settings.heuristic_confidence_threshold == 0.6
    assert settings.default_max_results == 20
    assert settings.max_results_cap == 100
    assert settings.ai_fallback_max_retries == 1
    assert Path(settings.profession_catalog_file).is_file()
    assert not settings.ai_fallback_enabled


def test_environment_overrides_threshold(monkeypatch):
    monkeypatch.setenv("HEURISTIC_CONFIDENCE_THRESHOLD", "0.75")
    monkeypatch.setattr(config, "_SETTINGS_FILE", Path("does-not-exist.json"))
    assert Settings(_env_file=None).heuristic_confidence_threshold == 0.75


def test_runtime_overrides_file_is_merged(monkeypatch, tmp_path):
    overrides = tmp_path / "settings.json"
    overrides.write_text(
        json.dumps({"heuristic_confidence_threshold": 0.5, "unknown_key": "ignored"}),
        encoding="utf-8",
    )
    monkeypatch.setattr(config, "_SETTINGS_FILE", overrides)
    settings = Settings(_env_file=None)
    assert settings.heuristic_confidence_threshold == 0.5


def test_broken_overrides_file_is_ignored(monkeypatch, tmp_path):
    overrides = tmp_path / "settings.json"
    overrides.write_text("{not json", encoding="utf-8")
    monkeypatch.setattr(config, "_SETTINGS_FILE", overrides)
    assert Settings(_env_file=None).heuristic_confidence_threshold == 0.6
