"""Tests for settings loading."""

from pathlib import Path

import pytest

from vector_desk.core.config import Settings


def test_yaml_and_env_overlay(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        "profiles:\n"
        "  - id: local\n"
        "    name: Local\n"
        "    url: http://localhost:8000\n"
        "    embedding_overrides:\n"
        "      books:\n"
        "        type: ollama\n"
        "        model_name: nomic-embed-text\n"
        "cache:\n"
        "  documents_stale_seconds: 5\n"
        "copy:\n"
        "  batch_size: 50\n"
    )
    monkeypatch.setenv("VDESK_BRIDGE_PORT", "6000")
    settings = Settings.from_yaml(config)
    assert settings.documents_stale_seconds == 5
    assert settings.copy_batch_size == 50
    assert settings.bridge_port == 6000
    profile = settings.get_profile("local")
    assert profile is not None
    assert profile.embedding_overrides["books"].type == "ollama"
    assert settings.get_profile("missing") is None


def test_batch_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Settings(copy_batch_size=0)


def test_reset_state_reloads_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from vector_desk.api import dependencies as deps
    from vector_desk.core.config import get_settings

    get_settings()
    config = tmp_path / "config.yaml"
    config.write_text("profiles:\n  - id: later\n    name: Later\n")
    monkeypatch.setenv("VDESK_CONFIG", str(config))
    deps.reset_state()
    assert deps.get_app_settings().get_profile("later") is not None
