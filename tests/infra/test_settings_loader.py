from __future__ import annotations

import json
from pathlib import Path

import pytest

from lms_reconcile.core.policy.config import MatchConfiguration
from lms_reconcile.infra import settings as settings_module
from lms_reconcile.infra.errors import SettingsFileError
from lms_reconcile.infra.settings import load_settings


@pytest.fixture(autouse=True)
def _clear_cache():
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def test_bundled_settings_match_defaults() -> None:
    assert load_settings() == MatchConfiguration()


def test_missing_default_file_falls_back(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(settings_module, "DEFAULT_SETTINGS_PATH", tmp_path / "absent.json")
    assert load_settings() == MatchConfiguration()


def test_explicit_file_is_loaded_and_reloaded_on_change(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"fuzzy_threshold": 0.9, "check_intra_platform": True}), encoding="utf-8")
    config = load_settings(path)
    assert config.fuzzy_threshold == pytest.approx(0.9)
    assert config.check_intra_platform is True
    path.write_text(json.dumps({"fuzzy_threshold": 0.7}), encoding="utf-8")
    assert load_settings(path).fuzzy_threshold == pytest.approx(0.7)


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("{", "Invalid JSON"),
        ("[1, 2]", "JSON object"),
        ('{"fuzzy_threshold": 3}', "fuzzy_threshold"),
        ('{"colour": "red"}', "colour"),
    ],
)
def test_invalid_files_raise_settings_error(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "settings.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(SettingsFileError, match=message):
        load_settings(path)


def test_explicit_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(SettingsFileError, match="not found"):
        load_settings(tmp_path / "nope.json")
