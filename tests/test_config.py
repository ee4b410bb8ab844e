import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from flashdeck.config import (
    CONFIG_FILE_ENV,
    Settings,
    config_file_path,
    default_data_dir,
    load_settings,
)


def test_defaults(tmp_path):
    settings = Settings()

    assert settings.data_directory == tmp_path / "xdg-data" / "flashdeck"
    assert settings.auto_create_data_dir is True
    assert settings.default_ease_factor == 2.5
    assert settings.theme == "default"
    assert settings.backup_enabled is False
    assert settings.study_session.show_progress is True
    assert settings.study_session.cards_per_session == 20
    assert settings.study_session.new_cards_per_day == 10
    assert settings.log_level == "WARNING"
    assert settings.expanded_backup_dir() is None


def test_local_data_directory_wins_when_present(tmp_path):
    (tmp_path / "data").mkdir()

    assert default_data_dir() == Path("./data")


def test_config_file_location_follows_xdg(tmp_path, monkeypatch):
    assert config_file_path() == tmp_path / "xdg-config" / "flashdeck" / "config.json"

    monkeypatch.setenv(CONFIG_FILE_ENV, str(tmp_path / "elsewhere.json"))
    assert config_file_path() == tmp_path / "elsewhere.json"


def test_json_config_file_is_read(tmp_path):
    path = config_file_path()
    path.parent.mkdir(parents=True)
    path.write_text(
        json.dumps(
            {
                "data_directory": str(tmp_path / "decks"),
                "theme": "dark",
                "study_session": {"cards_per_session": 5, "show_progress": False},
            }
        ),
        encoding="utf-8",
    )

    settings = Settings()

    assert settings.data_directory == tmp_path / "decks"
    assert settings.theme == "dark"
    assert settings.study_session.cards_per_session == 5
    assert settings.study_session.show_progress is False
    assert settings.study_session.new_cards_per_day == 10


def test_environment_overrides_config_file(monkeypatch):
    path = config_file_path()
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
    monkeypatch.setenv("FLASHDECK_THEME", "light")
    monkeypatch.setenv("FLASHDECK_STUDY_SESSION__CARDS_PER_SESSION", "7")

    settings = Settings()

    assert settings.theme == "light"
    assert settings.study_session.cards_per_session == 7


def test_explicit_overrides_beat_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("FLASHDECK_LOG_LEVEL", "error")

    settings = load_settings(log_level="debug", data_directory=None, log_file=None)

    assert settings.log_level == "DEBUG"
    # None は「未指定」として扱う
    assert settings.data_directory == tmp_path / "xdg-data" / "flashdeck"


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        Settings(log_level="chatty")
    with pytest.raises(ValidationError):
        Settings(default_ease_factor=1.0)
    with pytest.raises(ValidationError):
        Settings(study_session={"cards_per_session": -1})


def test_backup_directory_defaults_under_data_dir(tmp_path):
    settings = Settings(data_directory=tmp_path / "d", backup_enabled=True)
    assert settings.expanded_backup_dir() == tmp_path / "d" / "backups"

    settings = Settings(data_directory=tmp_path / "d", backup_enabled=True, backup_directory=str(tmp_path / "bk"))
    assert settings.expanded_backup_dir() == tmp_path / "bk"


def test_save_writes_readable_config(tmp_path):
    settings = Settings(theme="dark", data_directory=tmp_path / "decks", log_level="DEBUG")

    path = settings.save()

    assert path == config_file_path()
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["theme"] == "dark"
    assert "log_level" not in payload
    assert "environment" not in payload
    assert Settings().theme == "dark"
