from pathlib import Path

import pytest

from daybook.config import Config, LabelsConfig
from daybook.errors import ConfigError


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "daybook.toml"
    path.write_text(body, encoding="utf-8")
    return path


def test_load_full_config(tmp_path):
    state_file = tmp_path / "state" / "settings.json"
    path = _write_config(tmp_path, f"""
[General]
timezone = "Europe/Amsterdam"
state_file = "{state_file.as_posix()}"
seed_sample_events = true

[Preferences]
default_view = "week"
week_starts_on = 0
time_format = "12h"

[Notifications]
default_reminder_minutes = 60

[Display]
show_weekends = false

[Labels]
status_past = "已結束"
""")
    config = Config.load(path)

    assert config.general.timezone == "Europe/Amsterdam"
    assert config.general.state_file == state_file
    assert config.general.seed_sample_events is True
    assert config.settings.preferences.default_view == "week"
    assert config.settings.preferences.week_starts_on == 0
    assert config.settings.preferences.theme == "light"
    assert config.settings.notifications.default_reminder_minutes == 60
    assert config.settings.display.show_weekends is False
    assert config.labels.status_label("past") == "已結束"
    assert config.labels.status_label("ongoing") == "In progress"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.load(tmp_path / "nope.toml")


@pytest.mark.parametrize("body", [
    '[General]\ntimezone = "Mars/Olympus"\n',
    '[Preferences]\nweek_starts_on = 3\n',
    '[Preferences]\ntheme = "neon"\n',
    '[Notifications]\ndefault_reminder_minutes = -15\n',
    '[Display]\ncompact_view = "yes"\n',
    'this is not toml',
])
def test_invalid_values(tmp_path, body):
    with pytest.raises(ConfigError):
        Config.load(_write_config(tmp_path, body))


def test_settings_state_round_trip(tmp_path):
    config = Config.from_dict({"General": {"state_file": str(tmp_path / "settings.json")}})
    config.settings.update("preferences", "theme", "dark")
    config.settings.update("notifications", "default_reminder_minutes", 1440)
    config.save_state()

    reloaded = Config.from_dict({"General": {"state_file": str(tmp_path / "settings.json")}})
    reloaded.load_state()
    assert reloaded.settings.preferences.theme == "dark"
    assert reloaded.settings.notifications.default_reminder_minutes == 1440
    assert reloaded.settings.display.show_weekends is True


def test_update_validates(tmp_path):
    config = Config.from_dict({"General": {"state_file": str(tmp_path / "s.json")}})
    with pytest.raises(ConfigError):
        config.settings.update("preferences", "language", "fr-FR")
    with pytest.raises(ConfigError):
        config.settings.update("preferences", "colour", "red")
    with pytest.raises(ConfigError):
        config.settings.update("sound", "volume", 3)


def test_reset_settings_restores_file_values(tmp_path):
    config = Config.from_dict({
        "General": {"state_file": str(tmp_path / "s.json")},
        "Preferences": {"time_format": "12h"},
    })
    config.settings.update("preferences", "time_format", "24h")
    config.settings.update("display", "compact_view", True)
    config.reset_settings()
    assert config.settings.preferences.time_format == "12h"
    assert config.settings.display.compact_view is False


def test_load_state_without_file_keeps_settings(tmp_path):
    config = Config.from_dict({"General": {"state_file": str(tmp_path / "missing.json")}})
    config.load_state()
    assert config.settings.preferences.default_view == "month"


def test_corrupt_state_file(tmp_path):
    state_file = tmp_path / "s.json"
    state_file.write_text("{not json", encoding="utf-8")
    config = Config.from_dict({"General": {"state_file": str(state_file)}})
    with pytest.raises(ConfigError):
        config.load_state()


def test_reminder_labels():
    labels = LabelsConfig()
    assert labels.reminder_label(0) == "On time"
    assert labels.reminder_label(10080) == "1 week before"
    assert labels.reminder_label(45) == "45 minutes before"


def test_save_state_in_background(tmp_path, monkeypatch):
    import daybook.task_worker as task_worker

    worker = task_worker.TaskWorker(max_workers=1)
    monkeypatch.setattr(task_worker, "_global_worker", worker)
    state_file = tmp_path / "state" / "settings.json"
    config = Config.from_dict({"General": {"state_file": str(state_file)}})
    config.settings.update("preferences", "theme", "dark")
    finished, errors = [], []

    config.save_state_in_background(on_finished=finished.append, on_error=errors.append)
    worker.shutdown(wait=True)

    assert errors == []
    assert len(finished) == 1
    reloaded = Config.from_dict({"General": {"state_file": str(state_file)}})
    reloaded.load_state()
    assert reloaded.settings.preferences.theme == "dark"
