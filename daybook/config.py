"""
Configuration parser for Daybook.

Handles TOML file parsing for startup configuration and JSON persistence
of the user settings edited at runtime.
"""

import copy
import json
import os
import tomllib
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Any, Callable, Optional

from .debug import debug_print
from .errors import ConfigError
from .timezone_utils import is_valid_timezone


def _debug_print(message: str) -> None:
    debug_print("CONFIG", message)


_CHOICES = {
    "default_view": ("month", "week", "day"),
    "week_starts_on": (0, 1),
    "time_format": ("12h", "24h"),
    "theme": ("light", "dark", "system"),
    "language": ("zh-TW", "en-US"),
}


@dataclass
class GeneralConfig:
    """Startup options from the [General] section."""
    state_file: Path
    timezone: str = "Asia/Taipei"
    seed_sample_events: bool = False


@dataclass
class PreferencesConfig:
    """Personal preferences."""
    default_view: str = "month"
    week_starts_on: int = 1  # 0: Sunday, 1: Monday
    time_format: str = "24h"
    theme: str = "light"
    language: str = "zh-TW"


@dataclass
class NotificationsConfig:
    """Notification preferences. Only reminder offsets are acted on."""
    enable_notifications: bool = True
    email_reminders: bool = True
    push_notifications: bool = True
    sound_enabled: bool = True
    default_reminder_minutes: int = 15


@dataclass
class DisplayConfig:
    """Display preferences."""
    show_weekends: bool = True
    show_declined_events: bool = False
    compact_view: bool = False


@dataclass
class LabelsConfig:
    """Configuration for UI labels."""
    reminder_on_time: str = "On time"
    reminder_15_minutes: str = "15 minutes before"
    reminder_1_hour: str = "1 hour before"
    reminder_1_day: str = "1 day before"
    reminder_1_week: str = "1 week before"
    reminder_other: str = "{} minutes before"

    status_past: str = "Ended"
    status_upcoming: str = "Upcoming"
    status_ongoing: str = "In progress"

    allday_label: str = "All day"
    no_events: str = "No events"
    more_events: str = "+{} more"

    def reminder_label(self, minutes: int) -> str:
        """Label for a reminder offset; offsets outside the form's options get a generic one."""
        known = {
            0: self.reminder_on_time,
            15: self.reminder_15_minutes,
            60: self.reminder_1_hour,
            1440: self.reminder_1_day,
            10080: self.reminder_1_week,
        }
        if minutes in known:
            return known[minutes]
        return self.reminder_other.format(minutes)

    def status_label(self, status: str) -> str:
        return {
            "past": self.status_past,
            "upcoming": self.status_upcoming,
            "ongoing": self.status_ongoing,
        }[status]


def _check_value(section: str, key: str, value: Any, default: Any) -> Any:
    """Validate one settings value against the type of its default."""
    if key in _CHOICES and value not in _CHOICES[key]:
        raise ConfigError(f"[{section}] {key} must be one of {_CHOICES[key]}, got {value!r}")
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ConfigError(f"[{section}] {key} must be true or false, got {value!r}")
    elif isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"[{section}] {key} must be a non-negative integer, got {value!r}")
    elif isinstance(default, str) and not isinstance(value, str):
        raise ConfigError(f"[{section}] {key} must be a string, got {value!r}")
    return value


def _section_from_dict(cls, section: str, data: dict, base=None):
    """Build a section dataclass from ``data``, falling back to ``base`` or class defaults."""
    if not isinstance(data, dict):
        raise ConfigError(f"[{section}] must be a table")
    base = base if base is not None else cls()
    values = {}
    for f in fields(cls):
        default = getattr(base, f.name)
        if f.name in data:
            values[f.name] = _check_value(section, f.name, data[f.name], default)
        else:
            values[f.name] = default
    unknown = set(data) - {f.name for f in fields(cls)}
    if unknown:
        _debug_print(f"Ignoring unknown keys in [{section}]: {sorted(unknown)}")
    return cls(**values)


@dataclass
class Settings:
    """User settings editable at runtime (the settings screen)."""
    preferences: PreferencesConfig = field(default_factory=PreferencesConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    _SECTIONS = {
        "preferences": PreferencesConfig,
        "notifications": NotificationsConfig,
        "display": DisplayConfig,
    }

    def to_dict(self) -> dict:
        return {
            "preferences": asdict(self.preferences),
            "notifications": asdict(self.notifications),
            "display": asdict(self.display),
        }

    @classmethod
    def from_dict(cls, data: dict, base: Optional['Settings'] = None) -> 'Settings':
        """Build settings from ``data``; missing keys come from ``base`` (or the defaults)."""
        base = base or cls()
        sections = {}
        for name, section_cls in cls._SECTIONS.items():
            sections[name] = _section_from_dict(
                section_cls, name, data.get(name, {}), getattr(base, name)
            )
        return cls(**sections)

    def update(self, section: str, key: str, value: Any) -> None:
        """Change one setting, validating it first."""
        if section not in self._SECTIONS:
            raise ConfigError(f"Unknown settings section: {section}")
        target = getattr(self, section)
        if not hasattr(target, key):
            raise ConfigError(f"Unknown setting: {section}.{key}")
        setattr(target, key, _check_value(section, key, value, getattr(target, key)))


@dataclass
class Config:
    """Main configuration container for Daybook."""

    general: GeneralConfig
    settings: Settings = field(default_factory=Settings)
    labels: LabelsConfig = field(default_factory=LabelsConfig)
    # Settings as loaded from the TOML file, restored by reset_settings()
    _default_settings: Optional[Settings] = field(default=None, repr=False)

    def __post_init__(self):
        if self._default_settings is None:
            self._default_settings = copy.deepcopy(self.settings)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'daybook' / 'daybook.toml'

    @classmethod
    def get_default_state_path(cls) -> Path:
        """Get the default state file path."""
        xdg_state = os.environ.get('XDG_STATE_HOME', os.path.expanduser('~/.local/state'))
        return Path(xdg_state) / 'daybook' / 'settings.json'

    @classmethod
    def default(cls) -> 'Config':
        """Configuration used when no file exists."""
        return cls(general=GeneralConfig(state_file=cls.get_default_state_path()))

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """Load configuration from TOML file."""
        if config_path is None:
            config_path = cls.get_default_config_path()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'rb') as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        # Parse General section
        general_data = data.get('General', {})
        timezone = general_data.get('timezone', GeneralConfig.timezone)
        if not is_valid_timezone(timezone):
            raise ConfigError(f"[General] unknown timezone: {timezone!r}")

        state_file_str = general_data.get('state_file', str(cls.get_default_state_path()))
        general = GeneralConfig(
            state_file=Path(os.path.expanduser(state_file_str)),
            timezone=timezone,
            seed_sample_events=_check_value(
                'General', 'seed_sample_events',
                general_data.get('seed_sample_events', False), False
            ),
        )

        settings = Settings.from_dict({
            "preferences": data.get('Preferences', {}),
            "notifications": data.get('Notifications', {}),
            "display": data.get('Display', {}),
        })

        labels = _section_from_dict(LabelsConfig, 'Labels', data.get('Labels', {}))

        _debug_print(f"Loaded config: timezone={general.timezone}, state_file={general.state_file}")
        return cls(general=general, settings=settings, labels=labels)

    # ==================== Settings State ====================

    def load_state(self) -> None:
        """Overlay settings saved at runtime onto the configured ones."""
        state_file = self.general.state_file
        if not state_file.exists():
            return
        try:
            with open(state_file, 'r', encoding='utf-8') as f:
                state = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read settings from {state_file}: {e}") from e
        self.settings = Settings.from_dict(state.get('settings', {}), base=self._default_settings)
        _debug_print(f"Loaded settings from {state_file}")

    def save_state(self) -> Path:
        """Write the current settings to the state file."""
        state_file = self.general.state_file
        state_file.parent.mkdir(parents=True, exist_ok=True)
        with open(state_file, 'w', encoding='utf-8') as f:
            json.dump({'settings': self.settings.to_dict()}, f, indent=2, ensure_ascii=False)
        _debug_print(f"Saved settings to {state_file}")
        return state_file

    def save_state_in_background(
        self,
        on_finished: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        from .task_worker import get_task_worker
        get_task_worker().submit(
            "save-settings", self.save_state,
            on_finished=on_finished, on_error=on_error,
        )

    def reset_settings(self) -> None:
        """Restore the settings from the configuration file."""
        self.settings = copy.deepcopy(self._default_settings)
