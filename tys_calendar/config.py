"""
Configuration parser for the TrackYouStudy calendar engine.

Handles TOML file parsing. Every section is optional; missing keys keep
their defaults.
"""

import tomllib
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from .models import DEFAULT_COLOR_MAP, EventType, UserPreferences, ViewMode, WorkingHours
from .storage import get_default_state_path


@dataclass
class LayoutConfig:
    """Configuration for the hour grid."""
    hour_height: int = 60  # Height of an hour slot in day/week view in pixels


@dataclass
class PreferencesConfig:
    """Preferences used when no snapshot exists yet."""
    default_view: str = "week"
    first_day_of_week: int = 0  # 0 = Sunday, 1 = Monday, 6 = Saturday
    working_hours_start: int = 9
    working_hours_end: int = 17
    reminders_enabled: bool = True


@dataclass
class ColorsConfig:
    """Default colour per event type."""
    task: str = DEFAULT_COLOR_MAP[EventType.TASK]
    study_session: str = DEFAULT_COLOR_MAP[EventType.STUDY_SESSION]
    pomodoro: str = DEFAULT_COLOR_MAP[EventType.POMODORO]
    exam: str = DEFAULT_COLOR_MAP[EventType.EXAM]

    def as_color_map(self) -> dict[EventType, str]:
        return {
            EventType.TASK: self.task,
            EventType.STUDY_SESSION: self.study_session,
            EventType.POMODORO: self.pomodoro,
            EventType.EXAM: self.exam,
        }


@dataclass
class SyncConfig:
    """Configuration for the reconcilers."""
    mirror_session_changes: bool = False  # Refresh/delete pomodoro events like task events
    tasks_file: Optional[Path] = None     # JSON export of the task store
    sessions_file: Optional[Path] = None  # JSON export of the pomodoro store


@dataclass
class ExportConfig:
    prodid: str = "-//TrackYouStudy//Calendar//EN"
    filename: str = "trackyoustudy-calendar.ics"


def _optional_path(value: Optional[str]) -> Optional[Path]:
    return Path(os.path.expanduser(value)) if value else None


@dataclass
class Config:
    """Main configuration container."""

    state_file: Path = field(default_factory=get_default_state_path)
    debug: bool = False
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    preferences: PreferencesConfig = field(default_factory=PreferencesConfig)
    colors: ColorsConfig = field(default_factory=ColorsConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'trackyoustudy' / 'calendar.toml'

    def default_preferences(self) -> UserPreferences:
        """UserPreferences for a store that has no snapshot yet."""
        prefs = self.preferences
        return UserPreferences(
            default_view=ViewMode(prefs.default_view),
            first_day_of_week=prefs.first_day_of_week,
            working_hours=WorkingHours(prefs.working_hours_start, prefs.working_hours_end),
            reminders_enabled=prefs.reminders_enabled,
            color_map=self.colors.as_color_map(),
        )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """Load configuration from TOML file."""
        if config_path is None:
            config_path = cls.get_default_config_path()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)

        return cls.from_dict(data)

    @classmethod
    def load_or_default(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Like load(), but an absent default config file yields defaults.

        An explicitly given path must exist.
        """
        if config_path is None and not cls.get_default_config_path().exists():
            return cls()
        return cls.load(config_path)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        # Parse General section
        general = data.get('General', {})
        state_file_str = general.get('state_file', str(get_default_state_path()))
        state_file = Path(os.path.expanduser(state_file_str))

        # Parse Layout section
        layout_data = data.get('Layout', {})
        layout = LayoutConfig(
            hour_height=layout_data.get('hour_height', LayoutConfig.hour_height),
        )

        # Parse Preferences section
        prefs_data = data.get('Preferences', {})
        preferences = PreferencesConfig(
            default_view=prefs_data.get('default_view', PreferencesConfig.default_view),
            first_day_of_week=prefs_data.get('first_day_of_week', PreferencesConfig.first_day_of_week),
            working_hours_start=prefs_data.get('working_hours_start', PreferencesConfig.working_hours_start),
            working_hours_end=prefs_data.get('working_hours_end', PreferencesConfig.working_hours_end),
            reminders_enabled=prefs_data.get('reminders_enabled', PreferencesConfig.reminders_enabled),
        )
        # Fail early on values UserPreferences would reject later
        ViewMode(preferences.default_view)
        if preferences.first_day_of_week not in (0, 1, 6):
            raise ValueError("[Preferences] first_day_of_week must be 0, 1 or 6")

        # Parse Colors section (keys use the event type names)
        colors_data = data.get('Colors', {})
        colors = ColorsConfig(
            task=colors_data.get('task', ColorsConfig.task),
            study_session=colors_data.get('studySession', ColorsConfig.study_session),
            pomodoro=colors_data.get('pomodoro', ColorsConfig.pomodoro),
            exam=colors_data.get('exam', ColorsConfig.exam),
        )

        # Parse Sync section
        sync_data = data.get('Sync', {})
        sync = SyncConfig(
            mirror_session_changes=sync_data.get('mirror_session_changes', SyncConfig.mirror_session_changes),
            tasks_file=_optional_path(sync_data.get('tasks_file')),
            sessions_file=_optional_path(sync_data.get('sessions_file')),
        )

        # Parse Export section
        export_data = data.get('Export', {})
        export = ExportConfig(
            prodid=export_data.get('prodid', ExportConfig.prodid),
            filename=export_data.get('filename', ExportConfig.filename),
        )

        return cls(
            state_file=state_file,
            debug=general.get('debug', False),
            layout=layout,
            preferences=preferences,
            colors=colors,
            sync=sync,
            export=export,
        )
