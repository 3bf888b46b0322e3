"""codelaunch Config — settings loading and the shared error base."""
from .errors import CodelaunchError, CommandError, SettingsError
from .settings import LaunchSettings, load_settings

__all__ = ["CodelaunchError", "CommandError", "SettingsError", "LaunchSettings", "load_settings"]
