from .settings_dialog import SettingsDialog  # noqa: F401

__all__ = ["SettingsDialog"]
