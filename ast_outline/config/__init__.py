"""Configuration files (YAML) and the manager that reads them.

``ConfigManager`` reads the default files from this folder and merges them
with user overrides.
"""

from .manager import CONFIG_DIR_ENV, ConfigManager

__all__ = [
    "ConfigManager",
    "CONFIG_DIR_ENV",
]
