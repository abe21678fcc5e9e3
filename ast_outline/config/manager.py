from __future__ import annotations

"""Configuration loading and access helpers.

Loads the YAML files packaged with *ast_outline* and merges them with user
overrides:

On Windows: ``%LOCALAPPDATA%\\AstOutline\\config\\*.yml``
On Unix: ``~/.ast_outline/*.yml``

``AST_OUTLINE_CONFIG_DIR`` replaces the user directory (tests, portable
installs).
"""

import copy
import importlib.resources as pkg_resources
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager", "CONFIG_DIR_ENV"]

CONFIG_DIR_ENV = "AST_OUTLINE_CONFIG_DIR"


def _get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    override = os.environ.get(CONFIG_DIR_ENV, "").strip()
    if override:
        return Path(override)
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "AstOutline" / "config"
        return Path.home() / "AppData" / "Local" / "AstOutline" / "config"
    return Path.home() / ".ast_outline"


def _read_packaged(filename: str) -> str:
    return pkg_resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")


def _ensure_user_configs_exist(user_config_dir: Path, default_filenames: Dict[str, str]) -> None:
    """Copy default config files to user directory if they don't exist."""
    try:
        user_config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Could not create user config directory %s: %s", user_config_dir, e)
        return

    for key, filename in default_filenames.items():
        user_config_path = user_config_dir / filename
        if user_config_path.exists():
            continue
        try:
            user_config_path.write_text(_read_packaged(filename), encoding='utf-8')
            logger.info("Created user config: %s", user_config_path)
        except (FileNotFoundError, OSError) as e:
            logger.warning("Could not copy default config %s: %s", filename, e)


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):  # type: ignore[no-self-use]
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "viewer_settings": "viewer_settings.yml",
        "logging": "logging.yml",
    }

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._user_config_dir = _get_user_config_dir()
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    @property
    def user_config_dir(self) -> Path:
        return self._user_config_dir

    def get_viewer_settings(self) -> Dict[str, Any]:
        return dict(self._data.get("viewer_settings", {}))

    def get_logging_config(self) -> Dict[str, Any]:
        # setup_logging patches handler filenames in place
        return copy.deepcopy(self._data.get("logging", {}))

    def get_packaged_defaults(self, key: str) -> Dict[str, Any]:
        """Packaged values for ``key``, ignoring user overrides."""
        filename = self._DEFAULT_FILENAMES[key]
        return yaml.safe_load(_read_packaged(filename)) or {}

    def save_section(self, key: str, data: Dict[str, Any]) -> Path:
        """Persist ``data`` as the user override file for ``key``.

        Raises ``OSError`` when the file cannot be written.
        """
        filename = self._DEFAULT_FILENAMES[key]
        self._user_config_dir.mkdir(parents=True, exist_ok=True)
        path = self._user_config_dir / filename
        path.write_text(yaml.safe_dump(dict(data), sort_keys=False), encoding="utf-8")
        self._data[key] = dict(data)
        logger.info("Saved %s to %s", key, path)
        return path

    def reload(self) -> None:
        self._data = {}
        self._user_config_dir = _get_user_config_dir()
        self._ensure_loaded()

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the process-wide instance (next call loads afresh)."""
        cls._instance = None

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        startup_summary = []
        _ensure_user_configs_exist(self._user_config_dir, self._DEFAULT_FILENAMES)

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = {}
            status = "missing"

            # 1. load packaged default
            try:
                packaged_data = yaml.safe_load(_read_packaged(filename)) or {}
                merged_cfg.update(packaged_data)
                status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
            except yaml.YAMLError as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                status = "invalid"

            # 2. load user overrides
            user_data = self._load_user_file(self._user_config_dir / filename)
            if user_data:
                merged_cfg.update(user_data)
                if status == "loaded":
                    status = "loaded+overrides"

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))

    @staticmethod
    def _load_user_file(path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("Could not parse user config %s: %s", path, exc)
            return None
        if not isinstance(data, dict):
            logger.error("Ignoring user config %s: top level is not a mapping", path)
            return None
        return data
