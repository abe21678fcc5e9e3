from __future__ import annotations

"""Viewer settings: validation, clamping and persistence.

Settings are stored as the ``viewer_settings`` section of the configuration
(see :class:`ast_outline.config.ConfigManager`). Every value read from disk
or from a dialog goes through :meth:`ViewerSettings.from_mapping`, which
never raises: out-of-range numbers are clamped, unusable values fall back
to the defaults.
"""

from dataclasses import asdict, dataclass, replace
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from ast_outline.config import ConfigManager
from ast_outline.core.models import HARD_DEPTH_LIMIT, RenderLimits

__all__ = [
    "ViewerSettings",
    "SETTING_RANGES",
    "load_settings",
    "save_settings",
    "reset_settings",
]

logger = logging.getLogger(__name__)

SECTION = "viewer_settings"

# field -> (minimum, maximum)
SETTING_RANGES: Dict[str, Tuple[int, int]] = {
    "lazy_load_depth": (1, 20),
    "lazy_load_threshold": (100, 10000),
    "max_render_nodes": (500, 50000),
    "max_render_depth": (10, 200),
}

# Persisted key aliases
_CAMEL_CASE = {
    "lazyLoadEnabled": "lazy_load_enabled",
    "lazyLoadDepth": "lazy_load_depth",
    "lazyLoadThreshold": "lazy_load_threshold",
    "maxRenderNodes": "max_render_nodes",
    "maxRenderDepth": "max_render_depth",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return default


def _as_int(value: Any, default: int, bounds: Tuple[int, int]) -> int:
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = int(value) if not isinstance(value, float) else int(round(value))
    except (TypeError, ValueError, OverflowError):
        return default
    low, high = bounds
    return max(low, min(high, number))


@dataclass(frozen=True)
class ViewerSettings:
    """User-tunable render limits.

    Attributes
    ----------
    lazy_load_enabled
        Defer children of deep nodes on large trees.
    lazy_load_depth
        Depth at which lazy boundaries start.
    lazy_load_threshold
        Estimated node count that switches lazy mode on.
    max_render_nodes
        Node budget of one render pass.
    max_render_depth
        Depth ceiling applied while lazy loading is enabled.
    """

    lazy_load_enabled: bool = True
    lazy_load_depth: int = 3
    lazy_load_threshold: int = 1000
    max_render_nodes: int = 5000
    max_render_depth: int = 50

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ViewerSettings":
        defaults = cls()
        if not data:
            return defaults
        normalized: Dict[str, Any] = {}
        for key, value in data.items():
            normalized[_CAMEL_CASE.get(key, key)] = value
        values: Dict[str, Any] = {
            "lazy_load_enabled": _as_bool(normalized.get("lazy_load_enabled"), defaults.lazy_load_enabled)
        }
        for name, bounds in SETTING_RANGES.items():
            values[name] = _as_int(normalized.get(name), getattr(defaults, name), bounds)
        return cls(**values)

    def to_mapping(self) -> Dict[str, Any]:
        return asdict(self)

    def with_changes(self, **changes: Any) -> "ViewerSettings":
        """Copy with ``changes`` applied, then re-validated."""
        return ViewerSettings.from_mapping(asdict(replace(self, **changes)))

    def to_limits(self) -> RenderLimits:
        return RenderLimits(
            max_nodes=self.max_render_nodes,
            max_hard_depth=HARD_DEPTH_LIMIT,
            max_configurable_depth=self.max_render_depth,
            lazy_enabled=self.lazy_load_enabled,
            lazy_threshold_nodes=self.lazy_load_threshold,
            lazy_pre_render_depth=self.lazy_load_depth,
        )


def load_settings(config: Optional[ConfigManager] = None) -> ViewerSettings:
    config = config or ConfigManager()
    settings = ViewerSettings.from_mapping(config.get_viewer_settings())
    logger.debug("Viewer settings loaded: %s", settings)
    return settings


def save_settings(settings: ViewerSettings, config: Optional[ConfigManager] = None) -> bool:
    """Persist ``settings``; return False (and log) when the file cannot be written."""
    config = config or ConfigManager()
    try:
        config.save_section(SECTION, settings.to_mapping())
    except OSError as exc:
        logger.error("Could not save viewer settings: %s", exc)
        return False
    return True


def reset_settings(config: Optional[ConfigManager] = None) -> ViewerSettings:
    """Restore and persist the default settings."""
    defaults = ViewerSettings()
    save_settings(defaults, config)
    return defaults
