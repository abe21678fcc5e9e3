from __future__ import annotations

"""Central logging configuration for AST Outline.

Import and call :func:`setup_logging` at application start-up.
"""

import logging
import logging.config
import os
from typing import List

from ast_outline.config import ConfigManager

__all__ = ["setup_logging", "LOG_DIR_ENV", "DEBUG_MODULES_ENV"]

LOG_DIR_ENV = "AST_OUTLINE_LOG_DIR"
DEBUG_MODULES_ENV = "AST_OUTLINE_DEBUG_MODULES"
DEBUG_SYNC_ENV = "AST_OUTLINE_DEBUG_SYNC"

_SYNC_LOGGERS = (
    "ast_outline.core.engine.synchronizer",
    "ast_outline.core.engine.resolvers",
)


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get(LOG_DIR_ENV, "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    try:
        logging_config = ConfigManager().get_logging_config()

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            handlers = logging_config.get("handlers") or {}
            if "file" in handlers:
                handlers["file"]["filename"] = log_file
            logging.config.dictConfig(logging_config)
            logging.getLogger("ast_outline").info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except Exception as exc:
        # Broken config must not prevent start-up
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
    }
    logging.config.dictConfig(minimal_config)
    logging.error("===== Logging initialised with minimal fallback (config error) =====")


def _debug_targets() -> List[str]:
    targets: List[str] = []
    if os.environ.get(DEBUG_SYNC_ENV, '').strip().lower() in {'1', 'true', 'yes', 'on'}:
        targets.extend(_SYNC_LOGGERS)
    extra_modules = os.environ.get(DEBUG_MODULES_ENV, '').strip()
    if extra_modules:
        targets.extend(m.strip() for m in extra_modules.split(',') if m.strip())
    return targets


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - AST_OUTLINE_DEBUG_SYNC=true -> DEBUG for cursor sync and resolvers
    - AST_OUTLINE_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    for name in _debug_targets():
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(h.level == logging.NOTSET or h.level <= logging.DEBUG for h in logger.handlers)
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
