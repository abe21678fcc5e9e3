# -*- coding: utf-8 -*-
"""Application version detection.

Provides a single public function, ``get_app_version()``, used by the window
title and the About box.
"""

from __future__ import annotations

from importlib import metadata
from pathlib import Path
from typing import Optional

_CACHED_VERSION: Optional[str] = None

DISTRIBUTION_NAME = "ast-outline"


def get_app_version() -> str:
    """Return the application version string (e.g., ``v1.2.3``).

    Frozen builds: read version.txt written next to the package.
    Installed: the distribution metadata.
    Development fallback: ``vdev``.
    """
    global _CACHED_VERSION
    if _CACHED_VERSION:
        return _CACHED_VERSION

    version_file = Path(__file__).resolve().parent.parent / "version.txt"
    text = ""
    if version_file.exists():
        text = version_file.read_text(encoding="ascii", errors="ignore").strip()
    if not text:
        try:
            text = metadata.version(DISTRIBUTION_NAME)
        except metadata.PackageNotFoundError:
            text = "dev"
    _CACHED_VERSION = text if text.startswith("v") else f"v{text}"
    return _CACHED_VERSION
