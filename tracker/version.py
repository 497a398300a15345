"""Version reported by the footer and ``flask version``."""

from __future__ import annotations

import os
from importlib import metadata

DEV_VERSION = "0.0.0-dev"


def get_version() -> str:
    """Return ``TRACKER_VERSION`` if set, else the installed distribution's."""
    override = os.getenv("TRACKER_VERSION", "").strip()
    if override:
        return override
    try:
        return metadata.version("tracker")
    except metadata.PackageNotFoundError:
        return DEV_VERSION


__version__ = get_version()
