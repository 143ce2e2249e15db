"""Path utilities for locating application directories."""
from __future__ import annotations

import os
import sys
from pathlib import Path


def get_application_directory() -> Path:
    """
    Get the directory where the application is located.

    When running as a compiled .exe (PyInstaller), this returns the directory
    containing the .exe file.

    When running as a Python script, this returns the project root directory.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    # Go up from staging_config/paths.py to project root
    return Path(__file__).parent.parent


def get_font_source_directory() -> Path:
    """Folder next to the application that holds fonts waiting to be installed."""
    return get_application_directory() / "fonts"


def get_logs_directory() -> Path:
    return get_application_directory() / "logs"


def get_system_fonts_directory() -> Path:
    windir = os.environ.get("WINDIR") or os.environ.get("SystemRoot") or r"C:\Windows"
    return Path(windir) / "Fonts"
