"""Administrator checks for writes to the font store, HKLM and the package share."""
from __future__ import annotations

import ctypes
import logging
import sys

logger = logging.getLogger(__name__)


def is_admin() -> bool:
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except AttributeError:
        return False


def relaunch_as_admin() -> bool:
    if not sys.platform.startswith("win"):
        return False
    executable = sys.executable
    if getattr(sys, "frozen", False):
        params = " ".join(f'"{arg}"' for arg in sys.argv[1:])
    else:
        params = " ".join(f'"{arg}"' for arg in sys.argv)
    result = ctypes.windll.shell32.ShellExecuteW(None, "runas", executable, params, None, 1)
    return result > 32


def ensure_admin() -> bool:
    """Return True when the current process may proceed.

    On Windows a non-elevated process asks for elevation in a new process and
    returns False so the caller can exit.
    """
    if not sys.platform.startswith("win"):
        return True
    if is_admin():
        return True
    logger.warning("Administrator privileges are required; requesting elevation")
    if not relaunch_as_admin():
        logger.error("Elevation was refused or failed")
    return False
