from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    log_path: Path | str,
    level: int = logging.INFO,
    also_console: bool = True,
) -> Path:
    """Append timestamped log lines to ``log_path``.

    Safe to call more than once; only the first call installs handlers.
    If the requested file cannot be opened, a log file of the same name in the
    current working directory is used instead.

    Returns the path actually being written.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    if getattr(logger, "_staging_configured", False):
        return getattr(logger, "_staging_log_path")

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    requested = Path(log_path)
    chosen = requested
    file_handler: Optional[logging.Handler] = None
    try:
        requested.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(requested, mode="a", encoding="utf-8")
    except OSError:
        chosen = Path.cwd() / requested.name
        file_handler = logging.FileHandler(chosen, mode="a", encoding="utf-8")
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(console)

    setattr(logger, "_staging_configured", True)
    setattr(logger, "_staging_log_path", chosen)

    logging.getLogger(__name__).debug("Logging initialized (requested=%s, actual=%s)", requested, chosen)
    return chosen
