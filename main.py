"""Application entrypoint for the endpoint staging tools PySide6 GUI."""
from __future__ import annotations

import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from services.privilege import ensure_admin
from staging_config.logging_utils import configure_logging
from staging_config.paths import get_logs_directory
from staging_config.user_settings import SettingsStore
from ui.main_window import MainWindow


def main() -> int:
    if not ensure_admin():
        return 0
    settings = SettingsStore().load()
    log_dir = Path(settings.log_dir) if settings.log_dir.strip() else get_logs_directory()
    configure_logging(log_dir / "EndpointStaging.log", also_console=False)
    app = QApplication(sys.argv)
    window = MainWindow()
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
