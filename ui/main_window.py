"""Main window for the endpoint staging tools."""
from __future__ import annotations

import logging

from PySide6.QtCore import Qt, QThreadPool
from PySide6.QtWidgets import (
    QMainWindow,
    QSplitter,
    QTabWidget,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from staging_config.user_settings import SettingsStore
from ui.driver_packages_tab import DriverPackagesTab
from ui.fonts_tab import FontsTab
from ui.workers import LogPaneHandler


class MainWindow(QMainWindow):
    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("Endpoint Staging Tools")
        self.resize(1000, 700)
        self._thread_pool = QThreadPool.globalInstance()
        self._settings = SettingsStore().load()
        self._log_view = QTextEdit()
        self._log_view.setReadOnly(True)
        self._log_view.setMinimumHeight(120)

        self._log_handler = LogPaneHandler()
        self._log_handler.signals.record.connect(self.log_message)
        logging.getLogger().addHandler(self._log_handler)

        self._tabs = QTabWidget()
        self._tabs.addTab(
            FontsTab(self.log_message, self._thread_pool, settings=self._settings),
            "Fonts",
        )
        self._tabs.addTab(
            DriverPackagesTab(self.log_message, self._thread_pool, settings=self._settings),
            "Driver Packages",
        )

        splitter = QSplitter(Qt.Vertical)
        splitter.addWidget(self._tabs)
        splitter.addWidget(self._log_view)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 2)

        container = QWidget()
        layout = QVBoxLayout(container)
        layout.addWidget(splitter)
        self.setCentralWidget(container)

    def log_message(self, message: str) -> None:
        self._log_view.append(message)

    def closeEvent(self, event) -> None:
        logging.getLogger().removeHandler(self._log_handler)
        super().closeEvent(event)
