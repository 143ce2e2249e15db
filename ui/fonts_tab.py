"""Fonts tab: preview the source folder and install its fonts."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

from PySide6.QtCore import QThreadPool
from PySide6.QtWidgets import (
    QAbstractItemView,
    QCheckBox,
    QFileDialog,
    QHBoxLayout,
    QHeaderView,
    QLineEdit,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from services.fonts import FontEntry, FontInstallService, FontOperationResult
from services.registry import RegistryAccessor
from staging_config.constants import IMMUTABLE_CONFIG
from staging_config.paths import get_font_source_directory, get_system_fonts_directory
from staging_config.user_settings import UserSettings
from ui.workers import ServiceWorker

LogCallback = Callable[[str], None]


class FontsTab(QWidget):
    def __init__(
        self,
        log_callback: LogCallback,
        thread_pool: QThreadPool,
        *,
        settings: UserSettings | None = None,
        registry: RegistryAccessor | None = None,
    ) -> None:
        super().__init__()
        self._log = log_callback
        self._thread_pool = thread_pool
        self._settings = settings or UserSettings()
        self._registry = registry
        self._entries: list[FontEntry] = []
        self._workers: set[ServiceWorker] = set()
        self._busy = False
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)

        source_row = QHBoxLayout()
        configured = self._settings.font_source_dir.strip()
        self._source_edit = QLineEdit(configured or str(get_font_source_directory()))
        self._btn_browse = QPushButton("Browse...")
        source_row.addWidget(self._source_edit)
        source_row.addWidget(self._btn_browse)
        layout.addLayout(source_row)

        button_row = QHBoxLayout()
        self._btn_scan = QPushButton("Scan Folder")
        self._btn_install = QPushButton("Install Fonts")
        self._chk_legacy = QCheckBox("Register every font as .ttf")
        self._chk_legacy.setChecked(self._settings.legacy_registry_suffix)
        for btn in (self._btn_scan, self._btn_install):
            btn.setMinimumWidth(150)
        button_row.addWidget(self._btn_scan)
        button_row.addWidget(self._btn_install)
        button_row.addStretch()
        button_row.addWidget(self._chk_legacy)
        layout.addLayout(button_row)

        self._table = QTableWidget(0, 4, self)
        self._table.setHorizontalHeaderLabels(["File", "Type", "Registry Name", "Status"])
        self._table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self._table.verticalHeader().setVisible(False)
        header = self._table.horizontalHeader()
        header.setStretchLastSection(True)
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(2, QHeaderView.ResizeMode.Stretch)
        layout.addWidget(self._table)

        self._btn_browse.clicked.connect(self._choose_source)
        self._btn_scan.clicked.connect(self._start_scan)
        self._btn_install.clicked.connect(self._start_install)

    def _service(self) -> FontInstallService:
        return FontInstallService(
            Path(self._source_edit.text().strip()),
            get_system_fonts_directory(),
            config=IMMUTABLE_CONFIG.fonts,
            registry=self._registry,
            legacy_registry_suffix=self._chk_legacy.isChecked(),
        )

    def _choose_source(self) -> None:
        folder = QFileDialog.getExistingDirectory(self, "Font Folder", self._source_edit.text())
        if folder:
            self._source_edit.setText(folder)

    def _run(self, fn, on_finished) -> None:
        if self._busy:
            return
        self._busy = True
        self._set_buttons_enabled(False)
        worker = ServiceWorker(fn)
        worker.signals.finished.connect(on_finished)
        worker.signals.error.connect(self._handle_error)
        self._workers.add(worker)
        worker.signals.finished.connect(lambda *_: self._workers.discard(worker))
        worker.signals.error.connect(lambda *_: self._workers.discard(worker))
        self._thread_pool.start(worker)

    def _start_scan(self) -> None:
        self._log(f"Scanning {self._source_edit.text()} for fonts...")
        self._run(self._service().scan, self._handle_scan_results)

    def _start_install(self) -> None:
        self._run(self._service().install_all, self._handle_install_results)

    def _handle_scan_results(self, entries: Iterable[FontEntry]) -> None:
        self._entries = list(entries)
        self._table.setRowCount(len(self._entries))
        for row, entry in enumerate(self._entries):
            self._set_row(row, entry, "")
        self._log(f"Font scan complete. Found {len(self._entries)} file(s).")
        self._done()

    def _handle_install_results(self, results: Iterable[FontOperationResult]) -> None:
        results = list(results)
        self._table.setRowCount(len(results))
        for row, result in enumerate(results):
            self._set_row(row, result.font, result.outcome)
        installed = sum(1 for r in results if r.success)
        self._log(f"Font installation complete. {installed} of {len(results)} installed.")
        self._done()

    def _set_row(self, row: int, entry: FontEntry, status: str) -> None:
        self._table.setItem(row, 0, QTableWidgetItem(entry.source.name))
        self._table.setItem(row, 1, QTableWidgetItem(entry.type_label or "Unknown"))
        self._table.setItem(row, 2, QTableWidgetItem(entry.registry_name))
        self._table.setItem(row, 3, QTableWidgetItem(status))

    def _set_buttons_enabled(self, enabled: bool) -> None:
        for button in (self._btn_browse, self._btn_scan, self._btn_install):
            button.setEnabled(enabled)

    def _done(self) -> None:
        self._busy = False
        self._set_buttons_enabled(True)

    def _handle_error(self, message: str) -> None:
        self._log(f"[ERROR] {message}")
        self._done()
