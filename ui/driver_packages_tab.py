"""Driver Packages tab: stage a model's driver bundle into Configuration Manager."""
from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QThreadPool
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from services.configmgr import ConfigMgrClient
from services.driver_packages import DriverPackageStager, StagingResult
from staging_config.constants import IMMUTABLE_CONFIG
from staging_config.models import DriverModel
from staging_config.user_settings import UserSettings
from ui.workers import ServiceWorker

LogCallback = Callable[[str], None]


class DriverPackagesTab(QWidget):
    def __init__(
        self,
        log_callback: LogCallback,
        thread_pool: QThreadPool,
        *,
        settings: UserSettings | None = None,
    ) -> None:
        super().__init__()
        self._log = log_callback
        self._thread_pool = thread_pool
        self._settings = settings or UserSettings()
        self._config = self._settings.apply_to(IMMUTABLE_CONFIG.drivers)
        self._workers: set[ServiceWorker] = set()
        self._busy = False
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        form = QFormLayout()
        self._model_combo = QComboBox()
        for model in DriverModel:
            self._model_combo.addItem(model.value)
        self._version_edit = QLineEdit()
        self._version_edit.setPlaceholderText("e.g. 1909_2020-03")
        self._preview = QLabel()
        self._chk_rollback = QCheckBox("Remove package and category if the import fails")
        self._chk_rollback.setChecked(self._settings.rollback_on_import_failure)
        form.addRow("Model", self._model_combo)
        form.addRow("Version", self._version_edit)
        form.addRow("Package", self._preview)
        form.addRow("", self._chk_rollback)
        layout.addLayout(form)

        button_row = QHBoxLayout()
        self._btn_stage = QPushButton("Create Driver Package")
        self._btn_stage.setMinimumWidth(180)
        button_row.addWidget(self._btn_stage)
        button_row.addStretch()
        layout.addLayout(button_row)
        layout.addStretch()

        self._model_combo.currentIndexChanged.connect(self._update_preview)
        self._version_edit.textChanged.connect(self._update_preview)
        self._btn_stage.clicked.connect(self._start_staging)

    def _stager(self) -> DriverPackageStager:
        client = ConfigMgrClient(self._config.site_code, self._config.site_server)
        return DriverPackageStager(
            client,
            config=self._config,
            rollback_on_import_failure=self._chk_rollback.isChecked(),
        )

    def _update_preview(self) -> None:
        model = DriverModel.parse(self._model_combo.currentText())
        version = self._version_edit.text()
        try:
            plan = self._stager().plan(model, version)
        except ValueError:
            self._preview.setText("")
            return
        self._preview.setText(f"{plan.package_name}  ({plan.version_package_dir})")

    def _start_staging(self) -> None:
        if self._busy:
            QMessageBox.information(self, "In Progress", "Wait for the current operation to finish.")
            return
        version = self._version_edit.text().strip()
        if not version:
            QMessageBox.information(self, "Missing Version", "Enter the driver bundle version.")
            return
        model = DriverModel.parse(self._model_combo.currentText())
        self._busy = True
        self._btn_stage.setEnabled(False)
        self._log(f"Staging drivers for {model} ({version})...")
        worker = ServiceWorker(self._stager().stage, model, version)
        worker.signals.finished.connect(self._handle_result)
        worker.signals.error.connect(self._handle_error)
        self._workers.add(worker)
        worker.signals.finished.connect(lambda *_: self._workers.discard(worker))
        worker.signals.error.connect(lambda *_: self._workers.discard(worker))
        self._thread_pool.start(worker)

    def _handle_result(self, result: StagingResult) -> None:
        status = "OK" if result.distributed else "WARN"
        self._log(f"[OK] Package '{result.plan.package_name}' created with {result.driver_files} driver file(s)")
        self._log(f"[{status}] {result.distribution_message}")
        self._busy = False
        self._btn_stage.setEnabled(True)

    def _handle_error(self, message: str) -> None:
        self._log(f"[HALTED] {message}")
        self._busy = False
        self._btn_stage.setEnabled(True)
