"""Run service calls off the UI thread and route log records into the window."""
from __future__ import annotations

import logging

from PySide6.QtCore import QObject, QRunnable, Signal, Slot


class WorkerSignals(QObject):
    finished = Signal(object)
    error = Signal(str)


class ServiceWorker(QRunnable):
    def __init__(self, fn, *args, **kwargs) -> None:
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = WorkerSignals()

    @Slot()
    def run(self) -> None:
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception as exc:  # pragma: no cover - surfaced via signal
            self.signals.error.emit(str(exc))
        else:
            self.signals.finished.emit(result)


class _LogSignals(QObject):
    record = Signal(str)


class LogPaneHandler(logging.Handler):
    """Forwards formatted records to a slot on the GUI thread."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.signals = _LogSignals()
        self.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s", "%H:%M:%S"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.signals.record.emit(self.format(record))
        except RuntimeError:  # pragma: no cover - window already destroyed
            pass
