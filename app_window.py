"""App window: hosts the SandboxView with a status bar."""

import logging

from PyQt6.QtWidgets import QMainWindow, QStatusBar

from sandbox.view import SandboxView

logger = logging.getLogger(__name__)


class AppWindow(QMainWindow):
    """Top-level window for the chaos sandbox."""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Chaos Sandbox")
        self.resize(1200, 800)

        self.sandbox_view = SandboxView()
        self.setCentralWidget(self.sandbox_view)

        # --- Status bar ---
        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)
        self._status_bar.addWidget(self.sandbox_view.time_label)
        self._status_bar.addWidget(self.sandbox_view.divergence_label)
        self._status_bar.addWidget(self.sandbox_view.divergence_gauge)
        self._status_bar.addWidget(self.sandbox_view.drift_label)

    def showEvent(self, event):
        super().showEvent(event)
        logger.debug("Window shown, requesting frames at %d FPS", SandboxView.FPS)
        self.sandbox_view.start()

    def closeEvent(self, event):
        self.sandbox_view.stop()
        super().closeEvent(event)
