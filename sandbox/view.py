"""Sandbox view: wires configuration, simulation loop, canvas, and controls.

This is a QWidget suitable for embedding in a QMainWindow. Frames are
driven by single-shot timers: the loop asks for the next frame only while
running, so pausing simply lets the pending timer lapse.
"""

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtWidgets import (
    QWidget, QHBoxLayout, QSplitter, QLabel, QProgressBar,
)

from sandbox.canvas import SandboxCanvas
from sandbox.config import ConfigStore
from sandbox.controls import SandboxControls
from sandbox.loop import EnergyDrift, SimulationLoop
from sandbox.trajectories import DIVERGENCE_GAUGE_STEPS, PERTURBATION


class SandboxView(QWidget):
    """Complete sandbox mode: canvas + controls + simulation wiring."""

    FPS = 60

    def __init__(self, config=None, parent=None):
        super().__init__(parent)

        self.config = config if config is not None else ConfigStore()

        self.canvas = SandboxCanvas()
        self.controls = SandboxControls(self.config)
        self.controls.perturbation_label.setText(
            f"Initial perturbation: {PERTURBATION:g} rad"
        )

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self.canvas)
        splitter.addWidget(self.controls)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(splitter)

        # Status bar labels (AppWindow places these in a real status bar)
        self.time_label = QLabel()
        self.divergence_label = QLabel()
        self.drift_label = QLabel()
        self.divergence_gauge = QProgressBar()
        self.divergence_gauge.setRange(0, DIVERGENCE_GAUGE_STEPS)
        self.divergence_gauge.setTextVisible(False)
        self.divergence_gauge.setMaximumWidth(160)

        self.energy_drift = EnergyDrift()

        self.loop = SimulationLoop(
            self.config,
            render=self._on_render,
            request_frame=self._request_frame,
            clear_surface=self.canvas.clear,
        )
        self.config.subscribe(self.loop.on_config_changed)

        # Wire signals
        self.controls.play_btn.clicked.connect(self._toggle_play)
        self.controls.reset_btn.clicked.connect(self.loop.reset)
        self.controls.defaults_btn.clicked.connect(self.controls.restore_defaults)
        self.controls.velocity_checkbox.toggled.connect(self._on_velocity_toggled)

        self._on_render(self.loop.snapshot())

    # -- Public interface --

    def start(self):
        self.loop.start()

    def stop(self):
        if self.loop.is_running:
            self._toggle_play()

    # -- Scheduling --

    def _request_frame(self, callback):
        QTimer.singleShot(int(1000 / self.FPS), callback)

    # -- Rendering --

    def _on_render(self, snapshot):
        self.canvas.set_snapshot(snapshot)

        self.time_label.setText(f"  t = {snapshot.time:.2f} s  ")
        if not snapshot.valid:
            self.divergence_label.setText("  Δ = n/a (reset required)  ")
            self.divergence_gauge.setValue(0)
            self.drift_label.setText("")
            return

        monitor = self.loop.core.divergence_monitor
        style = f"color: {monitor.gauge_color};"
        self.divergence_label.setStyleSheet(style)
        self.divergence_label.setText(f"  Δ {snapshot.divergence:.2f}  ")
        self.divergence_gauge.setStyleSheet(
            f"QProgressBar::chunk {{ background-color: {monitor.gauge_color}; }}"
        )
        self.divergence_gauge.setValue(monitor.gauge_steps)

        drift = self.energy_drift.update(snapshot)
        self.drift_label.setText(f"  ΔE = {drift:+.6f}  ")

    # -- Playback --

    def _toggle_play(self):
        self.loop.toggle_run_pause()
        self.controls.set_running(self.loop.is_running)

    def _on_velocity_toggled(self, checked):
        self.canvas.show_velocity = checked
        self.canvas.update()
