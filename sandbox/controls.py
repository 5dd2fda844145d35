"""Sandbox control panel: parameter sliders plus playback and reset buttons."""

from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGroupBox, QLabel, QPushButton,
    QCheckBox,
)

from ui_common import ParamSlidersWidget


class SandboxControls(QWidget):
    """Feeds slider edits into a ConfigStore and exposes the playback buttons."""

    def __init__(self, config, parent=None):
        super().__init__(parent)
        self.config = config
        self._init_ui()

    def _init_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(8, 8, 8, 8)

        # --- System Parameters ---
        sys_group = QGroupBox("System Parameters")
        sys_layout = QVBoxLayout()
        sys_group.setLayout(sys_layout)

        hint = QLabel("Adjust masses, lengths and gravity in real time.")
        hint.setStyleSheet("color: #888;")
        hint.setWordWrap(True)
        sys_layout.addWidget(hint)

        self.param_sliders = ParamSlidersWidget(self.config.params)
        self.param_sliders.on_change = self._on_param_changed
        sys_layout.addWidget(self.param_sliders)

        main_layout.addWidget(sys_group)

        # --- Playback ---
        pb_group = QGroupBox("Playback")
        pb_layout = QHBoxLayout()
        pb_group.setLayout(pb_layout)

        self.play_btn = QPushButton("Freeze state")
        self.reset_btn = QPushButton("Reset initial conditions")
        self.defaults_btn = QPushButton("Restore defaults")
        self.velocity_checkbox = QCheckBox("Velocity vectors")
        self.velocity_checkbox.setChecked(True)

        pb_layout.addWidget(self.play_btn)
        pb_layout.addWidget(self.reset_btn)
        pb_layout.addWidget(self.defaults_btn)
        pb_layout.addWidget(self.velocity_checkbox)

        main_layout.addWidget(pb_group)

        self.perturbation_label = QLabel()
        self.perturbation_label.setStyleSheet("color: #aaa;")
        main_layout.addWidget(self.perturbation_label)
        main_layout.addStretch()

    def set_running(self, running):
        self.play_btn.setText("Freeze state" if running else "Resume sim")

    def restore_defaults(self):
        params = self.config.restore_defaults()
        self.param_sliders.set_params(params)

    def _on_param_changed(self, name, value):
        self.config.update(**{name: value})
