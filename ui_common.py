"""Shared UI widgets: grid-stepped sliders and the parameter slider panel."""

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QWidget, QGridLayout, QSlider, QLabel

from sandbox.config import PARAM_LABELS, PARAM_RANGES


# ---------------------------------------------------------------------------
# Slider helpers
# ---------------------------------------------------------------------------

def make_slider(param_range, value):
    """Create an integer QSlider whose positions map onto a float grid.

    Position i corresponds to param_range.minimum + i * param_range.step.
    """
    slider = QSlider(Qt.Orientation.Horizontal)
    n_steps = round((param_range.maximum - param_range.minimum) / param_range.step)
    slider.setMinimum(0)
    slider.setMaximum(n_steps)
    slider.param_range = param_range
    set_slider_value(slider, value)
    return slider


def slider_value(slider):
    """Read the float value from a slider created by make_slider."""
    rng = slider.param_range
    return min(rng.minimum + slider.value() * rng.step, rng.maximum)


def set_slider_value(slider, value):
    rng = slider.param_range
    slider.setValue(round((value - rng.minimum) / rng.step))


# ---------------------------------------------------------------------------
# ParamSlidersWidget
# ---------------------------------------------------------------------------

class ParamSlidersWidget(QWidget):
    """One labelled slider per SimulationParams field.

    Emits no signals itself; on_change (if set) is called with the field
    name and new value whenever a slider moves.
    """

    def __init__(self, params, parent=None):
        super().__init__(parent)
        self.on_change = None
        self.sliders = {}
        self._building = True

        layout = QGridLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        for row, (name, rng) in enumerate(PARAM_RANGES.items()):
            slider = make_slider(rng, getattr(params, name))
            self.sliders[name] = slider
            self._add_row(layout, row, name, slider, rng.unit)

        self._building = False

    def _add_row(self, layout, row, name, slider, unit=""):
        label = QLabel(PARAM_LABELS[name])
        value_label = QLabel()
        value_label.setMinimumWidth(70)
        value_label.setAlignment(
            Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter
        )
        layout.addWidget(label, row, 0)
        layout.addWidget(slider, row, 1)
        layout.addWidget(value_label, row, 2)

        def _update(_val, vl=value_label, sl=slider, u=unit, n=name):
            value = slider_value(sl)
            vl.setText(f"{value:.2f}{u}")
            if not self._building and self.on_change is not None:
                self.on_change(n, value)

        slider.valueChanged.connect(_update)
        _update(slider.value())

    def set_params(self, params):
        """Set slider positions without reporting changes."""
        self._building = True
        try:
            for name, slider in self.sliders.items():
                set_slider_value(slider, getattr(params, name))
        finally:
            self._building = False
