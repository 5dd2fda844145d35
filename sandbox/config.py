"""Parameter ranges, defaults, and the configuration store.

The store owns the current SimulationParams and hands out immutable
snapshots. It is the only place parameter values are validated: the
simulation core assumes every snapshot it reads is already in range.
"""

from __future__ import annotations

import logging
import math
from dataclasses import fields, replace
from collections.abc import Callable
from typing import NamedTuple

from simulation import SimulationParams

logger = logging.getLogger(__name__)


class ParamRange(NamedTuple):
    """Slider range for one parameter."""

    minimum: float
    maximum: float
    step: float
    unit: str = ""


PARAM_RANGES = {
    "m1": ParamRange(1.0, 30.0, 0.5, " kg"),
    "m2": ParamRange(1.0, 30.0, 0.5, " kg"),
    "l1": ParamRange(50.0, 250.0, 5.0, " px"),
    "l2": ParamRange(50.0, 250.0, 5.0, " px"),
    "g": ParamRange(0.1, 3.0, 0.1, " m/s²"),
    "dt": ParamRange(0.05, 0.5, 0.01, " s"),
    "speed": ParamRange(0.25, 4.0, 0.25, " x"),
    "accuracy": ParamRange(0.1, 3.0, 0.5, " x"),
}

PARAM_LABELS = {
    "m1": "Mass m₁",
    "m2": "Mass m₂",
    "l1": "Length l₁",
    "l2": "Length l₂",
    "g": "Gravity g",
    "dt": "Time step dt",
    "speed": "Sim speed",
    "accuracy": "Model accuracy",
}

DEFAULT_PARAMS = SimulationParams(
    m1=10.0, m2=10.0,
    l1=150.0, l2=150.0,
    g=1.0,
    dt=0.2,
    speed=1.0,
    accuracy=1.0,
)


class ConfigSnapshot(NamedTuple):
    """Atomic view of the configuration: params plus the reset epoch."""

    params: SimulationParams
    epoch: int


def clamp_params(params: SimulationParams) -> SimulationParams:
    """Clamp every field into its PARAM_RANGES interval.

    Non-finite values fall back to the DEFAULT_PARAMS value for that field.
    """
    changes = {}
    for f in fields(SimulationParams):
        value = getattr(params, f.name)
        rng = PARAM_RANGES[f.name]
        if not math.isfinite(value):
            clamped = getattr(DEFAULT_PARAMS, f.name)
        else:
            clamped = min(max(value, rng.minimum), rng.maximum)
        if clamped != value:
            changes[f.name] = clamped

    if not changes:
        return params

    logger.warning("Clamped out-of-range parameters: %s", changes)
    return replace(params, **changes)


class ConfigStore:
    """Owner of the live SimulationParams.

    Every update swaps in a whole new frozen params object, so a reader
    never sees a half-applied edit. With reset_on_change (the default),
    each edit also bumps the epoch, which the simulation loop treats as a
    reset request.
    """

    def __init__(self, params: SimulationParams = DEFAULT_PARAMS,
                 reset_on_change: bool = True):
        self._params = clamp_params(params)
        self._epoch = 0
        self.reset_on_change = reset_on_change
        self._listeners: list[Callable[[ConfigSnapshot], None]] = []

    @property
    def params(self) -> SimulationParams:
        return self._params

    @property
    def epoch(self) -> int:
        return self._epoch

    def snapshot(self) -> ConfigSnapshot:
        return ConfigSnapshot(self._params, self._epoch)

    def subscribe(self, listener: Callable[[ConfigSnapshot], None]) -> None:
        """Register a callable invoked with the new snapshot after changes."""
        self._listeners.append(listener)

    def update(self, **changes: float) -> SimulationParams:
        """Replace one or more parameters atomically.

        Raises:
            TypeError: If a keyword is not a SimulationParams field.
        """
        params = clamp_params(replace(self._params, **changes))
        if params == self._params:
            return params

        self._params = params
        if self.reset_on_change:
            self._epoch += 1
        logger.debug("Parameters updated (epoch %d): %s", self._epoch, changes)
        self._notify()
        return params

    def set_params(self, params: SimulationParams) -> SimulationParams:
        """Replace the whole parameter set at once."""
        values = {f.name: getattr(params, f.name) for f in fields(params)}
        return self.update(**values)

    def restore_defaults(self) -> SimulationParams:
        return self.set_params(DEFAULT_PARAMS)

    def request_reset(self) -> int:
        """Bump the epoch without touching the parameters."""
        self._epoch += 1
        self._notify()
        return self._epoch

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in self._listeners:
            listener(snap)
