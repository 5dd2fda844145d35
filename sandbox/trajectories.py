"""Reference/perturbed trajectory pair, divergence metric, and trace buffers."""

from __future__ import annotations

import math
from collections import deque

import numpy as np

from simulation import PendulumState, rk4_step

# Offset added to the perturbed trajectory's initial theta1 (radians)
PERTURBATION = 1e-3

# Number of distal-bob positions kept per trajectory for trail drawing
TRACE_LENGTH = 200

INITIAL_STATE = PendulumState(math.pi / 2, math.pi / 2, 0.0, 0.0)

# Divergence readout: gauge saturates at GAUGE_SCALE, CRITICAL turns it red
DIVERGENCE_GAUGE_SCALE = 500.0
DIVERGENCE_CRITICAL = 100.0
DIVERGENCE_GAUGE_STEPS = 1000

GAUGE_OK_COLOR = "#34d399"
GAUGE_CRITICAL_COLOR = "#ef4444"


def substep_count(accuracy):
    """Number of integration substeps per tick: round-half-up, at least 1."""
    return max(1, math.floor(accuracy + 0.5))


class TrajectorySet:
    """Two pendulums stepped in lockstep from nearly identical starts.

    Both states always advance with the same step size, substep count and
    params; only their initial theta1 differs, by PERTURBATION.
    """

    def __init__(self):
        self._reference = INITIAL_STATE
        self._perturbed = INITIAL_STATE
        self.reset()

    @property
    def reference(self) -> PendulumState:
        return self._reference

    @property
    def perturbed(self) -> PendulumState:
        return self._perturbed

    def states(self) -> tuple[PendulumState, PendulumState]:
        return self._reference, self._perturbed

    def reset(self) -> None:
        """Reinitialize both pendulums at rest, horizontal, theta1 offset."""
        self._reference = INITIAL_STATE
        self._perturbed = INITIAL_STATE._replace(
            theta1=INITIAL_STATE.theta1 + PERTURBATION
        )

    def step(self, dt, speed, accuracy, params) -> float:
        """Advance both trajectories by dt * speed simulated seconds.

        The interval is split into substep_count(accuracy) equal RK4 steps,
        so accuracy trades compute for precision without changing the
        visible step size.

        Returns:
            The elapsed simulated time.
        """
        effective_dt = dt * speed
        substeps = substep_count(accuracy)
        h = effective_dt / substeps

        reference, perturbed = self._reference, self._perturbed
        for _ in range(substeps):
            reference = rk4_step(reference, h, params)
            perturbed = rk4_step(perturbed, h, params)

        self._reference, self._perturbed = reference, perturbed
        return effective_dt


class DivergenceMonitor:
    """Euclidean distance between the two distal bobs, current value only."""

    def __init__(self):
        self._value = 0.0

    @property
    def value(self) -> float:
        return self._value

    def compute(self, reference_point, perturbed_point) -> float:
        (xa, ya), (xb, yb) = reference_point, perturbed_point
        self._value = float(np.hypot(xa - xb, ya - yb))
        return self._value

    def reset(self) -> None:
        self._value = 0.0

    @property
    def gauge_fraction(self) -> float:
        """Fill level of the divergence gauge in [0, 1]."""
        return min(self._value / DIVERGENCE_GAUGE_SCALE, 1.0)

    @property
    def is_critical(self) -> bool:
        return self._value > DIVERGENCE_CRITICAL

    @property
    def gauge_steps(self) -> int:
        """Gauge fill as an integer in [0, DIVERGENCE_GAUGE_STEPS]."""
        return round(self.gauge_fraction * DIVERGENCE_GAUGE_STEPS)

    @property
    def gauge_color(self) -> str:
        return GAUGE_CRITICAL_COLOR if self.is_critical else GAUGE_OK_COLOR


class TraceBuffer:
    """Most recent distal-bob positions, oldest first, capacity-bounded."""

    def __init__(self, capacity=TRACE_LENGTH):
        self._points = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._points.maxlen

    def push(self, point) -> None:
        """Append a point, evicting the oldest when full."""
        x, y = point
        self._points.append((float(x), float(y)))

    def clear(self) -> None:
        self._points.clear()

    def points(self) -> list[tuple[float, float]]:
        return list(self._points)

    def __len__(self):
        return len(self._points)

    def __iter__(self):
        return iter(self._points)
