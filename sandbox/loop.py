"""Frame-driven simulation loop for the chaos sandbox.

SimulationCore bundles all per-frame mutable state (trajectory pair, both
traces, divergence, elapsed time) behind step/reset/snapshot methods.
SimulationLoop drives it from an external frame scheduler and implements
the Running/Paused state machine. Everything runs on one thread; a tick
is never interrupted by pause or reset.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from collections.abc import Callable

from simulation import (
    PendulumState, SimulationParams, is_finite, positions, total_energy,
)
from sandbox.trajectories import DivergenceMonitor, TraceBuffer, TrajectorySet

logger = logging.getLogger(__name__)


class RunState(enum.Enum):
    RUNNING = "running"
    PAUSED = "paused"


@dataclass(frozen=True)
class RenderSnapshot:
    """Everything the drawing routine needs for one frame."""

    reference: PendulumState
    perturbed: PendulumState
    reference_trace: tuple
    perturbed_trace: tuple
    divergence: float
    time: float
    params: SimulationParams
    valid: bool = True


class EnergyDrift:
    """Reference-pendulum energy change since the last baseline.

    The baseline is taken from the first snapshot after a reset (time 0)
    and again whenever the snapshot's params differ from the baseline's,
    since energy is only comparable under one set of params.
    """

    def __init__(self):
        self.baseline = 0.0
        self._params = None

    def update(self, snapshot: RenderSnapshot) -> float:
        energy = total_energy(snapshot.reference, snapshot.params)
        if snapshot.time == 0.0 or snapshot.params != self._params:
            self.baseline = energy
            self._params = snapshot.params
        return energy - self.baseline


class SimulationCore:
    """Exclusive owner of the two trajectories and their derived data."""

    def __init__(self):
        self._trajectories = TrajectorySet()
        self._divergence = DivergenceMonitor()
        self._reference_trace = TraceBuffer()
        self._perturbed_trace = TraceBuffer()
        self._time = 0.0

    @property
    def reference(self) -> PendulumState:
        return self._trajectories.reference

    @property
    def perturbed(self) -> PendulumState:
        return self._trajectories.perturbed

    @property
    def divergence(self) -> float:
        return self._divergence.value

    @property
    def divergence_monitor(self) -> DivergenceMonitor:
        return self._divergence

    @property
    def time(self) -> float:
        return self._time

    def trace_points(self) -> tuple[list, list]:
        return self._reference_trace.points(), self._perturbed_trace.points()

    def is_valid(self) -> bool:
        return is_finite(self.reference) and is_finite(self.perturbed)

    def advance(self, params: SimulationParams) -> float:
        """Run one tick with a single params snapshot; return the divergence."""
        self._time += self._trajectories.step(
            params.dt, params.speed, params.accuracy, params,
        )

        # Both trajectories are now at the same time; measure and record
        _, _, rx2, ry2 = positions(self.reference, params)
        _, _, px2, py2 = positions(self.perturbed, params)
        divergence = self._divergence.compute((rx2, ry2), (px2, py2))

        self._reference_trace.push((rx2, ry2))
        self._perturbed_trace.push((px2, py2))
        return divergence

    def reset(self) -> None:
        self._trajectories.reset()
        self._reference_trace.clear()
        self._perturbed_trace.clear()
        self._divergence.reset()
        self._time = 0.0

    def snapshot(self, params: SimulationParams) -> RenderSnapshot:
        reference_trace, perturbed_trace = self.trace_points()
        return RenderSnapshot(
            reference=self.reference,
            perturbed=self.perturbed,
            reference_trace=tuple(reference_trace),
            perturbed_trace=tuple(perturbed_trace),
            divergence=self.divergence,
            time=self._time,
            params=params,
            valid=self.is_valid(),
        )


class SimulationLoop:
    """Running/Paused state machine around a SimulationCore.

    Collaborators:
        config: object whose snapshot() returns a ConfigSnapshot
            (params plus epoch). Read exactly once per tick.
        render: called with a RenderSnapshot after every tick and reset.
        request_frame: schedules one future call of the given callback,
            e.g. the display refresh. Called only while running.
        clear_surface: optional, asked to wipe the drawing on reset.
    """

    def __init__(self, config, render: Callable[[RenderSnapshot], None],
                 request_frame: Callable[[Callable[[], None]], None],
                 clear_surface: Callable[[], None] | None = None):
        self._config = config
        self._render = render
        self._request_frame = request_frame
        self._clear_surface = clear_surface

        self._core = SimulationCore()
        self._state = RunState.RUNNING
        self._frame_pending = False
        self._invalid_reported = False

        snap = config.snapshot()
        self._params = snap.params
        self._epoch = snap.epoch

    # -- Accessors --

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    @property
    def core(self) -> SimulationCore:
        return self._core

    @property
    def divergence(self) -> float:
        return self._core.divergence

    @property
    def time(self) -> float:
        return self._core.time

    @property
    def epoch(self) -> int:
        return self._epoch

    def snapshot(self) -> RenderSnapshot:
        return self._core.snapshot(self._params)

    # -- Scheduling --

    def start(self) -> None:
        """Issue the first frame request if running."""
        if self.is_running:
            self._schedule()

    def _schedule(self) -> None:
        if self._frame_pending:
            return
        self._frame_pending = True
        self._request_frame(self.tick)

    def tick(self) -> None:
        """Advance one frame. A no-op while paused."""
        self._frame_pending = False
        if not self.is_running:
            return

        snap = self._config.snapshot()
        self._params = snap.params
        self.sync_epoch(snap.epoch)

        self._core.advance(self._params)
        snapshot = self._core.snapshot(self._params)
        if not snapshot.valid and not self._invalid_reported:
            logger.warning(
                "Simulation became non-finite at t=%.3f; reset required",
                snapshot.time,
            )
            self._invalid_reported = True

        self._render(snapshot)
        self._schedule()

    # -- Transitions --

    def toggle_run_pause(self) -> RunState:
        if self.is_running:
            self._state = RunState.PAUSED
        else:
            self._state = RunState.RUNNING
            self._schedule()
        logger.info("Simulation %s", self._state.value)
        return self._state

    def reset(self) -> None:
        """Restore initial conditions without changing the run state."""
        self._core.reset()
        self._invalid_reported = False
        if self._clear_surface is not None:
            self._clear_surface()
        logger.debug("Simulation reset (%s)", self._state.value)
        self._render(self._core.snapshot(self._params))

    def sync_epoch(self, epoch: int) -> bool:
        """Reset if the configuration epoch moved. Returns True on reset."""
        if epoch == self._epoch:
            return False
        logger.info("Configuration epoch %d -> %d, reinitializing",
                    self._epoch, epoch)
        self._epoch = epoch
        self.reset()
        return True

    def on_config_changed(self, snap) -> None:
        """ConfigStore listener: apply a new snapshot immediately."""
        self._params = snap.params
        if not self.sync_epoch(snap.epoch) and not self.is_running:
            self._render(self._core.snapshot(self._params))
