"""Double pendulum physics engine.

Implements the coupled Lagrangian equations of motion for a frictionless
double pendulum, a fixed-step classical RK4 integrator used by the live
sandbox, and a high-accuracy SciPy reference solver (DOP853) for checking
the fixed-step integrator against.

Angles are measured from the downward vertical. Cartesian coordinates use
the screen convention: pivot at the origin, x to the right, y downward.
"""

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from scipy.integrate import solve_ivp


@dataclass(frozen=True)
class SimulationParams:
    """Physical and stepping parameters, read once per tick as a snapshot.

    All fields are mandatory; defaults live with the configuration owner
    (see sandbox.config.DEFAULT_PARAMS).
    """

    m1: float
    m2: float
    l1: float
    l2: float
    g: float
    dt: float
    speed: float
    accuracy: float


class PendulumState(NamedTuple):
    """Immutable dynamical state [theta1, theta2, omega1, omega2]."""

    theta1: float
    theta2: float
    omega1: float
    omega2: float


def derivatives(state, params):
    """Compute the four first-order ODEs for the double pendulum.

    Returns a PendulumState holding
    [d_theta1/dt, d_theta2/dt, d_omega1/dt, d_omega2/dt].

    The denominator vanishes only at rare phase alignments with m2
    dominant; the result is then non-finite and is returned as-is.
    """
    theta1, theta2, omega1, omega2 = (np.float64(v) for v in state)
    m1, m2, l1, l2, g = params.m1, params.m2, params.l1, params.l2, params.g

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        delta = theta1 - theta2
        sin_delta = np.sin(delta)
        cos_delta = np.cos(delta)
        cos_2delta = np.cos(2 * theta1 - 2 * theta2)

        den1 = l1 * (2 * m1 + m2 - m2 * cos_2delta)
        alpha1 = (
            -g * (2 * m1 + m2) * np.sin(theta1)
            - m2 * g * np.sin(theta1 - 2 * theta2)
            - 2 * sin_delta * m2 * (
                omega2**2 * l2 + omega1**2 * l1 * cos_delta
            )
        ) / den1

        den2 = l2 * (2 * m1 + m2 - m2 * cos_2delta)
        alpha2 = (
            2 * sin_delta * (
                omega1**2 * l1 * (m1 + m2)
                + g * (m1 + m2) * np.cos(theta1)
                + omega2**2 * l2 * m2 * cos_delta
            )
        ) / den2

    return PendulumState(float(omega1), float(omega2),
                         float(alpha1), float(alpha2))


def rk4_step(state, dt, params):
    """Advance one state by exactly dt with classical 4th-order Runge-Kutta.

    No in-place mutation: every stage builds a new vector.
    """
    y = np.asarray(state, dtype=np.float64)

    with np.errstate(invalid="ignore", over="ignore"):
        k1 = np.asarray(derivatives(y, params))
        k2 = np.asarray(derivatives(y + 0.5 * dt * k1, params))
        k3 = np.asarray(derivatives(y + 0.5 * dt * k2, params))
        k4 = np.asarray(derivatives(y + dt * k3, params))

        y_next = y + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)

    return PendulumState(*(float(v) for v in y_next))


def simulate(params, state, t_end, n_points=2):
    """Integrate from state to t_end with SciPy's DOP853 at tight tolerances.

    Serves as the "exact" solution the fixed-step integrator is measured
    against.

    Returns:
        t_array: 1D array of n_points uniformly spaced times in [0, t_end]
        state_array: 2D array of shape (n_points, 4)
    """
    t_eval = np.linspace(0.0, t_end, n_points)

    sol = solve_ivp(
        fun=lambda t, y: list(derivatives(y, params)),
        t_span=(0.0, t_end),
        y0=list(state),
        method="DOP853",
        t_eval=t_eval,
        rtol=1e-13,
        atol=1e-13,
    )

    return sol.t, sol.y.T  # shape: (n_points, 4)


def positions(state, params):
    """Convert a single state to Cartesian coordinates.

    Returns (x1, y1, x2, y2) where y points downward from the pivot.
    """
    theta1, theta2 = state[0], state[1]
    l1, l2 = params.l1, params.l2

    x1 = l1 * np.sin(theta1)
    y1 = l1 * np.cos(theta1)

    x2 = x1 + l2 * np.sin(theta2)
    y2 = y1 + l2 * np.cos(theta2)

    return x1, y1, x2, y2


def velocities(state, params):
    """Cartesian bob velocities, the time derivative of positions().

    Returns (vx1, vy1, vx2, vy2).
    """
    theta1, theta2, omega1, omega2 = state
    l1, l2 = params.l1, params.l2

    vx1 = l1 * omega1 * np.cos(theta1)
    vy1 = -l1 * omega1 * np.sin(theta1)

    # Bob 2 moves with bob 1 plus its own rotation about bob 1
    vx2 = vx1 + l2 * omega2 * np.cos(theta2)
    vy2 = vy1 - l2 * omega2 * np.sin(theta2)

    return vx1, vy1, vx2, vy2


def total_energy(state, params):
    """Compute total mechanical energy (T + V) for a single state.

    Potential energy is measured from the pivot point.
    """
    theta1, theta2, omega1, omega2 = state
    m1, m2, l1, l2, g = params.m1, params.m2, params.l1, params.l2, params.g

    # Kinetic energy
    T = (
        0.5 * (m1 + m2) * l1**2 * omega1**2
        + 0.5 * m2 * l2**2 * omega2**2
        + m2 * l1 * l2 * omega1 * omega2 * np.cos(theta1 - theta2)
    )

    # Potential energy (from pivot)
    V = -(m1 + m2) * g * l1 * np.cos(theta1) - m2 * g * l2 * np.cos(theta2)

    return T + V


def is_finite(state):
    """True when every component of the state is a finite number."""
    return bool(np.all(np.isfinite(np.asarray(state, dtype=np.float64))))
