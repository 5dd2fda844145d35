"""Tests for simulation.py: equations of motion, RK4 step, kinematics."""

import math

import numpy as np
import pytest

from simulation import (
    PendulumState, SimulationParams, derivatives, rk4_step, simulate,
    positions, velocities, total_energy, is_finite,
)


def make_params(**overrides):
    values = dict(m1=10.0, m2=10.0, l1=150.0, l2=150.0, g=1.0,
                  dt=0.2, speed=1.0, accuracy=1.0)
    values.update(overrides)
    return SimulationParams(**values)


HORIZONTAL = PendulumState(math.pi / 2, math.pi / 2, 0.0, 0.0)


class TestDerivatives:
    """Test the derivatives function for known states."""

    def test_zero_state_zero_derivatives(self):
        """At rest hanging straight down, angular accelerations are zero."""
        d = derivatives(PendulumState(0.0, 0.0, 0.0, 0.0), make_params())
        assert d.theta1 == 0.0
        assert d.theta2 == 0.0
        assert abs(d.omega1) < 1e-12
        assert abs(d.omega2) < 1e-12

    def test_dtheta_equals_omega(self):
        d = derivatives(PendulumState(0.5, 1.0, 0.3, -0.2), make_params())
        assert d.theta1 == 0.3
        assert d.theta2 == -0.2

    def test_horizontal_release(self):
        """Released horizontal from rest: upper rod falls at g/l1, lower not yet."""
        params = make_params()
        d = derivatives(HORIZONTAL, params)
        assert d.omega1 == pytest.approx(-params.g / params.l1, rel=1e-12)
        assert abs(d.omega2) < 1e-15

    @pytest.mark.parametrize("state, expected_alpha1, expected_alpha2", [
        # delta = pi/2: den = l1 * (2 m1 + m2 + m2) = 6, den2 = 12
        (PendulumState(math.pi / 2, 0.0, 1.0, 1.0), -11 / 3, 0.5),
        # delta = -pi/2 with theta1 = 0: the cos(theta1) gravity term enters
        (PendulumState(0.0, math.pi / 2, 1.0, 1.0), 2 / 3, -2.0),
    ])
    def test_unequal_masses_and_lengths(self, state, expected_alpha1,
                                        expected_alpha2):
        """Values worked by hand for m1=2, m2=1, l1=1, l2=2, g=3."""
        params = make_params(m1=2.0, m2=1.0, l1=1.0, l2=2.0, g=3.0)
        d = derivatives(state, params)
        assert d.theta1 == state.omega1
        assert d.theta2 == state.omega2
        assert d.omega1 == pytest.approx(expected_alpha1, abs=1e-12)
        assert d.omega2 == pytest.approx(expected_alpha2, abs=1e-12)

    def test_deterministic(self):
        params = make_params(m1=3.5, l2=80.0, g=2.2)
        state = PendulumState(0.7, -1.3, 0.05, -0.11)
        first = derivatives(state, params)
        for _ in range(10):
            assert derivatives(state, params) == first

    def test_returns_new_state(self):
        state = PendulumState(0.1, 0.2, 0.3, 0.4)
        d = derivatives(state, make_params())
        assert isinstance(d, PendulumState)
        assert state == PendulumState(0.1, 0.2, 0.3, 0.4)

    def test_accepts_plain_sequences(self):
        params = make_params()
        as_list = derivatives([0.4, -0.2, 0.1, 0.0], params)
        as_state = derivatives(PendulumState(0.4, -0.2, 0.1, 0.0), params)
        assert as_list == as_state

    def test_singular_denominator_propagates_non_finite(self):
        """m1 = 0 with aligned rods zeroes the denominator: no exception."""
        params = make_params(m1=0.0)
        d = derivatives(PendulumState(0.3, 0.3, 0.0, 0.0), params)
        assert not is_finite(d)


class TestRK4Step:
    """Test the fixed-step classical Runge-Kutta integrator."""

    def test_hand_computed_fixture(self):
        """One 0.2 s step from horizontal rest with the default params.

        To leading order this is a constant-acceleration fall at g/l1; the
        pinned values also carry the O(1e-11) coupling through omega2.
        """
        params = make_params()
        result = rk4_step(HORIZONTAL, 0.2, params)

        assert result.theta1 == pytest.approx(1.570662993462057, abs=1e-14)
        assert result.theta2 == pytest.approx(math.pi / 2, abs=1e-11)
        assert result.omega1 == pytest.approx(-0.0013333333145679018, abs=1e-15)
        assert result.omega2 == pytest.approx(-3.160493736150227e-11, rel=1e-6)
        # Not the bare constant-acceleration result
        assert result.omega1 != pytest.approx(-1 / 750, abs=1e-12)

    def test_matches_explicit_stages(self):
        params = make_params(m1=4.0, m2=7.0, l1=120.0, l2=90.0, g=1.7)
        state = PendulumState(1.1, -0.4, 0.05, -0.02)
        dt = 0.3

        y = np.array(state)
        k1 = np.array(derivatives(y, params))
        k2 = np.array(derivatives(y + dt / 2 * k1, params))
        k3 = np.array(derivatives(y + dt / 2 * k2, params))
        k4 = np.array(derivatives(y + dt * k3, params))
        expected = y + dt / 6 * (k1 + 2 * k2 + 2 * k3 + k4)

        result = rk4_step(state, dt, params)
        np.testing.assert_allclose(result, expected, rtol=0, atol=1e-12)

    def test_does_not_mutate_input(self):
        state = [1.0, 0.5, 0.1, -0.1]
        rk4_step(state, 0.2, make_params())
        assert state == [1.0, 0.5, 0.1, -0.1]

    def test_zero_gravity_rest_is_stationary(self):
        """Without gravity, a pendulum released from rest never moves."""
        params = make_params(g=0.0)
        state = PendulumState(1.2, -0.7, 0.0, 0.0)
        current = state
        for _ in range(500):
            current = rk4_step(current, 0.2, params)
        np.testing.assert_allclose(current, state, rtol=0, atol=1e-12)

    def test_non_finite_input_propagates(self):
        result = rk4_step(PendulumState(math.nan, 0.0, 0.0, 0.0), 0.2, make_params())
        assert not is_finite(result)


class TestSimulate:
    """Test the SciPy reference solver."""

    def test_returns_correct_shapes(self):
        t, states = simulate(make_params(), HORIZONTAL, t_end=5.0, n_points=11)
        assert t.shape == (11,)
        assert states.shape == (11, 4)
        assert t[-1] == pytest.approx(5.0)

    def test_initial_conditions_preserved(self):
        state = PendulumState(1.0, 0.5, 0.01, -0.02)
        _, states = simulate(make_params(), state, t_end=1.0)
        np.testing.assert_allclose(states[0], state, atol=1e-12)

    def test_energy_conserved(self):
        params = make_params()
        state = PendulumState(1.0, 0.5, 0.0, 0.0)
        _, states = simulate(params, state, t_end=50.0, n_points=200)
        energies = np.array([total_energy(s, params) for s in states])
        e0 = energies[0]
        drift = np.max(np.abs(energies - e0)) / abs(e0)
        assert drift < 1e-8, f"Relative energy drift {drift} exceeds tolerance"

    def test_agrees_with_fine_rk4(self):
        params = make_params()
        state = PendulumState(1.0, 0.5, 0.0, 0.0)
        current = state
        for _ in range(1000):
            current = rk4_step(current, 0.01, params)
        _, states = simulate(params, state, t_end=10.0)
        np.testing.assert_allclose(current, states[-1], atol=1e-8)


class TestPositions:
    """Test Cartesian coordinate conversion (y grows downward)."""

    def test_straight_down(self):
        params = make_params(l1=100.0, l2=50.0)
        x1, y1, x2, y2 = positions(PendulumState(0.0, 0.0, 0.0, 0.0), params)
        assert abs(x1) < 1e-10
        assert y1 == pytest.approx(100.0)
        assert abs(x2) < 1e-10
        assert y2 == pytest.approx(150.0)

    def test_horizontal(self):
        params = make_params(l1=100.0, l2=50.0)
        x1, y1, x2, y2 = positions(HORIZONTAL, params)
        assert x1 == pytest.approx(100.0)
        assert abs(y1) < 1e-10
        assert x2 == pytest.approx(150.0)
        assert abs(y2) < 1e-10


class TestVelocities:
    """Velocities must be the time derivative of positions."""

    def test_matches_finite_difference(self):
        params = make_params(l1=120.0, l2=80.0)
        state = PendulumState(0.8, -0.6, 0.07, -0.12)
        h = 1e-6

        def shifted(sign):
            return PendulumState(
                state.theta1 + sign * h * state.omega1,
                state.theta2 + sign * h * state.omega2,
                state.omega1, state.omega2,
            )

        plus = np.array(positions(shifted(1), params))
        minus = np.array(positions(shifted(-1), params))
        numeric = (plus - minus) / (2 * h)

        np.testing.assert_allclose(velocities(state, params), numeric,
                                   rtol=1e-6, atol=1e-8)

    def test_at_rest(self):
        v = velocities(HORIZONTAL, make_params())
        assert all(abs(c) < 1e-15 for c in v)


class TestIsFinite:

    def test_finite_state(self):
        assert is_finite(HORIZONTAL)

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_component(self, bad):
        assert not is_finite(PendulumState(0.0, 0.0, 0.0, bad))
