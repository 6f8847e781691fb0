"""Unit tests for the motion state and the integration strategies."""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from dragster.dynamics import (
    AdaptiveIntegrator,
    EulerIntegrator,
    IntegratorConfig,
    MotionState,
    make_integrator,
)
from dragster.errors import ConfigurationError
from dragster.parameters import TrialParameters
from dragster.propulsion import ConstantThrust
from dragster.vehicle import VehicleParams

# Frictionless, dragless car pushed by a constant 10 N
FREE_CAR = VehicleParams(
    mu_static=0.0,
    mu_kinetic=0.0,
    drag_coefficient=0.0,
    reynolds_correction=False,
)
FREE_PARAMS = TrialParameters(vehicle=FREE_CAR, propulsion=ConstantThrust(force=10.0))
FREE_ACCEL = 10.0 / 0.055

# =============================================================================
# Motion State
# =============================================================================


class TestMotionState:
    """Test state conversion."""

    def test_default_at_rest(self) -> None:
        state = MotionState()
        assert state.velocity == 0.0
        assert state.position == 0.0
        assert state.is_finite()

    def test_array_roundtrip(self) -> None:
        state = MotionState(velocity=2.0, position=1.5, acceleration=-0.3, angular_velocity=40.0)
        arr = state.to_array()
        assert_allclose(arr, [2.0, 1.5, -0.3, 40.0])

        restored = MotionState.from_array(arr, mass=0.055)
        assert restored.velocity == 2.0
        assert restored.kinetic_energy == pytest.approx(0.5 * 0.055 * 4.0)

    def test_from_array_clamps_velocity(self) -> None:
        state = MotionState.from_array(np.array([-1.0, 0.0, 0.0, 0.0]), mass=0.055)
        assert state.velocity == 0.0

    def test_non_finite_detected(self) -> None:
        assert not MotionState(position=math.nan).is_finite()
        assert not MotionState(velocity=math.inf).is_finite()


# =============================================================================
# Euler Integrator
# =============================================================================


class TestEulerIntegrator:
    """Test fixed-step explicit integration."""

    def test_constant_acceleration_sequence(self) -> None:
        """v_n = n*a*dt and x_n = a*dt^2*n(n+1)/2 for semi-implicit position update."""
        integrator = EulerIntegrator()
        dt = 0.001
        state = MotionState()
        n = 200
        for i in range(n):
            state = integrator.advance(state, i * dt, dt, FREE_PARAMS)

        assert_allclose(state.velocity, n * FREE_ACCEL * dt, rtol=1e-12)
        assert_allclose(state.position, FREE_ACCEL * dt**2 * n * (n + 1) / 2, rtol=1e-12)
        assert_allclose(state.acceleration, FREE_ACCEL, rtol=1e-9)

    def test_velocity_clamped_at_zero(self) -> None:
        """Friction cannot push the car backwards."""
        params = TrialParameters(propulsion=ConstantThrust(force=0.0))
        dt = 0.01
        state = EulerIntegrator().advance(MotionState(velocity=0.001), 0.0, dt, params)
        assert state.velocity == 0.0
        assert state.acceleration == pytest.approx(-0.001 / dt)

    def test_stationary_under_friction(self) -> None:
        params = TrialParameters(propulsion=ConstantThrust(force=0.0))
        state = MotionState()
        for i in range(100):
            state = EulerIntegrator().advance(state, i * 0.001, 0.001, params)
        assert state.velocity == 0.0
        assert state.position == 0.0

    def test_derived_fields(self) -> None:
        state = EulerIntegrator().advance(MotionState(), 0.0, 0.001, TrialParameters())
        assert state.kinetic_energy == pytest.approx(0.5 * 0.055 * state.velocity**2)
        assert state.angular_velocity > 0.0

    def test_zero_mass_is_non_finite(self) -> None:
        params = TrialParameters(vehicle=VehicleParams(mass=0.0))
        state = EulerIntegrator().advance(MotionState(), 0.0, 0.001, params)
        assert not state.is_finite()


# =============================================================================
# Adaptive Integrator
# =============================================================================


class TestAdaptiveIntegrator:
    """Test error-controlled integration."""

    def test_constant_acceleration_exact(self) -> None:
        integrator = AdaptiveIntegrator()
        t = 0.05
        state = integrator.advance(MotionState(), 0.0, t, FREE_PARAMS)

        assert_allclose(state.velocity, FREE_ACCEL * t, rtol=1e-8)
        assert_allclose(state.position, 0.5 * FREE_ACCEL * t**2, rtol=1e-8)
        assert_allclose(state.kinetic_energy, 0.5 * 0.055 * state.velocity**2, rtol=1e-12)

    def test_smoothed_acceleration_relaxes(self) -> None:
        """After 50 time constants the smoothed acceleration equals the true one."""
        state = AdaptiveIntegrator().advance(MotionState(), 0.0, 0.05, FREE_PARAMS)
        assert_allclose(state.acceleration, FREE_ACCEL, rtol=1e-6)

    def test_wheel_spin_up(self) -> None:
        car = FREE_PARAMS.vehicle
        alpha = (10.0 * car.wheel_radius / car.num_wheels) / car.wheel_inertia
        state = AdaptiveIntegrator().advance(MotionState(), 0.0, 0.05, FREE_PARAMS)
        assert_allclose(state.angular_velocity, alpha * 0.05, rtol=1e-8)

    def test_no_reversal(self) -> None:
        params = TrialParameters(propulsion=ConstantThrust(force=0.0))
        state = AdaptiveIntegrator().advance(MotionState(), 0.0, 0.05, params)
        assert state.velocity == 0.0
        assert state.position == pytest.approx(0.0, abs=1e-12)

    def test_agrees_with_fine_euler(self) -> None:
        """Adaptive and small-step Euler agree on the reference car."""
        params = TrialParameters()
        adaptive = AdaptiveIntegrator()
        euler = EulerIntegrator()

        state_a = MotionState()
        for i in range(25):
            state_a = adaptive.advance(state_a, i * 0.02, 0.02, params)

        dt = 0.0001
        state_e = MotionState()
        for i in range(5000):
            state_e = euler.advance(state_e, i * dt, dt, params)

        assert_allclose(state_a.velocity, state_e.velocity, rtol=1e-2)
        assert_allclose(state_a.position, state_e.position, rtol=1e-2)

    def test_evaluation_budget(self) -> None:
        integrator = AdaptiveIntegrator(IntegratorConfig(method="adaptive", max_evaluations=5))
        with pytest.raises(ConfigurationError, match="exceeded"):
            integrator.advance(MotionState(), 0.0, 0.1, TrialParameters())

    def test_zero_mass_is_non_finite(self) -> None:
        params = TrialParameters(vehicle=VehicleParams(mass=0.0))
        state = AdaptiveIntegrator().advance(MotionState(), 0.0, 0.001, params)
        assert not state.is_finite()


# =============================================================================
# Configuration
# =============================================================================


class TestIntegratorConfig:
    """Test integrator selection and validation."""

    def test_factory(self) -> None:
        assert isinstance(make_integrator(IntegratorConfig()), EulerIntegrator)
        assert isinstance(make_integrator(IntegratorConfig(method="adaptive")), AdaptiveIntegrator)

    def test_invalid_tolerances(self) -> None:
        with pytest.raises(ConfigurationError):
            IntegratorConfig(rtol=0.0)
        with pytest.raises(ConfigurationError):
            IntegratorConfig(atol=-1e-9)

    def test_invalid_budget(self) -> None:
        with pytest.raises(ConfigurationError):
            IntegratorConfig(max_evaluations=0)
