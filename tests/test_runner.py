"""Tests for scenarios, the trial runner and trial summaries."""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy.integrate import quad

from dragster.dynamics import IntegratorConfig
from dragster.errors import ConfigurationError
from dragster.parameters import TrialParameters
from dragster.propulsion import ConstantThrust, ThrustCurve
from dragster.sampling import Normal
from dragster.simulation import (
    BurnProfile,
    BurnSummary,
    FrictionStability,
    FrictionSummary,
    RaceSummary,
    Scenario,
    TrackRace,
    TrialRunner,
    TrialStatus,
    simulate,
)
from dragster.simulation.summaries import RaceReducer, invalid_summary
from dragster.simulation.trajectory import TrajectorySample
from dragster.vehicle import VehicleParams

FREE_CAR = VehicleParams(
    mu_static=0.0,
    mu_kinetic=0.0,
    drag_coefficient=0.0,
    reynolds_correction=False,
)


def _sample(t: float, x: float) -> TrajectorySample:
    return TrajectorySample(t, 1.0, x, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


# =============================================================================
# Scenario Validation
# =============================================================================


class TestScenarioValidation:
    """Configuration problems are rejected before any trial runs."""

    def test_non_positive_dt(self) -> None:
        with pytest.raises(ConfigurationError):
            BurnProfile(dt=0.0)
        with pytest.raises(ConfigurationError):
            BurnProfile(dt=-0.001)

    def test_non_positive_max_time(self) -> None:
        with pytest.raises(ConfigurationError):
            TrackRace(max_time=0.0)

    def test_dt_exceeds_max_time(self) -> None:
        with pytest.raises(ConfigurationError):
            BurnProfile(dt=0.5, max_time=0.1)

    def test_non_positive_track_length(self) -> None:
        with pytest.raises(ConfigurationError):
            TrackRace(track_length=0.0)

    def test_unknown_parameter_path(self) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            TrackRace(distributions={"vehicle.weight_kg": Normal(0.055, 0.001)})

    def test_unknown_parameter_group(self) -> None:
        with pytest.raises(ConfigurationError, match="group"):
            TrackRace(distributions={"engine.mass": Normal(0.055, 0.001)})

    def test_non_float_parameter(self) -> None:
        with pytest.raises(ConfigurationError):
            TrackRace(distributions={"vehicle.num_wheels": Normal(4.0, 0.0)})
        with pytest.raises(ConfigurationError):
            TrackRace(distributions={"vehicle.reynolds_correction": Normal(1.0, 0.0)})

    def test_max_steps(self) -> None:
        assert TrackRace(dt=0.001, max_time=3.0).max_steps == 3000
        assert BurnProfile(dt=0.003, max_time=0.01).max_steps == 4

    def test_kind_tags(self) -> None:
        assert BurnProfile.kind == "burn_profile"
        assert TrackRace().kind == "track_race"
        assert FrictionStability.kind == "friction_stability"

    def test_base_scenario_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="abstract"):
            Scenario()


# =============================================================================
# Trial Runner
# =============================================================================


class TestTrialRunner:
    """Test single-trial execution."""

    def test_constant_thrust_closed_form(self) -> None:
        """Position at t=1 s matches 0.5*(F/m)*t^2."""
        scenario = BurnProfile(
            parameters=TrialParameters(vehicle=FREE_CAR, propulsion=ConstantThrust(force=10.0)),
            dt=0.001,
            max_time=3.0,
        )
        result = simulate(scenario)
        sample = result.trajectory.at_time(1.0)

        assert sample.time == pytest.approx(1.0)
        assert sample.position == pytest.approx(0.5 * (10.0 / 0.055) * 1.0**2, rel=2e-3)

    def test_velocity_never_negative(self) -> None:
        for scenario in (
            BurnProfile(max_time=1.0),
            FrictionStability(parameters=TrialParameters(propulsion=ConstantThrust(force=0.0))),
        ):
            trajectory = simulate(scenario).trajectory
            assert trajectory.velocity.min() >= 0.0

    def test_euler_convergence(self) -> None:
        """Halving dt roughly halves the position error (first order)."""
        positions = []
        for dt in (0.001, 0.0005, 0.00025):
            result = TrialRunner(BurnProfile(dt=dt, max_time=2.0)).run()
            positions.append(result.summary.final_position)

        d1 = abs(positions[0] - positions[1])
        d2 = abs(positions[1] - positions[2])
        assert d2 < 0.75 * d1
        assert positions[2] == pytest.approx(positions[1], rel=1e-2)

    def test_recording_is_optional(self) -> None:
        runner = TrialRunner(BurnProfile(max_time=0.1))
        assert runner.run().trajectory is None
        trajectory = runner.run(record=True).trajectory
        assert len(trajectory) == 101
        assert trajectory.time[0] == 0.0
        assert trajectory.time[-1] == pytest.approx(0.1)

    def test_adaptive_matches_euler(self) -> None:
        params = TrialParameters()
        euler = TrialRunner(BurnProfile(parameters=params, dt=0.0001, max_time=0.5)).run()
        adaptive = TrialRunner(BurnProfile(
            parameters=params,
            dt=0.01,
            max_time=0.5,
            integrator=IntegratorConfig(method="adaptive"),
        )).run()
        assert_allclose(
            adaptive.summary.final_velocity, euler.summary.final_velocity, rtol=1e-2
        )

    def test_zero_mass_is_invalid(self) -> None:
        params = TrialParameters(vehicle=VehicleParams(mass=0.0))
        result = TrialRunner(BurnProfile(max_time=0.1)).run(params, index=3)

        assert result.status is TrialStatus.INVALID
        assert not result.valid
        assert result.index == 3
        assert math.isnan(result.summary.peak_thrust)

    def test_reject(self) -> None:
        scenario = TrackRace()
        sampled = {"propulsion.spike_end": 0.3}
        result = TrialRunner(scenario).reject(scenario.parameters, sampled, index=7)

        assert result.status is TrialStatus.INVALID
        assert result.index == 7
        assert result.sampled == sampled
        assert result.elapsed_time == 0.0
        assert isinstance(result.summary, RaceSummary)
        assert math.isnan(result.summary.finish_time)


# =============================================================================
# Burn Profile
# =============================================================================


class TestBurnProfile:
    """Test the burn summary."""

    def test_reference_burn(self) -> None:
        result = TrialRunner(BurnProfile(max_time=1.0)).run()
        summary = result.summary
        curve = ThrustCurve()
        impulse, _ = quad(curve.thrust, 0.0, 0.25, points=[0.12])

        assert result.status is TrialStatus.COMPLETED
        assert isinstance(summary, BurnSummary)
        assert summary.peak_thrust == pytest.approx(14.5)
        assert summary.burn_time == pytest.approx(0.25, abs=1.5e-3)
        assert summary.total_impulse == pytest.approx(impulse, rel=2e-2)
        assert result.elapsed_time == pytest.approx(1.0)

    def test_no_thrust(self) -> None:
        scenario = BurnProfile(
            parameters=TrialParameters(propulsion=ConstantThrust(force=0.0)),
            max_time=0.1,
        )
        summary = TrialRunner(scenario).run().summary
        assert summary.burn_time == 0.0
        assert summary.total_impulse == 0.0
        assert summary.final_position == 0.0


# =============================================================================
# Track Race
# =============================================================================


class TestTrackRace:
    """Test finish-line detection."""

    def test_reference_car_finishes(self) -> None:
        scenario = TrackRace(track_length=20.0)
        result = TrialRunner(scenario).run()
        summary = result.summary

        assert result.status is TrialStatus.COMPLETED
        assert isinstance(summary, RaceSummary)
        assert summary.finished
        assert summary.final_position >= 20.0
        assert result.elapsed_time - scenario.dt - 1e-9 <= summary.finish_time <= result.elapsed_time
        assert summary.elapsed_time < scenario.max_time
        assert summary.max_velocity > 10.0

    def test_time_limit_before_finish(self) -> None:
        result = TrialRunner(TrackRace(track_length=1000.0, max_time=0.5)).run()
        assert result.status is TrialStatus.COMPLETED
        assert not result.summary.finished
        assert math.isnan(result.summary.finish_time)
        assert result.summary.elapsed_time == pytest.approx(0.5)

    def test_finish_interpolation(self) -> None:
        reducer = RaceReducer(track_length=10.0)
        reducer.update(_sample(0.0, 0.0))
        reducer.update(_sample(1.0, 8.0))
        reducer.update(_sample(2.0, 12.0))
        summary = reducer.finish(TrialStatus.COMPLETED, 2.0)
        assert summary.finish_time == pytest.approx(1.5)
        assert summary.finished


# =============================================================================
# Friction Stability
# =============================================================================


class TestFrictionStability:
    """Test propulsion-loss detection."""

    def test_immediate_failure(self) -> None:
        """A push weaker than static friction fails on the first step."""
        scenario = FrictionStability(
            parameters=TrialParameters(propulsion=ConstantThrust(force=0.01)),
            dt=0.001,
        )
        result = TrialRunner(scenario).run()
        summary = result.summary

        assert result.status is TrialStatus.FAILED
        assert result.failed
        assert isinstance(summary, FrictionSummary)
        assert summary.failed
        assert summary.friction_failure_time == scenario.dt
        assert summary.max_displacement == 0.0

    def test_failure_after_burnout(self) -> None:
        result = TrialRunner(FrictionStability()).run()
        summary = result.summary
        assert result.status is TrialStatus.FAILED
        assert 0.12 < summary.friction_failure_time <= 0.26
        assert summary.max_displacement > 0.0

    def test_no_failure_falls_back_to_total_time(self) -> None:
        scenario = FrictionStability(
            parameters=TrialParameters(propulsion=ConstantThrust(force=10.0)),
            max_time=0.1,
        )
        result = TrialRunner(scenario).run()
        summary = result.summary

        assert result.status is TrialStatus.COMPLETED
        assert not summary.failed
        assert summary.friction_failure_time == summary.total_time
        assert summary.total_time == pytest.approx(0.1)


class TestSummaries:
    """Test summary helpers."""

    def test_invalid_summary_fields(self) -> None:
        summary = invalid_summary(RaceSummary)
        assert math.isnan(summary.finish_time)
        assert math.isnan(summary.max_velocity)
        assert summary.finished is False

    def test_trajectory_dataframe(self) -> None:
        trajectory = simulate(BurnProfile(max_time=0.05)).trajectory
        df = trajectory.to_dataframe()
        assert df.height == len(trajectory)
        assert "kinetic_energy" in df.columns
        assert np.all(np.diff(trajectory.time) > 0)
        assert len(trajectory.series("velocity")) == len(trajectory)
