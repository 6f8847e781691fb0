"""Single-trial execution.

A TrialRunner wires one parameter set into the scenario's integrator,
steps until a stop predicate fires, and folds each sample into the
scenario summary as it goes.

Example:
    >>> from dragster.simulation import TrackRace, simulate
    >>>
    >>> result = simulate(TrackRace(track_length=20.0))
    >>> print(f"Finish: {result.summary.finish_time:.3f} s")
    >>> df = result.trajectory.to_dataframe()
"""

import logging
from dataclasses import dataclass, field

from beartype import beartype

from dragster.dynamics.integrators import make_integrator
from dragster.dynamics.state import MotionState
from dragster.forces import evaluate_forces, net_force
from dragster.parameters import TrialParameters
from dragster.simulation.scenarios import Scenario
from dragster.simulation.summaries import (
    TrialStatus,
    TrialSummary,
    invalid_summary,
)
from dragster.simulation.trajectory import Trajectory, TrajectorySample

logger = logging.getLogger(__name__)


@beartype
@dataclass(frozen=True, slots=True)
class TrialResult:
    """Outcome of one trial.

    Attributes:
        index: Trial index within a Monte Carlo run
        status: Terminal status (COMPLETED, FAILED or INVALID)
        summary: Scenario summary; NaN-filled when INVALID
        parameters: Parameter set the trial ran with
        elapsed_time: Simulated time when the trial stopped [s]
        trajectory: Recorded samples, if requested
        sampled: Values drawn for the uncertain parameters, keyed by path
    """

    index: int
    status: TrialStatus
    summary: TrialSummary
    parameters: TrialParameters
    elapsed_time: float
    trajectory: Trajectory | None = None
    sampled: dict[str, float] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        """True unless the trial was numerically degenerate."""
        return self.status is not TrialStatus.INVALID

    @property
    def failed(self) -> bool:
        """True if the trial ended in a modeled physical failure."""
        return self.status is TrialStatus.FAILED


def _sample(t: float, state: MotionState, params: TrialParameters) -> TrajectorySample:
    """Combine a state with the force breakdown at the same time."""
    forces = evaluate_forces(t, state.velocity, params)
    return TrajectorySample(
        time=t,
        velocity=state.velocity,
        position=state.position,
        acceleration=state.acceleration,
        angular_velocity=state.angular_velocity,
        kinetic_energy=state.kinetic_energy,
        net_force=state.net_force,
        thrust=forces.thrust,
        drag=forces.drag,
        friction=forces.friction,
    )


@beartype
class TrialRunner:
    """Runs trials of one scenario.

    The runner is stateless between trials, so one instance can serve any
    number of parameter sets.
    """

    def __init__(self, scenario: Scenario) -> None:
        """Initialize runner.

        Args:
            scenario: Scenario descriptor defining stop rules and summary
        """
        self.scenario = scenario
        self.integrator = make_integrator(scenario.integrator)

    def initial_state(self, params: TrialParameters) -> MotionState:
        """Vehicle at rest on the start line."""
        return MotionState(net_force=net_force(0.0, 0.0, params))

    def reject(
        self,
        params: TrialParameters,
        sampled: dict[str, float],
        index: int = 0,
    ) -> TrialResult:
        """Record a trial whose drawn values could not form a parameter set.

        The trial is never stepped. It is INVALID with a NaN summary, and
        ``params`` is the nominal set the draws were applied to.
        """
        logger.warning(
            "Trial %d drew an inconsistent parameter set %s; excluded from statistics",
            index, sampled,
        )
        return TrialResult(
            index=index,
            status=TrialStatus.INVALID,
            summary=invalid_summary(self.scenario.new_reducer().summary_type),
            parameters=params,
            elapsed_time=0.0,
            sampled=sampled,
        )

    def run(
        self,
        params: TrialParameters | None = None,
        index: int = 0,
        record: bool = False,
    ) -> TrialResult:
        """Run one trial to termination.

        Args:
            params: Parameter set; the scenario's nominal parameters if None
            index: Trial index carried into the result
            record: Keep the full trajectory in the result

        Returns:
            TrialResult with terminal status and summary

        Raises:
            ConfigurationError: If the adaptive integrator fails to converge
        """
        scenario = self.scenario
        params = params if params is not None else scenario.parameters
        dt = scenario.dt
        reducer = scenario.new_reducer()
        trajectory = Trajectory() if record else None

        status = TrialStatus.INITIALIZED
        step = 0
        state = self.initial_state(params)
        sample = _sample(0.0, state, params)

        if sample.is_finite():
            status = TrialStatus.RUNNING
            reducer.update(sample)
            if trajectory is not None:
                trajectory.append(sample)
        else:
            status = TrialStatus.INVALID

        while status is TrialStatus.RUNNING:
            state = self.integrator.advance(state, step * dt, dt, params)
            step += 1
            t = step * dt

            if not state.is_finite():
                status = TrialStatus.INVALID
                break
            sample = _sample(t, state, params)
            if not sample.is_finite():
                status = TrialStatus.INVALID
                break

            reducer.update(sample)
            if trajectory is not None:
                trajectory.append(sample)

            reason = scenario.stop_reason(sample, step)
            if reason is not None:
                status = reason

        elapsed = step * dt
        if status is TrialStatus.INVALID:
            logger.warning(
                "Trial %d became non-finite at t=%.6g s; excluded from statistics",
                index, elapsed,
            )
            summary = invalid_summary(reducer.summary_type)
        else:
            summary = reducer.finish(status, elapsed)
            logger.debug(
                "Trial %d %s at t=%.6g s after %d steps",
                index, status.value, elapsed, step,
            )

        return TrialResult(
            index=index,
            status=status,
            summary=summary,
            parameters=params,
            elapsed_time=elapsed,
            trajectory=trajectory,
        )


@beartype
def simulate(scenario: Scenario, params: TrialParameters | None = None) -> TrialResult:
    """Run one recorded trial, with the nominal parameters by default."""
    return TrialRunner(scenario).run(params, record=True)
