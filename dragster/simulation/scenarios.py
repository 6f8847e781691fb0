"""Scenario descriptors for racer trials.

A scenario bundles the nominal parameters, the uncertain parameters, the
time step and span, and the integrator choice. The scenario kind decides
when a trial stops and which summary it produces:

- BurnProfile: runs the full time span and summarizes the thrust phase.
- TrackRace: stops once the car crosses the finish line.
- FrictionStability: fails once applied force can no longer beat friction.

Stop predicates are checked after every step in a fixed priority order:
time limit, finish line, propulsion loss.

Example:
    >>> from dragster.sampling import Normal
    >>> from dragster.simulation import TrackRace
    >>>
    >>> scenario = TrackRace(
    ...     track_length=20.0,
    ...     distributions={"vehicle.mass": Normal(0.055, 0.002)},
    ... )
    >>> scenario.max_steps
    3000
"""

import math
from dataclasses import dataclass, field
from typing import ClassVar

from beartype import beartype

from dragster.dynamics.integrators import IntegratorConfig
from dragster.errors import ConfigurationError
from dragster.parameters import TrialParameters
from dragster.sampling import Distribution, ParameterSampler
from dragster.simulation.summaries import (
    BurnReducer,
    FrictionReducer,
    RaceReducer,
    Reducer,
    TrialStatus,
)
from dragster.simulation.trajectory import TrajectorySample

# Tolerance on max_time / dt so that e.g. 3.0 / 0.001 gives 3000 steps, not 3001
_STEP_ROUNDING = 1e-9


@beartype
@dataclass(frozen=True, slots=True)
class Scenario:
    """Common settings of every scenario kind.

    Attributes:
        parameters: Nominal vehicle and propulsion parameters
        distributions: Uncertain parameters by dotted path, e.g. "vehicle.mass"
        dt: Output (and Euler) time step [s]
        max_time: Time limit [s]
        integrator: Integration strategy and tolerances
    """

    kind: ClassVar[str] = "scenario"

    parameters: TrialParameters = field(default_factory=TrialParameters)
    distributions: dict[str, Distribution] = field(default_factory=dict)
    dt: float = 0.001
    max_time: float = 2.0
    integrator: IntegratorConfig = field(default_factory=IntegratorConfig)

    def __post_init__(self) -> None:
        """Validate before any trial runs."""
        self._validate()

    def _validate(self) -> None:
        if type(self) is Scenario:
            raise ConfigurationError(
                f"Scenario is abstract; use one of {sorted(SCENARIO_KINDS)}"
            )
        if not (math.isfinite(self.dt) and self.dt > 0):
            raise ConfigurationError(f"Time step must be positive, got dt={self.dt}")
        if not (math.isfinite(self.max_time) and self.max_time > 0):
            raise ConfigurationError(f"max_time must be positive, got {self.max_time}")
        if self.dt > self.max_time:
            raise ConfigurationError(
                f"Time step dt={self.dt} exceeds max_time={self.max_time}"
            )
        self.sampler().validate(self.parameters)

    @property
    def max_steps(self) -> int:
        """Number of steps needed to reach ``max_time``."""
        return math.ceil(self.max_time / self.dt - _STEP_ROUNDING)

    def sampler(self) -> ParameterSampler:
        """Sampler over this scenario's uncertain parameters."""
        return ParameterSampler(self.distributions)

    def new_reducer(self) -> Reducer:
        """Fresh summary fold for one trial."""
        raise NotImplementedError

    def stop_reason(self, sample: TrajectorySample, step: int) -> TrialStatus | None:
        """Terminal status after ``step`` steps, or None to keep going."""
        if step >= self.max_steps:
            return TrialStatus.COMPLETED
        return None


@beartype
@dataclass(frozen=True, slots=True)
class BurnProfile(Scenario):
    """Fixed-span run summarizing burn time, peak thrust and impulse."""

    kind: ClassVar[str] = "burn_profile"

    max_time: float = 2.0

    def new_reducer(self) -> BurnReducer:
        return BurnReducer()


@beartype
@dataclass(frozen=True, slots=True)
class TrackRace(Scenario):
    """Race to a finish line at ``track_length`` metres.

    Attributes:
        track_length: Distance to the finish line [m]
    """

    kind: ClassVar[str] = "track_race"

    max_time: float = 3.0
    track_length: float = 20.0

    def _validate(self) -> None:
        Scenario._validate(self)
        if not (math.isfinite(self.track_length) and self.track_length > 0):
            raise ConfigurationError(
                f"track_length must be positive, got {self.track_length}"
            )

    def new_reducer(self) -> RaceReducer:
        return RaceReducer(self.track_length)

    def stop_reason(self, sample: TrajectorySample, step: int) -> TrialStatus | None:
        status = Scenario.stop_reason(self, sample, step)
        if status is None and sample.position >= self.track_length:
            status = TrialStatus.COMPLETED
        return status


@beartype
@dataclass(frozen=True, slots=True)
class FrictionStability(Scenario):
    """Run until thrust minus drag drops below the friction force.

    A trial that loses propulsion ends FAILED with the failure time recorded;
    one that reaches the time limit first ends COMPLETED.
    """

    kind: ClassVar[str] = "friction_stability"

    max_time: float = 3.0

    def new_reducer(self) -> FrictionReducer:
        return FrictionReducer()

    def stop_reason(self, sample: TrajectorySample, step: int) -> TrialStatus | None:
        status = Scenario.stop_reason(self, sample, step)
        if status is None and sample.thrust - sample.drag < sample.friction:
            status = TrialStatus.FAILED
        return status


SCENARIO_KINDS: dict[str, type[Scenario]] = {
    cls.kind: cls for cls in (BurnProfile, TrackRace, FrictionStability)
}
