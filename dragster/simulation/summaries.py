"""Trial outcomes and the folds that produce them.

Each scenario kind reduces its trajectory into a fixed-shape summary. The
reduction is an incremental fold: samples are fed one at a time in order,
so the full trajectory never has to be kept in memory.
"""

import math
from dataclasses import dataclass, fields
from enum import Enum

from beartype import beartype

from dragster.simulation.trajectory import TrajectorySample


class TrialStatus(Enum):
    """Lifecycle of a trial.

    COMPLETED and FAILED are both valid outcomes; FAILED records a modeled
    physical failure. INVALID marks a trial whose integration produced
    non-finite values, or whose sampled values did not form a consistent
    parameter set; it is excluded from aggregate statistics.
    """

    INITIALIZED = "initialized"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    INVALID = "invalid"


# =============================================================================
# Summary Records
# =============================================================================


@beartype
@dataclass(frozen=True, slots=True)
class BurnSummary:
    """Outcome of a burn-profile trial.

    Attributes:
        burn_time: Duration of positive thrust [s]
        peak_thrust: Maximum thrust [N]
        total_impulse: Time integral of thrust [N·s]
        final_velocity: Speed at the end of the run [m/s]
        final_position: Distance at the end of the run [m]
    """

    burn_time: float
    peak_thrust: float
    total_impulse: float
    final_velocity: float
    final_position: float


@beartype
@dataclass(frozen=True, slots=True)
class RaceSummary:
    """Outcome of a track-race trial.

    Attributes:
        finish_time: Time at which the finish line was crossed, NaN if never [s]
        max_velocity: Peak speed [m/s]
        final_position: Distance at the end of the run [m]
        elapsed_time: Simulated time [s]
        finished: Whether the finish line was reached
    """

    finish_time: float
    max_velocity: float
    final_position: float
    elapsed_time: float
    finished: bool


@beartype
@dataclass(frozen=True, slots=True)
class FrictionSummary:
    """Outcome of a friction-stability trial.

    When propulsion is never lost, ``friction_failure_time`` equals the total
    simulated time and ``failed`` is False.

    Attributes:
        friction_failure_time: Time at which applied force fell below friction [s]
        max_displacement: Maximum distance reached [m]
        final_velocity: Speed at the end of the run [m/s]
        total_time: Simulated time [s]
        failed: Whether propulsion loss occurred
    """

    friction_failure_time: float
    max_displacement: float
    final_velocity: float
    total_time: float
    failed: bool


TrialSummary = BurnSummary | RaceSummary | FrictionSummary


@beartype
def invalid_summary(summary_type: type) -> TrialSummary:
    """Summary of a degenerate trial: NaN for every float, False for flags."""
    values = {
        f.name: False if f.type is bool else math.nan
        for f in fields(summary_type)
    }
    return summary_type(**values)


@beartype
def float_fields(summary_type: type) -> list[str]:
    """Names of the numeric (float) fields of a summary type."""
    return [f.name for f in fields(summary_type) if f.type is float]


# =============================================================================
# Reducers
# =============================================================================


class BurnReducer:
    """Running maximum of thrust, left-Riemann impulse sum, burn duration."""

    summary_type = BurnSummary

    def __init__(self) -> None:
        self.peak_thrust = 0.0
        self.total_impulse = 0.0
        self.burn_time = 0.0
        self._last: TrajectorySample | None = None

    def update(self, sample: TrajectorySample) -> None:
        prev = self._last
        if prev is not None:
            self.total_impulse += prev.thrust * (sample.time - prev.time)
            if prev.thrust > 0.0:
                self.burn_time = sample.time
        self.peak_thrust = max(self.peak_thrust, sample.thrust)
        self._last = sample

    def finish(self, status: TrialStatus, elapsed: float) -> BurnSummary:
        last = self._last
        return BurnSummary(
            burn_time=self.burn_time,
            peak_thrust=self.peak_thrust,
            total_impulse=self.total_impulse,
            final_velocity=last.velocity,
            final_position=last.position,
        )


class RaceReducer:
    """Running maximum of speed and the interpolated finish-line crossing."""

    summary_type = RaceSummary

    def __init__(self, track_length: float) -> None:
        self.track_length = track_length
        self.max_velocity = 0.0
        self.finish_time = math.nan
        self._last: TrajectorySample | None = None

    def update(self, sample: TrajectorySample) -> None:
        prev = self._last
        if math.isnan(self.finish_time) and sample.position >= self.track_length:
            if prev is None or sample.position == prev.position:
                self.finish_time = sample.time
            else:
                fraction = (self.track_length - prev.position) / (sample.position - prev.position)
                self.finish_time = prev.time + fraction * (sample.time - prev.time)
        self.max_velocity = max(self.max_velocity, sample.velocity)
        self._last = sample

    def finish(self, status: TrialStatus, elapsed: float) -> RaceSummary:
        return RaceSummary(
            finish_time=self.finish_time,
            max_velocity=self.max_velocity,
            final_position=self._last.position,
            elapsed_time=elapsed,
            finished=not math.isnan(self.finish_time),
        )


class FrictionReducer:
    """Running maximum of displacement; failure time from the trial status."""

    summary_type = FrictionSummary

    def __init__(self) -> None:
        self.max_displacement = 0.0
        self._last: TrajectorySample | None = None

    def update(self, sample: TrajectorySample) -> None:
        self.max_displacement = max(self.max_displacement, sample.position)
        self._last = sample

    def finish(self, status: TrialStatus, elapsed: float) -> FrictionSummary:
        # Without a propulsion loss the failure time falls back to the time limit
        return FrictionSummary(
            friction_failure_time=elapsed,
            max_displacement=self.max_displacement,
            final_velocity=self._last.velocity,
            total_time=elapsed,
            failed=status is TrialStatus.FAILED,
        )


Reducer = BurnReducer | RaceReducer | FrictionReducer
