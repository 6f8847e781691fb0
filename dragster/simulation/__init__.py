"""Simulation module for single racer trials.

Provides the scenario descriptors, the trial runner that steps a scenario
to termination, and the summary records trials reduce to.

Example:
    >>> from dragster.simulation import BurnProfile, TrialRunner
    >>>
    >>> runner = TrialRunner(BurnProfile(max_time=1.0))
    >>> result = runner.run(record=True)
    >>> print(f"Peak thrust: {result.summary.peak_thrust:.2f} N")
"""

from dragster.simulation.runner import TrialResult, TrialRunner, simulate
from dragster.simulation.scenarios import (
    SCENARIO_KINDS,
    BurnProfile,
    FrictionStability,
    Scenario,
    TrackRace,
)
from dragster.simulation.summaries import (
    BurnSummary,
    FrictionSummary,
    RaceSummary,
    TrialStatus,
    TrialSummary,
)
from dragster.simulation.trajectory import Trajectory, TrajectorySample

__all__ = [
    # Scenarios
    "Scenario",
    "BurnProfile",
    "TrackRace",
    "FrictionStability",
    "SCENARIO_KINDS",
    # Execution
    "TrialRunner",
    "TrialResult",
    "TrialStatus",
    "simulate",
    # Outputs
    "Trajectory",
    "TrajectorySample",
    "BurnSummary",
    "RaceSummary",
    "FrictionSummary",
    "TrialSummary",
]
