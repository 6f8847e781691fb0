"""Dragster - Launch dynamics and Monte Carlo analysis for CO2 racers.

This package simulates the one-dimensional launch of a CO2-cartridge racer
under thrust, aerodynamic drag and rolling friction, and runs Monte Carlo
studies over uncertain vehicle and propulsion parameters.

Example:
    >>> from dragster import MonteCarloDriver, Normal, TrackRace
    >>>
    >>> scenario = TrackRace(
    ...     track_length=20.0,
    ...     distributions={"vehicle.mass": Normal(0.055, 0.002)},
    ... )
    >>> results = MonteCarloDriver(scenario).run(n_trials=200, seed=1)
    >>> print(f"Finish: {results.mean('finish_time'):.3f} s")
"""

__version__ = "0.1.0"

# Monte Carlo
from dragster.analysis import (
    FieldStats,
    MonteCarloDriver,
    MonteCarloResults,
    aggregate,
)

# Dynamics
from dragster.dynamics import IntegratorConfig, MotionState, make_integrator
from dragster.errors import ConfigurationError

# Force model
from dragster.forces import ForceBreakdown, evaluate_forces, net_force
from dragster.parameters import TrialParameters
from dragster.propulsion import ChokedFlowNozzle, ConstantThrust, ThrustCurve

# Sampling
from dragster.sampling import Distribution, Normal, ParameterSampler, Uniform

# Scenarios and trials
from dragster.simulation import (
    BurnProfile,
    FrictionStability,
    TrackRace,
    TrialResult,
    TrialRunner,
    TrialStatus,
    simulate,
)
from dragster.vehicle import VehicleParams

__all__ = [
    # Version
    "__version__",
    # Parameters
    "VehicleParams",
    "ThrustCurve",
    "ChokedFlowNozzle",
    "ConstantThrust",
    "TrialParameters",
    # Forces
    "ForceBreakdown",
    "evaluate_forces",
    "net_force",
    # Dynamics
    "MotionState",
    "IntegratorConfig",
    "make_integrator",
    # Sampling
    "Distribution",
    "Normal",
    "Uniform",
    "ParameterSampler",
    # Scenarios
    "BurnProfile",
    "TrackRace",
    "FrictionStability",
    "TrialRunner",
    "TrialResult",
    "TrialStatus",
    "simulate",
    # Monte Carlo
    "MonteCarloDriver",
    "MonteCarloResults",
    "FieldStats",
    "aggregate",
    # Errors
    "ConfigurationError",
]
