"""Per-trial parameter set."""

from dataclasses import dataclass, field

from beartype import beartype

from dragster.propulsion import Propulsion, ThrustCurve
from dragster.vehicle import VehicleParams


@beartype
@dataclass(frozen=True, slots=True)
class TrialParameters:
    """Immutable constants for one trial: the vehicle and its thrust model.

    Monte Carlo sampling produces modified copies; a trial never mutates its
    parameters. Running state such as tank depletion is a function of time
    inside the thrust model, not part of this record.
    """

    vehicle: VehicleParams = field(default_factory=VehicleParams)
    propulsion: Propulsion = field(default_factory=ThrustCurve)
