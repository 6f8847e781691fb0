"""Physical description of a CO2 racer.

All vehicle constants live in one frozen dataclass that is passed explicitly
to every force evaluation. Monte Carlo trials create modified copies with
``dataclasses.replace``; nothing here is process-wide mutable state.

Example:
    >>> from dragster.vehicle import VehicleParams
    >>>
    >>> car = VehicleParams(mass=0.060, drag_coefficient=0.30)
    >>> print(f"Weight: {car.weight:.3f} N")
"""

from dataclasses import dataclass

from beartype import beartype

from dragster.errors import ConfigurationError

# =============================================================================
# Constants
# =============================================================================

G0: float = 9.81  # m/s^2
RHO_AIR: float = 1.225  # kg/m^3
MU_AIR: float = 1.8e-5  # Dynamic viscosity of air [Pa·s]

WHEEL_MASS: float = 0.002  # kg
WHEEL_RADIUS: float = 0.015  # m


@beartype
@dataclass(frozen=True, slots=True)
class VehicleParams:
    """Vehicle, wheel and environment constants for one trial.

    Only structural fields are validated. Sampled quantities such as mass are
    accepted as drawn, so a normal draw can produce an unphysical vehicle.

    Attributes:
        mass: Vehicle mass [kg]
        gravity: Gravitational acceleration [m/s^2]
        air_density: Air density [kg/m^3]
        drag_coefficient: Baseline drag coefficient [-]
        frontal_area: Frontal reference area [m^2]
        reference_length: Length used for the Reynolds number [m]
        air_viscosity: Dynamic viscosity of air [Pa·s]
        reynolds_correction: Apply the logarithmic Cd correction
        reynolds_coefficient: Scale of the Cd correction [-]
        reynolds_reference: Reynolds number normalising the correction [-]
        mu_static: Static friction coefficient [-]
        mu_kinetic: Kinetic friction coefficient [-]
        static_threshold: Speed at or below which static friction applies [m/s]
        deformation: Reduction of the friction coefficient from tire/track
            softness [-]
        wheel_radius: Wheel radius [m]
        wheel_inertia: Moment of inertia of one wheel [kg·m^2]
        num_wheels: Number of driven wheels
    """

    mass: float = 0.055
    gravity: float = G0
    air_density: float = RHO_AIR
    drag_coefficient: float = 0.32
    frontal_area: float = 0.002
    reference_length: float = 0.1
    air_viscosity: float = MU_AIR
    reynolds_correction: bool = True
    reynolds_coefficient: float = 0.01
    reynolds_reference: float = 1e4
    mu_static: float = 0.04
    mu_kinetic: float = 0.015
    static_threshold: float = 0.01
    deformation: float = 0.0
    wheel_radius: float = WHEEL_RADIUS
    wheel_inertia: float = 0.5 * WHEEL_MASS * WHEEL_RADIUS**2
    num_wheels: int = 4

    def __post_init__(self) -> None:
        """Validate structural parameters."""
        if self.num_wheels <= 0:
            raise ConfigurationError(f"num_wheels must be positive, got {self.num_wheels}")
        if self.static_threshold < 0:
            raise ConfigurationError(
                f"static_threshold must be non-negative, got {self.static_threshold}"
            )
        if self.reynolds_correction and self.reynolds_reference <= 0:
            raise ConfigurationError(
                f"reynolds_reference must be positive, got {self.reynolds_reference}"
            )

    @property
    def weight(self) -> float:
        """Normal force on the track [N]."""
        return self.mass * self.gravity
