"""One-dimensional motion state of a racer.

The integrated state contains:
- Velocity: forward speed, never negative [m/s]
- Position: distance travelled along the track [m]
- Acceleration: smoothed (adaptive) or step (Euler) acceleration [m/s^2]
- Angular velocity: wheel spin rate [rad/s]

Kinetic energy and net force are derived quantities carried alongside for
output; they are recomputed after every update, not integrated.
"""

import math
from dataclasses import dataclass

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

# Index of each integrated field in the solver array
VELOCITY = 0
POSITION = 1
ACCELERATION = 2
ANGULAR_VELOCITY = 3
N_INTEGRATED = 4


@beartype
@dataclass(frozen=True, slots=True)
class MotionState:
    """State of the vehicle at one instant.

    Attributes:
        velocity: Forward speed [m/s]
        position: Distance from the start line [m]
        acceleration: Longitudinal acceleration [m/s^2]
        angular_velocity: Wheel angular velocity [rad/s]
        kinetic_energy: Translational kinetic energy [J]
        net_force: Net longitudinal force [N]
    """

    velocity: float = 0.0
    position: float = 0.0
    acceleration: float = 0.0
    angular_velocity: float = 0.0
    kinetic_energy: float = 0.0
    net_force: float = 0.0

    def to_array(self) -> NDArray[np.float64]:
        """Convert the integrated fields to a flat array."""
        return np.array([
            self.velocity,
            self.position,
            self.acceleration,
            self.angular_velocity,
        ])

    @classmethod
    def from_array(
        cls,
        arr: NDArray[np.float64],
        mass: float,
        net_force: float = 0.0,
    ) -> "MotionState":
        """Create state from a flat array, clamping velocity at zero."""
        v = max(float(arr[VELOCITY]), 0.0)
        return cls(
            velocity=v,
            position=float(arr[POSITION]),
            acceleration=float(arr[ACCELERATION]),
            angular_velocity=float(arr[ANGULAR_VELOCITY]),
            kinetic_energy=0.5 * mass * v * v,
            net_force=net_force,
        )

    def is_finite(self) -> bool:
        """True if every field is a finite number."""
        return all(
            math.isfinite(value)
            for value in (
                self.velocity,
                self.position,
                self.acceleration,
                self.angular_velocity,
                self.kinetic_energy,
                self.net_force,
            )
        )
