"""Time histories of a single trial."""

import math
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
import polars as pl
from beartype import beartype
from numpy.typing import NDArray


class TrajectorySample(NamedTuple):
    """State and forces at one output time."""
    time: float              # [s]
    velocity: float          # [m/s]
    position: float          # [m]
    acceleration: float      # [m/s^2]
    angular_velocity: float  # Wheel spin rate [rad/s]
    kinetic_energy: float    # [J]
    net_force: float         # [N]
    thrust: float            # [N]
    drag: float              # [N]
    friction: float          # [N]

    def is_finite(self) -> bool:
        """True if every field is a finite number."""
        return all(math.isfinite(value) for value in self)


@beartype
@dataclass
class Trajectory:
    """Ordered samples of one trial.

    Provides array access for plotting and export. Trajectories are only
    kept when requested; Monte Carlo runs reduce them on the fly.
    """

    samples: list[TrajectorySample] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.samples)

    def append(self, sample: TrajectorySample) -> None:
        """Append the next sample."""
        self.samples.append(sample)

    def column(self, name: str) -> NDArray[np.float64]:
        """History of one sample field."""
        if name not in TrajectorySample._fields:
            raise ValueError(f"Unknown field '{name}'. Available: {list(TrajectorySample._fields)}")
        return np.array([getattr(s, name) for s in self.samples], dtype=np.float64)

    def series(self, name: str) -> list[tuple[float, float]]:
        """Ordered ``(t, value)`` pairs for one field."""
        return list(zip(self.column("time").tolist(), self.column(name).tolist(), strict=True))

    @property
    def time(self) -> NDArray[np.float64]:
        """Time array [s]."""
        return self.column("time")

    @property
    def velocity(self) -> NDArray[np.float64]:
        """Velocity history [m/s]."""
        return self.column("velocity")

    @property
    def position(self) -> NDArray[np.float64]:
        """Position history [m]."""
        return self.column("position")

    @property
    def acceleration(self) -> NDArray[np.float64]:
        """Acceleration history [m/s^2]."""
        return self.column("acceleration")

    @property
    def kinetic_energy(self) -> NDArray[np.float64]:
        """Kinetic energy history [J]."""
        return self.column("kinetic_energy")

    @property
    def net_force(self) -> NDArray[np.float64]:
        """Net force history [N]."""
        return self.column("net_force")

    @property
    def thrust(self) -> NDArray[np.float64]:
        """Thrust history [N]."""
        return self.column("thrust")

    def at_time(self, t: float) -> TrajectorySample:
        """Sample closest to time ``t``."""
        if not self.samples:
            raise ValueError("Trajectory is empty")
        idx = int(np.argmin(np.abs(self.time - t)))
        return self.samples[idx]

    def to_dataframe(self) -> pl.DataFrame:
        """Convert to Polars DataFrame."""
        return pl.DataFrame(
            {name: self.column(name) for name in TrajectorySample._fields}
        )
