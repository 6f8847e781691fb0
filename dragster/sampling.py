"""Probability distributions and per-trial parameter sampling.

Uncertain parameters are addressed by dotted paths into TrialParameters,
for example ``"vehicle.mass"`` or ``"propulsion.thrust_scale"``. Each path
gets one independent draw per trial; correlations are not modeled, and no
physical bounds are applied to the drawn values.

Example:
    >>> import numpy as np
    >>> from dragster.parameters import TrialParameters
    >>> from dragster.sampling import Normal, ParameterSampler, Uniform
    >>>
    >>> sampler = ParameterSampler({
    ...     "vehicle.mass": Normal(0.055, 0.002),
    ...     "vehicle.mu_kinetic": Uniform(0.01, 0.02),
    ... })
    >>> params = sampler.sample(TrialParameters(), np.random.default_rng(42))
"""

import math
from dataclasses import dataclass, fields, is_dataclass, replace
from typing import Any

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from dragster.errors import ConfigurationError
from dragster.parameters import TrialParameters

# =============================================================================
# Distributions
# =============================================================================


@beartype
@dataclass(frozen=True, slots=True)
class Distribution:
    """Base class for probability distributions of uncertain parameters."""

    def sample(self, n: int, rng: np.random.Generator) -> NDArray[np.float64]:
        """Generate n samples from the distribution."""
        raise NotImplementedError

    def draw(self, rng: np.random.Generator) -> float:
        """Generate a single sample."""
        return float(self.sample(1, rng)[0])


@beartype
@dataclass(frozen=True, slots=True)
class Normal(Distribution):
    """Normal (Gaussian) distribution.

    A zero standard deviation always yields exactly the mean.

    Args:
        mean: Distribution mean
        std: Standard deviation
    """

    mean: float | int
    std: float | int

    def __post_init__(self) -> None:
        """Validate distribution parameters."""
        if not (math.isfinite(self.mean) and math.isfinite(self.std)):
            raise ConfigurationError(f"Normal parameters must be finite, got {self}")
        if self.std < 0:
            raise ConfigurationError(f"Standard deviation must be non-negative, got {self.std}")

    def sample(self, n: int, rng: np.random.Generator) -> NDArray[np.float64]:
        """Generate n samples from the distribution."""
        return rng.normal(self.mean, self.std, n)


@beartype
@dataclass(frozen=True, slots=True)
class Uniform(Distribution):
    """Uniform distribution on [low, high).

    Args:
        low: Lower bound
        high: Upper bound
    """

    low: float | int
    high: float | int

    def __post_init__(self) -> None:
        """Validate distribution parameters."""
        if not (math.isfinite(self.low) and math.isfinite(self.high)):
            raise ConfigurationError(f"Uniform bounds must be finite, got {self}")
        if self.low > self.high:
            raise ConfigurationError(
                f"Uniform lower bound {self.low} exceeds upper bound {self.high}"
            )

    def sample(self, n: int, rng: np.random.Generator) -> NDArray[np.float64]:
        """Generate n samples from the distribution."""
        return rng.uniform(self.low, self.high, n)


# =============================================================================
# Parameter Paths
# =============================================================================


def _split_path(path: str) -> tuple[str, str]:
    group, _, name = path.partition(".")
    if not group or not name or "." in name:
        raise ConfigurationError(
            f"Parameter path '{path}' must have the form '<group>.<field>', "
            "e.g. 'vehicle.mass'"
        )
    return group, name


@beartype
def get_parameter(params: TrialParameters, path: str) -> Any:
    """Look up a parameter value by dotted path."""
    group, name = _split_path(path)
    return getattr(getattr(params, group), name)


@beartype
def validate_path(params: TrialParameters, path: str) -> None:
    """Check that ``path`` names a float field of ``params``.

    Raises:
        ConfigurationError: If the group or field does not exist, or the field
            is not a continuous (float) parameter
    """
    group, name = _split_path(path)
    valid_groups = [f.name for f in fields(params)]
    if group not in valid_groups:
        raise ConfigurationError(
            f"Unknown parameter group '{group}' in '{path}'. Valid groups: {valid_groups}"
        )

    target = getattr(params, group)
    if not is_dataclass(target):
        raise ConfigurationError(f"Parameter group '{group}' is not a dataclass")

    valid_fields = {f.name for f in fields(target)}
    if name not in valid_fields:
        raise ConfigurationError(
            f"Parameter '{name}' not found in {type(target).__name__}. "
            f"Valid fields: {sorted(valid_fields)}"
        )

    value = getattr(target, name)
    if isinstance(value, bool) or not isinstance(value, float):
        raise ConfigurationError(
            f"Parameter '{path}' is {type(value).__name__}; only float fields can be sampled"
        )


# =============================================================================
# Parameter Sampler
# =============================================================================


@beartype
class ParameterSampler:
    """Draws one independent value per uncertain parameter for each trial.

    Example:
        >>> sampler = ParameterSampler({"vehicle.mass": Normal(0.055, 0.002)})
        >>> params = sampler.sample(base, rng)
    """

    def __init__(self, distributions: dict[str, Distribution]) -> None:
        """Initialize sampler.

        Args:
            distributions: Dict mapping dotted parameter paths to distributions.
                Draws are made in insertion order.
        """
        self.distributions = distributions
        for path in distributions:
            _split_path(path)

    def validate(self, base: TrialParameters) -> None:
        """Validate that every path exists in ``base`` and is sampleable."""
        for path in self.distributions:
            validate_path(base, path)

    def draw(self, rng: np.random.Generator) -> dict[str, float]:
        """Draw one value per uncertain parameter, keyed by path."""
        return {path: dist.draw(rng) for path, dist in self.distributions.items()}

    def apply(self, base: TrialParameters, values: dict[str, float]) -> TrialParameters:
        """Create a parameter set with the given paths replaced.

        Args:
            base: Nominal parameters providing all non-sampled values
            values: Dict mapping dotted parameter paths to new values

        Returns:
            New TrialParameters; ``base`` is not modified

        Raises:
            ConfigurationError: If the replaced values leave a parameter
                group structurally inconsistent (for example a thrust
                curve whose spike ends after cutoff)
        """
        updates: dict[str, dict[str, float]] = {}
        for path, value in values.items():
            group, name = _split_path(path)
            updates.setdefault(group, {})[name] = value

        groups = {
            group: replace(getattr(base, group), **changed)
            for group, changed in updates.items()
        }
        return replace(base, **groups)

    def sample(self, base: TrialParameters, rng: np.random.Generator) -> TrialParameters:
        """Create a parameter set with every uncertain field redrawn.

        Args:
            base: Nominal parameters providing all non-sampled values
            rng: Random generator for this trial

        Returns:
            New TrialParameters; ``base`` is not modified
        """
        return self.apply(base, self.draw(rng))
