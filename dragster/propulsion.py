"""Thrust models for a CO2 cartridge.

Three interchangeable models share one method, ``thrust(t)``, a pure function
of time since ignition:

- ThrustCurve: empirical curve with a fast exponential spike, a slower
  exponential tail and a hard cutoff.
- ChokedFlowNozzle: choked mass flow through the cartridge nozzle times the
  isentropic exit velocity, with a geometrically depleting tank.
- ConstantThrust: a fixed force, for verification and failure studies.

The flow relations are the ideal-gas isentropic equations, evaluated in
numba-compiled kernels.

References:
    - Sutton & Biblarz, "Rocket Propulsion Elements", 9th Ed.

Example:
    >>> from dragster.propulsion import ThrustCurve
    >>>
    >>> curve = ThrustCurve()
    >>> print(f"Thrust at ignition: {curve.thrust(0.0):.1f} N")
"""

import math
from dataclasses import dataclass
from typing import NamedTuple

import numba
from beartype import beartype

from dragster.errors import ConfigurationError

# =============================================================================
# Constants
# =============================================================================

GAMMA_CO2: float = 1.3  # Ratio of specific heats [-]
R_CO2: float = 188.9  # Specific gas constant [J/(kg·K)]
P_AMBIENT: float = 101325.0  # Pa


# =============================================================================
# Kernels (Numba Accelerated)
# =============================================================================


@numba.njit(cache=True)
def thrust_curve_kernel(
    t: float,
    baseline: float,
    spike_amplitude: float,
    spike_decay: float,
    spike_end: float,
    tail_decay: float,
    cutoff: float,
) -> float:
    """Evaluate the piecewise empirical thrust curve.

    Args:
        t: Time since ignition [s]
        baseline: Constant thrust during the spike phase [N]
        spike_amplitude: Initial amplitude of the spike [N]
        spike_decay: Spike decay rate [1/s]
        spike_end: End of the spike phase [s]
        tail_decay: Tail decay rate [1/s]
        cutoff: Time after which thrust is zero [s]

    Returns:
        Thrust [N]
    """
    if t < 0.0 or t >= cutoff:
        return 0.0
    if t < spike_end:
        return spike_amplitude * math.exp(-spike_decay * t) + baseline

    # Tail starts at the end-of-spike value and reaches zero at the cutoff
    start = spike_amplitude * math.exp(-spike_decay * spike_end) + baseline
    s = t - spike_end
    span = cutoff - spike_end
    if tail_decay == 0.0:
        return start * (1.0 - s / span)
    floor = math.exp(-tail_decay * span)
    return start * (math.exp(-tail_decay * s) - floor) / (1.0 - floor)


@numba.njit(cache=True)
def mass_flow_rate_from_throat(
    pc: float, At: float, gamma: float, R: float, Tc: float
) -> float:
    """Calculate choked mass flow rate from stagnation conditions.

    Args:
        pc: Stagnation (tank) pressure [Pa]
        At: Effective throat area [m^2]
        gamma: Ratio of specific heats [-]
        R: Specific gas constant [J/(kg·K)]
        Tc: Stagnation (tank) temperature [K]

    Returns:
        Mass flow rate [kg/s]
    """
    gp1 = gamma + 1.0
    gm1 = gamma - 1.0

    term1 = pc * At
    term2 = gamma / (R * Tc)
    term3 = (2.0 / gp1) ** (gp1 / gm1)

    return term1 * math.sqrt(term2 * term3)


@numba.njit(cache=True)
def exhaust_velocity(gamma: float, R: float, Tc: float, pe_pc: float) -> float:
    """Calculate isentropic exhaust velocity.

    Args:
        gamma: Ratio of specific heats [-]
        R: Specific gas constant [J/(kg·K)]
        Tc: Stagnation temperature [K]
        pe_pc: Exit pressure / stagnation pressure ratio [-]

    Returns:
        Exhaust velocity [m/s]
    """
    gm1 = gamma - 1.0
    exponent = gm1 / gamma

    term1 = 2.0 * gamma * R * Tc / gm1
    term2 = 1.0 - pe_pc**exponent

    return math.sqrt(term1 * term2)


# =============================================================================
# Thrust Models
# =============================================================================


@beartype
@dataclass(frozen=True, slots=True)
class ThrustCurve:
    """Empirical CO2 thrust curve: spike, decaying tail, cutoff.

    The tail is an exponential shifted so that it starts at the end-of-spike
    value and reaches exactly zero at the cutoff; the curve is continuous
    everywhere.

    Attributes:
        baseline: Constant component during the spike phase [N]
        spike_amplitude: Amplitude of the initial spike [N]
        spike_decay: Decay rate of the spike [1/s]
        spike_end: End of the spike phase [s]
        tail_decay: Decay rate of the tail [1/s]
        cutoff: Burnout time [s]
        thrust_scale: Multiplier on the whole curve [-]
    """

    baseline: float = 2.0
    spike_amplitude: float = 12.5
    spike_decay: float = 25.0
    spike_end: float = 0.12
    tail_decay: float = 8.0
    cutoff: float = 0.25
    thrust_scale: float = 1.0

    def __post_init__(self) -> None:
        """Validate curve breakpoints."""
        if not 0.0 <= self.spike_end < self.cutoff:
            raise ConfigurationError(
                f"Require 0 <= spike_end < cutoff, got spike_end={self.spike_end}, "
                f"cutoff={self.cutoff}"
            )

    def thrust(self, t: float) -> float:
        """Thrust at time ``t`` since ignition [N]."""
        return self.thrust_scale * thrust_curve_kernel(
            t,
            self.baseline,
            self.spike_amplitude,
            self.spike_decay,
            self.spike_end,
            self.tail_decay,
            self.cutoff,
        )


class TankState(NamedTuple):
    """Cartridge gas state at a point in time."""
    pressure: float     # Stagnation pressure [Pa]
    temperature: float  # Stagnation temperature [K]


@beartype
@dataclass(frozen=True, slots=True)
class ChokedFlowNozzle:
    """Choked-flow cartridge model with a depleting tank.

    Thrust is ``mdot * ve``: choked mass flow through the nozzle times the
    isentropic exit velocity for expansion to ambient pressure. Tank pressure
    and temperature shrink by the factors ``exp(-dt/tau)`` every step, which
    is the closed form ``p0 * exp(-t/tau_p)``. This models cartridge
    exhaustion and gas cooling, not an exact blowdown.

    Requiring ``tau_p <= 2 * tau_T`` keeps the mass flow, the exit velocity,
    and therefore the thrust, monotonically decreasing.

    Attributes:
        nozzle_area: Nozzle throat area [m^2]
        discharge_coefficient: Ratio of actual to ideal flow [-]
        gamma: Ratio of specific heats [-]
        gas_constant: Specific gas constant [J/(kg·K)]
        initial_pressure: Tank pressure at ignition [Pa]
        initial_temperature: Tank temperature at ignition [K]
        ambient_pressure: Exit (ambient) pressure [Pa]
        pressure_time_constant: Pressure depletion time constant [s]
        temperature_time_constant: Cooling time constant [s]
        thrust_scale: Multiplier on thrust [-]
    """

    nozzle_area: float = 7.85e-7  # 1 mm diameter
    discharge_coefficient: float = 0.8
    gamma: float = GAMMA_CO2
    gas_constant: float = R_CO2
    initial_pressure: float = 5.8e6
    initial_temperature: float = 293.15
    ambient_pressure: float = P_AMBIENT
    pressure_time_constant: float = 0.1
    temperature_time_constant: float = 0.5
    thrust_scale: float = 1.0

    def __post_init__(self) -> None:
        """Validate flow and depletion parameters."""
        if self.gamma <= 1.0:
            raise ConfigurationError(f"gamma must exceed 1, got {self.gamma}")
        if self.pressure_time_constant <= 0 or self.temperature_time_constant <= 0:
            raise ConfigurationError("Depletion time constants must be positive")
        if self.pressure_time_constant > 2.0 * self.temperature_time_constant:
            raise ConfigurationError(
                "pressure_time_constant must not exceed twice temperature_time_constant; "
                "thrust would not decrease monotonically"
            )

    def tank_state(self, t: float) -> TankState:
        """Tank pressure and temperature at time ``t``."""
        t = max(t, 0.0)
        return TankState(
            pressure=self.initial_pressure * math.exp(-t / self.pressure_time_constant),
            temperature=self.initial_temperature * math.exp(-t / self.temperature_time_constant),
        )

    def mass_flow_rate(self, t: float) -> float:
        """Gas mass flow rate at time ``t`` [kg/s]."""
        tank = self.tank_state(t)
        if t < 0.0 or tank.pressure <= self.ambient_pressure:
            return 0.0
        return mass_flow_rate_from_throat(
            tank.pressure,
            self.discharge_coefficient * self.nozzle_area,
            self.gamma,
            self.gas_constant,
            tank.temperature,
        )

    def thrust(self, t: float) -> float:
        """Thrust at time ``t`` since ignition [N]."""
        mdot = self.mass_flow_rate(t)
        if mdot == 0.0:
            return 0.0
        tank = self.tank_state(t)
        ve = exhaust_velocity(
            self.gamma,
            self.gas_constant,
            tank.temperature,
            self.ambient_pressure / tank.pressure,
        )
        return self.thrust_scale * mdot * ve

    def burnout_time(self) -> float:
        """Time at which tank pressure falls to ambient [s]."""
        if self.initial_pressure <= self.ambient_pressure:
            return 0.0
        return self.pressure_time_constant * math.log(self.initial_pressure / self.ambient_pressure)


@beartype
@dataclass(frozen=True, slots=True)
class ConstantThrust:
    """Constant applied force until an optional cutoff.

    Attributes:
        force: Applied force [N]
        cutoff: Time after which the force is removed [s]
    """

    force: float = 10.0
    cutoff: float = math.inf

    def thrust(self, t: float) -> float:
        """Thrust at time ``t`` since ignition [N]."""
        if t < 0.0 or t >= self.cutoff:
            return 0.0
        return self.force


Propulsion = ThrustCurve | ChokedFlowNozzle | ConstantThrust
