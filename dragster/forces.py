"""Instantaneous force model for a CO2 racer.

All functions are pure: they take the time, the current speed and the trial
parameters, and return forces. Velocity clamping belongs to the integrators,
never to these functions.

Sign convention: thrust acts forward, drag and friction are reported as
positive magnitudes that oppose motion, so

    F_net = thrust - drag - friction

Example:
    >>> from dragster.forces import evaluate_forces
    >>> from dragster.parameters import TrialParameters
    >>>
    >>> forces = evaluate_forces(0.05, 3.0, TrialParameters())
    >>> print(f"Net force: {forces.net:.3f} N")
"""

import math
from typing import NamedTuple

import numba
from beartype import beartype

from dragster.parameters import TrialParameters
from dragster.propulsion import Propulsion
from dragster.vehicle import VehicleParams

# =============================================================================
# Kernels (Numba Accelerated)
# =============================================================================


@numba.njit(cache=True)
def drag_coefficient_kernel(
    v: float,
    cd: float,
    rho: float,
    length: float,
    viscosity: float,
    coefficient: float,
    re_ref: float,
    corrected: bool,
) -> float:
    """Drag coefficient with an optional logarithmic Reynolds correction."""
    if not corrected:
        return cd
    re = rho * abs(v) * length / viscosity
    return cd + coefficient * math.log1p(re / re_ref)


@numba.njit(cache=True)
def drag_kernel(v: float, rho: float, cd_eff: float, area: float) -> float:
    """Quadratic aerodynamic drag magnitude [N]."""
    return 0.5 * rho * cd_eff * area * v * v


@numba.njit(cache=True)
def friction_coefficient_kernel(
    v: float,
    mu_static: float,
    mu_kinetic: float,
    threshold: float,
    deformation: float,
) -> float:
    """Effective rolling friction coefficient for the current regime."""
    mu = mu_static if v <= threshold else mu_kinetic
    mu -= deformation
    if mu < 0.0:
        return 0.0
    return mu


# =============================================================================
# Force Model
# =============================================================================


class ForceBreakdown(NamedTuple):
    """All force terms at one instant."""
    thrust: float            # Propulsive force [N]
    drag: float              # Aerodynamic drag magnitude [N]
    friction: float          # Rolling friction magnitude [N]
    net: float               # thrust - drag - friction [N]
    wheel_torque: float      # Torque on each wheel [N·m]
    angular_acceleration: float  # Wheel angular acceleration [rad/s^2]


@beartype
def drag_coefficient(v: float, vehicle: VehicleParams) -> float:
    """Drag coefficient at speed ``v``.

    With the Reynolds correction enabled, Cd grows weakly with speed:
    ``Cd + c * log1p(Re / Re_ref)`` where ``Re = rho * v * L / mu``.
    """
    return drag_coefficient_kernel(
        v,
        vehicle.drag_coefficient,
        vehicle.air_density,
        vehicle.reference_length,
        vehicle.air_viscosity,
        vehicle.reynolds_coefficient,
        vehicle.reynolds_reference,
        vehicle.reynolds_correction,
    )


@beartype
def drag(v: float, vehicle: VehicleParams) -> float:
    """Aerodynamic drag magnitude ``0.5 * rho * Cd * A * v^2`` [N]."""
    return drag_kernel(v, vehicle.air_density, drag_coefficient(v, vehicle), vehicle.frontal_area)


@beartype
def friction_coefficient(v: float, vehicle: VehicleParams) -> float:
    """Static coefficient at or below the threshold speed, kinetic above it.

    The coefficient is reduced by ``vehicle.deformation`` and floored at zero.
    """
    return friction_coefficient_kernel(
        v,
        vehicle.mu_static,
        vehicle.mu_kinetic,
        vehicle.static_threshold,
        vehicle.deformation,
    )


@beartype
def friction(v: float, vehicle: VehicleParams) -> float:
    """Rolling friction magnitude ``mu_eff * m * g`` [N]."""
    return friction_coefficient(v, vehicle) * vehicle.weight


@beartype
def thrust(t: float, propulsion: Propulsion) -> float:
    """Propulsive force at time ``t`` [N]."""
    return propulsion.thrust(t)


@beartype
def wheel_torque(thrust_force: float, vehicle: VehicleParams) -> float:
    """Torque delivered to each wheel ``F * r / n`` [N·m]."""
    return thrust_force * vehicle.wheel_radius / vehicle.num_wheels


@beartype
def angular_acceleration(thrust_force: float, vehicle: VehicleParams) -> float:
    """Wheel angular acceleration from the thrust torque [rad/s^2]."""
    return wheel_torque(thrust_force, vehicle) / vehicle.wheel_inertia


@beartype
def net_force(t: float, v: float, params: TrialParameters) -> float:
    """Net longitudinal force ``thrust - drag - friction`` [N]."""
    vehicle = params.vehicle
    return thrust(t, params.propulsion) - drag(v, vehicle) - friction(v, vehicle)


@beartype
def evaluate_forces(t: float, v: float, params: TrialParameters) -> ForceBreakdown:
    """Evaluate every force term at time ``t`` and speed ``v``.

    Args:
        t: Time since ignition [s]
        v: Current speed, already clamped by the caller [m/s]
        params: Trial parameters

    Returns:
        ForceBreakdown with thrust, drag, friction, net force and wheel terms
    """
    vehicle = params.vehicle
    f_thrust = thrust(t, params.propulsion)
    f_drag = drag(v, vehicle)
    f_friction = friction(v, vehicle)
    torque = wheel_torque(f_thrust, vehicle)

    return ForceBreakdown(
        thrust=f_thrust,
        drag=f_drag,
        friction=f_friction,
        net=f_thrust - f_drag - f_friction,
        wheel_torque=torque,
        angular_acceleration=torque / vehicle.wheel_inertia,
    )
