"""Time integration of the racer equations of motion.

Two interchangeable strategies share ``advance(state, t, dt, params)``:

- EulerIntegrator: fixed-step explicit Euler, numba-compiled step core.
- AdaptiveIntegrator: embedded high-order Runge-Kutta (scipy ``solve_ivp``)
  over the coupled system [v, x, a_s, omega] with local error control.

The adaptive state includes a smoothed acceleration ``a_s`` that relaxes
toward the instantaneous acceleration with a short time constant,

    d(a_s)/dt = (a - a_s) / tau

giving a continuous acceleration trace that can be differentiated further.

Neither strategy lets the vehicle reverse: velocity is clamped at zero where
it is updated.

Example:
    >>> from dragster.dynamics import IntegratorConfig, MotionState, make_integrator
    >>> from dragster.parameters import TrialParameters
    >>>
    >>> integrator = make_integrator(IntegratorConfig(method="adaptive"))
    >>> state = integrator.advance(MotionState(), 0.0, 0.001, TrialParameters())
"""

import math
from dataclasses import dataclass
from typing import Literal, Protocol

import numba
import numpy as np
from beartype import beartype
from numpy.typing import NDArray
from scipy.integrate import solve_ivp

from dragster.dynamics.state import N_INTEGRATED, MotionState
from dragster.errors import ConfigurationError
from dragster.forces import evaluate_forces, net_force
from dragster.parameters import TrialParameters

# =============================================================================
# Configuration
# =============================================================================


@beartype
@dataclass(frozen=True, slots=True)
class IntegratorConfig:
    """Integrator selection and tolerances.

    Attributes:
        method: "euler" for fixed-step explicit, "adaptive" for error-controlled
        rtol: Relative tolerance (adaptive only)
        atol: Absolute tolerance (adaptive only)
        max_evaluations: Right-hand-side evaluation budget per step (adaptive only)
        smoothing_time: Relaxation time constant of the smoothed acceleration [s]
        solver: scipy ``solve_ivp`` method (adaptive only)
    """

    method: Literal["euler", "adaptive"] = "euler"
    rtol: float = 1e-10
    atol: float = 1e-10
    max_evaluations: int = 100_000
    smoothing_time: float = 0.001
    solver: Literal["DOP853", "RK45", "RK23"] = "DOP853"

    def __post_init__(self) -> None:
        """Validate tolerances and budget."""
        if self.rtol <= 0 or self.atol <= 0:
            raise ConfigurationError(
                f"Tolerances must be positive, got rtol={self.rtol}, atol={self.atol}"
            )
        if self.max_evaluations <= 0:
            raise ConfigurationError(
                f"max_evaluations must be positive, got {self.max_evaluations}"
            )
        if self.smoothing_time <= 0:
            raise ConfigurationError(
                f"smoothing_time must be positive, got {self.smoothing_time}"
            )


class Integrator(Protocol):
    """Protocol for integration strategies."""

    def advance(
        self,
        state: MotionState,
        t: float,
        dt: float,
        params: TrialParameters,
    ) -> MotionState:
        """Advance ``state`` from ``t`` to ``t + dt``."""
        ...


# =============================================================================
# Numba-Optimized Kernels
# =============================================================================


@numba.njit(cache=True, error_model="numpy")
def _euler_step_core(
    v: float,
    x: float,
    omega: float,
    f_net: float,
    alpha: float,
    mass: float,
    dt: float,
) -> tuple[float, float, float, float]:
    """Single explicit Euler step with velocity clamped at zero.

    Returns the effective acceleration ``(v_new - v) / dt`` so that a clamped
    step reports zero rather than the unrealised deceleration.
    """
    a = f_net / mass
    v_new = v + a * dt
    if v_new < 0.0:
        v_new = 0.0
    x_new = x + v_new * dt
    omega_new = omega + alpha * dt
    return v_new, x_new, (v_new - v) / dt, omega_new


@numba.njit(cache=True, error_model="numpy")
def _derivative_kernel(
    v: float,
    a_smoothed: float,
    f_net: float,
    alpha: float,
    mass: float,
    tau: float,
) -> tuple[float, float, float, float]:
    """Derivatives of [v, x, a_s, omega] for the adaptive integrator."""
    if v < 0.0:
        v = 0.0
    a = f_net / mass
    # A stationary vehicle cannot be pushed backwards by friction
    if v <= 0.0 and a < 0.0:
        a = 0.0
    return a, v, (a - a_smoothed) / tau, alpha


# =============================================================================
# Integrators
# =============================================================================


@beartype
class EulerIntegrator:
    """Fixed-step explicit Euler integration.

    ``v <- max(0, v + a*dt)``, ``x <- x + v*dt`` with the acceleration
    recomputed from the forces at ``(t, v)`` each step.
    """

    def advance(
        self,
        state: MotionState,
        t: float,
        dt: float,
        params: TrialParameters,
    ) -> MotionState:
        """Advance one step of size ``dt``."""
        vehicle = params.vehicle
        forces = evaluate_forces(t, state.velocity, params)

        v, x, a, omega = _euler_step_core(
            state.velocity,
            state.position,
            state.angular_velocity,
            forces.net,
            forces.angular_acceleration,
            vehicle.mass,
            dt,
        )

        return MotionState(
            velocity=v,
            position=x,
            acceleration=a,
            angular_velocity=omega,
            kinetic_energy=0.5 * vehicle.mass * v * v,
            net_force=net_force(t + dt, v, params) if math.isfinite(v) else math.nan,
        )


class _EvaluationBudgetExceeded(Exception):
    """Raised from inside the right-hand side to abort ``solve_ivp``."""


@beartype
class AdaptiveIntegrator:
    """Error-controlled high-order integration of the coupled state.

    Each ``advance`` call integrates from ``t`` to ``t + dt`` with scipy's
    embedded Runge-Kutta pairs, choosing internal step sizes to meet
    ``rtol``/``atol``. Failing to converge within ``max_evaluations``
    right-hand-side evaluations raises ConfigurationError.

    Only the four fields of ``MotionState.to_array`` are integrated.
    Kinetic energy and net force in the returned state are instantaneous
    values at ``t + dt`` (0.5*m*v**2 and F_net), not accumulated quantities.
    """

    def __init__(self, config: IntegratorConfig | None = None) -> None:
        """Initialize integrator.

        Args:
            config: Tolerances, solver choice and evaluation budget
        """
        self.config = config or IntegratorConfig(method="adaptive")

    def derivatives(
        self,
        t: float,
        y: NDArray[np.float64],
        params: TrialParameters,
    ) -> NDArray[np.float64]:
        """Time derivative of the integrated state array at ``t``."""
        v = max(float(y[0]), 0.0)
        forces = evaluate_forces(t, v, params)
        return np.array(_derivative_kernel(
            v,
            float(y[2]),
            forces.net,
            forces.angular_acceleration,
            params.vehicle.mass,
            self.config.smoothing_time,
        ))

    def advance(
        self,
        state: MotionState,
        t: float,
        dt: float,
        params: TrialParameters,
    ) -> MotionState:
        """Advance from ``t`` to ``t + dt`` under error control."""
        budget = self.config.max_evaluations
        evaluations = 0
        saw_non_finite = False

        def fun(time: float, y: NDArray[np.float64]) -> NDArray[np.float64]:
            nonlocal evaluations, saw_non_finite
            evaluations += 1
            if evaluations > budget:
                raise _EvaluationBudgetExceeded
            dy = self.derivatives(float(time), y, params)
            if not np.all(np.isfinite(dy)):
                saw_non_finite = True
            return dy

        y0 = state.to_array()
        if not np.all(np.isfinite(fun(t, y0))):
            return _degenerate_state()

        try:
            solution = solve_ivp(
                fun,
                (t, t + dt),
                y0,
                method=self.config.solver,
                rtol=self.config.rtol,
                atol=self.config.atol,
            )
        except _EvaluationBudgetExceeded as e:
            raise ConfigurationError(
                f"Adaptive integrator exceeded {budget} evaluations between "
                f"t={t:.6g} s and t={t + dt:.6g} s without meeting "
                f"rtol={self.config.rtol:g}, atol={self.config.atol:g}"
            ) from e

        if not solution.success:
            if saw_non_finite:
                return _degenerate_state()
            raise ConfigurationError(
                f"Adaptive integrator failed at t={t:.6g} s: {solution.message}"
            )

        y1 = solution.y[:, -1]
        v = max(float(y1[0]), 0.0)
        f_net = net_force(t + dt, v, params) if math.isfinite(v) else math.nan
        return MotionState.from_array(y1, params.vehicle.mass, net_force=f_net)


def _degenerate_state() -> MotionState:
    """State filled with NaN, flagging a numerically degenerate trial."""
    return MotionState.from_array(np.full(N_INTEGRATED, np.nan), math.nan, net_force=math.nan)


# =============================================================================
# Factory
# =============================================================================


@beartype
def make_integrator(config: IntegratorConfig) -> EulerIntegrator | AdaptiveIntegrator:
    """Create the integration strategy selected by ``config.method``."""
    if config.method == "adaptive":
        return AdaptiveIntegrator(config)
    return EulerIntegrator()
