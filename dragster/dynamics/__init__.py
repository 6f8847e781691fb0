"""Dynamics module for one-dimensional racer simulation.

This module provides the motion state and the integration strategies that
advance it under the force model.

Example:
    >>> from dragster.dynamics import EulerIntegrator, MotionState
    >>> from dragster.parameters import TrialParameters
    >>>
    >>> state = MotionState()
    >>> state = EulerIntegrator().advance(state, 0.0, 0.001, TrialParameters())
"""

from dragster.dynamics.integrators import (
    AdaptiveIntegrator,
    EulerIntegrator,
    Integrator,
    IntegratorConfig,
    make_integrator,
)
from dragster.dynamics.state import MotionState

__all__ = [
    # State
    "MotionState",
    # Integration
    "Integrator",
    "IntegratorConfig",
    "EulerIntegrator",
    "AdaptiveIntegrator",
    "make_integrator",
]
