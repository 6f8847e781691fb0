#!/usr/bin/env python
"""Friction stability example for Dragster.

Finds when propulsion can no longer overcome friction. Tire and track
softness (deformation) and the static friction coefficient are uncertain;
each trial stops as soon as thrust minus drag falls below friction.
"""

import logging

from dragster import (
    FrictionStability,
    MonteCarloDriver,
    Normal,
    TrialParameters,
    Uniform,
    VehicleParams,
)


def main() -> None:
    """Run the friction stability example."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 70)
    print("Dragster - Friction Stability Monte Carlo")
    print("=" * 70)
    print()

    scenario = FrictionStability(
        parameters=TrialParameters(vehicle=VehicleParams(deformation=0.005)),
        distributions={
            "vehicle.mu_static": Normal(0.04, 0.004),
            "vehicle.mu_kinetic": Normal(0.015, 0.002),
            "vehicle.deformation": Uniform(0.0, 0.01),
        },
        dt=0.0005,
        max_time=3.0,
    )

    results = MonteCarloDriver(scenario).run(n_trials=200, seed=11)
    print(results.summary())
    print()
    print(f"Propulsion lost before the time limit: {results.failure_probability() * 100:.1f}%")
    print(f"Mean failure time: {results.mean('friction_failure_time'):.4f} s")
    print(f"Mean distance at failure: {results.mean('max_displacement'):.3f} m")


if __name__ == "__main__":
    main()
