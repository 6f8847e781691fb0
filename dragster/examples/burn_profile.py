#!/usr/bin/env python
"""Burn profile Monte Carlo example for Dragster.

Compares the empirical thrust curve with the choked-flow cartridge model
under cartridge-to-cartridge variation, and reports burn time, peak thrust
and total impulse statistics for each.
"""

import logging

from dragster import BurnProfile, MonteCarloDriver, Normal, TrialParameters, Uniform
from dragster.propulsion import ChokedFlowNozzle, ThrustCurve


def main() -> None:
    """Run the burn profile example."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 70)
    print("Dragster - Burn Profile Monte Carlo")
    print("=" * 70)
    print()

    # Empirical curve: overall cartridge strength varies by a few percent
    curve = BurnProfile(
        parameters=TrialParameters(propulsion=ThrustCurve()),
        distributions={
            "propulsion.thrust_scale": Normal(1.0, 0.05),
            "propulsion.cutoff": Uniform(0.23, 0.27),
        },
        dt=0.001,
        max_time=0.5,
    )

    # Physical model: fill pressure and depletion rate vary
    nozzle = BurnProfile(
        parameters=TrialParameters(propulsion=ChokedFlowNozzle()),
        distributions={
            "propulsion.initial_pressure": Normal(5.8e6, 0.2e6),
            "propulsion.pressure_time_constant": Uniform(0.08, 0.12),
        },
        dt=0.001,
        max_time=0.6,
    )

    for label, scenario in (("Thrust curve", curve), ("Choked flow", nozzle)):
        results = MonteCarloDriver(scenario).run(n_trials=100, seed=2024)
        print(label)
        print(results.summary())
        lo, hi = results.confidence_interval("total_impulse")
        print(f"Total impulse 95% interval: [{lo:.4f}, {hi:.4f}] N·s")
        print()


if __name__ == "__main__":
    main()
