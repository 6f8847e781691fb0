#!/usr/bin/env python
"""Track race Monte Carlo example for Dragster.

Races the reference car over 20 m with uncertain mass, friction and
drag, runs the trials on a process pool, and stores the scenario and the
per-trial table in a project directory.
"""

import logging
import tempfile

import numpy as np

from dragster import MonteCarloDriver, Normal, TrackRace, Uniform
from dragster.storage import LocalStorage, ResultsFile, ScenarioFile


def main() -> None:
    """Run the track race example."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 70)
    print("Dragster - Track Race Monte Carlo")
    print("=" * 70)
    print()

    scenario = TrackRace(
        track_length=20.0,
        distributions={
            "vehicle.mass": Normal(0.055, 0.002),
            "vehicle.drag_coefficient": Normal(0.32, 0.02),
            "vehicle.mu_kinetic": Uniform(0.01, 0.02),
            "propulsion.thrust_scale": Normal(1.0, 0.03),
        },
        dt=0.001,
        max_time=3.0,
    )

    results = MonteCarloDriver(scenario).run(n_trials=100, seed=7, n_workers=2)
    print(results.summary())
    print()

    finish = results.metric("finish_time")
    print(f"Finished the track: {int(np.isfinite(finish).sum())} of {results.n_valid}")
    print(f"Median finish time: {results.percentile('finish_time', 50):.3f} s")
    print()

    with tempfile.TemporaryDirectory() as tmp:
        storage = LocalStorage(tmp)
        storage.save_scenario(ScenarioFile.from_scenario(scenario, name="reference_car"))
        record = ResultsFile.from_results(results, name="track_race", scenario_name="reference_car")
        storage.save_results(record, results.to_dataframe())

        loaded, table = storage.load_results("track_race", "reference_car")
        print(f"Stored results: {storage.list_results()}")
        print(f"Valid trials on disk: {loaded.summary['n_valid']}, table rows: {table.height}")


if __name__ == "__main__":
    main()
