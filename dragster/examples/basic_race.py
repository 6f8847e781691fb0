#!/usr/bin/env python
"""Basic race example for Dragster.

Runs a single trajectory of the reference car down a 20 m track with the
adaptive integrator and prints the launch timeline:

1. Define the vehicle and thrust curve
2. Simulate one recorded trial
3. Report finish time, top speed and the burn phase
4. Export the trajectory table
"""

import logging
import tempfile
from pathlib import Path

from dragster import IntegratorConfig, TrackRace, TrialParameters, VehicleParams, simulate
from dragster.propulsion import ThrustCurve
from dragster.storage import export_trajectory_to_json


def main() -> None:
    """Run the basic race example."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 70)
    print("Dragster - Basic Race Example")
    print("=" * 70)
    print()

    # =========================================================================
    # Step 1: Vehicle and propulsion
    # =========================================================================
    params = TrialParameters(
        vehicle=VehicleParams(mass=0.055, drag_coefficient=0.32),
        propulsion=ThrustCurve(),
    )
    scenario = TrackRace(
        parameters=params,
        track_length=20.0,
        dt=0.002,
        max_time=3.0,
        integrator=IntegratorConfig(method="adaptive"),
    )

    # =========================================================================
    # Step 2: Simulate
    # =========================================================================
    result = simulate(scenario)
    summary = result.summary
    trajectory = result.trajectory

    # =========================================================================
    # Step 3: Report
    # =========================================================================
    print(f"Status:         {result.status.value}")
    print(f"Finish time:    {summary.finish_time:.3f} s")
    print(f"Top speed:      {summary.max_velocity:.2f} m/s")
    print(f"Final position: {summary.final_position:.2f} m")
    print()

    print(f"{'t [s]':>8} {'thrust [N]':>12} {'v [m/s]':>10} {'x [m]':>10} {'a [m/s^2]':>12}")
    print("-" * 56)
    for t in (0.0, 0.05, 0.12, 0.25, 0.5, 1.0):
        sample = trajectory.at_time(t)
        print(
            f"{sample.time:>8.3f} {sample.thrust:>12.3f} {sample.velocity:>10.3f} "
            f"{sample.position:>10.3f} {sample.acceleration:>12.2f}"
        )
    print()

    # =========================================================================
    # Step 4: Export
    # =========================================================================
    with tempfile.TemporaryDirectory() as tmp:
        path = export_trajectory_to_json(
            trajectory,
            Path(tmp) / "basic_race.json",
            metadata={"track_length": scenario.track_length},
        )
        print(f"Trajectory exported: {path.name} ({len(trajectory)} samples)")

    df = trajectory.to_dataframe()
    print(df.select("time", "velocity", "position").tail(3))


if __name__ == "__main__":
    main()
