"""Smoke tests for all example scripts.

These tests verify that examples run without errors.
They don't verify correctness of results, just that the code executes.
"""

import subprocess
import sys
from pathlib import Path

EXAMPLES_DIR = Path(__file__).parent.parent / "dragster" / "examples"


def run_example(example_name: str, timeout: int = 300) -> subprocess.CompletedProcess:
    """Run an example script and return the result."""
    script_path = EXAMPLES_DIR / f"{example_name}.py"

    return subprocess.run(
        [sys.executable, str(script_path)],
        capture_output=True,
        text=True,
        timeout=timeout,
        cwd=Path(__file__).parent.parent,
    )


class TestExamplesSmoke:
    """Smoke tests that verify examples run without crashing."""

    def test_basic_race_runs(self) -> None:
        result = run_example("basic_race")
        assert result.returncode == 0, f"basic_race failed:\n{result.stderr}"
        assert "Finish time" in result.stdout

    def test_burn_profile_runs(self) -> None:
        result = run_example("burn_profile")
        assert result.returncode == 0, f"burn_profile failed:\n{result.stderr}"

    def test_track_race_runs(self) -> None:
        result = run_example("track_race")
        assert result.returncode == 0, f"track_race failed:\n{result.stderr}"

    def test_friction_stability_runs(self) -> None:
        result = run_example("friction_stability")
        assert result.returncode == 0, f"friction_stability failed:\n{result.stderr}"
