"""Tests for scenario and results persistence."""

import json
import math

import pytest

from dragster.analysis import MonteCarloDriver
from dragster.dynamics import IntegratorConfig
from dragster.parameters import TrialParameters
from dragster.propulsion import ChokedFlowNozzle, ConstantThrust
from dragster.sampling import Normal, Uniform
from dragster.simulation import BurnProfile, FrictionStability, TrackRace, simulate
from dragster.storage import (
    LocalStorage,
    ResultsFile,
    ScenarioFile,
    StorageBackend,
    export_trajectory_to_json,
)
from dragster.vehicle import VehicleParams


class TestScenarioFile:
    """Test scenario serialization."""

    def test_roundtrip_track_race(self) -> None:
        scenario = TrackRace(
            parameters=TrialParameters(
                vehicle=VehicleParams(mass=0.06),
                propulsion=ChokedFlowNozzle(initial_pressure=5.5e6),
            ),
            distributions={
                "vehicle.mass": Normal(0.06, 0.002),
                "propulsion.pressure_time_constant": Uniform(0.08, 0.12),
            },
            track_length=25.0,
            integrator=IntegratorConfig(method="adaptive", rtol=1e-8),
        )
        file = ScenarioFile.from_scenario(scenario, name="nozzle_car")
        restored = ScenarioFile.from_json(file.to_json()).to_scenario()

        assert isinstance(restored, TrackRace)
        assert restored == scenario

    def test_roundtrip_infinite_cutoff(self) -> None:
        scenario = FrictionStability(
            parameters=TrialParameters(propulsion=ConstantThrust(force=0.5)),
        )
        restored = ScenarioFile.from_json(
            ScenarioFile.from_scenario(scenario, name="push").to_json()
        ).to_scenario()
        assert math.isinf(restored.parameters.propulsion.cutoff)
        assert restored == scenario

    def test_kind_recorded(self) -> None:
        data = json.loads(ScenarioFile.from_scenario(BurnProfile(), name="burn").to_json())
        assert data["kind"] == "burn_profile"
        assert data["settings"]["parameters"]["__class__"] == "TrialParameters"

    def test_unknown_kind(self) -> None:
        file = ScenarioFile(name="x", kind="drift", settings={})
        with pytest.raises(ValueError, match="Unknown scenario kind"):
            file.to_scenario()


class TestLocalStorage:
    """Test the project directory backend."""

    def test_is_storage_backend(self, tmp_path) -> None:
        assert isinstance(LocalStorage(tmp_path), StorageBackend)

    def test_scenarios(self, tmp_path) -> None:
        storage = LocalStorage(tmp_path)
        scenario = TrackRace(track_length=15.0)
        storage.save_scenario(ScenarioFile.from_scenario(scenario, name="short", tags=["test"]))

        assert storage.list_scenarios() == ["short"]
        loaded = storage.load_scenario("short")
        assert loaded.tags == ["test"]
        assert loaded.to_scenario() == scenario

        storage.delete_scenario("short")
        assert storage.list_scenarios() == []
        with pytest.raises(FileNotFoundError):
            storage.load_scenario("short")

    def test_results_with_table(self, tmp_path) -> None:
        scenario = BurnProfile(
            distributions={"vehicle.mass": Normal(0.055, 0.002)},
            dt=0.002,
            max_time=0.1,
        )
        results = MonteCarloDriver(scenario).run(n_trials=5, seed=4)
        storage = LocalStorage(tmp_path)
        record = ResultsFile.from_results(results, name="mass", scenario_name="burn")
        storage.save_results(record, results.to_dataframe())

        assert storage.list_results() == ["mass"]
        assert storage.list_results("burn") == ["mass"]
        assert storage.list_results("other") == []

        loaded, table = storage.load_results("mass")
        assert loaded.scenario_kind == "burn_profile"
        assert loaded.summary["n_valid"] == 5
        assert loaded.summary["seed"] == 4
        assert loaded.summary["aggregates"]["peak_thrust"]["count"] == 5
        assert table.height == 5
        assert table["vehicle.mass"].to_list() == results.to_dataframe()["vehicle.mass"].to_list()

    def test_results_without_table(self, tmp_path) -> None:
        storage = LocalStorage(tmp_path)
        storage.save_results(ResultsFile(name="empty", scenario_name="s", scenario_kind="track_race"))
        loaded, table = storage.load_results("empty", "s")
        assert table is None
        assert loaded.data_path is None

    def test_missing_results(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            LocalStorage(tmp_path).load_results("nothing")


class TestTrajectoryExport:
    """Test JSON trajectory export."""

    def test_export(self, tmp_path) -> None:
        trajectory = simulate(BurnProfile(max_time=0.05)).trajectory
        path = export_trajectory_to_json(
            trajectory, tmp_path / "out" / "run.json", metadata={"label": "reference"}
        )
        data = json.loads(path.read_text())

        assert data["metadata"]["label"] == "reference"
        assert data["metadata"]["n_samples"] == len(trajectory)
        assert data["series"]["time"][0] == 0.0
        assert len(data["series"]["velocity"]) == len(trajectory)
