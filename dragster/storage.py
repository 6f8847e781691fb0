"""File-based persistence for scenarios and Monte Carlo results.

Scenarios are stored as JSON with every nested dataclass tagged by class
name, so a saved file rebuilds the exact scenario (vehicle, propulsion
model, distributions, integrator settings). Results are stored as a JSON
summary next to an optional Parquet table with one row per trial.

Example:
    >>> from dragster.storage import LocalStorage, ScenarioFile
    >>> from dragster.simulation import TrackRace
    >>>
    >>> storage = LocalStorage("./my_project")
    >>> storage.save_scenario(ScenarioFile.from_scenario(TrackRace(), name="baseline"))
    >>> scenario = storage.load_scenario("baseline").to_scenario()
"""

import json
import shutil
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import numpy as np
import polars as pl
from beartype import beartype

from dragster.analysis import MonteCarloResults
from dragster.dynamics.integrators import IntegratorConfig
from dragster.parameters import TrialParameters
from dragster.propulsion import ChokedFlowNozzle, ConstantThrust, ThrustCurve
from dragster.sampling import Normal, Uniform
from dragster.simulation.scenarios import SCENARIO_KINDS, Scenario
from dragster.simulation.trajectory import Trajectory, TrajectorySample
from dragster.vehicle import VehicleParams

# Dataclasses that may appear inside a stored scenario
_DATACLASS_REGISTRY: dict[str, type] = {
    cls.__name__: cls
    for cls in (
        TrialParameters,
        VehicleParams,
        ThrustCurve,
        ChokedFlowNozzle,
        ConstantThrust,
        IntegratorConfig,
        Normal,
        Uniform,
    )
}

# =============================================================================
# Serialization Helpers
# =============================================================================


def _serialize_value(value: Any) -> Any:
    """Serialize a value to JSON-compatible format."""
    if isinstance(value, datetime):
        return {"__type__": "datetime", "value": value.isoformat()}
    elif is_dataclass(value) and not isinstance(value, type):
        return {
            "__type__": "dataclass",
            "__class__": type(value).__name__,
            **{f.name: _serialize_value(getattr(value, f.name)) for f in fields(value)},
        }
    elif isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [_serialize_value(v) for v in value]
    elif isinstance(value, np.generic):
        return value.item()
    else:
        return value


def _deserialize_value(value: Any) -> Any:
    """Deserialize a value from JSON format, rebuilding tagged dataclasses."""
    if isinstance(value, dict):
        if value.get("__type__") == "datetime":
            return datetime.fromisoformat(value["value"])
        elif value.get("__type__") == "dataclass":
            class_name = value["__class__"]
            if class_name not in _DATACLASS_REGISTRY:
                raise ValueError(f"Cannot reconstruct unknown class '{class_name}'")
            kwargs = {k: _deserialize_value(v) for k, v in value.items() if not k.startswith("__")}
            return _DATACLASS_REGISTRY[class_name](**kwargs)
        else:
            return {k: _deserialize_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_deserialize_value(v) for v in value]
    else:
        return value


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder for NumPy scalars and arrays."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


# =============================================================================
# Scenario File
# =============================================================================


@beartype
@dataclass
class ScenarioFile:
    """A serializable scenario.

    Attributes:
        name: Unique name for this scenario (used as filename)
        kind: Scenario kind tag, e.g. "track_race"
        settings: Serialized scenario fields
        description: Human-readable description
        created_at: When this scenario was created
        modified_at: When this scenario was last saved
        version: Scenario version number
        tags: Optional list of tags for organization
    """

    name: str
    kind: str
    settings: dict[str, Any]
    description: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    modified_at: datetime = field(default_factory=datetime.now)
    version: int = 1
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_scenario(
        cls,
        scenario: Scenario,
        name: str,
        description: str = "",
        tags: list[str] | None = None,
    ) -> "ScenarioFile":
        """Create a ScenarioFile from a scenario descriptor."""
        if scenario.kind not in SCENARIO_KINDS:
            raise ValueError(f"Scenario kind '{scenario.kind}' cannot be stored")
        settings = {f.name: _serialize_value(getattr(scenario, f.name)) for f in fields(scenario)}
        return cls(
            name=name,
            kind=scenario.kind,
            settings=settings,
            description=description,
            tags=tags or [],
        )

    def to_scenario(self) -> Scenario:
        """Rebuild the scenario descriptor (validated on construction)."""
        if self.kind not in SCENARIO_KINDS:
            raise ValueError(
                f"Unknown scenario kind '{self.kind}'. Valid kinds: {sorted(SCENARIO_KINDS)}"
            )
        kwargs = {k: _deserialize_value(v) for k, v in self.settings.items()}
        return SCENARIO_KINDS[self.kind](**kwargs)

    def to_json(self) -> str:
        """Serialize to JSON string."""
        data = {
            "name": self.name,
            "kind": self.kind,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "modified_at": self.modified_at.isoformat(),
            "version": self.version,
            "tags": self.tags,
            "settings": self.settings,
        }
        return json.dumps(data, indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "ScenarioFile":
        """Deserialize from JSON string."""
        data = json.loads(json_str)
        return cls(
            name=data["name"],
            kind=data["kind"],
            settings=data["settings"],
            description=data.get("description", ""),
            created_at=datetime.fromisoformat(data["created_at"]),
            modified_at=datetime.fromisoformat(data["modified_at"]),
            version=data.get("version", 1),
            tags=data.get("tags", []),
        )


# =============================================================================
# Results File
# =============================================================================


@beartype
@dataclass
class ResultsFile:
    """Summary of a Monte Carlo run.

    Attributes:
        name: Unique name for these results
        scenario_name: Name of the scenario the run used
        scenario_kind: Scenario kind tag
        created_at: When these results were generated
        summary: Counts, seed and per-field statistics
        data_path: Parquet file with the per-trial table, relative to the
            storage root (optional)
    """

    name: str
    scenario_name: str
    scenario_kind: str
    created_at: datetime = field(default_factory=datetime.now)
    summary: dict[str, Any] = field(default_factory=dict)
    data_path: str | None = None

    @classmethod
    def from_results(
        cls,
        results: MonteCarloResults,
        name: str,
        scenario_name: str,
    ) -> "ResultsFile":
        """Capture the counts and aggregates of a Monte Carlo run."""
        summary = {
            "seed": results.seed,
            "n_requested": results.n_requested,
            "n_trials": results.n_trials,
            "n_valid": results.n_valid,
            "n_excluded": results.n_excluded,
            "n_failed": results.n_failed,
            "cancelled": results.cancelled,
            "aggregates": {k: asdict(v) for k, v in results.aggregates.items()},
        }
        return cls(
            name=name,
            scenario_name=scenario_name,
            scenario_kind=results.scenario_kind,
            summary=summary,
        )

    def to_json(self) -> str:
        """Serialize summary to JSON."""
        data = {
            "name": self.name,
            "scenario_name": self.scenario_name,
            "scenario_kind": self.scenario_kind,
            "created_at": self.created_at.isoformat(),
            "summary": _serialize_value(self.summary),
            "data_path": self.data_path,
        }
        return json.dumps(data, indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "ResultsFile":
        """Deserialize from JSON."""
        data = json.loads(json_str)
        return cls(
            name=data["name"],
            scenario_name=data["scenario_name"],
            scenario_kind=data["scenario_kind"],
            created_at=datetime.fromisoformat(data["created_at"]),
            summary=_deserialize_value(data.get("summary", {})),
            data_path=data.get("data_path"),
        )


# =============================================================================
# Storage Backend Protocol
# =============================================================================


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for storage backends."""

    def save_scenario(self, scenario: ScenarioFile) -> Path: ...

    def load_scenario(self, name: str) -> ScenarioFile: ...

    def list_scenarios(self) -> list[str]: ...

    def save_results(self, results: ResultsFile, data: pl.DataFrame | None = None) -> Path: ...

    def load_results(self, name: str) -> tuple[ResultsFile, pl.DataFrame | None]: ...


# =============================================================================
# Local Storage Implementation
# =============================================================================


@beartype
class LocalStorage:
    """File-based storage backend.

    Organizes files in a project directory:

        project_root/
        ├── scenarios/            # Scenario files (JSON)
        │   └── baseline.json
        └── results/              # Monte Carlo results, grouped by scenario
            └── baseline/
                ├── mass_sweep.json
                └── mass_sweep.parquet

    Example:
        >>> storage = LocalStorage("./races")
        >>> storage.save_scenario(ScenarioFile.from_scenario(scenario, "baseline"))
        >>> storage.list_scenarios()
        ['baseline']
    """

    def __init__(self, root: str | Path) -> None:
        """Initialize local storage.

        Args:
            root: Root directory for the project
        """
        self.root = Path(root)
        self._scenarios_dir = self.root / "scenarios"
        self._results_dir = self.root / "results"

        self._scenarios_dir.mkdir(parents=True, exist_ok=True)
        self._results_dir.mkdir(parents=True, exist_ok=True)

    def save_scenario(self, scenario: ScenarioFile) -> Path:
        """Save a scenario file as JSON."""
        path = self._scenarios_dir / f"{scenario.name}.json"
        scenario.modified_at = datetime.now()
        path.write_text(scenario.to_json())
        return path

    def load_scenario(self, name: str) -> ScenarioFile:
        """Load a scenario file by name."""
        path = self._scenarios_dir / f"{name}.json"
        if not path.exists():
            raise FileNotFoundError(f"Scenario '{name}' not found at {path}")
        return ScenarioFile.from_json(path.read_text())

    def list_scenarios(self) -> list[str]:
        """List all stored scenarios."""
        return sorted(p.stem for p in self._scenarios_dir.glob("*.json"))

    def delete_scenario(self, name: str) -> None:
        """Delete a scenario and the results recorded for it."""
        path = self._scenarios_dir / f"{name}.json"
        if path.exists():
            path.unlink()

        results_path = self._results_dir / name
        if results_path.exists():
            shutil.rmtree(results_path)

    def save_results(
        self,
        results: ResultsFile,
        data: pl.DataFrame | None = None,
    ) -> Path:
        """Save run results.

        The summary is saved as JSON; the per-trial table, if given, as Parquet.
        """
        results_dir = self._results_dir / results.scenario_name
        results_dir.mkdir(parents=True, exist_ok=True)

        if data is not None:
            parquet_path = results_dir / f"{results.name}.parquet"
            data.write_parquet(parquet_path)
            results.data_path = str(parquet_path.relative_to(self.root))

        json_path = results_dir / f"{results.name}.json"
        json_path.write_text(results.to_json())
        return json_path

    def load_results(
        self,
        name: str,
        scenario_name: str | None = None,
    ) -> tuple[ResultsFile, pl.DataFrame | None]:
        """Load results by name.

        Args:
            name: Results name
            scenario_name: Scenario the results belong to; searched if None

        Returns:
            Tuple of (ResultsFile, optional DataFrame)
        """
        if scenario_name:
            json_path = self._results_dir / scenario_name / f"{name}.json"
        else:
            matches = sorted(self._results_dir.glob(f"*/{name}.json"))
            if not matches:
                raise FileNotFoundError(f"Results '{name}' not found")
            json_path = matches[0]

        if not json_path.exists():
            raise FileNotFoundError(f"Results '{name}' not found at {json_path}")

        results = ResultsFile.from_json(json_path.read_text())

        data = None
        if results.data_path:
            parquet_path = self.root / results.data_path
            if parquet_path.exists():
                data = pl.read_parquet(parquet_path)

        return results, data

    def list_results(self, scenario_name: str | None = None) -> list[str]:
        """List stored results, optionally for one scenario."""
        if scenario_name:
            results_dir = self._results_dir / scenario_name
            if not results_dir.exists():
                return []
            return sorted(p.stem for p in results_dir.glob("*.json"))
        return sorted(p.stem for p in self._results_dir.glob("*/*.json"))


# =============================================================================
# Trajectory Export
# =============================================================================


@beartype
def export_trajectory_to_json(
    trajectory: Trajectory,
    filepath: str | Path,
    metadata: dict[str, Any] | None = None,
) -> Path:
    """Export a trajectory to a compact column-oriented JSON file.

    Args:
        trajectory: Recorded trajectory
        filepath: Path to save the JSON file
        metadata: Extra key/value pairs stored under "metadata"

    Returns:
        Path written
    """
    output = {
        "metadata": {"n_samples": len(trajectory), **(metadata or {})},
        "series": {name: trajectory.column(name) for name in TrajectorySample._fields},
    }

    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(output, f, cls=NumpyEncoder)
    return path
