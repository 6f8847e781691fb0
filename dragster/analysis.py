"""Monte Carlo analysis of racer scenarios.

Runs many trials of one scenario with uncertain parameters redrawn per
trial, then aggregates the valid summaries into per-field statistics.

Reproducibility does not depend on scheduling: trial ``i`` always draws
from its own stream ``SeedSequence(seed, spawn_key=(i,))``, so serial and
parallel runs with the same seed give identical results, and aggregates are
computed with exactly rounded sums so trial order does not matter either.

Example:
    >>> from dragster.analysis import MonteCarloDriver
    >>> from dragster.sampling import Normal, Uniform
    >>> from dragster.simulation import TrackRace
    >>>
    >>> scenario = TrackRace(
    ...     track_length=20.0,
    ...     distributions={
    ...         "vehicle.mass": Normal(0.055, 0.002),
    ...         "vehicle.mu_kinetic": Uniform(0.01, 0.02),
    ...     },
    ... )
    >>> results = MonteCarloDriver(scenario).run(n_trials=500, seed=42, n_workers=4)
    >>> print(results.summary())
"""

import logging
import math
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ProcessPoolExecutor, wait
from dataclasses import dataclass, fields, replace
from pathlib import Path

import numpy as np
import polars as pl
from beartype import beartype
from numpy.typing import NDArray
from tqdm import tqdm

from dragster.errors import ConfigurationError
from dragster.sampling import get_parameter
from dragster.simulation.runner import TrialResult, TrialRunner
from dragster.simulation.scenarios import Scenario
from dragster.simulation.summaries import TrialStatus, TrialSummary, float_fields

logger = logging.getLogger(__name__)


# =============================================================================
# Random Streams
# =============================================================================


@beartype
def trial_rng(seed: int, index: int) -> np.random.Generator:
    """Independent random generator for trial ``index`` of a run seeded ``seed``."""
    return np.random.default_rng(np.random.SeedSequence(seed, spawn_key=(index,)))


def _run_trial(scenario: Scenario, seed: int, index: int, record: bool) -> TrialResult:
    """Sample parameters and run one trial (process-pool entry point)."""
    sampler = scenario.sampler()
    runner = TrialRunner(scenario)
    sampled = sampler.draw(trial_rng(seed, index))
    try:
        params = sampler.apply(scenario.parameters, sampled)
    except ConfigurationError:
        return runner.reject(scenario.parameters, sampled, index=index)
    result = runner.run(params, index=index, record=record)
    return replace(result, sampled=sampled)


# =============================================================================
# Aggregation
# =============================================================================


@beartype
@dataclass(frozen=True, slots=True)
class FieldStats:
    """Statistics of one summary field over the valid trials.

    Attributes:
        mean: Arithmetic mean
        std: Sample standard deviation (ddof=1), NaN for fewer than 2 values
        min: Minimum value
        max: Maximum value
        count: Number of non-NaN values
    """

    mean: float
    std: float
    min: float
    max: float
    count: int


@beartype
def field_stats(values: Sequence[float]) -> FieldStats:
    """Statistics of ``values``, ignoring NaN entries."""
    finite = [v for v in values if not math.isnan(v)]
    n = len(finite)
    if n == 0:
        return FieldStats(math.nan, math.nan, math.nan, math.nan, 0)

    mean = math.fsum(finite) / n
    if n > 1:
        std = math.sqrt(math.fsum((v - mean) ** 2 for v in finite) / (n - 1))
    else:
        std = math.nan
    return FieldStats(mean=mean, std=std, min=min(finite), max=max(finite), count=n)


@beartype
def aggregate(summaries: Sequence[TrialSummary]) -> dict[str, FieldStats]:
    """Per-field statistics over a homogeneous sequence of summaries.

    Only float fields are aggregated. The result does not depend on the
    order of ``summaries``.
    """
    if not summaries:
        return {}
    kinds = {type(s) for s in summaries}
    if len(kinds) > 1:
        raise ValueError(f"Cannot aggregate mixed summary types: {sorted(k.__name__ for k in kinds)}")

    return {
        name: field_stats([getattr(s, name) for s in summaries])
        for name in float_fields(type(summaries[0]))
    }


# =============================================================================
# Monte Carlo Driver
# =============================================================================


@beartype
class MonteCarloDriver:
    """Runs a scenario many times with freshly sampled parameters.

    Example:
        >>> driver = MonteCarloDriver(BurnProfile(distributions={
        ...     "propulsion.thrust_scale": Normal(1.0, 0.05),
        ... }))
        >>> results = driver.run(n_trials=1000, seed=7, progress=True)
        >>> print(f"Impulse = {results.mean('total_impulse'):.4f} ± "
        ...       f"{results.std('total_impulse'):.4f} N·s")
    """

    def __init__(self, scenario: Scenario) -> None:
        """Initialize driver.

        Args:
            scenario: Scenario to run; validated at construction
        """
        self.scenario = scenario

    def run(
        self,
        n_trials: int = 1000,
        seed: int | None = None,
        n_workers: int | None = None,
        progress: bool = False,
        keep_trajectories: bool = False,
        should_stop: Callable[[], bool] | None = None,
    ) -> "MonteCarloResults":
        """Run the Monte Carlo analysis.

        Args:
            n_trials: Number of trials
            seed: Root seed; fresh OS entropy if None
            n_workers: Worker processes; serial when None or 1
            progress: If True, show progress indicator
            keep_trajectories: Keep every trial's trajectory in the results
            should_stop: Polled before each trial is dispatched; returning True
                stops dispatching and lets in-flight trials finish

        Returns:
            MonteCarloResults in trial-index order

        Raises:
            ConfigurationError: On invalid arguments, or if a trial's adaptive
                integration fails to converge
        """
        if n_trials <= 0:
            raise ConfigurationError(f"n_trials must be positive, got {n_trials}")
        if n_workers is not None and n_workers < 1:
            raise ConfigurationError(f"n_workers must be at least 1, got {n_workers}")
        if seed is None:
            seed = int(np.random.SeedSequence().entropy)
        elif seed < 0:
            raise ConfigurationError(f"seed must be non-negative, got {seed}")

        logger.info(
            "Starting %d %s trials (seed=%d, workers=%s)",
            n_trials, self.scenario.kind, seed, n_workers or 1,
        )

        with tqdm(total=n_trials, desc="Trials", disable=not progress) as bar:
            if n_workers is None or n_workers == 1:
                results, cancelled = self._run_serial(
                    n_trials, seed, keep_trajectories, should_stop, bar
                )
            else:
                results, cancelled = self._run_parallel(
                    n_trials, seed, n_workers, keep_trajectories, should_stop, bar
                )

        if cancelled:
            logger.warning("Run cancelled after %d of %d trials", len(results), n_trials)

        valid = [r.summary for r in results if r.valid]
        mc = MonteCarloResults(
            scenario_kind=self.scenario.kind,
            results=results,
            aggregates=aggregate(valid),
            parameter_paths=list(self.scenario.distributions),
            seed=seed,
            n_requested=n_trials,
            cancelled=cancelled,
        )
        logger.info(
            "Finished %d trials: %d valid, %d excluded, %d failed",
            mc.n_trials, mc.n_valid, mc.n_excluded, mc.n_failed,
        )
        return mc

    def _run_serial(
        self,
        n_trials: int,
        seed: int,
        record: bool,
        should_stop: Callable[[], bool] | None,
        bar: tqdm,
    ) -> tuple[list[TrialResult], bool]:
        results: list[TrialResult] = []
        for i in range(n_trials):
            if should_stop is not None and should_stop():
                return results, True
            results.append(_run_trial(self.scenario, seed, i, record))
            bar.update(1)
        return results, False

    def _run_parallel(
        self,
        n_trials: int,
        seed: int,
        n_workers: int,
        record: bool,
        should_stop: Callable[[], bool] | None,
        bar: tqdm,
    ) -> tuple[list[TrialResult], bool]:
        by_index: dict[int, TrialResult] = {}
        max_in_flight = 2 * n_workers
        next_index = 0
        cancelled = False
        pending: set[Future] = set()

        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            try:
                while True:
                    while not cancelled and next_index < n_trials and len(pending) < max_in_flight:
                        if should_stop is not None and should_stop():
                            cancelled = True
                            break
                        pending.add(
                            executor.submit(_run_trial, self.scenario, seed, next_index, record)
                        )
                        next_index += 1

                    if not pending:
                        break

                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        result = future.result()
                        by_index[result.index] = result
                        bar.update(1)
            except BaseException:
                for future in pending:
                    future.cancel()
                raise

        return [by_index[i] for i in sorted(by_index)], cancelled


# =============================================================================
# Results
# =============================================================================


@beartype
@dataclass
class MonteCarloResults:
    """Results from a Monte Carlo run.

    Provides statistical summaries and access to every trial.
    """

    scenario_kind: str
    results: list[TrialResult]
    aggregates: dict[str, FieldStats]
    parameter_paths: list[str]
    seed: int
    n_requested: int
    cancelled: bool = False

    @property
    def n_trials(self) -> int:
        """Number of trials that ran."""
        return len(self.results)

    @property
    def n_valid(self) -> int:
        """Number of trials included in the statistics."""
        return sum(1 for r in self.results if r.valid)

    @property
    def n_excluded(self) -> int:
        """Number of INVALID trials, excluded from the statistics."""
        return sum(1 for r in self.results if r.status is TrialStatus.INVALID)

    @property
    def n_failed(self) -> int:
        """Number of trials ending in a modeled failure."""
        return sum(1 for r in self.results if r.failed)

    @property
    def summaries(self) -> list[TrialSummary]:
        """Summary of every trial, in index order."""
        return [r.summary for r in self.results]

    def failure_probability(self) -> float:
        """Fraction of valid trials that ended FAILED."""
        if self.n_valid == 0:
            return math.nan
        return self.n_failed / self.n_valid

    def metric(self, name: str, valid_only: bool = True) -> NDArray[np.float64]:
        """Values of one summary field across trials.

        Args:
            name: Summary field name, e.g. "finish_time"
            valid_only: Drop degenerate trials

        Returns:
            Array in trial-index order; boolean fields become 0.0/1.0
        """
        if not self.results:
            raise ValueError("No trials were run")
        available = [f.name for f in fields(self.results[0].summary)]
        if name not in available:
            raise ValueError(f"Unknown metric '{name}'. Available: {available}")

        return np.array(
            [float(getattr(r.summary, name)) for r in self.results if r.valid or not valid_only],
            dtype=np.float64,
        )

    def _stats(self, name: str) -> FieldStats:
        if name not in self.aggregates:
            available = list(self.aggregates.keys())
            raise ValueError(f"Unknown metric '{name}'. Available: {available}")
        return self.aggregates[name]

    def mean(self, name: str) -> float:
        """Get mean value of a metric."""
        return self._stats(name).mean

    def std(self, name: str) -> float:
        """Get sample standard deviation of a metric."""
        return self._stats(name).std

    def percentile(
        self, name: str, p: float | int | Sequence[float | int]
    ) -> float | NDArray[np.float64]:
        """Get percentile(s) of a metric over valid trials, ignoring NaN.

        Args:
            name: Metric name
            p: Percentile(s) to compute (0-100)

        Returns:
            Percentile value(s)
        """
        result = np.nanpercentile(self.metric(name), p)
        if isinstance(p, (int, float)):
            return float(result)
        return result

    def confidence_interval(self, name: str, confidence: float = 0.95) -> tuple[float, float]:
        """Get central interval of a metric.

        Args:
            name: Metric name
            confidence: Confidence level (0-1), default 0.95 for 95% CI

        Returns:
            Tuple of (lower_bound, upper_bound)
        """
        alpha = 1 - confidence
        values = self.metric(name)
        return (
            float(np.nanpercentile(values, alpha / 2 * 100)),
            float(np.nanpercentile(values, (1 - alpha / 2) * 100)),
        )

    def summary(self) -> str:
        """Generate a text summary of the run."""
        lines = [
            f"Monte Carlo Results ({self.scenario_kind})",
            "=" * 72,
            f"Trials:   {self.n_trials}" + (f" of {self.n_requested} (cancelled)" if self.cancelled else ""),
            f"Valid:    {self.n_valid}",
            f"Excluded: {self.n_excluded}",
            f"Failed:   {self.n_failed}",
            "",
            f"{'Metric':<24} {'Mean':>10} {'Std':>10} {'Min':>10} {'Max':>10} {'N':>5}",
            "-" * 72,
        ]
        for name, stats in self.aggregates.items():
            lines.append(
                f"{name:<24} {stats.mean:>10.4g} {stats.std:>10.4g} "
                f"{stats.min:>10.4g} {stats.max:>10.4g} {stats.count:>5d}"
            )
        return "\n".join(lines)

    def to_dataframe(self) -> pl.DataFrame:
        """Export one row per trial: index, status, sampled parameters, summary."""
        data: dict[str, list] = {
            "index": [r.index for r in self.results],
            "status": [r.status.value for r in self.results],
        }
        for path in self.parameter_paths:
            data[path] = [
                r.sampled.get(path, float(get_parameter(r.parameters, path)))
                for r in self.results
            ]
        if self.results:
            for f in fields(self.results[0].summary):
                data[f.name] = [getattr(r.summary, f.name) for r in self.results]
        return pl.DataFrame(data)

    def to_csv(self, path: str | Path) -> None:
        """Export results to CSV file.

        Args:
            path: Output file path
        """
        df = self.to_dataframe()
        df.write_csv(path)
