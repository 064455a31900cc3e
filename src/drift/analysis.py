"""Experiment orchestration for the DRIFT neural link lab."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from .config import DriftConfig
from .data_io import DriftDocument, default_document, write_results
from .errors import ConfigurationError
from .harness import (
    BenchmarkHarness,
    ExperimentConfiguration,
    ExperimentResult,
    RunClock,
    TerrainSchedule,
    WallClock,
    select_best,
    standard_configurations,
)
from .network import DenseNetwork, build_network
from .reporting import format_windows, plot_window_accuracy, summarize_results
from .terrain import Terrain
from .training import TrainingSummary, train_classifier, train_navigator_road_only


def _get_verbosity() -> int:
    """Get verbosity level from environment: 0=quiet, 1=normal, 2=verbose."""
    return int(os.environ.get("DRIFT_VERBOSITY", "1"))


# Document training section -> (learning rate field, duration field) of DriftConfig.
PHASE_FIELDS: Dict[str, tuple[str, str]] = {
    "classifier": ("pretrain_lr", "pretrain_duration"),
    "navigator": ("pretrain_lr", "pretrain_duration"),
    "neural_link_test": ("adaptation_lr", "run_duration"),
}


@dataclass(slots=True)
class ExperimentArtifacts:
    config: DriftConfig
    document: DriftDocument
    training: List[TrainingSummary]
    results: List[ExperimentResult]
    best: ExperimentResult
    tables: str
    output_dir: Optional[Path]


class LinkExperiment:
    """Builds the models of a document, pretrains them and benchmarks the link.

    Args:
        document: Models, links and training settings. Defaults to the
            classifier -> navigator experiment.
        config: Simulation constants.
        clock_factory: Clock used for pretraining and benchmark runs.
        source_model / target_model: Names of the classifier and navigator.
    """

    def __init__(
        self,
        document: DriftDocument | None = None,
        config: DriftConfig | None = None,
        clock_factory: Callable[[], RunClock] = WallClock,
        source_model: str = "classifier",
        target_model: str = "navigator",
    ) -> None:
        self.document = document or default_document()
        self.config = config or DriftConfig()
        self.clock_factory = clock_factory
        self.source_model = source_model
        self.target_model = target_model

    def phase_config(self, phase: str) -> DriftConfig:
        """Return ``self.config`` with the document's settings for ``phase`` applied.

        ``learning_rate`` always applies. ``duration_seconds`` applies only
        when the experiment runs on the wall clock.
        """
        lr_field, duration_field = PHASE_FIELDS[phase]
        overrides: Dict[str, Any] = {}
        try:
            section = dict(self.document.training.get(phase) or {})
            if "learning_rate" in section:
                overrides[lr_field] = float(section["learning_rate"])
            if "duration_seconds" in section and self.clock_factory is WallClock:
                overrides[duration_field] = float(section["duration_seconds"])
            return replace(self.config, **overrides)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid training settings for '{phase}' in document '{self.document.name}': {e}"
            ) from e

    def build_models(self, rng: np.random.Generator) -> Dict[str, DenseNetwork]:
        return {name: build_network(self.document.get_model(name), rng) for name in (self.source_model, self.target_model)}

    def pretrain(
        self,
        models: Dict[str, DenseNetwork],
        rng: np.random.Generator,
        duration: float | None = None,
    ) -> List[TrainingSummary]:
        verbosity = _get_verbosity()
        classifier_config = self.phase_config("classifier")
        navigator_config = self.phase_config("navigator")

        if verbosity >= 1:
            print("Phase 1: training terrain classifier...")
        classifier = train_classifier(
            models[self.source_model],
            self.clock_factory(),
            duration if duration is not None else classifier_config.pretrain_duration,
            rng,
            classifier_config,
        )
        if verbosity >= 1:
            print("Phase 2: training navigator on road only...")
        navigator = train_navigator_road_only(
            models[self.target_model],
            self.clock_factory(),
            duration if duration is not None else navigator_config.pretrain_duration,
            rng,
            navigator_config,
        )
        return [classifier, navigator]

    def run(
        self,
        configurations: Sequence[ExperimentConfiguration] | None = None,
        output_dir: str | Path | None = None,
        duration: float | None = None,
        window_interval: float | None = None,
        pretrain_duration: float | None = None,
        seed: int | None = None,
    ) -> ExperimentArtifacts:
        seed = self.config.seed if seed is None else seed
        rng = np.random.default_rng(seed)
        verbosity = _get_verbosity()

        models = self.build_models(rng)
        training = self.pretrain(models, rng, pretrain_duration)

        configurations = list(configurations) if configurations is not None else standard_configurations()
        harness = BenchmarkHarness(
            models,
            self.document.get_links(),
            self.target_model,
            config=self.phase_config("neural_link_test"),
            clock_factory=self.clock_factory,
            duration=duration,
            window_interval=window_interval,
        )
        if verbosity >= 1:
            print(f"Phase 3: benchmarking {len(configurations)} configurations...")
        results = harness.run_all(configurations, seed=seed)
        best = select_best(results)
        tables = summarize_results(results)

        out: Optional[Path] = None
        if output_dir is not None:
            out = Path(output_dir)
            out.mkdir(parents=True, exist_ok=True)
            if verbosity >= 1:
                print(f"Writing artifacts to {out}...")
            self.document.save(out / "drift_config.json")
            write_results(results, out)
            plot_window_accuracy(results, out / "window_accuracy.png")
            window_tables = [f"## {r.configuration}\n{format_windows(r)}" for r in results]
            (out / "summary.txt").write_text(tables + "\n\n" + "\n\n".join(window_tables))

        return ExperimentArtifacts(
            config=self.config,
            document=self.document,
            training=training,
            results=results,
            best=best,
            tables=tables,
            output_dir=out,
        )


def parse_schedule(payload: str) -> TerrainSchedule:
    names = [part.strip().lower() for part in payload.split(",") if part.strip()]
    if not names:
        raise ValueError("Expected at least one terrain name in the schedule")
    try:
        return TerrainSchedule(tuple(Terrain(name) for name in names))
    except ValueError as e:
        valid = ", ".join(t.value for t in Terrain)
        raise ValueError(f"Unknown terrain in schedule '{payload}'. Valid terrains: {valid}") from e


def run_link_experiment(output_dir: str | Path | None = None) -> ExperimentArtifacts:
    return LinkExperiment().run(output_dir=output_dir)
