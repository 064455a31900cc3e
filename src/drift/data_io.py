"""Reading and writing DRIFT documents and experiment results."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

import pandas as pd

from .errors import ConfigurationError
from .harness import ExperimentResult
from .links import LinkDescriptor, LinkSet

CLASSIFIER_DEFINITION: dict[str, Any] = {
    "layers": [
        {"type": "dense", "input_size": 8, "output_size": 32, "activation": "leaky_relu",
         "comment": "Input layer - sensor processing"},
        {"type": "dense", "input_size": 32, "output_size": 16, "activation": "leaky_relu",
         "comment": "Hidden layer - neural link source"},
        {"type": "dense", "input_size": 16, "output_size": 4, "activation": "sigmoid",
         "comment": "Output layer - terrain classification"},
    ]
}

NAVIGATOR_DEFINITION: dict[str, Any] = {
    "layers": [
        {"type": "dense", "input_size": 20, "output_size": 32, "activation": "leaky_relu",
         "comment": "Input layer - position + neural link input"},
        {"type": "dense", "input_size": 32, "output_size": 16, "activation": "leaky_relu",
         "comment": "Decision layer"},
        {"type": "dense", "input_size": 16, "output_size": 4, "activation": "sigmoid",
         "comment": "Output layer - movement actions"},
    ]
}

DEFAULT_TRAINING: dict[str, Any] = {
    "classifier": {"duration_seconds": 5, "learning_rate": 0.02},
    "navigator": {"duration_seconds": 5, "learning_rate": 0.02},
    "neural_link_test": {"duration_seconds": 3, "learning_rate": 0.01},
}


@dataclass
class DriftDocument:
    """Named bundle of model definitions, link descriptors and training settings.

    Attributes:
        name: Document name.
        models: Model definitions keyed by model name (plain JSON-compatible data).
        links: Link descriptors as plain dictionaries.
        training: Per-phase ``learning_rate`` and ``duration_seconds``, applied by
            :meth:`drift.analysis.LinkExperiment.phase_config`.
    """

    name: str
    models: dict[str, Any] = field(default_factory=dict)
    links: list[dict[str, Any]] = field(default_factory=list)
    training: dict[str, Any] = field(default_factory=dict)

    def add_model(self, name: str, definition: Mapping[str, Any]) -> None:
        # Round-trip through JSON so only serializable definitions get in.
        self.models[name] = json.loads(json.dumps(definition))

    def get_model(self, name: str) -> dict[str, Any]:
        if name not in self.models:
            raise KeyError(
                f"Model '{name}' not found in document '{self.name}'.\n"
                f"Available models: {', '.join(sorted(self.models)) or 'none'}"
            )
        return self.models[name]

    def add_link(self, link: LinkDescriptor) -> None:
        links = self.get_links()
        links.add(link)
        self.links = links.to_list()

    def get_links(self) -> LinkSet:
        return LinkSet.from_list(self.links)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "models": self.models, "links": self.links, "training": self.training}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DriftDocument":
        if "name" not in payload:
            raise ConfigurationError("DRIFT document is missing its 'name' field.")
        doc = cls(
            name=str(payload["name"]),
            models=dict(payload.get("models") or {}),
            links=list(payload.get("links") or []),
            training=dict(payload.get("training") or {}),
        )
        doc.get_links()
        return doc

    @classmethod
    def from_json(cls, data: str) -> "DriftDocument":
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"DRIFT document is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ConfigurationError(f"DRIFT document must be a JSON object, got {type(payload).__name__}.")
        return cls.from_dict(payload)

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json())
        return path

    @classmethod
    def load(cls, path: str | Path) -> "DriftDocument":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(
                f"DRIFT document not found at: {path}\n"
                f"Create one with `python -m drift --save-config {path}`."
            )
        return cls.from_json(path.read_text())


def default_document() -> DriftDocument:
    """Classifier -> navigator setup of the terrain adaptation experiment."""
    doc = DriftDocument(name="NeuralLinkExperiment")
    doc.add_model("classifier", CLASSIFIER_DEFINITION)
    doc.add_model("navigator", NAVIGATOR_DEFINITION)
    doc.add_link(
        LinkDescriptor(
            name="classifier_to_navigator",
            source_model="classifier",
            source_stage=1,
            target_model="navigator",
            target_offset=4,
            width=16,
            enabled=True,
            description="Classifier hidden activations -> navigator input[4:20]",
        )
    )
    doc.training = json.loads(json.dumps(DEFAULT_TRAINING))
    return doc


def results_to_frame(results: Iterable[ExperimentResult]) -> pd.DataFrame:
    """Flatten results into one row per sealed window."""
    rows: list[dict[str, Any]] = []
    for result in results:
        for window in result.windows:
            rows.append(
                {
                    "configuration": result.configuration,
                    "coupling": result.capabilities.coupling,
                    "adaptation": result.capabilities.adaptation,
                    **window.to_dict(),
                }
            )
    columns = [
        "configuration",
        "coupling",
        "adaptation",
        "window",
        "terrain",
        "targets_reached",
        "total_steps",
        "effective_steps",
        "accuracy",
    ]
    return pd.DataFrame(rows, columns=columns)


def write_results(results: Iterable[ExperimentResult], output_dir: str | Path) -> tuple[Path, Path]:
    """Write ``results.json`` and ``windows.csv`` into ``output_dir``."""
    results = list(results)
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    json_path = out / "results.json"
    csv_path = out / "windows.csv"
    json_path.write_text(json.dumps([r.to_dict() for r in results], indent=2))
    results_to_frame(results).to_csv(csv_path, index=False)
    return json_path, csv_path
