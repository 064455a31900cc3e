"""DRIFT: Decentralized Real-time Integration & Functional Transfer.

DRIFT lets two independently trained neural models exchange a fixed-size
slice of internal activations at runtime, and measures whether that exchange
helps a navigator adapt to terrain it never saw during training.

Main Components:
    - LinkDescriptor / LinkSet: Which stage of which model feeds which input range
    - ActivationRelay: Copy a fixed-width activation slice out of a source model
    - SimulationState / apply_action: Terrain physics (road, sand, ice, grass)
    - AdaptationController: Per-tick sense -> relay -> act -> adapt loop
    - BenchmarkHarness: Windowed comparison of link / adaptation configurations
    - DriftDocument: Models and links as a saved JSON document

Quick Start:
    >>> import numpy as np
    >>> from drift import BenchmarkHarness, TickClock, standard_configurations
    >>> from drift.data_io import default_document
    >>> from drift.network import build_network
    >>>
    >>> doc = default_document()
    >>> rng = np.random.default_rng(0)
    >>> models = {name: build_network(doc.get_model(name), rng) for name in doc.models}
    >>> harness = BenchmarkHarness(models, doc.get_links(), "navigator",
    ...                            clock_factory=TickClock, duration=2000, window_interval=500)
    >>> results = harness.run_all(standard_configurations())
"""

from .config import DriftConfig
from .controller import AdaptationController, Capabilities, axis_alternation
from .errors import ConfigurationError, ExecutionError
from .harness import (
    BenchmarkHarness,
    ExperimentConfiguration,
    ExperimentResult,
    TerrainSchedule,
    TickClock,
    WallClock,
    WindowMetrics,
    WindowRecord,
    select_best,
    standard_configurations,
)
from .links import LinkDescriptor, LinkSet
from .relay import ActivationRelay
from .terrain import Action, SimulationState, Terrain, apply_action

__all__ = [
    "DriftConfig",
    "AdaptationController",
    "Capabilities",
    "axis_alternation",
    "ConfigurationError",
    "ExecutionError",
    "BenchmarkHarness",
    "ExperimentConfiguration",
    "ExperimentResult",
    "TerrainSchedule",
    "TickClock",
    "WallClock",
    "WindowMetrics",
    "WindowRecord",
    "select_best",
    "standard_configurations",
    "LinkDescriptor",
    "LinkSet",
    "ActivationRelay",
    "Action",
    "SimulationState",
    "Terrain",
    "apply_action",
]
