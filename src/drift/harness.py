"""Windowed benchmark harness for neural link experiments."""

from __future__ import annotations

import copy
import os
import time
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence

import numpy as np
from tqdm import tqdm

from .config import DriftConfig
from .controller import AdaptationController, Capabilities, CorrectionPolicy, TickOutcome, axis_alternation
from .links import LinkSet
from .network import NeuralModel
from .terrain import SimulationState, Terrain


def _get_verbosity() -> int:
    """Get verbosity level from environment: 0=quiet, 1=normal, 2=verbose."""
    return int(os.environ.get("DRIFT_VERBOSITY", "1"))


# Absorbs float error in multiples like 3 * 0.1.
_INTERVAL_TOLERANCE = 1e-9


def _whole_intervals(span: float, interval: float) -> int:
    """Number of complete ``interval`` lengths contained in ``span``."""
    return int(np.floor(span / interval + _INTERVAL_TOLERANCE))


class RunClock(Protocol):
    def start(self) -> None: ...

    def elapsed(self) -> float: ...

    def advance(self) -> None: ...


class WallClock:
    """Real elapsed time in seconds."""

    def __init__(self, timer: Callable[[], float] = time.perf_counter) -> None:
        self._timer = timer
        self._t0 = 0.0

    def start(self) -> None:
        self._t0 = self._timer()

    def elapsed(self) -> float:
        return self._timer() - self._t0

    def advance(self) -> None:
        pass


class TickClock:
    """Deterministic clock where every tick lasts ``tick_duration`` units."""

    def __init__(self, tick_duration: float = 1.0) -> None:
        if tick_duration <= 0:
            raise ValueError(f"tick_duration must be positive, got {tick_duration}.")
        self.tick_duration = tick_duration
        self.ticks = 0

    def start(self) -> None:
        self.ticks = 0

    def elapsed(self) -> float:
        return self.ticks * self.tick_duration

    def advance(self) -> None:
        self.ticks += 1


class _WindowStats:
    """Derived figures shared by live and sealed windows."""

    __slots__ = ()

    @property
    def dominant_terrain(self) -> str | None:
        if not self.terrain_steps:
            return None
        # max() keeps the first of equal counts, in first-seen order
        return max(self.terrain_steps, key=self.terrain_steps.__getitem__)

    @property
    def accuracy(self) -> float:
        return self.effective_steps / self.total_steps if self.total_steps else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "window": self.index,
            "terrain": self.dominant_terrain,
            "targets_reached": self.targets_reached,
            "total_steps": self.total_steps,
            "effective_steps": self.effective_steps,
            "accuracy": self.accuracy,
        }


@dataclass(frozen=True, slots=True)
class WindowRecord(_WindowStats):
    """Read-only snapshot of a sealed window."""

    index: int
    targets_reached: int
    total_steps: int
    effective_steps: int
    terrain_steps: Mapping[str, int]
    terrain_targets: Mapping[str, int]


@dataclass(slots=True)
class WindowMetrics(_WindowStats):
    """Outcome counts over the window currently being filled."""

    index: int
    targets_reached: int = 0
    total_steps: int = 0
    effective_steps: int = 0
    terrain_steps: Counter = field(default_factory=Counter)
    terrain_targets: Counter = field(default_factory=Counter)

    def record(self, outcome: TickOutcome, terrain: Terrain) -> None:
        name = Terrain(terrain).value
        self.total_steps += 1
        self.terrain_steps[name] += 1
        if outcome.effective:
            self.effective_steps += 1
        if outcome.reached_target:
            self.targets_reached += 1
            self.terrain_targets[name] += 1

    def freeze(self) -> WindowRecord:
        return WindowRecord(
            index=self.index,
            targets_reached=self.targets_reached,
            total_steps=self.total_steps,
            effective_steps=self.effective_steps,
            terrain_steps=MappingProxyType(dict(self.terrain_steps)),
            terrain_targets=MappingProxyType(dict(self.terrain_targets)),
        )


@dataclass(frozen=True)
class ExperimentResult:
    """Sealed windows of one configuration's run.

    Windows passed in as :class:`WindowMetrics` are frozen into
    :class:`WindowRecord` snapshots, so the result never changes afterwards.
    """

    configuration: str
    capabilities: Capabilities
    windows: tuple[WindowRecord, ...]

    def __post_init__(self) -> None:
        frozen = tuple(w.freeze() if isinstance(w, WindowMetrics) else w for w in self.windows)
        object.__setattr__(self, "windows", frozen)

    @property
    def total_targets(self) -> int:
        return sum(w.targets_reached for w in self.windows)

    @property
    def total_steps(self) -> int:
        return sum(w.total_steps for w in self.windows)

    @property
    def total_effective(self) -> int:
        return sum(w.effective_steps for w in self.windows)

    @property
    def accuracy(self) -> float:
        total = self.total_steps
        return self.total_effective / total if total else 0.0

    @property
    def terrain_targets(self) -> dict[str, int]:
        totals: Counter = Counter()
        for window in self.windows:
            totals.update(window.terrain_targets)
        return dict(totals)

    @property
    def steps_per_target(self) -> float:
        return self.total_steps / self.total_targets if self.total_targets else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "configuration": self.configuration,
            "coupling": self.capabilities.coupling,
            "adaptation": self.capabilities.adaptation,
            "total_targets": self.total_targets,
            "total_steps": self.total_steps,
            "total_effective": self.total_effective,
            "accuracy": self.accuracy,
            "terrain_targets": self.terrain_targets,
            "windows": [w.to_dict() for w in self.windows],
        }


@dataclass(frozen=True)
class TerrainSchedule:
    """Ordered terrains, each active for an equal share of the run."""

    terrains: tuple[Terrain, ...]

    def __post_init__(self) -> None:
        if not self.terrains:
            raise ValueError("A terrain schedule needs at least one terrain.")
        object.__setattr__(self, "terrains", tuple(Terrain(t) for t in self.terrains))

    def terrain_at(self, elapsed: float, duration: float) -> Terrain:
        segment = duration / len(self.terrains)
        idx = min(_whole_intervals(elapsed, segment), len(self.terrains) - 1)
        return self.terrains[max(idx, 0)]


@dataclass(frozen=True)
class ExperimentConfiguration:
    name: str
    capabilities: Capabilities
    terrain: Terrain = Terrain.SAND
    schedule: TerrainSchedule | None = None

    @property
    def initial_terrain(self) -> Terrain:
        return self.schedule.terrains[0] if self.schedule is not None else Terrain(self.terrain)


def standard_configurations(
    rich: bool = True,
    terrain: Terrain = Terrain.SAND,
    schedule: TerrainSchedule | None = None,
) -> list[ExperimentConfiguration]:
    """Enumerate the coupling x adaptation cross product.

    With ``rich=False`` only the isolated baseline and the fully linked,
    adaptive configuration are returned.
    """
    if rich:
        combos = [Capabilities(coupling, adaptation) for coupling in (False, True) for adaptation in (False, True)]
    else:
        combos = [Capabilities(False, False), Capabilities(True, True)]
    return [ExperimentConfiguration(caps.label, caps, terrain, schedule) for caps in combos]


class BenchmarkHarness:
    """Runs the adaptation controller under named configurations.

    Every run works on deep copies of ``models`` so local updates made under
    one configuration never leak into another.

    Args:
        models: Prototype models keyed by name.
        links: Link set used when coupling is on.
        target_model: Name of the navigating model.
        config: Simulation constants; supplies default duration and window size.
        clock_factory: Zero-argument callable returning a fresh clock per run.
        duration: Run length in clock units.
        window_interval: Window length in clock units.
        correction: Corrective-label policy handed to the controller.
    """

    def __init__(
        self,
        models: Mapping[str, NeuralModel],
        links: LinkSet,
        target_model: str,
        config: DriftConfig | None = None,
        clock_factory: Callable[[], RunClock] = WallClock,
        duration: float | None = None,
        window_interval: float | None = None,
        correction: CorrectionPolicy = axis_alternation,
    ) -> None:
        self.config = config or DriftConfig()
        self.models = dict(models)
        self.links = links
        self.target_model = target_model
        self.clock_factory = clock_factory
        self.duration = duration if duration is not None else self.config.run_duration
        self.window_interval = window_interval if window_interval is not None else self.config.window_interval
        self.correction = correction
        if self.duration <= 0 or self.window_interval <= 0:
            raise ValueError(
                f"duration and window_interval must be positive, got {self.duration} and {self.window_interval}."
            )

    def initial_state(self, configuration: ExperimentConfiguration) -> SimulationState:
        return SimulationState(
            agent_pos=np.array([0.1, 0.1]),
            target_pos=np.array([0.9, 0.9]),
            terrain=configuration.initial_terrain,
        )

    def run(
        self,
        configuration: ExperimentConfiguration,
        seed: int | None = None,
        state: SimulationState | None = None,
    ) -> ExperimentResult:
        """Run one configuration until the clock reaches ``duration``.

        A window is sealed each time its interval has fully elapsed within the
        run; the trailing partial window is dropped. Any exception aborts the
        run and no result is produced.
        """
        rng = np.random.default_rng(self.config.seed if seed is None else seed)
        models = copy.deepcopy(self.models)
        controller = AdaptationController(
            models,
            self.links,
            self.target_model,
            configuration.capabilities,
            config=self.config,
            rng=rng,
            correction=self.correction,
        )
        state = state.copy() if state is not None else self.initial_state(configuration)
        schedule = configuration.schedule
        duration = self.duration
        interval = self.window_interval

        sealed: list[WindowRecord] = []
        window = WindowMetrics(index=0)
        clock = self.clock_factory()
        clock.start()

        elapsed = clock.elapsed()
        while elapsed < duration:
            if schedule is not None:
                state.set_terrain(schedule.terrain_at(elapsed, duration))
            terrain = state.terrain
            outcome = controller.tick(state)
            clock.advance()
            window.record(outcome, terrain)

            elapsed = clock.elapsed()
            horizon = min(elapsed, duration)
            while window.index < _whole_intervals(horizon, interval):
                sealed.append(window.freeze())
                window = WindowMetrics(index=window.index + 1)

        if _get_verbosity() >= 2:
            print(
                f"  {configuration.name}: {len(sealed)} windows sealed, "
                f"{window.total_steps} trailing ticks discarded"
            )

        return ExperimentResult(
            configuration=configuration.name,
            capabilities=configuration.capabilities,
            windows=tuple(sealed),
        )

    def run_all(
        self,
        configurations: Iterable[ExperimentConfiguration],
        seed: int | None = None,
    ) -> list[ExperimentResult]:
        configurations = list(configurations)
        verbosity = _get_verbosity()
        results: list[ExperimentResult] = []
        config_iter = tqdm(configurations, desc="Running configurations", disable=verbosity == 0, leave=False)
        for configuration in config_iter:
            result = self.run(configuration, seed=seed)
            results.append(result)
            if verbosity >= 1:
                print(
                    f"  {configuration.name}: {result.total_targets} targets in {result.total_steps} steps "
                    f"({result.accuracy * 100:.1f}% effective)"
                )
        return results


def select_best(results: Sequence[ExperimentResult]) -> ExperimentResult:
    """Return the result with the most targets reached; ties go to the first."""
    if not results:
        raise ValueError("Cannot select the best configuration from an empty result list.")
    return max(results, key=lambda r: r.total_targets)
