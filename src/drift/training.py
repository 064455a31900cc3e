"""Pretraining phases run before the link benchmark.

The terrain classifier learns to recognise every terrain from sensor
readings. The navigator only ever sees road: it learns direct pursuit with the
link region of its input held at zero, so anything it does differently on
other terrains must come from the link or from online adaptation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import numpy as np
from tqdm import tqdm

from .config import DriftConfig
from .controller import argmax_action, build_composite_input
from .harness import RunClock, TickClock
from .network import NeuralModel
from .sensors import generate_sensor_data
from .terrain import NUM_ACTIONS, NUM_TERRAINS, SimulationState, Terrain, optimal_action, plain_step


def _get_verbosity() -> int:
    """Get verbosity level from environment: 0=quiet, 1=normal, 2=verbose."""
    return int(os.environ.get("DRIFT_VERBOSITY", "1"))


@dataclass(frozen=True)
class TrainingSummary:
    name: str
    correct: int
    total: int

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0


def _progress(clock: RunClock, duration: float, desc: str):
    # Tick budgets have a known length; wall-clock runs do not.
    total = int(round(duration / clock.tick_duration)) if isinstance(clock, TickClock) else None
    return tqdm(total=total, desc=desc, disable=_get_verbosity() == 0, leave=False)


def train_classifier(
    model: NeuralModel,
    clock: RunClock,
    duration: float,
    rng: np.random.Generator,
    config: DriftConfig | None = None,
) -> TrainingSummary:
    """Train ``model`` to label noisy sensor readings with their terrain."""
    config = config or DriftConfig()
    terrains = list(Terrain)
    correct = total = 0

    clock.start()
    with _progress(clock, duration, "Training classifier") as pbar:
        while clock.elapsed() < duration:
            terrain = terrains[int(rng.integers(NUM_TERRAINS))]
            sensors = generate_sensor_data(terrain, rng, config.sensor_noise)
            output = model.forward(sensors)
            if int(np.argmax(output)) == terrain.index:
                correct += 1
            total += 1
            model.local_update(sensors, terrain.index, NUM_TERRAINS, config.pretrain_lr)
            clock.advance()
            pbar.update(1)

    summary = TrainingSummary("classifier", correct, total)
    if _get_verbosity() >= 1:
        print(f"Classifier trained: {summary.accuracy * 100:.1f}% accuracy ({total} samples)")
    return summary


def train_navigator_road_only(
    model: NeuralModel,
    clock: RunClock,
    duration: float,
    rng: np.random.Generator,
    config: DriftConfig | None = None,
) -> TrainingSummary:
    """Teach ``model`` direct pursuit on road with an all-zero link region."""
    config = config or DriftConfig()
    state = SimulationState(
        agent_pos=np.array([0.5, 0.5]),
        target_pos=rng.random(2),
        terrain=Terrain.ROAD,
    )
    correct = total = 0

    clock.start()
    with _progress(clock, duration, "Training navigator (road)") as pbar:
        while clock.elapsed() < duration:
            composite = build_composite_input(state, [], model.input_size, config)
            predicted = argmax_action(model.forward(composite))
            optimal = optimal_action(state)
            if predicted == optimal:
                correct += 1
            total += 1

            model.local_update(composite, int(optimal), NUM_ACTIONS, config.pretrain_lr)
            plain_step(state, predicted, config)
            if rng.random() < config.retarget_probability:
                state.target_pos = rng.random(2)
            clock.advance()
            pbar.update(1)

    summary = TrainingSummary("navigator", correct, total)
    if _get_verbosity() >= 1:
        print(f"Navigator trained (road only): {summary.accuracy * 100:.1f}% accuracy ({total} samples)")
    return summary
