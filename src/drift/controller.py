"""Reward-shaped local adaptation controller.

One tick is: sense -> relay -> forward -> act -> (optionally) adapt.

When adaptation is on, a move that brings the agent closer to the target is
reinforced by a local update labelled with the action actually taken. A move
that fails is not reinforced; instead the update is labelled with a corrective
action from a pluggable policy. The default policy alternates the movement
axis, which is what pays off on sand, so the navigator is pushed toward
zigzagging exactly where direct pursuit stalls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

import numpy as np

from .config import DriftConfig
from .errors import ConfigurationError
from .links import LinkDescriptor, LinkSet
from .network import NeuralModel
from .relay import ActivationRelay
from .sensors import SENSOR_WIDTH, generate_sensor_data
from .terrain import NUM_ACTIONS, Action, SimulationState, apply_action

CorrectionPolicy = Callable[[SimulationState], Action]


@dataclass(frozen=True)
class Capabilities:
    """The two independent switches of an experiment run."""

    coupling: bool
    adaptation: bool

    @property
    def label(self) -> str:
        link = "link" if self.coupling else "no-link"
        adapt = "adaptive" if self.adaptation else "frozen"
        return f"{link}/{adapt}"


@dataclass(frozen=True, slots=True)
class TickOutcome:
    action: Action
    prev_distance: float
    new_distance: float
    effective: bool
    reached_target: bool
    trained_label: Action | None


def axis_alternation(state: SimulationState) -> Action:
    """Propose a move on the other axis than the last one, toward the target.

    After a vertical move the proposal is horizontal; after a horizontal move,
    or none at all, it is vertical.
    """
    dx, dy = state.target_pos - state.agent_pos
    if state.last_action is not None and state.last_action.is_vertical:
        return Action.RIGHT if dx > 0 else Action.LEFT
    return Action.UP if dy > 0 else Action.DOWN


def task_features(state: SimulationState, config: DriftConfig) -> np.ndarray:
    """Unit vector toward the target followed by the agent position."""
    features = np.zeros(config.feature_width)
    delta = state.target_pos - state.agent_pos
    dist = float(np.linalg.norm(delta))
    if dist > config.direction_floor:
        features[0:2] = delta / dist
    features[2:4] = state.agent_pos
    return features


def build_composite_input(
    state: SimulationState,
    buffers: Sequence[tuple[LinkDescriptor, np.ndarray]],
    input_size: int,
    config: DriftConfig,
) -> np.ndarray:
    composite = np.zeros(input_size)
    composite[: config.feature_width] = task_features(state, config)
    for link, buffer in buffers:
        composite[link.target_offset : link.target_offset + link.width] = buffer
    return composite


def argmax_action(output: np.ndarray) -> Action:
    # np.argmax breaks ties by first occurrence
    return Action(int(np.argmax(output)))


class AdaptationController:
    """Drives one target model through the terrain task, tick by tick.

    Args:
        models: All models taking part, keyed by name.
        links: Link set; only links into ``target_model`` are used.
        target_model: Name of the navigating model.
        capabilities: Coupling / adaptation switches for this run.
        config: Simulation constants.
        rng: Generator for sensor noise and target resets.
        correction: Policy producing the training label after a failed move.

    Raises:
        ConfigurationError: If links, models or input widths are inconsistent.
    """

    def __init__(
        self,
        models: Mapping[str, NeuralModel],
        links: LinkSet,
        target_model: str,
        capabilities: Capabilities,
        config: DriftConfig | None = None,
        rng: np.random.Generator | None = None,
        correction: CorrectionPolicy = axis_alternation,
    ) -> None:
        self.config = config or DriftConfig()
        self.capabilities = capabilities
        self.rng = rng or np.random.default_rng(self.config.seed)
        self.correction = correction
        self.relay = ActivationRelay()

        if target_model not in models:
            raise ConfigurationError(
                f"Target model '{target_model}' is not among the configured models: "
                f"{', '.join(sorted(models)) or 'none'}"
            )
        links.validate(models, feature_width=self.config.feature_width)

        self.models = models
        self.target_name = target_model
        self.target = models[target_model]
        self.inbound = links.targeting(target_model)

        if self.target.input_size < self.config.feature_width:
            raise ConfigurationError(
                f"'{target_model}' accepts {self.target.input_size} inputs, fewer than the "
                f"{self.config.feature_width} task features."
            )
        if self.target.output_size != NUM_ACTIONS:
            raise ConfigurationError(
                f"'{target_model}' produces {self.target.output_size} outputs; "
                f"the navigation task needs one per action ({NUM_ACTIONS})."
            )
        for link in self.inbound:
            source = models[link.source_model]
            if source.input_size != SENSOR_WIDTH:
                raise ConfigurationError(
                    f"Link source '{link.source_model}' accepts {source.input_size} inputs "
                    f"but terrain sensors produce {SENSOR_WIDTH}."
                )

    def gather_link_buffers(self, state: SimulationState) -> list[tuple[LinkDescriptor, np.ndarray]]:
        """Relay every inbound link for the current terrain (empty when coupling is off)."""
        if not self.capabilities.coupling:
            return []
        readings: dict[str, np.ndarray] = {}
        buffers: list[tuple[LinkDescriptor, np.ndarray]] = []
        for link in self.inbound:
            source = self.models[link.source_model]
            if not link.enabled:
                # disabled links draw no sensor noise from the run rng
                buffers.append((link, self.relay(link, source, np.zeros(SENSOR_WIDTH))))
                continue
            if link.source_model not in readings:
                readings[link.source_model] = generate_sensor_data(
                    state.terrain, self.rng, self.config.sensor_noise
                )
            buffer = self.relay(link, source, readings[link.source_model])
            buffers.append((link, buffer))
        return buffers

    def tick(self, state: SimulationState) -> TickOutcome:
        config = self.config
        buffers = self.gather_link_buffers(state)
        composite = build_composite_input(state, buffers, self.target.input_size, config)

        output = self.target.forward(composite)
        action = argmax_action(output)

        prev_distance = state.distance_to_target()
        apply_action(state, action, config)
        new_distance = state.distance_to_target()

        trained_label: Action | None = None
        if self.capabilities.adaptation:
            if new_distance < prev_distance - config.improvement_epsilon:
                trained_label = action
            else:
                trained_label = Action(self.correction(state))
            self.target.local_update(composite, int(trained_label), NUM_ACTIONS, config.adaptation_lr)

        reached = new_distance < config.target_threshold
        if reached:
            state.reset_positions(self.rng, config)

        return TickOutcome(
            action=action,
            prev_distance=prev_distance,
            new_distance=new_distance,
            effective=new_distance < prev_distance,
            reached_target=reached,
            trained_label=trained_label,
        )
