"""Terrain physics for the navigation task.

The agent moves on the unit square. Every terrain turns a requested discrete
action into an actual displacement differently:

    road   full speed, memoryless
    sand   repeating an action bogs the agent down; changing direction is rewarded
    ice    velocity is low-pass filtered toward the request (momentum)
    grass  constant damping
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

import numpy as np

from .config import DriftConfig


class Terrain(str, Enum):
    ROAD = "road"
    SAND = "sand"
    ICE = "ice"
    GRASS = "grass"

    @property
    def index(self) -> int:
        return list(Terrain).index(self)


class Action(IntEnum):
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3

    @property
    def is_vertical(self) -> bool:
        return self in (Action.UP, Action.DOWN)


NUM_ACTIONS = len(Action)
NUM_TERRAINS = len(Terrain)

ACTION_VECTORS: dict[Action, np.ndarray] = {
    Action.UP: np.array([0.0, 1.0]),
    Action.DOWN: np.array([0.0, -1.0]),
    Action.LEFT: np.array([-1.0, 0.0]),
    Action.RIGHT: np.array([1.0, 0.0]),
}


def _as_position(value, name: str) -> np.ndarray:
    arr = np.array(value, dtype=float)
    if arr.shape != (2,):
        raise ValueError(f"{name} must hold exactly 2 coordinates, got shape {arr.shape}.")
    if not np.all(np.isfinite(arr)) or np.any(arr < 0.0) or np.any(arr > 1.0):
        raise ValueError(
            f"{name} must lie in [0, 1] x [0, 1], got {arr.tolist()}.\n"
            f"The simulation operates on the unit square."
        )
    return arr


@dataclass(slots=True)
class SimulationState:
    """Mutable per-run simulation record.

    Attributes:
        agent_pos: Agent coordinates in [0, 1]^2.
        target_pos: Target coordinates in [0, 1]^2.
        terrain: Active terrain category.
        last_action: Action taken on the previous tick, or None.
        stuck_count: Consecutive-repeat counter used on sand.
        velocity: Persistent velocity used on ice.
    """

    agent_pos: np.ndarray
    target_pos: np.ndarray
    terrain: Terrain = Terrain.ROAD
    last_action: Action | None = None
    stuck_count: int = 0
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))

    def __post_init__(self) -> None:
        self.agent_pos = _as_position(self.agent_pos, "agent_pos")
        self.target_pos = _as_position(self.target_pos, "target_pos")
        self.terrain = Terrain(self.terrain)
        self.velocity = np.array(self.velocity, dtype=float)

    def distance_to_target(self) -> float:
        return float(np.linalg.norm(self.target_pos - self.agent_pos))

    def set_terrain(self, terrain: Terrain) -> None:
        """Switch terrain; momentum and stuck state never carry across a change."""
        terrain = Terrain(terrain)
        if terrain != self.terrain:
            self.terrain = terrain
            self.stuck_count = 0
            self.velocity = np.zeros(2)

    def reset_positions(self, rng: np.random.Generator, config: DriftConfig) -> None:
        """Place agent and target in opposite corners and clear movement memory."""
        extent = config.reset_extent
        self.agent_pos = rng.random(2) * extent
        self.target_pos = (1.0 - extent) + rng.random(2) * extent
        self.last_action = None
        self.stuck_count = 0
        self.velocity = np.zeros(2)

    def copy(self) -> "SimulationState":
        return SimulationState(
            agent_pos=self.agent_pos.copy(),
            target_pos=self.target_pos.copy(),
            terrain=self.terrain,
            last_action=self.last_action,
            stuck_count=self.stuck_count,
            velocity=self.velocity.copy(),
        )


def _sand_speed(state: SimulationState, action: Action, config: DriftConfig) -> float:
    if action == state.last_action:
        state.stuck_count += 1
        if state.stuck_count > config.sand_stuck_threshold:
            return 0.0
        return config.speed * config.sand_repeat_factor
    state.stuck_count = 0
    return config.speed * config.sand_change_factor


def apply_action(state: SimulationState, action: Action, config: DriftConfig) -> SimulationState:
    """Advance ``state`` in place by one tick of terrain physics.

    Only ``agent_pos``, ``last_action``, ``stuck_count`` and ``velocity`` are
    touched. Returns the same state object for chaining.
    """
    action = Action(action)
    direction = ACTION_VECTORS[action]

    if state.terrain is Terrain.SAND:
        delta = direction * _sand_speed(state, action, config)
    elif state.terrain is Terrain.ICE:
        friction = config.ice_friction
        state.velocity = state.velocity * (1.0 - friction) + direction * config.speed * friction
        delta = state.velocity
    elif state.terrain is Terrain.GRASS:
        delta = direction * config.speed * config.grass_damping
    else:
        delta = direction * config.speed

    state.agent_pos = np.clip(state.agent_pos + delta, 0.0, 1.0)
    state.last_action = action
    return state


def plain_step(state: SimulationState, action: Action, config: DriftConfig) -> SimulationState:
    """Full-speed move ignoring terrain, used while pretraining on road."""
    state.agent_pos = np.clip(state.agent_pos + ACTION_VECTORS[Action(action)] * config.speed, 0.0, 1.0)
    return state


def optimal_action(state: SimulationState) -> Action:
    """Direct pursuit along the axis with the larger remaining distance."""
    dx, dy = state.target_pos - state.agent_pos
    if abs(dx) > abs(dy):
        return Action.RIGHT if dx > 0 else Action.LEFT
    return Action.UP if dy > 0 else Action.DOWN
