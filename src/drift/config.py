"""Configuration primitives for the DRIFT neural link lab."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DriftConfig:
    """Holds tunable constants for the terrain simulation and link experiments.

    This frozen dataclass centralizes every constant used by the terrain
    physics, the adaptation controller, the pretraining phases and the
    benchmark harness. Key parameter groups:

    **Terrain Physics:**
    - speed: Base step magnitude per tick (units of the [0, 1] square)
    - sand_stuck_threshold: Repeats tolerated on sand before speed drops to zero
    - sand_repeat_factor, sand_change_factor: Sand damping / alternation boost
    - ice_friction: Low-pass coefficient pulling ice velocity toward the request
    - grass_damping: Constant speed factor on grass

    **Control Loop:**
    - target_threshold: Distance below which the target counts as reached
    - improvement_epsilon: Minimum distance drop treated as a successful move
    - adaptation_lr: Learning rate of the online local update
    - feature_width: Number of task features preceding the link region

    **Pretraining:**
    - pretrain_lr: Learning rate for classifier / navigator pretraining
    - pretrain_duration: Default pretraining length per model
    - retarget_probability: Chance per tick of moving the navigator's target

    **Harness:**
    - run_duration, window_interval: Benchmark length and window size
    - seed: Default random seed
    """

    speed: float = 0.02
    sand_stuck_threshold: int = 2
    sand_repeat_factor: float = 0.3
    sand_change_factor: float = 1.5
    ice_friction: float = 0.1
    grass_damping: float = 0.8

    target_threshold: float = 0.1
    improvement_epsilon: float = 0.001
    direction_floor: float = 0.001
    adaptation_lr: float = 0.01
    feature_width: int = 4

    sensor_noise: float = 0.15
    reset_extent: float = 0.3

    pretrain_lr: float = 0.02
    pretrain_duration: float = 5.0
    retarget_probability: float = 0.1

    run_duration: float = 3.0
    window_interval: float = 0.5
    seed: int = 1337

    def __post_init__(self) -> None:
        if self.speed <= 0:
            raise ValueError(
                f"speed must be positive, got {self.speed}.\n"
                f"It is the base step magnitude applied every tick."
            )
        if not (0.0 < self.ice_friction <= 1.0):
            raise ValueError(
                f"ice_friction must lie in (0, 1], got {self.ice_friction}.\n"
                f"A value of 1 removes momentum entirely; 0 would freeze the agent."
            )
        if self.sand_stuck_threshold < 0:
            raise ValueError(f"sand_stuck_threshold must be non-negative, got {self.sand_stuck_threshold}.")
        if not (0.0 <= self.reset_extent < 0.5):
            raise ValueError(
                f"reset_extent must lie in [0, 0.5), got {self.reset_extent}.\n"
                f"Agent and target reset regions would otherwise overlap."
            )
        if self.feature_width < 4:
            raise ValueError(
                f"feature_width must be at least 4, got {self.feature_width}.\n"
                f"Task features are the direction unit vector plus the agent position."
            )
        if self.run_duration <= 0 or self.window_interval <= 0:
            raise ValueError(
                f"run_duration and window_interval must be positive, "
                f"got {self.run_duration} and {self.window_interval}."
            )
        if not (0.0 <= self.retarget_probability <= 1.0):
            raise ValueError(f"retarget_probability must lie in [0, 1], got {self.retarget_probability}.")
