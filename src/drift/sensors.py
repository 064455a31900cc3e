"""Synthetic terrain sensor readings fed to the terrain classifier.

Each terrain has a fixed 8-channel signature; readings add uniform noise and
are clamped to [0, 1].
"""

from __future__ import annotations

import numpy as np

from .terrain import Terrain

TERRAIN_SIGNATURES: dict[Terrain, np.ndarray] = {
    Terrain.ROAD: np.array([0.9, 0.1, 0.7, 0.2, 0.5, 0.3, 0.8, 0.95]),
    Terrain.SAND: np.array([0.3, 0.85, 0.9, 0.7, 0.75, 0.2, 0.25, 0.35]),
    Terrain.ICE: np.array([0.95, 0.05, 0.15, 0.9, 0.2, 0.85, 0.6, 0.1]),
    Terrain.GRASS: np.array([0.4, 0.5, 0.35, 0.45, 0.9, 0.6, 0.15, 0.55]),
}

SENSOR_WIDTH = 8


def generate_sensor_data(terrain: Terrain, rng: np.random.Generator, noise: float = 0.15) -> np.ndarray:
    signature = TERRAIN_SIGNATURES[Terrain(terrain)]
    readings = signature + (rng.random(signature.size) - 0.5) * noise
    return np.clip(readings, 0.0, 1.0)
