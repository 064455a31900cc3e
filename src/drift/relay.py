"""Activation relay: moves a fixed-width activation slice between models."""

from __future__ import annotations

import numpy as np

from .links import LinkDescriptor
from .network import NeuralModel


def relay(link: LinkDescriptor, source_model: NeuralModel, source_input: np.ndarray) -> np.ndarray:
    """Return exactly ``link.width`` activations read from ``source_model``.

    A disabled link returns zeros without running the source model. Otherwise
    the source is driven forward on ``source_input`` and stage
    ``link.source_stage`` is copied in order, zero-padded when narrower than
    the link and truncated when wider.
    """
    buffer = np.zeros(link.width)
    if not link.enabled:
        return buffer
    source_model.forward(source_input)
    stage = np.asarray(source_model.stage_output(link.source_stage), dtype=float).ravel()
    n = min(link.width, stage.size)
    buffer[:n] = stage[:n]
    return buffer


class ActivationRelay:
    """Stateful wrapper around :func:`relay` that counts what it did."""

    def __init__(self) -> None:
        self.forward_calls = 0
        self.zero_fills = 0

    def __call__(self, link: LinkDescriptor, source_model: NeuralModel, source_input: np.ndarray) -> np.ndarray:
        if link.enabled:
            self.forward_calls += 1
        else:
            self.zero_fills += 1
        return relay(link, source_model, source_input)
