"""Dense network backend used as the model collaborator of the link lab.

The controller, relay and harness only rely on the :class:`NeuralModel`
contract:

    forward(x)                      -> output vector
    stage_output(index)             -> activation of an internal stage
    local_update(x, label, n, lr)   -> one online weight adjustment

:class:`DenseNetwork` is a small numpy implementation of that contract. It is
built from the same declarative layer description the config documents store,
restricted to fully connected layers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, Sequence

import numpy as np

from .errors import ConfigurationError, ExecutionError

LEAKY_SLOPE = 0.01
_GELU_C = float(np.sqrt(2.0 / np.pi))


class NeuralModel(Protocol):
    input_size: int
    output_size: int
    num_stages: int

    def forward(self, x: np.ndarray) -> np.ndarray: ...

    def stage_output(self, index: int) -> np.ndarray: ...

    def local_update(self, x: np.ndarray, label_index: int, num_classes: int, learning_rate: float) -> float: ...


def _sigmoid(z: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-np.clip(z, -60.0, 60.0)))


def _gelu(z: np.ndarray) -> np.ndarray:
    return 0.5 * z * (1.0 + np.tanh(_GELU_C * (z + 0.044715 * z**3)))


def _gelu_grad(z: np.ndarray, a: np.ndarray) -> np.ndarray:
    t = np.tanh(_GELU_C * (z + 0.044715 * z**3))
    return 0.5 * (1.0 + t) + 0.5 * z * (1.0 - t * t) * _GELU_C * (1.0 + 3.0 * 0.044715 * z**2)


# name -> (activation(z), derivative(z, a))
ACTIVATIONS: dict[str, tuple[Callable[[np.ndarray], np.ndarray], Callable[[np.ndarray, np.ndarray], np.ndarray]]] = {
    "linear": (lambda z: z, lambda z, a: np.ones_like(z)),
    "relu": (lambda z: np.maximum(z, 0.0), lambda z, a: (z > 0).astype(float)),
    "leaky_relu": (
        lambda z: np.where(z > 0, z, LEAKY_SLOPE * z),
        lambda z, a: np.where(z > 0, 1.0, LEAKY_SLOPE),
    ),
    "sigmoid": (_sigmoid, lambda z, a: a * (1.0 - a)),
    "tanh": (np.tanh, lambda z, a: 1.0 - a * a),
    "gelu": (_gelu, _gelu_grad),
}


@dataclass(slots=True)
class DenseLayer:
    """Fully connected layer ``a = f(x @ W + b)``.

    Attributes:
        weights: Weight matrix of shape (input_size, output_size).
        bias: Bias vector of shape (output_size,).
        activation: Key into :data:`ACTIVATIONS`.
        comment: Free-form note carried over from the layer description.
    """

    weights: np.ndarray
    bias: np.ndarray
    activation: str = "linear"
    comment: str = ""

    def __post_init__(self) -> None:
        if self.activation not in ACTIVATIONS:
            raise ConfigurationError(
                f"Unsupported activation '{self.activation}'.\n"
                f"Available activations: {', '.join(sorted(ACTIVATIONS))}."
            )
        if self.weights.ndim != 2 or self.bias.shape != (self.weights.shape[1],):
            raise ConfigurationError(
                f"Layer weights {self.weights.shape} and bias {self.bias.shape} do not agree.\n"
                f"Expected weights (in, out) and bias (out,)."
            )

    @property
    def input_size(self) -> int:
        return int(self.weights.shape[0])

    @property
    def output_size(self) -> int:
        return int(self.weights.shape[1])


class DenseNetwork:
    """Feed-forward stack of :class:`DenseLayer` objects.

    Stage ``i`` is the post-activation output of layer ``i``; the last stage is
    the network output. Stage outputs are only available after a forward call.
    """

    def __init__(self, layers: Sequence[DenseLayer]) -> None:
        if not layers:
            raise ConfigurationError("A network needs at least one layer.")
        for idx in range(1, len(layers)):
            if layers[idx].input_size != layers[idx - 1].output_size:
                raise ConfigurationError(
                    f"Layer {idx} expects {layers[idx].input_size} inputs but layer {idx - 1} "
                    f"produces {layers[idx - 1].output_size}.\n"
                    f"Consecutive dense layers must chain their sizes."
                )
        self.layers = list(layers)
        self._inputs: list[np.ndarray] = []
        self._pre: list[np.ndarray] = []
        self._stages: list[np.ndarray] = []

    @property
    def input_size(self) -> int:
        return self.layers[0].input_size

    @property
    def output_size(self) -> int:
        return self.layers[-1].output_size

    @property
    def num_stages(self) -> int:
        return len(self.layers)

    def forward(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        if x.shape != (self.input_size,):
            raise ExecutionError(
                f"Network expects an input vector of width {self.input_size}, got shape {x.shape}."
            )
        inputs: list[np.ndarray] = []
        pre: list[np.ndarray] = []
        stages: list[np.ndarray] = []
        a = x
        for layer in self.layers:
            inputs.append(a)
            z = a @ layer.weights + layer.bias
            a = ACTIVATIONS[layer.activation][0](z)
            pre.append(z)
            stages.append(a)
        if not np.all(np.isfinite(a)):
            raise ExecutionError("Network produced non-finite outputs; weights have diverged.")
        self._inputs, self._pre, self._stages = inputs, pre, stages
        return a.copy()

    def stage_output(self, index: int) -> np.ndarray:
        if not self._stages:
            raise ExecutionError("stage_output() called before any forward pass.")
        if not (0 <= index < len(self._stages)):
            raise ExecutionError(f"Stage index {index} out of range for a {len(self._stages)}-stage network.")
        return self._stages[index].copy()

    def local_update(self, x: np.ndarray, label_index: int, num_classes: int, learning_rate: float) -> float:
        """Apply one chain-rule step toward the one-hot target at ``label_index``.

        Returns:
            Squared-error loss measured before the update.
        """
        if num_classes != self.output_size:
            raise ExecutionError(
                f"num_classes={num_classes} does not match the network output width {self.output_size}."
            )
        if not (0 <= label_index < num_classes):
            raise ExecutionError(f"label_index {label_index} outside [0, {num_classes}).")

        output = self.forward(x)
        target = np.zeros(num_classes)
        target[label_index] = 1.0
        error = output - target
        loss = 0.5 * float(np.sum(error * error))

        last = self.layers[-1]
        delta = error * ACTIVATIONS[last.activation][1](self._pre[-1], self._stages[-1])
        for idx in range(len(self.layers) - 1, -1, -1):
            layer = self.layers[idx]
            grad_w = np.outer(self._inputs[idx], delta)
            grad_b = delta
            if idx > 0:
                prev = self.layers[idx - 1]
                back = layer.weights @ delta
                delta = back * ACTIVATIONS[prev.activation][1](self._pre[idx - 1], self._stages[idx - 1])
            layer.weights -= learning_rate * grad_w
            layer.bias -= learning_rate * grad_b
        return loss

    def definition(self) -> dict[str, Any]:
        """Return the declarative description this network can be rebuilt from."""
        return {
            "layers": [
                {
                    "type": "dense",
                    "input_size": layer.input_size,
                    "output_size": layer.output_size,
                    "activation": layer.activation,
                    **({"comment": layer.comment} if layer.comment else {}),
                }
                for layer in self.layers
            ]
        }


def build_network(definition: Mapping[str, Any], rng: np.random.Generator | None = None) -> DenseNetwork:
    """Construct and initialize a :class:`DenseNetwork` from a layer description.

    Args:
        definition: Mapping with a ``"layers"`` list; each entry needs ``type``
            (only ``"dense"``), ``input_size``, ``output_size`` and optionally
            ``activation`` and ``comment``. Other top-level keys are ignored.
        rng: Generator used for weight initialization.

    Raises:
        ConfigurationError: If the description is malformed.
    """
    rng = rng or np.random.default_rng()
    specs = definition.get("layers") if isinstance(definition, Mapping) else None
    if not specs:
        raise ConfigurationError(
            "Model definition must contain a non-empty 'layers' list.\n"
            "Example: {\"layers\": [{\"type\": \"dense\", \"input_size\": 8, \"output_size\": 4}]}"
        )

    layers: list[DenseLayer] = []
    for idx, spec in enumerate(specs):
        layer_type = spec.get("type", "dense")
        if layer_type != "dense":
            raise ConfigurationError(
                f"Layer {idx} has unsupported type '{layer_type}'.\n"
                f"This backend only builds dense layers."
            )
        try:
            n_in = int(spec["input_size"])
            n_out = int(spec["output_size"])
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Layer {idx} needs integer input_size and output_size: {e}") from e
        if n_in <= 0 or n_out <= 0:
            raise ConfigurationError(f"Layer {idx} sizes must be positive, got {n_in} -> {n_out}.")
        scale = np.sqrt(2.0 / n_in)
        layers.append(
            DenseLayer(
                weights=rng.normal(0.0, scale, size=(n_in, n_out)),
                bias=np.zeros(n_out),
                activation=spec.get("activation", "linear"),
                comment=spec.get("comment", ""),
            )
        )
    return DenseNetwork(layers)
