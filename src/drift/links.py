"""Neural link descriptors.

A link copies ``width`` activations from stage ``source_stage`` of one model
into the input vector of another model, starting at ``target_offset``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Iterator, Mapping

from .errors import ConfigurationError
from .network import NeuralModel


@dataclass(frozen=True, slots=True)
class LinkDescriptor:
    """Static description of one coupling between two models.

    Attributes:
        name: Link identifier, unique within a link set.
        source_model: Name of the model whose internal stage is read.
        source_stage: Index of the internal stage to read.
        target_model: Name of the model receiving the activations.
        target_offset: Index into the target's input vector where injection begins.
        width: Number of values transferred.
        enabled: When False the link injects zeros and never runs its source.
        description: Free-form note.
    """

    name: str
    source_model: str
    source_stage: int
    target_model: str
    target_offset: int
    width: int
    enabled: bool = True
    description: str = ""

    def __post_init__(self) -> None:
        for label, value in (("name", self.name), ("source_model", self.source_model), ("target_model", self.target_model)):
            if not value or not isinstance(value, str):
                raise ValueError(f"Link {label} must be a non-empty string, got: {value!r}")
        if self.source_stage < 0:
            raise ValueError(f"Link '{self.name}': source_stage must be non-negative, got {self.source_stage}.")
        if self.target_offset < 0:
            raise ValueError(f"Link '{self.name}': target_offset must be non-negative, got {self.target_offset}.")
        if self.width <= 0:
            raise ValueError(
                f"Link '{self.name}': width must be positive, got {self.width}.\n"
                f"A link transfers at least one activation value."
            )

    @property
    def target_range(self) -> range:
        return range(self.target_offset, self.target_offset + self.width)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LinkDescriptor":
        try:
            return cls(
                name=str(payload["name"]),
                source_model=str(payload["source_model"]),
                source_stage=int(payload["source_stage"]),
                target_model=str(payload["target_model"]),
                target_offset=int(payload["target_offset"]),
                width=int(payload["width"]),
                enabled=bool(payload.get("enabled", True)),
                description=str(payload.get("description", "")),
            )
        except KeyError as e:
            raise ConfigurationError(f"Link definition is missing field {e}: {dict(payload)!r}") from e


class LinkSet:
    """Ordered collection of :class:`LinkDescriptor` objects."""

    def __init__(self, links: Iterable[LinkDescriptor] = ()) -> None:
        self._links: list[LinkDescriptor] = []
        for link in links:
            self.add(link)

    def add(self, link: LinkDescriptor) -> None:
        if any(existing.name == link.name for existing in self._links):
            raise ConfigurationError(f"Duplicate link name '{link.name}'. Link names must be unique.")
        self._links.append(link)

    def get(self, name: str) -> LinkDescriptor:
        for link in self._links:
            if link.name == name:
                return link
        raise KeyError(f"No link named '{name}'. Available: {', '.join(item.name for item in self._links) or 'none'}")

    def targeting(self, model_name: str) -> list[LinkDescriptor]:
        return [link for link in self._links if link.target_model == model_name]

    def __iter__(self) -> Iterator[LinkDescriptor]:
        return iter(self._links)

    def __len__(self) -> int:
        return len(self._links)

    def validate(self, models: Mapping[str, NeuralModel], feature_width: int = 0) -> None:
        """Check every link against the constructed models.

        Disabled links are validated as well, so toggling ``enabled`` never turns
        a working configuration into a broken one.

        Raises:
            ConfigurationError: On unknown models, out-of-range stages, links that
                spill past the target input or into the task-feature prefix, and
                overlapping target ranges.
        """
        for link in self._links:
            for role, model_name in (("source", link.source_model), ("target", link.target_model)):
                if model_name not in models:
                    raise ConfigurationError(
                        f"Link '{link.name}' references unknown {role} model '{model_name}'.\n"
                        f"Known models: {', '.join(sorted(models)) or 'none'}"
                    )
            source = models[link.source_model]
            if link.source_stage >= source.num_stages:
                raise ConfigurationError(
                    f"Link '{link.name}' reads stage {link.source_stage} but '{link.source_model}' "
                    f"has only {source.num_stages} stages."
                )
            target = models[link.target_model]
            end = link.target_offset + link.width
            if end > target.input_size:
                raise ConfigurationError(
                    f"Link '{link.name}' writes input[{link.target_offset}:{end}] but "
                    f"'{link.target_model}' only accepts {target.input_size} inputs."
                )
            if link.target_offset < feature_width:
                raise ConfigurationError(
                    f"Link '{link.name}' starts at offset {link.target_offset}, inside the "
                    f"{feature_width} task features of '{link.target_model}'."
                )

        by_target: dict[str, list[LinkDescriptor]] = {}
        for link in self._links:
            by_target.setdefault(link.target_model, []).append(link)
        for target_name, group in by_target.items():
            ordered = sorted(group, key=lambda item: item.target_offset)
            for left, right in zip(ordered, ordered[1:]):
                if left.target_offset + left.width > right.target_offset:
                    raise ConfigurationError(
                        f"Links '{left.name}' and '{right.name}' overlap on '{target_name}' "
                        f"(input[{left.target_offset}:{left.target_offset + left.width}] vs "
                        f"input[{right.target_offset}:{right.target_offset + right.width}])."
                    )

    def to_list(self) -> list[dict[str, Any]]:
        return [link.to_dict() for link in self._links]

    @classmethod
    def from_list(cls, payload: Iterable[Mapping[str, Any]]) -> "LinkSet":
        return cls(LinkDescriptor.from_dict(item) for item in payload)
