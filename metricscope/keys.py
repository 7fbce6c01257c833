"""Metric keys: a name plus an ordered sequence of labels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple, Union


@dataclass(frozen=True)
class Label:
    """A single key/value pair attached to a metric."""

    key: str
    value: str


LabelLike = Union[Label, Tuple[str, str]]


def _to_label(item: LabelLike) -> Label:
    if isinstance(item, Label):
        return item
    key, value = item
    return Label(str(key), str(value))


@dataclass(frozen=True)
class Key:
    """Identifies a metric by name and labels; label order is significant."""

    name: str
    labels: Tuple[Label, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "labels", tuple(_to_label(item) for item in self.labels))

    @classmethod
    def from_name(cls, name: str) -> "Key":
        """Create a key with no labels."""
        return cls(name)

    def with_labels(self, labels: Iterable[LabelLike]) -> "Key":
        """Return a key with the same name and the given labels."""
        return type(self)(self.name, tuple(labels))