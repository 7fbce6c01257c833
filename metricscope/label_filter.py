"""Filters deciding which span fields become metric labels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from metricscope.keys import Label


class LabelFilter(ABC):
    """Decides whether a span field should be included as a metric label."""

    @abstractmethod
    def should_include_label(self, name: str, label: Label) -> bool:
        """Return True if `label` should be added to the metric named `name`."""


class IncludeAll(LabelFilter):
    """A filter that allows every label."""

    def should_include_label(self, name: str, label: Label) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, IncludeAll)

    def __hash__(self) -> int:
        return hash(IncludeAll)

    def __repr__(self) -> str:
        return "IncludeAll()"


class Allowlist(LabelFilter):
    """A filter that only allows labels whose key is in a fixed set."""

    def __init__(self, allowed: Iterable[str]) -> None:
        if isinstance(allowed, str):
            raise TypeError("allowed must be an iterable of label names, not a single string")
        self.label_names = frozenset(str(name) for name in allowed)

    def should_include_label(self, name: str, label: Label) -> bool:
        return label.key in self.label_names

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Allowlist):
            return NotImplemented
        return self.label_names == other.label_names

    def __hash__(self) -> int:
        return hash(self.label_names)

    def __repr__(self) -> str:
        return f"Allowlist({sorted(self.label_names)!r})"