"""In-memory store of observed metrics and their descriptions."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from metricscope.display import Unit
from metricscope.keys import Key, Label

_U64_MODULUS = 2**64

LabelsLike = Union[Mapping[str, Any], Iterable[Union[Label, Tuple[str, Any]]]]


class MetricKind(Enum):
    """The kind of a metric; declaration order is the sort order."""

    COUNTER = 0
    GAUGE = 1
    HISTOGRAM = 2


@dataclass(frozen=True)
class ClientState:
    """Connection state of an observer client."""

    connected: bool
    message: Optional[str] = None

    @classmethod
    def disconnected(cls, message: Optional[str] = None) -> "ClientState":
        return cls(False, message)

    @classmethod
    def connected_state(cls) -> "ClientState":
        return cls(True, None)


class _Bins:
    """Counts per logarithmic bucket index, collapsing the lowest indices when full."""

    def __init__(self, max_buckets: int) -> None:
        self.max_buckets = max_buckets
        self.counts: dict[int, int] = {}
        self.total = 0

    def add(self, index: int) -> None:
        self.counts[index] = self.counts.get(index, 0) + 1
        self.total += 1
        if len(self.counts) > self.max_buckets:
            self._collapse()

    def _collapse(self) -> None:
        ordered = sorted(self.counts)
        excess = len(ordered) - self.max_buckets
        target = ordered[excess]
        merged = sum(self.counts.pop(index) for index in ordered[:excess])
        self.counts[target] += merged

    def copy(self) -> "_Bins":
        clone = _Bins(self.max_buckets)
        clone.counts = dict(self.counts)
        clone.total = self.total
        return clone


class Summary:
    """A quantile sketch with bounded relative error and exact min and max."""

    def __init__(
        self, alpha: float = 0.0001, max_buckets: int = 32768, min_value: float = 1.0e-9
    ) -> None:
        if not 0.0 < alpha < 1.0:
            raise ValueError("alpha must be between 0 and 1")
        if max_buckets < 1:
            raise ValueError("max_buckets must be positive")
        self.alpha = alpha
        self.min_value = min_value
        self._gamma = (1.0 + alpha) / (1.0 - alpha)
        self._ln_gamma = math.log(self._gamma)
        self._positive = _Bins(max_buckets)
        self._negative = _Bins(max_buckets)
        self._zeroes = 0
        self._min = math.inf
        self._max = -math.inf

    @classmethod
    def with_defaults(cls) -> "Summary":
        return cls()

    def _index(self, magnitude: float) -> int:
        return math.ceil(math.log(magnitude) / self._ln_gamma)

    def _value(self, index: int) -> float:
        return 2.0 * self._gamma**index / (self._gamma + 1.0)

    def add(self, value: float) -> None:
        """Record a value."""
        value = float(value)
        if not math.isfinite(value):
            raise ValueError("summary values must be finite")
        self._min = min(self._min, value)
        self._max = max(self._max, value)
        if abs(value) <= self.min_value:
            self._zeroes += 1
        elif value > 0:
            self._positive.add(self._index(value))
        else:
            self._negative.add(self._index(-value))

    @property
    def count(self) -> int:
        return self._zeroes + self._positive.total + self._negative.total

    def is_empty(self) -> bool:
        return self.count == 0

    @property
    def min(self) -> float:
        """Smallest value seen, or +inf if empty."""
        return self._min

    @property
    def max(self) -> float:
        """Largest value seen, or -inf if empty."""
        return self._max

    def quantile(self, q: float) -> Optional[float]:
        """Estimate the value at quantile `q` in [0, 1]; None if empty or out of range."""
        if not 0.0 <= q <= 1.0 or self.count == 0:
            return None
        rank = int(q * (self.count - 1))
        seen = 0
        for index in sorted(self._negative.counts, reverse=True):
            seen += self._negative.counts[index]
            if seen > rank:
                return self._clamp(-self._value(index))
        seen += self._zeroes
        if seen > rank:
            return self._clamp(0.0)
        for index in sorted(self._positive.counts):
            seen += self._positive.counts[index]
            if seen > rank:
                return self._clamp(self._value(index))
        return self._max

    def _clamp(self, estimate: float) -> float:
        return min(max(estimate, self._min), self._max)

    def copy(self) -> "Summary":
        clone = Summary.__new__(Summary)
        clone.alpha = self.alpha
        clone.min_value = self.min_value
        clone._gamma = self._gamma
        clone._ln_gamma = self._ln_gamma
        clone._positive = self._positive.copy()
        clone._negative = self._negative.copy()
        clone._zeroes = self._zeroes
        clone._min = self._min
        clone._max = self._max
        return clone

    def __repr__(self) -> str:
        return f"Summary(count={self.count}, min={self._min}, max={self._max})"


MetricValue = Union[int, float, Summary]


@dataclass(frozen=True)
class MetricEntry:
    """One metric as seen in a snapshot, with its description if known."""

    kind: MetricKind
    key: Key
    value: MetricValue
    unit: Optional[Unit] = None
    description: Optional[str] = None


def _sort_key(item: Tuple[MetricKind, Key]) -> tuple:
    kind, key = item
    return (kind.value, key.name, tuple((label.key, label.value) for label in key.labels))


def _make_key(name: str, labels: Optional[LabelsLike]) -> Key:
    if labels is None:
        pairs: list[Tuple[str, str]] = []
    elif isinstance(labels, Mapping):
        pairs = [(str(k), str(v)) for k, v in labels.items()]
    else:
        pairs = [
            (item.key, item.value) if isinstance(item, Label) else (str(item[0]), str(item[1]))
            for item in labels
        ]
    pairs.sort(key=lambda pair: pair[0])
    return Key(name, tuple(Label(k, v) for k, v in pairs))


def _check_u64(value: int) -> int:
    value = int(value)
    if not 0 <= value < _U64_MODULUS:
        raise ValueError("counter values must fit in an unsigned 64-bit integer")
    return value


@dataclass
class MetricStore:
    """Thread-safe collection of metric values and metadata."""

    _metrics: dict = field(default_factory=dict)
    _metadata: dict = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def apply_metadata(
        self,
        kind: MetricKind,
        name: str,
        unit: Union[Unit, str, None],
        description: Optional[str],
    ) -> None:
        """Set the unit and description for all metrics of `kind` named `name`."""
        if isinstance(unit, str):
            unit = Unit.from_string(unit)
        with self._lock:
            self._metadata[(kind, name)] = (unit, description)

    def _entry(self, kind: MetricKind, name: str, labels: Optional[LabelsLike], default: Any):
        composite = (kind, _make_key(name, labels))
        if composite not in self._metrics:
            self._metrics[composite] = default() if callable(default) else default
        return composite

    def increment_counter(self, name: str, labels: Optional[LabelsLike], value: int) -> None:
        value = _check_u64(value)
        with self._lock:
            composite = self._entry(MetricKind.COUNTER, name, labels, 0)
            self._metrics[composite] = (self._metrics[composite] + value) % _U64_MODULUS

    def set_counter(self, name: str, labels: Optional[LabelsLike], value: int) -> None:
        value = _check_u64(value)
        with self._lock:
            composite = self._entry(MetricKind.COUNTER, name, labels, 0)
            self._metrics[composite] = value

    def increment_gauge(self, name: str, labels: Optional[LabelsLike], value: float) -> None:
        with self._lock:
            composite = self._entry(MetricKind.GAUGE, name, labels, 0.0)
            self._metrics[composite] += float(value)

    def decrement_gauge(self, name: str, labels: Optional[LabelsLike], value: float) -> None:
        with self._lock:
            composite = self._entry(MetricKind.GAUGE, name, labels, 0.0)
            self._metrics[composite] -= float(value)

    def set_gauge(self, name: str, labels: Optional[LabelsLike], value: float) -> None:
        with self._lock:
            composite = self._entry(MetricKind.GAUGE, name, labels, 0.0)
            self._metrics[composite] = float(value)

    def record_histogram(self, name: str, labels: Optional[LabelsLike], value: float) -> None:
        with self._lock:
            composite = self._entry(MetricKind.HISTOGRAM, name, labels, Summary.with_defaults)
            self._metrics[composite].add(value)

    def snapshot(self) -> list[MetricEntry]:
        """Return all metrics sorted by kind, name and labels, with their metadata."""
        with self._lock:
            entries = []
            for kind, key in sorted(self._metrics, key=_sort_key):
                value = self._metrics[(kind, key)]
                if isinstance(value, Summary):
                    value = value.copy()
                unit, description = self._metadata.get((kind, key.name), (None, None))
                entries.append(MetricEntry(kind, key, value, unit, description))
            return entries