"""A recorder wrapper that adds the current span's fields to metric keys."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Protocol

from metricscope.keys import Key, Label
from metricscope.label_filter import Allowlist, IncludeAll, LabelFilter
from metricscope.spans import current_tracer


class _Recorder(Protocol):
    def describe_counter(self, key_name: str, unit: Any, description: str) -> Any: ...

    def describe_gauge(self, key_name: str, unit: Any, description: str) -> Any: ...

    def describe_histogram(self, key_name: str, unit: Any, description: str) -> Any: ...

    def register_counter(self, key: Key, metadata: Any) -> Any: ...

    def register_gauge(self, key: Key, metadata: Any) -> Any: ...

    def register_histogram(self, key: Key, metadata: Any) -> Any: ...


class TracingContextLayer:
    """Builds TracingContext recorders that share one label filter."""

    def __init__(self, label_filter: LabelFilter) -> None:
        self.label_filter = label_filter

    @classmethod
    def all(cls) -> "TracingContextLayer":
        """A layer that adds every span field as a label."""
        return cls(IncludeAll())

    @classmethod
    def only_allow(cls, allowed: Iterable[str]) -> "TracingContextLayer":
        """A layer that only adds span fields with the given names."""
        return cls(Allowlist(allowed))

    def layer(self, inner: _Recorder) -> "TracingContext":
        """Wrap `inner` in a TracingContext."""
        return TracingContext(inner, self.label_filter)


class TracingContext:
    """A recorder that injects fields of the current span into metric keys."""

    def __init__(self, inner: _Recorder, label_filter: LabelFilter) -> None:
        self.inner = inner
        self.label_filter = label_filter

    def enhance_key(self, key: Key) -> Optional[Key]:
        """Return `key` extended with span labels, or None if there are none."""
        tracer = current_tracer()
        if tracer is None or tracer.layer is None:
            return None
        span_id = tracer.current_span_id()
        if span_id is None:
            return None

        def build(span_labels: dict[str, str]) -> Optional[Key]:
            if not span_labels:
                return None
            merged = {
                name: value
                for name, value in span_labels.items()
                if self.label_filter.should_include_label(key.name, Label(name, value))
            }
            # Labels given on the metric itself win over span fields.
            merged.update((label.key, label.value) for label in key.labels)
            return key.with_labels(Label(name, value) for name, value in merged.items())

        return tracer.layer.with_labels(span_id, build)

    def _resolve(self, key: Key) -> Key:
        enhanced = self.enhance_key(key)
        return key if enhanced is None else enhanced

    def describe_counter(self, key_name: str, unit: Any, description: str) -> Any:
        return self.inner.describe_counter(key_name, unit, description)

    def describe_gauge(self, key_name: str, unit: Any, description: str) -> Any:
        return self.inner.describe_gauge(key_name, unit, description)

    def describe_histogram(self, key_name: str, unit: Any, description: str) -> Any:
        return self.inner.describe_histogram(key_name, unit, description)

    def register_counter(self, key: Key, metadata: Any) -> Any:
        return self.inner.register_counter(self._resolve(key), metadata)

    def register_gauge(self, key: Key, metadata: Any) -> Any:
        return self.inner.register_gauge(self._resolve(key), metadata)

    def register_histogram(self, key: Key, metadata: Any) -> Any:
        return self.inner.register_histogram(self._resolve(key), metadata)