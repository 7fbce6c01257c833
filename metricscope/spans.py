"""Spans whose fields are captured so they can later become metric labels."""

from __future__ import annotations

import itertools
import threading
import weakref
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, TypeVar

T = TypeVar("T")


class _Empty:
    """Marker for a field declared on a span but not yet given a value."""

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = _Empty()


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return repr(value)


class Labels:
    """Span fields held as an insertion-ordered mapping of strings."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Optional[Mapping[str, Any]] = None) -> None:
        self._fields: dict[str, str] = {}
        if fields:
            for name, value in fields.items():
                self.record(name, value)

    def record(self, name: str, value: Any) -> None:
        """Store a field value as a string; EMPTY values are skipped."""
        if value is EMPTY:
            return
        self._fields[name] = _stringify(value)

    def extend_from_labels(self, other: "Labels") -> None:
        """Add fields from `other` that are not already present."""
        for name, value in other._fields.items():
            self._fields.setdefault(name, value)

    def extend_from_labels_overwrite(self, other: "Labels") -> None:
        """Add fields from `other`, replacing values already present."""
        self._fields.update(other._fields)

    def as_dict(self) -> dict[str, str]:
        """Return a copy of the fields."""
        return dict(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Labels):
            return NotImplemented
        return self._fields == other._fields

    def __repr__(self) -> str:
        return f"Labels({self._fields!r})"


class MetricsLayer:
    """Captures span fields, including those of parent spans, per span id."""

    def __init__(self) -> None:
        self._spans: dict[int, Labels] = {}
        self._lock = threading.Lock()

    def on_new_span(
        self, span_id: int, fields: Mapping[str, Any], parent_id: Optional[int] = None
    ) -> None:
        """Capture a new span's fields, merged with its parent's."""
        labels = Labels(fields)
        with self._lock:
            if parent_id is not None:
                parent = self._spans.get(parent_id)
                if parent is not None:
                    labels.extend_from_labels(parent)
            self._spans[span_id] = labels

    def on_record(self, span_id: int, fields: Mapping[str, Any]) -> None:
        """Record fields on an existing span, overwriting earlier values."""
        labels = Labels(fields)
        with self._lock:
            existing = self._spans.get(span_id)
            if existing is None:
                self._spans[span_id] = labels
            else:
                existing.extend_from_labels_overwrite(labels)

    def with_labels(self, span_id: int, f: Callable[[dict[str, str]], T]) -> Optional[T]:
        """Call `f` with a copy of the span's fields; None if the span is unknown."""
        with self._lock:
            labels = self._spans.get(span_id)
            snapshot = None if labels is None else labels.as_dict()
        if snapshot is None:
            return None
        return f(snapshot)

    def _on_close(self, span_id: int) -> None:
        with self._lock:
            self._spans.pop(span_id, None)


class Span:
    """A named unit of work carrying fields declared at creation."""

    def __init__(self, tracer: "Tracer", span_id: int, name: str, field_names: Iterable[str]):
        self._tracer = tracer
        self._id = span_id
        self._name = name
        self._field_names = frozenset(field_names)

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @contextmanager
    def enter(self) -> Iterator["Span"]:
        """Make this span the current one for the duration of the block."""
        self._tracer._push(self._id)
        try:
            yield self
        finally:
            self._tracer._pop()

    def record(self, name: str, value: Any) -> None:
        """Set a declared field's value; fields not declared are ignored."""
        if name not in self._field_names or value is EMPTY:
            return
        layer = self._tracer.layer
        if layer is not None:
            layer.on_record(self._id, {name: value})

    def __repr__(self) -> str:
        return f"Span(id={self._id}, name={self._name!r})"


_ACTIVE: ContextVar[Optional["Tracer"]] = ContextVar("metricscope_active_tracer", default=None)


class Tracer:
    """Creates spans and tracks, per thread, which span is current."""

    def __init__(self, layer: Optional[MetricsLayer] = None) -> None:
        self.layer = layer
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()
        self._local = threading.local()

    def _stack(self) -> list[int]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack

    def _push(self, span_id: int) -> None:
        self._stack().append(span_id)

    def _pop(self) -> None:
        self._stack().pop()

    def span(self, name: str, /, **kwargs: Any) -> Span:
        """Create a span; the current span, if any, becomes its parent."""
        with self._id_lock:
            span_id = next(self._ids)
        span = Span(self, span_id, name, kwargs.keys())
        if self.layer is not None:
            self.layer.on_new_span(span_id, kwargs, self.current_span_id())
            weakref.finalize(span, self.layer._on_close, span_id)
        return span

    def current_span_id(self) -> Optional[int]:
        """Return the id of the innermost entered span in this thread."""
        stack = self._stack()
        return stack[-1] if stack else None

    @contextmanager
    def activate(self) -> Iterator["Tracer"]:
        """Make this tracer the current default for the duration of the block."""
        token = _ACTIVE.set(self)
        try:
            yield self
        finally:
            _ACTIVE.reset(token)


def current_tracer() -> Optional[Tracer]:
    """Return the active tracer, or None."""
    return _ACTIVE.get()