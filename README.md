# metricscope

`metricscope` is a small, dependency-free toolkit for working with metrics:

- **Span fields as labels.** Fields attached to spans are captured and added
  to metric keys as extra labels whenever a metric is registered while a span
  is entered. Child spans inherit their parents' fields, the child's value
  wins on duplicate names, and labels given on the metric itself always win
  over span fields.
- **An in-memory metric store.** Counters, gauges and histograms are
  accumulated from individual operations, together with each metric's unit
  and description, and read back as an ordered snapshot.
- **Display helpers.** Values are rendered for a text view: data sizes scaled
  by powers of 1024, durations truncated to a readable precision, metric
  lines padded to a given width, plus a wrap-around list selector.

## Modules

| Module | What it provides |
| --- | --- |
| `metricscope.keys` | `Label` and `Key`: a metric name plus ordered labels. |
| `metricscope.label_filter` | `LabelFilter`, with `IncludeAll` and `Allowlist`, deciding which span fields become labels. |
| `metricscope.spans` | `Tracer`, `Span`, `Labels`, `MetricsLayer`, `current_tracer()` and the `EMPTY` marker. |
| `metricscope.context` | `TracingContextLayer` and `TracingContext`: a recorder wrapper that enriches keys with span fields. |
| `metricscope.display` | `Unit` and the `format_*` functions. |
| `metricscope.selector` | `Selector`, a cursor over a list that wraps at both ends. |
| `metricscope.store` | `MetricKind`, `ClientState`, `Summary`, `MetricEntry` and `MetricStore`. |

## Enriching metric keys with span fields

A `Tracer` creates spans; give it a `MetricsLayer` so their fields are
captured, and make it the active tracer with `activate()`. Wrap any recorder
(an object with `register_counter`, `register_gauge`, `register_histogram`
and the matching `describe_*` methods) with a `TracingContextLayer`:

```python
from metricscope.context import TracingContextLayer
from metricscope.keys import Key, Label
from metricscope.spans import MetricsLayer, Tracer

tracer = Tracer(MetricsLayer())
recorder = TracingContextLayer.all().layer(my_recorder)

key = Key.from_name("login_attempts").with_labels([Label("service", "login_service")])

with tracer.activate():
    span = tracer.span("login", user="ferris", **{"user.email": "ferris@example.com"})
    with span.enter():
        recorder.register_counter(key, None)
```

The inner recorder receives a key with the labels `user`, `user.email` and
`service`, in that order. Outside any entered span, with no active tracer, or
when the current span has no fields, the key is passed on unchanged.
`describe_counter`, `describe_gauge` and `describe_histogram` are always
forwarded untouched.

`TracingContextLayer.all()` keeps every span field;
`TracingContextLayer.only_allow(["env", "service"])` keeps only the named
ones; any other `LabelFilter` can be passed to the constructor. The filter
applies to span fields only, never to the metric's own labels.

Field values are stored as strings: booleans as `true`/`false`, integers in
decimal, other non-string values by their `repr`. A field declared with
`EMPTY` has no value until `Span.record(name, value)` sets it; recording
replaces any earlier value, and names not declared when the span was created
are ignored.

## Accumulating metrics

`MetricStore` applies operations by metric name and labels (a mapping or an
iterable of `Label`s or pairs; labels are sorted by key):

- `increment_counter` / `set_counter` — values must fit in an unsigned
  64-bit integer, otherwise `ValueError`; increments wrap at 2**64
- `increment_gauge` / `decrement_gauge` / `set_gauge`
- `record_histogram`, which feeds a `Summary`
- `apply_metadata(kind, name, unit, description)`, where `unit` is a `Unit`,
  a unit name such as `"milliseconds"` (unknown names become `None`), or
  `None`

`snapshot()` returns a list of `MetricEntry` ordered by kind (counters,
gauges, histograms), name and labels, each with its unit and description.

`Summary` is a quantile sketch with a relative error bound (default 0.0001)
and exact `min` and `max`. `quantile(q)` returns `None` when the summary is
empty or `q` lies outside `[0, 1]`; non-finite values are rejected.

## Rendering values

```python
from metricscope.display import Unit, format_float, format_truncated_duration

format_truncated_duration(1_500_000)      # "1.5ms"
format_truncated_duration(2_000_000_000)  # "2s"
```

`format_integer` and `format_float` choose the rendering from the value's
`Unit`: data units are scaled by powers of 1024 up to PiB, time units become
truncated durations, other units get their canonical label appended, and
values without a unit are printed plainly. `format_metric_line(name, labels,
value_text, line_width)` joins a display name such as `requests [method =
GET]` and the value text with enough spaces to fill the width.

`Selector` tracks the selected row: `next()` and `previous()` wrap around,
`top()` and `bottom()` jump to the ends, and `set_length()` resets the
selection to the top when the list shrinks. Moving to the bottom or stepping
through an empty list raises `IndexError`.

## What this package does not do

It has no network client and no terminal screen: it does not connect to a
metrics endpoint, decode a wire format or draw a live view, and it installs
no command. `ClientState` only describes a connection state; feeding
`MetricStore` and showing its contents is left to the caller.

## Requirements

Python 3.10 or newer; no third-party dependencies.