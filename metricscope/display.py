"""Human-readable rendering of metric values, units and list lines."""

from __future__ import annotations

import math
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Iterable, Optional, Tuple, Union

from metricscope.keys import Label

_U64_MAX = 2**64 - 1
_DATA_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")


class Unit(Enum):
    """Units a metric can be described with."""

    COUNT = "count"
    PERCENT = "percent"
    SECONDS = "seconds"
    MILLISECONDS = "milliseconds"
    MICROSECONDS = "microseconds"
    NANOSECONDS = "nanoseconds"
    TEBIBYTES = "tebibytes"
    GIGIBYTES = "gigibytes"
    MEBIBYTES = "mebibytes"
    KIBIBYTES = "kibibytes"
    BYTES = "bytes"
    TERABITS_PER_SECOND = "terabits_per_second"
    GIGABITS_PER_SECOND = "gigabits_per_second"
    MEGABITS_PER_SECOND = "megabits_per_second"
    KILOBITS_PER_SECOND = "kilobits_per_second"
    BITS_PER_SECOND = "bits_per_second"
    COUNT_PER_SECOND = "count_per_second"

    @classmethod
    def from_string(cls, text: str) -> Optional["Unit"]:
        """Parse a unit from its wire name; None if it is unknown."""
        try:
            return cls(text)
        except ValueError:
            return None

    @property
    def canonical_label(self) -> str:
        """The short suffix used when displaying a value in this unit."""
        return _CANONICAL_LABELS[self]

    @property
    def is_time_based(self) -> bool:
        return self in _TIME_NANOS

    @property
    def is_data_based(self) -> bool:
        return self in _DATA_BASED


_CANONICAL_LABELS = {
    Unit.COUNT: "",
    Unit.PERCENT: "%",
    Unit.SECONDS: "s",
    Unit.MILLISECONDS: "ms",
    Unit.MICROSECONDS: "μs",
    Unit.NANOSECONDS: "ns",
    Unit.TEBIBYTES: "TiB",
    Unit.GIGIBYTES: "GiB",
    Unit.MEBIBYTES: "MiB",
    Unit.KIBIBYTES: "KiB",
    Unit.BYTES: "B",
    Unit.TERABITS_PER_SECOND: "Tbps",
    Unit.GIGABITS_PER_SECOND: "Gbps",
    Unit.MEGABITS_PER_SECOND: "Mbps",
    Unit.KILOBITS_PER_SECOND: "kbps",
    Unit.BITS_PER_SECOND: "bps",
    Unit.COUNT_PER_SECOND: "/s",
}

_TIME_NANOS = {
    Unit.NANOSECONDS: 1,
    Unit.MICROSECONDS: 1_000,
    Unit.MILLISECONDS: 1_000_000,
    Unit.SECONDS: 1_000_000_000,
}

_DATA_BASED = frozenset(
    {
        Unit.TEBIBYTES,
        Unit.GIGIBYTES,
        Unit.MEBIBYTES,
        Unit.KIBIBYTES,
        Unit.BYTES,
        Unit.TERABITS_PER_SECOND,
        Unit.GIGABITS_PER_SECOND,
        Unit.MEGABITS_PER_SECOND,
        Unit.KILOBITS_PER_SECOND,
        Unit.BITS_PER_SECOND,
    }
)

_DATA_OFFSETS = {
    Unit.KIBIBYTES: 1,
    Unit.MEBIBYTES: 2,
    Unit.GIGIBYTES: 3,
    Unit.TEBIBYTES: 4,
}


def _plain_float(value: float) -> str:
    """Shortest decimal form of a float, never in exponent notation."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _fixed2(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return f"{value:.2f}"


def _fmt_decimal(integer: int, fraction: int, divisor: int, precision: int) -> str:
    precision = min(precision, 9)
    digits: list[int] = []
    while fraction > 0 and len(digits) < precision:
        digits.append(fraction // divisor)
        fraction %= divisor
        divisor //= 10

    if fraction > 0 and fraction >= divisor * 5:
        carry = True
        for pos in reversed(range(len(digits))):
            if digits[pos] < 9:
                digits[pos] += 1
                carry = False
                break
            digits[pos] = 0
        if carry:
            integer += 1

    if not digits:
        return str(integer)
    return f"{integer}." + "".join(map(str, digits)).rstrip("0")


def format_truncated_duration(nanos: int) -> str:
    """Format a duration given in nanoseconds with a few significant decimals."""
    if nanos < 0:
        raise ValueError("duration cannot be negative")
    secs, sub_nanos = divmod(nanos, 1_000_000_000)
    if secs > 0:
        return _fmt_decimal(secs, sub_nanos, 100_000_000, 3) + "s"
    if nanos >= 1_000_000:
        return _fmt_decimal(nanos // 1_000_000, nanos % 1_000_000, 100_000, 2) + "ms"
    if nanos >= 1_000:
        return _fmt_decimal(nanos // 1_000, nanos % 1_000, 100, 1) + "µs"
    return _fmt_decimal(nanos, 0, 1, 0) + "ns"


def format_integer(value: int, unit: Optional[Unit]) -> str:
    """Format an integer value (such as a counter) in the given unit."""
    if unit is None:
        return str(value)
    if unit.is_data_based:
        return format_data(float(value), unit)
    if unit.is_time_based:
        return format_time_integer(value, unit)
    return f"{value}{unit.canonical_label}"


def format_float(value: float, unit: Optional[Unit]) -> str:
    """Format a floating-point value (gauge or histogram) in the given unit."""
    if unit is None:
        return _plain_float(value)
    if unit.is_data_based:
        return format_data(value, unit)
    if unit.is_time_based:
        return format_time_float(value, unit)
    return f"{_fixed2(value)}{unit.canonical_label}"


def format_data(value: Union[int, float], unit: Unit) -> str:
    """Format a data amount, scaling it by powers of 1024 up to PiB."""
    value = float(value)
    max_index = len(_DATA_UNITS) - 1
    offset = _DATA_OFFSETS.get(unit, 0)

    if value > 0 and math.isinf(value):
        exponent = max_index
    elif value > 0:
        exponent = max(0, math.floor(math.log(value) / math.log(1024.0)))
    else:
        exponent = 0

    unit_index = exponent + offset
    if unit_index > max_index:
        exponent -= unit_index - max_index
        unit_index = max_index
    scaled = value / 1024.0**exponent
    return f"{_fixed2(scaled)} {_DATA_UNITS[unit_index]}"


def format_time_integer(value: int, unit: Unit) -> str:
    """Format an integer amount of time in the given time unit."""
    factor = _TIME_NANOS.get(unit)
    if factor is None:
        return str(value)
    return format_truncated_duration(value * factor)


def format_time_float(value: float, unit: Unit) -> str:
    """Format a floating-point amount of time in the given time unit."""
    factor = _TIME_NANOS.get(unit)
    if factor is None:
        return _plain_float(value)

    adjusted = value / (1_000_000_000 // factor) if factor != 1_000_000_000 else value
    if unit is Unit.NANOSECONDS:
        adjusted = value / 1_000_000_000.0
    elif unit is Unit.MICROSECONDS:
        adjusted = value / 1_000_000.0
    elif unit is Unit.MILLISECONDS:
        adjusted = value / 1_000.0

    sign = "-" if adjusted < 0.0 else ""
    normalized = abs(adjusted)
    if normalized != 0.0 and (
        math.isnan(normalized)
        or math.isinf(normalized)
        or normalized < 2.2250738585072014e-308
    ):
        return _plain_float(value)

    nanos = round(Fraction(normalized) * 1_000_000_000)
    if nanos // 1_000_000_000 > _U64_MAX:
        raise OverflowError("duration is too large to display")
    return sign + format_truncated_duration(nanos)


LabelLike = Union[Label, Tuple[str, str]]


def format_metric_line(
    name: str, labels: Iterable[LabelLike], value_text: str, line_width: int
) -> str:
    """Lay out a metric name (with labels) and its value across one line."""
    pairs = [
        (item.key, item.value) if isinstance(item, Label) else (item[0], item[1])
        for item in labels
    ]
    if pairs:
        display_name = f"{name} [" + ", ".join(f"{k} = {v}" for k, v in pairs) + "]"
    else:
        display_name = name
    space = max(0, line_width - len(display_name) - len(value_text))
    return f"{display_name}{' ' * space}{value_text}"