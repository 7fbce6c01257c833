import math

import pytest

from metricscope.display import (
    Unit,
    format_data,
    format_float,
    format_integer,
    format_metric_line,
    format_time_float,
    format_time_integer,
    format_truncated_duration,
)
from metricscope.keys import Label


@pytest.mark.parametrize("unit", list(Unit))
def test_unit_from_string_round_trip(unit):
    assert Unit.from_string(unit.value) is unit


def test_unit_from_string_unknown():
    assert Unit.from_string("furlongs") is None


def test_unit_classification():
    seconds = Unit.from_string(Unit.SECONDS.value)
    data = Unit.from_string(Unit.BYTES.value)
    count = Unit.from_string(Unit.COUNT.value)
    assert seconds.is_time_based
    assert not seconds.is_data_based
    assert data.is_data_based
    assert not data.is_time_based
    assert not count.is_data_based and not count.is_time_based


def test_truncated_duration_seconds():
    assert format_truncated_duration(1_500_000_000) == "1.5s"


def test_truncated_duration_millis():
    assert format_truncated_duration(1_234_567) == "1.23ms"


@pytest.mark.parametrize("nanos", [0, 1, 999])
def test_truncated_duration_nanos_suffix(nanos):
    assert format_truncated_duration(nanos) == f"{nanos}ns"


def test_truncated_duration_micro_suffix():
    assert format_truncated_duration(5_000).endswith("µs")


def test_truncated_duration_negative_raises():
    with pytest.raises(ValueError):
        format_truncated_duration(-1)


def test_integer_without_unit():
    assert format_integer(42, None) == "42"


def test_integer_other_unit_appends_label():
    assert format_integer(7, Unit.PERCENT) == "7" + Unit.PERCENT.canonical_label
    assert format_integer(7, Unit.COUNT) == "7"


def test_float_without_unit_is_shortest():
    assert format_float(0.25, None) == "0.25"


def test_time_integer_units_agree():
    assert format_time_integer(1, Unit.SECONDS) == format_time_integer(1000, Unit.MILLISECONDS)
    assert format_time_integer(1, Unit.MILLISECONDS) == format_time_integer(
        1000, Unit.MICROSECONDS
    )
    assert format_integer(3, Unit.SECONDS) == format_time_integer(3, Unit.SECONDS)


def test_time_float_matches_integer():
    assert format_time_float(1500.0, Unit.MILLISECONDS) == format_time_integer(
        1500, Unit.MILLISECONDS
    )


def test_time_float_negative_has_sign():
    positive = format_time_float(2.5, Unit.SECONDS)
    assert format_time_float(-2.5, Unit.SECONDS) == "-" + positive


def test_time_float_nan_falls_back_to_plain():
    assert format_time_float(math.nan, Unit.SECONDS) == format_float(math.nan, None)


def test_data_scaling_equivalence():
    assert format_data(1024, Unit.BYTES) == format_data(1, Unit.KIBIBYTES)
    assert format_data(2048, Unit.KIBIBYTES) == format_data(2, Unit.GIGIBYTES).replace(
        "GiB", "MiB"
    )


def test_data_small_values_stay_bytes():
    assert format_data(0, Unit.BYTES).endswith(" B")
    assert format_data(512, Unit.BYTES).startswith("512")


def test_data_caps_at_pib():
    assert format_data(1024**6, Unit.BYTES).endswith(" PiB")
    assert format_data(1024**7, Unit.BYTES).endswith(" PiB")
    assert format_data(1024**3, Unit.TEBIBYTES).endswith(" PiB")


def test_integer_data_goes_through_data_format():
    assert format_integer(4096, Unit.BYTES) == format_data(4096, Unit.BYTES)


def test_metric_line_pads_to_width():
    line = format_metric_line("requests", [], "total: 5", 40)
    assert len(line) == 40
    assert line.startswith("requests")
    assert line.endswith("total: 5")


def test_metric_line_with_labels():
    line = format_metric_line("req", [Label("a", "b"), ("c", "d")], "v", 0)
    assert line == "req [a = b, c = d]v"


def test_metric_line_too_narrow_has_no_padding():
    line = format_metric_line("name", [], "value", 3)
    assert line == "name" + "value"