from datetime import datetime, timedelta, timezone

import pytest

from svcutil.convert import (
    EPOCH,
    ZERO_DURATION,
    ZERO_TIME,
    bool_to_int,
    bool_value,
    duration_value,
    float_value,
    int_value,
    milliseconds_time_value,
    seconds_time_value,
    string_value,
    time_unix_milli,
    time_value,
    value_list,
    value_map,
)


@pytest.mark.parametrize(
    "values",
    [["a", "b", "c", "d", "e"], ["a", "b", "", "", "e"]],
)
def test_string_list_round_trip(values):
    out = value_list(values, "")
    assert out == values
    assert len(out) == len(values)


def test_string_value_list_replaces_missing():
    src = ["a", "b", None, "c"]
    out = value_list(src, "")
    assert out == ["a", "b", "", "c"]
    assert value_list(out, "") == out


def test_string_map_round_trip():
    src = {"a": "1", "b": "2", "c": "3"}
    assert value_map(src) == src


def test_value_map_drops_missing():
    assert value_map({"a": "1", "b": None}) == {"a": "1"}


def test_bool_list_round_trip():
    src = [True, True, False, False]
    assert value_list(src, False) == src


def test_bool_map_round_trip():
    src = {"a": True, "b": False, "c": True}
    assert value_map(src) == src


def test_int_list_round_trip():
    src = [1, 2, 3, 4]
    assert value_list(src, 0) == src
    assert value_list([1, None, 3], 0) == [1, 0, 3]


def test_int_map_round_trip():
    src = {"a": 3, "b": 2, "c": 1}
    assert value_map(src) == src


def test_float_list_round_trip():
    src = [1.0, 2.0, 3.0, 4.0]
    assert value_list(src, 0.0) == src


def test_float_map_round_trip():
    src = {"a": 3.0, "b": 2.0, "c": 1.0}
    assert value_map(src) == src


def test_time_list_round_trip():
    now = datetime.now(timezone.utc)
    src = [now, now + timedelta(days=36500)]
    assert value_list(src, ZERO_TIME) == src


def test_time_value_list_missing_is_zero():
    now = datetime.now(timezone.utc)
    assert value_list([None, now], ZERO_TIME) == [ZERO_TIME, now]


def test_time_map_round_trip():
    now = datetime.now(timezone.utc)
    src = {"a": now - timedelta(days=36500), "b": now}
    assert value_map(src) == src


@pytest.mark.parametrize(
    ("millis", "secs_expected", "millis_expected"),
    [
        (
            1501558289000,
            EPOCH + timedelta(seconds=1501558289),
            EPOCH + timedelta(seconds=1501558289),
        ),
        (
            1501558289001,
            EPOCH + timedelta(seconds=1501558289),
            EPOCH + timedelta(seconds=1501558289, microseconds=1000),
        ),
    ],
)
def test_time_values(millis, secs_expected, millis_expected):
    assert seconds_time_value(millis) == secs_expected
    assert milliseconds_time_value(millis) == millis_expected


def test_time_values_missing_are_zero():
    assert seconds_time_value(None) == ZERO_TIME
    assert milliseconds_time_value(None) == ZERO_TIME


def test_time_unix_milli_round_trip():
    millis = 1501558289001
    assert time_unix_milli(milliseconds_time_value(millis)) == millis


def test_time_unix_milli_naive_is_utc():
    aware = milliseconds_time_value(1501558289001)
    naive = aware.replace(tzinfo=None)
    assert time_unix_milli(naive) == time_unix_milli(aware)


def test_scalar_defaults():
    assert string_value(None) == ""
    assert string_value("x") == "x"
    assert bool_value(None) is False
    assert bool_value(True) is True
    assert int_value(None) == 0
    assert int_value(7) == 7
    assert float_value(None) == 0.0
    assert float_value(2.5) == 2.5
    assert time_value(None) == ZERO_TIME
    assert duration_value(None) == ZERO_DURATION
    assert duration_value(timedelta(seconds=3)) == timedelta(seconds=3)


def test_bool_to_int():
    assert bool_to_int(True) == 1
    assert bool_to_int(False) == 0