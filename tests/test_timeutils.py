from datetime import date, datetime

import pytest

from booking_core.scheduling.timeutils import (
    InvalidTimeFormat,
    add_minutes,
    days_rolled,
    from_minutes,
    inclusive_day_span,
    interval,
    minutes_between,
    overlaps,
    to_minutes,
)


@pytest.mark.parametrize(
    "value, expected",
    [("00:00", 0), ("09:05", 545), ("9:05", 545), ("14:30", 870), ("23:59", 1439)],
)
def test_to_minutes(value, expected):
    assert to_minutes(value) == expected


@pytest.mark.parametrize("value", ["24:00", "12:60", "12", "ab:cd", "", "12:5", "-1:00", None, 930])
def test_to_minutes_rejects_invalid(value):
    with pytest.raises(InvalidTimeFormat):
        to_minutes(value)


def test_invalid_time_format_is_a_value_error():
    with pytest.raises(ValueError):
        to_minutes("25:00")


def test_from_minutes_pads_and_wraps():
    assert from_minutes(545) == "09:05"
    assert from_minutes(1440) == "00:00"
    assert from_minutes(1500) == "01:00"


def test_add_minutes():
    assert add_minutes("14:30", 90) == "16:00"
    assert add_minutes("09:00", 0) == "09:00"


def test_add_minutes_wraps_past_midnight():
    assert add_minutes("23:30", 60) == "00:30"
    assert days_rolled("23:30", 60) == 1
    assert days_rolled("10:00", 60) == 0


def test_interval_pushes_wrapped_end_into_next_day():
    assert interval("10:00", "11:00") == (600, 660)
    assert interval("23:30", "00:30") == (1410, 1470)
    assert minutes_between("23:30", "00:30") == 60


def test_overlaps_is_half_open():
    assert overlaps((600, 660), (630, 690))
    assert not overlaps((600, 660), (660, 720))
    assert not overlaps((660, 720), (600, 660))
    assert overlaps((600, 720), (630, 640))


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (date(2024, 5, 1), date(2024, 5, 1), 1),
        (date(2024, 5, 1), date(2024, 5, 3), 3),
        (date(2024, 5, 3), date(2024, 5, 1), 3),
        (datetime(2024, 5, 1, 23, 0), datetime(2024, 5, 2, 1, 0), 2),
    ],
)
def test_inclusive_day_span(start, end, expected):
    assert inclusive_day_span(start, end) == expected
