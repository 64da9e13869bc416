from datetime import time

import pytest

from app.core.exceptions import ValidationError
from app.scheduling.timeutils import (
    contains,
    format_hhmm,
    overlaps,
    parse_hhmm,
    time_from_minutes,
    to_minutes,
)

@pytest.mark.parametrize("value, expected", [
    ("00:00", 0),
    ("8:05", 485),
    ("08:05", 485),
    ("12:30", 750),
    ("23:59", 1439),
])
def test_parse_hhmm(value, expected):
    assert parse_hhmm(value) == expected

@pytest.mark.parametrize("value", ["24:00", "7:60", "0800", "8h00", "", "12:3", " 08:00"])
def test_parse_hhmm_rejects_malformed_times(value):
    with pytest.raises(ValidationError):
        parse_hhmm(value)

def test_format_hhmm_pads_hours_and_minutes():
    assert format_hhmm(65) == "01:05"
    assert format_hhmm(1439) == "23:59"

def test_to_minutes_accepts_strings_ints_and_times():
    assert to_minutes("09:30") == 570
    assert to_minutes(570) == 570
    assert to_minutes(time(9, 30)) == 570

@pytest.mark.parametrize("value", [-1, 1440, True, 9.5])
def test_to_minutes_rejects_out_of_range_numbers(value):
    with pytest.raises(ValidationError):
        to_minutes(value)

def test_time_from_minutes():
    assert time_from_minutes(0) == time(0, 0)
    assert time_from_minutes(1020) == time(17, 0)

def test_overlaps_is_half_open():
    # Back-to-back intervals do not collide
    assert not overlaps(480, 510, 510, 540)
    assert not overlaps(510, 540, 480, 510)
    assert overlaps(480, 520, 510, 540)
    assert overlaps(480, 600, 500, 510)

def test_contains_includes_the_bounds():
    assert contains(480, 720, 480, 720)
    assert contains(480, 720, 540, 570)
    assert not contains(480, 720, 420, 480)
    assert not contains(480, 720, 700, 730)
