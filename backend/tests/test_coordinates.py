"""Tests for coordinates.py."""

import pytest

from coordinates import coordinate_label, parse_coordinates


def _close(pair, expected):
    return all(abs(a - b) < 1e-9 for a, b in zip(pair, expected))


@pytest.mark.parametrize(
    "text",
    [
        "https://maps.google.com/@28.5421,-81.3790,15z",
        "https://www.google.com/maps/place/Church+St/@28.5421,-81.3790,17z/data=!3m1",
        "https://www.google.com/maps/dir//28.5421,-81.3790",
        "https://maps.apple.com/?q=28.5421,-81.3790",
        "https://maps.example.com/search?api=1&query=28.5421%2C-81.3790",
        "28.5421, -81.3790",
        "  28.5421,-81.3790  ",
    ],
)
def test_parses_supported_patterns_as_lng_lat(text):
    assert _close(parse_coordinates(text), (-81.3790, 28.5421))


def test_swaps_when_first_number_cannot_be_latitude():
    """Longitude-first input is reordered by magnitude."""
    assert _close(parse_coordinates("-81.3790, 28.5421"), (-81.3790, 28.5421))


def test_ambiguous_pair_reads_first_number_as_latitude():
    assert parse_coordinates("45, 45") == (45.0, 45.0)
    assert _close(parse_coordinates("10.5, 20.25"), (20.25, 10.5))


def test_rejects_out_of_range_pair():
    assert parse_coordinates("200, 50") is None
    assert parse_coordinates("95, 181") is None


def test_no_match_for_plain_address():
    assert parse_coordinates("55 W. Church St., Orlando, FL 32801") is None
    assert parse_coordinates("") is None


def test_at_pattern_wins_over_query_parameter():
    text = "https://maps.google.com/?q=10,10@28.5421,-81.3790"
    assert _close(parse_coordinates(text), (-81.3790, 28.5421))


def test_coordinate_label_is_lat_first():
    assert coordinate_label((-81.379, 28.5421)) == "28.542100, -81.379000"
