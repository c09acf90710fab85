"""Tests for pulse-length classification, medians and channel detection."""

from __future__ import annotations

import pytest

from lighthouse_decoder.analysis.channel_detect import detect_channel
from lighthouse_decoder.analysis.pulse_classes import (
    INVALID_PULSE,
    PULSE_TABLE,
    classify_length,
    median,
)
from lighthouse_decoder.models.profile import BeaconProfile
from lighthouse_decoder.models.samples import Axis, Channel


PROFILE = BeaconProfile(tick_rate_hz=48_000_000, rotor_rps=50)
PERIOD = 480_000
GAP = 20_000
TOL = PROFILE.pulse_class_tolerance_ticks


# -----------------------------------------------------------------------
# pulse table
# -----------------------------------------------------------------------


def test_pulse_table_layout() -> None:
    assert [pc.duration for pc in PULSE_TABLE] == list(range(2500, 7001, 500))
    assert not PULSE_TABLE[0].valid
    assert not PULSE_TABLE[-1].valid
    assert all(pc.valid for pc in PULSE_TABLE[1:-1])


@pytest.mark.parametrize(
    "length, bits",
    [
        (3000, (0, 0, 0)),
        (3500, (0, 1, 0)),
        (4000, (0, 0, 1)),
        (4500, (0, 1, 1)),
        (5000, (1, 0, 0)),
        (5500, (1, 1, 0)),
        (6000, (1, 0, 1)),
        (6500, (1, 1, 1)),
    ],
)
def test_classify_length_centers(length: int, bits) -> None:
    pc = classify_length(length, tolerance=TOL)
    assert (pc.skip, pc.axis_bit, pc.data_bit) == bits


def test_classify_length_axis_mapping() -> None:
    assert classify_length(3000, tolerance=TOL).axis is Axis.HORIZONTAL
    assert classify_length(3500, tolerance=TOL).axis is Axis.VERTICAL
    assert classify_length(2500, tolerance=TOL).axis is Axis.ERROR


def test_classify_length_boundary_first_match_wins() -> None:
    """2750 is within the window of both 2500 and 3000; the table order decides."""
    pc = classify_length(2750, tolerance=TOL)
    assert pc is PULSE_TABLE[0]
    assert not pc.valid
    assert pc.skip == pc.axis_bit == pc.data_bit == -1

    assert classify_length(3250, tolerance=TOL).duration == 3000
    assert classify_length(3260, tolerance=TOL).duration == 3500


def test_classify_length_within_tolerance() -> None:
    assert classify_length(3240, tolerance=TOL).duration == 3000
    assert classify_length(3499.5, tolerance=TOL).duration == 3500


def test_classify_length_deterministic() -> None:
    results = {classify_length(4010, tolerance=TOL) for _ in range(10)}
    assert len(results) == 1


def test_classify_length_no_match_returns_invalid() -> None:
    pc = classify_length(9999, tolerance=TOL)
    assert pc is INVALID_PULSE
    assert not pc.valid
    assert pc.axis is Axis.ERROR


# -----------------------------------------------------------------------
# median
# -----------------------------------------------------------------------


def test_median_even_count_averages_middle() -> None:
    assert median([10, 20]) == 15


def test_median_odd_count() -> None:
    assert median([10, 20, 30]) == 20
    assert median([30, 10, 20]) == 20


def test_median_constant() -> None:
    assert median([1, 1, 1]) == 1


def test_median_empty_raises() -> None:
    with pytest.raises(ValueError):
        median([])


# -----------------------------------------------------------------------
# detect_channel
# -----------------------------------------------------------------------


def test_profile_period() -> None:
    assert PROFILE.sweep_period_ticks == PERIOD


def test_detect_channel_a() -> None:
    last = 1_000_000.0
    assert detect_channel(last, last + PERIOD, PROFILE) is Channel.A
    assert detect_channel(last, last + PERIOD + 3999, PROFILE) is Channel.A


def test_detect_channel_b() -> None:
    last = 1_000_000.0
    assert detect_channel(last, last + PERIOD - GAP, PROFILE) is Channel.B


def test_detect_channel_c() -> None:
    last = 1_000_000.0
    assert detect_channel(last, last + GAP, PROFILE) is Channel.C


def test_detect_channel_error() -> None:
    last = 1_000_000.0
    assert detect_channel(last, last + PERIOD + 50_000, PROFILE) is Channel.ERROR
    # tolerance is strict
    assert detect_channel(last, last + PERIOD + 4000, PROFILE) is Channel.ERROR


def test_detect_channel_first_pulse_is_error() -> None:
    assert detect_channel(PROFILE.initial_pulse_epoch, 1_000_000.0, PROFILE) is Channel.ERROR
