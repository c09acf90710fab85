from __future__ import annotations

"""Tests for pulse-set decoding and the decoder state transition."""

import logging
from dataclasses import replace
from typing import List

import pytest

from lighthouse_decoder.analysis.pulse_decode import (
    DecoderState,
    decode_pulse_set,
    duplicate_sensor_count,
    update_pulse_state,
)
from lighthouse_decoder.models.profile import BeaconProfile
from lighthouse_decoder.models.samples import Axis, Channel, Sample, SampleGroup


PROFILE = BeaconProfile(tick_rate_hz=48_000_000, rotor_rps=50)
PERIOD = 480_000
GAP = 20_000


def _cluster(t0: int, length: int, n: int = 6, jitter: int = 2) -> List[Sample]:
    """n overlapping samples of one flash; median timestamp is t0 + jitter*(n-1)/2."""
    return [Sample(timestamp=t0 + k * jitter, sensor_id=k, length=length) for k in range(n)]


# -----------------------------------------------------------------------
# decode_pulse_set
# -----------------------------------------------------------------------


def test_duplicate_sensor_count() -> None:
    s = [Sample(0, 1, 3000), Sample(1, 1, 3000), Sample(2, 2, 3000), Sample(3, 1, 3000)]
    assert duplicate_sensor_count(s) == 2
    assert duplicate_sensor_count(_cluster(0, 3000)) == 0


def test_decode_pulse_set_horizontal_channel_a() -> None:
    g = decode_pulse_set(_cluster(1_000_000, 3000), 1_000_005 - PERIOD, PROFILE)
    assert g.channel is Channel.A
    assert g.axis is Axis.HORIZONTAL
    assert g.skip == 0
    assert g.epoch == pytest.approx(1_000_005.0)
    assert g.seq == 0
    assert g.samples == ()


def test_decode_pulse_set_median_is_robust_to_outlier_length() -> None:
    samples = _cluster(1_000_000, 3500)
    samples[2] = Sample(samples[2].timestamp, samples[2].sensor_id, 9999)
    g = decode_pulse_set(samples, 1_000_005 - PERIOD, PROFILE)
    assert g.channel is Channel.A
    assert g.axis is Axis.VERTICAL


def test_decode_pulse_set_unclassifiable_length_is_error_channel() -> None:
    g = decode_pulse_set(_cluster(1_000_000, 9999), 1_000_005 - PERIOD, PROFILE)
    assert g.channel is Channel.ERROR
    assert g.axis is Axis.ERROR
    assert g.skip == -1


def test_decode_pulse_set_warns_on_duplicates_and_small_sets(caplog) -> None:
    samples = [Sample(100, 3, 3000), Sample(101, 3, 3000)]
    with caplog.at_level(logging.WARNING, logger="lighthouse_decoder.analysis.pulse_decode"):
        g = decode_pulse_set(samples, 100.5 - PERIOD, PROFILE)
    assert g.channel is Channel.A
    messages = [r.getMessage() for r in caplog.records]
    assert any("duplicate sensors" in m for m in messages)
    assert any("samples 2" in m for m in messages)


def test_decode_pulse_set_empty_raises() -> None:
    with pytest.raises(ValueError):
        decode_pulse_set([], 0.0, PROFILE)


# -----------------------------------------------------------------------
# update_pulse_state
# -----------------------------------------------------------------------


def test_initial_state() -> None:
    st = DecoderState.initial(PROFILE)
    assert st.last_pulse_epoch == -1e6
    assert st.current_sweep is None
    assert st.seq == 0


def test_first_pulse_resets_and_records_epoch() -> None:
    st = DecoderState.initial(PROFILE)
    st2, out = update_pulse_state(_cluster(1_000_000, 3000), st, PROFILE)
    assert out is None
    assert st2.current_sweep is None
    assert st2.seq == 0
    assert st2.last_pulse_epoch == pytest.approx(1_000_005.0)


def test_valid_horizontal_pulse_starts_sweep_and_increments_seq() -> None:
    st = DecoderState(last_pulse_epoch=1_000_005.0 - PERIOD, current_sweep=None, seq=3)
    cluster = _cluster(1_000_000, 3000)
    st2, out = update_pulse_state(cluster, st, PROFILE)

    assert out is not None
    assert out.seq == 4
    assert out.channel is Channel.A
    assert out.axis is Axis.HORIZONTAL
    assert out.samples == tuple(cluster)
    assert st2.seq == 4
    assert st2.current_sweep == out
    # input state is not mutated
    assert st.seq == 3


def test_vertical_pulse_does_not_increment_seq() -> None:
    st = DecoderState(last_pulse_epoch=1_000_005.0 - PERIOD, current_sweep=None, seq=2)
    st2, out = update_pulse_state(_cluster(1_000_000, 3500), st, PROFILE)
    assert out is not None
    assert out.axis is Axis.VERTICAL
    assert out.seq == 2
    assert st2.seq == 2


def test_channel_b_horizontal_increments_but_c_does_not() -> None:
    st = DecoderState(last_pulse_epoch=1_000_005.0 - (PERIOD - GAP), current_sweep=None, seq=0)
    st2, out = update_pulse_state(_cluster(1_000_000, 3000), st, PROFILE)
    assert out is not None and out.channel is Channel.B
    assert st2.seq == 1

    st3 = DecoderState(last_pulse_epoch=1_000_005.0 - GAP, current_sweep=None, seq=1)
    st4, out2 = update_pulse_state(_cluster(1_000_000, 3000), st3, PROFILE)
    assert out2 is not None and out2.channel is Channel.C
    assert st4.seq == 1


def test_skip_pulse_keeps_current_sweep() -> None:
    sweep = SampleGroup(channel=Channel.B, axis=Axis.HORIZONTAL, epoch=500.0, seq=1, samples=(Sample(0, 0, 3000),))
    st = DecoderState(last_pulse_epoch=1_000_005.0 - GAP, current_sweep=sweep, seq=1)
    st2, out = update_pulse_state(_cluster(1_000_000, 5000), st, PROFILE)
    assert out is None
    assert st2.current_sweep == sweep
    assert st2.seq == 1
    assert st2.last_pulse_epoch == pytest.approx(1_000_005.0)


def test_small_pulse_set_resets_current_sweep() -> None:
    sweep = SampleGroup(channel=Channel.A, axis=Axis.HORIZONTAL, epoch=500.0, seq=1, samples=(Sample(0, 0, 3000),))
    st = DecoderState(last_pulse_epoch=1_000_003.0 - PERIOD, current_sweep=sweep, seq=1)
    st2, out = update_pulse_state(_cluster(1_000_000, 3000, n=4), st, PROFILE)
    assert out is None
    assert st2.current_sweep is None
    assert st2.seq == 1
    assert st2.last_pulse_epoch == pytest.approx(1_000_003.0)


def test_error_channel_resets_current_sweep() -> None:
    sweep = SampleGroup(channel=Channel.A, axis=Axis.HORIZONTAL, epoch=500.0, seq=1, samples=(Sample(0, 0, 3000),))
    st = DecoderState(last_pulse_epoch=0.0, current_sweep=sweep, seq=1)
    st2, out = update_pulse_state(_cluster(1_000_000, 3000), st, PROFILE)
    assert out is None
    assert st2.current_sweep is None


def test_error_channel_is_logged_with_context(caplog) -> None:
    st = DecoderState(last_pulse_epoch=0.0, current_sweep=None, seq=1)
    with caplog.at_level(logging.WARNING, logger="lighthouse_decoder.analysis.pulse_decode"):
        st2, out = update_pulse_state(_cluster(1_000_000, 3000), st, PROFILE)
    assert out is None
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    msg = errors[0].getMessage()
    assert "no channel for pulse at 1000005.0" in msg
    assert "dt 1000005.0" in msg
    assert "samples 6" in msg


def test_first_pulse_channel_miss_is_only_a_warning(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="lighthouse_decoder.analysis.pulse_decode"):
        update_pulse_state(_cluster(1_000_000, 3000), DecoderState.initial(PROFILE), PROFILE)
    levels = [r.levelno for r in caplog.records if "no channel" in r.getMessage()]
    assert levels == [logging.WARNING]


def test_pulse_class_tolerance_comes_from_profile() -> None:
    last = 1_000_005 - PERIOD
    assert decode_pulse_set(_cluster(1_000_000, 3200), last, PROFILE).channel is Channel.A

    narrow = replace(PROFILE, pulse_class_tolerance_ticks=100)
    g = decode_pulse_set(_cluster(1_000_000, 3200), last, narrow)
    assert g.channel is Channel.ERROR
    assert g.axis is Axis.ERROR
