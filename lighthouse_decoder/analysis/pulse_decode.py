from __future__ import annotations

"""Sync-pulse decoding and the pulse-detection state transition.

A *pulse set* is the cluster of samples produced by one physical sync flash,
i.e. samples whose lit periods overlap. Decoding a pulse set yields the
flash's class bits, a representative epoch and the beacon channel.

Epoch choice
------------
The lit duration varies with the data bit, so only the beginning of the lit
period is a valid reference. A few sensors may activate slightly late; the
median start time is used as the consensus.

State transition
----------------
:func:`update_pulse_state` is the only place decoder state changes. A pulse
that cannot be trusted (unknown channel, unclassifiable length, or too few
sensors) clears the current sweep: the following sweep samples cannot be
attributed to any sweep until the next good pulse arrives.
"""

import logging
from collections import Counter
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

from lighthouse_decoder.analysis.channel_detect import detect_channel
from lighthouse_decoder.analysis.pulse_classes import classify_length, median
from lighthouse_decoder.models.profile import BeaconProfile
from lighthouse_decoder.models.samples import Axis, Channel, Sample, SampleGroup


logger = logging.getLogger(__name__)


def duplicate_sensor_count(samples: Sequence[Sample]) -> int:
    """Number of samples beyond the first for each sensor id."""
    counts = Counter(s.sensor_id for s in samples)
    return int(sum(n - 1 for n in counts.values()))


def median_length(samples: Sequence[Sample]) -> float:
    return median(s.length for s in samples)


def median_timestamp(samples: Sequence[Sample]) -> float:
    return median(s.timestamp for s in samples)


def decode_pulse_set(
    samples: Sequence[Sample],
    last_pulse_epoch: float,
    profile: BeaconProfile,
) -> SampleGroup:
    """Decode one pulse set into a pulse descriptor.

    Parameters
    ----------
    samples:
        Non-empty cluster of samples from the same sync flash.
    last_pulse_epoch:
        Epoch of the previously decoded pulse (for channel detection).
    profile:
        Beacon constants.

    Returns
    -------
    SampleGroup
        ``seq`` is 0 and ``samples`` is empty; the caller fills them in.
        An unclassifiable pulse length yields ``Channel.ERROR`` so the caller
        resynchronizes.
    """
    if not samples:
        raise ValueError("decode_pulse_set needs at least one sample")

    ndups = duplicate_sensor_count(samples)
    if ndups:
        logger.warning("%d duplicate sensors in one pulse", ndups)

    # robust against outlier samples
    pulselen = median_length(samples)
    pulse = classify_length(pulselen, tolerance=profile.pulse_class_tolerance_ticks)

    t = median_timestamp(samples)
    ch = detect_channel(last_pulse_epoch, t, profile)
    if not pulse.valid:
        ch = Channel.ERROR
    elif ch is Channel.ERROR:
        # nothing precedes the first pulse
        level = logging.WARNING if last_pulse_epoch == profile.initial_pulse_epoch else logging.ERROR
        logger.log(
            level,
            "no channel for pulse at %.1f (dt %.1f, len %.0f, samples %d)",
            t, t - last_pulse_epoch, pulselen, len(samples),
        )

    if len(samples) < profile.min_pulse_samples:
        logger.warning(
            "channel %s pulse at %.1f (len %.0f, samples %d): skip %d, sweep %s, data %d",
            ch.value, t, pulselen, len(samples), pulse.skip, pulse.axis.value, pulse.data_bit,
        )
    else:
        logger.debug(
            "channel %s pulse at %.1f (len %.0f, samples %d): skip %d, sweep %s, data %d",
            ch.value, t, pulselen, len(samples), pulse.skip, pulse.axis.value, pulse.data_bit,
        )

    # no use for the data bit downstream
    return SampleGroup(channel=ch, axis=pulse.axis, epoch=t, skip=pulse.skip, seq=0)


@dataclass(frozen=True)
class DecoderState:
    """Pulse-detection state owned by one decode run.

    Attributes
    ----------
    last_pulse_epoch:
        Epoch of the previous pulse, valid or not.
    current_sweep:
        The pulse that started the sweep in progress, with its samples.
        ``None`` when the sweep identity is unknown.
    seq:
        Scan-cycle sequence number.
    """

    last_pulse_epoch: float
    current_sweep: Optional[SampleGroup] = None
    seq: int = 0

    @classmethod
    def initial(cls, profile: BeaconProfile) -> DecoderState:
        return cls(last_pulse_epoch=float(profile.initial_pulse_epoch), current_sweep=None, seq=0)


def update_pulse_state(
    pulse_samples: Sequence[Sample],
    state: DecoderState,
    profile: BeaconProfile,
) -> Tuple[DecoderState, Optional[SampleGroup]]:
    """Advance the pulse-detection state machine by one pulse set.

    Returns
    -------
    (new_state, out_pulse)
        ``out_pulse`` is only set for a valid pulse starting a new sweep; it
        carries the pulse samples and the current sequence number.
    """
    pulse = decode_pulse_set(pulse_samples, state.last_pulse_epoch, profile)
    # Always advance, so one bad pulse does not spoil detection of the next.
    state = replace(state, last_pulse_epoch=pulse.epoch)

    if pulse.channel is Channel.ERROR or len(pulse_samples) < profile.min_pulse_samples:
        if state.current_sweep is not None:
            logger.info(
                "lost sweep sync at %.1f (channel %s, %d samples)",
                pulse.epoch, pulse.channel.value, len(pulse_samples),
            )
        return replace(state, current_sweep=None), None

    if pulse.skip != 0:
        return state, None

    # One scan cycle: horizontal + vertical for A, or for both B and C.
    seq = state.seq
    if pulse.channel in (Channel.A, Channel.B) and pulse.axis is Axis.HORIZONTAL:
        seq += 1

    logger.debug(
        "Start sweep seq %d: ch %s, sweep %s, pulse detected by %d sensors",
        seq, pulse.channel.value, pulse.axis.value, len(pulse_samples),
    )

    current_sweep = replace(pulse, seq=seq, samples=tuple(pulse_samples))
    return DecoderState(last_pulse_epoch=pulse.epoch, current_sweep=current_sweep, seq=seq), current_sweep
