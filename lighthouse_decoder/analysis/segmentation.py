from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Tuple

from lighthouse_decoder.analysis.pulse_decode import DecoderState, update_pulse_state
from lighthouse_decoder.ingest.sanitize import sanitize
from lighthouse_decoder.models.profile import BeaconProfile
from lighthouse_decoder.models.samples import Sample, SampleGroup


logger = logging.getLogger(__name__)


@dataclass
class TimeRange:
    """Closed tick interval ``[start, end]`` spanned by an open pulse set.

    An empty range has ``start = +inf`` and ``end = -inf``.
    """

    start: float = float("inf")
    end: float = float("-inf")

    @property
    def empty(self) -> bool:
        return self.start > self.end

    def overlaps(self, start: float, end: float) -> bool:
        return start <= self.end and end >= self.start

    def extend(self, start: float, end: float) -> None:
        self.start = min(self.start, start)
        self.end = max(self.end, end)

    def clear(self) -> None:
        self.start = float("inf")
        self.end = float("-inf")


@dataclass(frozen=True)
class SegmentationResult:
    """Output of :func:`segment_samples`.

    Attributes
    ----------
    pulses:
        Valid pulses starting a sweep, in stream order.
    sweeps:
        Sweep groups tagged with the channel/axis/epoch of their pulse and
        the sequence number current when they closed.
    n_samples:
        Samples consumed.
    n_dropped_sweep_samples:
        Sweep samples discarded because the sweep identity was unknown.
    warnings:
        Diagnostic messages (also logged).
    """

    pulses: Tuple[SampleGroup, ...]
    sweeps: Tuple[SampleGroup, ...]
    n_samples: int = 0
    n_dropped_sweep_samples: int = 0
    n_raw_samples: Optional[int] = None
    warnings: Tuple[str, ...] = field(default=())

    @property
    def max_seq(self) -> int:
        return max((g.seq for g in self.sweeps), default=0)


def segment_samples(samples: Iterable[Sample], profile: BeaconProfile) -> SegmentationResult:
    """Partition a sanitized, time-ordered sample stream into pulses and sweeps.

    Samples shorter than ``profile.sweep_length_max_ticks`` are sweep hits,
    the rest are sync-flash samples. A pulse sample joins the open pulse set
    if the set is empty or its lit interval overlaps the span of the set;
    otherwise the open set is decoded and a new one starts. A sweep sample
    closes any open pulse set; a pulse sample closes any open sweep.

    Trailing pulse/sweep data left open at the end of the stream is discarded.
    """
    warnings: List[str] = []

    state = DecoderState.initial(profile)
    pulse_set: List[Sample] = []
    sweep_set: List[Sample] = []
    pulse_range = TimeRange()

    pulses: List[SampleGroup] = []
    sweeps: List[SampleGroup] = []
    n_dropped = 0
    n = 0

    def close_pulse_set() -> None:
        nonlocal state
        state, pulse = update_pulse_state(pulse_set, state, profile)
        pulse_set.clear()
        pulse_range.clear()
        if pulse is not None:
            pulses.append(pulse)

    for i, sample in enumerate(samples):
        n += 1
        if sample.length < profile.sweep_length_max_ticks:
            # sweep sample
            if pulse_set:
                close_pulse_set()

            if state.current_sweep is None:
                # do not know which sweep, so skip
                n_dropped += 1
                continue

            sweep_set.append(sample)
        else:
            # pulse sample
            if sweep_set:
                current = state.current_sweep
                if current is not None:
                    sweeps.append(
                        SampleGroup(
                            channel=current.channel,
                            axis=current.axis,
                            epoch=current.epoch,
                            skip=0,
                            seq=state.seq,
                            samples=tuple(sweep_set),
                        )
                    )
                else:
                    msg = f"pulse has begun but current sweep is empty at index {i}; dropped {len(sweep_set)} sweep samples"
                    logger.error(msg)
                    warnings.append(msg)
                sweep_set.clear()

            start = float(sample.timestamp)
            end = float(sample.end)
            if not pulse_set or pulse_range.overlaps(start, end):
                pulse_range.extend(start, end)
                pulse_set.append(sample)
            else:
                # A new pulse set starts right after the previous one without
                # sweep samples in between.
                if end < pulse_range.start:
                    msg = f"Out of order pulse at index {i}"
                    logger.warning(msg)
                    warnings.append(msg)

                close_pulse_set()
                pulse_range.extend(start, end)
                pulse_set.append(sample)

    if n_dropped:
        logger.info("dropped %d sweep samples without a known sweep", n_dropped)
    logger.info("Found %d pulses and %d sweeps in %d samples", len(pulses), len(sweeps), n)

    return SegmentationResult(
        pulses=tuple(pulses),
        sweeps=tuple(sweeps),
        n_samples=n,
        n_dropped_sweep_samples=n_dropped,
        warnings=tuple(warnings),
    )


def classify_samples(raw_samples: Iterable[Sample], profile: BeaconProfile) -> SegmentationResult:
    """Sanitize a raw sample stream and segment it.

    The returned result also records how many raw samples were read, so the
    number of dropped sentinel samples is ``n_raw_samples - n_samples``.
    """
    raw = list(raw_samples)
    res = segment_samples(sanitize(raw), profile)
    logger.info("raw: %d, valid: %d", len(raw), res.n_samples)
    return replace(res, n_raw_samples=len(raw))
