"""Sync-pulse length classes.

A beacon encodes three bits in the duration of each sync flash:

  skip  -- the pulse does not start a sweep (secondary reference pulse)
  axis  -- 0 for a horizontal sweep, 1 for a vertical sweep
  data  -- one bit of the over-the-light data stream

Durations are nominally 3000..6500 ticks in steps of 500. The 2500 and 7000
entries bracket the valid range and decode to the invalid class.

Reference: https://github.com/nairol/LighthouseRedox/blob/master/docs/Light%20Emissions.md
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from lighthouse_decoder.models.samples import Axis


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PulseClass:
    """One entry of the pulse-length table.

    For invalid entries ``skip``, ``axis_bit`` and ``data_bit`` are all -1.
    """

    duration: int
    skip: int
    axis_bit: int
    data_bit: int

    @property
    def valid(self) -> bool:
        return self.skip >= 0

    @property
    def axis(self) -> Axis:
        if self.axis_bit == 0:
            return Axis.HORIZONTAL
        if self.axis_bit == 1:
            return Axis.VERTICAL
        return Axis.ERROR


def _valid(duration: int, skip: int, axis_bit: int, data_bit: int) -> PulseClass:
    return PulseClass(duration=duration, skip=skip, axis_bit=axis_bit, data_bit=data_bit)


def _invalid(duration: int) -> PulseClass:
    return PulseClass(duration=duration, skip=-1, axis_bit=-1, data_bit=-1)


PULSE_TABLE: Tuple[PulseClass, ...] = (
    _invalid(2500),
    _valid(3000, 0, 0, 0),
    _valid(3500, 0, 1, 0),
    _valid(4000, 0, 0, 1),
    _valid(4500, 0, 1, 1),
    _valid(5000, 1, 0, 0),
    _valid(5500, 1, 1, 0),
    _valid(6000, 1, 0, 1),
    _valid(6500, 1, 1, 1),
    _invalid(7000),
)

# Returned when no table entry matches.
INVALID_PULSE = _invalid(0)


def classify_length(length: float, *, tolerance: float) -> PulseClass:
    """Look up the pulse class for a measured pulse length.

    The table is scanned in order and the first entry whose center lies within
    ``tolerance`` ticks (inclusive) wins, so a length exactly between two
    centers resolves to the lower one. No match is logged and yields
    :data:`INVALID_PULSE`; callers treat it as unclassifiable.
    """
    for pc in PULSE_TABLE:
        if abs(float(length) - pc.duration) <= tolerance:
            return pc
    logger.error("no pulse class found for length %s", length)
    return INVALID_PULSE


def median(values: Iterable[float]) -> float:
    """Median; the mean of the two middle values for an even count."""
    arr = np.asarray(list(values), dtype=np.float64)
    if arr.size == 0:
        raise ValueError("median of an empty sequence")
    return float(np.median(arr))
