from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Tuple


class Channel(Enum):
    """Beacon channel, identified from sync-pulse timing."""

    A = "A"
    B = "B"
    C = "C"
    ERROR = "e"


class Axis(Enum):
    """Sweep axis of a beacon rotor."""

    HORIZONTAL = "H"
    VERTICAL = "V"
    ERROR = "e"


@dataclass(frozen=True)
class Sample:
    """
    One light sample as reported by a photo-sensor.

    Notes
    - timestamp and length are in beacon clock ticks (u32 / u16 on the wire).
    - sensor_id is the photo-sensor index (u8 on the wire).
    """
    timestamp: int
    sensor_id: int
    length: int

    @property
    def end(self) -> int:
        """Tick at which the lit period ends."""
        return self.timestamp + self.length


# All-ones record emitted by the device; it has no known purpose.
INVALID_SAMPLE = Sample(timestamp=0xFFFFFFFF, sensor_id=0xFF, length=0xFFFF)


@dataclass(frozen=True)
class SampleGroup:
    """A set of samples sharing one sync pulse or one sweep.

    Used both for pulse groups (decoded sync-pulse meaning plus the samples that
    saw the flash) and for sweep groups (the samples hit by one sweep of one
    axis of one beacon).

    Attributes
    ----------
    channel : Channel
        Beacon that produced the pulse/sweep.
    axis : Axis
        Sweep axis announced by the pulse.
    epoch : float
        Pulse timestamp in ticks; zero raw angle for the sweep.
    skip : int
        Skip bit of the pulse (0, 1, or -1 when undecodable).
    seq : int
        Scan-cycle sequence number.
    samples : tuple of Sample
        Member samples, in stream order.
    """

    channel: Channel
    axis: Axis
    epoch: float
    skip: int = 0
    seq: int = 0
    samples: Tuple[Sample, ...] = field(default=())

    @property
    def n_samples(self) -> int:
        return len(self.samples)

    def with_samples(self, samples) -> SampleGroup:
        return replace(self, samples=tuple(samples))

    def with_seq(self, seq: int) -> SampleGroup:
        return replace(self, seq=int(seq))
