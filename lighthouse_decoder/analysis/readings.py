"""Per-sensor angle readings from paired sweeps.

For every scan sequence the horizontal and vertical sweep of one beacon are
paired, and each sensor seen by both sweeps yields one reading:

  x = angle-ticks in the horizontal sweep
  y = angle-ticks in the vertical sweep
  t = epoch of the horizontal sweep

Angle-ticks point to the middle of the lit period (a symmetric laser line
profile cancels line-width differences at the sensor) relative to the sweep
epoch, and are directly proportional to the sweep angle.

Sequence 0 precedes the first full cycle and is skipped. A missing sweep for
some sequence ends collection for that channel: later sequences cannot be
paired reliably.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

from lighthouse_decoder.models.profile import BeaconProfile
from lighthouse_decoder.models.samples import Axis, Channel, Sample, SampleGroup


logger = logging.getLogger(__name__)


@dataclass
class AngleSeries:
    """Angle readings of one sensor; all four lists have equal length."""

    x: List[float] = field(default_factory=list)
    y: List[float] = field(default_factory=list)
    t: List[float] = field(default_factory=list)
    seq: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.x)

    def append(self, x: float, y: float, t: float, seq: int) -> None:
        self.x.append(float(x))
        self.y.append(float(y))
        self.t.append(float(t))
        self.seq.append(int(seq))


@dataclass(frozen=True)
class ReadingsResult:
    """Output of :func:`collect_readings` for one channel.

    Attributes
    ----------
    channel:
        Beacon channel the readings belong to.
    readings:
        Angle series keyed by sensor id; only sensors with at least one reading.
    n_sequences:
        Number of sequences that were paired successfully.
    warnings:
        Diagnostic messages (also logged).
    """

    channel: Channel
    readings: Dict[int, AngleSeries]
    n_sequences: int = 0
    warnings: Tuple[str, ...] = ()

    @property
    def n_sensors(self) -> int:
        return len(self.readings)


def ticks_sample_to_angle(sample: Sample, epoch: float) -> float:
    """Angle-ticks of a sweep sample: lit-period midpoint minus sweep epoch."""
    return float(sample.timestamp) + float(sample.length) / 2.0 - float(epoch)


def angle_ticks_to_radians(ticks, profile: BeaconProfile):
    """Convert angle-ticks to rotor angle in radians (scalar or array)."""
    return np.asarray(ticks, dtype=np.float64) / profile.tick_rate_hz * profile.rotor_rps * 2.0 * math.pi


def ticks_to_mm(ticks, distance_m: float, profile: BeaconProfile):
    """Convert a tick delta to a lateral offset in millimetres.

    ``distance_m`` is the distance between the beacon and the sensors.
    """
    angle = angle_ticks_to_radians(ticks, profile)
    return np.tan(angle) * float(distance_m) * 1000.0


def find_max_seq(groups: Sequence[SampleGroup]) -> int:
    if not groups:
        logger.error("Sweep list empty.")
        return 0
    return max(g.seq for g in groups)


def filter_sweeps(
    groups: Sequence[SampleGroup],
    channel: Channel,
    seq: int,
    axis: Axis,
) -> List[SampleGroup]:
    return [g for g in groups if g.channel is channel and g.seq == seq and g.axis is axis]


def filter_samples_by_sensor(samples: Sequence[Sample], sensor_id: int) -> List[Sample]:
    return [s for s in samples if s.sensor_id == sensor_id]


def collect_readings(
    channel: Channel,
    sweeps: Sequence[SampleGroup],
    *,
    n_sensors: int = 32,
) -> ReadingsResult:
    """Collect per-sensor (x, y, t) angle readings for one channel.

    Parameters
    ----------
    channel:
        Beacon channel to collect.
    sweeps:
        Sweep groups from :func:`~lighthouse_decoder.analysis.segmentation.segment_samples`.
    n_sensors:
        Sensor ids ``0..n_sensors-1`` are considered.

    Returns
    -------
    ReadingsResult
        Pure function of ``sweeps``; the series do not alias the input groups.

    Notes
    -----
    - Duplicate sweeps for one (channel, seq, axis) are reported and the first
      one is used.
    - A sensor sampled more than once in a sweep is reported and its first
      sample is used.
    - The horizontal epoch is used as the timestamp of both angles, although
      the vertical sweep happened half a rotation later.
    """
    warnings: List[str] = []
    R: Dict[int, AngleSeries] = {}

    def report(level: int, msg: str) -> None:
        logger.log(level, msg)
        warnings.append(msg)

    maxseq = find_max_seq(sweeps)
    n_paired = 0

    for i in range(1, maxseq + 1):
        x_sweeps = filter_sweeps(sweeps, channel, i, Axis.HORIZONTAL)
        y_sweeps = filter_sweeps(sweeps, channel, i, Axis.VERTICAL)

        if not x_sweeps or not y_sweeps:
            report(
                logging.WARNING,
                f"channel {channel.value} seq {i}: missing sweep "
                f"(horizontal {len(x_sweeps)}, vertical {len(y_sweeps)}); stop collecting",
            )
            break

        if len(x_sweeps) != 1 or len(y_sweeps) != 1:
            report(
                logging.ERROR,
                f"channel {channel.value} seq {i}: unexpected number of sweeps "
                f"[{len(x_sweeps)} {len(y_sweeps)}], should be just one each; using the first",
            )

        x_sweep = x_sweeps[0]
        y_sweep = y_sweeps[0]

        for s in range(int(n_sensors)):
            xi = filter_samples_by_sensor(x_sweep.samples, s)
            yi = filter_samples_by_sensor(y_sweep.samples, s)

            if len(xi) > 1 or len(yi) > 1:
                report(
                    logging.ERROR,
                    f"channel {channel.value} seq {i}: sensor {s} sampled twice "
                    f"[{len(xi)} {len(yi)}]; using the first",
                )

            # only interested in sensors seen in both x and y
            if not xi or not yi:
                continue

            x_ang = ticks_sample_to_angle(xi[0], x_sweep.epoch)
            y_ang = ticks_sample_to_angle(yi[0], y_sweep.epoch)

            R.setdefault(s, AngleSeries()).append(x_ang, y_ang, x_sweep.epoch, i)

        n_paired += 1

    logger.info("Found %d sensors with %s angles over %d sequences", len(R), channel.value, n_paired)
    return ReadingsResult(channel=channel, readings=R, n_sequences=n_paired, warnings=tuple(warnings))


def readings_to_frame(result: ReadingsResult) -> pd.DataFrame:
    """Flatten readings to a DataFrame with columns sensor_id, seq, x, y, t."""
    rows = []
    for sensor_id in sorted(result.readings):
        a = result.readings[sensor_id]
        for k in range(len(a)):
            rows.append((sensor_id, a.seq[k], a.x[k], a.y[k], a.t[k]))
    df = pd.DataFrame(rows, columns=["sensor_id", "seq", "x", "y", "t"])
    return df.astype({"sensor_id": np.int64, "seq": np.int64, "x": np.float64, "y": np.float64, "t": np.float64})
