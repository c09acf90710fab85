from __future__ import annotations

"""Text and CSV export of decoded groups, readings and poses.

Group dumps use an Octave-struct-like layout so they can be diffed against
dumps from older decoder tooling::

    Pulses struct [1 2]:
        [1  1] =
            .samples = struct [1 1]:
                [1  1] =
                    .timestamp = 1000  1010
                    .sensor_id = 0   1
                    .length = 3000  3000
            .epoch = 1005
            .channel = A
            .sweep = H
            .seq = 1

Readings and poses are written as plain CSV through pandas.
"""

import logging
from pathlib import Path
from typing import List, Literal, Sequence

import numpy as np
import pandas as pd

from lighthouse_decoder.analysis.pose import Pose
from lighthouse_decoder.analysis.readings import ReadingsResult, readings_to_frame
from lighthouse_decoder.analysis.pulse_decode import median_length
from lighthouse_decoder.models.samples import Sample, SampleGroup


logger = logging.getLogger(__name__)

GroupKind = Literal["pulse", "sweep"]


def format_epoch(epoch: float) -> str:
    """Whole epochs without decimals, others with one decimal."""
    if float(epoch).is_integer():
        return f"{epoch:.0f}"
    return f"{epoch:.1f}"


def format_sample_group(g: SampleGroup) -> str:
    """One-line summary of a group."""
    n = len(g.samples)
    length = f"{median_length(g.samples):.0f}" if n else "-"
    return (
        f"channel {g.channel.value} (len {length}, samples {n}): "
        f"skip {g.skip}, sweep {g.axis.value} epoch {g.epoch:f}"
    )


def format_samples(samples: Sequence[Sample]) -> str:
    """Render samples as aligned timestamp/sensor_id/length rows."""
    timestamps: List[str] = []
    sensor_ids: List[str] = []
    lengths: List[str] = []
    for i, s in enumerate(samples):
        timestamps.append(str(s.timestamp))
        sensor_ids.append((" " if s.sensor_id < 10 and i != 0 else "") + str(s.sensor_id))
        lengths.append((" " if s.length < 100 and i != 0 else "") + str(s.length))
    return (
        "        .samples = struct [1 1]:\n"
        "            [1  1] =\n"
        f"                .timestamp = {'  '.join(timestamps)}\n"
        f"                .sensor_id = {'  '.join(sensor_ids)}\n"
        f"                .length = {'  '.join(lengths)}\n"
    )


def _format_pulse(g: SampleGroup, i: int) -> str:
    return (
        f"    [1  {i + 1}] =\n"
        f"{format_samples(g.samples)}"
        f"        .epoch = {format_epoch(g.epoch)}\n"
        f"        .channel = {g.channel.value}\n"
        f"        .sweep = {g.axis.value}\n"
        f"        .seq = {g.seq}\n"
    )


def _format_sweep(g: SampleGroup, i: int) -> str:
    return (
        f"    [1  {i + 1}] =\n"
        f"        .channel = {g.channel.value}\n"
        f"        .rotor = {g.axis.value}\n"
        f"        .seq = {g.seq}\n"
        f"        .epoch = {format_epoch(g.epoch)}\n"
        f"{format_samples(g.samples)}"
    )


def format_groups(title: str, groups: Sequence[SampleGroup], kind: GroupKind) -> str:
    if kind == "pulse":
        fmt = _format_pulse
    elif kind == "sweep":
        fmt = _format_sweep
    else:
        raise ValueError(f"Unknown group kind: {kind!r}")
    parts = [f"{title} struct [1 {len(groups)}]:\n"]
    parts.extend(fmt(g, i) for i, g in enumerate(groups))
    return "".join(parts)


def write_groups_dump(path: str | Path, title: str, groups: Sequence[SampleGroup], kind: GroupKind) -> Path:
    p = Path(path)
    logger.info("Writing %s.", p)
    p.write_text(format_groups(title, groups, kind), encoding="utf-8")
    return p


def groups_to_frame(groups: Sequence[SampleGroup]) -> pd.DataFrame:
    """One row per member sample, tagged with its group."""
    rows = []
    for gi, g in enumerate(groups):
        for s in g.samples:
            rows.append((gi, g.channel.value, g.axis.value, g.seq, g.epoch, g.skip, s.timestamp, s.sensor_id, s.length))
    return pd.DataFrame(
        rows,
        columns=["group", "channel", "axis", "seq", "epoch", "skip", "timestamp", "sensor_id", "length"],
    )


def write_readings_csv(path: str | Path, result: ReadingsResult) -> Path:
    """Write readings as CSV with columns sensor_id, seq, x, y, t."""
    p = Path(path)
    df = readings_to_frame(result)
    logger.info("Writing %d readings of channel %s to %s", len(df), result.channel.value, p)
    df.to_csv(p, index=False)
    return p


def poses_to_frame(poses: Sequence[Pose]) -> pd.DataFrame:
    rows = [
        (p.seq, p.n_points, *np.asarray(p.rvec, dtype=float).tolist(), *np.asarray(p.tvec, dtype=float).tolist())
        for p in poses
    ]
    return pd.DataFrame(rows, columns=["seq", "n_points", "rx", "ry", "rz", "tx", "ty", "tz"])


def write_poses_csv(path: str | Path, poses: Sequence[Pose]) -> Path:
    p = Path(path)
    logger.info("Writing %d poses to %s", len(poses), p)
    poses_to_frame(poses).to_csv(p, index=False)
    return p


def summarize_readings(result: ReadingsResult) -> pd.DataFrame:
    """Per-sensor count, mean and spread of the x/y angle-ticks."""
    df = readings_to_frame(result)
    if df.empty:
        return pd.DataFrame(columns=["sensor_id", "n", "x_mean", "x_std", "y_mean", "y_std"])
    g = df.groupby("sensor_id")
    out = pd.DataFrame(
        {
            "n": g.size(),
            "x_mean": g["x"].mean(),
            "x_std": g["x"].std(ddof=0),
            "y_mean": g["y"].mean(),
            "y_std": g["y"].std(ddof=0),
        }
    ).reset_index()
    return out
