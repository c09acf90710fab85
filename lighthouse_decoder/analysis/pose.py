"""Pose estimation adapter.

The decoder's obligation ends at correctly paired correspondences per scan
sequence: known 3-D sensor positions and the observed (x, y) angle-ticks.
This module builds those correspondences and hands them to a pose solver.

The default solver treats the beacon as a pinhole camera: each sweep angle is
measured from the start of the sweep and crosses the beacon's optical axis
half a sweep later, so ``tan(angle - pi/2)`` is the normalized image
coordinate. ``cv2.solvePnP`` with an identity camera matrix then returns the
rigid transform of the sensor constellation in the beacon frame.

Solver failures are per sequence: logged, and that sequence is omitted.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import cv2
import numpy as np
import pandas as pd

from lighthouse_decoder.analysis.readings import AngleSeries, angle_ticks_to_radians
from lighthouse_decoder.models.profile import BeaconProfile


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Correspondence:
    """One sensor seen in one sequence."""

    sensor_id: int
    position: np.ndarray  # (3,)
    angles: np.ndarray  # (2,) angle-ticks x, y


@dataclass(frozen=True)
class Pose:
    """Rigid transform (Rodrigues rotation vector + translation) for one sequence."""

    seq: int
    rvec: np.ndarray  # (3,)
    tvec: np.ndarray  # (3,)
    n_points: int = 0


# (object_points (N,3), angle_ticks (N,2)) -> (rvec, tvec) or None
PoseSolver = Callable[[np.ndarray, np.ndarray], Optional[Tuple[np.ndarray, np.ndarray]]]


@dataclass(frozen=True)
class PoseResult:
    poses: Tuple[Pose, ...]
    failed_seqs: Tuple[int, ...] = ()
    warnings: Tuple[str, ...] = field(default=())


class OpenCvPnpSolver:
    """Default pose solver based on ``cv2.solvePnP``."""

    def __init__(self, profile: BeaconProfile, flags: int = cv2.SOLVEPNP_ITERATIVE):
        self.profile = profile
        self.flags = int(flags)

    def image_points(self, angle_ticks: np.ndarray) -> np.ndarray:
        ang = angle_ticks_to_radians(angle_ticks, self.profile)
        return np.tan(ang - math.pi / 2.0)

    def __call__(self, object_points: np.ndarray, angle_ticks: np.ndarray):
        obj = np.ascontiguousarray(object_points, dtype=np.float64).reshape(-1, 3)
        img = np.ascontiguousarray(self.image_points(angle_ticks), dtype=np.float64).reshape(-1, 2)
        camera_matrix = np.eye(3, dtype=np.float64)
        dist_coeffs = np.zeros((4, 1), dtype=np.float64)

        ok, rvec, tvec = cv2.solvePnP(obj, img, camera_matrix, dist_coeffs, flags=self.flags)
        if not ok:
            return None
        return np.asarray(rvec, dtype=np.float64).reshape(3), np.asarray(tvec, dtype=np.float64).reshape(3)


def load_sensor_positions(path: str | Path) -> Dict[int, np.ndarray]:
    """Load sensor positions from a CSV with columns sensor_id, x, y, z."""
    p = Path(path).expanduser()
    if not p.exists():
        raise FileNotFoundError(str(p))
    df = pd.read_csv(p, comment="#")
    missing = [c for c in ("sensor_id", "x", "y", "z") if c not in df.columns]
    if missing:
        raise ValueError(f"Sensor position file is missing columns {missing}: {p}")
    return {
        int(row.sensor_id): np.array([row.x, row.y, row.z], dtype=np.float64)
        for row in df.itertuples(index=False)
    }


def build_correspondences(
    readings: Mapping[int, AngleSeries],
    sensor_positions: Mapping[int, np.ndarray],
) -> Dict[int, List[Correspondence]]:
    """Group readings by scan sequence; sensors without a known position are skipped."""
    out: Dict[int, List[Correspondence]] = {}
    unknown = sorted(set(readings) - set(sensor_positions))
    if unknown:
        logger.warning("no position for sensors %s; ignored", unknown)
    for sensor_id in sorted(readings):
        if sensor_id not in sensor_positions:
            continue
        a = readings[sensor_id]
        pos = np.asarray(sensor_positions[sensor_id], dtype=np.float64)
        for k in range(len(a)):
            out.setdefault(a.seq[k], []).append(
                Correspondence(sensor_id=sensor_id, position=pos, angles=np.array([a.x[k], a.y[k]]))
            )
    return out


def solve_poses(
    readings: Mapping[int, AngleSeries],
    sensor_positions: Mapping[int, np.ndarray],
    solver: PoseSolver,
    *,
    min_points: int = 4,
) -> PoseResult:
    """Solve one pose per scan sequence.

    A sequence with fewer than ``min_points`` correspondences, or whose solver
    call returns None or raises, is logged and omitted.
    """
    warnings: List[str] = []
    poses: List[Pose] = []
    failed: List[int] = []

    for seq, corr in sorted(build_correspondences(readings, sensor_positions).items()):
        if len(corr) < min_points:
            msg = f"seq {seq}: only {len(corr)} correspondences (need {min_points}); no pose"
            logger.warning(msg)
            warnings.append(msg)
            failed.append(seq)
            continue

        obj = np.stack([c.position for c in corr])
        ang = np.stack([c.angles for c in corr])
        try:
            sol = solver(obj, ang)
        except (cv2.error, ValueError) as e:
            msg = f"seq {seq}: pose solver failed ({type(e).__name__}: {e})"
            logger.error(msg)
            warnings.append(msg)
            failed.append(seq)
            continue

        if sol is None:
            msg = f"seq {seq}: pose solver did not converge"
            logger.error(msg)
            warnings.append(msg)
            failed.append(seq)
            continue

        rvec, tvec = sol
        poses.append(Pose(seq=seq, rvec=np.asarray(rvec).reshape(3), tvec=np.asarray(tvec).reshape(3), n_points=len(corr)))

    logger.info("Solved %d poses, %d sequences failed", len(poses), len(failed))
    return PoseResult(poses=tuple(poses), failed_seqs=tuple(failed), warnings=tuple(warnings))
