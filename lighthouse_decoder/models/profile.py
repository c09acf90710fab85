"""Beacon profile -- bundles the hardware constants used by the decoder.

A BeaconProfile groups every parameter that affects decoding into one frozen
dataclass. It can be:

- Constructed directly with the beacon clock and rotor rates
- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to/from a dict or JSON for provenance
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict


@dataclass(frozen=True)
class BeaconProfile:
    """Frozen configuration for the light-sample decoder.

    Required fields
    ---------------
    tick_rate_hz : float
        Beacon optical clock rate (ticks per second), e.g. 48 MHz.
    rotor_rps : float
        Rotor rotation rate in revolutions per second.

    Optional fields (decoder defaults)
    ----------------------------------
    sync_gap_ticks : int
        Spacing between the sync flashes of two beacons sharing a cycle.
    channel_tolerance_ticks : int
        Allowed deviation of a pulse interval when identifying the channel.
    pulse_class_tolerance_ticks : int
        Half-width of each pulse-length class window.
    sweep_length_max_ticks : int
        Samples shorter than this are sweep hits; the rest are sync flashes.
    min_pulse_samples : int
        Pulses seen by fewer sensors are not trusted to start a sweep.
    n_sensors : int
        Sensor ids 0..n_sensors-1 are considered when collecting readings.
    initial_pulse_epoch : float
        Previous-pulse epoch assumed before the first pulse is seen.
    """

    tick_rate_hz: float
    rotor_rps: float

    sync_gap_ticks: int = 20_000
    channel_tolerance_ticks: int = 4000
    pulse_class_tolerance_ticks: int = 250
    sweep_length_max_ticks: int = 2000
    min_pulse_samples: int = 5
    n_sensors: int = 32
    initial_pulse_epoch: float = -1e6

    def __post_init__(self) -> None:
        if not self.tick_rate_hz > 0:
            raise ValueError(f"tick_rate_hz must be > 0, got {self.tick_rate_hz!r}")
        if not self.rotor_rps > 0:
            raise ValueError(f"rotor_rps must be > 0, got {self.rotor_rps!r}")
        if self.n_sensors <= 0:
            raise ValueError("n_sensors must be > 0")

    @property
    def sweep_period_ticks(self) -> float:
        """Ticks between two sweeps (two sweeps per rotor revolution)."""
        return float(self.tick_rate_hz) / float(self.rotor_rps) / 2.0

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> BeaconProfile:
        """Reconstruct from a dict; unknown keys are rejected."""
        d = dict(d)
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(d) - known)
        if unknown:
            raise ValueError(f"Unknown BeaconProfile fields: {unknown}")
        return cls(**d)

    def to_json(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")

    @classmethod
    def from_json(cls, path: str | Path) -> BeaconProfile:
        p = Path(path).expanduser()
        if not p.exists():
            raise FileNotFoundError(str(p))
        return cls.from_dict(json.loads(p.read_text(encoding="utf-8")))
