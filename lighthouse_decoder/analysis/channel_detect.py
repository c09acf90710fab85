"""Beacon channel recognition from sync-pulse timing.

Each beacon flashes once per sweep, i.e. twice per rotor revolution. With a
single beacon (channel A) consecutive pulses are one sweep period apart. In a
two-beacon setup the second beacon (C) flashes ``gap`` ticks after the first
(B), so a B pulse follows the previous C pulse by ``period - gap`` and a C pulse
follows its B pulse by ``gap``.
"""

from __future__ import annotations

from lighthouse_decoder.models.profile import BeaconProfile
from lighthouse_decoder.models.samples import Channel


def detect_channel(
    last_pulse_epoch: float,
    new_pulse_epoch: float,
    profile: BeaconProfile,
) -> Channel:
    """Identify the channel of a pulse from the time since the previous pulse.

    Parameters
    ----------
    last_pulse_epoch : float
        Epoch of the previous pulse, in ticks.
    new_pulse_epoch : float
        Epoch of the pulse to identify, in ticks.
    profile : BeaconProfile
        Supplies the sweep period, the B/C gap and the tolerance.

    Returns
    -------
    Channel
        A, B or C, tested in that order (first match wins), else ERROR.
    """
    period = profile.sweep_period_ticks
    gap = float(profile.sync_gap_ticks)
    tol = float(profile.channel_tolerance_ticks)

    dt = float(new_pulse_epoch) - float(last_pulse_epoch)

    if abs(dt - period) < tol:
        return Channel.A
    if abs(dt - (period - gap)) < tol:
        return Channel.B
    if abs(dt - gap) < tol:
        return Channel.C
    return Channel.ERROR
