from .profile import BeaconProfile
from .samples import INVALID_SAMPLE, Axis, Channel, Sample, SampleGroup

__all__ = [
    "Axis",
    "BeaconProfile",
    "Channel",
    "INVALID_SAMPLE",
    "Sample",
    "SampleGroup",
]
