"""Decoding analysis package.

Design principle:
  - Ingest produces a sanitized, time-ordered stream of
    :class:`~lighthouse_decoder.models.samples.Sample` objects.
  - Segmentation turns that stream into pulse groups and sweep groups.
  - Reading collection pairs sweeps into per-sensor angle series.

Project-wide rule:
  - Data anomalies never abort a run. They are logged, recorded on the result
    objects, and handled with a documented fallback.
"""

from .channel_detect import detect_channel
from .pulse_classes import PULSE_TABLE, INVALID_PULSE, PulseClass, classify_length, median
from .pulse_decode import DecoderState, decode_pulse_set, update_pulse_state
from .readings import AngleSeries, ReadingsResult, collect_readings, readings_to_frame
from .segmentation import SegmentationResult, classify_samples, segment_samples

__all__ = [
    "AngleSeries",
    "DecoderState",
    "INVALID_PULSE",
    "PULSE_TABLE",
    "PulseClass",
    "ReadingsResult",
    "SegmentationResult",
    "classify_length",
    "classify_samples",
    "collect_readings",
    "decode_pulse_set",
    "detect_channel",
    "median",
    "readings_to_frame",
    "segment_samples",
    "update_pulse_state",
]
