"""Lighthouse Decoder -- Python tooling for rotating laser beacon light samples.

A tracked object carries photo-sensors which report every lit period as a
light sample (start timestamp, sensor id, lit length). The beacons
("base stations") emit long sync flashes followed by a laser plane sweeping
over the sensors, alternating horizontal and vertical axes.

This package provides tools for:
- Reading raw light-sample dumps (ASCII and packed binary)
- Dropping sentinel samples that carry no signal
- Classifying sync pulses by length and identifying the beacon channel by timing
- Segmenting the sample stream into pulse groups and sweep groups
- Pairing horizontal/vertical sweeps into per-sensor angle series
- Exporting groups, readings and poses for debugging and pose estimation

Key principles:
- Data anomalies are logged and never fatal; the worst outcome is a truncated result
- Decoder state is owned by a single decode run and never shared
- All diagnostics are both logged and carried on the result objects

Main subpackages:
- analysis: Pulse classification, segmentation state machine, reading collection, pose adapter
- export: Text dumps, CSV export and plots
- ingest: Sample dump readers and sanitization
- models: Data models (Sample, SampleGroup, BeaconProfile)
"""

__all__ = []
