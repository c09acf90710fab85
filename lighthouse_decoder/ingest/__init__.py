"""Ingest package - sample dump readers and sanitization.

This package handles:
- Reading light-sample dumps (packed binary *.bin, ASCII *.txt / *.csv)
- Dropping the all-ones sentinel samples

Key classes:
- SampleDumpReader: Reads dumps into SampleDump objects

Design principle:
- Readers never reorder or repair samples; anomalies are reported as warnings
"""

from .readers_dump import SampleDump, SampleDumpReader, SampleDumpReaderConfig
from .sanitize import filter_samples, is_sample_valid, sanitize

__all__ = [
    "SampleDump",
    "SampleDumpReader",
    "SampleDumpReaderConfig",
    "filter_samples",
    "is_sample_valid",
    "sanitize",
]
