"""Export package - report sinks for decoded data.

Pure serialization: no decoding logic lives here.
- report: Octave-style group dumps, readings/poses CSV
- plots: Matplotlib angle-series plots
"""

from .report import (
    format_epoch,
    format_groups,
    format_sample_group,
    groups_to_frame,
    summarize_readings,
    write_groups_dump,
    write_poses_csv,
    write_readings_csv,
)

__all__ = [
    "format_epoch",
    "format_groups",
    "format_sample_group",
    "groups_to_frame",
    "summarize_readings",
    "write_groups_dump",
    "write_poses_csv",
    "write_readings_csv",
]
