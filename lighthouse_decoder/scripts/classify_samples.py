"""Decode a light-sample dump into pulses, sweeps, angle readings and poses.

Outputs (in --out-dir, prefixed with the dump file stem):
- <stem>.pulses.txt / <stem>.sweeps.txt : Octave-style group dumps
- <stem>.pulses.csv / <stem>.sweeps.csv : one row per grouped sample (with --groups-csv)
- <stem>.<ch>_angles.csv                : per-channel readings (only when non-empty)
- <stem>.<ch>_positions.csv             : per-channel poses (with --positions)
- <stem>.<ch>_angles.png                : per-channel plots (with --plot)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from lighthouse_decoder.analysis.readings import collect_readings
from lighthouse_decoder.analysis.segmentation import classify_samples
from lighthouse_decoder.export.report import (
    format_sample_group,
    groups_to_frame,
    summarize_readings,
    write_groups_dump,
    write_readings_csv,
)
from lighthouse_decoder.ingest.readers_dump import SampleDumpReader
from lighthouse_decoder.models.profile import BeaconProfile
from lighthouse_decoder.models.samples import Channel


logger = logging.getLogger(__name__)


def _parse_channels(s: str) -> List[Channel]:
    out: List[Channel] = []
    for tok in s.replace(";", ",").split(","):
        tok = tok.strip().upper()
        if not tok:
            continue
        if tok not in ("A", "B", "C"):
            raise ValueError(f"Unknown channel {tok!r} (expected A, B or C)")
        out.append(Channel(tok))
    return out


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse
    import textwrap

    p = argparse.ArgumentParser(
        prog="python -m lighthouse_decoder.scripts.classify_samples",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Classify beacon light samples into sync pulses and sweeps and
            collect per-sensor angle readings.

            The dump is either packed binary (*.bin, 7-byte records) or ASCII
            (*.txt / *.csv with timestamp, sensor_id, length columns).
            """
        ),
    )
    p.add_argument("dump", help="Light-sample dump file")
    p.add_argument("--tick-rate", type=float, default=None, help="Beacon clock rate in ticks per second (e.g. 48e6)")
    p.add_argument("--rotor-rps", type=float, default=None, help="Rotor rate in revolutions per second (e.g. 60)")
    p.add_argument("--profile", default=None, help="BeaconProfile JSON file (alternative to --tick-rate/--rotor-rps)")
    p.add_argument("--channels", default="B,C", help="Comma separated channels to collect readings for")
    p.add_argument("--positions", default=None, help="CSV of sensor positions (sensor_id,x,y,z) to solve poses")
    p.add_argument("--groups-csv", action="store_true", help="Also write pulse and sweep samples as CSV tables")
    p.add_argument("--plot", action="store_true", help="Save angle plots per channel")
    p.add_argument("--out-dir", default=None, help="Output directory (default: next to the dump)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    ns = p.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if ns.profile:
        profile = BeaconProfile.from_json(ns.profile)
    elif ns.tick_rate is not None and ns.rotor_rps is not None:
        profile = BeaconProfile(tick_rate_hz=float(ns.tick_rate), rotor_rps=float(ns.rotor_rps))
    else:
        p.error("either --profile or both --tick-rate and --rotor-rps are required")

    try:
        channels = _parse_channels(ns.channels)
    except ValueError as exc:
        p.error(str(exc))

    dump_path = Path(ns.dump)
    out_dir = Path(ns.out_dir) if ns.out_dir else dump_path.expanduser().resolve().parent
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = dump_path.stem

    dump = SampleDumpReader().read(dump_path)
    res = classify_samples(dump.samples(), profile)

    print(f"raw: {res.n_raw_samples}, valid: {res.n_samples}")
    print(f"Found {len(res.pulses)} pulses, {len(res.sweeps)} sweeps")
    write_groups_dump(out_dir / f"{stem}.pulses.txt", "Pulses", res.pulses, "pulse")
    write_groups_dump(out_dir / f"{stem}.sweeps.txt", "Sweeps", res.sweeps, "sweep")
    for g in res.pulses:
        logger.debug("seq %d %s", g.seq, format_sample_group(g))

    if ns.groups_csv:
        groups_to_frame(res.pulses).to_csv(out_dir / f"{stem}.pulses.csv", index=False)
        groups_to_frame(res.sweeps).to_csv(out_dir / f"{stem}.sweeps.csv", index=False)

    positions = None
    if ns.positions:
        from lighthouse_decoder.analysis.pose import load_sensor_positions

        positions = load_sensor_positions(ns.positions)

    for ch in channels:
        readings = collect_readings(ch, res.sweeps, n_sensors=profile.n_sensors)
        print(f"Found {readings.n_sensors} sensors with {ch.value} angles")
        if not readings.readings:
            continue

        tag = ch.value.lower()
        out_csv = write_readings_csv(out_dir / f"{stem}.{tag}_angles.csv", readings)
        print(f"[{ch.value}] wrote: {out_csv}")
        print(summarize_readings(readings).to_string(index=False))

        if ns.plot:
            from lighthouse_decoder.export.plots import save_readings_plot

            save_readings_plot(readings, out_dir / f"{stem}.{tag}_angles.png")

        if positions is not None:
            from lighthouse_decoder.analysis.pose import OpenCvPnpSolver, solve_poses
            from lighthouse_decoder.export.report import write_poses_csv

            pose_res = solve_poses(readings.readings, positions, OpenCvPnpSolver(profile))
            out_pos = write_poses_csv(out_dir / f"{stem}.{tag}_positions.csv", pose_res.poses)
            print(f"[{ch.value}] wrote: {out_pos} ({len(pose_res.failed_seqs)} sequences without pose)")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
