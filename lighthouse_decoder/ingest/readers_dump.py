from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from lighthouse_decoder.models.samples import INVALID_SAMPLE, Sample


logger = logging.getLogger(__name__)

SAMPLE_COLUMNS: Tuple[str, str, str] = ("timestamp", "sensor_id", "length")

# Packed little-endian record: u32 timestamp, u8 sensor id, u16 length.
BINARY_RECORD_DTYPE = np.dtype([("timestamp", "<u4"), ("sensor_id", "u1"), ("length", "<u2")])


@dataclass(frozen=True)
class SampleDump:
    """
    In-memory representation of one light-sample dump file.

    Notes
    - df has int64 columns 'timestamp', 'sensor_id', 'length', in file order.
    - Sentinel samples are kept; sanitization is a separate step.
    """
    source_path: Path
    df: pd.DataFrame
    warnings: Tuple[str, ...] = ()

    @property
    def n_samples(self) -> int:
        return int(len(self.df))

    @property
    def n_invalid(self) -> int:
        """Number of all-ones sentinel records in the dump."""
        df = self.df
        mask = (
            (df["timestamp"] == INVALID_SAMPLE.timestamp)
            & (df["sensor_id"] == INVALID_SAMPLE.sensor_id)
            & (df["length"] == INVALID_SAMPLE.length)
        )
        return int(mask.sum())

    def samples(self) -> Iterator[Sample]:
        for ts, sid, ln in zip(
            self.df["timestamp"].to_numpy(),
            self.df["sensor_id"].to_numpy(),
            self.df["length"].to_numpy(),
        ):
            yield Sample(timestamp=int(ts), sensor_id=int(sid), length=int(ln))


@dataclass(frozen=True)
class SampleDumpReaderConfig:
    """
    Reader configuration for light-sample dumps.

    check_order:
      Report (as warnings) samples whose timestamp decreases. They are never rejected.
    max_order_reports:
      Only the first few out-of-order positions are listed individually.
    """
    check_order: bool = True
    max_order_reports: int = 20


class SampleDumpReader:
    """
    Reader for light-sample dumps (bin/txt/csv).

    Binary dumps are packed 7-byte records (see ``BINARY_RECORD_DTYPE``).
    ASCII dumps hold three columns timestamp, sensor_id, length, whitespace or
    comma separated, with an optional header line and '#' comments.
    """

    def __init__(self, config: Optional[SampleDumpReaderConfig] = None):
        self.config = config or SampleDumpReaderConfig()

    def read(self, file_path: str | Path) -> SampleDump:
        path = Path(file_path).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(str(path))

        if path.suffix.lower() in {".txt", ".csv"}:
            df, warnings = self._load_ascii(path)
        else:
            df, warnings = self._load_binary(path)

        if self.config.check_order:
            warnings.extend(self._order_warnings(df))

        for w in warnings:
            logger.warning("%s: %s", path.name, w)
        logger.info("Read %d samples from %s", len(df), path)

        return SampleDump(source_path=path, df=df, warnings=tuple(warnings))

    def _load_binary(self, path: Path) -> Tuple[pd.DataFrame, List[str]]:
        warnings: List[str] = []
        file_size = path.stat().st_size
        rec = BINARY_RECORD_DTYPE.itemsize
        if file_size % rec != 0:
            raise ValueError(
                f"Binary dump size {file_size} is not a multiple of the {rec}-byte record: {path}"
            )
        arr = np.fromfile(path, dtype=BINARY_RECORD_DTYPE)
        df = pd.DataFrame({c: arr[c].astype(np.int64) for c in SAMPLE_COLUMNS})
        return df, warnings

    def _load_ascii(self, path: Path) -> Tuple[pd.DataFrame, List[str]]:
        """
        Load ASCII (txt/csv) into a DataFrame.

        Policy:
          - first three columns are timestamp, sensor_id, length
          - a non-numeric first line is treated as a header
          - extra columns are ignored (reported as warning)
        """
        warnings: List[str] = []
        first = ""
        with path.open("r", encoding="utf-8") as fh:
            for line in fh:
                if line.strip() and not line.lstrip().startswith("#"):
                    first = line
                    break
        sep = "," if "," in first else r"\s+"
        has_header = bool(first) and not first.replace(",", " ").split()[0].lstrip("-").isdigit()

        df = pd.read_csv(
            path,
            sep=sep,
            engine="python",
            header=0 if has_header else None,
            comment="#",
        )
        if df.shape[1] < 3:
            raise ValueError(f"ASCII dump must have >=3 columns (timestamp, sensor_id, length): {path}")
        if df.shape[1] > 3:
            warnings.append(f"ignored {df.shape[1] - 3} extra column(s)")

        df = df.iloc[:, :3].copy()
        df.columns = list(SAMPLE_COLUMNS)
        if df.isna().any().any():
            raise ValueError(f"ASCII dump contains missing or non-numeric values: {path}")
        return df.astype(np.int64), warnings

    def _order_warnings(self, df: pd.DataFrame) -> List[str]:
        warnings: List[str] = []
        if len(df) < 2:
            return warnings
        dt = np.diff(df["timestamp"].to_numpy())
        bad = np.where(dt < 0)[0]
        if bad.size == 0:
            return warnings
        shown = ", ".join(str(int(i) + 1) for i in bad[: self.config.max_order_reports])
        more = "" if bad.size <= self.config.max_order_reports else ", ..."
        warnings.append(f"timestamps decrease at {bad.size} position(s): {shown}{more}")
        return warnings
