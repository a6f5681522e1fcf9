"""
Record tables: columnar persistence of parsed/joined records.

Each table holds one row per Record with the five canonical columns:

- bin_center             : energy bin center, or baseline [m] once joined
- ibd_counts             : event count (primary value)
- total_stats_error      : extended schema only, zero otherwise
- background_counts      : extended schema only, zero otherwise
- background_stats_error : extended schema only, zero otherwise

Tables are written as ``<out_dir>/<stem>_<table>.<fmt>`` and read back in write order.

Examples
--------
>>> # path = write_record_table(records, "out", stem="oscPrompt", table="OscData", fmt="csv")
>>> # df = read_record_table(path)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Literal

import numpy as np
import pandas as pd

from oscillation_analyzer.errors import SourceUnavailable
from oscillation_analyzer.models.records import TABLE_COLUMNS, Record

logger = logging.getLogger(__name__)

ExportFormat = Literal["csv", "parquet"]


def records_to_frame(records: Iterable[Record]) -> pd.DataFrame:
    """Five-column float64 DataFrame, absent extended fields zero-filled."""
    rows = [r.as_row() for r in records]
    if not rows:
        return pd.DataFrame({c: pd.Series(dtype=np.float64) for c in TABLE_COLUMNS})
    return pd.DataFrame(rows, columns=list(TABLE_COLUMNS), dtype=np.float64)


def frame_to_records(df: pd.DataFrame) -> List[Record]:
    """
    Rebuild Records from a table.

    The table cannot tell "not measured" from "measured zero"; a row is treated as
    extended when any of its extended columns is non-zero.
    """
    missing = [c for c in TABLE_COLUMNS if c not in df.columns]
    if missing:
        raise KeyError(f"Missing record table columns: {missing}")
    mat = df[list(TABLE_COLUMNS)].to_numpy(dtype=np.float64)
    out: List[Record] = []
    for row in mat:
        if np.any(row[2:] != 0.0):
            out.append(Record(float(row[0]), float(row[1]), float(row[2]), float(row[3]), float(row[4])))
        else:
            out.append(Record(float(row[0]), float(row[1])))
    return out


def table_path(out_dir: str | Path, stem: str, table: str, fmt: ExportFormat) -> Path:
    return Path(out_dir) / f"{stem}_{table}.{fmt}"


def export_dataframe(df: pd.DataFrame, path: str | Path, fmt: ExportFormat) -> None:
    """
    Export a DataFrame to CSV or Parquet.

    Parquet requires `pyarrow`.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "csv":
        df.to_csv(out, index=False)
        return

    if fmt == "parquet":
        try:
            df.to_parquet(out, index=False)
        except ImportError as e:
            raise RuntimeError(
                "Parquet export failed. Install 'pyarrow' (pip install oscillation-analyzer[parquet]). "
                f"Original error: {e}"
            ) from e
        return

    raise ValueError(f"Unknown export format: {fmt}")


def write_record_table(
    records: Iterable[Record],
    out_dir: str | Path,
    *,
    stem: str,
    table: str = "OscData",
    fmt: ExportFormat = "csv",
) -> Path:
    """Write records as a named table; returns the written path."""
    df = records_to_frame(records)
    path = table_path(out_dir, stem, table, fmt)
    export_dataframe(df, path, fmt)
    logger.info("Wrote %d rows to %s", len(df), path)
    return path


def read_record_table(path: str | Path) -> pd.DataFrame:
    """Read a record table back (rows in write order)."""
    p = Path(path)
    if not p.is_file():
        raise SourceUnavailable(str(p), "no such table file")
    suffix = p.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(p)
    elif suffix == ".parquet":
        df = pd.read_parquet(p)
    else:
        raise ValueError(f"Unsupported table format: {p.suffix}")
    missing = [c for c in TABLE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{p.name}: missing record table columns {missing}")
    return df[list(TABLE_COLUMNS)].astype(np.float64)
