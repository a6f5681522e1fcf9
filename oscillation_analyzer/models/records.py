from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Optional, Tuple

Schema = Literal["simple", "extended"]

# Number of numeric fields each schema requires per line.
SCHEMA_FIELDS = {"simple": 2, "extended": 5}

# Column names used by the persisted record table (one row per Record).
TABLE_COLUMNS: Tuple[str, str, str, str, str] = (
    "bin_center",
    "ibd_counts",
    "total_stats_error",
    "background_counts",
    "background_stats_error",
)


def schema_field_count(schema: str) -> int:
    try:
        return SCHEMA_FIELDS[schema]
    except KeyError:
        raise ValueError(f"Unknown record schema: {schema!r} (expected 'simple' or 'extended')") from None


@dataclass(frozen=True)
class Record:
    """
    One measurement row.

    position:
      Energy bin center as read from the file, or the baseline distance [m] once the
      record has been joined to the segment map.
    primary_value:
      Event count (background subtracted IBD counts, or predicted bin content).
    total_stat_error, background_count, background_stat_error:
      Present only for extended-schema rows. None means "not measured", which is
      distinct from a measured zero. Zero-filling happens only in :meth:`as_row`.
    """
    position: float
    primary_value: float
    total_stat_error: Optional[float] = None
    background_count: Optional[float] = None
    background_stat_error: Optional[float] = None

    def __post_init__(self) -> None:
        ext = (self.total_stat_error, self.background_count, self.background_stat_error)
        n_set = sum(v is not None for v in ext)
        if n_set not in (0, 3):
            raise ValueError("Extended fields must be all present or all absent.")

    @property
    def is_extended(self) -> bool:
        return self.total_stat_error is not None

    def with_position(self, position: float) -> "Record":
        return replace(self, position=float(position))

    def as_row(self) -> Tuple[float, float, float, float, float]:
        """Five-column row in TABLE_COLUMNS order, absent fields zero-filled."""
        return (
            float(self.position),
            float(self.primary_value),
            0.0 if self.total_stat_error is None else float(self.total_stat_error),
            0.0 if self.background_count is None else float(self.background_count),
            0.0 if self.background_stat_error is None else float(self.background_stat_error),
        )


@dataclass(frozen=True)
class SegmentMapEntry:
    segment_id: int
    baseline: float
