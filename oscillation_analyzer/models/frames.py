from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from oscillation_analyzer.models.records import Record


@dataclass(frozen=True)
class SkippedLine:
    line_no: int
    reason: str
    text: str


@dataclass(frozen=True)
class SourceRecords:
    """
    In-memory representation of one text source (one segment or one baseline file)
    after parsing.

    Notes
    - 'records' keeps file order; malformed lines are absent, never partially filled.
    - 'skipped' lists every malformed line so the loss stays observable.
    - 'source_path' is None for in-memory sources (tests, streams).
    """
    label: str
    schema: str
    records: Tuple[Record, ...]
    skipped: Tuple[SkippedLine, ...] = ()
    warnings: Tuple[str, ...] = ()
    source_path: Optional[Path] = None

    @property
    def n_records(self) -> int:
        return len(self.records)

    @property
    def n_skipped(self) -> int:
        return len(self.skipped)
