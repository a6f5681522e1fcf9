from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Sequence, Tuple

from oscillation_analyzer.ingest.segment_map import SegmentMap
from oscillation_analyzer.models.records import Record, SegmentMapEntry

JoinStatus = Literal["joined", "unjoined"]


@dataclass(frozen=True)
class JoinedSegment:
    """Records of one segment after the baseline join.

    status == "joined":
        every record's ``position`` now holds ``baseline`` [m].
    status == "unjoined":
        no map entry matched; records are passed through unchanged and ``position``
        still holds whatever the parser produced (typically an energy bin center).
    """

    segment_id: int
    status: JoinStatus
    records: Tuple[Record, ...]
    baseline: Optional[float] = None

    @property
    def is_joined(self) -> bool:
        return self.status == "joined"


def map_to_baseline(records: Sequence[Record], entry: SegmentMapEntry) -> Tuple[Record, ...]:
    """Return copies of ``records`` with ``position`` replaced by ``entry.baseline``."""
    return tuple(r.with_position(entry.baseline) for r in records)


def join_segment(records: Sequence[Record], segment_id: int, segment_map: SegmentMap) -> JoinedSegment:
    """Join one segment's records to its baseline (first matching map entry wins)."""
    sid = int(segment_id)
    entry = segment_map.lookup(sid)
    if entry is None:
        return JoinedSegment(segment_id=sid, status="unjoined", records=tuple(records))
    return JoinedSegment(
        segment_id=sid,
        status="joined",
        records=map_to_baseline(records, entry),
        baseline=float(entry.baseline),
    )
