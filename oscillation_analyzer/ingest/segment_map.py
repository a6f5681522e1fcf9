from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from oscillation_analyzer.errors import MalformedLine, SourceUnavailable
from oscillation_analyzer.ingest.records import TextSource, is_skippable, split_fields, to_float, to_int
from oscillation_analyzer.models.frames import SkippedLine
from oscillation_analyzer.models.records import SegmentMapEntry

logger = logging.getLogger(__name__)


def parse_segment_map_line(line: str, line_no: Optional[int] = None) -> Optional[SegmentMapEntry]:
    """Parse '<segment_id><sep><baseline>'; None for blank/comment lines."""
    if is_skippable(line):
        return None
    tokens = split_fields(line)
    if len(tokens) < 2:
        raise MalformedLine(line, f"expected 2 fields (segment, baseline), got {len(tokens)}", line_no)
    segment_id = to_int(tokens[0], "segment id", line, line_no)
    baseline = to_float(tokens[1], "baseline", line, line_no)
    return SegmentMapEntry(segment_id=segment_id, baseline=baseline)


@dataclass(frozen=True)
class SegmentMap:
    """
    Ordered segment -> baseline table exactly as read.

    Duplicate segment ids are kept. :meth:`lookup` scans in read order and returns the
    first match, so the earliest entry wins.
    """
    entries: Tuple[SegmentMapEntry, ...]
    skipped: Tuple[SkippedLine, ...] = ()
    source: str = "<memory>"
    warnings: Tuple[str, ...] = ()

    @classmethod
    def empty(cls, reason: str = "explicit empty map") -> "SegmentMap":
        """An empty map; every segment will pass through unjoined."""
        return cls(entries=(), source="<empty>", warnings=(f"segment map is empty: {reason}",))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[int, float]]) -> "SegmentMap":
        return cls(entries=tuple(SegmentMapEntry(int(s), float(b)) for s, b in pairs))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[SegmentMapEntry]:
        return iter(self.entries)

    def lookup(self, segment_id: int) -> Optional[SegmentMapEntry]:
        sid = int(segment_id)
        for entry in self.entries:
            if entry.segment_id == sid:
                return entry
        return None

    def duplicate_ids(self) -> List[int]:
        seen: Dict[int, int] = {}
        for e in self.entries:
            seen[e.segment_id] = seen.get(e.segment_id, 0) + 1
        return sorted(k for k, n in seen.items() if n > 1)


def _parse_map_lines(lines: Iterable[str], label: str) -> SegmentMap:
    entries: List[SegmentMapEntry] = []
    skipped: List[SkippedLine] = []
    for line_no, line in enumerate(lines, start=1):
        try:
            entry = parse_segment_map_line(line, line_no=line_no)
        except MalformedLine as e:
            skipped.append(SkippedLine(line_no=line_no, reason=e.reason, text=line.rstrip("\r\n")))
            logger.warning("%s: skipped malformed line %d (%s)", label, line_no, e.reason)
            continue
        if entry is not None:
            entries.append(entry)

    smap = SegmentMap(entries=tuple(entries), skipped=tuple(skipped), source=label)
    warnings: List[str] = []
    if skipped:
        warnings.append(f"{label}: skipped {len(skipped)} malformed line(s)")
    dups = smap.duplicate_ids()
    if dups:
        warnings.append(f"{label}: duplicate segment ids {dups[:20]} (first entry wins)")
        logger.warning("%s: duplicate segment ids %s; first entry wins", label, dups[:20])
    if warnings:
        smap = SegmentMap(entries=smap.entries, skipped=smap.skipped, source=label, warnings=tuple(warnings))
    return smap


def load_segment_map(source: TextSource, label: Optional[str] = None) -> SegmentMap:
    """
    Load the segment map from a path or an open text source.

    An unreadable path raises SourceUnavailable; it is never turned into an empty map
    here. Callers that want to continue without a map use ``SegmentMap.empty()``.
    """
    if isinstance(source, (str, Path)):
        p = Path(source).expanduser()
        try:
            with open(p, "r", encoding="utf-8", errors="replace") as f:
                smap = _parse_map_lines(f, label or p.name)
        except OSError as e:
            raise SourceUnavailable(str(p), f"{type(e).__name__}: {e.strerror or e}") from e
        logger.info("Loaded segment map %s: %d entries", p.name, len(smap))
        return smap

    return _parse_map_lines(source, label or getattr(source, "name", "<stream>"))
