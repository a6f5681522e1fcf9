"""Ingest package - text readers and dataset discovery.

This package handles:
- Parsing measurement lines under the simple (2-field) or extended (5-field) schema
- Loading the segment -> baseline map
- Discovering the per-segment and per-baseline files of a working directory

Design principle:
- Readers produce SourceRecords objects; malformed lines are skipped and counted,
  never partially filled
- An unreadable source raises SourceUnavailable; it is never silently treated as empty
"""

from .discovery import DatasetDiscovery
from .records import parse_record, read_records
from .segment_map import SegmentMap, load_segment_map

__all__ = [
    "DatasetDiscovery",
    "SegmentMap",
    "load_segment_map",
    "parse_record",
    "read_records",
]
