"""Aggregation package.

Design principle:
  - Ingest produces SourceRecords per file and the ordered SegmentMap.
  - Analysis joins segments to baselines, flattens them in request order and derives
    the two aggregates (blocked spectrum, weighted baseline histogram).

Project-wide constraint:
  - Block membership in the spectrum is defined by flat position only, never by a
    field value. Concatenation order is therefore output-affecting.
"""

from .join import JoinedSegment, join_segment
from .spectrum import SpectrumAggregator, block_spectrum, flatten
from .weighted import WeightedHistogram, accumulate_by_baseline

__all__ = [
    "JoinedSegment",
    "SpectrumAggregator",
    "WeightedHistogram",
    "accumulate_by_baseline",
    "block_spectrum",
    "flatten",
    "join_segment",
]
