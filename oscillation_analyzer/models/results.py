from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class ShapeReport:
    """Record-count check for one segment contribution to the flat table.

    Attributes
    ----------
    index:
        Position of the segment in request order (0-based).
    label:
        Human-readable segment label (e.g. "baseline 3").
    n_records:
        Records the segment actually contributed.
    expected:
        Fixed block size the positional binning assumes.
    flat_start:
        Flat index of the segment's first record.
    """

    index: int
    label: str
    n_records: int
    expected: int
    flat_start: int

    @property
    def ok(self) -> bool:
        return self.n_records == self.expected

    def describe(self) -> str:
        return (
            f"{self.label}: {self.n_records} records, expected {self.expected} "
            f"(flat start {self.flat_start}); later bins drift across block boundaries"
        )


@dataclass(frozen=True)
class BlockedSpectrum:
    """Fixed-width per-baseline spectrum derived by positional grouping.

    Attributes
    ----------
    values:
        Array of shape ``(n_blocks, block_size)``; row ``b`` is baseline ``b + 1``.
    bin_edges:
        Energy axis edges, shape ``(block_size + 1,)``. Display metadata only; it
        plays no role in bin assignment.
    n_records:
        Length of the flat input sequence.
    n_overflow_records:
        Records beyond ``n_blocks * block_size`` that had no block to land in.
    shape_reports:
        Per-segment record-count checks; only populated when segment sizes are known.
    """

    values: np.ndarray
    bin_edges: np.ndarray
    n_records: int
    n_overflow_records: int = 0
    shape_reports: Tuple[ShapeReport, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def n_blocks(self) -> int:
        return int(self.values.shape[0])

    @property
    def block_size(self) -> int:
        return int(self.values.shape[1])

    @property
    def mismatches(self) -> Tuple[ShapeReport, ...]:
        return tuple(r for r in self.shape_reports if not r.ok)

    def block(self, index: int) -> np.ndarray:
        return self.values[int(index)].copy()


@dataclass(frozen=True)
class WeightedAccumulation:
    """Read-only snapshot of a weighted histogram.

    Attributes
    ----------
    contents:
        Sum of weights per in-range bin, shape ``(n_bins,)``.
    sumw2:
        Sum of squared weights per in-range bin, shape ``(n_bins,)``.
    range_min, range_max:
        Half-open range ``[range_min, range_max)``.
    underflow, overflow:
        Weight accumulated below/above the range (NaN positions count as overflow).
    entries:
        Number of fills, in range or not.
    """

    contents: np.ndarray
    sumw2: np.ndarray
    range_min: float
    range_max: float
    underflow: float = 0.0
    overflow: float = 0.0
    entries: int = 0
    label: Optional[str] = None

    @property
    def n_bins(self) -> int:
        return int(self.contents.size)

    @property
    def bin_width(self) -> float:
        return (self.range_max - self.range_min) / float(self.n_bins)

    @property
    def bin_edges(self) -> np.ndarray:
        return np.linspace(self.range_min, self.range_max, self.n_bins + 1)

    @property
    def bin_centers(self) -> np.ndarray:
        e = self.bin_edges
        return 0.5 * (e[:-1] + e[1:])

    @property
    def errors(self) -> np.ndarray:
        return np.sqrt(self.sumw2)

    def find_bin(self, position: float) -> int:
        """Bin index for ``position``; -1 for underflow, ``n_bins`` for overflow or NaN."""
        x = float(position)
        if np.isnan(x) or x >= self.range_max:
            return self.n_bins
        if x < self.range_min:
            return -1
        idx = int(self.n_bins * (x - self.range_min) / (self.range_max - self.range_min))
        # guard against rounding at the upper edge
        return min(idx, self.n_bins - 1)

    def content(self, index: int) -> float:
        i = int(index)
        if i == -1:
            return float(self.underflow)
        if i == self.n_bins:
            return float(self.overflow)
        if not 0 <= i < self.n_bins:
            raise IndexError(f"bin index {i} outside [-1, {self.n_bins}]")
        return float(self.contents[i])

    def content_at(self, position: float) -> float:
        return self.content(self.find_bin(position))

    def integral(self) -> float:
        """Sum of in-range bin contents (under/overflow excluded)."""
        return float(np.sum(self.contents))
