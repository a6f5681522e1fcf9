from __future__ import annotations

from typing import Iterable, Optional, Sequence

import numpy as np

from oscillation_analyzer.models.records import Record
from oscillation_analyzer.models.results import WeightedAccumulation


class WeightedHistogram:
    """Fixed-range weighted accumulator over ``[range_min, range_max)``.

    Out-of-range policy: positions below ``range_min`` add to ``underflow``;
    positions at or above ``range_max`` (and NaN) add to ``overflow``. In-range bins
    are never clamped into.
    """

    def __init__(self, n_bins: int = 100, range_min: float = 0.0, range_max: float = 10.0, label: Optional[str] = None):
        n_bins = int(n_bins)
        if n_bins <= 0:
            raise ValueError("n_bins must be > 0")
        if not float(range_max) > float(range_min):
            raise ValueError(f"range_max ({range_max}) must exceed range_min ({range_min})")
        self.n_bins = n_bins
        self.range_min = float(range_min)
        self.range_max = float(range_max)
        self.label = label
        self.reset()

    def reset(self) -> None:
        self._contents = np.zeros(self.n_bins, dtype=np.float64)
        self._sumw2 = np.zeros(self.n_bins, dtype=np.float64)
        self._underflow = 0.0
        self._overflow = 0.0
        self._entries = 0

    def _bin_indices(self, x: np.ndarray) -> np.ndarray:
        """-1 = underflow, n_bins = overflow (NaN included)."""
        idx = np.full(x.shape, self.n_bins, dtype=np.int64)
        below = x < self.range_min
        inside = (x >= self.range_min) & (x < self.range_max)
        idx[below] = -1
        scaled = self.n_bins * (x[inside] - self.range_min) / (self.range_max - self.range_min)
        idx[inside] = np.minimum(scaled.astype(np.int64), self.n_bins - 1)
        return idx

    def fill(self, position: float, weight: float = 1.0) -> int:
        """Add one weighted entry; returns the bin index it landed in."""
        return int(self.fill_many([position], [weight])[0])

    def fill_many(self, positions: Sequence[float], weights: Optional[Sequence[float]] = None) -> np.ndarray:
        x = np.asarray(positions, dtype=np.float64).ravel()
        if weights is None:
            w = np.ones_like(x)
        else:
            w = np.asarray(weights, dtype=np.float64).ravel()
            if w.shape != x.shape:
                raise ValueError(f"positions and weights differ in length: {x.size} vs {w.size}")

        idx = self._bin_indices(x)
        inside = (idx >= 0) & (idx < self.n_bins)
        np.add.at(self._contents, idx[inside], w[inside])
        np.add.at(self._sumw2, idx[inside], w[inside] ** 2)
        self._underflow += float(np.sum(w[idx == -1]))
        self._overflow += float(np.sum(w[idx == self.n_bins]))
        self._entries += int(x.size)
        return idx

    def fill_records(self, records: Iterable[Record]) -> None:
        """Fill ``(position, primary_value)`` of every record, in order."""
        recs = list(records)
        self.fill_many([r.position for r in recs], [r.primary_value for r in recs])

    @property
    def entries(self) -> int:
        return self._entries

    def freeze(self) -> WeightedAccumulation:
        """Read-only snapshot of the current state."""
        contents = self._contents.copy()
        sumw2 = self._sumw2.copy()
        contents.setflags(write=False)
        sumw2.setflags(write=False)
        return WeightedAccumulation(
            contents=contents,
            sumw2=sumw2,
            range_min=self.range_min,
            range_max=self.range_max,
            underflow=self._underflow,
            overflow=self._overflow,
            entries=self._entries,
            label=self.label,
        )


def accumulate_by_baseline(
    records: Iterable[Record],
    *,
    n_bins: int = 100,
    range_min: float = 0.0,
    range_max: float = 10.0,
    label: Optional[str] = None,
) -> WeightedAccumulation:
    """Weighted histogram of record position (baseline) with primary value as weight."""
    h = WeightedHistogram(n_bins=n_bins, range_min=range_min, range_max=range_max, label=label)
    h.fill_records(records)
    return h.freeze()
