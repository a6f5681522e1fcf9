from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from oscillation_analyzer.errors import ShapeMismatch
from oscillation_analyzer.models.records import Record
from oscillation_analyzer.models.results import BlockedSpectrum, ShapeReport

logger = logging.getLogger(__name__)

_POLICIES = ("ignore", "warn", "raise")


def _check_policy(policy: str) -> str:
    if policy not in _POLICIES:
        raise ValueError(f"policy must be one of {_POLICIES}, got {policy!r}")
    return policy


def flatten(segment_table: Sequence[Sequence[Record]]) -> Tuple[Record, ...]:
    """Concatenate per-segment sequences in request order, keeping intra-segment order."""
    flat: List[Record] = []
    for seq in segment_table:
        flat.extend(seq)
    return tuple(flat)


def check_segment_shapes(
    segment_sizes: Sequence[int],
    block_size: int,
    labels: Optional[Sequence[str]] = None,
) -> Tuple[ShapeReport, ...]:
    """One ShapeReport per segment, comparing its record count with ``block_size``."""
    if labels is not None and len(labels) != len(segment_sizes):
        raise ValueError(f"labels length={len(labels)} but {len(segment_sizes)} segments given")
    reports: List[ShapeReport] = []
    start = 0
    for k, n in enumerate(segment_sizes):
        label = labels[k] if labels is not None else f"segment #{k}"
        reports.append(ShapeReport(index=k, label=label, n_records=int(n), expected=int(block_size), flat_start=start))
        start += int(n)
    return tuple(reports)


def block_spectrum(
    flat: Sequence[Record],
    *,
    n_blocks: int = 10,
    block_size: int = 16,
    energy_range: Tuple[float, float] = (0.5, 7.5),
    segment_sizes: Optional[Sequence[int]] = None,
    labels: Optional[Sequence[str]] = None,
    policy: str = "warn",
) -> BlockedSpectrum:
    """Group a flat record sequence into fixed-size blocks by position alone.

    Record ``i`` lands in block ``i // block_size`` at offset ``i % block_size``;
    no field value is consulted. If a segment contributed a record count other than
    ``block_size``, every later record drifts across block boundaries. That drift is
    reproduced as-is; pass ``segment_sizes`` to have it reported.

    Parameters
    ----------
    flat:
        Flat record sequence (see :func:`flatten`).
    segment_sizes, labels:
        Optional per-segment record counts (and display labels) of the sequences that
        formed ``flat``. Enables the per-segment shape check.
    policy:
        "ignore": mismatches and overflow records are only counted.
        "warn": additionally logged and added to ``warnings``.
        "raise": ShapeMismatch on the first mismatch or on overflow records.
    """
    _check_policy(policy)
    n_blocks = int(n_blocks)
    block_size = int(block_size)
    if n_blocks <= 0 or block_size <= 0:
        raise ValueError("n_blocks and block_size must be > 0")

    warnings: List[str] = []
    reports: Tuple[ShapeReport, ...] = ()
    if segment_sizes is not None:
        if sum(int(n) for n in segment_sizes) != len(flat):
            raise ValueError(f"segment_sizes sum to {sum(segment_sizes)} but flat has {len(flat)} records")
        reports = check_segment_shapes(segment_sizes, block_size, labels)
        bad = [r for r in reports if not r.ok]
        if bad and policy == "raise":
            raise ShapeMismatch(bad[0].describe())
        if bad and policy == "warn":
            for r in bad:
                logger.warning("shape mismatch: %s", r.describe())
                warnings.append(f"shape mismatch: {r.describe()}")

    values = np.fromiter((r.primary_value for r in flat), dtype=np.float64, count=len(flat))
    capacity = n_blocks * block_size
    n_over = max(0, values.size - capacity)
    if n_over:
        msg = f"{n_over} record(s) beyond the {n_blocks}x{block_size} grid were dropped"
        if policy == "raise":
            raise ShapeMismatch(msg)
        if policy == "warn":
            logger.warning(msg)
            warnings.append(msg)

    grid = np.zeros(capacity, dtype=np.float64)
    n_keep = min(values.size, capacity)
    grid[:n_keep] = values[:n_keep]

    lo, hi = float(energy_range[0]), float(energy_range[1])
    return BlockedSpectrum(
        values=grid.reshape((n_blocks, block_size)),
        bin_edges=np.linspace(lo, hi, block_size + 1),
        n_records=int(values.size),
        n_overflow_records=int(n_over),
        shape_reports=reports,
        warnings=tuple(warnings),
    )


@dataclass(frozen=True)
class SpectrumAggregator:
    """Builds the flat table and the blocked spectrum from an ordered segment table."""

    n_blocks: int = 10
    block_size: int = 16
    energy_range: Tuple[float, float] = (0.5, 7.5)
    policy: str = "warn"

    def aggregate(
        self,
        segment_table: Sequence[Sequence[Record]],
        labels: Optional[Sequence[str]] = None,
    ) -> Tuple[Tuple[Record, ...], BlockedSpectrum]:
        flat = flatten(segment_table)
        spectrum = block_spectrum(
            flat,
            n_blocks=self.n_blocks,
            block_size=self.block_size,
            energy_range=self.energy_range,
            segment_sizes=[len(s) for s in segment_table],
            labels=labels,
            policy=self.policy,
        )
        return flat, spectrum
