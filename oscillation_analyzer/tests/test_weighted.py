from __future__ import annotations

import numpy as np
import pytest

from oscillation_analyzer.analysis.weighted import WeightedHistogram, accumulate_by_baseline
from oscillation_analyzer.models.records import Record


def test_two_fills_same_bin_sum_weights() -> None:
    h = WeightedHistogram(n_bins=100, range_min=0.0, range_max=10.0)
    h.fill(2.5, 10.0)
    h.fill(2.5, 5.0)
    acc = h.freeze()

    b = acc.find_bin(2.5)
    assert b == 25
    assert acc.content(b) == 15.0
    others = np.delete(acc.contents, b)
    assert np.all(others == 0.0)
    assert acc.underflow == 0.0 and acc.overflow == 0.0
    assert acc.entries == 2
    assert acc.sumw2[b] == 125.0
    assert acc.content_at(2.55) == 15.0


def test_out_of_range_goes_to_under_and_overflow() -> None:
    h = WeightedHistogram(n_bins=10, range_min=0.0, range_max=10.0)
    idx = h.fill_many([-0.1, 10.0, 12.0, float("nan"), 0.0, 9.999], [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
    acc = h.freeze()
    assert idx.tolist() == [-1, 10, 10, 10, 0, 9]
    assert acc.underflow == 1.0
    assert acc.overflow == 9.0
    assert acc.content(-1) == 1.0
    assert acc.content(10) == 9.0
    assert acc.contents[0] == 5.0
    assert acc.contents[9] == 6.0
    assert acc.integral() == 11.0
    assert acc.entries == 6


def test_snapshot_is_read_only_and_detached() -> None:
    h = WeightedHistogram(n_bins=4, range_min=0.0, range_max=4.0)
    h.fill(1.5, 2.0)
    acc = h.freeze()
    with pytest.raises(ValueError):
        acc.contents[0] = 1.0
    h.fill(1.5, 2.0)
    assert acc.content(1) == 2.0
    assert h.freeze().content(1) == 4.0


def test_accumulate_by_baseline_from_records() -> None:
    recs = [Record(7.0, 3.0), Record(7.0, 4.0), Record(6.5, 1.0, 0.1, 0.2, 0.3)]
    acc = accumulate_by_baseline(recs, n_bins=100, range_min=0.0, range_max=10.0)
    assert acc.content_at(7.0) == 7.0
    assert acc.content_at(6.5) == 1.0
    assert acc.integral() == 8.0
    assert np.isclose(acc.errors[acc.find_bin(7.0)], 5.0)


def test_geometry_and_bad_arguments() -> None:
    acc = WeightedHistogram(n_bins=100, range_min=0.0, range_max=10.0).freeze()
    assert acc.n_bins == 100
    assert acc.bin_edges.shape == (101,)
    assert np.isclose(acc.bin_width, 0.1)
    assert np.isclose(acc.bin_centers[0], 0.05)
    with pytest.raises(IndexError):
        acc.content(101)
    with pytest.raises(ValueError):
        WeightedHistogram(n_bins=0)
    with pytest.raises(ValueError):
        WeightedHistogram(range_min=1.0, range_max=1.0)
    with pytest.raises(ValueError):
        WeightedHistogram().fill_many([1.0, 2.0], [1.0])


def test_empty_fill_is_noop() -> None:
    h = WeightedHistogram()
    h.fill_records([])
    acc = h.freeze()
    assert acc.entries == 0
    assert acc.integral() == 0.0
