"""End-to-end tests for the oscillation pipeline on a synthetic working directory."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from oscillation_analyzer.analysis.pipeline import OscillationPipeline
from oscillation_analyzer.errors import ShapeMismatch, SourceUnavailable
from oscillation_analyzer.ingest.discovery import SEGMENT_MAP_RELPATH, null_file_name, prompt_file_name
from oscillation_analyzer.io.tables import read_record_table
from oscillation_analyzer.models.profile import AnalysisProfile


def _write_tree(root: Path, *, segment_map: str = "20,7.0\n", prompt=None, null=None) -> Path:
    (root / "PromptDataSet").mkdir(parents=True, exist_ok=True)
    (root / "NullDataSet").mkdir(parents=True, exist_ok=True)
    if segment_map is not None:
        (root / SEGMENT_MAP_RELPATH).write_text(segment_map, encoding="utf-8")
    for sid, text in (prompt or {}).items():
        (root / "PromptDataSet" / prompt_file_name(sid)).write_text(text, encoding="utf-8")
    for bid, text in (null or {}).items():
        (root / "NullDataSet" / null_file_name(bid)).write_text(text, encoding="utf-8")
    return root


def _null_text(values) -> str:
    edges = np.linspace(0.5, 7.5, len(values) + 1)
    centers = 0.5 * (edges[:-1] + edges[1:])
    return "# energy,bin_content\n" + "".join(f"{float(c)!r},{float(v)!r}\n" for c, v in zip(centers, values))


def test_null_fixture_lines_are_plain_floats() -> None:
    text = _null_text(np.arange(16))
    assert "np." not in text
    assert text.splitlines()[1] == "0.71875,0.0"


def _small_profile(**kw) -> AnalysisProfile:
    base = dict(segment_first=20, segment_last=21, baseline_first=1, baseline_last=2, n_baselines=2)
    base.update(kw)
    return AnalysisProfile(**base)


def test_segment_join_end_to_end(tmp_path) -> None:
    """Map (20, 7.0) + segment-20 simple lines -> [(7.0, 3.0), (7.0, 4.0)]."""
    root = _write_tree(tmp_path, prompt={20: "1.0,3.0\n2.0,4.0\n"})
    profile = AnalysisProfile(
        segment_first=20, segment_last=20, baseline_first=1, baseline_last=1,
        prompt_schema="simple", n_baselines=1,
    )
    res = OscillationPipeline(profile).run(root, render=False)

    js = res.prompt_segments[0]
    assert js.status == "joined"
    assert [(r.position, r.primary_value) for r in js.records] == [(7.0, 3.0), (7.0, 4.0)]
    assert res.prompt_table[["bin_center", "ibd_counts"]].values.tolist() == [[7.0, 3.0], [7.0, 4.0]]
    assert res.baseline_hist.content_at(7.0) == 7.0
    assert res.report.missing_sources == ["baseline 1"]


def test_full_run_exports_tables_and_figures(tmp_path) -> None:
    root = _write_tree(
        tmp_path / "data",
        segment_map="20,7.0\n21,2.5\n",
        prompt={
            20: "# E,N,err,bkg,bkgerr\n1.0,10.0,1.0,2.0,0.5\n2.0,20.0,1.0,2.0,0.5\n",
            21: "1.0,5.0,1.0,2.0,0.5\nbroken line\n",
        },
        null={1: _null_text(np.arange(16)), 2: _null_text(np.arange(16) + 100)},
    )
    out = tmp_path / "out"
    res = OscillationPipeline(_small_profile()).run(root, out_dir=out, render=True)

    assert res.spectrum.values.shape == (2, 16)
    assert np.array_equal(res.spectrum.values[0], np.arange(16.0))
    assert np.array_equal(res.spectrum.values[1], np.arange(16.0) + 100)
    assert res.spectrum.mismatches == ()

    assert res.baseline_hist.content_at(7.0) == 30.0
    assert res.baseline_hist.content_at(2.5) == 5.0
    assert res.baseline_hist.integral() == 35.0

    assert res.report.skipped_lines == {"prompt segment 21": 1}
    assert res.report.unjoined_segments == []

    prompt_df = read_record_table(res.outputs["prompt_table"])
    assert prompt_df["ibd_counts"].tolist() == [10.0, 20.0, 5.0]
    assert prompt_df["background_counts"].tolist() == [2.0, 2.0, 2.0]
    null_df = read_record_table(res.outputs["null_table"])
    assert len(null_df) == 32
    assert null_df["total_stats_error"].eq(0.0).all()

    for key in ("spectrum_figure", "baseline_figure"):
        assert res.outputs[key].is_file()
        assert res.outputs[key].suffix == ".png"
    assert res.outputs["spectrum_figure"].name == "Fig40_Reconstructed.png"


def test_unjoined_segment_reported_and_passed_through(tmp_path) -> None:
    root = _write_tree(
        tmp_path,
        segment_map="20,7.0\n",
        prompt={20: "1.0,10.0,1,1,1\n", 21: "3.25,4.0,1,1,1\n"},
        null={1: _null_text(np.ones(16)), 2: _null_text(np.ones(16))},
    )
    res = OscillationPipeline(_small_profile()).run(root, render=False)
    assert res.report.unjoined_segments == [21]
    assert res.prompt_segments[1].status == "unjoined"
    # the unjoined record keeps its energy as position
    assert res.baseline_hist.content_at(3.25) == 4.0


def test_short_null_file_drifts_and_is_reported(tmp_path) -> None:
    root = _write_tree(
        tmp_path,
        prompt={20: "1,1,1,1,1\n"},
        null={1: _null_text(np.arange(15)), 2: _null_text(np.arange(16) + 100)},
    )
    res = OscillationPipeline(_small_profile()).run(root, render=False)
    assert res.spectrum.values[0, 15] == 100.0
    assert res.spectrum.values[1, 0] == 101.0
    assert len(res.report.shape_mismatches) == 1
    assert "baseline 1" in res.report.shape_mismatches[0]

    with pytest.raises(ShapeMismatch):
        OscillationPipeline(_small_profile(shape_policy="raise")).run(root, render=False)


def test_missing_segment_map_policy(tmp_path) -> None:
    root = _write_tree(tmp_path, segment_map=None, prompt={20: "1.5,2.0,1,1,1\n"})
    with pytest.raises(SourceUnavailable):
        OscillationPipeline(_small_profile()).run(root, render=False)

    res = OscillationPipeline(_small_profile(require_segment_map=False)).run(root, render=False)
    assert len(res.segment_map) == 0
    assert res.report.unjoined_segments == [20, 21]
    assert "1.1_Osc_SegmentMap.txt" in res.report.missing_sources


def test_missing_source_policy_raise(tmp_path) -> None:
    root = _write_tree(tmp_path, prompt={20: "1,1,1,1,1\n"})
    with pytest.raises(SourceUnavailable):
        OscillationPipeline(_small_profile(missing_source_policy="raise")).run(root, render=False)

    res = OscillationPipeline(_small_profile()).run(root, render=False)
    assert res.report.missing_sources == ["prompt segment 21", "baseline 1", "baseline 2"]
    assert res.spectrum.n_records == 0
    assert "missing sources=3" in res.report.summary()
