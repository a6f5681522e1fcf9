"""End-to-end oscillation pipeline.

Sequence (single-threaded, strictly ordered):

1. Discover the inputs of a working directory (segment map, prompt files per
   segment, null-prediction files per baseline).
2. Load the segment map.
3. Parse every prompt segment (extended schema) and join it to its baseline.
4. Parse every null-prediction baseline file (simple schema).
5. Flatten both tables; block the null table into the per-baseline spectrum and
   fold the prompt table into the weighted baseline histogram.
6. Optionally persist both tables and render both figures.

The order in which segments are requested is the order of the flat tables, and
the positional blocking depends on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from oscillation_analyzer.analysis.join import JoinedSegment, join_segment
from oscillation_analyzer.analysis.spectrum import SpectrumAggregator
from oscillation_analyzer.analysis.weighted import accumulate_by_baseline
from oscillation_analyzer.errors import SourceUnavailable
from oscillation_analyzer.ingest.discovery import DatasetDiscovery
from oscillation_analyzer.ingest.records import read_records
from oscillation_analyzer.ingest.segment_map import SegmentMap, load_segment_map
from oscillation_analyzer.io.tables import records_to_frame, write_record_table
from oscillation_analyzer.models.catalog import DatasetCatalog
from oscillation_analyzer.models.frames import SourceRecords
from oscillation_analyzer.models.profile import AnalysisProfile
from oscillation_analyzer.models.records import Record
from oscillation_analyzer.models.results import BlockedSpectrum, WeightedAccumulation

logger = logging.getLogger(__name__)


@dataclass
class PipelineReport:
    """Everything that was skipped, missing or inconsistent during one run."""

    skipped_lines: Dict[str, int] = field(default_factory=dict)
    missing_sources: List[str] = field(default_factory=list)
    unjoined_segments: List[int] = field(default_factory=list)
    shape_mismatches: List[str] = field(default_factory=list)
    n_overflow_records: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def n_skipped_lines(self) -> int:
        return int(sum(self.skipped_lines.values()))

    def add_source(self, src: SourceRecords) -> None:
        if src.n_skipped:
            self.skipped_lines[src.label] = src.n_skipped
        self.warnings.extend(src.warnings)

    def summary(self) -> str:
        return (
            f"skipped lines={self.n_skipped_lines}, missing sources={len(self.missing_sources)}, "
            f"unjoined segments={len(self.unjoined_segments)}, shape mismatches={len(self.shape_mismatches)}, "
            f"overflow records={self.n_overflow_records}"
        )


@dataclass(frozen=True)
class PipelineResult:
    profile: AnalysisProfile
    catalog: Optional[DatasetCatalog]
    segment_map: SegmentMap
    prompt_segments: Tuple[JoinedSegment, ...]
    null_sources: Tuple[SourceRecords, ...]
    prompt_table: pd.DataFrame
    null_table: pd.DataFrame
    spectrum: BlockedSpectrum
    baseline_hist: WeightedAccumulation
    report: PipelineReport
    outputs: Dict[str, Path] = field(default_factory=dict)


def _empty_source(label: str, schema: str, reason: str) -> SourceRecords:
    return SourceRecords(label=label, schema=schema, records=(), warnings=(f"{label}: {reason}",))


class OscillationPipeline:
    """Driver owning all per-run state; no module-level state is used."""

    def __init__(self, profile: Optional[AnalysisProfile] = None):
        self.profile = (profile or AnalysisProfile()).validate()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _read_or_skip(
        self, path: Optional[Path], label: str, schema: str, report: PipelineReport
    ) -> SourceRecords:
        if path is None:
            if self.profile.missing_source_policy == "raise":
                raise SourceUnavailable(label, "file not found")
            report.missing_sources.append(label)
            return _empty_source(label, schema, "missing, contributes no records")
        try:
            src = read_records(path, schema, label=label)
        except SourceUnavailable:
            if self.profile.missing_source_policy == "raise":
                raise
            logger.warning("%s: unreadable, contributes no records", label)
            report.missing_sources.append(label)
            return _empty_source(label, schema, "unreadable, contributes no records")
        report.add_source(src)
        return src

    def load_map(self, catalog: DatasetCatalog, report: PipelineReport) -> SegmentMap:
        try:
            smap = load_segment_map(catalog.segment_map_path)
        except SourceUnavailable:
            if self.profile.require_segment_map:
                raise
            logger.warning("segment map unavailable; continuing with an empty map")
            report.missing_sources.append(str(catalog.segment_map_path.name))
            smap = SegmentMap.empty("segment map unavailable and require_segment_map=False")
        if smap.skipped:
            report.skipped_lines[smap.source] = len(smap.skipped)
        report.warnings.extend(smap.warnings)
        return smap

    def process_prompt(
        self,
        segment_ids: Sequence[int],
        files: Dict[int, Path],
        segment_map: SegmentMap,
        report: PipelineReport,
    ) -> Tuple[JoinedSegment, ...]:
        joined: List[JoinedSegment] = []
        for sid in segment_ids:
            src = self._read_or_skip(files.get(sid), f"prompt segment {sid}", self.profile.prompt_schema, report)
            js = join_segment(src.records, sid, segment_map)
            if not js.is_joined:
                report.unjoined_segments.append(int(sid))
            joined.append(js)
        if report.unjoined_segments:
            msg = (
                f"{len(report.unjoined_segments)} prompt segment(s) had no segment-map entry; "
                f"their position field keeps the parsed value: {report.unjoined_segments[:20]}"
            )
            logger.warning(msg)
            report.warnings.append(msg)
        return tuple(joined)

    def process_null(
        self, baseline_ids: Sequence[int], files: Dict[int, Path], report: PipelineReport
    ) -> Tuple[SourceRecords, ...]:
        return tuple(
            self._read_or_skip(files.get(bid), f"baseline {bid}", self.profile.null_schema, report)
            for bid in baseline_ids
        )

    def aggregate(
        self,
        prompt_segments: Sequence[JoinedSegment],
        null_sources: Sequence[SourceRecords],
        report: PipelineReport,
    ) -> Tuple[Tuple[Record, ...], Tuple[Record, ...], BlockedSpectrum, WeightedAccumulation]:
        p = self.profile
        aggregator = SpectrumAggregator(
            n_blocks=p.n_baselines,
            block_size=p.bins_per_baseline,
            energy_range=(p.energy_min_mev, p.energy_max_mev),
            policy=p.shape_policy,
        )
        null_flat, spectrum = aggregator.aggregate(
            [s.records for s in null_sources],
            labels=[s.label for s in null_sources],
        )
        report.shape_mismatches.extend(r.describe() for r in spectrum.mismatches)
        report.n_overflow_records += spectrum.n_overflow_records
        report.warnings.extend(spectrum.warnings)

        prompt_flat: List[Record] = []
        for js in prompt_segments:
            prompt_flat.extend(js.records)
        hist = accumulate_by_baseline(
            prompt_flat,
            n_bins=p.hist_bins,
            range_min=p.hist_min_m,
            range_max=p.hist_max_m,
            label="IBD Counts vs Baseline",
        )
        logger.info(
            "Aggregated %d null records into %dx%d spectrum; %d prompt records into %d-bin histogram",
            len(null_flat), p.n_baselines, p.bins_per_baseline, len(prompt_flat), p.hist_bins,
        )
        return tuple(prompt_flat), null_flat, spectrum, hist

    def export(
        self,
        out_dir: Path,
        prompt_flat: Sequence[Record],
        null_flat: Sequence[Record],
        spectrum: BlockedSpectrum,
        hist: WeightedAccumulation,
        render: bool,
    ) -> Dict[str, Path]:
        p = self.profile
        outputs: Dict[str, Path] = {
            "prompt_table": write_record_table(
                prompt_flat, out_dir, stem=p.prompt_table_stem, table=p.table_name, fmt=p.export_format
            ),
            "null_table": write_record_table(
                null_flat, out_dir, stem=p.null_table_stem, table=p.table_name, fmt=p.export_format
            ),
        }
        if render:
            from oscillation_analyzer.presentation.plots import (
                plot_blocked_spectrum,
                plot_weighted_histogram,
                savefig,
            )

            outputs["spectrum_figure"] = savefig(plot_blocked_spectrum(spectrum), out_dir, p.spectrum_figure_name)
            outputs["baseline_figure"] = savefig(plot_weighted_histogram(hist), out_dir, p.baseline_figure_name)
        return outputs

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, workdir: str | Path, out_dir: Optional[str | Path] = None, render: bool = True) -> PipelineResult:
        catalog = DatasetDiscovery(profile=self.profile).build_catalog(workdir)
        report = PipelineReport(warnings=list(catalog.warnings))

        segment_map = self.load_map(catalog, report)
        prompt_segments = self.process_prompt(catalog.segment_ids, catalog.prompt_files, segment_map, report)
        null_sources = self.process_null(catalog.baseline_ids, catalog.null_files, report)

        prompt_flat, null_flat, spectrum, hist = self.aggregate(prompt_segments, null_sources, report)

        outputs: Dict[str, Path] = {}
        if out_dir is not None:
            outputs = self.export(Path(out_dir), prompt_flat, null_flat, spectrum, hist, render)

        logger.info("Pipeline finished: %s", report.summary())
        return PipelineResult(
            profile=self.profile,
            catalog=catalog,
            segment_map=segment_map,
            prompt_segments=prompt_segments,
            null_sources=null_sources,
            prompt_table=records_to_frame(prompt_flat),
            null_table=records_to_frame(null_flat),
            spectrum=spectrum,
            baseline_hist=hist,
            report=report,
            outputs=outputs,
        )
