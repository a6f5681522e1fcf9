"""Oscillation Analyzer -- Python tooling for segmented reactor-antineutrino spectra.

This package provides tools for:
- Parsing per-segment prompt spectra (extended 5-field schema) and per-baseline
  null-oscillation predictions (simple 2-field schema) from flat text files
- Joining segments to their physical baseline via the segment map
- Re-binning the flat null-prediction table into a 10 x 16 per-baseline spectrum
- Accumulating IBD counts into a weighted histogram over baseline distance
- Persisting record tables (CSV/Parquet) and rendering the two figures

Key principles:
- Malformed lines are skipped and counted, never partially parsed
- Missing inputs are reported, never invented
- Flat concatenation order is output-affecting (positional blocking)

Main subpackages:
- ingest: Text parsing, segment map loading and dataset discovery
- analysis: Join, spectrum blocking, weighted accumulation, pipeline driver
- io: Record table persistence
- models: Data models (Record, SourceRecords, AnalysisProfile, results)
- presentation: matplotlib figures
"""

__all__ = []
