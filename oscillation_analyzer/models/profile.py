"""Analysis profile -- bundles all pipeline-relevant configuration.

An AnalysisProfile groups every parameter that affects the analysis output
into one frozen dataclass.  It can be:

- Constructed with defaults matching the reference dataset layout
- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to/from a dict (and JSON file) for provenance
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict

_SCHEMAS = ("simple", "extended")
_SHAPE_POLICIES = ("ignore", "warn", "raise")
_MISSING_POLICIES = ("skip", "raise")
_EXPORT_FORMATS = ("csv", "parquet")


@dataclass(frozen=True)
class AnalysisProfile:
    """Frozen configuration for the full oscillation pipeline.

    Input layout
    ------------
    segment_first, segment_last : int
        Inclusive range of prompt segment ids; one file per segment.
    baseline_first, baseline_last : int
        Inclusive range of null-prediction baseline indices; one file per baseline.
    prompt_schema, null_schema : str
        Record schema per file family ("simple" = 2 fields, "extended" = 5 fields).

    Blocked spectrum
    ----------------
    n_baselines : int
        Number of baseline blocks in the spectrum grid.
    bins_per_baseline : int
        Block size; a record's bin is its flat index modulo this value.
    energy_min_mev, energy_max_mev : float
        Energy axis spanned by the bins (display metadata only).
    shape_policy : str
        "ignore", "warn" or "raise" for segments whose record count differs from
        ``bins_per_baseline``, and for records beyond the grid capacity.

    Weighted accumulation
    ---------------------
    hist_bins : int
    hist_min_m, hist_max_m : float
        Range of the baseline-distance histogram, half-open ``[min, max)``.

    Sources and outputs
    -------------------
    missing_source_policy : str
        "skip" records a missing per-segment/per-baseline file as empty and continues;
        "raise" aborts the run.
    require_segment_map : bool
        If False, a missing segment map is replaced by an empty map (every segment
        passes through unjoined).  The replacement is reported.
    table_name, export_format, prompt_table_stem, null_table_stem :
        Naming of the persisted record tables.
    spectrum_figure_name, baseline_figure_name :
        PNG stems for the two rendered figures.
    """

    segment_first: int = 15
    segment_last: int = 138
    baseline_first: int = 1
    baseline_last: int = 10

    prompt_schema: str = "extended"
    null_schema: str = "simple"

    n_baselines: int = 10
    bins_per_baseline: int = 16
    energy_min_mev: float = 0.5
    energy_max_mev: float = 7.5
    shape_policy: str = "warn"

    hist_bins: int = 100
    hist_min_m: float = 0.0
    hist_max_m: float = 10.0

    missing_source_policy: str = "skip"
    require_segment_map: bool = True

    table_name: str = "OscData"
    export_format: str = "csv"
    prompt_table_stem: str = "oscPrompt"
    null_table_stem: str = "oscNull"
    spectrum_figure_name: str = "Fig40_Reconstructed"
    baseline_figure_name: str = "Fig40_1_Reconstructed"

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> "AnalysisProfile":
        """Raise ValueError on inconsistent settings; return self for chaining."""
        errors = []
        if self.segment_last < self.segment_first:
            errors.append(f"segment range empty: [{self.segment_first}, {self.segment_last}]")
        if self.baseline_last < self.baseline_first:
            errors.append(f"baseline range empty: [{self.baseline_first}, {self.baseline_last}]")
        for name in ("prompt_schema", "null_schema"):
            if getattr(self, name) not in _SCHEMAS:
                errors.append(f"{name} must be one of {_SCHEMAS}, got {getattr(self, name)!r}")
        if self.n_baselines <= 0 or self.bins_per_baseline <= 0:
            errors.append("n_baselines and bins_per_baseline must be > 0")
        if not self.energy_max_mev > self.energy_min_mev:
            errors.append("energy_max_mev must exceed energy_min_mev")
        if self.hist_bins <= 0:
            errors.append("hist_bins must be > 0")
        if not self.hist_max_m > self.hist_min_m:
            errors.append("hist_max_m must exceed hist_min_m")
        if self.shape_policy not in _SHAPE_POLICIES:
            errors.append(f"shape_policy must be one of {_SHAPE_POLICIES}, got {self.shape_policy!r}")
        if self.missing_source_policy not in _MISSING_POLICIES:
            errors.append(
                f"missing_source_policy must be one of {_MISSING_POLICIES}, got {self.missing_source_policy!r}"
            )
        if self.export_format not in _EXPORT_FORMATS:
            errors.append(f"export_format must be one of {_EXPORT_FORMATS}, got {self.export_format!r}")
        if errors:
            raise ValueError("Invalid AnalysisProfile:\n" + "\n".join(f"- {e}" for e in errors))
        return self

    @property
    def segment_ids(self) -> range:
        return range(self.segment_first, self.segment_last + 1)

    @property
    def baseline_ids(self) -> range:
        return range(self.baseline_first, self.baseline_last + 1)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AnalysisProfile":
        """Reconstruct from a dict (e.g. loaded from JSON). Unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ValueError(f"Unknown AnalysisProfile keys: {unknown}")
        return cls(**dict(d))


def load_profile(path: str | Path) -> AnalysisProfile:
    """Load and validate a profile from a JSON file."""
    p = Path(path).expanduser()
    with open(p, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Profile file {p} must contain a JSON object.")
    return AnalysisProfile.from_dict(data).validate()


def save_profile(profile: AnalysisProfile, path: str | Path) -> Path:
    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(profile.to_dict(), f, indent=2, sort_keys=True)
    return p
