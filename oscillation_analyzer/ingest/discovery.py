from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from oscillation_analyzer.models.catalog import DatasetCatalog
from oscillation_analyzer.models.profile import AnalysisProfile

logger = logging.getLogger(__name__)


SEGMENT_MAP_RELPATH = Path("PromptDataSet") / "1.1_Osc_SegmentMap.txt"

# Typical filenames:
#   PromptDataSet/1.4_Osc_Prompt<segment>.txt
#   NullDataSet/1.6_Osc_NullOscPred<baseline>.txt
_PROMPT_PAT = re.compile(r"^1\.4_Osc_Prompt(?P<idx>\d+)\.txt$")
_NULL_PAT = re.compile(r"^1\.6_Osc_NullOscPred(?P<idx>\d+)\.txt$")


def prompt_file_name(segment_id: int) -> str:
    return f"1.4_Osc_Prompt{int(segment_id)}.txt"


def null_file_name(baseline_id: int) -> str:
    return f"1.6_Osc_NullOscPred{int(baseline_id)}.txt"


def _scan(folder: Path, pat: "re.Pattern[str]") -> Dict[int, Path]:
    found: Dict[int, Path] = {}
    if not folder.is_dir():
        return found
    for p in sorted(folder.iterdir()):
        if not p.is_file():
            continue
        m = pat.match(p.name)
        if m:
            found[int(m.group("idx"))] = p
    return found


def _resolve(
    requested: List[int], found: Dict[int, Path], what: str, warnings: List[str]
) -> Tuple[Dict[int, Path], Tuple[int, ...]]:
    files: Dict[int, Path] = {}
    missing: List[int] = []
    for idx in requested:
        if idx in found:
            files[idx] = found[idx]
        else:
            missing.append(idx)
    if missing:
        warnings.append(f"missing {what} files for ids: {missing[:20]}" + (" ..." if len(missing) > 20 else ""))
    extras = sorted(set(found) - set(requested))
    if extras:
        warnings.append(f"ignored {what} files outside the requested range: {extras[:20]}")
    return files, tuple(missing)


@dataclass
class DatasetDiscovery:
    """
    Build a catalog for a working directory holding the segment map and the two
    per-segment / per-baseline file families.

    Requested ids come from the profile ranges, in ascending order. Files are never
    invented; missing ones are listed in the catalog.
    """
    profile: Optional[AnalysisProfile] = None

    def build_catalog(self, workdir: str | Path) -> DatasetCatalog:
        root = Path(workdir).expanduser().resolve()
        if not root.exists() or not root.is_dir():
            raise FileNotFoundError(f"Not a directory: {root}")

        profile = self.profile or AnalysisProfile()
        warnings: List[str] = []

        segment_ids = list(profile.segment_ids)
        baseline_ids = list(profile.baseline_ids)

        prompt_found = _scan(root / "PromptDataSet", _PROMPT_PAT)
        null_found = _scan(root / "NullDataSet", _NULL_PAT)

        prompt_files, missing_prompt = _resolve(segment_ids, prompt_found, "prompt", warnings)
        null_files, missing_null = _resolve(baseline_ids, null_found, "null-prediction", warnings)

        segment_map_path = root / SEGMENT_MAP_RELPATH
        if not segment_map_path.is_file():
            warnings.append(f"segment map not found: {SEGMENT_MAP_RELPATH}")

        for w in warnings:
            logger.warning("%s: %s", root.name, w)

        return DatasetCatalog(
            root_dir=root,
            segment_map_path=segment_map_path,
            segment_ids=segment_ids,
            baseline_ids=baseline_ids,
            prompt_files=prompt_files,
            null_files=null_files,
            missing_prompt=missing_prompt,
            missing_null=missing_null,
            warnings=tuple(warnings),
        )
