from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class DatasetCatalog:
    """
    Filesystem-independent catalog of the inputs found in one working directory.

    Notes
    - prompt_files is keyed by segment id, null_files by baseline index.
    - segment_ids / baseline_ids keep the request order; that order drives the
      flat concatenation and therefore the positional blocking downstream.
    - Missing files are listed, never invented.
    """
    root_dir: Path
    segment_map_path: Path
    segment_ids: List[int]
    baseline_ids: List[int]
    prompt_files: Dict[int, Path]
    null_files: Dict[int, Path]
    missing_prompt: Tuple[int, ...] = ()
    missing_null: Tuple[int, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def has_segment_map(self) -> bool:
        return self.segment_map_path.is_file()

    def get_prompt_file(self, segment_id: int) -> Path:
        key = int(segment_id)
        if key not in self.prompt_files:
            raise FileNotFoundError(f"No prompt file for segment {key}.")
        return self.prompt_files[key]

    def get_null_file(self, baseline_id: int) -> Path:
        key = int(baseline_id)
        if key not in self.null_files:
            raise FileNotFoundError(f"No null-prediction file for baseline {key}.")
        return self.null_files[key]
