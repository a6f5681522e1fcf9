"""
Command-line entry point for the oscillation pipeline.

Examples
--------
$ python -m oscillation_analyzer.scripts.run_analysis --workdir data --out results
$ oscillation-analyze --workdir data --out results --profile profile.json --no-plots
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import matplotlib

from oscillation_analyzer.errors import OscillationAnalysisError
from oscillation_analyzer.models.profile import AnalysisProfile, load_profile
from oscillation_analyzer.util.logging import configure_logging

logger = logging.getLogger("oscillation_analyzer.scripts.run_analysis")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="oscillation-analyze",
        description="Build the per-baseline null spectrum and the IBD-vs-baseline histogram.",
    )
    ap.add_argument("--workdir", default=".", help="Directory holding PromptDataSet/ and NullDataSet/")
    ap.add_argument("--out", default=None, help="Output directory for tables and figures (omit to skip export)")
    ap.add_argument("--profile", default=None, help="JSON file with AnalysisProfile overrides")
    ap.add_argument("--no-plots", action="store_true", help="Write tables only")
    ap.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING, ERROR")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    matplotlib.use("Agg")

    from oscillation_analyzer.analysis.pipeline import OscillationPipeline

    try:
        configure_logging(args.log_level)
        profile = load_profile(args.profile) if args.profile else AnalysisProfile()
        result = OscillationPipeline(profile).run(args.workdir, out_dir=args.out, render=not args.no_plots)
    except (OscillationAnalysisError, FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        return 1

    print(result.report.summary())
    for name, path in sorted(result.outputs.items()):
        print(f"{name}: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
