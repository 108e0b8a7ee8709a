"""Command-line entry point: ``twofactor-de`` / ``python -m twofactor_de``."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from .config import PipelineConfig, load_config


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="twofactor-de",
        description=(
            "Two-factor (maternal x developmental treatment) edgeR QL "
            "differential expression on a featureCounts table."
        ),
    )
    p.add_argument("--config", help="JSON config file; command-line options override it")
    p.add_argument("--counts", dest="counts_path", help="featureCounts-style count table")
    p.add_argument("--outdir", help="Output directory (default: results)")
    p.add_argument("--sep", help="Field separator (default: by file extension)")
    p.add_argument("--min-cpm", dest="min_cpm", type=float, help="CPM filter threshold (default: 0.5)")
    p.add_argument("--min-samples", dest="min_samples", type=int,
                   help="Samples that must reach --min-cpm (default: 9)")
    p.add_argument("--fdr", dest="fdr_threshold", type=float, help="FDR threshold (default: 0.05)")
    p.add_argument("--min-fold-change", dest="min_fold_change", type=float,
                   help="Minimum absolute fold change (default: 2)")
    p.add_argument("--no-plots", dest="make_plots", action="store_false", default=None,
                   help="Skip the MDS and volcano figures")
    return p


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    overrides = {k: v for k, v in vars(args).items() if k != "config" and v is not None}
    if args.config:
        return load_config(args.config, **overrides)
    return PipelineConfig(**overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    if config.make_plots:
        # figures go straight to files; no display is needed
        import matplotlib
        matplotlib.use("Agg")

    from .pipeline import run_pipeline
    result = run_pipeline(config)
    print(result.summary.to_string())
    return 0
