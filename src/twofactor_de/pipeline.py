"""
The two-factor differential-expression pipeline.

Stages, each run once and in order:

1. load the count table, deduplicate genes, drop annotation columns;
2. rename samples, build the sample table, round counts;
3. filter low-CPM genes, TMM-normalize, log-CPM, MDS, save the filter mask;
4. estimate dispersions, fit one QL GLM on the zero-intercept additive
   design and test each contrast;
5. keep genes passing the FDR and fold-change thresholds and write CSVs.

Any error is fatal; nothing is retried.

Usage:
    >>> from twofactor_de import PipelineConfig, run_pipeline
    >>> result = run_pipeline(PipelineConfig(counts_path="counts.txt", outdir="out"))
    >>> result.summary
"""

from __future__ import annotations
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple
import numpy as np
import pandas as pd

from .config import PipelineConfig
from .counts import load_count_matrix
from .design import sample_table, design_matrix, make_contrast
from .r_init import make_experiment, initialize_r
from .results import (
    filter_degs,
    summarize_degs,
    write_deg_table,
    write_filter_mask,
)


@dataclass
class PipelineResult:
    """Everything produced by :func:`run_pipeline`.

    Attributes:
        counts: Rounded counts for all genes (after deduplication).
        samples: Sample table.
        design: Design matrix used for the fit.
        filter_mask: Boolean Series over all genes, True = kept.
        norm_factors: Per-sample ``lib.size`` and ``norm.factors``.
        mds: MDS coordinates of the filtered log-CPM.
        dispersion: Dispersion estimates.
        model: The fitted QL GLM.
        tables: Full test result per contrast.
        degs: Genes passing FDR and fold-change thresholds per contrast.
        summary: DEG counts per contrast.
        outputs: Written file paths by artifact name.
    """
    counts: pd.DataFrame
    samples: pd.DataFrame
    design: pd.DataFrame
    filter_mask: pd.Series
    norm_factors: pd.DataFrame
    mds: Any
    dispersion: Any
    model: Any
    tables: Dict[str, pd.DataFrame]
    degs: Dict[str, pd.DataFrame]
    summary: pd.DataFrame
    outputs: Dict[str, Path] = field(default_factory=dict)


def load_inputs(config: PipelineConfig) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Stages 1 and 2: counts matrix and sample table."""
    counts = load_count_matrix(
        config.counts_path,
        config.sample_labels,
        id_column=config.id_column,
        annotation_columns=config.annotation_columns,
        sep=config.sep,
    )
    samples = sample_table(config.sample_labels)
    return counts, samples


def filter_and_normalize(
    counts: pd.DataFrame,
    samples: pd.DataFrame,
    config: PipelineConfig,
) -> Tuple[Any, pd.Series]:
    """Stage 3 up to normalization.

    Returns the R-initialized experiment of the kept genes, with library
    sizes recomputed after filtering, TMM factors and a ``logcpm`` assay,
    plus the filter mask over all genes.
    """
    from . import edger

    se = initialize_r(make_experiment(counts, samples))
    mask = edger.filter_by_cpm(
        se, min_cpm=config.min_cpm, min_samples=config.min_samples
    )
    mask = pd.Series(mask, index=counts.index, name="keep")
    if not mask.any():
        raise ValueError(
            f"No gene reaches {config.min_cpm} CPM in {config.min_samples} samples"
        )

    se_kept = initialize_r(make_experiment(counts.loc[mask.to_numpy()], samples))
    se_kept = edger.calc_norm_factors(se_kept, method=config.norm_method)
    se_kept = edger.cpm(se_kept, log=True, prior_count=config.prior_count)
    return se_kept, mask


def norm_factor_table(se: Any) -> pd.DataFrame:
    coldata = se.get_column_data()
    return pd.DataFrame(
        {
            "lib.size": np.asarray(coldata["lib.size"], dtype=float),
            "norm.factors": np.asarray(coldata["norm.factors"], dtype=float),
        },
        index=[str(x) for x in se.column_names],
    )


def fit_and_test(
    se: Any,
    design: pd.DataFrame,
    config: PipelineConfig,
) -> Tuple[Any, Any, Dict[str, pd.DataFrame]]:
    """Stage 4: dispersion, one QL GLM fit, one F-test per contrast."""
    from . import edger

    dispersion = edger.estimate_disp(se, design, robust=config.robust)
    model = edger.glm_ql_fit(se, design, dispersion=dispersion, robust=config.robust)

    tables = {}
    for name, (plus, minus) in config.contrasts.items():
        contrast = make_contrast(design, plus, minus)
        tables[name] = edger.glm_ql_ftest(model, contrast=contrast)
    return dispersion, model, tables


def run_pipeline(config: PipelineConfig) -> PipelineResult:
    """
    Run all five stages and write the output artifacts to ``config.outdir``.

    Written files: ``filter_mask.csv``, ``norm_factors.csv``,
    ``<contrast>_degs.csv`` per contrast, ``deg_summary.csv``,
    ``config.json`` and, when ``config.make_plots``, ``mds.png`` and
    ``<contrast>_volcano.png``.

    Raises:
        ValueError: For invalid settings or when no gene passes the filter.
        rpy2.rinterface_lib.embedded.RRuntimeError: For errors inside R.
    """
    from . import limma

    config.validate()
    outdir = Path(config.outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    outputs: Dict[str, Path] = {}

    print(f"[1/5] Loading counts from {config.counts_path}")
    counts, samples = load_inputs(config)
    print(f"      {counts.shape[0]} genes x {counts.shape[1]} samples")

    print("[2/5] Building design")
    design = design_matrix(samples, config.factors)
    print(f"      design columns: {', '.join(design.columns)}")

    print(f"[3/5] Filtering (CPM >= {config.min_cpm} in >= {config.min_samples} samples) and normalizing")
    se, mask = filter_and_normalize(counts, samples, config)
    print(f"      kept {int(mask.sum())} of {len(mask)} genes")
    outputs["filter_mask"] = write_filter_mask(
        mask.to_numpy(), mask.index, outdir / "filter_mask.csv", index_label=config.id_column
    )
    norm_factors = norm_factor_table(se)
    norm_factors.to_csv(outdir / "norm_factors.csv", index_label="sample")
    outputs["norm_factors"] = outdir / "norm_factors.csv"

    mds = limma.plot_mds(se, assay="logcpm", top=config.mds_top)

    print("[4/5] Estimating dispersion and fitting the QL GLM")
    dispersion, model, tables = fit_and_test(se, design, config)
    print(f"      common dispersion {dispersion.common:.4f} (BCV {dispersion.bcv:.3f})")

    print(f"[5/5] Filtering DEGs (FDR < {config.fdr_threshold}, fold change >= {config.min_fold_change})")
    degs = {
        name: filter_degs(table, config.fdr_threshold, config.min_fold_change)
        for name, table in tables.items()
    }
    summary = summarize_degs(tables, config.fdr_threshold, config.min_fold_change)
    for name, deg_table in degs.items():
        outputs[f"{name}_degs"] = write_deg_table(
            deg_table, outdir / f"{name}_degs.csv", index_label=config.id_column
        )
        row = summary.loc[name]
        print(
            f"      {name}: {row['n_significant']} significant, "
            f"{row['n_significant_fc']} after fold-change filter "
            f"({row['n_up']} up, {row['n_down']} down)"
        )
    summary.to_csv(outdir / "deg_summary.csv")
    outputs["deg_summary"] = outdir / "deg_summary.csv"

    with open(outdir / "config.json", "w", encoding="utf-8") as fh:
        json.dump(config.to_dict(), fh, indent=2)
    outputs["config"] = outdir / "config.json"

    if config.make_plots:
        outputs.update(_draw_figures(mds, samples, tables, config, outdir))

    return PipelineResult(
        counts=counts,
        samples=samples,
        design=design,
        filter_mask=mask,
        norm_factors=norm_factors,
        mds=mds,
        dispersion=dispersion,
        model=model,
        tables=tables,
        degs=degs,
        summary=summary,
        outputs=outputs,
    )


def _draw_figures(
    mds: Any,
    samples: pd.DataFrame,
    tables: Dict[str, pd.DataFrame],
    config: PipelineConfig,
    outdir: Path,
) -> Dict[str, Path]:
    import matplotlib.pyplot as plt
    from .plotting import mds_plot, volcano_plot

    written: Dict[str, Path] = {}
    fig = mds_plot(mds, samples, save_path=str(outdir / "mds.png"))
    plt.close(fig)
    written["mds"] = outdir / "mds.png"

    for name, table in tables.items():
        path = outdir / f"{name}_volcano.png"
        fig = volcano_plot(
            table,
            fdr_threshold=config.fdr_threshold,
            logfc_threshold=float(np.log2(config.min_fold_change)),
            title=f"{name.capitalize()} treatment effect",
            save_path=str(path),
        )
        plt.close(fig)
        written[f"{name}_volcano"] = path
    return written
