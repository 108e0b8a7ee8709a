"""
Significance filtering and export of differential-expression tables.

Tables are the DataFrames returned by :func:`twofactor_de.edger.glm_ql_ftest`:
indexed by gene identifier with columns ``logFC, logCPM, F, PValue, FDR``.
"""

from __future__ import annotations
import warnings
from pathlib import Path
from typing import Dict, Mapping, Sequence, Union
import numpy as np
import pandas as pd

RESULT_COLUMNS = ["logFC", "logCPM", "F", "PValue", "FDR"]


def _check_table(table: pd.DataFrame) -> None:
    missing = [c for c in RESULT_COLUMNS if c not in table.columns]
    if missing:
        raise KeyError(f"Result table lacks columns {missing}")


def _check_thresholds(fdr_threshold: float, min_fold_change: float) -> None:
    if not 0 < fdr_threshold <= 1:
        raise ValueError(f"fdr_threshold must be in (0, 1], got {fdr_threshold}")
    if min_fold_change < 1:
        raise ValueError(f"min_fold_change must be >= 1, got {min_fold_change}")


def significant_mask(table: pd.DataFrame, fdr_threshold: float = 0.05) -> pd.Series:
    """True for genes with ``FDR < fdr_threshold``."""
    _check_table(table)
    return table["FDR"] < fdr_threshold


def fold_change_mask(table: pd.DataFrame, min_fold_change: float = 2.0) -> pd.Series:
    """True for genes with ``|logFC| >= log2(min_fold_change)``."""
    _check_table(table)
    return table["logFC"].abs() >= np.log2(min_fold_change)


def filter_degs(
    table: pd.DataFrame,
    fdr_threshold: float = 0.05,
    min_fold_change: float = 2.0,
) -> pd.DataFrame:
    """
    Keep significant genes whose fold change is large enough.

    Args:
        table: Test result from glm_ql_ftest().
        fdr_threshold: Genes need ``FDR < fdr_threshold``. Default: 0.05.
        min_fold_change: Genes need ``|logFC| >= log2(min_fold_change)``.
            Use 1 to disable the fold-change filter. Default: 2.0.

    Returns:
        pd.DataFrame: The passing rows, sorted by ``PValue``.
    """
    _check_thresholds(fdr_threshold, min_fold_change)
    keep = significant_mask(table, fdr_threshold) & fold_change_mask(table, min_fold_change)
    return table.loc[keep, RESULT_COLUMNS].sort_values("PValue", kind="mergesort")


def count_degs(
    table: pd.DataFrame,
    fdr_threshold: float = 0.05,
    min_fold_change: float = 2.0,
) -> Dict[str, int]:
    """
    DEG counts before and after the fold-change filter.

    Returns:
        dict with ``n_tested``, ``n_significant`` (FDR only),
        ``n_significant_fc`` (FDR and fold change), ``n_up`` and ``n_down``
        (split of ``n_significant_fc`` by the sign of logFC).
    """
    _check_thresholds(fdr_threshold, min_fold_change)
    sig = significant_mask(table, fdr_threshold)
    both = sig & fold_change_mask(table, min_fold_change)
    return {
        "n_tested": int(len(table)),
        "n_significant": int(sig.sum()),
        "n_significant_fc": int(both.sum()),
        "n_up": int((both & (table["logFC"] > 0)).sum()),
        "n_down": int((both & (table["logFC"] < 0)).sum()),
    }


def summarize_degs(
    tables: Mapping[str, pd.DataFrame],
    fdr_threshold: float = 0.05,
    min_fold_change: float = 2.0,
) -> pd.DataFrame:
    """One row of :func:`count_degs` per contrast, indexed by contrast name."""
    rows = {}
    for name, table in tables.items():
        counts = count_degs(table, fdr_threshold, min_fold_change)
        if counts["n_significant_fc"] == 0:
            warnings.warn(
                f"Contrast '{name}' has no genes with FDR < {fdr_threshold} "
                f"and fold change >= {min_fold_change}",
                stacklevel=2,
            )
        rows[name] = counts
    summary = pd.DataFrame.from_dict(rows, orient="index")
    summary.index.name = "contrast"
    return summary


def write_deg_table(
    table: pd.DataFrame,
    path: Union[str, Path],
    index_label: str = "Geneid",
) -> Path:
    """Write a result table as CSV keyed by gene identifier."""
    _check_table(table)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    table[RESULT_COLUMNS].to_csv(path, index_label=index_label)
    return path


def write_filter_mask(
    mask: Union[np.ndarray, Sequence[bool]],
    gene_ids: Sequence[str],
    path: Union[str, Path],
    index_label: str = "Geneid",
) -> Path:
    """
    Serialize the gene filter mask as a two-column CSV (``Geneid``, ``keep``).

    Raises:
        ValueError: If mask and gene_ids differ in length.
    """
    mask = np.asarray(mask, dtype=bool)
    gene_ids = [str(g) for g in gene_ids]
    if mask.shape != (len(gene_ids),):
        raise ValueError(
            f"Mask has shape {mask.shape} but there are {len(gene_ids)} genes"
        )
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.Series(mask, index=pd.Index(gene_ids, name=index_label), name="keep").to_csv(path)
    return path


def read_filter_mask(path: Union[str, Path]) -> pd.Series:
    """
    Read a mask written by :func:`write_filter_mask` as a boolean Series.

    Gene identifiers come back verbatim as strings.

    Raises:
        ValueError: If the ``keep`` column holds anything but True/False.
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    keep = df["keep"].map({"True": True, "False": False})
    if keep.isna().any():
        bad = sorted(set(df.loc[keep.isna(), "keep"]))
        raise ValueError(f"Filter mask '{path}' has non-boolean keep values: {bad}")
    id_column = df.columns[0]
    return pd.Series(
        keep.astype(bool).to_numpy(),
        index=pd.Index(df[id_column], name=id_column),
        name="keep",
    )
