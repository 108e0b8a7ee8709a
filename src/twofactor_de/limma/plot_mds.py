"""
Multidimensional scaling of samples using limma::plotMDS.

limma computes the leading-fold-change distances and the classical scaling;
only the coordinates come back to Python, the drawing itself is done with
matplotlib by :func:`twofactor_de.plotting.mds_plot`.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional
import numpy as np
import pandas as pd

from .utils import _limma
from ..edger.checks import check_se, check_assay_exists, check_r_assay


@dataclass
class MDSResult:
    """Sample coordinates from limma::plotMDS.

    Attributes:
        coordinates: DataFrame indexed by sample with columns ``dim1`` and ``dim2``.
        var_explained: Proportion of variance explained by each of the two
            plotted dimensions, or None for limma versions that do not report it.
        top: Number of top genes used for the distances.
        gene_selection: ``"pairwise"`` or ``"common"``.
    """
    coordinates: pd.DataFrame
    var_explained: Optional[np.ndarray] = None
    top: int = 500
    gene_selection: str = "pairwise"

    def axis_label(self, dim: int) -> str:
        """Axis label in limma's style, e.g. ``"Leading logFC dim 1 (42%)"``."""
        prefix = "Leading logFC dim" if self.gene_selection == "pairwise" else "Principal Component"
        label = f"{prefix} {dim}"
        if self.var_explained is not None:
            label += f" ({round(100 * float(self.var_explained[dim - 1]))}%)"
        return label


def plot_mds(
    se: Any,
    assay: str = "logcpm",
    top: int = 500,
    gene_selection: str = "pairwise",
    **kwargs
) -> MDSResult:
    """
    Compute MDS coordinates of the samples without drawing in R.

    Wraps ``limma::plotMDS(..., plot = FALSE)`` on an R-initialized
    log-expression assay (typically the ``logcpm`` assay from edger.cpm()).

    Args:
        se: SummarizedExperiment with an R-initialized log-expression assay.
        assay: Assay name. Default: "logcpm".
        top: Number of top genes used to compute distances. Default: 500.
        gene_selection: "pairwise" (leading fold-change) or "common"
            (principal coordinates). Default: "pairwise".
        **kwargs: Additional args forwarded to R function.

    Returns:
        MDSResult

    Raises:
        ValueError: If ``gene_selection`` is invalid or fewer than three
            samples are present.
    """
    from ..r_env import get_r_environment
    from ..r_init import get_rmat

    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)
    if gene_selection not in ("pairwise", "common"):
        raise ValueError(
            f"gene_selection must be 'pairwise' or 'common', got {gene_selection!r}"
        )
    if se.shape[1] < 3:
        raise ValueError("MDS needs at least 3 samples")

    r = get_r_environment()
    limma_pkg = _limma()
    rmat = get_rmat(se, assay)

    mds = limma_pkg.plotMDS(
        rmat,
        **{
            "top": top,
            "gene.selection": gene_selection,
            "plot": False,
        },
        **kwargs
    )

    coordinates = pd.DataFrame(
        {
            "dim1": np.asarray(r.field(mds, "x"), dtype=float),
            "dim2": np.asarray(r.field(mds, "y"), dtype=float),
        },
        index=[str(x) for x in se.column_names],
    )

    var_r = r.field(mds, "var.explained")
    var_explained = None
    if not r.ro.baseenv["is.null"](var_r)[0]:
        var_explained = np.asarray(var_r, dtype=float)[:2]

    return MDSResult(
        coordinates=coordinates,
        var_explained=var_explained,
        top=top,
        gene_selection=gene_selection,
    )
