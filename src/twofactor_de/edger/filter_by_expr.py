"""
Filter genes by expression using edgeR::filterByExpr.

This module provides a functional interface to compute an expression filter
mask for genes in a SummarizedExperiment.
"""

from __future__ import annotations
from typing import Any, Optional, Sequence
import numpy as np
import pandas as pd

from ..r_env import pandas_to_r_matrix
from .utils import _prep_edger, effective_lib_sizes
from .checks import check_se, check_assay_exists, check_r_assay


def filter_by_expr(
    se: Any,
    assay: str = "counts",
    group: Optional[Sequence[str]] = None,
    design: Optional[pd.DataFrame] = None,
    min_count: float = 10,
    min_total_count: float = 15,
    large_n: int = 10,
    min_prop: float = 0.7,
    **kwargs
) -> np.ndarray:
    """
    Compute expression filter mask using edgeR's filterByExpr.

    An alternative to :func:`filter_by_cpm` whose CPM cutoff adapts to the
    library sizes. Returns a boolean mask; does NOT modify the SE.

    Args:
        se: Input SummarizedExperiment with R-initialized count assay.
        assay: Name of the counts assay. Default: "counts".
        group: Optional group factor for filtering.
        design: Optional design matrix as pandas DataFrame.
        min_count: Minimum count required in at least some samples. Default: 10.
        min_total_count: Minimum total count across all samples. Default: 15.
        large_n: Number of samples per group that is considered "large". Default: 10.
        min_prop: Minimum proportion of samples in the smallest group. Default: 0.7.
        **kwargs: Additional args forwarded to R function.

    Returns:
        Boolean numpy array mask (True = keep gene).

    Example:
        >>> mask = edger.filter_by_expr(se, design=design)
    """
    from ..r_init import get_rmat

    # Validate inputs
    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)

    r, pkg = _prep_edger()
    rmat = get_rmat(se, assay)

    # Convert Python args to R
    group_r = r.StrVector([str(g) for g in group]) if group is not None else r.ro.NULL
    design_r = pandas_to_r_matrix(design) if design is not None else r.ro.NULL
    lib_size = effective_lib_sizes(se, normalized=False)
    lib_size_r = r.ro.NULL if lib_size is None else r.FloatVector(lib_size)

    mask_r = pkg.filterByExpr(
        rmat,
        **{
            "group": group_r,
            "design": design_r,
            "lib.size": lib_size_r,
            "min.count": min_count,
            "min.total.count": min_total_count,
            "large.n": large_n,
            "min.prop": min_prop,
        },
        **kwargs
    )

    return np.asarray(mask_r, dtype=bool)
