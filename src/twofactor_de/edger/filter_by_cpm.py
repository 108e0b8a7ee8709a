"""
Filter genes by a fixed counts-per-million threshold.

A gene is kept when its CPM reaches ``min_cpm`` in at least ``min_samples``
samples. CPM values come from edgeR::cpm; only the thresholding happens in
Python.
"""

from __future__ import annotations
from typing import Any
import numpy as np

from .utils import _prep_edger, effective_lib_sizes
from .checks import check_se, check_assay_exists, check_r_assay


def filter_by_cpm(
    se: Any,
    assay: str = "counts",
    min_cpm: float = 0.5,
    min_samples: int = 9,
    normalized_lib_sizes: bool = False,
) -> np.ndarray:
    """
    Compute a CPM-threshold filter mask.

    Does NOT modify the SE - use the mask to subset.

    Args:
        se: Input SummarizedExperiment with R-initialized count assay.
        assay: Name of the counts assay. Default: "counts".
        min_cpm: Minimum CPM a sample must reach. Default: 0.5.
        min_samples: Minimum number of samples reaching ``min_cpm``. Default: 9.
        normalized_lib_sizes: Use normalized library sizes if calc_norm_factors()
            has been run. Default: False (filtering precedes normalization).

    Returns:
        Boolean numpy array mask (True = keep gene).

    Raises:
        ValueError: If ``min_samples`` is not between 1 and the number of
            samples, or ``min_cpm`` is negative.
    """
    from ..r_init import get_rmat

    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)

    n_samples = se.shape[1]
    if not 1 <= min_samples <= n_samples:
        raise ValueError(
            f"min_samples must be between 1 and {n_samples}, got {min_samples}"
        )
    if min_cpm < 0:
        raise ValueError(f"min_cpm must be non-negative, got {min_cpm}")

    r, pkg = _prep_edger()
    rmat = get_rmat(se, assay)

    lib_size = effective_lib_sizes(se, normalized=normalized_lib_sizes)
    lib_size_r = r.ro.NULL if lib_size is None else r.FloatVector(lib_size)
    cpm_r = pkg.cpm(rmat, **{"lib.size": lib_size_r, "log": False})

    values = r.r2py_numpy(cpm_r)
    return (values >= min_cpm).sum(axis=1) >= min_samples
