"""
TMM (or other) normalization factors via edgeR::calcNormFactors.

The factors are stored next to the library sizes they were computed for:
``column_data["lib.size"]`` holds the column sums of the counts assay at the
time of the call and ``column_data["norm.factors"]`` the scaling factors.
Downstream wrappers (cpm, estimate_disp, glm_ql_fit) use
``lib.size * norm.factors`` as the effective library size, so this must run
on the already-filtered counts.
"""

from __future__ import annotations
from typing import Any, Optional, TypeVar
import numpy as np

from .utils import _prep_edger
from .checks import check_se, check_assay_exists, check_r_assay

SE = TypeVar("SE")

NORM_METHODS = ("TMM", "TMMwsp", "RLE", "upperquartile", "none")


def calc_norm_factors(
    se: SE,
    assay: str = "counts",
    method: str = "TMM",
    ref_column: Optional[int] = None,
    logratio_trim: float = 0.3,
    sum_trim: float = 0.05,
    in_place: bool = False,
    **kwargs: Any
) -> SE:
    """
    Store library sizes and normalization factors in ``column_data``.

    Args:
        se: Count experiment with an R-initialized ``assay``.
        assay: Counts assay. Default: "counts".
        method: One of ``NORM_METHODS``. Default: "TMM".
        ref_column: 0-based reference sample for TMM, or None to let edgeR
            pick the sample closest to the mean upper quartile.
        logratio_trim: Fraction trimmed from each end of the M values (TMM).
        sum_trim: Fraction trimmed from each end of the A values (TMM).
        in_place: Modify ``se`` instead of returning a copy. Default: False.
        **kwargs: Forwarded to ``edgeR::calcNormFactors`` under their R names.

    Returns:
        The experiment with ``lib.size`` and ``norm.factors`` columns.

    Raises:
        ValueError: For an unknown method or an out-of-range ``ref_column``.

    Example:
        >>> se = edger.calc_norm_factors(initialize_r(se))
        >>> se.get_column_data()["norm.factors"]
    """
    from ..r_init import get_rmat

    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)
    if method not in NORM_METHODS:
        raise ValueError(f"method must be one of {NORM_METHODS}, got {method!r}")
    n_samples = se.shape[1]
    if ref_column is not None and not 0 <= ref_column < n_samples:
        raise ValueError(f"ref_column must be in [0, {n_samples}), got {ref_column}")

    r, pkg = _prep_edger()
    rmat = get_rmat(se, assay)

    r_factors = pkg.calcNormFactors(
        rmat,
        method=method,
        # R is 1-based
        refColumn=r.ro.NULL if ref_column is None else ref_column + 1,
        logratioTrim=logratio_trim,
        sumTrim=sum_trim,
        **kwargs
    )

    norm_factors = np.asarray(r_factors, dtype=float)
    lib_size = np.asarray(r.ro.baseenv["colSums"](rmat), dtype=float)

    output = se._define_output(in_place=in_place)
    coldata = output.get_column_data()
    coldata = coldata.set_column("lib.size", lib_size)
    coldata = coldata.set_column("norm.factors", norm_factors)
    return output.set_column_data(coldata, in_place=True)
