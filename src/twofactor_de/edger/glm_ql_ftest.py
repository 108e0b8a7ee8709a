"""
Run quasi-likelihood F-test using edgeR::glmQLFTest.

This module provides a functional interface to perform F-tests on
an EdgeRModel and return results as a pandas DataFrame.
"""

from __future__ import annotations
from typing import Optional, Sequence, Union
import numpy as np
import pandas as pd

from ..results import RESULT_COLUMNS
from .utils import _prep_edger
from .checks import check_edger_model, check_coef_or_contrast
from .glm_ql_fit import EdgeRModel


def _contrast_vector(
    contrast: Union[Sequence[float], pd.Series],
    design: Optional[pd.DataFrame],
) -> np.ndarray:
    """Align a contrast to the design columns and return it as floats."""
    if isinstance(contrast, pd.Series) and design is not None:
        unknown = [c for c in contrast.index if c not in design.columns]
        if unknown:
            raise KeyError(f"Contrast refers to unknown design columns: {unknown}")
        contrast = contrast.reindex(design.columns, fill_value=0.0)
    values = np.asarray(contrast, dtype=float)
    if design is not None and values.shape != (design.shape[1],):
        raise ValueError(
            f"Contrast has length {values.size}, design has {design.shape[1]} columns"
        )
    if not np.any(values):
        raise ValueError("Contrast vector is all zeros")
    return values


def glm_ql_ftest(
    model: EdgeRModel,
    coef: Optional[Union[str, int]] = None,
    contrast: Optional[Union[Sequence[float], pd.Series]] = None,
    poisson_bound: bool = True,
    adjust_method: str = "BH",
    sort_by: str = "none",
) -> pd.DataFrame:
    """
    Run quasi-likelihood F-test on a fitted EdgeRModel.

    Wraps ``edgeR::glmQLFTest`` followed by ``edgeR::topTags`` for all genes.

    Args:
        model: EdgeRModel from glm_ql_fit().
        coef: Coefficient name (str) or index (int, 1-based) to test.
        contrast: Contrast vector over the design columns, or a pandas
            Series indexed by design column names (alternative to coef).
            With neither, the last coefficient is tested.
        poisson_bound: Whether to apply Poisson bound. Default: True.
        adjust_method: Multiple testing adjustment method. Default: "BH".
        sort_by: "PValue", "logFC" or "none" (keep gene order). Default: "none".

    Returns:
        pd.DataFrame: Indexed by gene identifier with columns
            - logFC: log2 fold-change
            - logCPM: average log2 counts per million
            - F: F-statistic
            - PValue: raw p-value
            - FDR: adjusted p-value

    Raises:
        TypeError: If model is not an EdgeRModel.
        ValueError: If model.fit is None or both coef and contrast are given.

    Example:
        >>> results = edger.glm_ql_ftest(model, contrast=[-1, 1, 0])
        >>> sig_genes = results[results["FDR"] < 0.05]
    """
    # Validate inputs
    check_edger_model(model)
    check_coef_or_contrast(coef, contrast)

    r, pkg = _prep_edger()

    test_kwargs = {"poisson.bound": poisson_bound}
    if contrast is not None:
        test_kwargs["contrast"] = r.FloatVector(_contrast_vector(contrast, model.design))
    elif coef is not None:
        if isinstance(coef, int):
            test_kwargs["coef"] = r.IntVector([coef])
        else:
            test_kwargs["coef"] = r.StrVector([str(coef)])
    # neither: edgeR defaults to the last coefficient

    res = pkg.glmQLFTest(model.fit, **test_kwargs)

    res = pkg.topTags(
        res,
        n=r.ro.r("Inf"),
        **{"adjust.method": adjust_method, "sort.by": sort_by},
    )

    df = r.r2py_pandas(r.field(res, "table"))
    df.index = df.index.astype(str)

    missing = [c for c in RESULT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(
            f"Unexpected glmQLFTest result columns {list(df.columns)}; missing {missing}"
        )
    return df[RESULT_COLUMNS]
