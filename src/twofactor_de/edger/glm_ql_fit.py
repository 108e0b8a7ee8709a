"""
Fit quasi-likelihood GLM using edgeR::glmQLFit.

This module provides the EdgeRModel dataclass for storing fit results
and the glm_ql_fit function for fitting the model.
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Sequence, Union
from dataclasses import dataclass
import numpy as np
import pandas as pd

from ..r_env import pandas_to_r_matrix
from .utils import _prep_edger, dge_list
from .checks import check_se, check_assay_exists, check_r_assay, check_design, check_design_samples
from .estimate_disp import DispersionEstimate


@dataclass
class GlmQlFitConfig:
    """Configuration used for GLM QL fitting."""
    dispersion: Optional[Union[float, np.ndarray, str]] = None
    robust: bool = True
    assay: str = "counts"
    user_kwargs: Optional[Dict[str, Any]] = None


@dataclass
class EdgeRModel:
    """Container for edgeR GLM fit results.

    This dataclass stores the R fit object and associated metadata from
    glm_ql_fit. Use with glm_ql_ftest() for downstream analysis.

    Attributes:
        sample_names: Sample names (column names) from the input SE.
        feature_names: Feature names (row names) from the input SE.
        fit: R object from glmQLFit.
        fit_config: Configuration used for fitting.
        design: Design matrix used for fitting.
        coefficients: Fitted coefficients (genes x design columns).
        df_prior: Prior degrees of freedom of the QL dispersion shrinkage.
        var_post: Squeezed (posterior) QL dispersions per gene.
        metadata: Optional additional metadata.
    """
    sample_names: Optional[Sequence[str]] = None
    feature_names: Optional[Sequence[str]] = None
    fit: Optional[Any] = None
    fit_config: Optional[GlmQlFitConfig] = None
    design: Optional[pd.DataFrame] = None
    coefficients: Optional[pd.DataFrame] = None
    df_prior: Optional[np.ndarray] = None
    var_post: Optional[np.ndarray] = None
    metadata: Optional[Dict[str, Any]] = None

    def glm_ql_ftest(
        self,
        coef: Optional[Union[str, int]] = None,
        contrast: Optional[Union[Sequence[float], pd.Series]] = None,
        poisson_bound: bool = True,
        adjust_method: str = "BH",
    ) -> pd.DataFrame:
        """
        Run quasi-likelihood F-test on this fitted model.

        Convenience method that delegates to the glm_ql_ftest function.

        Example:
            >>> model = edger.glm_ql_fit(se, design)
            >>> results = model.glm_ql_ftest(contrast=[-1, 1, 0])
        """
        from .glm_ql_ftest import glm_ql_ftest as _glm_ql_ftest
        return _glm_ql_ftest(
            self,
            coef=coef,
            contrast=contrast,
            poisson_bound=poisson_bound,
            adjust_method=adjust_method,
        )


def glm_ql_fit(
    se: Any,
    design: pd.DataFrame,
    assay: str = "counts",
    dispersion: Optional[Union[DispersionEstimate, float, np.ndarray]] = None,
    robust: bool = True,
    **kwargs
) -> EdgeRModel:
    """
    Fit quasi-likelihood GLM using edgeR::glmQLFit.

    Returns an EdgeRModel containing the fit object for downstream testing
    with glm_ql_ftest().

    The assay must be R-initialized using initialize_r() first. Library sizes
    and normalization factors from calc_norm_factors() are used as offsets.

    Args:
        se: Input SummarizedExperiment with R-initialized count assay.
        design: Design matrix (samples x covariates) as pandas DataFrame.
        assay: Counts assay name. Default: "counts".
        dispersion: A DispersionEstimate from estimate_disp() (its trended
            dispersions are used), a fixed dispersion value or per-gene
            array, or None to let edgeR estimate it.
        robust: Robust empirical Bayes shrinkage of the QL dispersions.
            Default: True.
        **kwargs: Additional args forwarded to R function.

    Returns:
        EdgeRModel: Container with the fitted model.

    Raises:
        TypeError: If se lacks required attributes or design is not a DataFrame.
        KeyError: If the specified assay does not exist.
        ValueError: If design matrix rows don't match the samples.

    Example:
        >>> disp = edger.estimate_disp(se, design)
        >>> model = edger.glm_ql_fit(se, design, dispersion=disp)
        >>> results = edger.glm_ql_ftest(model, contrast=[-1, 1, 0])
    """
    # Validate inputs
    check_se(se)
    check_assay_exists(se, assay)
    check_r_assay(se, assay)
    check_design(design, se.shape[1])
    check_design_samples(design, se.column_names)

    r, pkg = _prep_edger()
    design_r = pandas_to_r_matrix(design)

    call_kwargs: Dict[str, Any] = {"design": design_r, "robust": robust}

    if isinstance(dispersion, DispersionEstimate):
        y = dispersion.dge
        dispersion_cfg: Any = "trended"
    else:
        y = dge_list(se, assay)
        dispersion_cfg = dispersion
        if isinstance(dispersion, (int, float)):
            call_kwargs["dispersion"] = r.FloatVector([float(dispersion)])
        elif dispersion is not None:
            disp_arr = np.asarray(dispersion, dtype=float)
            if disp_arr.shape != (se.shape[0],):
                raise ValueError(
                    f"Per-gene dispersion has shape {disp_arr.shape}, "
                    f"expected ({se.shape[0]},)"
                )
            call_kwargs["dispersion"] = r.FloatVector(disp_arr)

    call_kwargs.update(kwargs)
    fit_obj = pkg.glmQLFit(y, **call_kwargs)

    coefficients = pd.DataFrame(
        r.r2py_numpy(r.field(fit_obj, "coefficients")),
        index=list(se.row_names) if se.row_names is not None else None,
        columns=list(design.columns),
    )
    df_prior = np.atleast_1d(np.asarray(r.field(fit_obj, "df.prior"), dtype=float))

    # edgeR >= 4 names the squeezed dispersions s2.post, older releases var.post
    var_post = None
    for name in ("s2.post", "var.post"):
        value = r.field(fit_obj, name)
        if not r.ro.baseenv["is.null"](value)[0]:
            var_post = np.asarray(value, dtype=float)
            break

    config = GlmQlFitConfig(
        dispersion=dispersion_cfg,
        robust=robust,
        assay=assay,
        user_kwargs=kwargs if kwargs else None
    )

    return EdgeRModel(
        sample_names=se.column_names,
        feature_names=se.row_names,
        fit=fit_obj,
        fit_config=config,
        design=design,
        coefficients=coefficients,
        df_prior=df_prior,
        var_post=var_post,
    )
