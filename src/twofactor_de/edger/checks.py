"""
Argument validation shared by the edgeR wrappers.

Every check raises a built-in exception before anything is sent to R:
``TypeError`` for the wrong kind of object, ``KeyError`` for a missing assay
and ``ValueError`` for a design or test request that cannot match the counts.
"""

from __future__ import annotations
from typing import Any, Optional, Sequence
import numpy as np
import pandas as pd


def check_se(se: Any, name: str = "se") -> None:
    """Require a count experiment as built by ``make_experiment``."""
    for attr in ("assays", "assay_names", "get_column_data"):
        if not hasattr(se, attr):
            raise TypeError(
                f"Expected `{name}` to be a SummarizedExperiment of counts, "
                f"got {type(se).__name__} which lacks '{attr}'"
            )


def check_r_assay(se: Any, assay: str) -> None:
    """Require ``assay`` to have been passed through ``initialize_r``.

    Raises:
        KeyError: If the assay is missing.
        TypeError: If the assay still holds a NumPy array.
    """
    from ..r_init import check_r_initialized
    check_r_initialized(se, assay)


def check_assay_exists(se: Any, assay: str) -> None:
    if assay not in se.assay_names:
        raise KeyError(
            f"Assay '{assay}' not found. Available assays: {list(se.assay_names)}"
        )


def check_design(design: Any, n_samples: Optional[int] = None) -> None:
    """Require a numeric, finite design DataFrame with one row per sample."""
    if not isinstance(design, pd.DataFrame):
        raise TypeError(
            f"Expected `design` to be a pandas DataFrame, got {type(design).__name__}"
        )
    if n_samples is not None and len(design) != n_samples:
        raise ValueError(
            f"Design matrix has {len(design)} rows for {n_samples} samples"
        )
    try:
        values = design.to_numpy(dtype=float)
    except ValueError as err:
        raise ValueError("Design matrix contains non-numeric values") from err
    if not np.isfinite(values).all():
        raise ValueError("Design matrix contains missing or infinite values")


def check_design_samples(design: pd.DataFrame, sample_names: Optional[Sequence[str]]) -> None:
    """Design rows must be the sample labels, in column order of the counts."""
    if sample_names is None:
        return
    if [str(x) for x in design.index] != [str(x) for x in sample_names]:
        raise ValueError(
            f"Design rows {list(design.index)} do not match samples {list(sample_names)}"
        )


def check_edger_model(model: Any) -> None:
    from .glm_ql_fit import EdgeRModel
    if not isinstance(model, EdgeRModel):
        raise TypeError(f"Expected an EdgeRModel, got {type(model).__name__}")
    if model.fit is None:
        raise ValueError("EdgeRModel has no glmQLFit result; run glm_ql_fit() first")


def check_coef_or_contrast(coef: Optional[Any], contrast: Optional[Sequence]) -> None:
    """A QL F-test takes a coefficient or a contrast, never both."""
    if coef is not None and contrast is not None:
        raise ValueError("Specify either `coef` or `contrast`, not both")
