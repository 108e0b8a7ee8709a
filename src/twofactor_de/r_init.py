"""
Count-container construction and R initialization.

The pipeline keeps its counts in a BiocPy ``SummarizedExperiment``. Before
any edgeR/limma call the counts assay is converted to an R-backed
:class:`RMatrixAdapter` with :func:`initialize_r`.

Usage:
    >>> from twofactor_de import make_experiment, initialize_r
    >>> se = make_experiment(counts, samples)
    >>> se = initialize_r(se, assay="counts")
"""

from __future__ import annotations
from typing import Any, TypeVar
import numpy as np
import pandas as pd

from .rmatrixadapter import RMatrixAdapter

# Type variable for SummarizedExperiment variants
SE = TypeVar("SE")


def make_experiment(counts: pd.DataFrame, samples: pd.DataFrame) -> Any:
    """
    Build a SummarizedExperiment from a counts table and a sample table.

    Args:
        counts: Genes x samples integer counts, indexed by gene identifier.
        samples: Sample annotations indexed by sample label, in the same
            order as the columns of ``counts``.

    Returns:
        SummarizedExperiment with a NumPy ``counts`` assay and the sample
        table as ``column_data``.

    Raises:
        ValueError: If the sample order of ``counts`` and ``samples`` differ.
    """
    from summarizedexperiment import SummarizedExperiment
    from biocframe import BiocFrame

    sample_names = [str(x) for x in counts.columns]
    if sample_names != [str(x) for x in samples.index]:
        raise ValueError(
            f"Count columns {sample_names} do not match sample table "
            f"index {list(samples.index)}"
        )

    columns = {}
    for col in samples.columns:
        values = samples[col]
        # BiocFrame stores plain lists; categorical levels become strings
        if isinstance(values.dtype, pd.CategoricalDtype):
            values = values.astype(str)
        columns[col] = values.tolist()

    return SummarizedExperiment(
        assays={"counts": counts.to_numpy(dtype=float)},
        row_names=[str(x) for x in counts.index],
        column_names=sample_names,
        column_data=BiocFrame(columns, row_names=sample_names),
    )


def initialize_r(
    se: SE,
    assay: str = "counts",
    in_place: bool = False,
) -> SE:
    """
    Initialize R backing for a SummarizedExperiment assay.

    Converts the specified assay to an RMatrixAdapter carrying the row and
    column names as R dimnames. This must be called before using the
    edgeR/limma functions on the SummarizedExperiment.

    Args:
        se: Input SummarizedExperiment (any variant).
        assay: Name of the assay to convert. Default: "counts".
        in_place: If True, modify se in place. If False, return a new SE.

    Returns:
        The same SE type with the assay converted to RMatrixAdapter.

    Raises:
        KeyError: If the specified assay does not exist.
    """
    from .r_env import get_r_environment, numpy_to_r_matrix

    if assay not in se.assay_names:
        raise KeyError(f"Assay '{assay}' not found. Available: {list(se.assay_names)}")

    arr = se.assays[assay]

    # If already an RMatrixAdapter, return as-is
    if isinstance(arr, RMatrixAdapter):
        return se

    rownames = list(se.row_names) if se.row_names is not None else None
    colnames = list(se.column_names) if se.column_names is not None else None
    rmat = numpy_to_r_matrix(np.asarray(arr), rownames=rownames, colnames=colnames)

    new_assays = dict(se.assays)
    new_assays[assay] = RMatrixAdapter(rmat, get_r_environment())

    output = se._define_output(in_place=in_place)
    output._assays = new_assays

    return output


def check_r_initialized(se: Any, assay: str) -> None:
    """
    Check that an assay is R-initialized (is an RMatrixAdapter).

    Raises:
        KeyError: If the assay does not exist.
        TypeError: If the assay is not an RMatrixAdapter.
    """
    if assay not in se.assay_names:
        raise KeyError(f"Assay '{assay}' not found. Available: {list(se.assay_names)}")

    arr = se.assays[assay]
    if not isinstance(arr, RMatrixAdapter):
        raise TypeError(
            f"Assay '{assay}' is not R-initialized. "
            f"Call initialize_r(se, assay='{assay}') first."
        )


def is_r_initialized(se: Any, assay: str) -> bool:
    """Check if an assay is R-initialized (is an RMatrixAdapter)."""
    if assay not in se.assay_names:
        return False
    return isinstance(se.assays[assay], RMatrixAdapter)


def get_rmat(se: Any, assay: str) -> Any:
    """
    Get the underlying R matrix from an R-initialized assay.

    Raises:
        TypeError: If the assay is not R-initialized.
    """
    check_r_initialized(se, assay)
    adapter: RMatrixAdapter = se.assays[assay]
    return adapter.rmat
