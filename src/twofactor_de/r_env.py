"""
Lazily initialized rpy2 environment shared by the edgeR and limma wrappers.

All rpy2 imports happen on first use so that the R-free parts of the package
(count loading, design construction, result filtering, plotting) import
without an R installation.

Usage:
    >>> from twofactor_de.r_env import get_r_environment
    >>> r = get_r_environment()
    >>> edger_pkg = r.importr("edgeR")
"""

from __future__ import annotations
from functools import lru_cache
from typing import Any, Optional, Sequence
import numpy as np
import pandas as pd


class REnvironment:
    """Holds the rpy2 components used throughout the package.

    Only one instance exists per process; it is created by
    :func:`get_r_environment` and populated on construction.

    Attributes:
        ro: ``rpy2.robjects``.
        importr: ``rpy2.robjects.packages.importr``.
        numpy2ri: ``rpy2.robjects.numpy2ri`` module.
        pandas2ri: ``rpy2.robjects.pandas2ri`` module.
        default_converter: rpy2 default converter.
        localconverter: Context manager factory for scoped conversion.
        get_conversion: Returns the active conversion object.
        RRuntimeError: Exception raised for errors inside R.
    """

    def __init__(self) -> None:
        import rpy2.robjects as ro
        from rpy2.robjects.packages import importr
        from rpy2.robjects import numpy2ri, pandas2ri, default_converter
        from rpy2.robjects.conversion import localconverter, get_conversion
        from rpy2.robjects.vectors import IntVector, FloatVector, StrVector, BoolVector
        from rpy2.rinterface_lib.embedded import RRuntimeError

        self.ro = ro
        self.importr = importr
        self.numpy2ri = numpy2ri
        self.pandas2ri = pandas2ri
        self.default_converter = default_converter
        self.localconverter = localconverter
        self.get_conversion = get_conversion
        self.IntVector = IntVector
        self.FloatVector = FloatVector
        self.StrVector = StrVector
        self.BoolVector = BoolVector
        self.RRuntimeError = RRuntimeError
        self._packages: dict = {}

    def package(self, name: str) -> Any:
        """Import an R package once and cache the handle."""
        if name not in self._packages:
            self._packages[name] = self.importr(name)
        return self._packages[name]

    # ------------------------------------------------------------------
    # Conversion helpers
    # ------------------------------------------------------------------

    def py2r_numpy(self, arr: np.ndarray) -> Any:
        """Convert a NumPy array (1D or 2D) to an R vector/matrix."""
        with self.localconverter(self.default_converter + self.numpy2ri.converter):
            return self.get_conversion().py2rpy(arr)

    def r2py_numpy(self, sexp: Any) -> np.ndarray:
        """Convert an R numeric vector or matrix to a NumPy array."""
        with self.localconverter(self.default_converter + self.numpy2ri.converter):
            return np.asarray(self.get_conversion().rpy2py(sexp))

    def r2py_pandas(self, sexp: Any) -> pd.DataFrame:
        """Convert an R ``data.frame`` to a pandas DataFrame."""
        with self.localconverter(self.default_converter + self.pandas2ri.converter):
            return self.get_conversion().rpy2py(sexp)

    def field(self, obj: Any, name: str) -> Any:
        """Return ``obj$name`` for an R list-like object."""
        return self.ro.baseenv["$"](obj, name)


@lru_cache(maxsize=1)
def get_r_environment() -> REnvironment:
    """Return the process-wide :class:`REnvironment`, creating it on first call."""
    return REnvironment()


def r_dim(rmat: Any) -> tuple[int, ...]:
    """Dimensions of an R matrix as a tuple of ints."""
    r = get_r_environment()
    return tuple(int(x) for x in r.ro.baseenv["dim"](rmat))


def set_rownames(rmat: Any, names: Sequence[str]) -> Any:
    r = get_r_environment()
    return r.ro.baseenv["rownames<-"](rmat, r.StrVector([str(x) for x in names]))


def set_colnames(rmat: Any, names: Sequence[str]) -> Any:
    r = get_r_environment()
    return r.ro.baseenv["colnames<-"](rmat, r.StrVector([str(x) for x in names]))


def numpy_to_r_matrix(
    mat: Any,
    rownames: Optional[Sequence[str]] = None,
    colnames: Optional[Sequence[str]] = None,
) -> Any:
    """Convert a 2D array to an R double matrix, optionally with dimnames."""
    r = get_r_environment()
    arr = np.asarray(mat, dtype=float)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 2D array, got {arr.ndim} dimensions")
    rmat = r.py2r_numpy(arr)
    if rownames is not None:
        rmat = set_rownames(rmat, rownames)
    if colnames is not None:
        rmat = set_colnames(rmat, colnames)
    return rmat


def pandas_to_r_matrix(df: pd.DataFrame) -> Any:
    """Convert a DataFrame to an R matrix keeping index and columns as dimnames."""
    return numpy_to_r_matrix(
        df.to_numpy(dtype=float),
        rownames=[str(x) for x in df.index],
        colnames=[str(x) for x in df.columns],
    )
