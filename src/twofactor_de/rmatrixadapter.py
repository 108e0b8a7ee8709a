"""
RMatrixAdapter: a thin numpy-compatible wrapper around R matrices.

Assays converted with :func:`twofactor_de.initialize_r` are stored as
adapters so the edgeR/limma wrappers can pass the R matrix straight through
without re-converting, while ``np.asarray(adapter)`` still works for the
Python side.
"""

from __future__ import annotations
from typing import Any, Optional, Sequence, Union
import numpy as np
from numpy.typing import NDArray

from .r_env import REnvironment, get_r_environment, r_dim

IndexLike = Union[
    slice,
    int,
    Sequence[int],
    Sequence[bool],
    NDArray[Any],
]


def _to_r_index(idx: IndexLike, n: int, r: REnvironment) -> Any:
    """Convert a Python index to an R index (1-based integer or logical)."""
    if isinstance(idx, slice):
        start, stop, step = idx.indices(n)
        return r.IntVector(list(range(start + 1, stop + 1, step)))

    if isinstance(idx, (list, tuple, np.ndarray)):
        idx_arr = np.asarray(idx)
        if idx_arr.dtype == bool:
            if len(idx_arr) != n:
                raise IndexError(
                    f"Boolean index has length {len(idx_arr)}, expected {n}"
                )
            return r.BoolVector(idx_arr.tolist())
        idx_arr = np.where(idx_arr < 0, idx_arr + n, idx_arr)
        return r.IntVector((idx_arr + 1).tolist())

    if isinstance(idx, (int, np.integer)):
        idx = int(idx)
        if idx < 0:
            idx = n + idx
        return r.IntVector([idx + 1])

    raise TypeError(f"Unsupported index type: {type(idx).__name__}")


class RMatrixAdapter:
    """
    Wrapper around an rpy2 R matrix that keeps the data in R.

    * ``shape`` is read from R ``dim`` without conversion.
    * ``__getitem__`` subsets **in R** (``drop = FALSE``) and returns another
      adapter.
    * ``to_numpy()`` / ``np.asarray(adapter)`` convert explicitly.

    Attributes:
        _rmat: The underlying rpy2 SEXP matrix.
        _shape: Tuple ``(n_rows, n_cols)``.
        _r: The rpy2 environment used for conversions.

    Example:
        >>> adapter = RMatrixAdapter(r_matrix)
        >>> adapter.shape
        (100, 12)
        >>> adapter[:10, :]
        <RMatrixAdapter (10, 12)>
    """

    __slots__ = ("_rmat", "_shape", "_r")

    # Tell numpy that we implement the array interface
    __array_priority__ = 10.0

    def __init__(self, rmat: Any, r_env: Optional[REnvironment] = None) -> None:
        self._rmat = rmat
        self._r = r_env if r_env is not None else get_r_environment()
        dims = r_dim(rmat)
        if len(dims) != 2:
            raise ValueError(f"Expected an R matrix, got dim of length {len(dims)}")
        self._shape = (dims[0], dims[1])

    @property
    def rmat(self) -> Any:
        """The underlying R matrix object (read-only)."""
        return self._rmat

    @property
    def shape(self) -> tuple[int, int]:
        return self._shape

    @property
    def ndim(self) -> int:
        return 2

    @property
    def dtype(self) -> np.dtype:
        return self.to_numpy().dtype

    @property
    def row_names(self) -> Optional[list]:
        """R row names, or None if unset."""
        names = self._r.ro.baseenv["rownames"](self._rmat)
        if self._r.ro.baseenv["is.null"](names)[0]:
            return None
        return [str(x) for x in names]

    @property
    def column_names(self) -> Optional[list]:
        """R column names, or None if unset."""
        names = self._r.ro.baseenv["colnames"](self._rmat)
        if self._r.ro.baseenv["is.null"](names)[0]:
            return None
        return [str(x) for x in names]

    def to_numpy(self) -> NDArray[Any]:
        """Convert the R matrix to a dense NumPy array."""
        return self._r.r2py_numpy(self._rmat)

    def __array__(self, dtype: Any = None, copy: Any = None) -> NDArray[Any]:
        arr = self.to_numpy()
        if dtype is not None:
            arr = arr.astype(dtype, copy=False)
        return arr

    def __getitem__(self, key: Union[IndexLike, tuple]) -> "RMatrixAdapter":
        if isinstance(key, tuple):
            if len(key) != 2:
                raise IndexError("Use 2D indexing: [rows, cols].")
            rows, cols = key
        else:
            rows, cols = key, slice(None)

        ridx = _to_r_index(rows, self._shape[0], self._r)
        cidx = _to_r_index(cols, self._shape[1], self._r)
        bracket = self._r.ro.baseenv["["]
        # drop=FALSE keeps single rows/columns as matrices
        out = bracket(self._rmat, ridx, cidx, drop=False)
        return RMatrixAdapter(out, self._r)

    def __len__(self) -> int:
        return self._shape[0]

    def __repr__(self) -> str:
        return f"<RMatrixAdapter {self._shape}>"
