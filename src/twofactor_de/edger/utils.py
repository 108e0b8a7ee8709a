from functools import lru_cache
from typing import Any, Optional, Sequence
import numpy as np

from ..r_env import get_r_environment


@lru_cache(maxsize = 1)
def _prep_edger():
    """Lazily prepare the edgeR runtime.

    Returns:
        Tuple[Any, Any]: A tuple ``(r_env, edgeR_pkg)`` where ``r_env`` is the
        shared :class:`~twofactor_de.r_env.REnvironment` and ``edgeR_pkg`` is
        the imported R ``edgeR`` package.

    Notes:
        The result is cached (LRU) to avoid repeated imports.
    """
    r = get_r_environment()
    return r, r.package("edgeR")


def column_values(se: Any, name: str) -> Optional[np.ndarray]:
    """Return ``column_data[name]`` as a float array, or None if absent."""
    coldata = se.get_column_data()
    if coldata is None or name not in coldata.column_names:
        return None
    return np.asarray(coldata[name], dtype=float)


def effective_lib_sizes(se: Any, normalized: bool = True) -> Optional[np.ndarray]:
    """Library sizes stored by ``calc_norm_factors``, scaled by the norm factors.

    Returns None when ``calc_norm_factors`` has not been run, in which case
    edgeR falls back to the column sums of the counts.
    """
    lib_size = column_values(se, "lib.size")
    if lib_size is None:
        return None
    if normalized:
        norm_factors = column_values(se, "norm.factors")
        if norm_factors is not None:
            lib_size = lib_size * norm_factors
    return lib_size


def dge_list(se: Any, assay: str = "counts", group: Optional[Sequence[str]] = None) -> Any:
    """Build an R ``DGEList`` from an R-initialized assay.

    Library sizes and normalization factors from ``column_data`` are carried
    over when present.
    """
    from ..r_init import get_rmat

    r, pkg = _prep_edger()
    rmat = get_rmat(se, assay)

    kwargs = {}
    lib_size = column_values(se, "lib.size")
    if lib_size is not None:
        kwargs["lib.size"] = r.FloatVector(lib_size)
    norm_factors = column_values(se, "norm.factors")
    if norm_factors is not None:
        kwargs["norm.factors"] = r.FloatVector(norm_factors)
    if group is not None:
        kwargs["group"] = r.StrVector([str(g) for g in group])

    return pkg.DGEList(rmat, **kwargs)
