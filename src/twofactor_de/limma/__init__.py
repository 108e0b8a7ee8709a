"""Limma: exploratory ordination of log-expression values.

Functional API:
    >>> import twofactor_de.limma as limma
    >>> mds = limma.plot_mds(se, assay="logcpm", top=500)
    >>> mds.coordinates.head()
"""

# Check/install limma R package on module import
from ..r_utils import ensure_r_dependencies
ensure_r_dependencies(["limma"])

from .plot_mds import plot_mds, MDSResult
from .utils import _limma

__all__ = [
    "plot_mds",
    "MDSResult",
    "_limma",
]
