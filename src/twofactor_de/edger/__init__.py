"""EdgeR: Analysis of Differential Expression in Genomic Data.

This module provides Python wrappers for the R edgeR package, enabling
differential expression analysis with proper R-backing via rpy2.

Functional API:
    >>> import twofactor_de.edger as edger
    >>> se = edger.calc_norm_factors(se, method="TMM")
    >>> mask = edger.filter_by_cpm(se, min_cpm=0.5, min_samples=9)
    >>> disp = edger.estimate_disp(se, design)
    >>> model = edger.glm_ql_fit(se, design, dispersion=disp)
    >>> results = edger.glm_ql_ftest(model, contrast=[-1, 1, 0])
"""

# Check/install edgeR R package on module import
from ..r_utils import ensure_r_dependencies
ensure_r_dependencies(["edgeR"])

# Functional API exports
from .calc_norm_factors import calc_norm_factors
from .cpm import cpm
from .filter_by_cpm import filter_by_cpm
from .filter_by_expr import filter_by_expr
from .estimate_disp import estimate_disp, DispersionEstimate
from .glm_ql_fit import glm_ql_fit, EdgeRModel, GlmQlFitConfig
from .glm_ql_ftest import glm_ql_ftest, RESULT_COLUMNS
from .utils import _prep_edger, dge_list

__all__ = [
    # Functional API
    "calc_norm_factors",
    "cpm",
    "filter_by_cpm",
    "filter_by_expr",
    "estimate_disp",
    "glm_ql_fit",
    "glm_ql_ftest",
    # Model classes
    "DispersionEstimate",
    "EdgeRModel",
    "GlmQlFitConfig",
    "RESULT_COLUMNS",
    # Utilities
    "_prep_edger",
    "dge_list",
]
