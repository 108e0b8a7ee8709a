"""twofactor_de: edgeR quasi-likelihood DE for a 2x2 factorial RNA-seq design.

The count handling, design and result modules are plain pandas; the edgeR
and limma wrappers are loaded lazily so that no R dependency check happens
until they are needed.

Usage:
    >>> from twofactor_de import PipelineConfig, run_pipeline
    >>> result = run_pipeline(PipelineConfig(counts_path="counts.txt"))
    >>>
    >>> import twofactor_de.edger  # NOW edgeR is checked/installed
"""

from __future__ import annotations

import importlib

# Core exports that don't require R
from .config import PipelineConfig, load_config
from .counts import load_count_matrix
from .design import (
    SAMPLE_LABELS,
    DEFAULT_CONTRASTS,
    sample_table,
    design_matrix,
    make_contrast,
)
from .results import (
    filter_degs,
    count_degs,
    summarize_degs,
    write_deg_table,
    write_filter_mask,
    read_filter_mask,
)
from .r_init import make_experiment, initialize_r, check_r_initialized, is_r_initialized, get_rmat
from .rmatrixadapter import RMatrixAdapter
from .r_utils import ensure_r_dependencies
from .pipeline import PipelineResult, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "PipelineConfig",
    "load_config",
    "load_count_matrix",
    "SAMPLE_LABELS",
    "DEFAULT_CONTRASTS",
    "sample_table",
    "design_matrix",
    "make_contrast",
    "filter_degs",
    "count_degs",
    "summarize_degs",
    "write_deg_table",
    "write_filter_mask",
    "read_filter_mask",
    "make_experiment",
    "initialize_r",
    "check_r_initialized",
    "is_r_initialized",
    "get_rmat",
    "RMatrixAdapter",
    "ensure_r_dependencies",
    "PipelineResult",
    "run_pipeline",
    # Lazy-loaded submodules
    "edger",
    "limma",
    "plotting",
]

# Submodules to be lazily loaded
_LAZY_SUBMODULES = {"edger", "limma", "plotting"}


def __getattr__(name: str):
    """Lazy loading of submodules per PEP 562."""
    if name in _LAZY_SUBMODULES:
        module = importlib.import_module(f".{name}", __name__)
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals()) | _LAZY_SUBMODULES)
