"""Pipeline configuration: thresholds, paths and a JSON loader."""

from __future__ import annotations
import dataclasses
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .counts import ANNOTATION_COLUMNS, ID_COLUMN
from .design import DEFAULT_CONTRASTS, FACTORS, SAMPLE_LABELS


@dataclass
class PipelineConfig:
    """Everything the pipeline needs to run.

    Attributes:
        counts_path: featureCounts-style count table.
        outdir: Directory for CSV tables and figures.
        sample_labels: Labels for the count columns, in file order.
        id_column: Gene identifier column of the count table.
        annotation_columns: Columns dropped before renaming samples.
        sep: Field separator of the count table (None: by file extension).
        min_cpm: CPM a gene must reach in ``min_samples`` samples to be kept.
        min_samples: Number of samples that must reach ``min_cpm``.
        norm_method: edgeR normalization method.
        prior_count: Prior count for the log-CPM used in the MDS plot.
        factors: Design factors, first one without intercept.
        contrasts: Contrast name -> (plus column, minus column or None); a
            one-element list means no minus column.
        robust: Robust empirical Bayes for dispersion and QL shrinkage.
        fdr_threshold: Genes need ``FDR < fdr_threshold``.
        min_fold_change: Genes need ``|logFC| >= log2(min_fold_change)``.
        mds_top: Number of top genes for the MDS distances.
        make_plots: Draw the MDS and volcano figures.
    """
    counts_path: Optional[str] = None
    outdir: str = "results"
    sample_labels: List[str] = field(default_factory=lambda: list(SAMPLE_LABELS))
    id_column: str = ID_COLUMN
    annotation_columns: List[str] = field(default_factory=lambda: list(ANNOTATION_COLUMNS))
    sep: Optional[str] = None
    min_cpm: float = 0.5
    min_samples: int = 9
    norm_method: str = "TMM"
    prior_count: float = 2.0
    factors: List[str] = field(default_factory=lambda: list(FACTORS))
    contrasts: Dict[str, Tuple[str, Optional[str]]] = field(
        default_factory=lambda: dict(DEFAULT_CONTRASTS)
    )
    robust: bool = True
    fdr_threshold: float = 0.05
    min_fold_change: float = 2.0
    mds_top: int = 500
    make_plots: bool = True

    def __post_init__(self) -> None:
        # JSON gives lists where tuples are expected
        contrasts = {}
        for name, pair in self.contrasts.items():
            if isinstance(pair, str):
                pair = [pair]
            pair = list(pair)
            if len(pair) == 1:
                pair.append(None)
            if len(pair) != 2 or pair[0] is None:
                raise ValueError(
                    f"Contrast '{name}' must be [plus] or [plus, minus], got {pair}"
                )
            contrasts[str(name)] = (str(pair[0]), None if pair[1] is None else str(pair[1]))
        self.contrasts = contrasts

    def validate(self) -> "PipelineConfig":
        """Check thresholds and sizes; returns self for chaining.

        Raises:
            ValueError: On any out-of-range setting.
        """
        if self.counts_path is None:
            raise ValueError("counts_path is required")
        n_samples = len(self.sample_labels)
        if not 1 <= self.min_samples <= n_samples:
            raise ValueError(
                f"min_samples must be between 1 and {n_samples}, got {self.min_samples}"
            )
        if self.min_cpm < 0:
            raise ValueError(f"min_cpm must be non-negative, got {self.min_cpm}")
        if not 0 < self.fdr_threshold <= 1:
            raise ValueError(f"fdr_threshold must be in (0, 1], got {self.fdr_threshold}")
        if self.min_fold_change < 1:
            raise ValueError(f"min_fold_change must be >= 1, got {self.min_fold_change}")
        if self.prior_count < 0:
            raise ValueError(f"prior_count must be non-negative, got {self.prior_count}")
        if self.mds_top < 2:
            raise ValueError(f"mds_top must be at least 2, got {self.mds_top}")
        if not self.contrasts:
            raise ValueError("At least one contrast is required")
        return self

    def to_dict(self) -> Dict[str, Any]:
        out = dataclasses.asdict(self)
        out["contrasts"] = {k: list(v) for k, v in self.contrasts.items()}
        return out


def load_json_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a JSON object from ``path``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: For a non-``.json`` file, malformed JSON (with line and
            column) or a root that is not an object.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    if config_path.suffix.lower() != ".json":
        raise ValueError(
            f"Unsupported config format for '{config_path}'. Use a .json config file."
        )

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Invalid JSON in config '{config_path}' at line {exc.lineno}, "
            f"column {exc.colno}: {exc.msg}"
        ) from exc

    if not isinstance(data, dict):
        raise ValueError(
            f"Invalid config root in '{config_path}': expected JSON object, got {type(data).__name__}."
        )
    return data


def load_config(path: Union[str, Path], **overrides: Any) -> PipelineConfig:
    """Read a :class:`PipelineConfig` from JSON; ``overrides`` win over file values.

    Raises:
        ValueError: For unknown keys, in addition to load_json_config() errors.
    """
    data = load_json_config(path)
    data.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in dataclasses.fields(PipelineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in '{path}': {unknown}")
    return PipelineConfig(**data)
