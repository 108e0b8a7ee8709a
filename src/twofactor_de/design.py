"""
Sample table, design matrix and contrasts for the 2x2 factorial experiment.

Sample labels encode the treatment of the mother, the treatment during
development and the replicate number: ``<maternal><developmental><rep>``
with levels ``C`` (control) and ``T`` (treated). The twelve default labels
are therefore ``CC1..CC3, CT1..CT3, TC1..TC3, TT1..TT3``.

Example:
    >>> samples = sample_table(SAMPLE_LABELS)
    >>> design = design_matrix(samples)
    >>> list(design.columns)
    ['maternalC', 'maternalT', 'developmentalT']
    >>> make_contrast(design, "maternalT", "maternalC").tolist()
    [-1.0, 1.0, 0.0]
"""

from __future__ import annotations
import re
from typing import Dict, Optional, Sequence, Tuple
import numpy as np
import pandas as pd

LEVELS = ("C", "T")
FACTORS = ("maternal", "developmental")

SAMPLE_LABELS = [
    f"{maternal}{developmental}{rep}"
    for maternal in LEVELS
    for developmental in LEVELS
    for rep in (1, 2, 3)
]

# contrast name -> (design column with +1, design column with -1 or None)
DEFAULT_CONTRASTS: Dict[str, Tuple[str, Optional[str]]] = {
    "maternal": ("maternalT", "maternalC"),
    "developmental": ("developmentalT", None),
}

_LABEL_RE = re.compile(r"^([A-Z])([A-Z])(\d+)$")


def sample_table(labels: Sequence[str]) -> pd.DataFrame:
    """
    Build the treatment-group factor table from sample labels.

    Args:
        labels: Sample labels following the ``<maternal><developmental><rep>``
            scheme.

    Returns:
        pd.DataFrame: Indexed by label with categorical ``maternal`` and
        ``developmental`` columns (reference level ``C`` first), the combined
        ``group`` and the integer ``replicate``.

    Raises:
        ValueError: If a label does not match the scheme, uses an unknown
            level, or is duplicated.
    """
    labels = [str(x) for x in labels]
    if len(set(labels)) != len(labels):
        dupes = sorted({x for x in labels if labels.count(x) > 1})
        raise ValueError(f"Duplicated sample labels: {dupes}")

    rows = []
    for label in labels:
        match = _LABEL_RE.match(label)
        if match is None:
            raise ValueError(
                f"Sample label '{label}' does not match "
                "<maternal><developmental><replicate>, e.g. 'CT2'"
            )
        maternal, developmental, rep = match.groups()
        for level in (maternal, developmental):
            if level not in LEVELS:
                raise ValueError(
                    f"Unknown treatment level '{level}' in '{label}'; expected one of {LEVELS}"
                )
        rows.append((label, maternal, developmental, maternal + developmental, int(rep)))

    table = pd.DataFrame(
        rows, columns=["sample", "maternal", "developmental", "group", "replicate"]
    ).set_index("sample")
    for factor in FACTORS:
        table[factor] = pd.Categorical(table[factor], categories=list(LEVELS))
    table.index.name = None
    return table


def design_matrix(
    samples: pd.DataFrame,
    factors: Sequence[str] = FACTORS,
) -> pd.DataFrame:
    """
    Zero-intercept additive design matrix (no interaction term).

    The first factor contributes one indicator column per level; every
    further factor contributes one column per non-reference level. This is
    the layout of R's ``model.matrix(~ 0 + maternal + developmental)``.

    Args:
        samples: Sample table from :func:`sample_table`.
        factors: Factor columns to include, first one without intercept.

    Returns:
        pd.DataFrame: Float design matrix indexed by sample, columns named
        ``<factor><level>``.

    Raises:
        KeyError: If a factor is not a column of ``samples``.
        ValueError: If the resulting design is not of full column rank.
    """
    if not factors:
        raise ValueError("At least one factor is required")
    missing = [f for f in factors if f not in samples.columns]
    if missing:
        raise KeyError(f"Factors not in sample table: {missing}")

    blocks = []
    for i, factor in enumerate(factors):
        values = samples[factor]
        if isinstance(values.dtype, pd.CategoricalDtype):
            levels = list(values.cat.categories)
        else:
            levels = sorted(values.unique())
        if i > 0:
            levels = levels[1:]
        for level in levels:
            blocks.append(
                pd.Series(
                    (values.astype(str) == str(level)).astype(float).to_numpy(),
                    index=samples.index,
                    name=f"{factor}{level}",
                )
            )

    design = pd.concat(blocks, axis=1)
    rank = int(np.linalg.matrix_rank(design.to_numpy()))
    if rank < design.shape[1]:
        raise ValueError(
            f"Design matrix is rank deficient ({rank} < {design.shape[1]} columns); "
            "every factor level needs at least one sample"
        )
    return design


def make_contrast(
    design: pd.DataFrame,
    plus: str,
    minus: Optional[str] = None,
) -> pd.Series:
    """
    Contrast vector over the design columns: ``plus - minus``.

    Raises:
        KeyError: If ``plus`` or ``minus`` is not a design column.
    """
    for name in (plus, minus):
        if name is not None and name not in design.columns:
            raise KeyError(
                f"'{name}' is not a design column. Available: {list(design.columns)}"
            )
    contrast = pd.Series(0.0, index=design.columns)
    contrast[plus] = 1.0
    if minus is not None:
        contrast[minus] = -1.0
    return contrast
