"""
Load and tidy a featureCounts-style read-count table.

The input has one row per gene with the columns
``Geneid, Chr, Start, End, Strand, Length`` followed by one integer count
column per sample. This module turns it into a plain genes x samples integer
matrix indexed by gene identifier with the samples renamed to the fixed
label scheme of :mod:`twofactor_de.design`.

Example:
    >>> from twofactor_de.counts import load_count_matrix
    >>> from twofactor_de.design import SAMPLE_LABELS
    >>> counts = load_count_matrix("counts.txt", SAMPLE_LABELS)
    >>> counts.shape
    (24135, 12)
"""

from __future__ import annotations
from pathlib import Path
from typing import Optional, Sequence, Union
import numpy as np
import pandas as pd

ID_COLUMN = "Geneid"
ANNOTATION_COLUMNS = ("Chr", "Start", "End", "Strand", "Length")


def read_counts(
    path: Union[str, Path],
    sep: Optional[str] = None,
    id_column: str = ID_COLUMN,
) -> pd.DataFrame:
    """
    Read a count table from disk.

    Args:
        path: Path to the table.
        sep: Field separator. None picks ``","`` for ``.csv`` files and tab
            otherwise.
        id_column: Gene identifier column, read verbatim as text so that
            identifiers such as ``NA`` or ``007`` survive.

    Returns:
        pd.DataFrame: The raw table, one row per line of the file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Count table not found: {path}")
    if sep is None:
        sep = "," if path.suffix.lower() == ".csv" else "\t"
    # only empty fields are missing; "NA", "null", "None" are gene names
    return pd.read_csv(
        path,
        sep=sep,
        comment="#",
        dtype={id_column: str},
        keep_default_na=False,
        na_values=[""],
    )


def deduplicate_genes(df: pd.DataFrame, id_column: str = ID_COLUMN) -> pd.DataFrame:
    """
    Keep the first row for every gene identifier and index by it.

    Raises:
        KeyError: If ``id_column`` is not a column of ``df``.
        ValueError: If an identifier is empty.
    """
    if id_column not in df.columns:
        raise KeyError(
            f"Identifier column '{id_column}' not found. Available: {list(df.columns)}"
        )
    if df[id_column].isna().any():
        raise ValueError(f"Count table has rows with an empty '{id_column}'")
    out = df.drop_duplicates(subset=id_column, keep="first")
    out = out.set_index(id_column)
    out.index = out.index.astype(str)
    return out


def drop_annotation_columns(
    df: pd.DataFrame,
    columns: Sequence[str] = ANNOTATION_COLUMNS,
) -> pd.DataFrame:
    """Remove gene annotation columns; columns that are absent are ignored."""
    return df.drop(columns=[c for c in columns if c in df.columns])


def rename_samples(df: pd.DataFrame, labels: Sequence[str]) -> pd.DataFrame:
    """
    Rename the sample columns, in order, to ``labels``.

    Raises:
        ValueError: If the number of labels differs from the number of columns.
    """
    labels = list(labels)
    if len(labels) != df.shape[1]:
        raise ValueError(
            f"Got {len(labels)} sample labels for {df.shape[1]} count columns"
        )
    out = df.copy()
    out.columns = labels
    return out


def round_counts(df: pd.DataFrame) -> pd.DataFrame:
    """
    Round counts to integers.

    Values are rounded half to even, as R's ``round`` does, then cast to
    ``int64``.

    Raises:
        ValueError: If a column is non-numeric or contains missing or
            negative values.
    """
    try:
        values = df.to_numpy(dtype=float)
    except ValueError as err:
        raise ValueError("Count table contains non-numeric values") from err
    if np.isnan(values).any():
        raise ValueError("Count table contains missing values")
    if (values < 0).any():
        raise ValueError("Count table contains negative values")
    return pd.DataFrame(
        np.round(values).astype(np.int64),
        index=df.index,
        columns=df.columns,
    )


def load_count_matrix(
    path: Union[str, Path],
    labels: Sequence[str],
    id_column: str = ID_COLUMN,
    annotation_columns: Sequence[str] = ANNOTATION_COLUMNS,
    sep: Optional[str] = None,
) -> pd.DataFrame:
    """
    Read, deduplicate, strip, rename and round a count table in one go.

    Args:
        path: Path to the featureCounts-style table.
        labels: Sample labels, in the order of the count columns.
        id_column: Gene identifier column. Default: "Geneid".
        annotation_columns: Columns to drop before renaming.
        sep: Field separator (see :func:`read_counts`).

    Returns:
        pd.DataFrame: Genes x samples ``int64`` counts indexed by gene id.
    """
    raw = read_counts(path, sep=sep, id_column=id_column)
    counts = deduplicate_genes(raw, id_column=id_column)
    counts = drop_annotation_columns(counts, annotation_columns)
    counts = rename_samples(counts, labels)
    return round_counts(counts)
