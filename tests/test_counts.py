"""Tests for reading and tidying the featureCounts table."""

import pytest
import numpy as np
import pandas as pd

from twofactor_de.counts import (
    read_counts,
    deduplicate_genes,
    drop_annotation_columns,
    rename_samples,
    round_counts,
    load_count_matrix,
)
from twofactor_de.design import SAMPLE_LABELS


@pytest.fixture
def raw_table():
    return pd.DataFrame({
        "Geneid": ["g1", "g2", "g1", "g3"],
        "Chr": ["chr1"] * 4,
        "Start": [1, 10, 1, 20],
        "End": [5, 15, 5, 25],
        "Strand": ["+", "-", "+", "+"],
        "Length": [5, 6, 5, 6],
        "s1": [1, 2, 100, 3],
        "s2": [4, 5, 100, 6],
    })


class TestReadCounts:
    """Test file reading and separator detection."""

    def test_tab_separated_with_comment(self, feature_counts_file):
        raw = read_counts(feature_counts_file)
        assert raw.columns[0] == "Geneid"
        assert raw.shape[1] == 6 + len(SAMPLE_LABELS)

    def test_csv_by_extension(self, tmp_path, raw_table):
        path = tmp_path / "counts.csv"
        raw_table.to_csv(path, index=False)
        raw = read_counts(path)
        assert list(raw.columns) == list(raw_table.columns)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_counts(tmp_path / "nope.txt")

    def test_na_like_gene_ids_kept_verbatim(self, tmp_path):
        path = tmp_path / "counts.txt"
        path.write_text(
            "Geneid\tChr\tStart\tEnd\tStrand\tLength\tbam1\tbam2\n"
            "NA\tchr1\t1\t5\t+\t5\t1\t2\n"
            "null\tchr1\t10\t15\t+\t6\t3\t4\n"
            "None\tchr1\t20\t25\t+\t6\t5\t6\n"
            "007\tchr1\t30\t35\t+\t6\t7\t8\n"
            "g3\tchr1\t40\t45\t+\t6\t9\t10\n"
        )
        counts = load_count_matrix(path, ["CC1", "CC2"])
        assert list(counts.index) == ["NA", "null", "None", "007", "g3"]
        assert counts.loc["null", "CC2"] == 4

    def test_empty_gene_id(self, tmp_path):
        path = tmp_path / "counts.csv"
        path.write_text("Geneid,s1\ng1,1\n,2\n")
        with pytest.raises(ValueError, match="empty"):
            load_count_matrix(path, ["CC1"])


class TestTidying:
    """Test deduplication, column dropping, renaming and rounding."""

    def test_deduplicate_keeps_first(self, raw_table):
        out = deduplicate_genes(raw_table)
        assert list(out.index) == ["g1", "g2", "g3"]
        assert out.loc["g1", "s1"] == 1

    def test_deduplicate_missing_id_column(self, raw_table):
        with pytest.raises(KeyError):
            deduplicate_genes(raw_table, id_column="gene_id")

    def test_drop_annotation_columns(self, raw_table):
        out = drop_annotation_columns(deduplicate_genes(raw_table))
        assert list(out.columns) == ["s1", "s2"]

    def test_drop_ignores_absent_columns(self, raw_table):
        out = drop_annotation_columns(raw_table[["Geneid", "s1"]])
        assert list(out.columns) == ["Geneid", "s1"]

    def test_rename_samples(self, raw_table):
        out = rename_samples(raw_table[["s1", "s2"]], ["CC1", "CC2"])
        assert list(out.columns) == ["CC1", "CC2"]
        assert list(raw_table.columns[-2:]) == ["s1", "s2"]

    def test_rename_length_mismatch(self, raw_table):
        with pytest.raises(ValueError):
            rename_samples(raw_table[["s1", "s2"]], ["CC1"])

    def test_round_half_to_even(self):
        df = pd.DataFrame({"a": [0.5, 1.5, 2.4, 2.6]})
        out = round_counts(df)
        assert out["a"].tolist() == [0, 2, 2, 3]
        assert out["a"].dtype == np.int64

    @pytest.mark.parametrize("bad", [[1.0, np.nan], [1.0, -2.0], ["a", "b"]])
    def test_round_rejects_bad_values(self, bad):
        with pytest.raises(ValueError):
            round_counts(pd.DataFrame({"a": bad}))


class TestLoadCountMatrix:
    """Test the combined loader on a featureCounts-style file."""

    def test_shape_labels_and_dtype(self, feature_counts_file, synthetic_counts):
        counts = load_count_matrix(feature_counts_file, SAMPLE_LABELS)
        assert list(counts.columns) == list(SAMPLE_LABELS)
        assert counts.shape == synthetic_counts.shape
        assert all(dtype == np.int64 for dtype in counts.dtypes)

    def test_duplicate_resolved_to_first(self, feature_counts_file, synthetic_counts):
        counts = load_count_matrix(feature_counts_file, SAMPLE_LABELS)
        pd.testing.assert_series_equal(
            counts.loc["Gene_0000"],
            synthetic_counts.loc["Gene_0000"].astype(np.int64),
            check_names=False,
        )

    def test_wrong_number_of_labels(self, feature_counts_file):
        with pytest.raises(ValueError):
            load_count_matrix(feature_counts_file, SAMPLE_LABELS[:-1])
