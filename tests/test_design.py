"""Tests for the sample table, design matrix and contrasts."""

import pytest
import numpy as np
import pandas as pd

from twofactor_de.design import (
    SAMPLE_LABELS,
    DEFAULT_CONTRASTS,
    sample_table,
    design_matrix,
    make_contrast,
)


class TestSampleTable:
    """Test parsing of <maternal><developmental><rep> labels."""

    def test_default_labels(self):
        assert SAMPLE_LABELS == [
            "CC1", "CC2", "CC3", "CT1", "CT2", "CT3",
            "TC1", "TC2", "TC3", "TT1", "TT2", "TT3",
        ]

    def test_factor_columns(self, samples):
        assert list(samples.index) == SAMPLE_LABELS
        assert samples.loc["CT2", "maternal"] == "C"
        assert samples.loc["CT2", "developmental"] == "T"
        assert samples.loc["CT2", "group"] == "CT"
        assert samples.loc["CT2", "replicate"] == 2
        assert list(samples["maternal"].cat.categories) == ["C", "T"]

    def test_each_group_has_three_replicates(self, samples):
        assert samples["group"].value_counts().to_dict() == {
            "CC": 3, "CT": 3, "TC": 3, "TT": 3,
        }

    @pytest.mark.parametrize("labels", [
        ["CC1", "CC1"],
        ["CC1", "cc2"],
        ["CX1"],
        ["CC"],
    ])
    def test_invalid_labels(self, labels):
        with pytest.raises(ValueError):
            sample_table(labels)


class TestDesignMatrix:
    """Test the zero-intercept additive design."""

    def test_columns(self, samples):
        design = design_matrix(samples)
        assert list(design.columns) == ["maternalC", "maternalT", "developmentalT"]
        assert list(design.index) == SAMPLE_LABELS

    def test_values(self, samples):
        design = design_matrix(samples)
        assert design.loc["CC1"].tolist() == [1.0, 0.0, 0.0]
        assert design.loc["CT1"].tolist() == [1.0, 0.0, 1.0]
        assert design.loc["TC1"].tolist() == [0.0, 1.0, 0.0]
        assert design.loc["TT1"].tolist() == [0.0, 1.0, 1.0]

    def test_no_intercept_column_sums(self, samples):
        design = design_matrix(samples)
        # maternal indicators partition the samples
        np.testing.assert_array_equal(
            design["maternalC"] + design["maternalT"], np.ones(len(samples))
        )

    def test_unknown_factor(self, samples):
        with pytest.raises(KeyError):
            design_matrix(samples, factors=["maternal", "diet"])

    def test_rank_deficient(self):
        samples = sample_table(["CC1", "CC2", "TC1", "TC2"])
        with pytest.raises(ValueError, match="rank"):
            design_matrix(samples)


class TestContrasts:
    """Test contrast vectors for the two treatment effects."""

    def test_maternal(self, samples):
        design = design_matrix(samples)
        plus, minus = DEFAULT_CONTRASTS["maternal"]
        contrast = make_contrast(design, plus, minus)
        assert contrast.tolist() == [-1.0, 1.0, 0.0]
        assert list(contrast.index) == list(design.columns)

    def test_developmental(self, samples):
        design = design_matrix(samples)
        plus, minus = DEFAULT_CONTRASTS["developmental"]
        assert make_contrast(design, plus, minus).tolist() == [0.0, 0.0, 1.0]

    def test_unknown_column(self, samples):
        design = design_matrix(samples)
        with pytest.raises(KeyError):
            make_contrast(design, "developmentalC")
