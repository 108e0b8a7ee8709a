"""
Tests for the edgeR wrappers with actual R conversion using rpy2.

The synthetic data has 4-fold maternal effects on Gene_0000..Gene_0029,
4-fold developmental effects on Gene_0030..Gene_0059 and near-silent genes
at the end, so filtering and testing results can be checked against truth.
"""

import pytest
import numpy as np
import pandas as pd

from twofactor_de.design import design_matrix, make_contrast
from twofactor_de.r_init import make_experiment, initialize_r, is_r_initialized
from twofactor_de.rmatrixadapter import RMatrixAdapter

from conftest import requires_edger, MATERNAL_DE, DEVELOPMENTAL_DE, SILENT

pytestmark = requires_edger


@pytest.fixture
def edger():
    from twofactor_de import edger
    return edger


@pytest.fixture
def se(synthetic_counts, samples):
    return initialize_r(make_experiment(synthetic_counts, samples))


@pytest.fixture
def design(samples):
    return design_matrix(samples)


@pytest.fixture
def normalized(edger, synthetic_counts, samples):
    kept = synthetic_counts.drop(index=SILENT)
    se = initialize_r(make_experiment(kept, samples))
    return edger.calc_norm_factors(se)


class TestRConversion:
    """Test SE to R conversion."""

    def test_counts_become_r_matrix(self, se, synthetic_counts):
        assert is_r_initialized(se, "counts")
        rmat = se.assays["counts"]
        assert isinstance(rmat, RMatrixAdapter)
        assert rmat.shape == synthetic_counts.shape
        assert list(rmat.row_names) == list(synthetic_counts.index)
        assert list(rmat.column_names) == list(synthetic_counts.columns)
        np.testing.assert_array_equal(rmat.to_numpy(), synthetic_counts.to_numpy())

    def test_subsetting_keeps_r_backing(self, se):
        sub = se.assays["counts"][:5, [0, 1]]
        assert isinstance(sub, RMatrixAdapter)
        assert sub.shape == (5, 2)


class TestFiltering:
    """Test CPM-threshold filtering."""

    def test_silent_genes_removed(self, edger, se, synthetic_counts):
        mask = edger.filter_by_cpm(se, min_cpm=0.5, min_samples=9)
        assert mask.dtype == bool
        assert mask.shape == (synthetic_counts.shape[0],)
        kept = set(synthetic_counts.index[mask])
        assert kept.isdisjoint(SILENT)
        assert set(MATERNAL_DE) <= kept

    def test_matches_python_cpm(self, edger, se, synthetic_counts):
        lib = synthetic_counts.sum(axis=0).to_numpy(dtype=float)
        cpm = synthetic_counts.to_numpy(dtype=float) / lib * 1e6
        expected = (cpm >= 0.5).sum(axis=1) >= 9
        np.testing.assert_array_equal(
            edger.filter_by_cpm(se, min_cpm=0.5, min_samples=9), expected
        )

    @pytest.mark.parametrize("min_samples", [0, 13])
    def test_invalid_min_samples(self, edger, se, min_samples):
        with pytest.raises(ValueError):
            edger.filter_by_cpm(se, min_samples=min_samples)

    def test_filter_by_expr(self, edger, se, design):
        mask = edger.filter_by_expr(se, design=design)
        assert mask.shape == (se.shape[0],)
        assert not mask[-len(SILENT):].any()


class TestNormalization:
    """Test normalization factors and CPM."""

    def test_calc_norm_factors_tmm(self, edger, normalized):
        coldata = normalized.get_column_data()
        factors = np.asarray(coldata["norm.factors"], dtype=float)
        lib_size = np.asarray(coldata["lib.size"], dtype=float)
        assert factors.shape == (12,)
        assert np.all(factors > 0)
        # TMM factors multiply to one
        assert np.isclose(np.prod(factors), 1.0, atol=1e-6)
        np.testing.assert_allclose(lib_size, normalized.assays["counts"].to_numpy().sum(axis=0))

    def test_reference_column(self, edger, se):
        out = edger.calc_norm_factors(se, ref_column=0)
        factors = np.asarray(out.get_column_data()["norm.factors"], dtype=float)
        assert np.all(factors > 0)

    @pytest.mark.parametrize("kwargs", [{"method": "quantile"}, {"ref_column": 12}, {"ref_column": -1}])
    def test_invalid_arguments(self, edger, se, kwargs):
        with pytest.raises(ValueError):
            edger.calc_norm_factors(se, **kwargs)

    def test_cpm(self, edger, normalized):
        out = edger.cpm(normalized)
        assert "cpm" in out.assay_names
        assert "cpm" not in normalized.assay_names
        values = np.asarray(out.assays["cpm"])
        assert values.shape == normalized.shape
        assert np.all(values >= 0)

    def test_log_cpm(self, edger, normalized):
        out = edger.cpm(normalized, log=True, prior_count=2)
        assert isinstance(out.assays["logcpm"], RMatrixAdapter)
        assert np.all(np.isfinite(np.asarray(out.assays["logcpm"])))


class TestDispersionAndFit:
    """Test dispersion estimation, QL fit and F-tests."""

    def test_estimate_disp(self, edger, normalized, design):
        disp = edger.estimate_disp(normalized, design)
        assert disp.common > 0
        assert disp.trended.shape == (normalized.shape[0],)
        assert disp.tagwise is not None
        assert disp.bcv == pytest.approx(np.sqrt(disp.common))
        frame = disp.to_frame()
        assert list(frame.index) == list(normalized.row_names)

    def test_glm_ql_fit(self, edger, normalized, design):
        disp = edger.estimate_disp(normalized, design)
        model = edger.glm_ql_fit(normalized, design, dispersion=disp)
        assert isinstance(model, edger.EdgeRModel)
        assert list(model.coefficients.columns) == list(design.columns)
        assert model.coefficients.shape == (normalized.shape[0], 3)
        assert model.fit_config.robust is True
        assert model.var_post is not None
        assert model.var_post.shape == (normalized.shape[0],)

    def test_design_mismatch(self, edger, normalized, design):
        with pytest.raises(ValueError):
            edger.glm_ql_fit(normalized, design.iloc[:6])

    def test_maternal_contrast(self, edger, normalized, design):
        disp = edger.estimate_disp(normalized, design)
        model = edger.glm_ql_fit(normalized, design, dispersion=disp)
        table = edger.glm_ql_ftest(model, contrast=make_contrast(design, "maternalT", "maternalC"))

        assert list(table.columns) == edger.RESULT_COLUMNS
        assert list(table.index) == list(normalized.row_names)
        assert table["FDR"].between(0, 1).all()

        planted = table.loc[MATERNAL_DE]
        assert (planted["FDR"] < 0.05).mean() > 0.8
        assert planted["logFC"].median() == pytest.approx(2.0, abs=0.5)

    def test_developmental_contrast_via_method(self, edger, normalized, design):
        disp = edger.estimate_disp(normalized, design)
        model = edger.glm_ql_fit(normalized, design, dispersion=disp)
        table = model.glm_ql_ftest(contrast=[0, 0, 1])
        planted = table.loc[DEVELOPMENTAL_DE]
        assert (planted["FDR"] < 0.05).mean() > 0.8
        assert (planted["logFC"] > 0).mean() > 0.9

    def test_non_numeric_design(self, edger, normalized, design):
        bad = design.astype(object)
        bad.iloc[0, 0] = "one"
        with pytest.raises(ValueError, match="non-numeric"):
            edger.glm_ql_fit(normalized, bad)

    def test_coef_and_contrast_rejected(self, edger, normalized, design):
        model = edger.glm_ql_fit(normalized, design, dispersion=0.1)
        with pytest.raises(ValueError):
            edger.glm_ql_ftest(model, coef=3, contrast=[0, 0, 1])

    def test_zero_contrast_rejected(self, edger, normalized, design):
        model = edger.glm_ql_fit(normalized, design, dispersion=0.1)
        with pytest.raises(ValueError):
            edger.glm_ql_ftest(model, contrast=[0, 0, 0])

    def test_unknown_contrast_column(self, edger, normalized, design):
        model = edger.glm_ql_fit(normalized, design, dispersion=0.1)
        with pytest.raises(KeyError):
            edger.glm_ql_ftest(model, contrast=pd.Series({"diet": 1.0}))
