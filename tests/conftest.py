"""Shared fixtures: a synthetic 2x2 factorial count table with planted effects."""

import pytest
import numpy as np
import pandas as pd

from twofactor_de.design import SAMPLE_LABELS, sample_table

N_GENES = 400
MATERNAL_DE = [f"Gene_{i:04d}" for i in range(0, 30)]
DEVELOPMENTAL_DE = [f"Gene_{i:04d}" for i in range(30, 60)]
SILENT = [f"Gene_{i:04d}" for i in range(380, 400)]


def _r_packages_available(*packages):
    try:
        from twofactor_de.r_utils import missing_r_packages
        return not missing_r_packages(packages)
    except Exception:
        return False


requires_edger = pytest.mark.skipif(
    not _r_packages_available("edgeR", "limma"),
    reason="rpy2 with the edgeR and limma R packages is required",
)


@pytest.fixture
def samples():
    return sample_table(SAMPLE_LABELS)


@pytest.fixture
def synthetic_counts():
    """Genes x samples NB counts; 4-fold maternal and developmental effects."""
    rng = np.random.default_rng(42)
    gene_names = [f"Gene_{i:04d}" for i in range(N_GENES)]
    base = rng.lognormal(mean=4.5, sigma=1.0, size=N_GENES)

    maternal_t = np.array([label[0] == "T" for label in SAMPLE_LABELS])
    developmental_t = np.array([label[1] == "T" for label in SAMPLE_LABELS])

    mu = np.tile(base[:, None], (1, len(SAMPLE_LABELS)))
    mu[:30, :] *= np.where(maternal_t, 4.0, 1.0)
    mu[30:60, :] *= np.where(developmental_t, 4.0, 1.0)
    mu[380:, :] = 0.01

    size = 10.0
    counts = rng.negative_binomial(size, size / (size + mu))
    return pd.DataFrame(counts, index=gene_names, columns=list(SAMPLE_LABELS))


@pytest.fixture
def feature_counts_file(tmp_path, synthetic_counts):
    """featureCounts-style TSV of the synthetic counts, with one duplicated gene."""
    raw = synthetic_counts.copy()
    raw.columns = [f"/data/bam/sample_{i:02d}.bam" for i in range(1, raw.shape[1] + 1)]
    raw.insert(0, "Length", 1500)
    raw.insert(0, "Strand", "+")
    raw.insert(0, "End", 2000)
    raw.insert(0, "Start", 500)
    raw.insert(0, "Chr", "chr1")
    raw.insert(0, "Geneid", raw.index)

    duplicate = raw.iloc[[0]].copy()
    duplicate.iloc[0, 6:] = 999999
    raw = pd.concat([raw, duplicate], ignore_index=True)

    path = tmp_path / "counts.txt"
    with open(path, "w") as fh:
        fh.write("# Program:featureCounts v2.0.1; Command:\"featureCounts\" ...\n")
        raw.to_csv(fh, sep="\t", index=False)
    return path
