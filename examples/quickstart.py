# examples/quickstart.py
import numpy as np
import pandas as pd
import twofactor_de as tde

# --- make a toy 2x2 factorial counts matrix (genes x samples) ---
genes = [f"gene{i+1}" for i in range(500)]
rng = np.random.default_rng(1)
base = rng.lognormal(4.5, 1.0, size=len(genes))
maternal_t = np.array([s[0] == "T" for s in tde.SAMPLE_LABELS])
mu = np.tile(base[:, None], (1, 12))
mu[:25] *= np.where(maternal_t, 3.0, 1.0)
counts = pd.DataFrame(
    rng.negative_binomial(10, 10 / (10 + mu)),
    index=genes,
    columns=tde.SAMPLE_LABELS,
)

# --- step by step ---
samples = tde.sample_table(tde.SAMPLE_LABELS)
design = tde.design_matrix(samples)

se = tde.initialize_r(tde.make_experiment(counts, samples))
mask = tde.edger.filter_by_cpm(se, min_cpm=0.5, min_samples=9)

se = tde.initialize_r(tde.make_experiment(counts.loc[mask], samples))
se = tde.edger.calc_norm_factors(se)
disp = tde.edger.estimate_disp(se, design)
model = tde.edger.glm_ql_fit(se, design, dispersion=disp)

res = tde.edger.glm_ql_ftest(model, contrast=tde.make_contrast(design, "maternalT", "maternalC"))
print(tde.filter_degs(res).head())

# --- or the whole pipeline from a featureCounts file ---
# result = tde.run_pipeline(tde.PipelineConfig(counts_path="counts.txt", outdir="results"))
# print(result.summary)
