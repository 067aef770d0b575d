"""Chapter 6: instrumental variables and two-stage least squares."""

import os

import matplotlib.pyplot as plt

from .. import datasets, iv, ols
from ..book import Section
from ..plotting import CB, CR, plot_coefficients, savefig, use_style
from ..utils import as_arrays

TITLE = "Chapter 6: Instrumental Variables"

TEXT = """\
Economic story
Ability is unobserved, so schooling is endogenous in the wage equation.
Distance to the nearest college shifts the cost of schooling but
(plausibly) not wages directly: it is an instrument.

Requirements for an instrument z
  Relevance : Cov(z, x) != 0       -- testable (first-stage F)
  Exclusion : Cov(z, eps) = 0      -- an assumption, argued not tested

Two-stage least squares
  Stage 1: x = Z*gamma + v,        x_hat = Z*gamma_hat
  Stage 2: y = [W, x_hat]*beta + u
Just identified, this is the Wald ratio Cov(y, z) / Cov(x, z).

Standard errors: the residuals must use the ACTUAL x,
  e = y - [W, x]*beta_2sls,
not x_hat. Running the second stage by hand with OLS gets the
coefficients right and the standard errors wrong.

Weak instruments: a first-stage partial F below ~10 means 2SLS is
biased toward OLS and its standard errors are unreliable.
The Durbin-Wu-Hausman test checks whether OLS and 2SLS differ.
"""


def run(outdir, seed=42):
    use_style()
    df = datasets.simulate_wages(n=2000, seed=seed)
    df["experience2"] = df["experience"] ** 2

    W, y, wnames = as_arrays(df, "log_wage", ["experience", "experience2"])
    x = df["schooling"].to_numpy()
    z = df["distance"].to_numpy()
    names = wnames + ["schooling"]

    X, _, onames = as_arrays(df, "log_wage",
                             ["experience", "experience2", "schooling"])
    res_ols = ols.estimate(X, y, names=onames, cov_type="HC1")
    res_iv = iv.estimate_2sls(y, W, x, z, names=names, cov_type="HC1")
    fs = res_iv["first_stage"][0]
    dwh = iv.durbin_wu_hausman(y, W, x, z)
    wald = iv.wald_estimator(y, x, z)

    print(f"[IV] OLS return  : {res_ols['beta'][3]:.4f} (SE {res_ols['se'][3]:.4f})")
    print(f"[IV] 2SLS return : {res_iv['beta'][3]:.4f} (SE {res_iv['se'][3]:.4f}, "
          f"naive {res_iv['se_naive'][3]:.4f})")
    print(f"[IV] first-stage F = {fs['F_stat']:.1f}, partial R2 = {fs['partial_r2']:.3f}")
    print(f"[IV] Durbin-Wu-Hausman F = {dwh['stat']:.2f}, p = {dwh['pvalue']:.3g}")
    print(f"[IV] Wald estimator (no controls) = {wald['beta_iv']:.4f}")

    text = TEXT + f"""
Results (true return {df.attrs['true_return']:.2f})
  OLS  : {res_ols['beta'][3]:.4f}  (HC1 SE {res_ols['se'][3]:.4f})
  2SLS : {res_iv['beta'][3]:.4f}  (HC1 SE {res_iv['se'][3]:.4f};
         naive second-stage SE {res_iv['se_naive'][3]:.4f})
  First-stage partial F = {fs['F_stat']:.1f}
  Durbin-Wu-Hausman: F = {dwh['stat']:.2f}, p = {dwh['pvalue']:.3g}
  Wald ratio without controls: {wald['beta_iv']:.4f}
    = reduced form {wald['reduced_form']:.5f} / first stage {wald['first_stage']:.5f}
"""

    fig, axes = plt.subplots(1, 2, figsize=(11, 4))
    ax = axes[0]
    ax.scatter(z, x, s=4, alpha=0.25, color=CB)
    order = z.argsort()
    ax.plot(z[order], fs["X_hat"][order], color=CR, lw=1, alpha=0.6)
    ax.set_xlabel("Distance to college"); ax.set_ylabel("Schooling")
    ax.set_title(f"A) First stage (F = {fs['F_stat']:.0f})")
    ax = axes[1]
    plot_coefficients([res_ols, res_iv], ["OLS", "2SLS"], "schooling", ax=ax)
    ax.axvline(df.attrs["true_return"], color="k", ls=":", lw=1.5)
    ax.set_title("B) Return to schooling")
    fig.tight_layout()
    figure = savefig(fig, os.path.join(outdir, "fig06_iv.png"))
    return Section(TITLE, text, figure)
