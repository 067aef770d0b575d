"""Chapter 4: linear models (OLS) and omitted variable bias."""

import os

import numpy as np
import matplotlib.pyplot as plt

from .. import datasets, ols
from ..book import Section
from ..plotting import CB, CO, CG, CR, plot_mc, savefig, use_style
from ..utils import as_arrays

TITLE = "Chapter 4: Linear Models"

TEXT = """\
Economic story
We observe log wages and years of schooling. What is the return to one
more year of education? OLS is the starting point for nearly every
empirical analysis.

Mathematical setup
  y = X*beta + epsilon,  beta_hat = (X'X)^{-1} X'y
  e_hat = y - X*beta_hat,  sigma_hat^2 = e_hat'e_hat / (n - k)
  Var(beta_hat) = sigma_hat^2 (X'X)^{-1}

Under exogeneity, E[epsilon|X] = 0, OLS is unbiased; adding
homoskedasticity, it is BLUE (Gauss-Markov).

Why OLS fails here -- omitted variable bias
Ability raises both schooling and wages but is not in the regression:
  bias = beta_ability * Cov(schooling, ability) / Var(schooling)
The short regression attributes part of the ability premium to
schooling. Controlling for ability (the long regression) removes it.

Testing linear restrictions
  F = (R b - q)' [R V R']^{-1} (R b - q) / J
tests J restrictions jointly, e.g. that the experience profile is flat.
"""


def run(outdir, seed=42):
    use_style()
    df = datasets.simulate_wages(n=2000, seed=seed)
    df["experience2"] = df["experience"] ** 2

    X, y, names = as_arrays(df, "log_wage", ["schooling"])
    short = ols.estimate(X, y, names=names)
    X, y, names = as_arrays(df, "log_wage",
                            ["schooling", "experience", "experience2"])
    mincer = ols.estimate(X, y, names=names)
    X, y, names = as_arrays(df, "log_wage",
                            ["schooling", "experience", "experience2", "ability"])
    oracle = ols.estimate(X, y, names=names)

    for label, res in (("short", short), ("Mincer", mincer), ("with ability", oracle)):
        print(f"[OLS {label}] return to schooling: {res['beta'][1]:.4f} "
              f"(SE {res['se'][1]:.4f}), R2 = {res['r2']:.3f}")

    flat = ols.wald_test(mincer, np.eye(4)[2:])
    print(f"[OLS] F test flat experience profile: F={flat['stat']:.1f}, "
          f"p={flat['pvalue']:.2g}")

    mc = ols.monte_carlo_ovb(n=500, n_sims=1000, rho=1.0, seed=seed)
    print(f"[OVB] Monte Carlo bias = {mc['bias']:.4f}, "
          f"formula = {mc['predicted_bias']:.4f}")

    text = TEXT + f"""
Results (true return {df.attrs['true_return']:.2f})
  Short regression       : {short['beta'][1]:.4f}  (SE {short['se'][1]:.4f})
  Mincer (+ experience)  : {mincer['beta'][1]:.4f}  (SE {mincer['se'][1]:.4f})
  + ability              : {oracle['beta'][1]:.4f}  (SE {oracle['se'][1]:.4f})
  F test, experience terms jointly zero: F = {flat['stat']:.1f}

Monte Carlo (1000 draws, rho = 1): mean bias {mc['bias']:.3f};
the OVB formula predicts {mc['predicted_bias']:.3f}.
"""

    fig, axes = plt.subplots(1, 2, figsize=(11, 4))
    ax = axes[0]
    ax.scatter(df["schooling"], df["log_wage"], s=4, alpha=0.25, color=CB)
    grid = np.linspace(df["schooling"].min(), df["schooling"].max(), 50)
    ax.plot(grid, short["beta"][0] + short["beta"][1] * grid, color=CR, lw=2,
            label="Short OLS fit")
    ax.set_xlabel("Schooling"); ax.set_ylabel("log wage")
    ax.set_title("A) Wages and schooling"); ax.legend(fontsize=8)
    ax = axes[1]
    plot_mc(mc["mc_short"], truth=2.5, ax=ax, color=CO, label="Short")
    plot_mc(mc["mc_long"], ax=ax, color=CG, label="Long")
    ax.set_title("B) OVB: sampling distributions"); ax.legend(fontsize=8)
    fig.tight_layout()
    figure = savefig(fig, os.path.join(outdir, "fig04_ols.png"))
    return Section(TITLE, text, figure)
