"""Chapter 5: heteroskedasticity, clustering and robust covariance matrices."""

import os

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from .. import covariance, datasets, ols
from ..book import Section
from ..plotting import CB, CO, CR, PALETTE, savefig, use_style
from ..utils import as_arrays

TITLE = "Chapter 5: Robust Covariance Matrices"

TEXT = """\
The OLS point estimate does not depend on the error variance, but its
standard error does. The classical formula s^2 (X'X)^{-1} assumes
Var(eps|X) = sigma^2 I. When that fails we keep beta_hat and replace
the covariance with a sandwich:

  V = (X'X)^{-1} [ sum_i w_i x_i x_i' ] (X'X)^{-1}

  HC0  w_i = e_i^2                     (White)
  HC1  HC0 * n/(n-k)                   (Stata's ", robust")
  HC2  w_i = e_i^2 / (1 - h_ii)
  HC3  w_i = e_i^2 / (1 - h_ii)^2      (better in small samples)

Clustering
When errors are correlated within groups (students in a class,
workers in a state, years of the same firm) the meat becomes
  sum_g (X_g' e_g)(X_g' e_g)'  * G/(G-1) * (n-1)/(n-k)
and inference uses G-1 degrees of freedom. Ignoring the clustering
overstates precision, often dramatically.

Serial correlation
Newey-West (HAC) adds Bartlett-weighted autocovariances of the scores
up to a truncation lag.

Detection: Breusch-Pagan regresses e^2 on X; LM = n R^2 ~ chi2(k-1).
"""


def run(outdir, seed=42):
    use_style()
    het = datasets.simulate_heteroskedastic(n=500, seed=seed)
    X, y, names = as_arrays(het, "y", ["x"])

    rows = {}
    for cov_type in ("classical", "HC0", "HC1", "HC2", "HC3"):
        res = ols.estimate(X, y, names=names, cov_type=cov_type)
        rows[cov_type] = res["se"]
    se_table = pd.DataFrame(rows, index=names).T
    print("[robust] standard errors by covariance type:")
    print(se_table.round(4).to_string())

    res = ols.estimate(X, y, names=names)
    bp = covariance.breusch_pagan(X, res["residuals"])
    print(f"[robust] Breusch-Pagan LM = {bp['lm']:.1f}, p = {bp['lm_pvalue']:.2g}")

    panel = datasets.simulate_panel(n_units=40, n_periods=10, seed=seed)
    Xp, yp, pnames = as_arrays(panel, "y", ["x"])
    classical = ols.estimate(Xp, yp, names=pnames)
    clustered = ols.estimate(Xp, yp, names=pnames, cov_type="cluster",
                             clusters=panel["unit"].to_numpy())
    print(f"[robust] panel slope SE: classical {classical['se'][1]:.4f}, "
          f"clustered {clustered['se'][1]:.4f}")

    rng = np.random.default_rng(seed)
    T = 300
    u = np.zeros(T)
    for t in range(1, T):
        u[t] = 0.7 * u[t - 1] + rng.normal()
    xt = np.cumsum(rng.normal(size=T)) / 10
    ts = pd.DataFrame(dict(x=xt, y=0.5 * xt + u))
    Xt, yt, tnames = as_arrays(ts, "y", ["x"])
    hac = ols.estimate(Xt, yt, names=tnames, cov_type="HAC")
    iid = ols.estimate(Xt, yt, names=tnames)
    print(f"[robust] AR(1) errors slope SE: classical {iid['se'][1]:.4f}, "
          f"Newey-West {hac['se'][1]:.4f}")

    text = TEXT + f"""
Results
  Heteroskedastic DGP, slope SE:
    classical {se_table.loc['classical', 'x']:.4f}   HC1 {se_table.loc['HC1', 'x']:.4f}   HC3 {se_table.loc['HC3', 'x']:.4f}
  Breusch-Pagan LM = {bp['lm']:.1f} (p = {bp['lm_pvalue']:.2g})
  Panel with unit-level shocks, slope SE:
    classical {classical['se'][1]:.4f}   clustered {clustered['se'][1]:.4f}
  AR(1) errors, slope SE:
    classical {iid['se'][1]:.4f}   Newey-West {hac['se'][1]:.4f}
"""

    fig, axes = plt.subplots(1, 2, figsize=(11, 4))
    ax = axes[0]
    ax.scatter(het["x"], res["residuals"], s=6, alpha=0.4, color=CB)
    ax.axhline(0, color=CR, lw=1)
    ax.set_xlabel("x"); ax.set_ylabel("OLS residual")
    ax.set_title("A) Fanning residuals")
    ax = axes[1]
    labels = list(se_table.index) + ["panel: classical", "panel: cluster"]
    values = list(se_table["x"]) + [classical["se"][1], clustered["se"][1]]
    colors = [PALETTE[0]] * len(se_table) + [CO, CO]
    ax.barh(labels, values, color=colors, alpha=0.8)
    ax.invert_yaxis()
    ax.set_xlabel("SE of slope"); ax.set_title("B) Standard errors")
    fig.tight_layout()
    figure = savefig(fig, os.path.join(outdir, "fig05_robust.png"))
    return Section(TITLE, text, figure)
