"""Chapter 10: maximum likelihood with a generic optimizer."""

import os

import numpy as np
import matplotlib.pyplot as plt

from .. import datasets, mle, ols
from ..book import Section
from ..plotting import CB, CG, CR, CY, savefig, use_style
from ..utils import as_arrays

TITLE = "Chapter 10: Maximum Likelihood"

TEXT = """\
Many models come without a closed form: binary choice, counts,
durations, structural models. The recipe is always the same:

  1. write the log-likelihood  l(theta) = sum_i log f(y_i | x_i, theta)
  2. hand -l(theta) to a numerical optimizer (BFGS)
  3. invert the Hessian at the optimum for the covariance:
     Var(theta_hat) ~ [ -d^2 l / d theta d theta' ]^{-1}

Logit:  P(y=1|x) = 1 / (1 + exp(-x'beta))
Probit: P(y=1|x) = Phi(x'beta)
Coefficients are not marginal effects; report the average marginal
effect mean_i(dP_i/dx) instead. Logit and probit coefficients differ by
a factor of about 1.6, their AMEs almost not at all.

Profile likelihood: fix one parameter on a grid, maximize over the
rest. The 95% interval is where the profile is within chi2_1(.95)/2 =
1.92 of its peak. Likelihood-ratio test: 2 (l_u - l_r) ~ chi2(J).

Sanity check: for the normal linear model, ML returns the OLS
coefficients and sigma^2 = e'e/n.
"""


def run(outdir, seed=42):
    use_style()
    df = datasets.simulate_binary(n=1000, seed=seed)
    X, y, names = as_arrays(df, "y", ["x"])

    logit = mle.fit_mle(mle.nll_logit, np.zeros(2), args=(X, y), names=names,
                        nobs=len(y), track_path=True)
    probit = mle.fit_probit(X, y, names=names)
    ame_l = mle.logit_ame(X, logit["beta"])
    ame_p = mle.probit_ame(X, probit["beta"])
    print(f"[MLE] logit beta = {np.round(logit['beta'], 4)}, SE = {np.round(logit['se'], 4)}")
    print(f"[MLE] probit beta = {np.round(probit['beta'], 4)}")
    print(f"[MLE] AME logit {ame_l:.4f}, probit {ame_p:.4f}")

    null = mle.fit_logit(X[:, :1], y, names=["const"])
    lr = mle.lr_test(null, logit, df=1)
    print(f"[MLE] LR test x: {lr['stat']:.1f} (p = {lr['pvalue']:.2g})")

    prof = mle.profile_likelihood(mle.nll_logit, logit["beta"], 1,
                                  np.linspace(0.6, 1.8, 61), args=(X, y))
    print(f"[MLE] profile 95% CI for beta_1: [{prof['ci'][0]:.3f}, {prof['ci'][1]:.3f}]")

    wages = datasets.simulate_wages(n=500, seed=seed)
    Xw, yw, wnames = as_arrays(wages, "log_wage", ["schooling"])
    normal = mle.fit_normal(Xw, yw, names=wnames)
    least = ols.estimate(Xw, yw, names=wnames)
    print(f"[MLE] normal ML slope {normal['beta'][1]:.5f} vs OLS {least['beta'][1]:.5f}")

    text = TEXT + f"""
Results (true beta = {df.attrs['beta']})
  Logit  (BFGS, {len(logit['path'])} iterates): beta_0 = {logit['beta'][0]:.4f} (SE {logit['se'][0]:.4f}),
                                  beta_1 = {logit['beta'][1]:.4f} (SE {logit['se'][1]:.4f})
  Probit: beta_1 = {probit['beta'][1]:.4f}; ratio logit/probit = {logit['beta'][1] / probit['beta'][1]:.2f}
  AME of x: logit {ame_l:.4f}, probit {ame_p:.4f}
  LR test of x: {lr['stat']:.1f} (p = {lr['pvalue']:.2g})
  Profile 95% CI for beta_1: [{prof['ci'][0]:.3f}, {prof['ci'][1]:.3f}]
  Normal ML slope {normal['beta'][1]:.5f} = OLS slope {least['beta'][1]:.5f}
"""

    fig, axes = plt.subplots(1, 3, figsize=(15, 5))
    b0g = np.linspace(-1.2, 0.2, 60)
    b1g = np.linspace(0.6, 1.8, 60)
    B0, B1, LL = mle.log_likelihood_surface(mle.nll_logit, b0g, b1g, args=(X, y))

    ax = axes[0]
    cs = ax.contour(B0, B1, LL, levels=20, cmap="RdYlBu_r", linewidths=.8)
    ax.clabel(cs, inline=True, fontsize=6, fmt="%.0f")
    ax.plot(*logit["beta"], "r*", ms=15, label="MLE")
    ax.plot(*df.attrs["beta"], "g^", ms=12, label="True beta")
    ax.set_xlabel("beta_0"); ax.set_ylabel("beta_1")
    ax.set_title("A) Log-Likelihood Contours"); ax.legend(fontsize=9)

    ax = axes[1]
    ax.plot(prof["grid"], prof["profile_ll"], c=CB, lw=2.5)
    ax.axvline(logit["beta"][1], color=CR, ls="--", lw=1.5, label="MLE")
    ax.axvline(df.attrs["beta"][1], color=CG, ls=":", lw=1.5, label="True")
    ax.axhline(prof["profile_ll"].max() - 1.92, color=CY, ls=":", lw=1)
    ax.set_xlabel("beta_1"); ax.set_ylabel("Profile log L")
    ax.set_title("B) Profile Likelihood"); ax.legend(fontsize=8)

    ax = axes[2]
    path = logit["path"]
    ax.contour(B0, B1, LL, levels=15, cmap="RdYlBu_r", linewidths=.5, alpha=.6)
    ax.plot(path[:, 0], path[:, 1], "o-", color=CR, lw=1.5, ms=4,
            label=f"BFGS ({len(path)} steps)")
    ax.plot(path[0, 0], path[0, 1], "ko", ms=8, label="Start")
    ax.set_xlabel("beta_0"); ax.set_ylabel("beta_1")
    ax.set_title("C) BFGS Path"); ax.legend(fontsize=8)
    fig.tight_layout()
    figure = savefig(fig, os.path.join(outdir, "fig10_mle.png"))
    return Section(TITLE, text, figure)
