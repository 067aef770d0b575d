"""Chapter 7: duration data and survival analysis."""

import os

import numpy as np
import matplotlib.pyplot as plt

from .. import datasets, survival
from ..book import Section
from ..plotting import CB, CO, plot_survival, savefig, use_style

TITLE = "Chapter 7: Survival Analysis"

TEXT = """\
Economic story
How long do unemployment spells last, and does a training program
shorten them? Some spells are still running when the survey ends: they
are right-censored. Dropping them, or treating the censoring time as
the exit time, both bias the answer.

Kaplan-Meier
  S(t) = prod_{t_j <= t} (1 - d_j / n_j)
with d_j exits and n_j spells at risk at t_j. Censored spells leave the
risk set without counting as exits.

Piecewise-constant hazard
Cut time into intervals. Within interval j,
  hazard_j = exits_j / person-time_j
  H(t) = sum_j hazard_j * width_j,   S(t) = exp(-H(t))
A life table: a few sums over indicator functions.

Parametric models (maximum likelihood, censored)
  log L = sum_i [ d_i log h(t_i) + log S(t_i) ]
  Exponential: constant hazard.  Weibull: h(t) = p lambda t^(p-1).

Cox proportional hazards
  h(t | x) = h0(t) exp(x'beta)
The partial likelihood compares each exit with its risk set, so h0
never needs to be estimated. exp(beta) is a hazard ratio.
"""


def run(outdir, seed=42):
    use_style()
    df = datasets.simulate_durations(n=400, seed=seed, max_time=30.0)
    t, d = df["time"].to_numpy(), df["event"].to_numpy()
    treated = df["treated"].to_numpy()

    km0 = survival.kaplan_meier(t[treated == 0], d[treated == 0])
    km1 = survival.kaplan_meier(t[treated == 1], d[treated == 1])
    lr = survival.logrank_test(t, d, treated)
    print(f"[survival] {int(d.sum())} exits, {int(len(d) - d.sum())} censored")
    print(f"[survival] log-rank chi2 = {lr['stat']:.2f}, p = {lr['pvalue']:.2g}")

    breaks = np.arange(0, 35, 5.0)
    table = survival.hazard_table(t, d, breaks)
    print("[survival] piecewise-constant hazard:")
    print(table[["n_enter", "n_event", "exposure", "hazard", "survival"]]
          .round(4).to_string())

    X = np.column_stack([treated, (df["age"].to_numpy() - 40) / 10])
    expo = survival.fit_exponential(t, d, X, names=["const", "treated", "age10"])
    weib = survival.fit_weibull(t, d, X, names=["const", "treated", "age10"])
    cox = survival.fit_cox(t, d, X, names=["treated", "age10"])
    print(f"[survival] hazard ratio (treated): exponential {expo['hazard_ratio'][0]:.3f}, "
          f"Weibull {weib['hazard_ratio'][0]:.3f}, Cox {cox['hazard_ratio'][0]:.3f}")
    print(f"[survival] Weibull shape = {weib['shape']:.3f}")

    true_hr = np.exp(df.attrs["beta"])
    text = TEXT + f"""
Results ({int(d.sum())} exits among {len(d)} spells; true hazard ratio {true_hr:.3f},
true Weibull shape {df.attrs['shape']})
  Log-rank test: chi2 = {lr['stat']:.2f}, p = {lr['pvalue']:.2g}
  Hazard ratio for treatment:
    exponential {expo['hazard_ratio'][0]:.3f}
    Weibull     {weib['hazard_ratio'][0]:.3f}   (shape {weib['shape']:.3f})
    Cox         {cox['hazard_ratio'][0]:.3f}   (SE of beta {cox['se'][0]:.3f})
The exponential model forces a flat baseline hazard; with a rising
true hazard (shape > 1) its hazard ratio is attenuated. Cox and Weibull
agree because both allow the baseline to move.
"""

    fig, axes = plt.subplots(1, 2, figsize=(11, 4))
    ax = axes[0]
    plot_survival(km0, ax=ax, label="Control", color=CB)
    plot_survival(km1, ax=ax, label="Treated", color=CO)
    ax.set_title("A) Kaplan-Meier"); ax.legend(fontsize=8)
    ax = axes[1]
    ax.step(table["start"], table["hazard"], where="post", color=CB, lw=2,
            label="Piecewise constant")
    grid = np.linspace(0.1, breaks[-1], 200)
    lam0 = np.exp(weib["beta"][0])
    ax.plot(grid, weib["shape"] * lam0 * grid ** (weib["shape"] - 1), color=CO,
            ls="--", label="Weibull (control)")
    ax.set_xlabel("Time"); ax.set_ylabel("Hazard")
    ax.set_title("B) Hazard"); ax.legend(fontsize=8)
    fig.tight_layout()
    figure = savefig(fig, os.path.join(outdir, "fig07_survival.png"))
    return Section(TITLE, text, figure)
