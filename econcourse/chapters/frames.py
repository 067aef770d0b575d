"""Chapter 2: data frame manipulation."""

import os

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from .. import datasets, frames
from ..book import Section
from ..plotting import CB, CO, savefig, use_style

TITLE = "Chapter 2: Data Frames"

TEXT = """\
A data frame is a list of equal-length columns. Most of applied work is
reshaping one into the form an estimator expects.

Grouped summaries
  group_summary(df, by, cols) = split by a key, aggregate, combine.

Dummy variables
  A categorical variable with L levels enters a regression as L-1
  indicators; the omitted level is the reference category and every
  coefficient is a difference relative to it.

Long and wide
  Panels are stored long (one row per unit-period) for estimation and
  wide (one row per unit) for inspection. to_long / to_wide convert.

Outliers and panels
  winsorize() clips extreme values at sample quantiles;
  balance_panel() keeps units observed in every period;
  within_transform() subtracts unit means, the building block of the
  fixed-effects estimator.
"""


def run(outdir, seed=42):
    use_style()
    df = datasets.simulate_wages(n=1000, seed=seed)
    df["educ"] = pd.cut(df["schooling"], [0, 12, 16, 30],
                        labels=["hs", "college", "grad"])

    by_educ = frames.group_summary(df, "educ", ["log_wage", "experience"])
    print("[frames] log wage by education:")
    print(by_educ.round(3).to_string())

    coded = frames.add_dummies(df, "educ")
    dummy_cols = [c for c in coded.columns if c.startswith("educ_")]
    print(f"[frames] dummy columns: {dummy_cols}")

    panel = datasets.simulate_panel(n_units=20, n_periods=5, seed=seed)
    panel = panel.drop(index=[3, 17]).reset_index(drop=True)
    balanced = frames.balance_panel(panel, "unit", "period")
    print(f"[frames] panel rows: {len(panel)} -> balanced {len(balanced)}")

    wide = frames.to_wide(balanced, index="unit", columns="period", values="y")
    long = frames.to_long(wide, id_cols="unit", var_name="period",
                          value_name="y")
    print(f"[frames] wide shape {wide.shape}, long shape {long.shape}")

    demeaned = frames.within_transform(balanced, ["y", "x"], "unit")
    max_mean = demeaned.groupby("unit")[["y", "x"]].mean().abs().to_numpy().max()
    print(f"[frames] largest unit mean after demeaning: {max_mean:.2e}")

    w = np.exp(df["log_wage"].to_numpy())
    w_w = frames.winsorize(w, 0.01, 0.99)

    text = TEXT + f"""
Results
  Mean log wage: hs = {by_educ.loc['hs', 'log_wage_mean']:.3f},
  college = {by_educ.loc['college', 'log_wage_mean']:.3f},
  grad = {by_educ.loc['grad', 'log_wage_mean']:.3f}
  Balanced panel keeps {balanced['unit'].nunique()} of {panel['unit'].nunique()} units.
  Winsorizing at 1%/99% moves the max wage from {w.max():.2f} to {w_w.max():.2f}.
"""

    fig, axes = plt.subplots(1, 2, figsize=(11, 4))
    ax = axes[0]
    means = by_educ["log_wage_mean"]
    errs = by_educ["log_wage_std"] / np.sqrt(by_educ["log_wage_count"])
    ax.bar(means.index.astype(str), means.to_numpy(), yerr=1.96 * errs.to_numpy(),
           color=CB, alpha=0.8, capsize=5)
    ax.set_ylabel("Mean log wage"); ax.set_title("A) Grouped means")
    ax = axes[1]
    for _, sub in balanced.groupby("unit"):
        ax.plot(sub["period"], sub["y"], color=CB, alpha=0.3, lw=1)
    for _, sub in demeaned.groupby("unit"):
        ax.plot(sub["period"], sub["y"], color=CO, alpha=0.3, lw=1)
    ax.set_xlabel("Period"); ax.set_title("B) Raw (blue) vs demeaned (orange)")
    fig.tight_layout()
    figure = savefig(fig, os.path.join(outdir, "fig02_frames.png"))
    return Section(TITLE, text, figure)
