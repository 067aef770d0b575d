"""Chapter 1: objects and vectors."""

import os

import numpy as np
import matplotlib.pyplot as plt

from .. import basics, datasets
from ..book import Section
from ..plotting import CB, CO, savefig, use_style

TITLE = "Chapter 1: Objects and Vectors"

TEXT = """\
Everything in an empirical workflow starts as a vector: a column of
wages, a column of years of schooling. Before fitting any model we look
at the data one variable at a time.

Summaries
  summary(x) reports Min, 1st Qu., Median, Mean, 3rd Qu., Max and the
  number of missing values. Quartiles are linearly interpolated order
  statistics, so they need not be observed values.

Transformations
  standardize(x) = (x - mean) / sd puts variables on a common scale.
  lag(x, k) shifts a series by k positions; diff(x) = x - lag(x) is the
  first difference. Positions without a predecessor are missing (NaN),
  never zero: a silent zero is a data error waiting to happen.

Categories
  cut(x, breaks) turns a continuous variable into intervals, and
  tabulate() counts how often each value occurs.
"""


def run(outdir, seed=42):
    use_style()
    df = datasets.simulate_wages(n=1000, seed=seed)
    wage = np.exp(df["log_wage"].to_numpy())
    wage[:5] = np.nan

    s = basics.summary(wage)
    print("[basics] summary(wage):")
    print(s.round(3).to_string())

    z = basics.standardize(df["schooling"])
    print(f"[basics] standardized schooling: mean={np.mean(z):.3f}, "
          f"sd={np.std(z, ddof=1):.3f}")

    prices = 100 * 1.05 ** np.arange(10)
    growth = basics.diff(np.log(prices))
    print(f"[basics] first log-differences: {np.round(growth[1:4], 4)}")

    bins = basics.cut(df["schooling"], [7, 12, 16, 20])
    counts = basics.tabulate(bins.astype(str))
    print("[basics] schooling bands:")
    print(counts.to_string())

    text = TEXT + f"""
Results
  Simulated hourly wages (n = {len(wage)}, {int(s["NA's"])} missing):
    median = {s["Median"]:.2f}, mean = {s["Mean"]:.2f}
  Mean above median: the wage distribution is right-skewed, which is why
  labor economists model log wages.
"""

    fig, axes = plt.subplots(1, 2, figsize=(11, 4))
    ax = axes[0]
    ax.hist(wage[~np.isnan(wage)], bins=40, color=CB, alpha=0.7, edgecolor="white")
    ax.axvline(s["Median"], color=CO, ls="--", label="Median")
    ax.set_xlabel("Wage"); ax.set_title("A) Wages (levels)"); ax.legend()
    ax = axes[1]
    ax.hist(df["log_wage"], bins=40, color=CB, alpha=0.7, edgecolor="white")
    ax.set_xlabel("log wage"); ax.set_title("B) Wages (logs)")
    fig.tight_layout()
    figure = savefig(fig, os.path.join(outdir, "fig01_basics.png"))
    return Section(TITLE, text, figure)
