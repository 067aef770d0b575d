"""Chapter 3: iteration idioms."""

import os

import numpy as np
import matplotlib.pyplot as plt

from .. import datasets, iteration
from ..book import Section
from ..plotting import CB, CG, PALETTE, savefig, use_style
from ..utils import add_const, ols_fit

TITLE = "Chapter 3: Iteration"

TEXT = """\
Loops are unavoidable; the question is how to write them so the intent
is obvious and the results land in a usable shape.

  sapply(items, f)      apply f to every item, simplify to an array
                        (or a data frame when f returns a dict)
  by_group(df, by, f)   split-apply-combine over the groups of a frame
  expand_grid(a=, b=)   every combination of parameter values
  replicate(n, f)       repeat a random experiment n times

The example replicates the sampling distribution of the sample mean of
a skewed (exponential) variable at several sample sizes: the central
limit theorem in four lines. by_group then runs one regression per
panel unit, the "many models" pattern.
"""


def run(outdir, seed=42):
    use_style()
    sizes = [2, 10, 50, 250]

    def sample_means(n):
        return iteration.replicate(2000, lambda rng: rng.exponential(1.0, n).mean(),
                                   seed=seed + n)

    draws = {n: sample_means(n) for n in sizes}
    sds = iteration.sapply(sizes, lambda n: draws[n].std(ddof=1))
    for n, sd in zip(sizes, sds):
        print(f"[iteration] n={n:4d}: sd of sample mean = {sd:.4f} "
              f"(theory {1 / np.sqrt(n):.4f})")

    grid = iteration.expand_grid(n=sizes, statistic=["mean", "median"])
    print(f"[iteration] design grid has {len(grid)} rows")

    panel = datasets.simulate_panel(n_units=30, n_periods=12, seed=seed)

    def unit_slope(sub):
        b, se, _, _ = ols_fit(add_const(sub["x"].to_numpy()), sub["y"].to_numpy())
        return {"slope": b[1], "se": se[1]}

    slopes = iteration.by_group(panel, "unit", unit_slope)
    print(f"[iteration] per-unit slopes: mean={slopes['slope'].mean():.3f}, "
          f"sd={slopes['slope'].std():.3f} (true {panel.attrs['beta']})")

    text = TEXT + f"""
Results
  sd of the sample mean at n = {sizes}:
    {np.round(sds, 4).tolist()}
  theory 1/sqrt(n):
    {np.round(1 / np.sqrt(sizes), 4).tolist()}
  {len(slopes)} unit-by-unit regressions: mean slope {slopes['slope'].mean():.3f}
  (true {panel.attrs['beta']}).
"""

    fig, axes = plt.subplots(1, 2, figsize=(11, 4))
    ax = axes[0]
    for i, n in enumerate(sizes):
        z = (draws[n] - 1.0) * np.sqrt(n)
        ax.hist(z, bins=50, density=True, histtype="step", lw=1.5,
                color=PALETTE[i], label=f"n={n}")
    xs = np.linspace(-3, 3, 200)
    ax.plot(xs, np.exp(-xs ** 2 / 2) / np.sqrt(2 * np.pi), color="k", ls=":",
            label="N(0,1)")
    ax.set_xlim(-3, 4); ax.set_title("A) sqrt(n)(mean - mu)"); ax.legend(fontsize=8)
    ax = axes[1]
    ax.errorbar(slopes.index, slopes["slope"], yerr=1.96 * slopes["se"], fmt="o",
                color=CB, ms=4, capsize=2)
    ax.axhline(panel.attrs["beta"], color=CG, ls=":", lw=2)
    ax.set_xlabel("Unit"); ax.set_title("B) One regression per unit")
    fig.tight_layout()
    figure = savefig(fig, os.path.join(outdir, "fig03_iteration.png"))
    return Section(TITLE, text, figure)
