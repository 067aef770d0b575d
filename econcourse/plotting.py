"""
Figure style and the plots shared by several chapters.
"""

import os

import numpy as np
import matplotlib.pyplot as plt

# -- Style --
STYLE = {
    "figure.facecolor": "#FAFAFA", "axes.facecolor": "#FAFAFA",
    "axes.edgecolor": "#333", "axes.labelcolor": "#222",
    "xtick.color": "#555", "ytick.color": "#555", "text.color": "#222",
    "font.size": 10, "axes.titlesize": 12, "axes.titleweight": "bold",
    "axes.grid": True, "grid.alpha": 0.25, "grid.color": "#AAA", "figure.dpi": 140,
}
CB, CO, CG, CR, CP, CY = "#2171B5", "#E6550D", "#31A354", "#DE2D26", "#756BB1", "#888"
PALETTE = [CB, CO, CG, CR, CP]


def use_style():
    plt.rcParams.update(STYLE)


def savefig(fig, path):
    """Save at 150 dpi with a tight bounding box and close the figure."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    fig.savefig(path, bbox_inches="tight", dpi=150)
    plt.close(fig)
    return path


def plot_survival(km, ax=None, label=None, color=CB, ci=True):
    """
    Step plot of a Kaplan-Meier table (survival.kaplan_meier output),
    starting from S(0) = 1, with the pointwise confidence band.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 4))
    t = np.concatenate([[0.0], km.index.to_numpy(dtype=float)])
    s = np.concatenate([[1.0], km["survival"].to_numpy()])
    ax.step(t, s, where="post", color=color, lw=2, label=label)
    if ci and len(km):
        lo = np.concatenate([[1.0], km["lower"].to_numpy()])
        hi = np.concatenate([[1.0], km["upper"].to_numpy()])
        ax.fill_between(t, lo, hi, step="post", color=color, alpha=0.15)
    ax.set_ylim(0, 1.02)
    ax.set_xlabel("Time")
    ax.set_ylabel("S(t)")
    return ax


def plot_mc(estimates, truth=None, ax=None, color=CB, label=None, bins=40):
    """Histogram of a Monte Carlo sampling distribution with the true value."""
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 4))
    ax.hist(estimates, bins=bins, density=True, alpha=0.6, color=color,
            edgecolor="white", label=label)
    ax.axvline(np.mean(estimates), color=color, ls="--", lw=1.5)
    if truth is not None:
        ax.axvline(truth, color=CG, ls=":", lw=2, label=f"True = {truth:g}")
    ax.set_ylabel("Density")
    return ax


def plot_coefficients(models, labels, coef, ax=None, level_z=1.96):
    """
    Coefficient plot: one point estimate with +/- z*se whiskers per model.

    Parameters
    ----------
    models : list of dict
        Estimation results with beta, se and names.
    labels : list of str
    coef : str
        Name of the coefficient to compare.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 4))
    for i, (m, lab) in enumerate(zip(models, labels)):
        j = list(m["names"]).index(coef)
        b, s = m["beta"][j], m["se"][j]
        color = PALETTE[i % len(PALETTE)]
        ax.errorbar(b, i, xerr=level_z * s, fmt="o", color=color, capsize=4,
                    ms=7, lw=2)
    ax.set_yticks(range(len(labels)))
    ax.set_yticklabels(labels)
    ax.invert_yaxis()
    ax.set_xlabel(f"{coef} (95% CI)")
    return ax
