"""Chapter 8: formatted regression tables."""

import os

import matplotlib.pyplot as plt

from .. import datasets, iv, ols, tables
from ..book import Section
from ..plotting import plot_coefficients, savefig, use_style
from ..utils import as_arrays

TITLE = "Chapter 8: Regression Tables"

TEXT = """\
Results are communicated in tables: one column per specification,
coefficients with standard errors in parentheses underneath, stars for
conventional significance levels, and the sample size and fit at the
bottom. Building the table from the estimation results, rather than by
copying numbers, is what keeps a paper reproducible.

regression_table(models) lines up coefficients by name across models;
a coefficient absent from a specification is left blank. The same table
renders as text (for the console), Markdown (for notes) and LaTeX (for
the paper). Always say which standard errors are reported.
"""


def run(outdir, seed=42):
    use_style()
    df = datasets.simulate_wages(n=2000, seed=seed)
    df["experience2"] = df["experience"] ** 2

    specs = [["schooling"],
             ["schooling", "experience", "experience2"],
             ["schooling", "experience", "experience2", "ability"]]
    models = []
    for cols in specs:
        X, y, names = as_arrays(df, "log_wage", cols)
        models.append(ols.estimate(X, y, names=names, cov_type="HC1"))

    W, y, wnames = as_arrays(df, "log_wage", ["experience", "experience2"])
    models.append(iv.estimate_2sls(y, W, df["schooling"], df["distance"],
                                   names=wnames + ["schooling"], cov_type="HC1"))

    labels = {"schooling": "Schooling", "experience": "Experience",
              "experience2": "Experience sq.", "ability": "Ability",
              "const": "Constant"}
    table = tables.regression_table(
        models, model_names=["(1) OLS", "(2) OLS", "(3) OLS", "(4) 2SLS"],
        coef_names=labels, digits=4, stats=("nobs", "r2", "adj_r2"),
    )
    text_table = tables.to_text(table)
    print("[tables] Dependent variable: log wage")
    print(text_table)

    os.makedirs(outdir, exist_ok=True)
    for ext, render in (("md", tables.to_markdown), ("tex", tables.to_latex)):
        path = os.path.join(outdir, f"table08_wages.{ext}")
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(render(table))
        print(f"[tables] wrote {path}")

    desc = tables.summary_statistics(df, ["log_wage", "schooling", "experience",
                                          "distance"])

    text = TEXT + """
Descriptive statistics
""" + desc.to_string() + """

Dependent variable: log wage. HC1 robust standard errors.
""" + text_table

    fig, ax = plt.subplots(figsize=(7, 3.5))
    plot_coefficients(models, ["(1) OLS", "(2) OLS", "(3) OLS", "(4) 2SLS"],
                      "schooling", ax=ax)
    ax.axvline(df.attrs["true_return"], color="k", ls=":", lw=1.5)
    ax.set_title("Return to schooling across specifications")
    fig.tight_layout()
    figure = savefig(fig, os.path.join(outdir, "fig08_tables.png"))
    return Section(TITLE, text, figure)
