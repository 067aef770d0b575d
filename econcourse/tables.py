"""
Formatted regression tables

Side-by-side model comparison tables in the style of stargazer /
modelsummary: coefficient estimates with significance stars, standard
errors in parentheses underneath, and summary statistics at the bottom.
Tables are plain pandas DataFrames of strings and can be rendered as
text, Markdown or LaTeX.
"""

import re

import numpy as np
import pandas as pd
from scipy.stats import norm

DEFAULT_STARS = (0.10, 0.05, 0.01)

STAT_LABELS = {
    "nobs": "Observations",
    "r2": "R2",
    "adj_r2": "Adjusted R2",
    "fstat": "F statistic",
    "loglik": "Log likelihood",
    "aic": "AIC",
    "bic": "BIC",
    "n_events": "Events",
}

_INT_STATS = ("nobs", "n_events")


def _star(p, stars):
    thresholds = sorted(stars, reverse=True)
    return "*" * sum(p < t for t in thresholds)


def _model_pvalues(model):
    if model.get("pvalue") is not None:
        return np.asarray(model["pvalue"], dtype=float)
    z = np.asarray(model["beta"], dtype=float) / np.asarray(model["se"], dtype=float)
    return 2 * norm.sf(np.abs(z))


def _star_note(stars):
    parts = [f"{'*' * (i + 1)} p<{t:g}"
             for i, t in enumerate(sorted(stars, reverse=True))]
    return "Note: " + "; ".join(reversed(parts))


def regression_table(models, model_names=None, coef_names=None, digits=3,
                     stars=DEFAULT_STARS, stats=("nobs", "r2")):
    """
    Build a side-by-side regression table.

    Parameters
    ----------
    models : list of dict
        Estimation results; each needs "beta" and "se", and may carry
        "names", "pvalue" and any of the summary statistics.
    model_names : list of str, optional
        Column headers; default "(1)", "(2)", ...
    coef_names : list or dict, optional
        Coefficients to show, in order. A dict maps raw names to display
        labels. Default: every coefficient in order of first appearance.
    digits : int
    stars : tuple of float
        p-value thresholds, one star per threshold passed.
    stats : tuple of str
        Summary statistics rows (keys of STAT_LABELS).

    Returns
    -------
    pandas.DataFrame of strings. table.attrs holds "note" (star legend)
    and "n_coef_rows" (rows before the summary statistics).
    """
    if not models:
        raise ValueError("need at least one model")
    if model_names is None:
        model_names = [f"({i + 1})" for i in range(len(models))]
    if len(model_names) != len(models):
        raise ValueError(f"{len(model_names)} model names for {len(models)} models")

    parsed = []
    for m in models:
        beta = np.atleast_1d(np.asarray(m["beta"], dtype=float))
        se = np.atleast_1d(np.asarray(m["se"], dtype=float))
        names = list(m.get("names") or [f"x{j}" for j in range(len(beta))])
        if not (len(names) == len(beta) == len(se)):
            raise ValueError("model names, beta and se have different lengths")
        p = _model_pvalues(m)
        parsed.append({n: (b, s, pv) for n, b, s, pv in zip(names, beta, se, p)})

    if coef_names is None:
        order = []
        for coefs in parsed:
            order.extend(n for n in coefs if n not in order)
        labels = {n: n for n in order}
    elif isinstance(coef_names, dict):
        labels = dict(coef_names)
    else:
        labels = {n: n for n in coef_names}

    fmt = f"{{:.{digits}f}}"
    rows, index = [], []
    for raw, label in labels.items():
        est_row, se_row = [], []
        for coefs in parsed:
            if raw in coefs:
                b, s, pv = coefs[raw]
                est_row.append(fmt.format(b) + _star(pv, stars))
                se_row.append("(" + fmt.format(s) + ")")
            else:
                est_row.append("")
                se_row.append("")
        rows.extend([est_row, se_row])
        index.extend([label, ""])
    n_coef_rows = len(rows)

    for key in stats:
        if key not in STAT_LABELS:
            raise ValueError(f"unknown statistic {key!r}")
        row = []
        for m in models:
            val = m.get(key)
            if val is None or (isinstance(val, float) and np.isnan(val)):
                row.append("")
            elif key in _INT_STATS:
                row.append(f"{int(val):,}")
            else:
                row.append(fmt.format(val))
        rows.append(row)
        index.append(STAT_LABELS[key])

    table = pd.DataFrame(rows, index=index, columns=list(model_names))
    table.attrs["note"] = _star_note(stars)
    table.attrs["n_coef_rows"] = n_coef_rows
    return table


def to_text(table):
    """Plain-text rendering with the star legend underneath."""
    body = table.to_string()
    width = max(len(line) for line in body.splitlines())
    rule = "=" * width
    note = table.attrs.get("note", "")
    return "\n".join([rule, body, rule, note]).rstrip() + "\n"


def to_markdown(table):
    """GitHub-flavoured Markdown pipe table."""
    header = "| | " + " | ".join(str(c) for c in table.columns) + " |"
    align = "|:---|" + "|".join(":---:" for _ in table.columns) + "|"
    lines = [header, align]
    for label, row in table.iterrows():
        lines.append(f"| {label} | " + " | ".join(row.astype(str)) + " |")
    note = table.attrs.get("note")
    if note:
        lines.extend(["", note])
    return "\n".join(lines) + "\n"


def _latex_cell(cell):
    m = re.match(r"^(.*?)(\*+)$", cell)
    if m:
        return f"{m.group(1)}$^{{{m.group(2)}}}$"
    return cell.replace("%", r"\%").replace("_", r"\_")


def to_latex(table, caption=None, label=None):
    """LaTeX table (booktabs-free, plain \\hline rules)."""
    n_cols = len(table.columns)
    n_coef_rows = table.attrs.get("n_coef_rows", len(table))
    lines = [r"\begin{table}[!htbp] \centering"]
    if caption:
        lines.append(rf"\caption{{{caption}}}")
    if label:
        lines.append(rf"\label{{{label}}}")
    lines.append(r"\begin{tabular}{l" + "c" * n_cols + "}")
    lines.append(r"\hline")
    lines.append(" & " + " & ".join(_latex_cell(str(c)) for c in table.columns)
                 + r" \\")
    lines.append(r"\hline")
    for i, (name, row) in enumerate(table.iterrows()):
        if i == n_coef_rows and i < len(table):
            lines.append(r"\hline")
        cells = [_latex_cell(str(name))] + [_latex_cell(str(v)) for v in row]
        lines.append(" & ".join(cells) + r" \\")
    lines.append(r"\hline")
    note = table.attrs.get("note")
    if note:
        lines.append(rf"\multicolumn{{{n_cols + 1}}}{{r}}{{\footnotesize "
                     rf"{note.replace('*', '$^*$').replace('<', '$<$')}}} \\")
    lines.append(r"\end{tabular}")
    lines.append(r"\end{table}")
    return "\n".join(lines) + "\n"


def summary_statistics(df, cols=None, digits=2):
    """
    Descriptive statistics table: N, Mean, SD, Min, Max per variable.

    Missing values are excluded column by column.
    """
    cols = list(df.columns) if cols is None else list(cols)
    out = pd.DataFrame(
        {
            "N": [int(df[c].notna().sum()) for c in cols],
            "Mean": [df[c].mean() for c in cols],
            "SD": [df[c].std() for c in cols],
            "Min": [df[c].min() for c in cols],
            "Max": [df[c].max() for c in cols],
        },
        index=cols,
    )
    return out.round(digits)
