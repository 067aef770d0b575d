"""
Data frame manipulation

Grouped summaries, dummy coding, reshaping between long and wide
layouts, winsorizing, balancing a panel and the within (demeaning)
transformation.
"""

import numpy as np
import pandas as pd


def group_summary(df, by, cols, stats=("mean", "std", "count")):
    """
    One row per group with `col_stat` columns.

    Parameters
    ----------
    df : pandas.DataFrame
    by : str or list of str
    cols : list of str
    stats : tuple of str
        Any aggregation name pandas understands.
    """
    cols = [cols] if isinstance(cols, str) else list(cols)
    out = df.groupby(by, observed=True)[cols].agg(list(stats))
    out.columns = [f"{c}_{s}" for c, s in out.columns]
    return out


def add_dummies(df, col, drop_first=True, prefix=None):
    """
    Append indicator columns for the levels of `col`.

    The original column is kept. With drop_first the lowest level is the
    omitted reference category.
    """
    dummies = pd.get_dummies(df[col], prefix=prefix or col,
                             drop_first=drop_first, dtype=float)
    return pd.concat([df, dummies], axis=1)


def to_long(df, id_cols, value_name="value", var_name="variable"):
    """Wide -> long: one row per (id, variable)."""
    id_cols = [id_cols] if isinstance(id_cols, str) else list(id_cols)
    return df.melt(id_vars=id_cols, var_name=var_name, value_name=value_name)


def to_wide(df, index, columns, values):
    """Long -> wide; duplicate (index, columns) pairs raise ValueError."""
    out = df.pivot(index=index, columns=columns, values=values)
    out.columns.name = None
    return out.reset_index()


def winsorize(x, lower=0.01, upper=0.99):
    """Clip a vector at its empirical `lower` and `upper` quantiles."""
    if not 0 <= lower < upper <= 1:
        raise ValueError("need 0 <= lower < upper <= 1")
    x = np.asarray(x, dtype=float)
    lo, hi = np.nanquantile(x, [lower, upper])
    return np.clip(x, lo, hi)


def balance_panel(df, unit, time):
    """Keep only units observed in every period that appears in the data."""
    n_periods = df[time].nunique()
    counts = df.groupby(unit)[time].nunique()
    keep = counts.index[counts == n_periods]
    return df[df[unit].isin(keep)].reset_index(drop=True)


def within_transform(df, cols, by):
    """Subtract group means of `cols` within `by` (fixed-effects demeaning)."""
    cols = [cols] if isinstance(cols, str) else list(cols)
    out = df.copy()
    means = df.groupby(by, observed=True)[cols].transform("mean")
    out[cols] = df[cols] - means
    return out
