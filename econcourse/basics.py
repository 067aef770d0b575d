"""
Object and vector basics

Small helpers that mirror the first week of the course: summarizing a
vector, standardizing it, lags and differences, frequency tables and
binning a continuous variable.
"""

import numpy as np
import pandas as pd

SUMMARY_INDEX = ["Min", "1st Qu.", "Median", "Mean", "3rd Qu.", "Max", "NA's"]


def summary(x):
    """
    Five-number summary plus the mean and the number of missing values.

    Quartiles use linear interpolation (R's type 7). NaNs are excluded
    from the statistics and counted in "NA's".
    """
    x = np.asarray(x, dtype=float)
    missing = np.isnan(x)
    v = x[~missing]
    if len(v) == 0:
        stats = [np.nan] * 6
    else:
        q = np.quantile(v, [0.0, 0.25, 0.5, 0.75, 1.0])
        stats = [q[0], q[1], q[2], v.mean(), q[3], q[4]]
    return pd.Series(stats + [int(missing.sum())], index=SUMMARY_INDEX,
                     dtype=float)


def standardize(x, ddof=1):
    """z-scores (x - mean) / sd, ignoring NaNs in the moments."""
    x = np.asarray(x, dtype=float)
    sd = np.nanstd(x, ddof=ddof)
    if not sd > 0:
        raise ValueError("cannot standardize a constant vector")
    return (x - np.nanmean(x)) / sd


def lag(x, k=1):
    """
    Shift a vector by k positions; vacated positions become NaN.

    Positive k lags (x[t-k]); negative k leads (x[t+|k|]).
    """
    x = np.asarray(x, dtype=float)
    out = np.full_like(x, np.nan)
    if k == 0:
        return x.copy()
    if abs(k) >= len(x):
        return out
    if k > 0:
        out[k:] = x[:-k]
    else:
        out[:k] = x[-k:]
    return out


def diff(x, k=1):
    """x[t] - x[t-k], NaN where the lag is undefined."""
    return np.asarray(x, dtype=float) - lag(x, k)


def tabulate(x):
    """
    Frequency table sorted by value; missing values get a NaN row last.
    """
    counts = pd.Series(x).value_counts(dropna=False)
    return counts.sort_index(na_position="last").rename("count")


def cut(x, breaks, right=True):
    """Interval label of every value, e.g. "(0, 10]" (NaN outside the breaks)."""
    return pd.cut(pd.Series(x), bins=breaks, right=right)
