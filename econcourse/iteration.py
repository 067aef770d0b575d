"""
Iteration idioms

The loops a course in a vectorized language keeps coming back to:
apply a function over a collection and simplify the result, split a data
frame by group and combine, build a parameter grid, and repeat a random
experiment.
"""

import itertools

import numpy as np
import pandas as pd


def _combine(results, keys=None):
    first = results[0] if results else None
    if isinstance(first, (dict, pd.Series)):
        return pd.DataFrame([dict(r) for r in results], index=keys)
    out = np.asarray(results)
    return out if keys is None else pd.Series(out, index=keys)


def sapply(items, func):
    """
    Apply `func` to every item and simplify.

    Scalars are collected into an ndarray; dicts or Series into a
    DataFrame with one row per item.
    """
    return _combine([func(item) for item in items])


def by_group(df, by, func):
    """
    Split-apply-combine: func(sub_df) for every group of `by`.

    Returns a DataFrame (func returns dict / Series) or a Series (func
    returns a scalar) indexed by the group keys, in sorted key order.
    """
    keys, results = [], []
    for key, sub in df.groupby(by, sort=True, observed=True):
        keys.append(key)
        results.append(func(sub))
    if not results:
        return pd.DataFrame()
    if isinstance(by, str):
        index = pd.Index(keys, name=by)
    else:
        index = pd.MultiIndex.from_tuples(keys, names=list(by))
    return _combine(results, keys=index)


def expand_grid(**axes):
    """
    Cartesian product of named value lists, like R's expand.grid.

    Row order follows itertools.product: the last axis varies fastest.
    """
    names = list(axes)
    rows = list(itertools.product(*(list(axes[n]) for n in names)))
    return pd.DataFrame(rows, columns=names)


def replicate(n, func, seed=None):
    """
    Call func(rng) n times with a single numpy Generator and stack.

    Same simplification rules as sapply().
    """
    if n < 1:
        raise ValueError("n must be positive")
    rng = np.random.default_rng(seed)
    return _combine([func(rng) for _ in range(n)])
