"""
Shared helpers used by every estimator module in the course.
"""

import numpy as np
import pandas as pd


def ols_fit(X, y):
    """
    OLS estimation via the normal equations.

    Parameters
    ----------
    X : ndarray, shape (n, k)
        Design matrix (should include a constant column if an intercept is desired).
    y : ndarray, shape (n,)
        Outcome vector.

    Returns
    -------
    b : ndarray, shape (k,)
        Coefficient estimates  beta_hat = (X'X)^{-1} X'y.
    se : ndarray, shape (k,)
        Homoskedastic standard errors.
    e : ndarray, shape (n,)
        Residuals  y - X @ b.
    s2 : float
        Estimated error variance  e'e / (n - k).
    """
    n, k = X.shape
    if n <= k:
        raise ValueError(f"need more observations than regressors (n={n}, k={k})")
    XtX_inv = np.linalg.inv(X.T @ X)
    b = XtX_inv @ (X.T @ y)
    e = y - X @ b
    s2 = (e @ e) / (n - k)
    se = np.sqrt(np.diag(s2 * XtX_inv))
    return b, se, e, s2


def add_const(x):
    """
    Prepend a column of ones (intercept) to the design matrix.

    Parameters
    ----------
    x : ndarray
        1-d array or 2-d matrix of regressors.

    Returns
    -------
    X : ndarray, shape (n, k+1)
        Design matrix with leading ones column.
    """
    x = np.asarray(x, dtype=float)
    x = x[:, None] if x.ndim == 1 else x
    return np.column_stack([np.ones(x.shape[0]), x])


def as_arrays(df, y, x, const=True):
    """
    Pull an outcome and regressors out of a DataFrame.

    Rows with a missing value in any of the used columns are dropped,
    the way R's model.frame does by default.

    Returns
    -------
    X : ndarray, shape (n, k)
    yv : ndarray, shape (n,)
    names : list of str
        Column names of X; the intercept is called "const".
    """
    x = [x] if isinstance(x, str) else list(x)
    used = df[[y] + x].dropna()
    X = used[x].to_numpy(dtype=float)
    names = list(x)
    if const:
        X = add_const(X)
        names = ["const"] + names
    return X, used[y].to_numpy(dtype=float), names


def check_lengths(**arrays):
    """Raise ValueError unless all arrays share the same first dimension."""
    sizes = {name: len(a) for name, a in arrays.items() if a is not None}
    if len(set(sizes.values())) > 1:
        detail = ", ".join(f"{k}={v}" for k, v in sizes.items())
        raise ValueError(f"length mismatch: {detail}")


def default_names(k, names=None):
    """Coefficient labels: the given names, or x0..x{k-1}."""
    if names is None:
        return [f"x{j}" for j in range(k)]
    names = list(names)
    if len(names) != k:
        raise ValueError(f"expected {k} names, got {len(names)}")
    return names


def to_array(x):
    """Coerce a Series / array to a float ndarray, keeping 2-d shape."""
    if isinstance(x, (pd.Series, pd.DataFrame)):
        return x.to_numpy(dtype=float)
    return np.asarray(x, dtype=float)
