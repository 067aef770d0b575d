"""
Robust covariance matrices for linear estimators.

Implements the sandwich family from scratch:

    V = (X'X)^{-1} * meat * (X'X)^{-1} * correction

  classical : s^2 (X'X)^{-1}
  HC0       : meat = sum_i e_i^2 x_i x_i'                      (White 1980)
  HC1       : HC0 * n/(n-k)                                   (Stata's ", robust")
  HC2       : e_i^2 / (1 - h_ii)
  HC3       : e_i^2 / (1 - h_ii)^2                            (MacKinnon-White 1985)
  cluster   : meat = sum_g (X_g' e_g)(X_g' e_g)'  * G/(G-1) * (n-1)/(n-k)
  HAC       : Newey-West (1987) with Bartlett weights

plus the Breusch-Pagan test and an R-style coefficient table.
"""

import numpy as np
import pandas as pd
from scipy import stats

from .utils import ols_fit

COV_TYPES = ("classical", "HC0", "HC1", "HC2", "HC3", "cluster", "HAC")


def newey_west_lags(n):
    """Default Newey-West truncation lag: floor(4 * (n/100)^(2/9))."""
    return int(np.floor(4 * (n / 100.0) ** (2.0 / 9.0)))


def _leverage(X, bread):
    # h_ii = x_i' (X'X)^{-1} x_i without forming the n x n hat matrix
    return np.einsum("ij,jk,ik->i", X, bread, X)


def cluster_codes(clusters):
    """Integer codes 0..G-1 for cluster labels; missing labels are rejected."""
    labels = pd.Series(clusters).reset_index(drop=True)
    if labels.isna().any():
        raise ValueError(f"clusters contain {int(labels.isna().sum())} missing "
                         "labels")
    return labels.astype("category").cat.codes.to_numpy()


def _cluster_meat(scores, clusters):
    groups = cluster_codes(clusters)
    G = groups.max() + 1
    S = np.zeros((G, scores.shape[1]))
    np.add.at(S, groups, scores)
    return S.T @ S, G


def _hac_meat(scores, maxlags):
    meat = scores.T @ scores
    for lag in range(1, maxlags + 1):
        w = 1.0 - lag / (maxlags + 1.0)
        gamma = scores[lag:].T @ scores[:-lag]
        meat += w * (gamma + gamma.T)
    return meat


def vcov(X, residuals, cov_type="HC1", clusters=None, maxlags=None, bread=None):
    """
    Covariance matrix of a linear estimator.

    Parameters
    ----------
    X : ndarray, shape (n, k)
        Design matrix. For 2SLS pass the projected design X_hat.
    residuals : ndarray, shape (n,)
        Residuals (for 2SLS, computed from the actual regressors).
    cov_type : str
        One of "classical", "HC0", "HC1", "HC2", "HC3", "cluster", "HAC".
    clusters : array-like, shape (n,), optional
        Cluster labels; required for cov_type="cluster".
    maxlags : int, optional
        Truncation lag for HAC; defaults to newey_west_lags(n).
    bread : ndarray, shape (k, k), optional
        Precomputed (X'X)^{-1}.

    Returns
    -------
    V : ndarray, shape (k, k)
    """
    X = np.asarray(X, dtype=float)
    e = np.asarray(residuals, dtype=float)
    n, k = X.shape
    if len(e) != n:
        raise ValueError(f"residuals has length {len(e)}, X has {n} rows")
    if cov_type not in COV_TYPES:
        raise ValueError(f"unknown cov_type {cov_type!r}; expected one of {COV_TYPES}")
    if n <= k:
        raise ValueError(f"need more observations than regressors (n={n}, k={k})")
    if bread is None:
        bread = np.linalg.inv(X.T @ X)

    if cov_type == "classical":
        return (e @ e) / (n - k) * bread

    if cov_type in ("HC0", "HC1"):
        meat = (X.T * e ** 2) @ X
        V = bread @ meat @ bread
        return V * (n / (n - k)) if cov_type == "HC1" else V

    if cov_type in ("HC2", "HC3"):
        h = _leverage(X, bread)
        power = 1 if cov_type == "HC2" else 2
        omega = e ** 2 / (1.0 - h) ** power
        return bread @ ((X.T * omega) @ X) @ bread

    scores = X * e[:, None]
    if cov_type == "cluster":
        if clusters is None:
            raise ValueError("cov_type='cluster' requires clusters")
        if len(clusters) != n:
            raise ValueError(f"clusters has length {len(clusters)}, X has {n} rows")
        meat, G = _cluster_meat(scores, clusters)
        if G < 2:
            raise ValueError("cluster-robust covariance needs at least two clusters")
        # Finite-sample correction: G/(G-1) * (N-1)/(N-K)
        dof_corr = (G / (G - 1)) * ((n - 1) / (n - k))
        return bread @ meat @ bread * dof_corr

    # HAC
    L = newey_west_lags(n) if maxlags is None else int(maxlags)
    if L < 0 or L >= n:
        raise ValueError(f"maxlags must be in [0, {n - 1}], got {L}")
    return bread @ _hac_meat(scores, L) @ bread * (n / (n - k))


def robust_se(X, residuals, cov_type="HC1", **kwargs):
    """Standard errors from vcov(): sqrt of the diagonal."""
    return np.sqrt(np.diag(vcov(X, residuals, cov_type=cov_type, **kwargs)))


def n_clusters(clusters):
    return int(cluster_codes(clusters).max() + 1)


def breusch_pagan(X, residuals, alpha=0.05):
    """
    Breusch-Pagan (Koenker) test for heteroskedasticity.

    Regresses squared OLS residuals on X. Under H0 (homoskedasticity)
    LM = n * R^2 of the auxiliary regression is chi2 with k-1 df.

    Parameters
    ----------
    X : ndarray, shape (n, k)
        Design matrix used in the original regression (with constant).
    residuals : ndarray, shape (n,)
        OLS residuals.

    Returns
    -------
    dict with keys:
        lm, lm_pvalue : LM statistic and chi2 p-value
        fstat, f_pvalue : F form of the same test
        df : number of slope regressors
        reject : bool, True if lm_pvalue < alpha
    """
    n, k = X.shape
    if k < 2:
        raise ValueError("Breusch-Pagan needs at least one regressor besides the constant")
    esq = np.asarray(residuals, dtype=float) ** 2
    _, _, u, _ = ols_fit(X, esq)
    tss = np.sum((esq - esq.mean()) ** 2)
    r2 = 1.0 - (u @ u) / tss
    df = k - 1
    lm = n * r2
    fstat = (r2 / df) / ((1.0 - r2) / (n - k))
    lm_p = stats.chi2.sf(lm, df)
    return dict(
        lm=lm,
        lm_pvalue=lm_p,
        fstat=fstat,
        f_pvalue=stats.f.sf(fstat, df, n - k),
        df=df,
        reject=lm_p < alpha,
    )


def coef_table(beta, V, names=None, df=None):
    """
    Coefficient table in the layout of R's summary.lm / lmtest::coeftest.

    Parameters
    ----------
    beta : ndarray, shape (k,)
    V : ndarray, shape (k, k)
        Covariance matrix of beta.
    names : list of str, optional
    df : int, optional
        Residual degrees of freedom for the t reference; normal if None.

    Returns
    -------
    pandas.DataFrame
    """
    beta = np.asarray(beta, dtype=float)
    se = np.sqrt(np.diag(V))
    t = beta / se
    if df is None:
        p = 2 * stats.norm.sf(np.abs(t))
        tcol, pcol = "z value", "Pr(>|z|)"
    else:
        p = 2 * stats.t.sf(np.abs(t), df)
        tcol, pcol = "t value", "Pr(>|t|)"
    index = names if names is not None else [f"x{j}" for j in range(len(beta))]
    return pd.DataFrame(
        {"Estimate": beta, "Std. Error": se, tcol: t, pcol: p},
        index=index,
    )
