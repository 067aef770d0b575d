"""
Instrumental Variables (IV / 2SLS)

Implements two-stage least squares from scratch, including:
- First-stage partial F-statistic for instrument strength
- Correct 2SLS standard errors (residuals from actual X, not X_hat)
- Robust / clustered sandwich SEs for 2SLS
- Sargan over-identification test
- Durbin-Wu-Hausman (control function) endogeneity test
- Wald estimator for the just-identified case
"""

import numpy as np
from scipy import stats

from . import ols as _ols
from .covariance import vcov as _vcov, n_clusters
from .utils import add_const, default_names


def _as_2d(a):
    a = np.asarray(a, dtype=float)
    return a[:, None] if a.ndim == 1 else a


def _rss(X, y):
    b = np.linalg.lstsq(X, y, rcond=None)[0]
    e = y - X @ b
    return e @ e, b, e


def first_stage(Z, X_endog, n_excluded):
    """
    First stage of 2SLS: regress each endogenous regressor on all instruments.

    Parameters
    ----------
    Z : ndarray, shape (n, m)
        Full instrument matrix: exogenous regressors (with constant)
        followed by the `n_excluded` excluded instruments.
    X_endog : ndarray, shape (n,) or (n, p)
        Endogenous regressor(s).
    n_excluded : int
        Number of excluded instruments (the last columns of Z).

    Returns
    -------
    list of dict (one per endogenous regressor) with keys:
        X_hat     : fitted values
        gamma     : first-stage coefficients
        F_stat    : partial F-statistic of the excluded instruments
        F_pvalue  : its p-value
        partial_r2: share of the residual variance explained by the
                    excluded instruments
        residuals : first-stage residuals
    """
    Z = _as_2d(Z)
    X_endog = _as_2d(X_endog)
    n, m = Z.shape
    Z_inc = Z[:, :m - n_excluded]

    out = []
    for j in range(X_endog.shape[1]):
        x = X_endog[:, j]
        rss_u, gamma, e = _rss(Z, x)
        rss_r = _rss(Z_inc, x)[0] if Z_inc.shape[1] else x @ x
        F = ((rss_r - rss_u) / n_excluded) / (rss_u / (n - m))
        out.append(dict(
            X_hat=x - e,
            gamma=gamma,
            F_stat=F,
            F_pvalue=stats.f.sf(F, n_excluded, n - m),
            partial_r2=(rss_r - rss_u) / rss_r,
            residuals=e,
        ))
    return out


def estimate_2sls(y, X_exog, X_endog, Z_excluded, names=None,
                  cov_type="classical", clusters=None):
    """
    Full 2SLS estimation pipeline.

    Parameters
    ----------
    y : ndarray, shape (n,)
        Outcome.
    X_exog : ndarray, shape (n, k1)
        Included exogenous regressors, including the constant.
    X_endog : ndarray, shape (n,) or (n, p)
        Endogenous regressor(s).
    Z_excluded : ndarray, shape (n,) or (n, L), L >= p
        Excluded instruments.
    names : list of str, optional
        Labels for [exogenous..., endogenous...] coefficients.
    cov_type : str
        Covariance estimator, see covariance.vcov.
    clusters : array-like, optional
        Cluster labels for cov_type="cluster".

    Returns
    -------
    dict with keys:
        beta, se, vcov, tstat, pvalue : 2SLS inference
        se_naive    : SEs from second-stage residuals (the classic mistake)
        residuals   : correct residuals y - X @ beta
        first_stage : list of first-stage dicts
        sargan      : dict(stat, df, pvalue) or None if just identified
        ols_beta    : OLS (inconsistent) coefficients for comparison
        nobs, df_resid, names, cov_type
    """
    y = np.asarray(y, dtype=float)
    X_exog = _as_2d(X_exog)
    X_endog = _as_2d(X_endog)
    Z_excluded = _as_2d(Z_excluded)
    n = len(y)
    for label, arr in (("X_exog", X_exog), ("X_endog", X_endog),
                       ("Z_excluded", Z_excluded)):
        if arr.shape[0] != n:
            raise ValueError(f"{label} has {arr.shape[0]} rows, y has {n}")
    p, L = X_endog.shape[1], Z_excluded.shape[1]
    if L < p:
        raise ValueError(f"model is under-identified: {L} excluded instruments "
                         f"for {p} endogenous regressors")

    Z = np.column_stack([X_exog, Z_excluded])
    X = np.column_stack([X_exog, X_endog])
    k = X.shape[1]
    if n <= Z.shape[1]:
        raise ValueError(f"need more observations than instruments (n={n})")

    fs = first_stage(Z, X_endog, L)
    X_hat = np.column_stack([X_exog] + [f["X_hat"] for f in fs])

    bread = np.linalg.inv(X_hat.T @ X_hat)
    b_2sls = bread @ (X_hat.T @ y)

    # CORRECT residuals use actual X, not X_hat
    e_correct = y - X @ b_2sls
    V = _vcov(X_hat, e_correct, cov_type=cov_type, clusters=clusters,
              bread=bread)
    se = np.sqrt(np.diag(V))

    e_naive = y - X_hat @ b_2sls
    se_naive = np.sqrt(np.diag((e_naive @ e_naive) / (n - k) * bread))

    df_ref = n_clusters(clusters) - 1 if cov_type == "cluster" else n - k
    tstat = b_2sls / se

    sargan = None
    if L > p:
        rss_u, _, _ = _rss(Z, e_correct)
        centred = e_correct - e_correct.mean()
        r2 = 1.0 - rss_u / (centred @ centred)
        stat = n * r2
        sargan = dict(stat=stat, df=L - p, pvalue=stats.chi2.sf(stat, L - p))

    return dict(
        beta=b_2sls,
        se=se,
        vcov=V,
        tstat=tstat,
        pvalue=2 * stats.t.sf(np.abs(tstat), df_ref),
        se_naive=se_naive,
        residuals=e_correct,
        first_stage=fs,
        sargan=sargan,
        ols_beta=np.linalg.lstsq(X, y, rcond=None)[0],
        nobs=n,
        df_resid=df_ref,
        names=default_names(k, names),
        cov_type=cov_type,
    )


def durbin_wu_hausman(y, X_exog, X_endog, Z_excluded, cov_type="classical"):
    """
    Control-function test of exogeneity.

    Adds the first-stage residuals to the structural equation and tests
    that their coefficients are jointly zero. Rejection means OLS and
    2SLS differ significantly, i.e. the regressor is endogenous.

    Returns
    -------
    dict with keys: stat (F), df, pvalue, reject (at 5%)
    """
    X_exog = _as_2d(X_exog)
    X_endog = _as_2d(X_endog)
    Z_excluded = _as_2d(Z_excluded)
    Z = np.column_stack([X_exog, Z_excluded])
    fs = first_stage(Z, X_endog, Z_excluded.shape[1])
    V_hat = np.column_stack([f["residuals"] for f in fs])

    X_aug = np.column_stack([X_exog, X_endog, V_hat])
    res = _ols.estimate(X_aug, y, cov_type=cov_type)
    p = V_hat.shape[1]
    R = np.eye(X_aug.shape[1])[-p:]
    wt = _ols.wald_test(res, R)
    return dict(stat=wt["stat"], df=wt["df"], pvalue=wt["pvalue"],
                reject=wt["pvalue"] < 0.05)


def wald_estimator(y, X_endog, Z_excluded):
    """
    Wald (ratio) IV estimator for the just-identified case.

    beta_IV = Cov(y, Z) / Cov(X, Z)  =  Reduced Form / First Stage

    Parameters
    ----------
    y : ndarray, shape (n,)
    X_endog : ndarray, shape (n,)
    Z_excluded : ndarray, shape (n,)
        The excluded instrument (single variable, no constant).

    Returns
    -------
    dict with keys:
        beta_iv       : IV estimate
        reduced_form  : slope of y on Z
        first_stage   : slope of X on Z
    """
    Z = add_const(Z_excluded)
    b_rf = np.linalg.lstsq(Z, y, rcond=None)[0]
    b_fs = np.linalg.lstsq(Z, X_endog, rcond=None)[0]
    if np.isclose(b_fs[1], 0.0):
        raise ValueError("instrument has no first-stage relationship with X")
    return dict(
        beta_iv=b_rf[1] / b_fs[1],
        reduced_form=b_rf[1],
        first_stage=b_fs[1],
    )
