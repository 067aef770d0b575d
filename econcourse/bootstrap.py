"""
Bootstrap Inference

Implements the nonparametric pairs bootstrap (and its cluster / block
variant) for computing standard errors and percentile confidence
intervals for any estimator.
"""

import warnings

import numpy as np

from .covariance import cluster_codes
from .utils import ols_fit


def _cluster_index(clusters):
    codes = cluster_codes(clusters)
    return [np.flatnonzero(codes == g) for g in range(codes.max() + 1)]


def bootstrap_statistic(data_X, data_y, estimator, n_boot=2000, seed=None,
                        clusters=None, level=0.95):
    """
    Nonparametric bootstrap for an arbitrary estimator.

    Parameters
    ----------
    data_X : ndarray, shape (n, k)
        Design matrix.
    data_y : ndarray, shape (n,)
        Outcome vector.
    estimator : callable
        Function (X, y) -> scalar estimate.
    n_boot : int
        Number of bootstrap replications.
    seed : int or None
        Random seed.
    clusters : array-like, optional
        Resample whole clusters instead of observations.
    level : float
        Coverage of the percentile interval.

    Returns
    -------
    dict with keys:
        boot_estimates : array of bootstrap estimates
        se             : bootstrap standard error
        ci_lo, ci_hi   : percentile CI
        mean           : mean of bootstrap distribution
        n_failed       : replications where the estimator raised
    """
    if n_boot < 2:
        raise ValueError("n_boot must be at least 2")
    rng = np.random.default_rng(seed)
    data_X = np.asarray(data_X)
    data_y = np.asarray(data_y)

    n = len(data_y)
    blocks = _cluster_index(clusters) if clusters is not None else None
    boots = np.empty(n_boot)
    for b in range(n_boot):
        if blocks is None:
            idx = rng.integers(0, n, n)
        else:
            picked = rng.integers(0, len(blocks), len(blocks))
            idx = np.concatenate([blocks[g] for g in picked])
        try:
            boots[b] = estimator(data_X[idx], data_y[idx])
        except (np.linalg.LinAlgError, ValueError):
            boots[b] = np.nan

    valid = boots[~np.isnan(boots)]
    n_failed = n_boot - len(valid)
    if n_failed:
        warnings.warn(f"{n_failed} of {n_boot} bootstrap replications failed "
                      "and were dropped", RuntimeWarning, stacklevel=2)
    if len(valid) < 2:
        raise ValueError("fewer than two successful bootstrap replications")
    tail = (1 - level) / 2 * 100
    ci = np.percentile(valid, [tail, 100 - tail])

    return dict(
        boot_estimates=valid,
        se=np.std(valid, ddof=1),
        ci_lo=ci[0],
        ci_hi=ci[1],
        mean=np.mean(valid),
        n_failed=n_failed,
    )


def bootstrap_ols_slope(X, y, n_boot=2000, coef_idx=1, seed=None,
                        clusters=None):
    """
    Bootstrap an OLS coefficient and compare with the analytic SE.

    Returns
    -------
    dict with keys:
        boot_estimates : array of bootstrapped coefficients
        se             : bootstrap SE
        ci_lo, ci_hi   : percentile 95% CI
        analytic_se    : analytic OLS SE for comparison
        analytic_ci    : analytic 95% CI [lo, hi]
        beta_hat       : point estimate from full sample
    """
    b_full, se_full, _, _ = ols_fit(X, y)

    def _ols_coef(Xb, yb):
        return ols_fit(Xb, yb)[0][coef_idx]

    bs = bootstrap_statistic(X, y, _ols_coef, n_boot=n_boot, seed=seed,
                             clusters=clusters)

    analytic_ci = [
        b_full[coef_idx] - 1.96 * se_full[coef_idx],
        b_full[coef_idx] + 1.96 * se_full[coef_idx],
    ]

    return dict(
        boot_estimates=bs["boot_estimates"],
        se=bs["se"],
        ci_lo=bs["ci_lo"],
        ci_hi=bs["ci_hi"],
        analytic_se=se_full[coef_idx],
        analytic_ci=analytic_ci,
        beta_hat=b_full[coef_idx],
    )


def unique_obs_fraction(n):
    """
    Theoretical fraction of unique observations in a bootstrap sample.

    P(observation included) = 1 - (1 - 1/n)^n  ->  1 - 1/e ~ 0.632
    """
    return 1 - (1 - 1 / n) ** n
