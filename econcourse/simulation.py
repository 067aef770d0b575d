"""
Monte Carlo simulation

A generic driver for studying the sampling distribution of an estimator:
draw data from a known DGP, estimate, repeat, and summarize bias, spread,
RMSE and confidence-interval coverage. A grid variant runs the same
experiment over a table of design parameters.
"""

import warnings

import numpy as np
import pandas as pd
from scipy import stats


def _split(out):
    if isinstance(out, tuple):
        est, se = out
        return float(est), float(se)
    return float(out), np.nan


def monte_carlo(dgp, estimator, n_sims, truth=None, seed=None, level=0.95):
    """
    Run a Monte Carlo experiment.

    Parameters
    ----------
    dgp : callable
        dgp(rng) -> data, with rng a numpy Generator.
    estimator : callable
        estimator(data) -> estimate, or (estimate, se).
    n_sims : int
        Number of replications.
    truth : float, optional
        True parameter value; enables bias, RMSE and coverage.
    seed : int or None
    level : float
        Nominal coverage of the normal confidence interval.

    Returns
    -------
    dict with keys:
        estimates : array of estimates
        ses       : array of standard errors (nan if not returned)
        mean, sd  : moments of the sampling distribution
        bias, rmse: relative to truth (nan without truth)
        coverage  : share of intervals est +/- z*se covering truth, over
                    the replications with a finite se (nan without truth
                    or standard errors)
        n_failed  : replications dropped because the estimator failed
        n_se_missing : kept replications whose se is not finite; they
                    count toward bias and RMSE but not coverage
    """
    if n_sims < 1:
        raise ValueError("n_sims must be positive")
    rng = np.random.default_rng(seed)

    est = np.full(n_sims, np.nan)
    ses = np.full(n_sims, np.nan)
    for sim in range(n_sims):
        data = dgp(rng)
        try:
            est[sim], ses[sim] = _split(estimator(data))
        except (np.linalg.LinAlgError, ValueError):
            continue

    ok = ~np.isnan(est)
    n_failed = int(n_sims - ok.sum())
    if n_failed:
        warnings.warn(f"{n_failed} of {n_sims} replications failed and were "
                      "dropped", RuntimeWarning, stacklevel=2)
    if not ok.any():
        raise ValueError("every replication failed")
    est, ses = est[ok], ses[ok]

    bias = rmse = coverage = np.nan
    finite = np.isfinite(ses)
    n_se_missing = int((~finite).sum())
    if truth is not None:
        bias = est.mean() - truth
        rmse = np.sqrt(np.mean((est - truth) ** 2))
        if finite.any():
            z = stats.norm.ppf((1 + level) / 2)
            coverage = np.mean(np.abs(est[finite] - truth) <= z * ses[finite])

    return dict(
        estimates=est,
        ses=ses,
        mean=est.mean(),
        sd=est.std(ddof=1) if len(est) > 1 else np.nan,
        bias=bias,
        rmse=rmse,
        coverage=coverage,
        n_failed=n_failed,
        n_se_missing=n_se_missing,
    )


def monte_carlo_grid(make_dgp, estimator, grid, n_sims, truth=None, seed=None):
    """
    Run monte_carlo() at every row of a design grid.

    Parameters
    ----------
    make_dgp : callable
        make_dgp(**row) -> dgp(rng), built from one row of the grid.
    estimator : callable
    grid : pandas.DataFrame
        One design point per row (see iteration.expand_grid).
    truth : float or callable, optional
        Constant truth, or truth(**row).
    seed : int or None
        Design point i uses seed + i so points are independent and
        reproducible.

    Returns
    -------
    pandas.DataFrame: the grid plus mean, sd, bias, rmse, coverage columns.
    """
    rows = []
    for i, point in enumerate(grid.to_dict("records")):
        t = truth(**point) if callable(truth) else truth
        s = None if seed is None else seed + i
        res = monte_carlo(make_dgp(**point), estimator, n_sims, truth=t, seed=s)
        rows.append({k: res[k] for k in ("mean", "sd", "bias", "rmse", "coverage")})
    return pd.concat([grid.reset_index(drop=True), pd.DataFrame(rows)], axis=1)


def rejection_rate(pvalues, alpha=0.05):
    """Share of p-values below alpha: size under H0, power under H1."""
    pvalues = np.asarray(pvalues, dtype=float)
    return float(np.mean(pvalues < alpha))
