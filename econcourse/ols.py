"""
Linear models -- Ordinary Least Squares

OLS estimation from scratch with a choice of covariance estimator,
Wald tests of linear restrictions, and a Monte Carlo demonstration
of omitted variable bias.
"""

import numpy as np
from scipy import stats

from .covariance import vcov as _vcov, n_clusters
from .utils import add_const, default_names


def estimate(X, y, names=None, cov_type="classical", clusters=None,
             maxlags=None):
    """
    OLS estimation: beta_hat = (X'X)^{-1} X'y.

    Parameters
    ----------
    X : ndarray, shape (n, k)
        Design matrix (include a constant column for intercept).
    y : ndarray, shape (n,)
        Outcome vector.
    names : list of str, optional
        Coefficient labels.
    cov_type : str
        Covariance estimator, see covariance.vcov.
    clusters, maxlags :
        Passed to covariance.vcov.

    Returns
    -------
    dict with keys:
        beta, se, vcov, tstat, pvalue : coefficient inference
        residuals, fitted, s2         : fit
        r2, adj_r2, fstat, f_pvalue   : goodness of fit / overall F test
        nobs, df_resid, names, cov_type
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    n, k = X.shape
    if len(y) != n:
        raise ValueError(f"y has length {len(y)}, X has {n} rows")
    if n <= k:
        raise ValueError(f"need more observations than regressors (n={n}, k={k})")

    bread = np.linalg.inv(X.T @ X)
    b = bread @ (X.T @ y)
    fitted = X @ b
    e = y - fitted
    s2 = (e @ e) / (n - k)
    V = _vcov(X, e, cov_type=cov_type, clusters=clusters, maxlags=maxlags,
              bread=bread)
    se = np.sqrt(np.diag(V))

    # Cluster inference uses G-1 reference degrees of freedom (Stata convention)
    df_ref = n_clusters(clusters) - 1 if cov_type == "cluster" else n - k
    tstat = b / se
    pvalue = 2 * stats.t.sf(np.abs(tstat), df_ref)

    has_const = bool(np.any(np.all(X == 1.0, axis=0)))
    centre = y.mean() if has_const else 0.0
    tss = np.sum((y - centre) ** 2)
    r2 = 1.0 - (e @ e) / tss
    df_model = k - 1 if has_const else k
    adj_r2 = 1.0 - (1.0 - r2) * (n - int(has_const)) / (n - k)

    result = dict(
        beta=b,
        se=se,
        vcov=V,
        tstat=tstat,
        pvalue=pvalue,
        residuals=e,
        fitted=fitted,
        s2=s2,
        r2=r2,
        adj_r2=adj_r2,
        nobs=n,
        df_resid=df_ref,
        names=default_names(k, names),
        cov_type=cov_type,
        fstat=np.nan,
        f_pvalue=np.nan,
    )

    if df_model > 0:
        slopes = [j for j in range(k) if not np.all(X[:, j] == 1.0)]
        R = np.eye(k)[slopes]
        wt = wald_test(result, R)
        result["fstat"] = wt["stat"]
        result["f_pvalue"] = wt["pvalue"]

    return result


def wald_test(result, R, q=None):
    """
    Wald test of the linear restrictions R beta = q (F form).

    F = (R b - q)' [R V R']^{-1} (R b - q) / J

    Parameters
    ----------
    result : dict
        Output of estimate() (needs beta, vcov, df_resid).
    R : ndarray, shape (J, k)
    q : ndarray, shape (J,), optional
        Defaults to zeros.

    Returns
    -------
    dict with keys: stat, df (J, df_resid), pvalue
    """
    R = np.atleast_2d(np.asarray(R, dtype=float))
    J = R.shape[0]
    q = np.zeros(J) if q is None else np.atleast_1d(np.asarray(q, dtype=float))
    if R.shape[1] != len(result["beta"]):
        raise ValueError(f"R has {R.shape[1]} columns, model has "
                         f"{len(result['beta'])} coefficients")
    diff = R @ result["beta"] - q
    middle = np.linalg.inv(R @ result["vcov"] @ R.T)
    F = float(diff @ middle @ diff) / J
    df2 = result["df_resid"]
    return dict(stat=F, df=(J, df2), pvalue=stats.f.sf(F, J, df2))


def predict(result, X):
    """Fitted values X @ beta_hat for a new design matrix."""
    return np.asarray(X, dtype=float) @ result["beta"]


def ovb_formula(beta_omitted, cov_included_omitted, var_included):
    """
    Compute the omitted variable bias.

    bias = beta_omitted * Cov(included, omitted) / Var(included)

    Returns
    -------
    float
        The OVB -- additive bias in the short-regression coefficient.
    """
    return beta_omitted * cov_included_omitted / var_included


def monte_carlo_ovb(n, n_sims, rho, beta_schooling=2.5, beta_ability=1.5,
                    sigma_eps=3.0, seed=None):
    """
    Monte Carlo demonstration of omitted variable bias.

    Generates data from the DGP:
        schooling = 12 + rho * ability + noise
        wage      = beta_schooling * schooling + beta_ability * ability + eps

    and estimates both the short regression (schooling only) and the long
    regression (schooling + ability) across `n_sims` replications.

    Returns
    -------
    dict with keys:
        mc_short : array of short-regression slope estimates
        mc_long  : array of long-regression slope estimates
        bias     : mean(mc_short) - beta_schooling
        predicted_bias : ovb_formula() evaluated at the DGP moments
    """
    if n_sims < 1:
        raise ValueError("n_sims must be positive")
    rng = np.random.default_rng(seed)

    v_sd = np.sqrt(max(4 - rho ** 2, 0.01))
    mc_short = np.empty(n_sims)
    mc_long = np.empty(n_sims)

    for sim in range(n_sims):
        ability = rng.normal(0, 1, n)
        schooling = 12 + rho * ability + rng.normal(0, v_sd, n)
        wage = (beta_schooling * schooling
                + beta_ability * ability
                + rng.normal(0, sigma_eps, n))
        X_short = add_const(schooling)
        X_long = add_const(np.column_stack([schooling, ability]))
        mc_short[sim] = np.linalg.lstsq(X_short, wage, rcond=None)[0][1]
        mc_long[sim] = np.linalg.lstsq(X_long, wage, rcond=None)[0][1]

    return dict(
        mc_short=mc_short,
        mc_long=mc_long,
        bias=np.mean(mc_short) - beta_schooling,
        predicted_bias=ovb_formula(beta_ability, rho, rho ** 2 + v_sd ** 2),
    )
