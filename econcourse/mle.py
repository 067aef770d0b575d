"""
Maximum Likelihood Estimation -- from scratch

Provides a generic MLE driver around scipy.optimize.minimize, standard
errors from the observed Fisher information (numerical Hessian), profile
likelihoods, likelihood-ratio tests, and the negative log-likelihoods
used throughout the course (normal linear model, logit, probit, Poisson).
"""

import warnings

import numpy as np
from scipy import stats
from scipy.optimize import minimize, approx_fprime
from scipy.special import gammaln

from .utils import default_names


def fit_mle(neg_log_lik, start, args=(), method="BFGS", track_path=False,
            names=None, nobs=None):
    """
    Generic MLE via scipy.optimize.minimize.

    Parameters
    ----------
    neg_log_lik : callable
        Negative log-likelihood function: f(beta, *args) -> float.
    start : ndarray
        Starting parameter values.
    args : tuple
        Extra arguments passed to neg_log_lik.
    method : str
        Optimization method (default BFGS).
    track_path : bool
        If True, record the optimization path.
    names : list of str, optional
        Parameter labels.
    nobs : int, optional
        Number of observations, needed for BIC.

    Returns
    -------
    dict with keys:
        beta      : MLE estimates
        se        : standard errors from observed Fisher info
        vcov      : inverse Hessian
        tstat, pvalue : Wald z statistics and normal p-values
        nll       : negative log-likelihood at optimum
        loglik    : log-likelihood at optimum
        aic, bic  : information criteria (bic is nan without nobs)
        hessian   : numerical Hessian at the MLE
        converged : bool
        path      : array of parameter vectors (if track_path)
    """
    start = np.atleast_1d(np.asarray(start, dtype=float))
    path = [start.copy()]
    callback = (lambda xk: path.append(np.array(xk).copy())) if track_path else None

    res = minimize(neg_log_lik, start, args=args, method=method,
                   callback=callback)
    if not res.success:
        warnings.warn(f"optimizer did not converge: {res.message}",
                      RuntimeWarning, stacklevel=2)

    beta = res.x
    k = len(beta)
    hess = numerical_hessian(neg_log_lik, beta, args=args)
    try:
        V = np.linalg.inv(hess)
    except np.linalg.LinAlgError:
        warnings.warn("Hessian is singular; standard errors set to nan",
                      RuntimeWarning, stacklevel=2)
        V = np.full((k, k), np.nan)
        se = np.full(k, np.nan)
    else:
        with np.errstate(invalid="ignore"):
            se = np.sqrt(np.diag(V))
        if np.any(np.isnan(se)):
            warnings.warn("Hessian is not positive definite at the optimum",
                          RuntimeWarning, stacklevel=2)

    z = beta / se
    nll = float(res.fun)
    result = dict(
        beta=beta,
        se=se,
        vcov=V,
        tstat=z,
        pvalue=2 * stats.norm.sf(np.abs(z)),
        nll=nll,
        loglik=-nll,
        aic=2 * nll + 2 * k,
        bic=2 * nll + k * np.log(nobs) if nobs else np.nan,
        hessian=hess,
        converged=bool(res.success),
        nobs=nobs,
        names=default_names(k, names),
    )
    if track_path:
        result["path"] = np.array(path)

    return result


def numerical_hessian(neg_log_lik, beta, args=(), eps=1e-5):
    """
    Numerical Hessian of the negative log-likelihood at beta.

    Forward differences of a forward-difference gradient, symmetrized.

    Returns
    -------
    H : ndarray, shape (k, k)
    """
    beta = np.asarray(beta, dtype=float)
    k = len(beta)
    H = np.array([
        approx_fprime(
            beta,
            lambda b, j=j: approx_fprime(b, neg_log_lik, eps, *args)[j],
            eps,
        )
        for j in range(k)
    ])
    return (H + H.T) / 2


def profile_likelihood(neg_log_lik, beta_mle, profile_idx, grid, args=(),
                       method="BFGS", level=0.95):
    """
    Compute the profile likelihood for a single parameter.

    For each value of beta[profile_idx] on the grid, maximizes
    the log-likelihood over all other parameters.

    Returns
    -------
    dict with keys:
        grid        : parameter values
        profile_ll  : profile log-likelihood at each grid point
        ci          : (lo, hi) likelihood-ratio interval at `level`
    """
    beta_mle = np.asarray(beta_mle, dtype=float)
    grid = np.asarray(grid, dtype=float)
    k = len(beta_mle)
    other_idx = [j for j in range(k) if j != profile_idx]

    profile_ll = np.empty(len(grid))
    for i, val in enumerate(grid):
        def _partial_nll(b_other, _val=val):
            b_full = np.empty(k)
            b_full[profile_idx] = _val
            b_full[other_idx] = b_other
            return neg_log_lik(b_full, *args)

        if other_idx:
            res = minimize(_partial_nll, beta_mle[other_idx], method=method,
                           options={"disp": False})
            profile_ll[i] = -res.fun
        else:
            profile_ll[i] = -_partial_nll(np.empty(0))

    # 95% CI: log-likelihood within chi2_1(level)/2 (1.92 at 95%) of maximum
    cutoff = stats.chi2.ppf(level, 1) / 2
    ll_max = profile_ll.max()
    in_ci = profile_ll >= (ll_max - cutoff)
    ci = (grid[in_ci].min(), grid[in_ci].max())

    return dict(grid=grid, profile_ll=profile_ll, ci=ci)


def log_likelihood_surface(neg_log_lik, beta_grid_0, beta_grid_1, args=()):
    """
    Compute the log-likelihood on a 2-d grid (for contour plots).

    Returns
    -------
    B0, B1 : meshgrid arrays
    LL : ndarray
        Log-likelihood values on the grid.
    """
    B0, B1 = np.meshgrid(beta_grid_0, beta_grid_1)
    LL = np.array([
        [-neg_log_lik(np.array([B0[i, j], B1[i, j]]), *args)
         for j in range(len(beta_grid_0))]
        for i in range(len(beta_grid_1))
    ])
    return B0, B1, LL


def lr_test(restricted, unrestricted, df):
    """
    Likelihood-ratio test: LR = 2 (ll_u - ll_r) ~ chi2(df).

    Parameters
    ----------
    restricted, unrestricted : dict
        fit_mle() results (need "loglik").
    df : int
        Number of restrictions.
    """
    stat = 2.0 * (unrestricted["loglik"] - restricted["loglik"])
    return dict(stat=stat, df=df, pvalue=stats.chi2.sf(max(stat, 0.0), df))


# ---------------------------------------------------------------------------
# Likelihood kernels
# ---------------------------------------------------------------------------

def nll_normal(theta, X, y):
    """Normal linear model; theta = [beta..., log(sigma)]."""
    beta, log_sigma = theta[:-1], theta[-1]
    r = y - X @ beta
    n = len(y)
    return (n * log_sigma + 0.5 * n * np.log(2 * np.pi)
            + 0.5 * (r @ r) * np.exp(-2 * log_sigma))


def logistic(z):
    """Logistic (sigmoid) CDF: 1 / (1 + exp(-z))."""
    return 1 / (1 + np.exp(-np.clip(z, -500, 500)))


def nll_logit(b, X, y):
    """Negative log-likelihood for logit."""
    eta = X @ b
    return np.sum(np.logaddexp(0.0, eta) - y * eta)


def nll_probit(b, X, y):
    """Negative log-likelihood for probit."""
    eta = X @ b
    return -np.sum(y * stats.norm.logcdf(eta) + (1 - y) * stats.norm.logcdf(-eta))


def nll_poisson(b, X, y):
    """Negative log-likelihood for Poisson regression with log link."""
    eta = X @ b
    return np.sum(np.exp(eta) - y * eta + gammaln(y + 1))


# ---------------------------------------------------------------------------
# Convenience wrappers
# ---------------------------------------------------------------------------

def _check_binary(y):
    if not np.all(np.isin(y, (0, 1))):
        raise ValueError("binary outcome must contain only 0 and 1")


def fit_logit(X, y, names=None, start=None):
    """
    Logit MLE via BFGS optimization.

    Returns
    -------
    dict from fit_mle() plus p_hat (predicted probabilities).
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    _check_binary(y)
    if start is None:
        start = np.zeros(X.shape[1])
    res = fit_mle(nll_logit, start, args=(X, y), names=names, nobs=len(y))
    res["p_hat"] = logistic(X @ res["beta"])
    return res


def fit_probit(X, y, names=None, start=None):
    """
    Probit MLE via BFGS optimization.

    Returns
    -------
    dict from fit_mle() plus p_hat (predicted probabilities).
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    _check_binary(y)
    if start is None:
        start = np.zeros(X.shape[1])
    res = fit_mle(nll_probit, start, args=(X, y), names=names, nobs=len(y))
    res["p_hat"] = stats.norm.cdf(X @ res["beta"])
    return res


def fit_poisson(X, y, names=None, start=None):
    """Poisson regression MLE; start defaults to log(mean(y)) intercept."""
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    if np.any(y < 0):
        raise ValueError("count outcome must be non-negative")
    if start is None:
        start = np.zeros(X.shape[1])
        start[0] = np.log(max(y.mean(), 1e-8))
    return fit_mle(nll_poisson, start, args=(X, y), names=names, nobs=len(y))


def fit_normal(X, y, names=None):
    """
    Normal linear model by MLE (the OLS coefficients, sigma^2 = e'e/n).

    The last parameter is log(sigma); `sigma` is added to the result.
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    start = np.zeros(X.shape[1] + 1)
    start[-1] = np.log(y.std() + 1e-8)
    k = X.shape[1]
    labels = default_names(k, names) + ["log_sigma"]
    res = fit_mle(nll_normal, start, args=(X, y), names=labels, nobs=len(y))
    res["sigma"] = float(np.exp(res["beta"][-1]))
    return res


def logit_ame(X, beta, coef_idx=1):
    """
    Average Marginal Effect for a logit model.

    AME = mean( beta_j * p_i * (1 - p_i) )
    """
    p = logistic(X @ beta)
    return np.mean(beta[coef_idx] * p * (1 - p))


def probit_ame(X, beta, coef_idx=1):
    """
    Average Marginal Effect for a probit model.

    AME = mean( beta_j * phi(X @ beta) )
    """
    return np.mean(beta[coef_idx] * stats.norm.pdf(X @ beta))
