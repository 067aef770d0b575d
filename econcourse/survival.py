"""
Survival analysis -- duration data with right censoring

Nonparametric estimators (Kaplan-Meier, Nelson-Aalen, a piecewise-constant
hazard / life table), parametric duration models fitted by maximum
likelihood (exponential, Weibull proportional hazards), the Cox
proportional hazards model via its partial likelihood, and the log-rank
test.

Conventions: `time` is the observed duration (event or censoring time),
`event` is 1 for an observed failure and 0 for a censored spell. At a tied
time, failures are taken to happen before censorings, so a spell censored
at t is still in the risk set at t.
"""

import numpy as np
import pandas as pd
from scipy import stats

from .mle import fit_mle
from .utils import default_names


def _check_survival(time, event):
    time = np.asarray(time, dtype=float)
    event = np.asarray(event, dtype=float)
    if time.shape != event.shape or time.ndim != 1:
        raise ValueError(f"time and event must be 1-d arrays of equal length "
                         f"(got {time.shape} and {event.shape})")
    if len(time) == 0:
        raise ValueError("no observations")
    if np.any(~np.isfinite(time)) or np.any(time <= 0):
        raise ValueError("time must be positive and finite")
    if not np.all(np.isin(event, (0, 1))):
        raise ValueError("event must contain only 0 (censored) and 1 (failure)")
    return time, event


def _risk_counts(time, event):
    """Distinct failure times with number at risk and number of failures."""
    t_event = np.unique(time[event == 1])
    t_sorted = np.sort(time)
    n_risk = len(time) - np.searchsorted(t_sorted, t_event, side="left")
    fail_sorted = np.sort(time[event == 1])
    n_event = (np.searchsorted(fail_sorted, t_event, side="right")
               - np.searchsorted(fail_sorted, t_event, side="left"))
    return t_event, n_risk.astype(float), n_event.astype(float)


def kaplan_meier(time, event, conf_level=0.95):
    """
    Kaplan-Meier product-limit estimator.

        S(t) = prod_{t_j <= t} (1 - d_j / n_j)

    Greenwood variance Var(S) = S^2 * sum d_j / (n_j (n_j - d_j)) and a
    log-transformed confidence interval (R's survfit default).

    Parameters
    ----------
    time : ndarray, shape (n,)
    event : ndarray, shape (n,)
    conf_level : float

    Returns
    -------
    pandas.DataFrame indexed by distinct failure time with columns
        n_risk, n_event, n_censor, survival, std_err, lower, upper
    n_censor counts spells censored in [t_j, t_{j+1}). The table is empty
    when no failures are observed.
    """
    time, event = _check_survival(time, event)
    t, n_risk, d = _risk_counts(time, event)
    columns = ["n_risk", "n_event", "n_censor", "survival", "std_err",
               "lower", "upper"]
    if len(t) == 0:
        return pd.DataFrame(columns=columns, index=pd.Index([], name="time"),
                            dtype=float)

    cens_sorted = np.sort(time[event == 0])
    upper_edge = np.append(t[1:], np.inf)
    n_censor = (np.searchsorted(cens_sorted, upper_edge, side="left")
                - np.searchsorted(cens_sorted, t, side="left"))

    surv = np.cumprod(1.0 - d / n_risk)

    # Avoid division by zero when n_j == d_j (all at risk fail)
    denom = n_risk * (n_risk - d)
    denom = np.where(denom > 0, denom, np.inf)
    greenwood = np.cumsum(d / denom)
    std_err = surv * np.sqrt(greenwood)

    z = stats.norm.ppf((1.0 + conf_level) / 2.0)
    with np.errstate(divide="ignore", invalid="ignore"):
        log_s = np.log(surv)
        lower = np.exp(log_s - z * np.sqrt(greenwood))
        upper = np.minimum(np.exp(log_s + z * np.sqrt(greenwood)), 1.0)
    lower = np.where(surv > 0, lower, np.nan)
    upper = np.where(surv > 0, upper, np.nan)

    return pd.DataFrame(
        {"n_risk": n_risk, "n_event": d, "n_censor": n_censor.astype(float),
         "survival": surv, "std_err": std_err, "lower": lower, "upper": upper},
        index=pd.Index(t, name="time"),
    )


def nelson_aalen(time, event):
    """
    Nelson-Aalen cumulative hazard  H(t) = sum_{t_j <= t} d_j / n_j.

    Returns
    -------
    pandas.DataFrame indexed by failure time with columns
        n_risk, n_event, cum_hazard, std_err
    """
    time, event = _check_survival(time, event)
    t, n_risk, d = _risk_counts(time, event)
    cum_hazard = np.cumsum(d / n_risk)
    variance = np.cumsum(d / n_risk ** 2)
    return pd.DataFrame(
        {"n_risk": n_risk, "n_event": d, "cum_hazard": cum_hazard,
         "std_err": np.sqrt(variance)},
        index=pd.Index(t, name="time"),
    )


def hazard_table(time, event, breaks):
    """
    Piecewise-constant hazard (life table) estimator.

    Splits the time axis at `breaks` into intervals (b_j, b_{j+1}]. A spell
    ending at t (failure or censoring) is counted in the interval whose
    right end is the first break >= t, the same interval its last stretch
    of person-time falls in. Within each interval the hazard is constant
    and estimated by

        lambda_j = d_j / exposure_j

    where exposure_j is the total person-time spent inside the interval.
    Then
        H(b_{j+1}) = sum_{l <= j} lambda_l * (b_{l+1} - b_l)
        S(b_{j+1}) = exp(-H(b_{j+1}))

    Spells lasting beyond the last break are censored at it.

    Parameters
    ----------
    time, event : ndarray, shape (n,)
    breaks : sequence of float
        Strictly increasing; the first break must lie below min(time).

    Returns
    -------
    pandas.DataFrame, one row per interval, columns
        start, end, n_enter, n_event, n_censor, exposure, hazard,
        cum_hazard, survival
    n_enter counts spells still at risk just after the interval start.
    """
    time, event = _check_survival(time, event)
    breaks = np.asarray(breaks, dtype=float)
    if breaks.ndim != 1 or len(breaks) < 2:
        raise ValueError("breaks must contain at least two values")
    if np.any(np.diff(breaks) <= 0):
        raise ValueError("breaks must be strictly increasing")
    if breaks[0] >= time.min():
        raise ValueError(f"first break {breaks[0]} must lie below the "
                         f"smallest time {time.min()}")

    last = breaks[-1]
    t_obs = np.minimum(time, last)
    d_obs = np.where(time <= last, event, 0.0)

    start, end = breaks[:-1], breaks[1:]
    width = end - start
    n_int = len(start)
    # t in (b_j, b_{j+1}] -> j
    idx = np.clip(np.searchsorted(breaks, t_obs, side="left") - 1, 0, n_int - 1)

    # Person-time in each interval: min(t, end) - start, floored at zero
    exposure = np.clip(t_obs[:, None] - start[None, :], 0.0, width[None, :]).sum(axis=0)
    n_enter = (t_obs[:, None] > start[None, :]).sum(axis=0)
    n_event = np.bincount(idx, weights=d_obs, minlength=n_int)
    n_censor = np.bincount(idx, weights=1.0 - d_obs, minlength=n_int)

    with np.errstate(divide="ignore", invalid="ignore"):
        hazard = np.where(exposure > 0, n_event / exposure, 0.0)
    cum_hazard = np.cumsum(hazard * width)

    labels = [f"({a:g}, {b:g}]" for a, b in zip(start, end)]
    return pd.DataFrame(
        {"start": start, "end": end, "n_enter": n_enter.astype(float),
         "n_event": n_event, "n_censor": n_censor, "exposure": exposure,
         "hazard": hazard, "cum_hazard": cum_hazard,
         "survival": np.exp(-cum_hazard)},
        index=pd.Index(labels, name="interval"),
    )


def _design(X, n):
    if X is None:
        return np.ones((n, 1)), ["const"]
    X = np.asarray(X, dtype=float)
    X = X[:, None] if X.ndim == 1 else X
    if X.shape[0] != n:
        raise ValueError(f"X has {X.shape[0]} rows, time has {n}")
    return np.column_stack([np.ones(n), X]), None


def _nll_exponential(b, X, t, d):
    eta = X @ b
    return -np.sum(d * eta - t * np.exp(eta))


def _nll_weibull(theta, X, t, d):
    b, log_p = theta[:-1], theta[-1]
    p = np.exp(log_p)
    eta = X @ b
    return -np.sum(d * (log_p + eta + (p - 1) * np.log(t)) - np.exp(eta) * t ** p)


def fit_exponential(time, event, X=None, names=None):
    """
    Exponential proportional-hazards model, h_i = exp(x_i' beta).

    Without covariates the MLE of the constant hazard is D / T
    (failures over total exposure).

    Returns
    -------
    dict from mle.fit_mle() plus hazard_ratio (exp of the slopes) and
    n_events.
    """
    time, event = _check_survival(time, event)
    n = len(time)
    Xd, labels = _design(X, n)
    k = Xd.shape[1]
    if names is None:
        names = labels or ["const"] + [f"x{j}" for j in range(1, k)]
    start = np.zeros(k)
    start[0] = np.log(max(event.sum(), 0.5) / time.sum())
    res = fit_mle(_nll_exponential, start, args=(Xd, time, event),
                  names=names, nobs=n)
    res["hazard_ratio"] = np.exp(res["beta"][1:])
    res["n_events"] = int(event.sum())
    return res


def fit_weibull(time, event, X=None, names=None):
    """
    Weibull proportional-hazards model.

        h_i(t) = p * exp(x_i' beta) * t^(p-1),   S_i(t) = exp(-exp(x_i' beta) t^p)

    The shape p is estimated on the log scale (last parameter, "log_shape").
    p = 1 reduces to the exponential model.

    Returns
    -------
    dict from mle.fit_mle() plus shape, hazard_ratio and n_events.
    """
    time, event = _check_survival(time, event)
    n = len(time)
    Xd, labels = _design(X, n)
    k = Xd.shape[1]
    if names is None:
        names = labels or ["const"] + [f"x{j}" for j in range(1, k)]
    names = list(names) + ["log_shape"]
    start = np.zeros(k + 1)
    start[0] = np.log(max(event.sum(), 0.5) / time.sum())
    res = fit_mle(_nll_weibull, start, args=(Xd, time, event),
                  names=names, nobs=n)
    res["shape"] = float(np.exp(res["beta"][-1]))
    res["hazard_ratio"] = np.exp(res["beta"][1:k])
    res["n_events"] = int(event.sum())
    return res


def _nll_cox(b, X, t_sorted, d_sorted, first_idx):
    eta = X @ b
    m = eta.max()
    w = np.exp(eta - m)
    # Risk set of a spell: everyone with t_j >= t_i (all tied spells included)
    rev_cumsum = np.cumsum(w[::-1])[::-1]
    log_risk = np.log(rev_cumsum[first_idx]) + m
    return -np.sum(d_sorted * (eta - log_risk))


def fit_cox(time, event, X, names=None):
    """
    Cox proportional hazards model, Breslow partial likelihood for ties.

        log PL(beta) = sum_{i: d_i = 1} [ x_i' beta - log sum_{j: t_j >= t_i} exp(x_j' beta) ]

    Parameters
    ----------
    time, event : ndarray, shape (n,)
    X : ndarray, shape (n,) or (n, p)
        Covariates, no constant (the baseline hazard absorbs it).
    names : list of str, optional

    Returns
    -------
    dict with keys
        beta, se, vcov, tstat, pvalue, hazard_ratio, loglik, aic,
        converged, nobs, n_events, names
    """
    time, event = _check_survival(time, event)
    X = np.asarray(X, dtype=float)
    X = X[:, None] if X.ndim == 1 else X
    n, p = X.shape
    if n != len(time):
        raise ValueError(f"X has {n} rows, time has {len(time)}")
    if event.sum() == 0:
        raise ValueError("Cox model needs at least one observed failure")

    order = np.argsort(time, kind="stable")
    t_sorted = time[order]
    first_idx = np.searchsorted(t_sorted, t_sorted, side="left")
    res = fit_mle(_nll_cox, np.zeros(p),
                  args=(X[order], t_sorted, event[order], first_idx),
                  names=default_names(p, names), nobs=int(event.sum()))
    res["hazard_ratio"] = np.exp(res["beta"])
    res["n_events"] = int(event.sum())
    res["nobs"] = n
    return res


def logrank_test(time, event, group):
    """
    K-sample log-rank test of equal survival curves.

    At each failure time t_j with n_j at risk and d_j failures, group g
    expects E_gj = d_j * n_gj / n_j failures. The statistic
    (O - E)' V^{-1} (O - E) over the first K-1 groups is chi2(K-1).

    Returns
    -------
    dict with keys: stat, df, pvalue, groups, observed, expected
    """
    time, event = _check_survival(time, event)
    group = np.asarray(group)
    if len(group) != len(time):
        raise ValueError(f"group has length {len(group)}, time has {len(time)}")
    levels = pd.unique(group)
    if len(levels) < 2:
        raise ValueError("log-rank test needs at least two groups")

    t_fail = np.unique(time[event == 1])
    at_risk = np.array([[np.sum((time >= tj) & (group == g)) for g in levels]
                        for tj in t_fail], dtype=float)
    fails = np.array([[np.sum((time == tj) & (event == 1) & (group == g))
                       for g in levels] for tj in t_fail], dtype=float)
    n_j = at_risk.sum(axis=1)
    d_j = fails.sum(axis=1)

    expected = (at_risk * (d_j / n_j)[:, None]).sum(axis=0)
    observed = fails.sum(axis=0)

    K = len(levels)
    V = np.zeros((K, K))
    for j in range(len(t_fail)):
        if n_j[j] <= 1:
            continue
        share = at_risk[j] / n_j[j]
        factor = d_j[j] * (n_j[j] - d_j[j]) / (n_j[j] - 1)
        V += factor * (np.diag(share) - np.outer(share, share))

    diff = (observed - expected)[:-1]
    stat = float(diff @ np.linalg.solve(V[:-1, :-1], diff))
    return dict(
        stat=stat,
        df=K - 1,
        pvalue=stats.chi2.sf(stat, K - 1),
        groups=list(levels),
        observed=observed,
        expected=expected,
    )
