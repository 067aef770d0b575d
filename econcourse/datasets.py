"""
Course datasets
===============

Seeded data-generating processes used by the chapters, each returning a
pandas DataFrame with known true parameters stored in ``df.attrs``, plus a
small downloader for public CSV files.
"""

from io import StringIO
from pathlib import Path

import numpy as np
import pandas as pd
import requests

USER_AGENT = "econcourse/1.0"


def simulate_wages(n=2000, seed=42):
    """
    Simulate data mimicking CPS microdata for a Mincer equation.

    DGP:
        ability ~ N(0, 1)                       (unobserved)
        distance ~ U(0, 50)                     (instrument)
        schooling = 12 + 0.8*ability - 0.04*distance + noise
        experience = age - schooling - 6
        log_wage = 0.10*schooling + 0.03*experience
                   - 0.0005*experience^2 + 0.5*ability + eps

    Returns
    -------
    DataFrame with log_wage, schooling, experience, ability, distance;
    attrs["true_return"] = 0.10.
    """
    rng = np.random.default_rng(seed)
    ability = rng.normal(0, 1, n)
    age = rng.uniform(25, 55, n)
    # Instrument: distance to nearest college (affects schooling, not wages)
    distance = rng.uniform(0, 50, n)
    schooling = 12 + 0.8 * ability - 0.04 * distance + rng.normal(0, 1.5, n)
    schooling = np.clip(schooling, 8, 20)
    experience = np.clip(age - schooling - 6, 0, 40)

    log_wage = (0.10 * schooling + 0.03 * experience
                - 0.0005 * experience ** 2
                + 0.5 * ability + rng.normal(0, 0.3, n))

    df = pd.DataFrame(dict(
        log_wage=log_wage, schooling=schooling, experience=experience,
        ability=ability, distance=distance,
    ))
    df.attrs["true_return"] = 0.10
    return df


def simulate_heteroskedastic(n=500, beta=(1.0, 2.0), seed=42):
    """
    Linear model whose error standard deviation grows with x.

        x ~ U(0, 10),  y = beta0 + beta1*x + u,  sd(u | x) = 0.5 + 0.5*x
    """
    rng = np.random.default_rng(seed)
    x = rng.uniform(0, 10, n)
    u = rng.normal(0, 1, n) * (0.5 + 0.5 * x)
    df = pd.DataFrame(dict(y=beta[0] + beta[1] * x + u, x=x))
    df.attrs["beta"] = tuple(beta)
    return df


def simulate_panel(n_units=50, n_periods=10, beta=1.0, rho_x=0.5, seed=42):
    """
    Unit-time panel with unit effects correlated with x and errors
    correlated within unit.

        y_it = alpha_i + beta * x_it + e_it,  x_it = rho_x * alpha_i + v_it
    """
    rng = np.random.default_rng(seed)
    unit = np.repeat(np.arange(n_units), n_periods)
    period = np.tile(np.arange(n_periods), n_units)
    alpha = np.repeat(rng.normal(0, 2, n_units), n_periods)
    shock = np.repeat(rng.normal(0, 1, n_units), n_periods)
    x = rho_x * alpha + rng.normal(0, 1, n_units * n_periods)
    y = alpha + beta * x + shock + rng.normal(0, 1, n_units * n_periods)
    df = pd.DataFrame(dict(unit=unit, period=period, x=x, y=y))
    df.attrs["beta"] = beta
    return df


def simulate_durations(n=400, shape=1.5, beta=0.7, base_rate=0.1,
                       censor_rate=0.05, max_time=None, seed=42):
    """
    Weibull proportional-hazards durations with random right censoring.

        h(t | x) = shape * base_rate * exp(beta * treated) * t^(shape - 1)

    Latent failure times are drawn by inverting the survivor function;
    censoring times are exponential with rate `censor_rate`, and
    max_time (if given) adds administrative censoring.

    Returns
    -------
    DataFrame with time, event, treated, age; attrs holds shape and beta.
    """
    rng = np.random.default_rng(seed)
    treated = rng.integers(0, 2, n).astype(float)
    age = rng.normal(40, 10, n)
    scale = base_rate * np.exp(beta * treated)
    failure = (-np.log(rng.uniform(size=n)) / scale) ** (1.0 / shape)
    censor = rng.exponential(1.0 / censor_rate, n)
    if max_time is not None:
        censor = np.minimum(censor, max_time)
    time = np.minimum(failure, censor)
    event = (failure <= censor).astype(float)
    df = pd.DataFrame(dict(time=time, event=event, treated=treated, age=age))
    df.attrs.update(shape=shape, beta=beta, base_rate=base_rate)
    return df


def simulate_binary(n=1000, beta=(-0.5, 1.2), seed=42):
    """Logit DGP: P(y=1|x) = logistic(beta0 + beta1*x), x ~ N(0, 1)."""
    rng = np.random.default_rng(seed)
    x = rng.normal(0, 1, n)
    p = 1 / (1 + np.exp(-(beta[0] + beta[1] * x)))
    df = pd.DataFrame(dict(y=(rng.uniform(size=n) < p).astype(float), x=x))
    df.attrs["beta"] = tuple(beta)
    return df


def fetch_csv(url, cache_path=None, timeout=60, **read_kwargs):
    """
    Download a CSV file and parse it with pandas.

    Parameters
    ----------
    url : str
    cache_path : str or Path, optional
        If provided, cache the downloaded file here and reuse on next call.
    timeout : float
    **read_kwargs
        Passed to pandas.read_csv.

    Returns
    -------
    pandas.DataFrame
    """
    if cache_path:
        cache_path = Path(cache_path)
        if cache_path.exists():
            return pd.read_csv(cache_path, **read_kwargs)

    try:
        resp = requests.get(url, timeout=timeout,
                            headers={"User-Agent": USER_AGENT})
        resp.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise ConnectionError(f"could not download {url}: {e}") from e

    if cache_path:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        cache_path.write_bytes(resp.content)
        return pd.read_csv(cache_path, **read_kwargs)

    return pd.read_csv(StringIO(resp.text), **read_kwargs)
