"""Tests for the MLE driver and the likelihood kernels."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from econcourse import mle
from econcourse.datasets import simulate_binary
from econcourse.utils import add_const, ols_fit


@pytest.fixture
def binary():
    df = simulate_binary(n=2000, seed=3)
    return add_const(df["x"].to_numpy()), df["y"].to_numpy()


class TestFitMle:

    def test_quadratic(self):
        nll = lambda b: 0.5 * ((b[0] - 1.0) ** 2 + 4 * (b[1] + 2.0) ** 2)
        res = mle.fit_mle(nll, [0.0, 0.0], names=["a", "b"], nobs=10)
        assert_allclose(res["beta"], [1.0, -2.0], atol=1e-4)
        assert_allclose(res["hessian"], np.diag([1.0, 4.0]), atol=1e-3)
        assert_allclose(res["se"], [1.0, 0.5], rtol=1e-3)
        assert res["converged"]
        assert_allclose(res["aic"], 2 * res["nll"] + 4)
        assert_allclose(res["bic"], 2 * res["nll"] + 2 * np.log(10))

    def test_track_path(self):
        nll = lambda b: np.sum((b - 3.0) ** 2)
        res = mle.fit_mle(nll, [0.0], track_path=True)
        assert_allclose(res["path"][0], [0.0])
        assert len(res["path"]) >= 2
        assert "path" not in mle.fit_mle(nll, [0.0])

    def test_singular_hessian_warns(self):
        nll = lambda b: (b[0] - 1.0) ** 2
        with pytest.warns(RuntimeWarning):
            res = mle.fit_mle(nll, [0.0, 0.0])
        assert np.all(np.isnan(res["se"]))

    def test_singular_hessian_warns_once(self):
        nll = lambda b: (b[0] - 1.0) ** 2
        with pytest.warns(RuntimeWarning) as record:
            res = mle.fit_mle(nll, [0.0, 0.0])
        assert len(record) == 1
        assert "singular" in str(record[0].message)
        assert np.all(np.isnan(res["vcov"]))

    def test_saddle_point_warns_once(self):
        nll = lambda b: b[0] ** 2 - b[1] ** 2
        with pytest.warns(RuntimeWarning) as record:
            res = mle.fit_mle(nll, [0.0, 0.0])
        assert len(record) == 1
        assert "positive definite" in str(record[0].message)
        assert np.isfinite(res["se"][0])
        assert np.isnan(res["se"][1])

    def test_bic_without_nobs(self):
        res = mle.fit_mle(lambda b: (b[0] - 1) ** 2, [0.0])
        assert np.isnan(res["bic"])


class TestBinaryModels:

    def test_logit_recovers_dgp(self, binary):
        X, y = binary
        res = mle.fit_logit(X, y, names=["const", "x"])
        assert_allclose(res["beta"], [-0.5, 1.2], atol=0.25)
        assert res["p_hat"].shape == y.shape

    def test_logit_se_matches_fisher_information(self, binary):
        X, y = binary
        res = mle.fit_logit(X, y)
        p = mle.logistic(X @ res["beta"])
        info = (X.T * (p * (1 - p))) @ X
        assert_allclose(res["se"], np.sqrt(np.diag(np.linalg.inv(info))),
                        rtol=1e-2)

    def test_probit_and_logit_ame_agree(self, binary):
        X, y = binary
        lg = mle.fit_logit(X, y)
        pb = mle.fit_probit(X, y)
        assert_allclose(mle.logit_ame(X, lg["beta"]),
                        mle.probit_ame(X, pb["beta"]), atol=0.01)
        assert pb["loglik"] < 0

    def test_non_binary_outcome(self, binary):
        X, y = binary
        with pytest.raises(ValueError, match="binary"):
            mle.fit_logit(X, y * 2)


class TestOtherModels:

    def test_normal_matches_ols(self, linear_data):
        X, y = linear_data
        res = mle.fit_normal(X, y)
        b, _, e, _ = ols_fit(X, y)
        assert_allclose(res["beta"][:-1], b, atol=1e-3)
        assert_allclose(res["sigma"], np.sqrt(e @ e / len(y)), rtol=1e-3)
        assert res["names"][-1] == "log_sigma"

    def test_poisson(self, rng):
        x = rng.normal(size=3000)
        y = rng.poisson(np.exp(0.5 + 0.3 * x))
        res = mle.fit_poisson(add_const(x), y)
        assert_allclose(res["beta"], [0.5, 0.3], atol=0.08)

    def test_poisson_negative_counts(self):
        with pytest.raises(ValueError):
            mle.fit_poisson(np.ones((3, 1)), [1.0, -1.0, 2.0])


class TestLikelihoodTools:

    def test_profile_interval_close_to_wald(self, binary):
        X, y = binary
        res = mle.fit_logit(X, y)
        b1, se1 = res["beta"][1], res["se"][1]
        grid = np.linspace(b1 - 4 * se1, b1 + 4 * se1, 161)
        prof = mle.profile_likelihood(mle.nll_logit, res["beta"], 1, grid,
                                      args=(X, y))
        lo, hi = prof["ci"]
        assert lo < b1 < hi
        assert_allclose([lo, hi], [b1 - 1.96 * se1, b1 + 1.96 * se1],
                        atol=0.25 * se1)
        assert_allclose(prof["profile_ll"].max(), res["loglik"], atol=1e-3)

    def test_surface_shape(self, binary):
        X, y = binary
        B0, B1, LL = mle.log_likelihood_surface(
            mle.nll_logit, np.linspace(-1, 0, 5), np.linspace(1, 2, 4),
            args=(X, y))
        assert LL.shape == (4, 5) == B0.shape == B1.shape

    def test_lr_test(self, binary):
        X, y = binary
        full = mle.fit_logit(X, y)
        restricted = mle.fit_logit(X[:, :1], y)
        lr = mle.lr_test(restricted, full, df=1)
        assert lr["stat"] > 0
        assert lr["pvalue"] < 1e-10
