"""Tests for OLS estimation and Wald tests."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from econcourse import ols
from econcourse.utils import add_const


class TestEstimate:

    def test_coefficients_match_lstsq(self, linear_data):
        X, y = linear_data
        res = ols.estimate(X, y, names=["const", "x1", "x2"])
        assert_allclose(res["beta"], np.linalg.lstsq(X, y, rcond=None)[0],
                        rtol=1e-10)
        assert res["names"] == ["const", "x1", "x2"]
        assert res["nobs"] == 200
        assert res["df_resid"] == 197

    def test_recovers_truth(self, linear_data):
        X, y = linear_data
        res = ols.estimate(X, y)
        assert_allclose(res["beta"], [1.0, 2.0, -0.5], atol=0.3)

    def test_fit_statistics(self, linear_data):
        X, y = linear_data
        res = ols.estimate(X, y)
        e = res["residuals"]
        tss = np.sum((y - y.mean()) ** 2)
        assert_allclose(res["r2"], 1 - e @ e / tss)
        assert_allclose(res["adj_r2"], 1 - (1 - res["r2"]) * 199 / 197)
        assert_allclose(res["fitted"] + e, y)
        assert res["adj_r2"] < res["r2"]

    def test_single_regressor_f_equals_t_squared(self, rng):
        x = rng.normal(size=100)
        y = 0.3 * x + rng.normal(size=100)
        res = ols.estimate(add_const(x), y)
        assert_allclose(res["fstat"], res["tstat"][1] ** 2, rtol=1e-10)
        assert_allclose(res["f_pvalue"], res["pvalue"][1], rtol=1e-8)

    def test_no_constant_has_uncentred_r2(self, rng):
        x = rng.normal(size=(50, 1))
        y = 2 * x[:, 0] + rng.normal(size=50)
        res = ols.estimate(x, y)
        e = res["residuals"]
        assert_allclose(res["r2"], 1 - e @ e / (y @ y))

    def test_robust_cov_type(self, linear_data):
        X, y = linear_data
        res = ols.estimate(X, y, cov_type="HC1")
        assert res["cov_type"] == "HC1"
        assert res["se"].shape == (3,)
        assert not np.allclose(res["se"], ols.estimate(X, y)["se"])

    def test_cluster_reference_df(self, linear_data):
        X, y = linear_data
        clusters = np.repeat(np.arange(20), 10)
        res = ols.estimate(X, y, cov_type="cluster", clusters=clusters)
        assert res["df_resid"] == 19

    def test_length_mismatch(self, linear_data):
        X, y = linear_data
        with pytest.raises(ValueError, match="rows"):
            ols.estimate(X, y[:-1])

    def test_too_few_observations(self):
        with pytest.raises(ValueError):
            ols.estimate(np.ones((3, 3)), np.ones(3))


class TestWaldTest:

    def test_single_restriction(self, linear_data):
        X, y = linear_data
        res = ols.estimate(X, y)
        wt = ols.wald_test(res, [0, 1, 0])
        assert_allclose(wt["stat"], res["tstat"][1] ** 2, rtol=1e-10)
        assert wt["df"] == (1, 197)

    def test_true_restriction_not_rejected(self, linear_data):
        X, y = linear_data
        res = ols.estimate(X, y)
        R = np.array([[0, 1, 0], [0, 0, 1]])
        wt = ols.wald_test(res, R, q=res["beta"][1:])
        assert_allclose(wt["stat"], 0.0, atol=1e-12)
        assert_allclose(wt["pvalue"], 1.0)

    def test_slopes_matches_overall_f(self, linear_data):
        X, y = linear_data
        res = ols.estimate(X, y)
        wt = ols.wald_test(res, np.eye(3)[1:])
        assert_allclose(wt["stat"], res["fstat"])

    def test_shape_check(self, linear_data):
        X, y = linear_data
        res = ols.estimate(X, y)
        with pytest.raises(ValueError, match="columns"):
            ols.wald_test(res, [1, 0])


class TestOmittedVariableBias:

    def test_predict(self, linear_data):
        X, y = linear_data
        res = ols.estimate(X, y)
        assert_allclose(ols.predict(res, X), res["fitted"])

    def test_formula(self):
        assert_allclose(ols.ovb_formula(1.5, 1.0, 4.0), 0.375)

    def test_monte_carlo(self):
        mc = ols.monte_carlo_ovb(n=500, n_sims=200, rho=1.0, seed=0)
        assert mc["mc_short"].shape == (200,)
        assert_allclose(mc["predicted_bias"], 0.375)
        assert_allclose(mc["bias"], mc["predicted_bias"], atol=0.05)
        assert_allclose(mc["mc_long"].mean(), 2.5, atol=0.03)

    def test_monte_carlo_needs_sims(self):
        with pytest.raises(ValueError):
            ols.monte_carlo_ovb(n=10, n_sims=0, rho=0.5)
