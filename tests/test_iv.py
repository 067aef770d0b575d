"""Tests for instrumental variables / 2SLS."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from econcourse import iv, ols
from econcourse.utils import add_const


@pytest.fixture
def endogenous(rng):
    """x is correlated with the structural error through a; z is a valid instrument."""
    n = 5000
    z = rng.normal(size=n)
    w = rng.normal(size=n)
    a = rng.normal(size=n)
    x = z + 0.5 * w + a + rng.normal(size=n)
    y = 1.0 + 0.5 * x + 0.3 * a + rng.normal(size=n) + a
    return dict(y=y, x=x, z=z, w=w, n=n)


class TestEstimate2SLS:

    def test_consistent_where_ols_is_not(self, endogenous):
        d = endogenous
        res = iv.estimate_2sls(d["y"], np.ones((d["n"], 1)), d["x"], d["z"])
        assert_allclose(res["beta"][1], 0.5, atol=0.1)
        assert res["ols_beta"][1] > 0.7

    def test_just_identified_equals_wald_ratio(self, endogenous):
        d = endogenous
        res = iv.estimate_2sls(d["y"], np.ones((d["n"], 1)), d["x"], d["z"])
        wald = iv.wald_estimator(d["y"], d["x"], d["z"])
        assert_allclose(res["beta"][1], wald["beta_iv"], rtol=1e-8)
        assert_allclose(wald["beta_iv"],
                        wald["reduced_form"] / wald["first_stage"])
        assert res["sargan"] is None

    def test_classical_se_uses_structural_residuals(self, endogenous):
        d = endogenous
        X_exog = np.ones((d["n"], 1))
        res = iv.estimate_2sls(d["y"], X_exog, d["x"], d["z"])
        X_hat = np.column_stack([X_exog, res["first_stage"][0]["X_hat"]])
        X = np.column_stack([X_exog, d["x"]])
        e = d["y"] - X @ res["beta"]
        s2 = e @ e / (d["n"] - 2)
        V = s2 * np.linalg.inv(X_hat.T @ X_hat)
        assert_allclose(res["se"], np.sqrt(np.diag(V)))
        assert_allclose(res["residuals"], e)
        assert not np.allclose(res["se"], res["se_naive"])

    def test_over_identified_sargan(self, endogenous):
        d = endogenous
        Z = np.column_stack([d["z"], d["w"]])
        res = iv.estimate_2sls(d["y"], np.ones((d["n"], 1)), d["x"], Z,
                               names=["const", "x"])
        assert res["sargan"]["df"] == 1
        assert res["sargan"]["stat"] >= 0
        assert 0 <= res["sargan"]["pvalue"] <= 1
        assert res["names"] == ["const", "x"]

    def test_robust_and_cluster(self, endogenous):
        d = endogenous
        clusters = np.arange(d["n"]) % 50
        res = iv.estimate_2sls(d["y"], np.ones((d["n"], 1)), d["x"], d["z"],
                               cov_type="cluster", clusters=clusters)
        assert res["df_resid"] == 49
        assert res["cov_type"] == "cluster"

    def test_under_identified(self, endogenous):
        d = endogenous
        X_endog = np.column_stack([d["x"], d["w"]])
        with pytest.raises(ValueError, match="under-identified"):
            iv.estimate_2sls(d["y"], np.ones((d["n"], 1)), X_endog, d["z"])

    def test_row_mismatch(self, endogenous):
        d = endogenous
        with pytest.raises(ValueError, match="rows"):
            iv.estimate_2sls(d["y"], np.ones((d["n"], 1)), d["x"], d["z"][:-1])


class TestFirstStage:

    def test_single_instrument_f_is_t_squared(self, endogenous):
        d = endogenous
        Z = add_const(d["z"])
        fs = iv.first_stage(Z, d["x"], n_excluded=1)[0]
        res = ols.estimate(Z, d["x"])
        assert_allclose(fs["F_stat"], res["tstat"][1] ** 2, rtol=1e-8)
        assert_allclose(fs["gamma"], res["beta"], rtol=1e-8)
        assert fs["F_stat"] > 100
        assert 0 < fs["partial_r2"] < 1

    def test_fitted_plus_residual(self, endogenous):
        d = endogenous
        fs = iv.first_stage(add_const(d["z"]), d["x"], 1)[0]
        assert_allclose(fs["X_hat"] + fs["residuals"], d["x"])


class TestEndogeneity:

    def test_durbin_wu_hausman_rejects(self, endogenous):
        d = endogenous
        dwh = iv.durbin_wu_hausman(d["y"], np.ones((d["n"], 1)), d["x"], d["z"])
        assert dwh["reject"]
        assert dwh["df"][0] == 1

    def test_wald_estimator_needs_first_stage(self):
        z = np.array([0.0, 1.0, 0.0, 1.0])
        x = np.array([1.0, 1.0, 1.0, 1.0])
        with pytest.raises(ValueError, match="first-stage"):
            iv.wald_estimator(np.arange(4.0), x, z)
