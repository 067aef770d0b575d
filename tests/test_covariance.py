"""Tests for the sandwich covariance family."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from econcourse import covariance
from econcourse.datasets import simulate_heteroskedastic
from econcourse.utils import add_const, ols_fit


@pytest.fixture
def fitted(linear_data):
    X, y = linear_data
    b, se, e, s2 = ols_fit(X, y)
    return X, e, s2


class TestVcov:

    def test_classical(self, fitted):
        X, e, s2 = fitted
        V = covariance.vcov(X, e, "classical")
        assert_allclose(V, s2 * np.linalg.inv(X.T @ X))

    def test_hc0_matches_loop(self, fitted):
        X, e, _ = fitted
        bread = np.linalg.inv(X.T @ X)
        meat = sum(e[i] ** 2 * np.outer(X[i], X[i]) for i in range(len(e)))
        assert_allclose(covariance.vcov(X, e, "HC0"), bread @ meat @ bread)

    def test_hc1_scaling(self, fitted):
        X, e, _ = fitted
        n, k = X.shape
        assert_allclose(covariance.vcov(X, e, "HC1"),
                        covariance.vcov(X, e, "HC0") * n / (n - k))

    def test_leverage_ordering(self, fitted):
        X, e, _ = fitted
        d0 = np.diag(covariance.vcov(X, e, "HC0"))
        d2 = np.diag(covariance.vcov(X, e, "HC2"))
        d3 = np.diag(covariance.vcov(X, e, "HC3"))
        assert np.all(d2 >= d0)
        assert np.all(d3 >= d2)

    def test_singleton_clusters_equal_hc1(self, fitted):
        X, e, _ = fitted
        ids = np.arange(len(e))
        assert_allclose(covariance.vcov(X, e, "cluster", clusters=ids),
                        covariance.vcov(X, e, "HC1"))

    def test_cluster_labels_any_type(self, fitted):
        X, e, _ = fitted
        codes = np.repeat(np.arange(20), 10)
        labels = np.array([f"g{c}" for c in codes])
        assert_allclose(covariance.vcov(X, e, "cluster", clusters=codes),
                        covariance.vcov(X, e, "cluster", clusters=labels))

    def test_hac_zero_lags_equal_hc1(self, fitted):
        X, e, _ = fitted
        assert_allclose(covariance.vcov(X, e, "HAC", maxlags=0),
                        covariance.vcov(X, e, "HC1"))

    def test_hac_positive_autocorrelation_inflates(self, rng):
        n = 400
        x = np.cumsum(rng.normal(size=n)) / 10
        u = np.zeros(n)
        for t in range(1, n):
            u[t] = 0.8 * u[t - 1] + rng.normal()
        X = add_const(x)
        _, _, e, _ = ols_fit(X, 1 + x + u)
        se_hac = np.sqrt(np.diag(covariance.vcov(X, e, "HAC")))
        se_hc1 = np.sqrt(np.diag(covariance.vcov(X, e, "HC1")))
        assert se_hac[0] > se_hc1[0]

    def test_newey_west_lags(self):
        assert covariance.newey_west_lags(100) == 4
        assert covariance.newey_west_lags(1000) == 6

    def test_errors(self, fitted):
        X, e, _ = fitted
        with pytest.raises(ValueError, match="cov_type"):
            covariance.vcov(X, e, "HC9")
        with pytest.raises(ValueError, match="clusters"):
            covariance.vcov(X, e, "cluster")
        with pytest.raises(ValueError, match="two clusters"):
            covariance.vcov(X, e, "cluster", clusters=np.zeros(len(e)))
        with pytest.raises(ValueError, match="length"):
            covariance.vcov(X, e[:-1])
        with pytest.raises(ValueError, match="maxlags"):
            covariance.vcov(X, e, "HAC", maxlags=len(e))

    def test_robust_se(self, fitted):
        X, e, _ = fitted
        assert_allclose(covariance.robust_se(X, e, "HC3"),
                        np.sqrt(np.diag(covariance.vcov(X, e, "HC3"))))

    def test_n_clusters(self):
        assert covariance.n_clusters(["a", "b", "a", "c"]) == 3

    def test_missing_cluster_labels_rejected(self, fitted):
        X, e, _ = fitted
        labels = list(np.repeat(["a", "b", "c", "d"], 50))
        labels[7] = np.nan
        with pytest.raises(ValueError, match="missing"):
            covariance.vcov(X, e, "cluster", clusters=labels)
        codes = np.repeat(np.arange(4.0), 50)
        codes[-1] = np.nan
        with pytest.raises(ValueError, match="missing"):
            covariance.vcov(X, e, "cluster", clusters=codes)
        with pytest.raises(ValueError, match="missing"):
            covariance.n_clusters(["a", None, "b"])

    def test_cluster_codes(self):
        codes = covariance.cluster_codes(["b", "a", "b", "c"])
        assert list(codes) == [1, 0, 1, 2]


class TestBreuschPagan:

    def test_detects_heteroskedasticity(self):
        df = simulate_heteroskedastic(n=500, seed=1)
        X = add_const(df["x"].to_numpy())
        _, _, e, _ = ols_fit(X, df["y"].to_numpy())
        bp = covariance.breusch_pagan(X, e)
        assert bp["reject"]
        assert bp["df"] == 1
        assert bp["lm_pvalue"] < 0.001

    def test_lm_is_n_r2(self, fitted):
        X, e, _ = fitted
        esq = e ** 2
        _, _, u, _ = ols_fit(X, esq)
        r2 = 1 - u @ u / np.sum((esq - esq.mean()) ** 2)
        bp = covariance.breusch_pagan(X, e)
        assert_allclose(bp["lm"], len(e) * r2)
        assert 0 <= bp["f_pvalue"] <= 1

    def test_needs_slope(self, fitted):
        X, e, _ = fitted
        with pytest.raises(ValueError):
            covariance.breusch_pagan(X[:, :1], e)


class TestCoefTable:

    def test_t_layout(self):
        V = np.diag([0.25, 0.01])
        table = covariance.coef_table([1.0, 0.5], V, names=["a", "b"], df=10)
        assert list(table.columns) == ["Estimate", "Std. Error", "t value",
                                       "Pr(>|t|)"]
        assert_allclose(table["t value"], [2.0, 5.0])
        assert list(table.index) == ["a", "b"]

    def test_z_layout(self):
        table = covariance.coef_table([1.96], np.array([[1.0]]))
        assert "Pr(>|z|)" in table.columns
        assert_allclose(table["Pr(>|z|)"].iloc[0], 0.05, atol=1e-4)
