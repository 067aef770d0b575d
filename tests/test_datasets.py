"""Tests for the simulated course datasets and the CSV downloader."""

import pytest
import requests
from numpy.testing import assert_allclose

from econcourse import datasets


class TestSimulators:

    def test_wages(self):
        df = datasets.simulate_wages(n=500, seed=1)
        assert list(df.columns) == ["log_wage", "schooling", "experience",
                                    "ability", "distance"]
        assert len(df) == 500
        assert df["schooling"].between(8, 20).all()
        assert df.attrs["true_return"] == 0.10

    def test_reproducible(self):
        a = datasets.simulate_wages(n=50, seed=9)
        b = datasets.simulate_wages(n=50, seed=9)
        assert_allclose(a.to_numpy(), b.to_numpy())

    def test_heteroskedastic(self):
        df = datasets.simulate_heteroskedastic(n=2000, seed=0)
        low = df[df["x"] < 2]
        high = df[df["x"] > 8]
        resid_low = low["y"] - (1 + 2 * low["x"])
        resid_high = high["y"] - (1 + 2 * high["x"])
        assert resid_high.std() > 2 * resid_low.std()

    def test_panel(self):
        df = datasets.simulate_panel(n_units=10, n_periods=4, seed=0)
        assert df.shape == (40, 4)
        assert df.groupby("unit").size().eq(4).all()

    def test_durations(self):
        df = datasets.simulate_durations(n=500, max_time=20.0, seed=0)
        assert (df["time"] > 0).all()
        assert (df["time"] <= 20.0).all()
        assert set(df["event"].unique()) <= {0.0, 1.0}
        assert 0 < df["event"].mean() < 1
        assert df.attrs["shape"] == 1.5

    def test_binary(self):
        df = datasets.simulate_binary(n=300, seed=0)
        assert set(df["y"].unique()) <= {0.0, 1.0}
        assert df.attrs["beta"] == (-0.5, 1.2)


class _FakeResponse:
    text = "a,b\n1,2\n3,4\n"
    content = text.encode()

    def raise_for_status(self):
        pass


class TestFetchCsv:

    def test_download(self, monkeypatch):
        calls = []

        def fake_get(url, timeout, headers):
            calls.append(url)
            return _FakeResponse()

        monkeypatch.setattr(datasets.requests, "get", fake_get)
        df = datasets.fetch_csv("https://example.org/data.csv")
        assert list(df.columns) == ["a", "b"]
        assert calls == ["https://example.org/data.csv"]

    def test_cache_reused(self, monkeypatch, tmp_path):
        calls = []

        def fake_get(url, timeout, headers):
            calls.append(url)
            return _FakeResponse()

        monkeypatch.setattr(datasets.requests, "get", fake_get)
        cache = tmp_path / "cache" / "data.csv"
        first = datasets.fetch_csv("https://example.org/data.csv", cache)
        second = datasets.fetch_csv("https://example.org/data.csv", cache)
        assert cache.exists()
        assert len(calls) == 1
        assert first.equals(second)

    def test_failure_raises_connection_error(self, monkeypatch):
        def fake_get(url, timeout, headers):
            raise requests.exceptions.Timeout("timed out")

        monkeypatch.setattr(datasets.requests, "get", fake_get)
        with pytest.raises(ConnectionError, match="could not download"):
            datasets.fetch_csv("https://example.org/data.csv")
