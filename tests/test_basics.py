"""Tests for vector basics."""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose

from econcourse import basics


class TestSummary:

    def test_values(self):
        s = basics.summary([1.0, 2.0, 3.0, 4.0, np.nan])
        assert list(s.index) == basics.SUMMARY_INDEX
        assert_allclose(s.to_numpy(), [1.0, 1.75, 2.5, 2.5, 3.25, 4.0, 1.0])

    def test_all_missing(self):
        s = basics.summary([np.nan, np.nan])
        assert np.isnan(s["Mean"])
        assert s["NA's"] == 2


class TestTransforms:

    def test_standardize(self):
        z = basics.standardize([1.0, 2.0, 3.0])
        assert_allclose(z, [-1.0, 0.0, 1.0])

    def test_standardize_constant(self):
        with pytest.raises(ValueError, match="constant"):
            basics.standardize([5.0, 5.0, 5.0])

    def test_lag_and_lead(self):
        assert_allclose(basics.lag([1, 2, 3], 1), [np.nan, 1, 2])
        assert_allclose(basics.lag([1, 2, 3], -1), [2, 3, np.nan])
        assert_allclose(basics.lag([1, 2, 3], 0), [1, 2, 3])
        assert np.all(np.isnan(basics.lag([1, 2, 3], 5)))

    def test_diff(self):
        assert_allclose(basics.diff([1, 4, 9, 16]), [np.nan, 3, 5, 7])
        assert_allclose(basics.diff([1, 4, 9, 16], 2), [np.nan, np.nan, 8, 12])


class TestTables:

    def test_tabulate_sorted_by_value(self):
        t = basics.tabulate(["b", "a", "a", "c"])
        assert list(t.index) == ["a", "b", "c"]
        assert list(t) == [2, 1, 1]
        assert t.name == "count"

    def test_tabulate_missing_last(self):
        t = basics.tabulate([2.0, np.nan, 1.0, 2.0])
        assert pd.isna(t.index[-1])
        assert t.iloc[-1] == 1

    def test_cut(self):
        binned = basics.cut([8, 12, 13, 20], [7, 12, 16, 20])
        assert binned.cat.categories.size == 3
        assert binned.iloc[0] == binned.iloc[1]
        assert binned.iloc[2] != binned.iloc[1]
        assert basics.cut([30], [0, 10]).isna().all()
