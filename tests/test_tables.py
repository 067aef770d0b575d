"""Tests for regression table formatting."""

import numpy as np
import pandas as pd
import pytest

from econcourse import tables


@pytest.fixture
def models():
    m1 = dict(beta=[1.0, 2.0], se=[0.5, 0.1], pvalue=[0.2, 0.001],
              names=["const", "x"], nobs=1000, r2=0.25)
    m2 = dict(beta=[0.5, 1.8, -0.3], se=[0.4, 0.2, 0.1],
              pvalue=[0.21, 0.0001, 0.04], names=["const", "x", "z"],
              nobs=980, r2=0.3)
    return [m1, m2]


class TestRegressionTable:

    def test_layout(self, models):
        table = tables.regression_table(models)
        assert list(table.columns) == ["(1)", "(2)"]
        assert list(table.index) == ["const", "", "x", "", "z", "",
                                     "Observations", "R2"]
        assert table.attrs["n_coef_rows"] == 6

    def test_cells(self, models):
        table = tables.regression_table(models)
        assert table.iloc[0, 0] == "1.000"
        assert table.iloc[2, 0] == "2.000***"
        assert table.iloc[3, 0] == "(0.100)"
        assert table.iloc[4, 0] == ""
        assert table.iloc[4, 1] == "-0.300**"
        assert table.loc["Observations", "(1)"] == "1,000"
        assert table.loc["R2", "(2)"] == "0.300"

    def test_star_note(self, models):
        table = tables.regression_table(models)
        assert table.attrs["note"] == "Note: *** p<0.01; ** p<0.05; * p<0.1"

    def test_normal_pvalues_when_missing(self):
        table = tables.regression_table([dict(beta=[1.0], se=[0.5])],
                                        digits=2)
        assert table.iloc[0, 0] == "1.00**"
        assert table.index[0] == "x0"

    def test_coef_selection_and_labels(self, models):
        table = tables.regression_table(models, model_names=["A", "B"],
                                        coef_names={"x": "Schooling"},
                                        stats=("nobs",))
        assert list(table.index) == ["Schooling", "", "Observations"]
        assert list(table.columns) == ["A", "B"]

    def test_missing_statistic_is_blank(self, models):
        table = tables.regression_table(models, stats=("fstat",))
        assert table.loc["F statistic", "(1)"] == ""

    def test_errors(self, models):
        with pytest.raises(ValueError):
            tables.regression_table([])
        with pytest.raises(ValueError, match="model names"):
            tables.regression_table(models, model_names=["only one"])
        with pytest.raises(ValueError, match="statistic"):
            tables.regression_table(models, stats=("nope",))
        with pytest.raises(ValueError, match="lengths"):
            tables.regression_table([dict(beta=[1.0, 2.0], se=[0.1])])


class TestRendering:

    def test_text(self, models):
        out = tables.to_text(tables.regression_table(models))
        assert out.startswith("=")
        assert "Observations" in out
        assert out.rstrip().endswith("* p<0.1")

    def test_markdown(self, models):
        out = tables.to_markdown(tables.regression_table(models))
        lines = out.splitlines()
        assert lines[0] == "| | (1) | (2) |"
        assert lines[1] == "|:---|:---:|:---:|"
        assert "| x | 2.000*** | 1.800*** |" in lines

    def test_latex(self, models):
        out = tables.to_latex(tables.regression_table(models),
                              caption="Wages", label="tab:wages")
        assert r"\begin{tabular}{lcc}" in out
        assert r"2.000$^{***}$" in out
        assert r"\caption{Wages}" in out
        assert out.count(r"\hline") == 4

    def test_latex_escapes_names(self):
        table = tables.regression_table(
            [dict(beta=[1.0], se=[1.0], pvalue=[0.5], names=["log_wage"])],
            stats=())
        assert r"log\_wage" in tables.to_latex(table)


class TestSummaryStatistics:

    def test_columns(self):
        df = pd.DataFrame({"a": [1.0, 2.0, np.nan], "b": [1.0, 1.0, 4.0]})
        out = tables.summary_statistics(df)
        assert list(out.columns) == ["N", "Mean", "SD", "Min", "Max"]
        assert out.loc["a", "N"] == 2
        assert out.loc["a", "Mean"] == 1.5
        assert out.loc["b", "Max"] == 4.0
