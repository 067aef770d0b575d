"""Smoke tests: every chapter runs end to end and the CLI assembles the book."""

import os

import pytest

from econcourse import chapters
from econcourse.__main__ import main, parse_args


@pytest.mark.parametrize("name", chapters.CHAPTERS)
def test_chapter_runs(name, tmp_path, capsys):
    module = chapters.load(name)
    kwargs = {"n_sims": 40} if name == "monte_carlo" else {}
    section = module.run(str(tmp_path), seed=42, **kwargs)
    assert section.title == module.TITLE
    assert section.text.strip()
    assert os.path.exists(section.figure)
    assert "[" in capsys.readouterr().out


def test_tables_chapter_writes_files(tmp_path):
    chapters.load("tables").run(str(tmp_path))
    assert (tmp_path / "table08_wages.md").exists()
    assert "\\begin{tabular}" in (tmp_path / "table08_wages.tex").read_text()


def test_unknown_chapter():
    with pytest.raises(ValueError, match="unknown chapter"):
        chapters.load("nope")


class TestCli:

    def test_defaults(self):
        args = parse_args([])
        assert args.outdir == "book"
        assert args.seed == 42
        assert args.chapters is None
        assert not args.no_pdf

    def test_list(self, capsys):
        assert main(["--list"]) == 0
        out = capsys.readouterr().out
        for name in chapters.CHAPTERS:
            assert name in out

    def test_subset_with_pdf(self, tmp_path):
        outdir = tmp_path / "book"
        assert main(["--outdir", str(outdir), "--chapters", "basics",
                     "survival"]) == 0
        assert (outdir / "econcourse_book.pdf").exists()
        assert (outdir / "fig01_basics.png").exists()
        assert (outdir / "fig07_survival.png").exists()

    def test_no_pdf(self, tmp_path):
        assert main(["--outdir", str(tmp_path), "--chapters", "frames",
                     "--no-pdf"]) == 0
        assert not (tmp_path / "econcourse_book.pdf").exists()

    def test_failing_chapter_sets_exit_code(self, tmp_path, monkeypatch):
        module = chapters.load("basics")

        def broken(outdir, seed=42):
            raise RuntimeError("boom")

        monkeypatch.setattr(module, "run", broken)
        assert main(["--outdir", str(tmp_path), "--chapters", "basics",
                     "frames", "--no-pdf"]) == 1

    def test_unknown_chapter_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["--chapters", "nope"])
