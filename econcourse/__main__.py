"""
Build the course book
=====================

Runs every chapter (simulate, estimate, print, plot) and compiles the
chapter text and figures into one PDF.

    python -m econcourse                       # all chapters + PDF in ./book
    python -m econcourse --chapters ols mle    # a subset
    python -m econcourse --no-pdf --outdir /tmp/figs
"""

import argparse
import os
import sys
import traceback

import matplotlib
matplotlib.use("Agg")

from . import chapters
from .book import build_pdf

BOOK_TITLE = "APPLIED ECONOMETRICS: A CODE COMPANION"
BOOK_SUBTITLE = "Simulate, estimate, tabulate, plot"
INTRO = [
    "Each chapter explains one idea briefly, then runs a short,",
    "self-contained example: simulate data with a known truth, fit the",
    "model, print the results and draw a figure.",
    "",
    "All estimators are implemented from scratch with numpy, scipy and pandas.",
]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="econcourse",
        description="Run the course chapters and build the book PDF",
    )
    parser.add_argument(
        "--outdir", default="book",
        help="Directory for figures, tables and the PDF (default: ./book)",
    )
    parser.add_argument(
        "--chapters", nargs="+", choices=chapters.CHAPTERS, metavar="NAME",
        default=None,
        help="Run only these chapters, in book order (default: all)",
    )
    parser.add_argument("--seed", type=int, default=42,
                        help="Random seed passed to every chapter (default: 42)")
    parser.add_argument("--no-pdf", action="store_true",
                        help="Skip PDF assembly; only write figures and tables")
    parser.add_argument("--list", action="store_true",
                        help="List chapter names and exit")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if args.list:
        for name in chapters.CHAPTERS:
            print(f"{name:24s} {chapters.load(name).TITLE}")
        return 0

    selected = [c for c in chapters.CHAPTERS
                if args.chapters is None or c in args.chapters]
    os.makedirs(args.outdir, exist_ok=True)

    print("=" * 60)
    print(BOOK_TITLE)
    print("=" * 60)

    sections, failed = [], []
    for name in selected:
        module = chapters.load(name)
        print(f"\n[{name}] {module.TITLE}")
        try:
            sections.append(module.run(args.outdir, seed=args.seed))
        except Exception:
            print(f"[{name}] FAILED")
            traceback.print_exc()
            failed.append(name)

    if not args.no_pdf and sections:
        pdf_path = os.path.join(args.outdir, "econcourse_book.pdf")
        build_pdf(sections, pdf_path, BOOK_TITLE, BOOK_SUBTITLE, intro=INTRO)
        print(f"\n[book] Wrote {pdf_path} ({len(sections)} chapters)")

    if failed:
        print(f"\n[book] {len(failed)} chapter(s) failed: {', '.join(failed)}")
        return 1
    print("\nDone!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
