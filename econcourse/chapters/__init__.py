"""
Book chapters. Each module exposes TITLE and run(outdir, seed) -> Section.
"""

import importlib

CHAPTERS = [
    "basics",
    "frames",
    "iteration",
    "linear_models",
    "robust_se",
    "instrumental_variables",
    "survival",
    "tables",
    "monte_carlo",
    "mle",
]


def load(name):
    """Import a chapter module by name."""
    if name not in CHAPTERS:
        raise ValueError(f"unknown chapter {name!r}; expected one of {CHAPTERS}")
    return importlib.import_module(f"{__name__}.{name}")
