"""
econcourse -- code companion to a graduate course in applied econometrics.

Each sub-module implements one topic from scratch with numpy / scipy /
pandas; econcourse.chapters turns them into the chapters of the book.
"""

from .utils import ols_fit, add_const, as_arrays
from . import basics
from . import frames
from . import iteration
from . import covariance
from . import ols
from . import iv
from . import mle
from . import survival
from . import tables
from . import simulation
from . import bootstrap
from . import datasets

__version__ = "1.0.0"
