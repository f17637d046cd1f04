"""Top-level module of the caftruth source code."""

from .version import __version__

# Import commonly used data structures
from .data import ObjectList, RunInfo, TrueInteraction, TrueParticle
from .utils.enums import Generator, ScatteringMode
