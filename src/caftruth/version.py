"""Module which stores the release version of the package."""

__version__ = "0.3.1"
