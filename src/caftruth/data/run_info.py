"""Module with a data class object which represents the run information."""

from dataclasses import dataclass

from .base import DataBase

__all__ = ["RunInfo"]


@dataclass(eq=False)
class RunInfo(DataBase):
    """Run information related to a specific event.

    Attributes
    ----------
    run : int
        Run ID
    subrun : int
        Sub-run ID
    event : int
        Event ID
    """

    run: int = -1
    subrun: int = -1
    event: int = -1
