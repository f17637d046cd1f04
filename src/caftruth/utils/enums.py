"""Module which contains enumerated variables shared across the project.

The numerical values of the enumerators are part of the file format: they
are stored as is and interpreted as such by downstream analysis code. They
must never be renumbered.
"""

from enum import IntEnum

__all__ = ["Generator", "ScatteringMode", "enum_factory"]


class Generator(IntEnum):
    """Enumerates known generators of neutrino interactions."""

    UNKNOWN = 0
    GENIE = 1
    GIBUU = 2
    NEUT = 3


class ScatteringMode(IntEnum):
    """Enumerates neutrino interaction categories.

    The values follow the interaction mode codes of the `nusimdata`
    `MCNeutrino` class. They are duplicated here to avoid depending on the
    simulation framework to interpret the files.
    """

    UNKNOWN = -1
    QE = 0
    RES = 1
    DIS = 2
    COH = 3
    COH_ELASTIC = 4
    ELECTRON_SCATTERING = 5
    IMD_ANNIHILATION = 6
    INVERSE_BETA_DECAY = 7
    GLASHOW_RESONANCE = 8
    AM_NU_GAMMA = 9
    MEC = 10
    DIFFRACTIVE = 11
    EM = 12
    WEAK_MIX = 13


# Enumerated types which can be parsed from a configuration string
ENUM_DICT = {"mode": ScatteringMode, "generator": Generator}


def enum_factory(enum, value):
    """Parses an enumerated object from string name(s) to value(s).

    Parameters
    ----------
    enum : str
        Name of the enumerated type (`mode` or `generator`)
    value : Union[str, List[str]]
        Name or names of the enumerated objects (from config)

    Returns
    -------
    Union[IntEnum, List[IntEnum]]
        Enumerator or enumerators corresponding to the names
    """
    # Get the enumerated type
    if enum not in ENUM_DICT:
        raise ValueError(
            f"Enumerated type not recognized: {enum}. Must be one of "
            f"{list(ENUM_DICT.keys())}."
        )
    enum = ENUM_DICT[enum]

    # Translate enumerated strings into values
    if isinstance(value, str):
        return _parse_name(enum, value)

    return [_parse_name(enum, v) for v in value]


def _parse_name(enum, name):
    """Fetches a single enumerator from its (case-insensitive) name."""
    if name.upper() not in enum.__members__:
        raise ValueError(
            f"Enumerated object not recognized: {name}. Must be one "
            f"of {[e.name for e in enum]}."
        )

    return enum[name.upper()]
