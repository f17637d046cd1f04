"""Module with a data class object which represents true particle information.

This is the daughter record aggregated by :class:`TrueInteraction`.
"""

from dataclasses import dataclass
from warnings import warn

import numpy as np

from caftruth.utils.globals import (
    CHARGED_LEPTON_PDGS,
    INVAL_ID,
    INVAL_PDG,
    INVAL_TID,
    SNAN,
)

from .base import DataBase

__all__ = ["TrueParticle"]


@dataclass(eq=False)
class TrueParticle(DataBase):
    """Particle truth information.

    Attributes
    ----------
    pdg : int
        PDG code of the particle
    G4ID : int
        Geant4 track ID of the particle (-1 if it was not propagated)
    interaction_id : int
        Index of the interaction the particle belongs to
    time : float
        Creation time of the particle
    p : np.ndarray
        (4) Four-momentum of the particle at creation, (px, py, pz, E) [GeV]
    start_pos : np.ndarray
        (3) Creation point of the particle [cm]
    end_pos : np.ndarray
        (3) Point where the particle stopped or exited the detector [cm]
    parent : int
        Geant4 track ID of the parent particle (-1 if primary)
    daughters : np.ndarray
        Geant4 track IDs of the daughter particles
    first_process : int
        Enumerated process which created the particle
    first_subprocess : int
        Enumerated subprocess which created the particle
    end_process : int
        Enumerated process which ended the particle
    end_subprocess : int
        Enumerated subprocess which ended the particle
    """

    pdg: int = INVAL_PDG
    G4ID: int = INVAL_ID
    interaction_id: int = INVAL_ID
    time: float = SNAN
    p: np.ndarray = None
    start_pos: np.ndarray = None
    end_pos: np.ndarray = None
    parent: int = INVAL_ID
    daughters: np.ndarray = None
    first_process: int = 0
    first_subprocess: int = 0
    end_process: int = 0
    end_subprocess: int = 0

    # Fixed-length attributes
    _fixed_length_attrs = (("p", 4), ("start_pos", 3), ("end_pos", 3))

    # Variable-length attributes
    _var_length_attrs = (("daughters", np.int32),)

    # Attributes specifying coordinates
    _pos_attrs = ("start_pos", "end_pos")

    # Attributes that must not be stored to file when storing lite files
    _lite_skip_attrs = ("daughters",)

    # Storage type of scalar attributes
    _dtype_attrs = (
        ("pdg", np.int32),
        ("G4ID", np.int32),
        ("interaction_id", np.int64),
        ("time", np.float32),
        ("parent", np.int32),
        ("first_process", np.uint32),
        ("first_subprocess", np.uint32),
        ("end_process", np.uint32),
        ("end_subprocess", np.uint32),
    )

    # Four-momentum component labels
    _p_axes = ("px", "py", "pz", "E")

    def scalar_dict(self, attrs=None, lengths=None, lite=False):
        """Returns the particle attributes as a dictionary of scalars.

        The four-momentum is expanded as `p_px`, `p_py`, `p_pz` and `p_E`.

        Parameters
        ----------
        attrs : List[str], optional
            List of attribute names to include in the dictionary
        lengths : Dict[str, int], optional
            Specifies the length of variable-length attributes
        lite : bool, default False
            If `True`, the `_lite_skip_attrs` are dropped

        Returns
        -------
        dict
            Dictionary of flattened attribute names and their scalar values
        """
        scalar_dict = super().scalar_dict(attrs, lengths, lite)
        for i, axis in enumerate(self._p_axes):
            if f"p_{i}" in scalar_dict:
                scalar_dict[f"p_{axis}"] = scalar_dict.pop(f"p_{i}")

        return scalar_dict

    @property
    def is_charged_lepton(self):
        """Whether the particle is a charged lepton (e, mu or tau).

        Returns
        -------
        bool
            `True` if the absolute PDG code is that of a charged lepton
        """
        return abs(int(self.pdg)) in CHARGED_LEPTON_PDGS

    @classmethod
    def from_larcv(cls, particle, energy_scale=1e-3):
        """Builds and returns a TrueParticle object from a LArCV Particle object.

        Parameters
        ----------
        particle : larcv.Particle
            LArCV-format particle object
        energy_scale : float, default 1e-3
            Factor applied to energies and momenta (LArCV stores them in MeV)

        Returns
        -------
        TrueParticle
            Particle object
        """
        # Initialize the dictionary to initialize the object with
        obj_dict = {}

        # Load the scalar attributes
        for key, attr in (
            ("pdg_code", "pdg"),
            ("track_id", "G4ID"),
            ("interaction_id", "interaction_id"),
            ("t", "time"),
            ("parent_track_id", "parent"),
        ):
            if not hasattr(particle, key):
                warn(
                    f"The LArCV Particle object is missing the {key} "
                    "attribute. It will miss from the TrueParticle object."
                )
                continue
            value = getattr(particle, key)()
            if attr in ("G4ID", "parent") and value >= INVAL_TID:
                value = INVAL_ID
            obj_dict[attr] = value

        # Load the positional attributes
        pos_attrs = ("x", "y", "z")
        for key, attr in (("position", "start_pos"), ("end_position", "end_pos")):
            vector = getattr(particle, key)()
            obj_dict[attr] = np.asarray(
                [getattr(vector, a)() for a in pos_attrs], dtype=np.float32
            )

        # Load the four-momentum (special care needed)
        mom_attrs = ("px", "py", "pz", "energy_init")
        if not all(hasattr(particle, a) for a in mom_attrs):
            warn(
                "The LArCV Particle object is missing the momentum "
                "attribute. It will miss from the TrueParticle object."
            )
        else:
            obj_dict["p"] = np.asarray(
                [getattr(particle, a)() * energy_scale for a in mom_attrs],
                dtype=np.float32,
            )

        return cls(**obj_dict)
