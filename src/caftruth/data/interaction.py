"""Module with a data class object which represents a true interaction.

The interaction is usually that of a neutrino with the detector, but it may
also be that of any other top-level probe particle (e.g. a cosmic ray). The
record is filled by the simulation truth extraction and read as is by the
analysis and storage tools.

Floating point attributes which were not computed (or are not applicable)
hold a single-precision signaling NaN. The attribute names are the names of
the columns in the stored files and must not change.
"""

from dataclasses import dataclass
from warnings import warn

import numpy as np

from caftruth.utils.enums import Generator, ScatteringMode
from caftruth.utils.globals import INVAL_DCY_MODE, INVAL_PDG, NU_CURR_TYPE, SNAN

from .base import DataBase
from .particle import TrueParticle

__all__ = ["TrueInteraction"]


@dataclass(eq=False)
class TrueInteraction(DataBase):
    """True interaction of a probe particle with the detector.

    Attributes
    ----------
    isvtxcont : bool
        Whether the true vertex is within the detector. If not, might be a
        rock particle or a cosmic
    pdg : int
        PDG code of the probe particle
    pdgorig : int
        Initial (unoscillated) PDG code of the probe neutrino. May differ from
        `pdg` if the record comes from a swap file
    iscc : bool
        Charged current (`True`) or neutral current/interference (`False`)
    mode : ScatteringMode
        Interaction mode
    targetPDG : int
        PDG code of the struck target
    hitnuc : int
        PDG code of the struck nucleon. For MEC, code of the struck
        nucleon-nucleon pair: 2000000200 (nn), 2000000201 (np), 2000000202 (pp)
    E : float
        True energy of the probe [GeV]
    vtx : np.ndarray
        (3) Interaction vertex position in detector coordinates [cm]
    momentum : np.ndarray
        (3) Probe three-momentum
    position : np.ndarray
        (3) Probe interaction position
    time : float
        True interaction time
    bjorkenX : float
        Bjorken x = (k-k')^2/(2*p.q) [dimensionless]
    inelasticity : float
        Inelasticity y = (p.q)/(k.p) = q0/E
    Q2 : float
        Invariant four-momentum transfer from the lepton to the nuclear system
    q0 : float
        Energy transferred from the lepton to the nuclear system (lab frame)
    modq : float
        Magnitude of the three-momentum transferred from the lepton to the
        nuclear system, |q| (lab frame)
    W : float
        Hadronic invariant mass
    t : float
        Kinematic t
    baseline : float
        Distance from the probe production point to the interaction [m]
    npiplus : int
        Number of pi+ after the primary interaction, before FSI
    npiminus : int
        Number of pi- after the primary interaction, before FSI
    npizero : int
        Number of pi0 after the primary interaction, before FSI
    nproton : int
        Number of protons after the primary interaction, before FSI
    nneutron : int
        Number of neutrons after the primary interaction, before FSI
    ischarm : bool
        Whether a charm quark is involved in the interaction
    isseaquark : bool
        Whether the probe scattered off a sea quark
    resnum : int
        Resonance number, as encoded by the generator
    xsec : float
        Cross section of the thrown interaction [1/GeV^2]
    genweight : float
        Weight assigned by the generator, if any
    prod_vtx : np.ndarray
        (3) Probe production vertex [cm, beam coordinates]
    parent_dcy_mom : np.ndarray
        (3) Probe parent momentum at decay [GeV, beam coordinates]
    parent_dcy_mode : int
        Probe parent decay mode (-1 if not set)
    parent_pdg : int
        PDG code of the probe parent
    parent_dcy_E : float
        Probe parent energy at decay [GeV]
    imp_weight : float
        Importance weight from the flux file
    generator : Generator
        Generator which created this interaction
    genVersion : np.ndarray
        Version of the generator which created this interaction
    genConfigString : str
        Generator configuration string (for GENIE 3+, the comprehensive model
        configuration)
    nprim : int
        Number of primary daughters
    prim : List[TrueParticle]
        Primary daughters. If there is a charged lepton, it comes first
    """

    isvtxcont: bool = False

    pdg: int = INVAL_PDG
    pdgorig: int = INVAL_PDG

    iscc: bool = False
    mode: ScatteringMode = ScatteringMode.UNKNOWN
    targetPDG: int = INVAL_PDG
    hitnuc: int = INVAL_PDG

    E: float = SNAN
    vtx: np.ndarray = None
    momentum: np.ndarray = None
    position: np.ndarray = None

    time: float = SNAN
    bjorkenX: float = SNAN
    inelasticity: float = SNAN
    Q2: float = SNAN
    q0: float = SNAN
    modq: float = SNAN
    W: float = SNAN
    t: float = SNAN
    baseline: float = SNAN

    npiplus: int = 0
    npiminus: int = 0
    npizero: int = 0
    nproton: int = 0
    nneutron: int = 0

    ischarm: bool = False
    isseaquark: bool = False
    resnum: int = 0
    xsec: float = SNAN
    genweight: float = SNAN

    prod_vtx: np.ndarray = None
    parent_dcy_mom: np.ndarray = None
    parent_dcy_mode: int = INVAL_DCY_MODE
    parent_pdg: int = INVAL_PDG
    parent_dcy_E: float = SNAN
    imp_weight: float = SNAN

    generator: Generator = Generator.UNKNOWN
    genVersion: np.ndarray = None
    genConfigString: str = ""

    nprim: int = 0
    prim: list = None

    # Fixed-length attributes
    _fixed_length_attrs = (
        ("vtx", 3),
        ("momentum", 3),
        ("position", 3),
        ("prod_vtx", 3),
        ("parent_dcy_mom", 3),
    )

    # Variable-length attributes
    _var_length_attrs = (("genVersion", np.uint32),)

    # Attributes specifying coordinates
    _pos_attrs = ("vtx", "position", "prod_vtx")

    # Attributes specifying vector components
    _vec_attrs = ("momentum", "parent_dcy_mom")

    # Enumerated attributes
    _enum_attrs = (("mode", ScatteringMode), ("generator", Generator))

    # String attributes
    _str_attrs = ("genConfigString",)

    # Boolean attributes
    _bool_attrs = ("isvtxcont", "iscc", "ischarm", "isseaquark")

    # Storage type of scalar attributes
    _dtype_attrs = (
        ("pdg", np.int32),
        ("pdgorig", np.int32),
        ("targetPDG", np.int32),
        ("hitnuc", np.int32),
        ("E", np.float32),
        ("time", np.float32),
        ("bjorkenX", np.float32),
        ("inelasticity", np.float32),
        ("Q2", np.float32),
        ("q0", np.float32),
        ("modq", np.float32),
        ("W", np.float32),
        ("t", np.float32),
        ("baseline", np.float32),
        ("npiplus", np.uint32),
        ("npiminus", np.uint32),
        ("npizero", np.uint32),
        ("nproton", np.uint32),
        ("nneutron", np.uint32),
        ("resnum", np.int32),
        ("xsec", np.float32),
        ("genweight", np.float32),
        ("parent_dcy_mode", np.int32),
        ("parent_pdg", np.int32),
        ("parent_dcy_E", np.float32),
        ("imp_weight", np.float32),
        ("nprim", np.int32),
    )

    # Attributes which hold lists of other data structures
    _obj_list_attrs = (("prim", TrueParticle),)

    # Count attributes which mirror the length of a list
    _count_attrs = (("nprim", "prim"),)

    @property
    def lepton(self):
        """Fetches the outgoing charged lepton, if there is one.

        Returns
        -------
        TrueParticle
            First primary daughter if it is a charged lepton, `None` otherwise
        """
        if len(self.prim) and self.prim[0].is_charged_lepton:
            return self.prim[0]

        return None

    def add_prim(self, particle):
        """Adds a primary daughter and keeps the daughter count in sync.

        A charged lepton is placed at the front of the list, unless a charged
        lepton already occupies that spot.

        Parameters
        ----------
        particle : TrueParticle
            Primary daughter to add
        """
        if particle.is_charged_lepton and self.lepton is None:
            self.prim.insert(0, particle)
        else:
            self.prim.append(particle)

        self.nprim = np.int32(len(self.prim))

    @classmethod
    def from_larcv(cls, neutrino, particles=None):
        """Builds and returns a TrueInteraction from a LArCV Neutrino object.

        Parameters
        ----------
        neutrino : larcv.Neutrino
            LArCV-format neutrino object
        particles : List[TrueParticle], optional
            Primary daughters of the interaction

        Returns
        -------
        TrueInteraction
            Interaction object
        """
        # Initialize the dictionary to initialize the object with
        obj_dict = {}

        # Load the scalar attributes
        for key, attr in (
            ("pdg_code", "pdg"),
            ("target", "targetPDG"),
            ("nucleon", "hitnuc"),
            ("energy_init", "E"),
            ("hadronic_invariant_mass", "W"),
            ("bjorken_x", "bjorkenX"),
            ("inelasticity", "inelasticity"),
            ("momentum_transfer", "Q2"),
            ("momentum_transfer_mag", "modq"),
            ("energy_transfer", "q0"),
            ("distance_travel", "baseline"),
        ):
            if not hasattr(neutrino, key):
                warn(
                    f"The LArCV Neutrino object is missing the {key} "
                    "attribute. It will miss from the TrueInteraction object."
                )
                continue
            obj_dict[attr] = getattr(neutrino, key)()

        # The original flavor is not tracked by LArCV
        if "pdg" in obj_dict:
            obj_dict["pdgorig"] = obj_dict["pdg"]

        # Load the enumerated attributes
        if hasattr(neutrino, "current_type"):
            obj_dict["iscc"] = NU_CURR_TYPE.get(neutrino.current_type()) == "CC"

        if hasattr(neutrino, "interaction_mode"):
            mode = neutrino.interaction_mode()
            if mode in {m.value for m in ScatteringMode}:
                obj_dict["mode"] = ScatteringMode(mode)
            else:
                warn(f"Interaction mode {mode} not recognized, set to UNKNOWN.")

        # Load the vertex position
        pos_attrs = ("x", "y", "z")
        vector = neutrino.position()
        obj_dict["vtx"] = np.asarray(
            [getattr(vector, a)() for a in pos_attrs], dtype=np.float32
        )
        obj_dict["position"] = obj_dict["vtx"]
        obj_dict["time"] = vector.t() if hasattr(vector, "t") else SNAN

        # Load the momentum attribute (special care needed)
        mom_attrs = ("px", "py", "pz")
        if not all(hasattr(neutrino, a) for a in mom_attrs):
            warn(
                "The LArCV Neutrino object is missing the momentum "
                "attribute. It will miss from the TrueInteraction object."
            )
        else:
            obj_dict["momentum"] = np.asarray(
                [getattr(neutrino, a)() for a in mom_attrs], dtype=np.float32
            )

        # Build the interaction, attach the primary daughters
        interaction = cls(**obj_dict)
        for particle in particles or []:
            interaction.add_prim(particle)

        return interaction
