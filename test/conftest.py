"""Sets up fixtures general to the entire test suite of this package.

This file is read during the collection phase of pytest when running anything
inside this directory.
"""

import os

import numpy as np
import pytest

from caftruth.data import TrueInteraction, TrueParticle
from caftruth.utils.enums import Generator, ScatteringMode


@pytest.fixture(name="hdf5_output")
def fixture_hdf5_output(tmp_path):
    """Create a dummy output path for an HDF5 file.

    Parameters
    ----------
    tmp_path : str
       Generic pytest fixture used to handle temporary test files
    """
    return os.path.join(tmp_path, "dummy.h5")


@pytest.fixture(name="csv_output")
def fixture_csv_output(tmp_path):
    """Create a dummy output path for a CSV file.

    Parameters
    ----------
    tmp_path : str
       Generic pytest fixture used to handle temporary test files
    """
    return os.path.join(tmp_path, "dummy.csv")


@pytest.fixture(name="muon")
def fixture_muon():
    """Outgoing muon of a charged-current muon neutrino interaction."""
    return TrueParticle(
        pdg=13,
        G4ID=1,
        interaction_id=0,
        time=0.5,
        p=[0.25, 0.0, 1.5, 1.53125],
        start_pos=[10.0, 5.0, 100.0],
        end_pos=[12.0, 5.5, 250.0],
        daughters=[4, 5],
    )


@pytest.fixture(name="proton")
def fixture_proton():
    """Knocked-out proton of a quasi-elastic interaction."""
    return TrueParticle(
        pdg=2212,
        G4ID=2,
        interaction_id=0,
        time=0.5,
        p=[-0.125, 0.0625, 0.375, 1.0],
        start_pos=[10.0, 5.0, 100.0],
        end_pos=[9.0, 5.25, 104.0],
    )


@pytest.fixture(name="numu_cc_qe")
def fixture_numu_cc_qe(muon, proton):
    """Charged-current quasi-elastic muon neutrino interaction with a muon
    and a proton as primary daughters.
    """
    interaction = TrueInteraction(
        isvtxcont=True,
        pdg=14,
        pdgorig=14,
        iscc=True,
        mode=ScatteringMode.QE,
        targetPDG=1000180400,
        hitnuc=2112,
        E=2.5,
        vtx=[10.0, 5.0, 100.0],
        momentum=[0.0, 0.0, 2.5],
        position=[10.0, 5.0, 100.0],
        Q2=0.5,
        q0=0.75,
        generator=Generator.GENIE,
        genVersion=[3, 4, 2],
        genConfigString="AR23_20i_00_000",
    )
    interaction.add_prim(proton)
    interaction.add_prim(muon)

    return interaction


class MockVector:
    """Minimal stand-in for a LArCV vertex (getter methods only)."""

    def __init__(self, x, y, z, t=None):
        self._values = {"x": x, "y": y, "z": z}
        if t is not None:
            self.t = lambda: t

    def x(self):
        return self._values["x"]

    def y(self):
        return self._values["y"]

    def z(self):
        return self._values["z"]


class MockLArCVObject:
    """Minimal stand-in for a LArCV object which exposes its attributes
    through getter methods, as the LArCV bindings do.
    """

    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            setattr(self, key, self._getter(value))

    @staticmethod
    def _getter(value):
        return lambda: value


@pytest.fixture(name="larcv_neutrino")
def fixture_larcv_neutrino():
    """LArCV-like neutrino object of a muon neutrino CC resonant interaction."""
    return MockLArCVObject(
        pdg_code=14,
        target=1000180400,
        nucleon=2212,
        energy_init=3.0,
        hadronic_invariant_mass=1.25,
        bjorken_x=0.5,
        inelasticity=0.375,
        momentum_transfer=0.75,
        momentum_transfer_mag=1.125,
        energy_transfer=1.125,
        distance_travel=1300.0,
        current_type=0,
        interaction_mode=1,
        position=MockVector(1.0, 2.0, 3.0, t=4.0),
        px=0.0,
        py=0.0,
        pz=3.0,
    )


@pytest.fixture(name="larcv_particle")
def fixture_larcv_particle():
    """LArCV-like particle object of a primary muon (energies in MeV)."""
    return MockLArCVObject(
        pdg_code=13,
        track_id=1,
        interaction_id=0,
        t=4.0,
        parent_track_id=4294967295,
        position=MockVector(1.0, 2.0, 3.0),
        end_position=MockVector(4.0, 5.0, 6.0),
        px=500.0,
        py=0.0,
        pz=1000.0,
        energy_init=1250.0,
    )


@pytest.fixture(name="random_interactions")
def fixture_random_interactions(request):
    """Generates a list of interactions with a requested number of primary
    daughters each.
    """
    # Set the random seed so that there are no surprises
    np.random.seed(seed=0)

    # Generate one interaction per requested daughter count
    sizes = request.param
    if np.isscalar(sizes):
        sizes = [sizes]

    modes = list(ScatteringMode)
    interactions = []
    for i, s in enumerate(sizes):
        interaction = TrueInteraction(
            pdg=14,
            mode=modes[i % len(modes)],
            E=np.float32(np.random.rand()),
            vtx=np.random.rand(3).astype(np.float32),
        )
        for j in range(s):
            interaction.add_prim(
                TrueParticle(
                    pdg=2212,
                    G4ID=j,
                    p=np.random.rand(4).astype(np.float32),
                    daughters=np.arange(j),
                )
            )
        interactions.append(interaction)

    return interactions
