"""Test that the reader classes work as intended."""

import os

import h5py
import numpy as np
import pytest

from caftruth.data import ObjectList, RunInfo, TrueInteraction, TrueParticle
from caftruth.io import reader_factory
from caftruth.io.read import HDF5Reader
from caftruth.io.write import HDF5Writer
from caftruth.utils.enums import Generator, ScatteringMode
from caftruth.utils.globals import SNAN_BITS
from caftruth.utils.sentinel import is_sentinel
from caftruth.version import __version__


@pytest.fixture(name="hdf5_file")
def fixture_hdf5_file(hdf5_output, numu_cc_qe):
    """Writes a small file with five entries, one interaction each."""
    interactions = [numu_cc_qe]
    for i in range(4):
        interaction = TrueInteraction(pdg=12, mode=ScatteringMode.DIS, E=float(i))
        for j in range(i):
            interaction.add_prim(TrueParticle(pdg=2112, G4ID=j))
        interactions.append(interaction)

    data = {
        "index": np.arange(5),
        "run_info": [RunInfo(run=1, subrun=0, event=i) for i in range(5)],
        "mc": interactions,
    }
    HDF5Writer(hdf5_output)(data, cfg={"writer": {"name": "hdf5"}})

    return hdf5_output


def test_hdf5_reader(hdf5_file, numu_cc_qe):
    """Tests the loading of an HDF5 file."""
    reader = HDF5Reader(hdf5_file)
    assert reader.num_entries == 5
    assert len(reader) == 5
    assert reader.version == __version__
    assert reader.cfg == {"writer": {"name": "hdf5"}}

    # The first entry holds the reference interaction
    entry = reader[0]
    assert entry["index"] == 0
    assert entry["file_index"] == 0
    assert entry["file_entry_index"] == 0
    assert entry["run_info"] == RunInfo(run=1, subrun=0, event=0)

    interaction = entry["mc"]
    assert isinstance(interaction, TrueInteraction)
    assert interaction == numu_cc_qe
    assert interaction.mode is ScatteringMode.QE
    assert interaction.generator is Generator.GENIE
    assert interaction.iscc is True
    assert interaction.genConfigString == "AR23_20i_00_000"
    assert np.array_equal(interaction.genVersion, [3, 4, 2])
    assert interaction.lepton.pdg == 13
    assert isinstance(interaction.prim, ObjectList)
    assert np.array_equal(interaction.prim[0].daughters, [4, 5])

    # The unfilled floats are still sentinels
    assert is_sentinel(interaction.W)
    assert np.all(is_sentinel(interaction.prod_vtx))

    # The other entries hold a growing number of daughters
    for i in range(1, 5):
        interaction = reader[i]["mc"]
        assert interaction.mode is ScatteringMode.DIS
        assert interaction.E == i - 1
        assert interaction.nprim == i - 1
        assert len(interaction.prim) == i - 1
        assert all(p.pdg == 2112 for p in interaction.prim)


@pytest.mark.parametrize("mode", list(ScatteringMode))
def test_hdf5_round_trip_modes(hdf5_output, mode):
    """Tests that every interaction mode survives a round trip."""
    generator = Generator(max(mode.value, 0) % len(Generator))
    interaction = TrueInteraction(mode=mode, generator=generator, resnum=3)
    HDF5Writer(hdf5_output)({"index": 0, "mc": interaction})

    loaded = HDF5Reader(hdf5_output)[0]["mc"]
    assert loaded == interaction
    assert loaded.mode is mode
    assert loaded.generator is generator


@pytest.mark.parametrize("num_prim", [0, 1, 7])
def test_hdf5_round_trip_daughters(hdf5_output, num_prim):
    """Tests that daughter lists of any length survive a round trip."""
    interaction = TrueInteraction(pdg=-14, iscc=True, mode=ScatteringMode.MEC)
    for i in range(num_prim):
        interaction.add_prim(
            TrueParticle(
                pdg=-13 if i == 3 else 2212,
                G4ID=i,
                p=[0.5, 0.25, 0.125, 1.0],
                daughters=np.arange(i),
            )
        )
    HDF5Writer(hdf5_output)({"index": 0, "mc": interaction})

    loaded = HDF5Reader(hdf5_output)[0]["mc"]
    assert loaded == interaction
    assert loaded.nprim == num_prim
    assert len(loaded.prim) == num_prim
    if num_prim > 3:
        assert loaded.lepton.pdg == -13
    else:
        assert loaded.lepton is None


def test_hdf5_round_trip_bits(hdf5_output, numu_cc_qe):
    """Tests that sentinel and filled floats keep their exact bits."""
    numu_cc_qe.xsec = np.float32(1.5e-38)
    numu_cc_qe.genweight = np.float32("nan")
    HDF5Writer(hdf5_output)({"index": 0, "mc": numu_cc_qe})

    loaded = HDF5Reader(hdf5_output)[0]["mc"]
    for attr in ("E", "W", "Q2", "xsec", "genweight", "parent_dcy_E"):
        before = np.array([getattr(numu_cc_qe, attr)], dtype=np.float32)
        after = np.array([getattr(loaded, attr)], dtype=np.float32)
        assert before.view(np.uint32)[0] == after.view(np.uint32)[0]

    # A quiet NaN is not confused with the sentinel
    assert np.isnan(loaded.genweight)
    assert not is_sentinel(loaded.genweight)
    assert np.array([loaded.t], dtype=np.float32).view(np.uint32)[0] == SNAN_BITS


@pytest.mark.parametrize("sizes", [(0,), (4,), (0, 3), (5, 2, 7)])
def test_hdf5_round_trip_arrays(hdf5_output, sizes):
    """Tests that per-entry 1D and 2D arrays survive a round trip."""
    # Set the random seed so that there are no surprises
    np.random.seed(seed=0)

    # Build one flux weight array and one (N, 3) point array per entry
    weights = [np.random.rand(s).astype(np.float32) for s in sizes]
    points = [np.random.rand(s, 3) for s in sizes]
    data = {"index": np.arange(len(sizes)), "weights": weights, "points": points}

    writer = HDF5Writer(hdf5_output)
    writer(data)
    assert writer.type_dict["weights"].width == 0
    assert writer.type_dict["points"].width == 3

    with h5py.File(hdf5_output, "r") as out_file:
        assert out_file["weights"].shape == (sum(sizes),)
        assert out_file["points"].shape == (sum(sizes), 3)
        assert not out_file["points"].attrs["scalar"]

    reader = HDF5Reader(hdf5_output)
    for i, size in enumerate(sizes):
        entry = reader[i]
        assert entry["weights"].dtype == np.float32
        assert np.array_equal(entry["weights"], weights[i])
        assert entry["points"].shape == (size, 3)
        assert np.array_equal(entry["points"], points[i])


def test_hdf5_round_trip_lite(hdf5_output, numu_cc_qe):
    """Tests that lite files drop the daughter track IDs of particles."""
    HDF5Writer(hdf5_output, lite=True)({"index": 0, "mc": numu_cc_qe})

    with h5py.File(hdf5_output, "r") as out_file:
        assert "daughters" not in out_file["mc_prim"].dtype.names
        assert "pdg" in out_file["mc_prim"].dtype.names
        assert "genVersion" in out_file["mc"].dtype.names

    loaded = HDF5Reader(hdf5_output)[0]["mc"]
    assert loaded.nprim == 2
    for before, after in zip(numu_cc_qe.prim, loaded.prim):
        assert after.pdg == before.pdg
        assert np.array_equal(after.p, before.p)
        assert len(after.daughters) == 0


def test_hdf5_reader_object_lists(hdf5_output, numu_cc_qe):
    """Tests the loading of a variable number of interactions per entry."""
    default = TrueInteraction()
    data = {
        "index": np.arange(2),
        "interactions": [ObjectList([], default), ObjectList([numu_cc_qe] * 2, default)],
    }
    HDF5Writer(hdf5_output)(data)

    reader = HDF5Reader(hdf5_output)
    empty = reader[0]["interactions"]
    assert isinstance(empty, ObjectList)
    assert len(empty) == 0
    assert isinstance(empty.default, TrueInteraction)
    assert reader[1]["interactions"] == [numu_cc_qe, numu_cc_qe]


def test_hdf5_reader_dicts(hdf5_file):
    """Tests the loading of objects as plain dictionaries."""
    reader = HDF5Reader(hdf5_file, build_classes=False)
    interaction = reader[0]["mc"]
    assert isinstance(interaction, dict)
    assert interaction["pdg"] == 14
    assert len(interaction["prim"]) == 2
    assert interaction["prim"][0]["pdg"] == 13


def test_hdf5_reader_unknown_attrs(hdf5_file):
    """Tests the handling of attributes unknown to the data class."""
    # Point the stored interactions at another data class
    with h5py.File(hdf5_file, "a") as out_file:
        out_file["mc"].attrs["class_name"] = "RunInfo"

    with pytest.raises(AttributeError):
        HDF5Reader(hdf5_file)[0]

    # Unknown attributes can be skipped
    run_info = HDF5Reader(hdf5_file, skip_unknown_attrs=True)[0]["mc"]
    assert run_info == RunInfo()


def test_hdf5_reader_entries(hdf5_file):
    """Tests the restriction of the list of entries to load."""
    reader = HDF5Reader(hdf5_file, n_entry=2)
    assert len(reader) == 2

    reader = HDF5Reader(hdf5_file, n_skip=2)
    assert len(reader) == 3
    assert reader[0]["index"] == 0
    assert reader[0]["file_entry_index"] == 2

    reader = HDF5Reader(hdf5_file, n_entry=2, n_skip=2)
    assert len(reader) == 2

    reader = HDF5Reader(hdf5_file, entry_list=[1, 3])
    assert len(reader) == 2
    assert reader[1]["run_info"].event == 3

    reader = HDF5Reader(hdf5_file, skip_entry_list=[1, 3])
    assert len(reader) == 3

    with pytest.raises(AssertionError):
        HDF5Reader(hdf5_file, n_entry=10)

    with pytest.raises(AssertionError):
        HDF5Reader(hdf5_file, n_entry=2, entry_list=[1])


def test_hdf5_reader_file_list(hdf5_file, tmp_path):
    """Tests loading a list of files."""
    # Provide the same file twice through a file list
    list_path = os.path.join(tmp_path, "files.txt")
    with open(list_path, "w", encoding="utf-8") as out_file:
        out_file.write(f"{hdf5_file}\n{hdf5_file}\n")

    reader = HDF5Reader(list_path)
    assert reader.num_entries == 10
    assert len(reader.file_offsets) == 2
    assert reader.file_offsets[1] == 5
    assert reader[7]["file_index"] == 1
    assert reader[7]["file_entry_index"] == 2

    # Restrict the number of files
    reader = HDF5Reader([hdf5_file, hdf5_file], limit_num_files=1)
    assert reader.num_entries == 5

    # Glob patterns which match nothing are rejected
    with pytest.raises(AssertionError):
        HDF5Reader(os.path.join(tmp_path, "*.root"))


def test_hdf5_reader_run_map(hdf5_file):
    """Tests the access to entries by (run, subrun, event) triplet."""
    reader = HDF5Reader(hdf5_file, create_run_map=True, skip_entry_list=[0])
    assert len(reader.run_map) == 5
    entry = reader.get_run_event(1, 0, 3)
    assert entry["run_info"].event == 3

    with pytest.raises(AssertionError):
        reader.get_run_event(1, 0, 0)

    with pytest.raises(AssertionError):
        reader.get_run_event(2, 0, 0)

    with pytest.raises(AssertionError):
        HDF5Reader(hdf5_file, create_run_map=True, run_info_key="trigger")


def test_reader_factory(hdf5_file):
    """Tests the instantiation of a reader from a configuration block."""
    reader = reader_factory({"name": "hdf5", "file_keys": hdf5_file})
    assert isinstance(reader, HDF5Reader)
    assert len(reader) == 5
