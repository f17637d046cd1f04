"""Contains a reader class dedicated to loading data from HDF5 files."""

import h5py
import numpy as np
import yaml

import caftruth.data
from caftruth.utils.logger import logger

from .base import ReaderBase

__all__ = ["HDF5Reader"]


class HDF5Reader(ReaderBase):
    """Class which reads information stored in HDF5 files.

    The files must be structured as produced by
    :class:`caftruth.io.write.HDF5Writer`:
      - An `events` dataset with one region reference per data product
      - One dataset per data product corresponding to each region reference in
        the `events` dataset
      - One dataset per nested object list, referenced from the rows of the
        dataset of the object which owns the list
    """

    name = "hdf5"

    def __init__(
        self,
        file_keys,
        limit_num_files=None,
        n_entry=None,
        n_skip=None,
        entry_list=None,
        skip_entry_list=None,
        create_run_map=False,
        run_info_key="run_info",
        build_classes=True,
        skip_unknown_attrs=False,
    ):
        """Initalize the HDF5 file reader.

        Parameters
        ----------
        file_keys : Union[str, List[str]]
            Path or list of paths to the HDF5 files to be read
        limit_num_files : int, optional
            Integer limiting number of files to be loaded
        n_entry : int, optional
            Maximum number of entries to load
        n_skip : int, optional
            Number of entries to skip at the beginning
        entry_list : list, optional
            List of integer entry IDs to add to the index
        skip_entry_list : list, optional
            List of integer entry IDs to skip from the index
        create_run_map : bool, default False
            Initialize a map between (run, subrun, event) triplets and entries
        run_info_key : str, default 'run_info'
            Name of the data product which contains the run info of the event
        build_classes : bool, default True
            If the stored object is a class, build it back
        skip_unknown_attrs : bool, default False
            If `True`, allow a loaded object to have unrecognized attributes.
            This allows reading files written by other versions of the package.
        """
        # Process the list of files
        self.process_file_paths(file_keys, limit_num_files)

        # Loop over the input files, build a map from index to file ID
        self.num_entries = 0
        self.file_index = []
        self.file_offsets = np.empty(len(self.file_paths), dtype=np.int64)
        self.run_info = [] if create_run_map else None
        for i, path in enumerate(self.file_paths):
            with h5py.File(path, "r") as in_file:
                # Check that there are events in the file
                assert "events" in in_file, "File does not contain an event tree"

                # If requested, register the (run, subrun, event) information
                if create_run_map:
                    assert (
                        run_info_key in in_file
                    ), f"Must provide {run_info_key} to create run map"
                    info = in_file[run_info_key]
                    for r, s, e in zip(info["run"], info["subrun"], info["event"]):
                        self.run_info.append((r, s, e))

                # Update the total number of entries
                num_entries = len(in_file["events"])
                self.file_index.append(np.full(num_entries, i, dtype=np.int64))
                self.file_offsets[i] = self.num_entries
                self.num_entries += num_entries

        logger.info("Total number of entries in the file(s): %d", self.num_entries)

        # Concatenate the file indexes into one, process the run information
        self.file_index = np.concatenate(self.file_index)
        if self.run_info is not None:
            self.run_info = np.array(self.run_info, dtype=np.int64).reshape(-1, 3)
        self.process_run_info()

        # Process the entry list
        self.process_entry_list(n_entry, n_skip, entry_list, skip_entry_list)

        # Store other attributes
        self.build_classes = build_classes
        self.skip_unknown_attrs = skip_unknown_attrs

        # Process the configuration and the version used to produce the file
        self.cfg, self.version = self.process_info()

    def process_info(self):
        """Fetches the configuration and the version used to produce the file.

        Returns
        -------
        dict
            Configuration dictionary (`None` if it was not stored)
        str
            Package version
        """
        with h5py.File(self.file_paths[0], "r") as in_file:
            attrs = in_file["info"].attrs
            cfg = yaml.safe_load(attrs["cfg"]) if "cfg" in attrs else None
            version = attrs["version"]

        return cfg, version

    def get(self, idx):
        """Returns a specific entry in the file.

        Parameters
        ----------
        idx : int
            Integer entry ID to access

        Returns
        -------
        dict
            Dictionary of data products corresponding to one event
        """
        # Get the appropriate entry index
        assert idx < len(self.entry_index)
        file_idx = self.get_file_index(idx)
        entry_idx = self.get_file_entry_index(idx)

        # Use the event tree to find out what needs to be loaded
        data = {"file_index": file_idx, "file_entry_index": entry_idx}
        with h5py.File(self.file_paths[file_idx], "r") as in_file:
            event = in_file["events"][entry_idx]
            for key in event.dtype.names:
                self.load_key(in_file, event, data, key)

        # Use the global index, not the one read from file
        data["index"] = np.int64(idx)

        return data

    def load_key(self, in_file, event, data, key):
        """Fetch a specific key for a specific event.

        Parameters
        ----------
        in_file : h5py.File
            HDF5 file instance
        event : np.ndarray
            Row of the event dataset which holds the references of the entry
        data : dict
            Dictionary of data products corresponding to one event
        key: str
            Name of the dataset in the entry
        """
        # The event-level information is a region reference: fetch it
        region_ref = event[key]
        dataset = in_file[key]
        if not dataset.dtype.names:
            # If the reference points at a simple dataset, return
            data[key] = dataset[region_ref]
            if len(dataset.shape) > 1:
                data[key] = data[key].reshape(-1, dataset.shape[1])

        else:
            # If the dataset has multiple attributes, it contains objects
            data[key] = self.load_objects(in_file, key, region_ref)

        if dataset.attrs["scalar"]:
            data[key] = data[key][0]

    def load_objects(self, in_file, key, region_ref):
        """Loads a list of objects, including their nested object lists.

        Parameters
        ----------
        in_file : h5py.File
            HDF5 file instance
        key: str
            Name of the dataset which holds the objects
        region_ref : h5py.RegionReference
            Reference to the rows to load

        Returns
        -------
        List[Union[DataBase, dict]]
            List of objects (or dictionaries, if classes are not built)
        """
        # Fetch the appropriate class to rebuild
        dataset = in_file[key]
        array = dataset[region_ref]
        obj_class = getattr(caftruth.data, dataset.attrs["class_name"])
        default = obj_class()
        known_attrs = default.field_names()
        obj_lists = default.obj_list_attrs

        # Load the objects
        objects = []
        for el in array:
            obj_dict = {}
            for k in array.dtype.names:
                if k not in known_attrs:
                    if not self.skip_unknown_attrs:
                        raise AttributeError(
                            f"Attribute {k} stored in {key} is not an "
                            f"attribute of {obj_class.__name__}."
                        )
                    continue

                if k in obj_lists:
                    # Nested object list, follow the reference
                    obj_dict[k] = self.load_objects(in_file, f"{key}_{k}", el[k])
                else:
                    obj_dict[k] = el[k]

            # Rebuild an instance of the object class, if requested
            if self.build_classes:
                objects.append(obj_class(**obj_dict))
            else:
                objects.append(obj_dict)

        if self.build_classes:
            return caftruth.data.ObjectList(objects, default=default)

        return objects
