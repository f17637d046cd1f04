"""Contains the data reader base class.

Data readers are used to extract specific entries from files and store their
data products into dictionaries to be used downstream.
"""

import glob
import os

import numpy as np

from caftruth.utils.logger import logger

__all__ = ["ReaderBase"]


class ReaderBase:
    """Parent reader class which provides common functions between all readers.

    This class provides these basic functions:
    1. Method to parse the requested file list or file list file into a list of
       paths to existing files (throws if nothing is found)
    2. Method to produce a list of entries in the file(s) as selected by the
       provided parameters
    3. Essential `__len__` and `__getitem__` methods. Must define the
       `get` function in the inheriting class for both of them to work.

    Attributes
    ----------
    name : str
        Name of the reader, as requested in the configuration
    num_entries : int
        Total number of entries in the files provided
    entry_index : np.ndarray
        List of global indexes to cycle through
    file_paths : List[str]
        List of files to read data from
    file_offsets : np.ndarray
        Offsets between the global index and each individual file start index
    file_index : np.ndarray
        Index of the file each entry lives in
    run_info : np.ndarray
        (run, subrun, event) triplets associated with each entry
    run_map : Dict[Tuple[int], int]
        Maps each available (run, subrun, event) triplet onto an entry index
    """

    name = ""
    num_entries = None
    entry_index = None
    file_paths = None
    file_offsets = None
    file_index = None
    run_info = None
    run_map = None

    def __len__(self):
        """Returns the number of selected entries in the file(s).

        Returns
        -------
        int
            Number of entries
        """
        return len(self.entry_index)

    def __getitem__(self, idx):
        """Returns a specific entry in the file(s).

        Parameters
        ----------
        idx : int
            Integer entry ID to access

        Returns
        -------
        dict
            One entry-worth of data from the loaded files
        """
        return self.get(idx)

    def get(self, idx):
        """Placeholder to be defined by the daughter class."""
        raise NotImplementedError

    def process_file_paths(self, file_keys, limit_num_files=None):
        """Process list of files.

        Parameters
        ----------
        file_keys : Union[str, List[str]]
            Path or list of paths (or glob patterns) to the files to be read.
            A single `.txt` path is interpreted as a file containing a list
        limit_num_files : int, optional
            Integer limiting number of files to be loaded
        """
        # Some basic checks
        assert file_keys is not None, "No input `file_keys` provided, abort."
        assert limit_num_files is None or limit_num_files > 0, (
            "If `limit_num_files` is provided, it must be larger than 0."
        )

        # If the file_keys points to a text file, parse it into a list
        if isinstance(file_keys, str) and os.path.splitext(file_keys)[-1] == ".txt":
            assert os.path.isfile(file_keys), (
                "If the `file_keys` are specified as a single text file, "
                "it must exist."
            )
            with open(file_keys, "r", encoding="utf-8") as f:
                file_keys = f.read().splitlines()

        # Convert the file keys to a list of file paths with glob
        if isinstance(file_keys, str):
            file_keys = [file_keys]

        self.file_paths = []
        for file_key in file_keys:
            file_paths = sorted(glob.glob(file_key))
            assert file_paths, f"File key {file_key} yielded no compatible path."
            self.file_paths.extend(file_paths)

        if limit_num_files is not None:
            self.file_paths = self.file_paths[:limit_num_files]

        # Print out the list of loaded files
        file_list = " - " + "\n - ".join(self.file_paths)
        logger.info("Will load %d file(s):\n%s", len(self.file_paths), file_list)

    def process_run_info(self):
        """Builds a map from (run, subrun, event) triplets to entry indexes.

        The triplets must be unique in the dataset.
        """
        self.run_map = None
        if self.run_info is not None:
            assert len(self.run_info) == self.num_entries
            num_unique = len(np.unique(self.run_info, axis=0))
            assert num_unique == len(self.run_info), (
                "Cannot create a run map if (run, subrun, event) triplets "
                "are not unique in the dataset. Abort."
            )
            self.run_map = {tuple(v): i for i, v in enumerate(self.run_info)}

    def process_entry_list(
        self, n_entry=None, n_skip=None, entry_list=None, skip_entry_list=None
    ):
        """Create a list of entries that can be accessed by :meth:`__getitem__`.

        Parameters
        ----------
        n_entry : int, optional
            Maximum number of entries to load
        n_skip : int, optional
            Number of entries to skip at the beginning
        entry_list : list, optional
            List of integer entry IDs to add to the index
        skip_entry_list : list, optional
            List of integer entry IDs to skip from the index
        """
        # Make sure the parameters are sensible
        assert (n_entry is None and n_skip is None) or (
            entry_list is None and skip_entry_list is None
        ), (
            "Cannot specify `n_entry` or `n_skip` at the same time "
            "as `entry_list` or `skip_entry_list`."
        )
        assert entry_list is None or skip_entry_list is None, (
            "Cannot specify both `entry_list` and `skip_entry_list`."
        )

        # Create a list of entries to be loaded
        entry_index = np.arange(self.num_entries, dtype=np.int64)
        if n_entry is not None or n_skip is not None:
            n_skip = n_skip or 0
            n_entry = n_entry or self.num_entries - n_skip
            assert n_skip + n_entry <= self.num_entries, (
                f"Mismatch between `n_entry` ({n_entry}), `n_skip` ({n_skip}) "
                f"and the number of entries in the files ({self.num_entries})."
            )
            entry_index = entry_index[n_skip : n_skip + n_entry]

        elif entry_list is not None:
            entry_list = np.asarray(entry_list, dtype=np.int64)
            assert np.all(entry_list < self.num_entries), (
                "Values in entry_list outside of bounds."
            )
            entry_index = entry_index[entry_list]

        elif skip_entry_list is not None:
            skip_entry_list = np.asarray(skip_entry_list, dtype=np.int64)
            assert np.all(skip_entry_list < self.num_entries), (
                "Values in skip_entry_list outside of bounds."
            )
            entry_mask = np.ones(self.num_entries, dtype=bool)
            entry_mask[skip_entry_list] = False
            entry_index = entry_index[entry_mask]

        assert len(entry_index), "Must at least have one entry to load."
        logger.info("Total number of entries selected: %d", len(entry_index))

        self.entry_index = entry_index

    def get_run_event(self, run, subrun, event):
        """Returns an entry corresponding to a specific (run, subrun, event)
        triplet.

        Parameters
        ----------
        run : int
            Run number
        subrun : int
            Subrun number
        event : int
            Event number

        Returns
        -------
        dict
            Dictionary of data products corresponding to one event
        """
        assert self.run_map is not None, (
            "Must build a run map to get entries by (run, subrun, event)."
        )
        assert (run, subrun, event) in self.run_map, (
            f"Could not find (run={run}, subrun={subrun}, event={event})."
        )

        # Convert the global entry index into an index in the selected list
        index = np.where(self.entry_index == self.run_map[(run, subrun, event)])[0]
        assert len(index), (
            f"Entry (run={run}, subrun={subrun}, event={event}) is not "
            "part of the selected entries."
        )

        return self.get(index[0])

    def get_file_index(self, idx):
        """Returns the index of the file corresponding to a specific entry.

        Parameters
        ----------
        idx : int
            Integer entry ID to access

        Returns
        -------
        int
            Index of the file in the file list
        """
        return self.file_index[self.entry_index[idx]]

    def get_file_entry_index(self, idx):
        """Returns the index of an entry within the file it lives in.

        Parameters
        ----------
        idx : int
            Integer entry ID to access

        Returns
        -------
        int
            Index of the entry in the file
        """
        file_idx = self.get_file_index(idx)
        return self.entry_index[idx] - self.file_offsets[file_idx]
