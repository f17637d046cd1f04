"""Module to write truth records to HDF5 files."""

import os
from dataclasses import dataclass, field

import h5py
import numpy as np
import yaml

from caftruth.utils.logger import logger
from caftruth.version import __version__

__all__ = ["HDF5Writer"]


class HDF5Writer:
    """Writes data to an HDF5 file.

    Each data product key is stored in its own dataset. Data classes are
    stored as compound datasets with one column per attribute, laid out by
    introspection of the class attribute registries. Lists of objects nested
    in a data class (e.g. the primary daughters of an interaction) are stored
    in a sibling dataset named `<key>_<attribute>`, referenced from each row.

    An `events` dataset holds, for each entry, one region reference per key
    which points at the rows that belong to that entry.

    Typical configuration should look like:

    .. code-block:: yaml

        writer:
          name: hdf5
          file_name: output.h5
          keys:
            - run_info
            - mc
    """

    name = "hdf5"

    def __init__(
        self,
        file_name="output.h5",
        keys=None,
        skip_keys=None,
        overwrite=False,
        append=False,
        lite=False,
        check_counts=True,
    ):
        """Initializes the basics of the output file.

        Parameters
        ----------
        file_name : str, default 'output.h5'
            Name of the output HDF5 file
        keys : List[str], optional
            List of data product keys to store. If not specified, store everything
        skip_keys: List[str], optional
            List of data product keys to skip
        overwrite : bool, default False
            If `True`, overwrite the output file if it already exists
        append : bool, default False
            If `True`, add new entries to the end of an existing file
        lite : bool, default False
            If `True`, the lite version of objects is stored
        check_counts : bool, default True
            If `True`, check that count attributes (e.g. `nprim`) match the
            length of the list they describe before storing a batch of entries
        """
        # Check that the output file does not already exist, if requested
        if not overwrite and not append and os.path.isfile(file_name):
            raise FileExistsError(f"File with name {file_name} already exists.")

        # Check that the required keys make sense
        assert keys is None or skip_keys is None, (
            "Must not specify both `keys` or `skip_keys`."
        )

        # Store persistent attributes
        self.file_name = file_name
        self.keys = keys
        self.skip_keys = skip_keys
        self.overwrite = overwrite
        self.append = append
        self.lite = lite
        self.check_counts = check_counts
        self.ready = False

        # Initialize attributes to be defined when the first entry is seen
        self.type_dict = None
        self.object_dict = None
        self.event_dtype = None

    @dataclass
    class DataFormat:
        """Data structure to hold writing parameters of a data product.

        Attributes
        ----------
        dtype : type, optional
            Data type
        class_name : str, optional
            Name of the class the information comes from, if it is an object
        width : int, default 0
            Width of the tensor to store, if it is a 2D tensor
        scalar : bool, default False
            Whether the data is a single scalar/object per entry or not
        """

        dtype: object = None
        class_name: str = None
        width: int = 0
        scalar: bool = False

    @dataclass
    class ObjectFormat:
        """Data structure to hold the storage layout of a data class.

        Attributes
        ----------
        dtype : list
            List of (key, dtype) pairs which specify what's to store
        class_name : str
            Name of the class to rebuild the objects from
        children : Dict[str, str]
            Maps object list attributes onto the dataset which holds them
        """

        dtype: list
        class_name: str
        children: dict = field(default_factory=dict)

    def create(self, data, cfg=None):
        """Create the output file structure based on the data dictionary.

        Parameters
        ----------
        data : dict
            Dictionary of data products
        cfg : dict, optional
            Configuration used to produce the data, stored as YAML
        """
        # Initialize the output HDF5 file
        with h5py.File(self.file_name, "w") as out_file:
            # Initialize the info dataset that stores environment parameters
            out_file.create_dataset("info", (0,), maxshape=(None,), dtype=None)
            out_file["info"].attrs["version"] = __version__
            if cfg is not None:
                out_file["info"].attrs["cfg"] = yaml.dump(cfg)

            # Initialize the event dataset and the product datasets
            self.initialize_datasets(out_file)

        logger.info("Created output file: %s", self.file_name)

    def get_stored_keys(self, data):
        """Get the list of data product keys to store.

        Parameters
        ----------
        data : dict
            Dictionary of data products

        Returns
        -------
        List[str]
            List of data keys to store to file
        """
        # Translate keys/skip_keys into a single list, always store the index
        keys = ["index"]
        if self.keys is None:
            keys += [k for k in data if k != "index"]
            for key in self.skip_keys or []:
                if key not in keys:
                    raise KeyError(
                        f"Key {key} appears in `skip_keys` but does not "
                        "appear in the dictionary of data products."
                    )
                keys.remove(key)

        else:
            for key in self.keys:
                if key not in data:
                    raise KeyError(
                        f"Cannot store {key} as it does not appear "
                        "in the dictionary of data products."
                    )
                if key != "index":
                    keys.append(key)

        return keys

    def register_key(self, data, key):
        """Identify the dtype and shape objects to be dealt with.

        Parameters
        ----------
        data : dict
            Dictionary containing the information to be stored
        key : str
            Dictionary key name
        """
        # Initialize a type object for this output key
        fmt = self.DataFormat()
        self.type_dict[key] = fmt

        # Store the necessary information to know how to store a key
        ref_obj = data[key][0]
        if np.isscalar(ref_obj):
            # List containing a single scalar per entry
            if isinstance(ref_obj, str):
                fmt.dtype = h5py.string_dtype()
            else:
                fmt.dtype = np.asarray(ref_obj).dtype
            fmt.scalar = True

        elif hasattr(ref_obj, "stored_attrs"):
            # List containing one single data class object per entry
            fmt.class_name = self.register_object(key, ref_obj)
            fmt.dtype = self.object_dict[key].dtype
            fmt.scalar = True

        elif isinstance(ref_obj, list):
            # List containing a list of data class objects per entry
            if len(ref_obj):
                ref_obj = ref_obj[0]
            else:
                # If it is empty, must contain a default value
                if not hasattr(ref_obj, "default"):
                    raise TypeError(
                        f"Failed to find the type of {key}. Lists that can be "
                        "empty should be initialized as an ObjectList with a "
                        "default object."
                    )
                ref_obj = ref_obj.default

            fmt.class_name = self.register_object(key, ref_obj)
            fmt.dtype = self.object_dict[key].dtype

        elif isinstance(ref_obj, np.ndarray) and ref_obj.dtype != object:
            # List containing a single ndarray of scalars per entry
            fmt.dtype = ref_obj.dtype
            if ref_obj.ndim == 2:
                fmt.width = ref_obj.shape[1]

        else:
            raise TypeError(
                f"Cannot store output of type {type(ref_obj)} in key {key}."
            )

    def register_object(self, key, obj):
        """Registers the storage layout of a data class and its children.

        Parameters
        ----------
        key : str
            Name of the dataset which stores the objects
        obj : DataBase
            Instance of the data class used to identify attribute types

        Returns
        -------
        str
            Name of the object class
        """
        # Register the nested object lists first
        children = {}
        for attr, cls in obj.obj_list_attrs.items():
            if attr in obj.stored_attrs(self.lite):
                child_key = f"{key}_{attr}"
                self.register_object(child_key, cls())
                children[attr] = child_key

        # Register the object itself
        class_name = obj.__class__.__name__
        self.object_dict[key] = self.ObjectFormat(
            dtype=self.get_object_dtype(obj), class_name=class_name, children=children
        )

        return class_name

    def get_object_dtype(self, obj):
        """Loop over the attributes of a class to figure out what to store.

        Parameters
        ----------
        obj : DataBase
            Instance of the data class used to identify attribute types

        Returns
        -------
        list
            List of (key, dtype) pairs
        """
        object_dtype = []
        ref_dtype = h5py.regionref_dtype
        for key in obj.stored_attrs(self.lite):
            # Append the relevant data type
            val = getattr(obj, key)
            if key in obj.obj_list_attrs:
                # List of objects stored elsewhere, keep a reference to it
                object_dtype.append((key, ref_dtype))

            elif key in obj.enum_attrs:
                # Recognized enumerated type, keep the numerical values
                enum_dtype = h5py.enum_dtype(obj.enum_attrs[key], basetype=np.int32)
                object_dtype.append((key, enum_dtype))

            elif isinstance(val, str):
                # String
                object_dtype.append((key, h5py.string_dtype()))

            elif isinstance(val, (bool, np.bool_)):
                # Boolean, force onto unsigned shorts
                object_dtype.append((key, np.uint8))

            elif key in obj.dtype_attrs:
                # Scalar with a prescribed storage type
                object_dtype.append((key, obj.dtype_attrs[key]))

            elif np.isscalar(val):
                # Other scalars, infer the storage type
                object_dtype.append((key, np.asarray(val).dtype))

            elif key in obj.fixed_length_attrs:
                # Fixed-length array of scalars
                object_dtype.append((key, val.dtype, (len(val),)))

            elif key in obj.var_length_attrs:
                # Variable-length array of scalars
                object_dtype.append((key, h5py.vlen_dtype(val.dtype)))

            else:
                raise ValueError(
                    f"Attribute {key} of {obj.__class__.__name__} has an "
                    f"unrecognized type: {type(val)}"
                )

        return object_dtype

    def initialize_datasets(self, out_file):
        """Create place holders for all the datasets to be filled.

        Parameters
        ----------
        out_file : h5py.File
            HDF5 file instance
        """
        # Initialize the object datasets (including nested ones)
        for key, obj_fmt in self.object_dict.items():
            out_file.create_dataset(key, (0,), maxshape=(None,), dtype=obj_fmt.dtype)
            out_file[key].attrs["class_name"] = obj_fmt.class_name

        # Initialize the other datasets, store the general type of the event
        self.event_dtype = []
        for key, fmt in self.type_dict.items():
            # Add a dataset reference for this key to the event dtype
            self.event_dtype.append((key, h5py.regionref_dtype))
            if key not in out_file:
                shape = (0, fmt.width) if fmt.width else (0,)
                maxshape = (None, fmt.width) if fmt.width else (None,)
                out_file.create_dataset(key, shape, maxshape=maxshape, dtype=fmt.dtype)

            # Give relevant attributes to the dataset
            out_file[key].attrs["scalar"] = fmt.scalar

        out_file.create_dataset(
            "events", (0,), maxshape=(None,), dtype=self.event_dtype
        )

    def __call__(self, data, cfg=None):
        """Append the HDF5 file with the content of a batch of entries.

        Parameters
        ----------
        data : dict
            Dictionary of data products. Each value is a list with one
            element per entry (an `index` key is required)
        cfg : dict, optional
            Configuration used to produce the data, stored as YAML
        """
        # Nest data if is not already, fetch batch size
        if np.isscalar(data["index"]):
            data = {k: [v] for k, v in data.items()}
        batch_size = len(data["index"])

        # If this function has never been called, fetch the keys to store
        if not self.ready:
            self.keys = self.get_stored_keys(data)

        # Check the whole batch before touching the file
        if self.check_counts:
            for key in self.keys:
                for batch_id in range(batch_size):
                    self.check_entry_counts(data[key][batch_id])

        # If this function has never been called, register the keys
        if not self.ready:
            self.type_dict, self.object_dict = {}, {}
            for key in self.keys:
                self.register_key(data, key)

            # Create the file, unless appending to an existing one
            if self.append and os.path.isfile(self.file_name):
                self.event_dtype = [(k, h5py.regionref_dtype) for k in self.keys]
            else:
                self.create(data, cfg)

            self.ready = True

        # Append file
        with h5py.File(self.file_name, "a") as out_file:
            for batch_id in range(batch_size):
                self.append_entry(out_file, data, batch_id)

    def append_entry(self, out_file, data, batch_id):
        """Stores one entry.

        Parameters
        ----------
        out_file : h5py.File
            HDF5 file instance
        data : dict
            Dictionary of data products
        batch_id : int
            Batch ID to be stored
        """
        # Initialize a new event, store the region reference of each key
        event = np.empty(1, self.event_dtype)
        for key in self.keys:
            fmt = self.type_dict[key]
            array = data[key][batch_id]
            if fmt.scalar:
                array = [array]

            if fmt.class_name is not None:
                event[key] = self.store_objects(out_file, key, array)
            else:
                event[key] = self.store(out_file, key, array)

        # Append event
        event_id = len(out_file["events"])
        event_ds = out_file["events"]
        event_ds.resize(event_id + 1, axis=0)
        event_ds[event_id] = event

    @staticmethod
    def store(out_file, key, array):
        """Stores an `ndarray` in the file and returns a reference to it.

        Parameters
        ----------
        out_file : h5py.File
            HDF5 file instance
        key: str
            Name of the dataset in the file
        array : np.ndarray
            Array to be stored

        Returns
        -------
        h5py.RegionReference
            Reference to the rows which hold the array
        """
        # Extend the dataset, store array
        dataset = out_file[key]
        current_id = len(dataset)
        dataset.resize(current_id + len(array), axis=0)
        dataset[current_id : current_id + len(array)] = array

        # Define region reference
        return dataset.regionref[current_id : current_id + len(array)]

    def store_objects(self, out_file, key, objects):
        """Stores a list of data class objects in the file and returns
        a reference to them.

        Nested object lists are stored first in their own dataset, and their
        reference is stored in the object row.

        Parameters
        ----------
        out_file : h5py.File
            HDF5 file instance
        key: str
            Name of the dataset in the file
        objects : List[DataBase]
            List of objects to be stored

        Returns
        -------
        h5py.RegionReference
            Reference to the rows which hold the objects
        """
        # Convert list of objects to list of storable rows
        obj_fmt = self.object_dict[key]
        rows = np.empty(len(objects), obj_fmt.dtype)
        for i, obj in enumerate(objects):
            values = []
            for attr in obj.stored_attrs(self.lite):
                value = getattr(obj, attr)
                if attr in obj_fmt.children:
                    value = self.store_objects(out_file, obj_fmt.children[attr], value)
                elif attr in obj.enum_attrs:
                    value = int(value)

                values.append(value)

            rows[i] = tuple(values)

        return self.store(out_file, key, rows)

    def check_entry_counts(self, entry):
        """Checks the count attributes of the objects of one data product entry.

        Entries which do not hold data class objects are ignored.

        Parameters
        ----------
        entry : object
            Data product of one entry (object, list of objects, array, scalar)
        """
        if hasattr(entry, "count_attrs"):
            self.check_object_counts(entry)
        elif isinstance(entry, list):
            for obj in entry:
                if hasattr(obj, "count_attrs"):
                    self.check_object_counts(obj)

    def check_object_counts(self, obj):
        """Checks that the count attributes of an object, and of the objects
        nested in its object lists, are consistent.

        Parameters
        ----------
        obj : DataBase
            Object to check

        Raises
        ------
        ValueError
            If a count attribute does not match the length of its list
        """
        for count_attr, list_attr in obj.count_attrs.items():
            count, length = getattr(obj, count_attr), len(getattr(obj, list_attr))
            if count != length:
                raise ValueError(
                    f"The `{count_attr}` attribute of {obj.__class__.__name__} "
                    f"({count}) does not match the length of `{list_attr}` "
                    f"({length})."
                )

        for attr in obj.obj_list_attrs:
            for child in getattr(obj, attr):
                self.check_object_counts(child)
