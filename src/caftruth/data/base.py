"""Module with a parent class of all data structures."""

from dataclasses import dataclass, fields

import numpy as np

from caftruth.utils.sentinel import sentinel_array

from .list import ObjectList

__all__ = ["DataBase"]


@dataclass(eq=False)
class DataBase:
    """Base class of all data structures.

    Defines basic methods shared by all data structures. The class-level
    registries below describe the attributes of the inheriting class so that
    writers can lay out their storage by introspection alone.
    """

    # Enumerated attributes as (key, enum class) pairs
    _enum_attrs = ()

    # Fixed-length float attributes as (key, size) pairs
    _fixed_length_attrs = ()

    # Variable-length attributes as (key, dtype) pairs
    _var_length_attrs = ()

    # Attributes specifying coordinates
    _pos_attrs = ()

    # Attributes specifying vector components
    _vec_attrs = ()

    # String attributes
    _str_attrs = ()

    # Boolean attributes
    _bool_attrs = ()

    # Storage type of scalar attributes as (key, dtype) pairs
    _dtype_attrs = ()

    # Attributes which hold lists of other data structures as (key, class)
    _obj_list_attrs = ()

    # Count attributes which mirror the length of a list as (count, list) pairs
    _count_attrs = ()

    # Attributes that must never be stored to file
    _skip_attrs = ()

    # Attributes that must not be stored to file when storing lite files
    _lite_skip_attrs = ()

    # Euclidean axis labels
    _axes = ("x", "y", "z")

    def __post_init__(self):
        """Immediately called after building the class attributes.

        Provides the following functions:
        - Gives default values to array-like attributes. If a default value
          was provided in the attribute definition, all instances of this class
          would point to the same memory location.
        - Copies array-like and list attributes that were provided, so that
          each instance owns its own.
        - Casts values back to their Python types when they are provided in
          the format one gets when loading them from HDF5 files (binary
          strings, 8-bit unsigned booleans, bare integer enumerators).
        - Casts scalar attributes to their storage precision.
        """
        # Provide default values to the variable-length array attributes
        for attr, dtype in self._var_length_attrs:
            value = getattr(self, attr)
            if value is None:
                setattr(self, attr, np.empty(0, dtype=dtype))
            else:
                setattr(self, attr, np.array(value, dtype=dtype).reshape(-1))

        # Provide default values to the fixed-length array attributes
        for attr, size in self._fixed_length_attrs:
            value = getattr(self, attr)
            if value is None:
                setattr(self, attr, sentinel_array(size))
            else:
                value = np.array(value, dtype=np.float32)
                assert value.shape == (size,), (
                    f"The `{attr}` attribute of `{self.__class__.__name__}` "
                    f"must have exactly {size} elements, got {value.shape}."
                )
                setattr(self, attr, value)

        # Cast stored binary strings back to regular strings
        for attr in self._str_attrs:
            if isinstance(getattr(self, attr), bytes):
                setattr(self, attr, getattr(self, attr).decode())

        # Cast stored 8-bit unsigned integers back to booleans
        for attr in self._bool_attrs:
            if isinstance(getattr(self, attr), (np.bool_, np.integer)):
                setattr(self, attr, bool(getattr(self, attr)))

        # Cast stored integers back to their enumerator
        for attr, enum in self._enum_attrs:
            setattr(self, attr, enum(int(getattr(self, attr))))

        # Cast scalars to their storage precision
        for attr, dtype in self._dtype_attrs:
            value = getattr(self, attr)
            if not isinstance(value, dtype):
                setattr(self, attr, np.dtype(dtype).type(value))

        # Wrap object lists, so that they are typed even when empty
        for attr, cls in self._obj_list_attrs:
            value = getattr(self, attr)
            setattr(self, attr, ObjectList(value or [], default=cls()))

    def __eq__(self, other):
        """Checks that all attributes of two class instances are the same.

        This overloads the default dataclass `__eq__` method to include an
        appopriate check for vector (numpy) attributes, object lists and
        NaN values. Two NaN values are considered equal, as NaN is used as a
        sentinel for attributes which are not filled.

        Parameters
        ----------
        other : obj
            Other instance of the same object class

        Returns
        -------
        bool
            `True` if all attributes of both objects are identical
        """
        # Check that the two objects belong to the same class
        if self.__class__ != other.__class__:
            return False

        # Check that all attributes are identical
        with np.errstate(invalid="ignore"):
            for attr in self.field_names():
                if not values_equal(getattr(self, attr), getattr(other, attr)):
                    return False

        return True

    @classmethod
    def field_names(cls):
        """Returns the ordered list of attribute names of the class.

        Returns
        -------
        Tuple[str]
            Names of the dataclass fields, in declaration order
        """
        return tuple(f.name for f in fields(cls))

    def stored_attrs(self, lite=False):
        """Returns the ordered list of attributes to be stored to file.

        Parameters
        ----------
        lite : bool, default False
            If `True`, the `_lite_skip_attrs` are dropped

        Returns
        -------
        List[str]
            List of attribute names
        """
        # Build a list of attributes to skip
        if not lite:
            skip_attrs = self._skip_attrs
        else:
            skip_attrs = (*self._skip_attrs, *self._lite_skip_attrs)

        return [attr for attr in self.field_names() if attr not in skip_attrs]

    def as_dict(self, lite=False):
        """Returns the data class as dictionary of (key, value) pairs.

        Object list attributes are converted to lists of dictionaries.

        Parameters
        ----------
        lite : bool, default False
            If `True`, the `_lite_skip_attrs` are dropped

        Returns
        -------
        dict
            Dictionary of attribute names and their values
        """
        obj_dict = {}
        for attr in self.stored_attrs(lite):
            value = getattr(self, attr)
            if attr in self.obj_list_attrs:
                value = [obj.as_dict(lite) for obj in value]

            obj_dict[attr] = value

        return obj_dict

    def scalar_dict(self, attrs=None, lengths=None, lite=False):
        """Returns the data class attributes as a dictionary of scalars.

        This is useful when storing data classes in CSV files, which expect
        a single scalar per column in the table.

        Parameters
        ----------
        attrs : List[str], optional
            List of attribute names to include in the dictionary. If not
            specified, all the keys are included.
        lengths : Dict[str, int], optional
            Specifies the length of variable-length attributes and object lists
        lite : bool, default False
            If `True`, the `_lite_skip_attrs` are dropped

        Returns
        -------
        dict
            Dictionary of flattened attribute names and their scalar values
        """
        # Loop over the attributes of the data class
        lengths = lengths or {}
        scalar_dict, found = {}, []
        for attr in self.stored_attrs(lite):
            # If the attribute is not requested, skip
            if attrs is not None and attr not in attrs:
                continue
            found.append(attr)

            # Dispatch
            value = getattr(self, attr)
            if attr in self.enum_attrs:
                # If the attribute is an enumerator, store its value
                scalar_dict[attr] = int(value)

            elif attr in self.obj_list_attrs:
                # If the attribute is a list of objects, expand each object
                # up to the requested length (skip if no length is provided)
                if attr not in lengths:
                    assert attrs is None or attr not in attrs, (
                        f"Cannot cast {attr} to scalars. To cast an object "
                        "list, must provide a fixed length."
                    )
                    continue

                self.check_length(attr, value, lengths[attr])
                default = self.obj_list_attrs[attr]()
                for i in range(lengths[attr]):
                    obj = value[i] if i < len(value) else default
                    for k, v in obj.scalar_dict(lite=lite).items():
                        scalar_dict[f"{attr}_{i}_{k}"] = v if i < len(value) else None

            elif np.isscalar(value):
                # If the attribute is a scalar, store as is
                scalar_dict[attr] = value

            elif attr in (self._pos_attrs + self._vec_attrs):
                # If the attribute is a position or vector, expand with axis
                for i, v in enumerate(value):
                    scalar_dict[f"{attr}_{self._axes[i]}"] = v

            elif attr in self.fixed_length_attrs:
                # If the attribute is a fixed-length array, expand with index
                for i, v in enumerate(value):
                    scalar_dict[f"{attr}_{i}"] = v

            elif attr in self.var_length_attrs:
                if attr not in lengths:
                    # If the attribute is a variable-length array of
                    # indeterminate length, do not store it
                    assert attrs is None or attr not in attrs, (
                        f"Cannot cast {attr} to scalars. To cast a variable-"
                        "length array, must provide a fixed length."
                    )
                    continue

                # Pad it to match the requested length and store it
                self.check_length(attr, value, lengths[attr])
                for i in range(lengths[attr]):
                    scalar_dict[f"{attr}_{i}"] = value[i] if i < len(value) else None

            else:
                raise ValueError(
                    f"Cannot expand the `{attr}` attribute of "
                    f"`{self.__class__.__name__}` to scalar values."
                )

        if attrs is not None and len(attrs) != len(found):
            class_name = self.__class__.__name__
            miss = list(set(attrs).difference(set(found)))
            raise AttributeError(
                f"Attribute(s) {miss} do(es) not appear in {class_name}."
            )

        return scalar_dict

    def check_length(self, attr, value, length):
        """Checks that a list attribute fits in a requested number of columns.

        Parameters
        ----------
        attr : str
            Name of the attribute
        value : Union[list, np.ndarray]
            Value of the attribute
        length : int
            Number of columns requested for the attribute

        Raises
        ------
        ValueError
            If the attribute holds more elements than there are columns
        """
        if len(value) > length:
            raise ValueError(
                f"The `{attr}` attribute of `{self.__class__.__name__}` holds "
                f"{len(value)} elements, which does not fit in the requested "
                f"length ({length}). Increase the length to avoid losing data."
            )

    @property
    def fixed_length_attrs(self):
        """Fetches the dictionary of fixed-length array attributes.

        Returns
        -------
        Dict[str, int]
            Dictionary which maps fixed-length attributes onto their length
        """
        return dict(self._fixed_length_attrs)

    @property
    def var_length_attrs(self):
        """Fetches the dictionary of variable-length array attributes.

        Returns
        -------
        Dict[str, type]
            Dictionary which maps variable-length attributes onto their type
        """
        return dict(self._var_length_attrs)

    @property
    def enum_attrs(self):
        """Fetches the enumerated attributes as a dictionary.

        Returns
        -------
        Dict[str, Dict[str, int]]
            Dictionary which maps attribute names onto (name, value) pairs
            of all the enumerators of their type
        """
        return {k: {e.name: e.value for e in v} for k, v in self._enum_attrs}

    @property
    def dtype_attrs(self):
        """Fetches the storage type of scalar attributes.

        Returns
        -------
        Dict[str, type]
            Dictionary which maps scalar attributes onto their storage type
        """
        return dict(self._dtype_attrs)

    @property
    def obj_list_attrs(self):
        """Fetches the attributes which hold lists of objects.

        Returns
        -------
        Dict[str, type]
            Dictionary which maps object list attributes onto their class
        """
        return dict(self._obj_list_attrs)

    @property
    def count_attrs(self):
        """Fetches the count attributes and the list attribute they mirror.

        Returns
        -------
        Dict[str, str]
            Dictionary which maps count attributes onto list attributes
        """
        return dict(self._count_attrs)

    @property
    def skip_attrs(self):
        """Fetches the list of attributes to not store to file.

        Returns
        -------
        List[str]
            List of attributes to exclude from the storage process
        """
        return self._skip_attrs

    @property
    def lite_skip_attrs(self):
        """Fetches the list of attributes to not store to lite file.

        Returns
        -------
        List[str]
            List of attributes to exclude from the storage process
        """
        return self._lite_skip_attrs


def values_equal(value, other):
    """Checks that two attribute values are identical, NaN included.

    Parameters
    ----------
    value : object
        Attribute value
    other : object
        Attribute value to compare it to

    Returns
    -------
    bool
        `True` if the two values are identical
    """
    # Lists of objects, compare element-wise
    if isinstance(value, list) or isinstance(other, list):
        if not isinstance(value, list) or not isinstance(other, list):
            return False

        return len(value) == len(other) and all(
            values_equal(v, o) for v, o in zip(value, other)
        )

    # Arrays, compare shapes then content
    if isinstance(value, np.ndarray) or isinstance(other, np.ndarray):
        value, other = np.asarray(value), np.asarray(other)
        if value.shape != other.shape:
            return False

        same = value == other
        if value.dtype.kind == "f" and other.dtype.kind == "f":
            same |= np.isnan(value) & np.isnan(other)

        return bool(np.all(same))

    # Floating point scalars, NaN is equal to NaN
    if isinstance(value, (float, np.floating)) and isinstance(
        other, (float, np.floating)
    ):
        if np.isnan(value) or np.isnan(other):
            return bool(np.isnan(value) and np.isnan(other))

    return bool(value == other)
