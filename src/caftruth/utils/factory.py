"""Contains functions needed to instantiate a class from a dictionary.

This allows to generically convert a YAML block into an instatiated class
with all the appropriate checks that the class exists and is provided
with appropriate arguments.
"""

from copy import deepcopy

from .logger import logger

__all__ = ["module_dict", "instantiate"]


def module_dict(module):
    """Converts module into a dictionary which maps class names onto classes.

    A class is registered under its own name and, if it defines a non-empty
    `name` attribute, under that name as well.

    Parameters
    ----------
    module : module
        Module from which to fetch the classes

    Returns
    -------
    dict
        Dictionary which maps acceptable class names to classes themselves
    """
    classes = {}
    for cls_name in getattr(module, "__all__", dir(module)):
        # Skip private objects
        if cls_name.startswith("_"):
            continue

        # Only consider classes which belong to the module of interest
        cls = getattr(module, cls_name)
        if not isinstance(cls, type) or module.__name__ not in cls.__module__:
            continue

        classes[cls_name] = cls
        if getattr(cls, "name", None):
            classes[cls.name] = cls

    return classes


def instantiate(classes, cfg, **kwargs):
    """Instantiates a class based on a configuration dictionary and a list of
    possible classes to chose from.

    The configuration block is expected to look like:

    .. code-block:: yaml

        writer:
          name: hdf5
          file_name: output.h5
          overwrite: true

    It may also be provided as a single string, in which case it is
    interpreted as a class name with no arguments.

    Parameters
    ----------
    classes : dict
        Dictionary which maps a class name onto an object class
    cfg : Union[str, dict]
        Configuration dictionary
    **kwargs : dict, optional
        Additional parameters to pass to the class

    Returns
    -------
    object
        Instantiated object
    """
    # If the configuration is a string, assume it is a class name
    if isinstance(cfg, str):
        cfg = {"name": cfg}

    # Get the name of the class, check that it exists
    config = deepcopy(cfg)
    assert "name" in config, "Could not find the name of the class under `name`"
    class_name = config.pop("name")
    if class_name not in classes:
        raise ValueError(
            f"Could not find '{class_name}' in the dictionary which maps "
            f"names to classes. Available names: {list(classes.keys())}"
        )

    # Merge the configuration parameters with the explicit ones
    for key in kwargs:
        assert key not in config, (
            f"The keyword argument {key} is provided both in the "
            "configuration and explicitly. Ambiguous."
        )
    config.update(kwargs)

    # Intialize
    cls = classes[class_name]
    try:
        return cls(**config)

    except Exception as err:
        logger.error(
            "Failed to instantiate %s with these arguments:\n  - kwargs: %s",
            cls.__name__,
            config,
        )

        raise err
