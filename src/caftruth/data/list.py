"""Module with a class object which represent object lists."""

__all__ = ["ObjectList"]


class ObjectList(list):
    """List with a default object used to type it when it is empty.

    Writers need to know what kind of object a list holds to lay out its
    storage, even when a given entry has no object in it.

    Attributes
    ----------
    default : object
        Default object instance to use to type the list, if it is empty
    """

    def __init__(self, object_list, default):
        """Initialize the list and the default value.

        Parameters
        ----------
        object_list : List[object]
            Object list
        default : object
            Default object instance to use to type the list, if it is empty
        """
        # Initialize the underlying list
        super().__init__(object_list)

        # Store the default object
        self.default = default
