"""Module to write flattened truth records to CSV files."""

import csv
import os

__all__ = ["CSVWriter"]


class CSVWriter:
    """Writes data to a CSV file.

    Builds a CSV file with one row per call. Rows are either dictionaries of
    scalars or data class objects, which are flattened with their
    :meth:`scalar_dict` method (vectors are expanded along their axes).

    Typical configuration should look like:

    .. code-block:: yaml

        writer:
          name: csv
          file_name: output.csv
          lengths:
            prim: 2
    """

    name = "csv"

    def __init__(
        self,
        file_name="output.csv",
        overwrite=False,
        append=False,
        accept_missing=False,
        lengths=None,
    ):
        """Initialize the basics of the output file.

        Parameters
        ----------
        file_name : str, default 'output.csv'
            Name of the output CSV file
        overwrite : bool, default False
            If True, overwrite the output file if it already exists
        append : bool, default False
            If True, add more rows to an existing CSV file
        accept_missing : bool, default False
            Tolerate missing keys
        lengths : Dict[str, int], optional
            Number of columns to use for variable-length attributes and
            object lists of the data class objects to be stored
        """
        # Check that output file does not already exist, if requested
        if not overwrite and not append and os.path.isfile(file_name):
            raise FileExistsError(f"File with name {file_name} already exists.")

        # Store persistent attributes
        self.file_name = file_name
        self.append_file = append
        self.accept_missing = accept_missing
        self.lengths = lengths
        self.result_keys = None
        if self.append_file:
            if not os.path.isfile(file_name):
                raise FileNotFoundError(
                    f"File not found at path: {file_name}. When using "
                    "`append=True` in CSVWriter, the file must exist at "
                    "the prescribed path before data is written to it."
                )

            with open(self.file_name, "r", encoding="utf-8", newline="") as out_file:
                self.result_keys = next(csv.reader(out_file))

    def __call__(self, rows):
        """Append the CSV file with a list of rows.

        Parameters
        ----------
        rows : List[Union[dict, DataBase]]
            List of dictionaries of scalars or data class objects
        """
        for row in rows:
            self.append(row)

    def create(self, result_blob):
        """Initialize the header of the CSV file, record the keys to be stored.

        Parameters
        ----------
        result_blob : dict
            Dictionary of scalars which makes up the first row
        """
        # Save the list of keys to store
        self.result_keys = list(result_blob.keys())

        # Create a header and write it to file
        with open(self.file_name, "w", encoding="utf-8", newline="") as out_file:
            csv.writer(out_file).writerow(self.result_keys)

    def append(self, result_blob):
        """Append the CSV file with one row.

        Parameters
        ----------
        result_blob : Union[dict, DataBase]
            Dictionary of scalars or data class object to store
        """
        # Flatten data class objects
        if hasattr(result_blob, "scalar_dict"):
            result_blob = result_blob.scalar_dict(lengths=self.lengths)

        # Fetch the values to store
        if self.result_keys is None:
            # If this function has never been called, initialiaze the CSV file
            self.create(result_blob)

        elif list(result_blob.keys()) != self.result_keys:
            # If the list of keys is not identical, check the discrepancies
            missing = self.array_diff(self.result_keys, result_blob.keys())
            excess = self.array_diff(result_blob.keys(), self.result_keys)
            if len(excess):
                raise KeyError(
                    "There are keys in this entry which were not "
                    "present when the CSV file was initialized. "
                    f"New keys: {list(excess)}"
                )

            if len(missing) and not self.accept_missing:
                raise KeyError(
                    "There are keys missing in this entry which were "
                    "present when the CSV file was initialized. "
                    f"Missing keys: {list(missing)}"
                )

        # Append file
        values = [result_blob.get(k) for k in self.result_keys]
        with open(self.file_name, "a", encoding="utf-8", newline="") as out_file:
            csv.writer(out_file).writerow(["" if v is None else v for v in values])

    @staticmethod
    def array_diff(array_x, array_y):
        """Compare the content of two arrays.

        This functions returns the elements of the first array that
        do not appear in the second array.

        Parameters
        ----------
        array_x : List[str]
            First array of strings
        array_y : List[str]
            Second array of strings

        Returns
        -------
        Set[str]
            Set of keys that appear in `array_x` but not in `array_y`.
        """
        return set(array_x).difference(set(array_y))
