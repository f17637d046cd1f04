"""I/O tools to store and load truth records.

**Writers:**
- `HDF5Writer`: stores data products (scalars, arrays, data class objects and
  nested object lists) to HDF5 files
- `CSVWriter`: stores flattened data class objects, one row each

**Readers:**
- `HDF5Reader`: loads entries written by `HDF5Writer` and rebuilds the
  data class objects
"""

from .factories import reader_factory, writer_factory
from .read import *
from .write import *
