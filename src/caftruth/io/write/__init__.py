"""Module which contains the classes used to write data products to file."""

from .csv import *
from .hdf5 import *
