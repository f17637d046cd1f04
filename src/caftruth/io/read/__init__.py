"""Module which contains the classes used to read data products from file."""

from .hdf5 import *
