"""Helpers to build and recognize the signaling NaN sentinel.

Floating point attributes which were not computed (or are not applicable)
hold a single-precision signaling NaN with a fixed bit pattern. A quiet NaN
produced by a failed computation has a different bit pattern, which is what
allows consumers to tell the two apart.

Note that converting the sentinel to a Python float (double precision) quiets
it on most platforms, so values must be kept as `np.float32` to be
recognized.
"""

import numpy as np

from .globals import SNAN_BITS

__all__ = ["sentinel_array", "is_sentinel", "is_unset"]


def sentinel_array(size):
    """Returns a single-precision array filled with the sentinel.

    The array is built from the sentinel bits, so that no floating point
    operation gets a chance to quiet the NaN.

    Parameters
    ----------
    size : int
        Length of the array

    Returns
    -------
    np.ndarray
        (N) Array of signaling NaNs
    """
    return np.full(size, SNAN_BITS, dtype=np.uint32).view(np.float32)


def is_sentinel(value):
    """Checks whether a value (or each element of an array) is the sentinel.

    Parameters
    ----------
    value : Union[np.float32, np.ndarray]
        Single-precision value(s) to check

    Returns
    -------
    Union[bool, np.ndarray]
        `True` where the value has the exact bit pattern of the sentinel
    """
    array = np.asarray(value)
    if array.dtype != np.float32:
        return False if array.ndim == 0 else np.zeros(array.shape, dtype=bool)

    mask = array.view(np.uint32) == SNAN_BITS
    return bool(mask) if array.ndim == 0 else mask


def is_unset(value):
    """Checks whether a floating point attribute holds no physical value.

    This is looser than :func:`is_sentinel`: any NaN qualifies, which is the
    appropriate check once values have gone through double precision.

    Parameters
    ----------
    value : Union[float, np.ndarray]
        Value(s) to check

    Returns
    -------
    Union[bool, np.ndarray]
        `True` where the value is NaN
    """
    mask = np.isnan(value)
    return bool(mask) if np.isscalar(mask) or np.ndim(mask) == 0 else mask

