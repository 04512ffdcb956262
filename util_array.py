"""
Mixed-radix index math for row-major value arrays.

A json-stat value array is laid out like a C-ordered numpy array: the last
dimension varies fastest. These helpers convert between linear offsets and
per-dimension category indices and compute the group sizes used for spans.
"""

from typing import List, Sequence, Tuple

import numpy as np


def product(values: Sequence[int]) -> int:
    """Product of all elements, 1 for an empty sequence"""
    return int(np.prod(np.asarray(values, dtype=np.int64), dtype=np.int64))


def product_upper(values, idx):
    """Product of all elements with an index equal or higher than idx"""
    return product(values[idx:])


def product_upper_next(values: Sequence[int], idx: int) -> Tuple[int, int]:
    """
    Group sizes at level idx and one level deeper.

    The first number is the product of values[idx:], the second the product of
    values[idx + 1:] (1 for the last element). A label at level idx changes
    every `inner` positions and its group repeats every `outer` positions.
    """
    outer = product_upper(values, idx)
    inner = product_upper(values, idx + 1) if idx < len(values) else 1
    return outer, inner


def stride(shape: Sequence[int]) -> List[int]:
    """Row-major strides, stride[i] == product(shape[i + 1:])"""
    if len(shape) == 0:
        return []
    reversed_sizes = np.asarray(shape, dtype=np.int64)[::-1]
    # shift by one so the last dimension gets a stride of 1
    cumulative = np.cumprod(np.concatenate(([1], reversed_sizes[:-1])))
    return [int(s) for s in cumulative[::-1]]


def linear_to_sub(shape: Sequence[int], offset: int) -> List[int]:
    """
    Convert a linear (row-major) offset to per-dimension indices.

    Called with offsets 0, 1, 2, ... and shape [4, 2, 3, 2] this yields
    [0,0,0,0], [0,0,0,1], [0,0,1,0], [0,0,1,1], [0,0,2,0], ... [3,1,2,1].
    """
    if len(shape) == 0:
        return []
    return [int(i) for i in np.unravel_index(offset, tuple(shape))]


def sub_to_linear(strides, sub):
    """Convert per-dimension indices back to a linear offset"""
    return int(np.dot(np.asarray(sub, dtype=np.int64), np.asarray(strides, dtype=np.int64)))
