"""
Gradient buffers.

A buffer is a (possibly structurally sparse) tensor with a fixed logical shape. Everything above the buffer layer
(traces, optimisers, approximators) is written against this interface:
* map / map_inplace: unary elementwise function
* combine / combine_inplace: binary elementwise merge of two buffers of equal shape. Absent entries behave as zero
* addto / scaled_addto: accumulate into a dense numpy array of the same shape, in place

Elementwise functions must be vectorised, i.e. behave like numpy ufuncs on both scalars and arrays.
Sparse results are only kept when the function maps zero to zero, otherwise results are densified.
"""
from __future__ import annotations

import abc
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from rlfa.errors import ShapeMismatch

Unary = Callable[[float], float]
Binary = Callable[[float, float], float]
Shape = Tuple[int, ...]


def preserves_zero(f: Callable, arity: int = 1) -> bool:
    """ Whether f(0, ..., 0) == 0, in which case absent entries stay absent """
    return float(f(*([0.0] * arity))) == 0.0


class Buffer(abc.ABC):
    """ Interface of all gradient buffers """

    @property
    @abc.abstractmethod
    def shape(self) -> Shape:
        """ Logical shape of the buffer """

    @classmethod
    @abc.abstractmethod
    def zeros(cls, shape) -> Buffer:
        """ Empty buffer of the given shape """

    @abc.abstractmethod
    def scaled_addto(self, alpha: float, arr: np.ndarray) -> None:
        """ arr += alpha * self, in place """

    @abc.abstractmethod
    def map(self, f: Unary) -> Buffer:
        """ New buffer with f applied elementwise """

    @abc.abstractmethod
    def map_inplace(self, f: Unary) -> None:
        """ Apply f elementwise in place """

    def addto(self, arr: np.ndarray) -> None:
        """ arr += self, in place """
        self.scaled_addto(1.0, arr)

    def to_dense(self) -> np.ndarray:
        """ Dense numpy copy of the buffer """
        arr = np.zeros(self.shape)
        self.addto(arr)
        return arr

    def check_shape(self, other_shape: Shape) -> None:
        """ Raise ShapeMismatch unless other_shape equals the buffer shape """
        if tuple(other_shape) != tuple(self.shape):
            raise ShapeMismatch(self.shape, tuple(other_shape))

    def combine(self, other: Buffer, f: Binary) -> Buffer:
        """ Elementwise f(self, other). Default implementation works on dense expansions """
        self.check_shape(other.shape)
        return DenseBuffer(f(self.to_dense(), other.to_dense()))

    def combine_inplace(self, other: Buffer, f: Binary) -> Buffer:
        """
        Merge other into this buffer. Returns the merged buffer, which is self whenever the result can be stored
        in this buffer's structure. Callers must use the return value.
        """
        return self.combine(other, f)

    def reset(self) -> None:
        self.map_inplace(lambda x: x * 0.0)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(shape={self.shape})'


class DenseBuffer(Buffer):
    """ Buffer backed by a dense numpy array of arbitrary rank """

    def __init__(self, array) -> None:
        self.array = np.array(array, dtype=float)

    @property
    def shape(self) -> Shape:
        return self.array.shape

    @classmethod
    def zeros(cls, shape) -> DenseBuffer:
        return cls(np.zeros(shape))

    def scaled_addto(self, alpha: float, arr: np.ndarray) -> None:
        self.check_shape(arr.shape)
        arr += alpha * self.array

    def to_dense(self) -> np.ndarray:
        return self.array.copy()

    def map(self, f: Unary) -> DenseBuffer:
        return DenseBuffer(f(self.array))

    def map_inplace(self, f: Unary) -> None:
        self.array[...] = f(self.array)

    def combine(self, other: Buffer, f: Binary) -> DenseBuffer:
        self.check_shape(other.shape)
        other_arr = other.array if isinstance(other, DenseBuffer) else other.to_dense()
        return DenseBuffer(f(self.array, other_arr))

    def combine_inplace(self, other: Buffer, f: Binary) -> DenseBuffer:
        self.check_shape(other.shape)
        other_arr = other.array if isinstance(other, DenseBuffer) else other.to_dense()
        self.array[...] = f(self.array, other_arr)
        return self


class Tile(Buffer):
    """ Buffer with at most one active entry, e.g. the gradient of a single table cell """

    def __init__(self, shape, active: Optional[Tuple[Tuple[int, ...], float]] = None) -> None:
        self._shape = tuple(shape)
        if active is not None:
            index, value = active
            index = tuple(index)
            if len(index) != len(self._shape) or any(not 0 <= i < n for i, n in zip(index, self._shape)):
                raise ShapeMismatch(self._shape, index, 'tile index')
            active = (index, float(value))
        self.active = active

    @property
    def shape(self) -> Shape:
        return self._shape

    @classmethod
    def zeros(cls, shape) -> Tile:
        return cls(shape)

    def scaled_addto(self, alpha: float, arr: np.ndarray) -> None:
        self.check_shape(arr.shape)
        if self.active is not None:
            index, value = self.active
            arr[index] += alpha * value

    def map(self, f: Unary) -> Buffer:
        if not preserves_zero(f):
            return DenseBuffer(f(self.to_dense()))
        if self.active is None:
            return Tile(self._shape)
        index, value = self.active
        return Tile(self._shape, (index, f(value)))

    def map_inplace(self, f: Unary) -> None:
        if not preserves_zero(f):
            raise ValueError('Tile buffers can only be mapped in place with zero-preserving functions')
        if self.active is not None:
            index, value = self.active
            self.active = (index, float(f(value)))

    def combine(self, other: Buffer, f: Binary) -> Buffer:
        self.check_shape(other.shape)
        if isinstance(other, Tile) and preserves_zero(f, 2):
            if self.active is None and other.active is None:
                return Tile(self._shape)
            if self.active is None:
                index, value = other.active
                return Tile(self._shape, (index, f(0.0, value)))
            if other.active is None:
                index, value = self.active
                return Tile(self._shape, (index, f(value, 0.0)))
            if self.active[0] == other.active[0]:
                return Tile(self._shape, (self.active[0], f(self.active[1], other.active[1])))
        return super().combine(other, f)


class Columnar(Buffer):
    """
    Weight-shaped (n_features, n_columns) buffer in which only some columns are non-zero.
    Each non-zero column is a 1-D buffer, typically Features.
    """

    def __init__(self, shape, columns: Optional[Dict[int, Buffer]] = None) -> None:
        self._shape = tuple(shape)
        if len(self._shape) != 2:
            raise ShapeMismatch('(rows, columns)', self._shape)
        self.columns: Dict[int, Buffer] = {}
        for idx, column in (columns or {}).items():
            if not 0 <= idx < self._shape[1]:
                raise ShapeMismatch(self._shape, idx, 'column index')
            if tuple(column.shape) != (self._shape[0],):
                raise ShapeMismatch((self._shape[0],), column.shape, 'column')
            self.columns[idx] = column

    @classmethod
    def from_column(cls, n_columns: int, index: int, column: Buffer) -> Columnar:
        """ Buffer whose only non-zero column is `column` at position `index` """
        return cls((column.shape[0], n_columns), {index: column})

    @property
    def shape(self) -> Shape:
        return self._shape

    @classmethod
    def zeros(cls, shape) -> Columnar:
        return cls(shape)

    def scaled_addto(self, alpha: float, arr: np.ndarray) -> None:
        self.check_shape(arr.shape)
        for idx, column in self.columns.items():
            column.scaled_addto(alpha, arr[:, idx])

    def map(self, f: Unary) -> Buffer:
        if not preserves_zero(f):
            return DenseBuffer(f(self.to_dense()))
        return Columnar(self._shape, {idx: column.map(f) for idx, column in self.columns.items()})

    def map_inplace(self, f: Unary) -> None:
        if not preserves_zero(f):
            raise ValueError('Columnar buffers can only be mapped in place with zero-preserving functions')
        self.columns = {idx: column.map(f) for idx, column in self.columns.items()}

    def combine(self, other: Buffer, f: Binary) -> Buffer:
        self.check_shape(other.shape)
        if not isinstance(other, Columnar) or not preserves_zero(f, 2):
            return super().combine(other, f)

        columns = {}
        for idx in set(self.columns) | set(other.columns):
            mine, theirs = self.columns.get(idx), other.columns.get(idx)
            if theirs is None:
                columns[idx] = mine.map(lambda x: f(x, 0.0))
            elif mine is None:
                columns[idx] = theirs.map(lambda y: f(0.0, y))
            else:
                columns[idx] = mine.combine(theirs, f)
        return Columnar(self._shape, columns)
