"""
Feature vectors produced by bases.

Features come in two flavours sharing one interface:
* DenseFeatures: a full activation vector
* SparseFeatures: a map from active index to activation over the same dimensionality; absent indices are zero

Both are 1-D buffers, so they can be used directly as gradients of a scalar approximator. Any operation on a sparse
vector yields the same numbers as on its dense expansion.
"""
from __future__ import annotations

import abc
from typing import Dict, Iterable, Iterator, Tuple

import numpy as np

from rlfa.errors import ShapeMismatch
from rlfa.fa.buffers import Binary, Buffer, DenseBuffer, Unary, preserves_zero


class Features(Buffer):
    """ Base class of feature vectors """

    @property
    @abc.abstractmethod
    def n_features(self) -> int:
        """ Dimensionality of the feature space """

    @abc.abstractmethod
    def items(self) -> Iterator[Tuple[int, float]]:
        """ (index, activation) pairs of the active features """

    @property
    def shape(self) -> Tuple[int]:
        return (self.n_features,)

    @classmethod
    def zeros(cls, shape) -> SparseFeatures:
        n_features = shape[0] if isinstance(shape, tuple) else shape
        return SparseFeatures(n_features)

    def dot(self, weights: np.ndarray):
        """ Inner product with a weight vector (float) or with every column of a weight matrix (array) """
        weights = np.asarray(weights)
        if weights.ndim not in (1, 2) or weights.shape[0] != self.n_features:
            raise ShapeMismatch((self.n_features,), weights.shape, 'weights')
        return self._dot(weights)

    @abc.abstractmethod
    def _dot(self, weights: np.ndarray):
        """ Inner product once shapes are validated """

    def l1(self) -> float:
        """ Sum of absolute activations """
        return float(sum(abs(v) for _, v in self.items()))

    def expanded(self) -> DenseFeatures:
        """ Dense representation of the same vector """
        return DenseFeatures(self.to_dense())

    def stack(self, other: Features) -> Features:
        """ Concatenate two feature vectors """
        if isinstance(self, SparseFeatures) and isinstance(other, SparseFeatures):
            offset = self.n_features
            activations = dict(self.activations)
            activations.update((offset + i, v) for i, v in other.activations.items())
            return SparseFeatures(self.n_features + other.n_features, activations)
        return DenseFeatures(np.concatenate([self.to_dense(), other.to_dense()]))

    def __len__(self) -> int:
        return self.n_features


class DenseFeatures(Features, DenseBuffer):
    """ Full activation vector """

    def __init__(self, activations) -> None:
        DenseBuffer.__init__(self, activations)
        if self.array.ndim != 1:
            raise ShapeMismatch('(n_features,)', self.array.shape, 'features')

    @property
    def n_features(self) -> int:
        return self.array.shape[0]

    @property
    def shape(self) -> Tuple[int]:
        return self.array.shape

    @classmethod
    def zeros(cls, shape) -> DenseFeatures:
        return cls(np.zeros(shape))

    def items(self) -> Iterator[Tuple[int, float]]:
        return ((idx, float(v)) for idx, v in enumerate(self.array) if v != 0.0)

    def _dot(self, weights: np.ndarray):
        result = self.array @ weights
        return float(result) if weights.ndim == 1 else result

    def map(self, f: Unary) -> DenseFeatures:
        return DenseFeatures(f(self.array))

    def combine(self, other: Buffer, f: Binary) -> DenseFeatures:
        return DenseFeatures(DenseBuffer.combine(self, other, f).array)

    def l1(self) -> float:
        return float(np.abs(self.array).sum())

    def expanded(self) -> DenseFeatures:
        return self

    def __repr__(self) -> str:
        return f'DenseFeatures({self.array!r})'


class SparseFeatures(Features):
    """ Active index -> activation over a fixed dimensionality """

    def __init__(self, n_features: int, activations: Dict[int, float] = None) -> None:
        self._n_features = int(n_features)
        self.activations: Dict[int, float] = {}
        for idx, value in (activations or {}).items():
            if not 0 <= idx < self._n_features:
                raise ShapeMismatch(self._n_features, idx, 'feature index')
            self.activations[int(idx)] = float(value)

    @classmethod
    def from_indices(cls, n_features: int, indices: Iterable[int], activation: float = 1.0) -> SparseFeatures:
        """ Binary features such as tile codings. Repeated indices collapse into one active feature """
        return cls(n_features, {idx: activation for idx in indices})

    @property
    def n_features(self) -> int:
        return self._n_features

    def items(self) -> Iterator[Tuple[int, float]]:
        return iter(self.activations.items())

    @property
    def indices(self) -> Tuple[int, ...]:
        return tuple(self.activations)

    def _dot(self, weights: np.ndarray):
        if not self.activations:
            return 0.0 if weights.ndim == 1 else np.zeros(weights.shape[1])
        indices = np.fromiter(self.activations.keys(), dtype=int)
        values = np.fromiter(self.activations.values(), dtype=float)
        result = values @ weights[indices]
        return float(result) if weights.ndim == 1 else result

    def scaled_addto(self, alpha: float, arr: np.ndarray) -> None:
        self.check_shape(arr.shape)
        for idx, value in self.activations.items():
            arr[idx] += alpha * value

    def map(self, f: Unary) -> Features:
        if not preserves_zero(f):
            return DenseFeatures(f(self.to_dense()))
        return SparseFeatures(self._n_features, {idx: f(v) for idx, v in self.activations.items()})

    def map_inplace(self, f: Unary) -> None:
        if not preserves_zero(f):
            raise ValueError('Sparse features can only be mapped in place with zero-preserving functions')
        for idx, value in self.activations.items():
            self.activations[idx] = float(f(value))

    def combine(self, other: Buffer, f: Binary) -> Features:
        self.check_shape(other.shape)
        if isinstance(other, SparseFeatures) and preserves_zero(f, 2):
            activations = {}
            for idx in set(self.activations) | set(other.activations):
                activations[idx] = f(self.activations.get(idx, 0.0), other.activations.get(idx, 0.0))
            return SparseFeatures(self._n_features, activations)
        return DenseFeatures(f(self.to_dense(), other.to_dense()))

    def __repr__(self) -> str:
        return f'SparseFeatures({self._n_features}, {self.activations!r})'
