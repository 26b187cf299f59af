"""
Basis interface and combinators.

A basis maps a raw state onto Features. Projection is deterministic and free of side effects.
"""
from __future__ import annotations

import abc
from typing import Sequence, Tuple

import numpy as np

from rlfa.errors import ConfigurationError, DimensionError
from rlfa.fa.features import Features, SparseFeatures


class Basis(abc.ABC):
    """ Base class of all bases """

    @property
    @abc.abstractmethod
    def n_features(self) -> int:
        """ Size of the feature space """

    @abc.abstractmethod
    def project(self, state) -> Features:
        """ Project a state onto the basis """

    def project_dense(self, state) -> np.ndarray:
        """ Projection expanded into a dense numpy vector """
        return self.project(state).to_dense()

    def with_bias(self) -> Bias:
        """ Same basis with a constant 1.0 feature appended """
        return Bias(self)

    def __add__(self, other: Basis) -> Stack:
        return Stack(self, other)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(n_features={self.n_features})'


class BoundedBasis(Basis):
    """ Basis over a box of continuous inputs, one (low, high) pair per state dimension """

    def __init__(self, limits: Sequence[Tuple[float, float]]) -> None:
        limits = np.array(limits, dtype=float)
        if limits.ndim != 2 or limits.shape[1] != 2 or limits.shape[0] == 0:
            raise ConfigurationError(f'Limits must be a non-empty sequence of (low, high) pairs, got {limits}')
        if np.any(limits[:, 1] <= limits[:, 0]):
            raise ConfigurationError(f'Every upper limit must exceed its lower limit, got {limits.tolist()}')
        self.limits = limits

    @property
    def n_inputs(self) -> int:
        return self.limits.shape[0]

    def _check_input(self, state) -> np.ndarray:
        state = np.asarray(state, dtype=float)
        if state.ndim != 1 or state.shape[0] != self.n_inputs:
            raise DimensionError(self.n_inputs, state.shape)
        return state


class Stack(Basis):
    """ Concatenation of two bases over the same input. Stays sparse when both parts are sparse """

    def __init__(self, first: Basis, second: Basis) -> None:
        self.first = first
        self.second = second

    @property
    def n_features(self) -> int:
        return self.first.n_features + self.second.n_features

    def project(self, state) -> Features:
        return self.first.project(state).stack(self.second.project(state))


class Bias(Basis):
    """ Appends a constant feature to another basis """

    _constant = SparseFeatures(1, {0: 1.0})

    def __init__(self, basis: Basis) -> None:
        self.basis = basis

    @property
    def n_features(self) -> int:
        return self.basis.n_features + 1

    def project(self, state) -> Features:
        return self.basis.project(state).stack(self._constant)
