"""
Radial basis function network with Gaussian kernels. Activations are normalised to sum to one.
"""
from __future__ import annotations

import itertools
from typing import Sequence, Tuple

import numpy as np

from rlfa.errors import ConfigurationError, DimensionError, NumericalError
from rlfa.fa.basis.base import Basis
from rlfa.fa.features import DenseFeatures


class RBFNetwork(Basis):
    """ feature_i(s) = k_i(s) / sum_j k_j(s) with k_i(s) = exp(-sum_d (s_d - mu_id)^2 / (2 sigma_d^2)) """

    def __init__(self, centres, sigma) -> None:
        centres = np.array(centres, dtype=float)
        sigma = np.array(sigma, dtype=float)
        if centres.ndim != 2 or sigma.shape != (centres.shape[1],):
            raise ConfigurationError(
                f'Dimensions of centres ({centres.shape}) and sigma ({sigma.shape}) must agree')
        if np.any(sigma <= 0):
            raise ConfigurationError(f'Kernel widths must be positive, got {sigma.tolist()}')

        self.centres = centres
        self.beta = 0.5 / sigma ** 2

    @classmethod
    def from_grid(cls, limits: Sequence[Tuple[float, float]], n_centres: Sequence[int]) -> RBFNetwork:
        """ Centres at the midpoints of a regular partition of the box, widths equal to the partition width """
        limits = np.array(limits, dtype=float)
        if len(n_centres) != limits.shape[0]:
            raise ConfigurationError(f'Expected {limits.shape[0]} partition counts, got {len(n_centres)}')

        widths = (limits[:, 1] - limits[:, 0]) / np.asarray(n_centres, dtype=float)
        axes = [low + width * (np.arange(n) + 0.5) for (low, _), width, n in zip(limits, widths, n_centres)]
        centres = np.array(list(itertools.product(*axes)))
        return cls(centres, widths)

    @property
    def n_features(self) -> int:
        return self.centres.shape[0]

    @property
    def n_inputs(self) -> int:
        return self.centres.shape[1]

    def _check_input(self, state) -> np.ndarray:
        state = np.asarray(state, dtype=float)
        if state.shape != (self.n_inputs,):
            raise DimensionError(self.n_inputs, state.shape)
        return state

    def kernel(self, state) -> np.ndarray:
        """ Unnormalised kernel activations """
        diff = self.centres - self._check_input(state)[np.newaxis, :]
        return np.exp(-np.sum(diff * diff * self.beta, axis=1))

    def project(self, state) -> DenseFeatures:
        activations = self.kernel(state)
        total = activations.sum()
        if not total > 0:
            raise NumericalError(f'All RBF kernels vanish at {state}')
        return DenseFeatures(activations / total)
