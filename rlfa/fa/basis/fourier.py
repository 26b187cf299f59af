"""
Fourier basis.
Reference: Konidaris, Osentoski & Thomas (2011), Value function approximation in RL using the Fourier basis
"""
from typing import Sequence, Tuple

import numpy as np

from rlfa.errors import ConfigurationError
from rlfa.fa.basis.base import BoundedBasis
from rlfa.fa.features import DenseFeatures
from rlfa.utils import cartesian_product, normalise


class Fourier(BoundedBasis):
    """
    feature_i(s) = cos(pi * c_i . s') where s' is the state rescaled onto [0, 1]^d and c_i runs over every integer
    vector in {0..order}^d except the zero vector. Use `with_bias()` for the constant term.
    """

    def __init__(self, order: int, limits: Sequence[Tuple[float, float]]) -> None:
        super().__init__(limits)
        if order < 1:
            raise ConfigurationError(f'Fourier order must be at least 1, got {order}')
        self.order = order
        self.coefficients = np.array(cartesian_product(order, self.n_inputs)[1:], dtype=float)

    @property
    def n_features(self) -> int:
        return self.coefficients.shape[0]

    def project(self, state) -> DenseFeatures:
        scaled = normalise(self._check_input(state), self.limits)
        return DenseFeatures(np.cos(np.pi * self.coefficients @ scaled))
