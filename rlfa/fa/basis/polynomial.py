"""
Polynomial bases. Both index features by exponent tuples in {0..order}^d and rescale each state dimension onto
[-1, 1] before evaluating.
"""
from typing import Sequence, Tuple

import numpy as np
from numpy.polynomial import chebyshev

from rlfa.errors import ConfigurationError
from rlfa.fa.basis.base import BoundedBasis
from rlfa.fa.features import DenseFeatures
from rlfa.utils import cartesian_product, normalise


class Polynomial(BoundedBasis):
    """ feature_i(s) = prod_j s'_j ** e_ij """

    def __init__(self, order: int, limits: Sequence[Tuple[float, float]]) -> None:
        super().__init__(limits)
        if order < 0:
            raise ConfigurationError(f'Polynomial order must be non-negative, got {order}')
        self.order = order
        self.exponents = np.array(cartesian_product(order, self.n_inputs), dtype=int)

    @property
    def n_features(self) -> int:
        return self.exponents.shape[0]

    def _rescale(self, state) -> np.ndarray:
        return 2.0 * normalise(self._check_input(state), self.limits) - 1.0

    def project(self, state) -> DenseFeatures:
        scaled = self._rescale(state)
        return DenseFeatures(np.prod(scaled[np.newaxis, :] ** self.exponents, axis=1))


class Chebyshev(Polynomial):
    """ feature_i(s) = prod_j T_{e_ij}(s'_j) with T_n the Chebyshev polynomials of the first kind """

    def project(self, state) -> DenseFeatures:
        scaled = self._rescale(state)
        # table[j, n] = T_n(s'_j)
        table = chebyshev.chebvander(scaled, self.order)
        columns = np.arange(self.n_inputs)
        return DenseFeatures(np.prod(table[columns, self.exponents], axis=1))
