"""
Test projections of the continuous bases and basis combinators
"""
import numpy as np
import pytest
from numpy.testing import assert_almost_equal

from rlfa.agent import Gibbs
from rlfa.errors import ConfigurationError, DimensionError, ShapeMismatch
from rlfa.fa import DenseFeatures, SparseFeatures, VectorLFA
from rlfa.fa.basis import (
    Basis, Bias, Chebyshev, CompatibleBasis, Fourier, Polynomial, RBFNetwork, StableCompatibleBasis, Stack,
    TileCoding,
)


def test_fourier_features():
    """ Test coefficient set and values at known points """
    basis = Fourier(2, [(0.0, 1.0), (0.0, 1.0)])
    assert basis.n_features == 8
    assert_almost_equal(basis.project_dense([0.0, 0.0]), np.ones(8))

    # coefficients in lexicographic order: (0,1) (0,2) (1,0) (1,1) (1,2) (2,0) (2,1) (2,2)
    assert_almost_equal(basis.project_dense([1.0, 0.5]), [0, -1, -1, 0, 1, 1, 0, -1], decimal=10)


def test_fourier_rescales_limits():
    """ Test states are normalised by their limits before projection """
    unit = Fourier(3, [(0.0, 1.0)])
    wide = Fourier(3, [(-10.0, 10.0)])
    assert_almost_equal(unit.project_dense([0.25]), wide.project_dense([-5.0]))


def test_fourier_validation():
    """ Test invalid orders, limits and inputs """
    with pytest.raises(ConfigurationError):
        Fourier(0, [(0.0, 1.0)])
    with pytest.raises(ConfigurationError):
        Fourier(1, [(1.0, 1.0)])
    with pytest.raises(DimensionError):
        Fourier(1, [(0.0, 1.0)]).project([0.5, 0.5])


def test_polynomial_features():
    """ Test products of powers of the state rescaled onto [-1, 1] """
    basis = Polynomial(1, [(0.0, 1.0), (0.0, 1.0)])
    assert basis.n_features == 4
    # exponents (0,0) (0,1) (1,0) (1,1) at scaled state (1, -1)
    assert_almost_equal(basis.project_dense([1.0, 0.0]), [1.0, -1.0, 1.0, -1.0])


def test_chebyshev_features():
    """ Test Chebyshev polynomials of the first kind """
    basis = Chebyshev(2, [(0.0, 1.0)])
    # scaled state 0.5: T0 = 1, T1 = 0.5, T2 = 2 * 0.25 - 1
    assert_almost_equal(basis.project_dense([0.75]), [1.0, 0.5, -0.5])

    two_dims = Chebyshev(1, [(0.0, 1.0), (-1.0, 1.0)])
    assert_almost_equal(two_dims.project_dense([1.0, 0.5]), [1.0, 0.5, 1.0, 0.5])


def test_rbf_features_form_simplex():
    """ Test normalised kernels sum to one and peak at the nearest centre """
    basis = RBFNetwork.from_grid([(0.0, 1.0), (0.0, 2.0)], [4, 3])
    assert basis.n_features == 12
    for state in ([0.1, 0.2], [0.5, 1.0], [0.99, 1.9]):
        features = basis.project_dense(state)
        assert abs(features.sum() - 1.0) < 1e-12
        assert np.all(features > 0)

    features = basis.project_dense([0.125, 1.0 / 3.0])
    assert np.argmax(features) == 0


def test_rbf_grid_centres():
    """ Test centres sit in the middle of each partition """
    basis = RBFNetwork.from_grid([(0.0, 1.0)], [2])
    assert_almost_equal(basis.centres, [[0.25], [0.75]])
    assert_almost_equal(basis.beta, [0.5 / 0.25])


def test_rbf_validation():
    """ Test invalid kernel widths and inputs """
    with pytest.raises(ConfigurationError):
        RBFNetwork([[0.0, 0.0]], [1.0])
    with pytest.raises(ConfigurationError):
        RBFNetwork([[0.0]], [0.0])
    with pytest.raises(DimensionError):
        RBFNetwork([[0.0]], [1.0]).project([0.0, 1.0])


def test_stack_and_bias():
    """ Test concatenated bases """
    tiles = TileCoding(n_tilings=2, memory_size=16)
    fourier = Fourier(1, [(0.0, 1.0)])

    sparse = Stack(tiles, TileCoding(n_tilings=2, memory_size=8))
    assert sparse.n_features == 24
    assert isinstance(sparse.project([0.3]), SparseFeatures)

    mixed = fourier + tiles
    assert mixed.n_features == 17
    features = mixed.project([0.0])
    assert isinstance(features, DenseFeatures)
    assert features.to_dense()[0] == 1.0

    biased = fourier.with_bias()
    assert isinstance(biased, Bias)
    assert biased.n_features == 2
    assert_almost_equal(biased.project_dense([1.0]), [-1.0, 1.0])


class Constant(Basis):
    """ Inline basis returning the same vector for every state """

    def __init__(self, values):
        self.values = np.asarray(values, dtype=float)

    @property
    def n_features(self):
        return self.values.shape[0]

    def project(self, state):
        return DenseFeatures(self.values)


def test_compatible_features():
    """ Test compatible features equal the flattened gradient of the log policy """
    policy = Gibbs(VectorLFA(Constant([1.0, 2.0]), 2, weights=np.zeros((2, 2))))
    basis = CompatibleBasis(policy)
    assert basis.n_features == 4

    # uniform policy: column b of grad log pi(0 | s) is phi * (1[b == 0] - 0.5)
    features = basis.project_dense((None, 0))
    assert_almost_equal(features, np.array([[0.5, -0.5], [1.0, -1.0]]).ravel())


def test_stable_compatible_features():
    """ Test compatible features followed by the state basis """
    policy = Gibbs(VectorLFA(Constant([1.0]), 2))
    basis = StableCompatibleBasis(policy, Constant([3.0, 4.0]))
    assert basis.n_features == 4
    assert_almost_equal(basis.project_dense(('s', 1)), [-0.5, 0.5, 3.0, 4.0])


def test_compatible_features_shape_check():
    """ Test policies whose gradient disagrees with their weight count """

    class Broken:
        n_weights = 3

        @staticmethod
        def grad_log(state, action):
            return np.zeros(2)

    with pytest.raises(ShapeMismatch):
        CompatibleBasis(Broken()).project((None, 0))
