"""
Test linear function approximators and their optimisers
"""
import numpy as np
import pytest
from numpy.testing import assert_almost_equal

from rlfa.errors import DimensionError, NumericalError, ShapeMismatch
from rlfa.fa import (
    SGD, Adam, Columnar, DenseBuffer, DenseFeatures, SGDMomentum, ScalarLFA, SparseFeatures, VectorLFA,
)
from rlfa.fa.basis import Basis, Fourier, TileCoding
from rlfa.utils import load, save


class Lookup(Basis):
    """ Inline basis mapping integer states onto fixed feature vectors """

    def __init__(self, table, n_features=None):
        self.table = [np.asarray(row, dtype=float) for row in table]
        self._n_features = n_features or len(self.table[0])

    @property
    def n_features(self):
        return self._n_features

    def project(self, state):
        return DenseFeatures(self.table[state])


def test_scalar_evaluate_is_dot_product():
    """ Test V(s) = phi(s) . w """
    basis = Fourier(3, [(0.0, 1.0), (-1.0, 1.0)])
    weights = np.random.default_rng(0).normal(size=basis.n_features)
    fa = ScalarLFA(basis, weights=weights)
    for state in ([0.1, 0.2], [0.9, -0.7]):
        assert abs(fa.evaluate(state) - basis.project_dense(state) @ weights) < 1e-9


def test_vector_evaluate_is_dot_product():
    """ Test Q(s, .) = phi(s) . W and Q(s, a) reads one column """
    basis = Lookup([[1.0, 2.0], [0.5, -1.0]])
    weights = np.array([[1.0, 0.0, -1.0], [0.5, 2.0, 0.0]])
    fa = VectorLFA(basis, 3, weights=weights)

    assert_almost_equal(fa.evaluate(0), [2.0, 4.0, -1.0])
    assert_almost_equal(fa.evaluate_action(1, 1), -2.0)
    assert fa.n_actions == 3
    assert fa.find_max(0) == (1, 4.0)
    assert fa.find_min(0) == (2, -1.0)
    assert_almost_equal(fa.expected_value(0, [0.5, 0.5, 0.0]), 3.0)
    with pytest.raises(IndexError):
        fa.evaluate_action(0, 3)


def test_weights_must_match_basis():
    """ Test mismatched initial weights are rejected at construction """
    with pytest.raises(DimensionError):
        ScalarLFA(Lookup([[1.0, 2.0]]), weights=[1.0, 2.0, 3.0])
    with pytest.raises(DimensionError):
        VectorLFA(Lookup([[1.0, 2.0]]), 2, weights=np.zeros((2, 3)))


def test_projection_shape_mismatch():
    """ Test a basis projecting the wrong dimensionality is never truncated or padded """
    fa = ScalarLFA(Lookup([[1.0, 2.0, 3.0]], n_features=2))
    with pytest.raises(ShapeMismatch):
        fa.evaluate(0)


def test_update_is_scaled_gradient():
    """ Test update(s, e) adds learning_rate * e * phi(s) """
    fa = ScalarLFA(Lookup([[1.0, 0.0, 2.0]]), SGD(0.5))
    fa.update(0, 2.0)
    assert_almost_equal(fa.weights, [1.0, 0.0, 2.0])


def test_sparse_and_dense_updates_agree():
    """ Test tiled and dense features lead to the same weights """
    tiles = TileCoding(n_tilings=4, memory_size=64)
    sparse = ScalarLFA(tiles, SGD(0.1))

    class Densified(Basis):
        n_features = 64

        def project(self, state):
            return tiles.project(state).expanded()

    dense = ScalarLFA(Densified(), SGD(0.1))
    for state, error in (([0.3], 1.0), ([1.7], -0.5), ([0.31], 2.0)):
        sparse.update(state, error)
        dense.update(state, error)
    assert_almost_equal(sparse.weights, dense.weights)


def test_vector_update():
    """ Test per-action and per-column updates """
    fa = VectorLFA(Lookup([[1.0, 2.0]]), 3, SGD(0.5))
    fa.update_action(0, 2, 1.0)
    assert_almost_equal(fa.weights, [[0.0, 0.0, 0.5], [0.0, 0.0, 1.0]])

    fa.update(0, [1.0, 0.0, -1.0])
    assert_almost_equal(fa.weights, [[0.5, 0.0, 0.0], [1.0, 0.0, 0.0]])
    with pytest.raises(ShapeMismatch):
        fa.update(0, [1.0, 0.0])


def test_vector_gradients():
    """ Test gradients are features placed in the relevant columns """
    fa = VectorLFA(Lookup([[1.0, 2.0]]), 2)
    assert_almost_equal(fa.grad(0).to_dense(), [[1.0, 1.0], [2.0, 2.0]])
    grad = fa.grad_action(0, 1)
    assert isinstance(grad, Columnar)
    assert_almost_equal(grad.to_dense(), [[0.0, 1.0], [0.0, 2.0]])


def test_update_grad_scaled():
    """ Test externally computed gradients bypass the learning rate """
    fa = ScalarLFA(Lookup([[1.0, 1.0]]), SGD(0.01))
    fa.update_grad_scaled(SparseFeatures(2, {1: 1.0}), 3.0)
    assert_almost_equal(fa.weights, [0.0, 3.0])
    fa.update_grad(DenseFeatures([1.0, 1.0]))
    assert_almost_equal(fa.weights, [1.0, 4.0])


def test_failed_update_leaves_weights_unchanged():
    """ Test non-finite and misshapen updates are rejected atomically """
    fa = ScalarLFA(Lookup([[1.0, 0.0, 2.0]]), SGD(0.5), weights=[0.1, 0.2, 0.3])

    with pytest.raises(NumericalError):
        fa.update(0, np.inf)
    assert_almost_equal(fa.weights, [0.1, 0.2, 0.3])

    with pytest.raises(ShapeMismatch):
        fa.update_grad_scaled(DenseBuffer(np.ones(4)), 1.0)
    assert_almost_equal(fa.weights, [0.1, 0.2, 0.3])


def test_grad_log():
    """ Test grad log f = phi / f """
    fa = ScalarLFA(Lookup([[1.0, 2.0], [1.0, -1.0]]), weights=[1.0, 1.0])
    assert_almost_equal(fa.grad_log(0).to_dense(), [1.0 / 3.0, 2.0 / 3.0])
    with pytest.raises(NumericalError):
        fa.grad_log(1)


def test_momentum():
    """ Test heavy ball momentum accumulates velocity """
    fa = ScalarLFA(Lookup([[1.0]]), SGDMomentum(0.1, momentum=0.5))
    fa.update(0, 1.0)
    assert_almost_equal(fa.weights, [0.1])
    fa.update(0, 1.0)
    assert_almost_equal(fa.weights, [0.25])

    fa.optimiser.reset()
    fa.update(0, 1.0)
    assert_almost_equal(fa.weights, [0.35])


def test_adam_first_step():
    """ Test the first Adam step moves each active weight by about the learning rate """
    fa = ScalarLFA(Lookup([[1.0, 0.0, -3.0]]), Adam(0.01))
    fa.update(0, 2.0)
    assert_almost_equal(fa.weights, [0.01, 0.0, -0.01], decimal=6)
    assert fa.optimiser.t == 1


def test_persistence_round_trip(tmp_path):
    """ Test saved approximators reproduce identical outputs """
    fa = VectorLFA(Fourier(2, [(0.0, 1.0)]), 2, SGDMomentum(0.1))
    fa.update_action([0.3], 1, 1.0)
    path = tmp_path / 'fa.pkl'
    save(fa, path)

    restored = load(path)
    assert_almost_equal(restored.weights, fa.weights)
    assert_almost_equal(restored.evaluate([0.7]), fa.evaluate([0.7]))
    assert_almost_equal(restored.optimiser.velocity, fa.optimiser.velocity)
