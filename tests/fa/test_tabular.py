"""
Test the tabular action-value function
"""
import pytest
from numpy.testing import assert_almost_equal

from rlfa.errors import ConfigurationError, DimensionError, ShapeMismatch
from rlfa.fa import SGD, Columnar, Tabular, Tile


def test_table_update():
    """ Test q value update of single entries """
    table = Tabular(2, 3, SGD(0.3))
    table.update_action(0, 1, 1.0)
    assert tuple(table.evaluate(0)) == (0.0, 0.3, 0.0)
    table.update_action(0, 1, 2.0)
    assert_almost_equal(table.evaluate_action(0, 1), 0.9)
    assert tuple(table.evaluate(1)) == (0.0, 0.0, 0.0)


def test_evaluate_returns_copy():
    """ Test values read from the table cannot modify it """
    table = Tabular(1, 2)
    values = table.evaluate(0)
    values[0] = 10.0
    assert table.evaluate_action(0, 0) == 0.0


def test_table_gradients():
    """ Test single entry gradients are tiles and full gradients one-hot columns """
    table = Tabular(3, 2)
    grad = table.grad_action(2, 1)
    assert isinstance(grad, Tile)
    assert grad.active == ((2, 1), 1.0)

    full = table.grad(1)
    assert isinstance(full, Columnar)
    assert_almost_equal(full.to_dense(), [[0.0, 0.0], [1.0, 1.0], [0.0, 0.0]])


def test_table_full_update():
    """ Test one error per action """
    table = Tabular(2, 2, SGD(0.5))
    table.update(1, [2.0, -2.0])
    assert_almost_equal(table.weights, [[0.0, 0.0], [1.0, -1.0]])
    with pytest.raises(ShapeMismatch):
        table.update(1, [1.0])


def test_table_greedy():
    """ Test greedy lookup with ties resolved to the lowest action """
    table = Tabular(1, 3, SGD(1.0))
    assert table.find_max(0) == (0, 0.0)
    table.update_action(0, 2, 1.0)
    assert table.find_max(0) == (2, 1.0)


def test_table_validation():
    """ Test invalid sizes, states and actions """
    with pytest.raises(ConfigurationError):
        Tabular(0, 2)
    table = Tabular(2, 2)
    with pytest.raises(DimensionError):
        table.evaluate(2)
    with pytest.raises(IndexError):
        table.grad_action(0, 2)
