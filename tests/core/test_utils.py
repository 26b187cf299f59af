"""
Test helper functions and logging setup
"""
import io
import logging

import numpy as np
from numpy.testing import assert_almost_equal

from rlfa.logging import get_logger
from rlfa.utils import argmax_first, argmaxima, cartesian_product, normalise


def test_argmax_first():
    """ Test ties resolve to the lowest index """
    assert argmax_first([0.1, 0.9, 0.3]) == (1, 0.9)
    assert argmax_first([0.5, 0.5, 0.1]) == (0, 0.5)
    assert argmax_first([-1.0, -2.0]) == (0, -1.0)


def test_argmaxima():
    """ Test all maximal indices are returned """
    assert argmaxima([0.5, 0.1, 0.5]) == ([0, 2], 0.5)
    assert argmaxima([0.1, 0.2]) == ([1], 0.2)


def test_cartesian_product():
    """ Test lexicographic order of integer tuples """
    assert cartesian_product(1, 2) == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert len(cartesian_product(2, 3)) == 27


def test_normalise():
    """ Test rescaling onto the unit box """
    limits = np.array([[0.0, 2.0], [-1.0, 1.0]])
    assert_almost_equal(normalise([1.0, 1.0], limits), [0.5, 1.0])


def test_logger_namespace():
    """ Test loggers live under the package namespace and do not propagate """
    logger = get_logger('tests.core')
    assert logger.name == 'rlfa.tests.core'
    assert get_logger('rlfa.fa') is get_logger('rlfa.fa')
    assert not logger.propagate

    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    logger.addHandler(handler)
    try:
        logger.debug('hidden')
        logger.warning('shown')
    finally:
        logger.removeHandler(handler)
    assert stream.getvalue() == 'shown\n'
