"""
Capability interfaces implemented selectively by approximators, plus the shared handle.

Algorithms depend only on the capabilities they use:
* Function: evaluate(state)
* Differentiable: grad(state) / grad_log(state) with respect to the weights
* Parameterised: owns a weight matrix
* Enumerable: one output per discrete action
"""
from __future__ import annotations

import abc
import copy
from typing import Sequence, Tuple

import numpy as np

from rlfa.errors import NumericalError, ShapeMismatch
from rlfa.utils import argmax_first


class Function(abc.ABC):
    """ Anything that can be evaluated on a state """

    @abc.abstractmethod
    def evaluate(self, state):
        """ Output for a state """


class Differentiable(Function):
    """ Function with a gradient with respect to its weights """

    @abc.abstractmethod
    def grad(self, state):
        """ Gradient buffer, shaped like the weights """

    def grad_log(self, state):
        """ Gradient of log f, i.e. grad f / f """
        value = self.evaluate(state)
        if value == 0.0:
            raise NumericalError('grad_log is undefined where the function is zero')
        return self.grad(state).map(lambda x: x / value)


class Parameterised(abc.ABC):
    """ Owner of a weight matrix """

    @property
    @abc.abstractmethod
    def weights(self) -> np.ndarray:
        """ Weight array. Mutate only through the owner's update methods """

    @property
    def weights_dim(self) -> Tuple[int, int]:
        """ (rows, columns) of the weights, vectors count as a single column """
        shape = self.weights.shape
        return (shape[0], 1) if len(shape) == 1 else shape

    @property
    def n_weights(self) -> int:
        rows, cols = self.weights_dim
        return rows * cols

    def checkpoint(self):
        """ Copy of the weights and optimiser state, see `restore` """
        return self.weights.copy(), copy.deepcopy(getattr(self, 'optimiser', None))

    def restore(self, state) -> None:
        """ Roll the weights back in place, and the optimiser with them, to a checkpoint """
        weights, optimiser = state
        np.copyto(self.weights, weights)
        if optimiser is not None:
            self.optimiser = optimiser


class Enumerable(Function):
    """ Function with one output per discrete action """

    @property
    @abc.abstractmethod
    def n_actions(self) -> int:
        """ Number of outputs """

    def evaluate_action(self, state, action: int) -> float:
        return float(self.evaluate(state)[action])

    def find_max(self, state) -> Tuple[int, float]:
        """ Greedy action and its value. Ties resolve to the lowest index """
        return argmax_first(self.evaluate(state))

    def find_min(self, state) -> Tuple[int, float]:
        idx, value = argmax_first(-np.asarray(self.evaluate(state)))
        return idx, -value

    def expected_value(self, state, probabilities: Sequence[float]) -> float:
        values = np.asarray(self.evaluate(state))
        probabilities = np.asarray(probabilities, dtype=float)
        if probabilities.shape != values.shape:
            raise ShapeMismatch(values.shape, probabilities.shape, 'probabilities')
        return float(values @ probabilities)


class Shared:
    """
    Handle on an object owned jointly by several components, e.g. a Q-function referenced by both a learner and
    the policy that acts on it. Every handle points at the same object: an update made through one is visible to
    all others on their next read. Access is single threaded and sequential, so no locking takes place.
    """

    __slots__ = ('_target',)

    def __init__(self, target) -> None:
        if isinstance(target, Shared):
            target = target.borrow()
        object.__setattr__(self, '_target', target)

    def borrow(self):
        """ The underlying object """
        return self._target

    def clone(self) -> Shared:
        """ Another handle on the same object """
        return Shared(self._target)

    def __getattr__(self, name):
        if name == '_target':
            raise AttributeError(name)
        return getattr(self._target, name)

    def __getstate__(self):
        return self._target

    def __setstate__(self, state) -> None:
        object.__setattr__(self, '_target', state)

    def __setattr__(self, name, value) -> None:
        setattr(self._target, name, value)

    def __repr__(self) -> str:
        return f'Shared({self._target!r})'
