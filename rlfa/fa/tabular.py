"""
Tabular action-value function for discrete states, Q[s, a].

Equivalent to a VectorLFA over one-hot state features, but gradients of single entries are Tile buffers.
"""
from typing import Optional, Sequence

import numpy as np

from rlfa.core import Differentiable, Enumerable, Parameterised
from rlfa.errors import ConfigurationError, DimensionError, ShapeMismatch
from rlfa.fa.buffers import Buffer, Columnar, Tile
from rlfa.fa.features import SparseFeatures
from rlfa.fa.optim import SGD, Optimiser


class Tabular(Parameterised, Differentiable, Enumerable):
    """ Simple Q-table supporting states indexed 0 to n_states - 1 """

    def __init__(self, n_states: int, n_actions: int, optimiser: Optional[Optimiser] = None) -> None:
        if n_states < 1 or n_actions < 1:
            raise ConfigurationError(f'Table must have at least one state and action, got ({n_states}, {n_actions})')
        self.table = np.zeros((n_states, n_actions))
        self.optimiser = optimiser if optimiser is not None else SGD(0.1)

    @property
    def weights(self) -> np.ndarray:
        return self.table

    @property
    def n_states(self) -> int:
        return self.table.shape[0]

    @property
    def n_actions(self) -> int:
        return self.table.shape[1]

    def _check(self, state: int, action: int = 0) -> None:
        if not 0 <= state < self.n_states:
            raise DimensionError(self.n_states, state, 'state index')
        if not 0 <= action < self.n_actions:
            raise IndexError(f'Action {action} out of range for {self.n_actions} actions')

    def evaluate(self, state: int) -> np.ndarray:
        """ Return q values of all actions under a state """
        self._check(state)
        return self.table[state].copy()

    def evaluate_action(self, state: int, action: int) -> float:
        self._check(state, action)
        return float(self.table[state, action])

    def grad(self, state: int) -> Columnar:
        self._check(state)
        onehot = SparseFeatures(self.n_states, {state: 1.0})
        return Columnar(self.table.shape, {col: onehot for col in range(self.n_actions)})

    def grad_action(self, state: int, action: int) -> Tile:
        self._check(state, action)
        return Tile(self.table.shape, ((state, action), 1.0))

    def update(self, state: int, errors: Sequence[float]) -> None:
        errors = np.asarray(errors, dtype=float)
        if errors.shape != (self.n_actions,):
            raise ShapeMismatch((self.n_actions,), errors.shape, 'errors')
        self._check(state)
        self.optimiser.step(self.table, Columnar(self.table.shape, {
            col: SparseFeatures(self.n_states, {state: error}) for col, error in enumerate(errors)
        }), 1.0)

    def update_action(self, state: int, action: int, error: float) -> None:
        """ Update a state-action q value with the optimiser's learning rate """
        self.optimiser.step(self.table, self.grad_action(state, action), error)

    def update_grad_scaled(self, grad: Buffer, alpha: float) -> None:
        self.optimiser.step_scaled(self.table, grad, alpha)
