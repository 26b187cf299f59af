"""
Linear function approximators.

f(s) = phi(s) . W, where phi is the projection of s onto a basis. The function is linear in W, so its gradient with
respect to W is phi(s) itself (restricted to the relevant output column for action-conditioned outputs).

Each approximator owns its weights exclusively. All writes go through `update*` methods which delegate the step to
an optimiser. Gradients and traces never alias the weight array.
"""
from typing import Optional, Sequence

import numpy as np

from rlfa.core import Differentiable, Enumerable, Parameterised
from rlfa.errors import DimensionError, ShapeMismatch
from rlfa.fa.basis import Basis
from rlfa.fa.buffers import Buffer, Columnar
from rlfa.fa.features import Features
from rlfa.fa.optim import SGD, Optimiser
from rlfa.logging import get_logger

logger = get_logger(__name__)


class LinearFunction(Parameterised, Differentiable):
    """ Shared machinery of scalar and vector approximators """

    def __init__(self, basis: Basis, weights: np.ndarray, optimiser: Optional[Optimiser]) -> None:
        self.basis = basis
        self._weights = weights
        self.optimiser = optimiser if optimiser is not None else SGD(0.1)
        logger.debug('Created %s with weights of shape %s', type(self).__name__, weights.shape)

    @staticmethod
    def _init_weights(shape, weights) -> np.ndarray:
        if weights is None:
            return np.zeros(shape)
        weights = np.array(weights, dtype=float)
        if weights.shape != shape:
            raise DimensionError(shape, weights.shape, 'weights')
        return weights

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    @property
    def n_features(self) -> int:
        return self._weights.shape[0]

    def features(self, state) -> Features:
        """ Projection of a state, checked against the weights """
        features = self.basis.project(state)
        if features.n_features != self.n_features:
            raise ShapeMismatch((self.n_features,), features.shape, 'features')
        return features

    def evaluate_features(self, features: Features):
        """ Output for an already projected state """
        return features.dot(self._weights)

    def evaluate(self, state):
        return self.evaluate_features(self.features(state))

    def update_grad(self, grad: Buffer) -> None:
        """ weights += grad """
        self.optimiser.step_scaled(self._weights, grad, 1.0)

    def update_grad_scaled(self, grad: Buffer, alpha: float) -> None:
        """ weights += alpha * grad, e.g. with an eligibility trace as grad """
        self.optimiser.step_scaled(self._weights, grad, alpha)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(basis={self.basis!r}, optimiser={self.optimiser!r})'


class ScalarLFA(LinearFunction):
    """ Single output approximator, V(s) or Q(s, a) over a state-action basis """

    def __init__(self, basis: Basis, optimiser: Optional[Optimiser] = None, weights=None) -> None:
        super().__init__(basis, self._init_weights((basis.n_features,), weights), optimiser)

    def evaluate(self, state) -> float:
        return float(super().evaluate(state))

    def grad(self, state) -> Features:
        return self.features(state)

    def update(self, state, error: float) -> None:
        """ Single SGD-style step towards reducing error at state """
        self.optimiser.step(self._weights, self.features(state), error)


class VectorLFA(LinearFunction, Enumerable):
    """ One output per discrete action, Q(s, .). Weights have one column per output """

    def __init__(self, basis: Basis, n_outputs: int, optimiser: Optional[Optimiser] = None, weights=None) -> None:
        super().__init__(basis, self._init_weights((basis.n_features, n_outputs), weights), optimiser)

    @property
    def n_outputs(self) -> int:
        return self._weights.shape[1]

    @property
    def n_actions(self) -> int:
        return self.n_outputs

    def _check_action(self, action: int) -> int:
        if not 0 <= action < self.n_outputs:
            raise IndexError(f'Action {action} out of range for {self.n_outputs} outputs')
        return action

    def evaluate(self, state) -> np.ndarray:
        return super().evaluate(state)

    def evaluate_action(self, state, action: int) -> float:
        return float(self.features(state).dot(self._weights[:, self._check_action(action)]))

    def grad(self, state) -> Columnar:
        features = self.features(state)
        return Columnar(self._weights.shape, {col: features for col in range(self.n_outputs)})

    def grad_action(self, state, action: int) -> Columnar:
        """ Gradient of Q(s, a). Non-zero only in column a """
        return Columnar.from_column(self.n_outputs, self._check_action(action), self.features(state))

    def update(self, state, errors: Sequence[float]) -> None:
        """ One error per output column """
        errors = np.asarray(errors, dtype=float)
        if errors.shape != (self.n_outputs,):
            raise ShapeMismatch((self.n_outputs,), errors.shape, 'errors')
        features = self.features(state)
        grad = Columnar(self._weights.shape, {
            col: features.map(lambda x, e=error: x * e) for col, error in enumerate(errors) if error != 0.0
        })
        self.optimiser.step(self._weights, grad, 1.0)

    def update_action(self, state, action: int, error: float) -> None:
        self.optimiser.step(self._weights, self.grad_action(state, action), error)
