"""
Least-squares TD.

Accumulates A = sum phi (phi - gamma * phi')^T and b = sum r * phi over transitions, then solves A theta = b.
A singular system falls back to the pseudo-inverse.

Reference: Bradtke & Barto (1996), Linear least-squares algorithms for temporal difference learning
"""
from typing import Iterable

import numpy as np

from rlfa.agent.base_agent import Learner, ValuePredictor
from rlfa.core import Parameterised
from rlfa.environment import Transition
from rlfa.errors import DimensionError, NumericalError
from rlfa.fa.basis import Basis
from rlfa.logging import get_logger
from rlfa.parameter import ParameterLike, as_parameter

logger = get_logger(__name__)


class LSTD(Learner, ValuePredictor, Parameterised):
    """ Batch least-squares TD(0). `handle` accumulates and re-solves, `handle_batch` solves once at the end """

    def __init__(self, basis: Basis, gamma: ParameterLike = 0.99, regularisation: float = 1e-6,
                 on_error: str = 'raise') -> None:
        super().__init__(on_error)
        self.basis = basis
        self.gamma = as_parameter(gamma)

        n_features = basis.n_features
        self.theta = np.zeros(n_features)
        self.a = np.eye(n_features) * regularisation
        self.b = np.zeros(n_features)

    @property
    def weights(self) -> np.ndarray:
        return self.theta

    def _project(self, state) -> np.ndarray:
        phi = self.basis.project(state).to_dense()
        if phi.shape != self.b.shape:
            raise DimensionError(self.b.shape, phi.shape, 'features')
        return phi

    def _contribution(self, transition: Transition):
        """ phi (phi - gamma * phi')^T and r * phi for one transition """
        state, new_state = transition.states
        phi_s = self._project(state)
        if transition.terminated:
            direction = phi_s
        else:
            direction = phi_s - float(self.gamma) * self._project(new_state)

        a, b = np.outer(phi_s, direction), transition.reward * phi_s
        if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
            raise NumericalError('Transition produced a non-finite LSTD contribution')
        return a, b

    def accumulate(self, transition: Transition) -> None:
        """ Add one transition to the linear system without solving it """
        a, b = self._contribution(transition)
        self.a += a
        self.b += b

    @staticmethod
    def _solve(a: np.ndarray, b: np.ndarray) -> np.ndarray:
        if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
            raise NumericalError('LSTD system has non-finite entries')
        try:
            theta = np.linalg.solve(a, b)
        except np.linalg.LinAlgError:
            logger.info('Singular LSTD system, falling back to pseudo-inverse')
            theta = np.linalg.pinv(a) @ b

        if not np.all(np.isfinite(theta)):
            raise NumericalError('LSTD solve produced non-finite weights')
        return theta

    def solve(self) -> np.ndarray:
        """ theta = A^-1 b, falling back to the pseudo-inverse for singular A """
        self.theta = self._solve(self.a, self.b)
        return self.theta

    def _handle(self, transition: Transition) -> float:
        td_error = self.td_error(transition)
        a, b = self._contribution(transition)
        a, b = self.a + a, self.b + b
        theta = self._solve(a, b)
        self.a, self.b, self.theta = a, b, theta
        return td_error

    def handle_batch(self, transitions: Iterable[Transition]) -> np.ndarray:
        """ Accumulate a batch of transitions, then solve once. A failure anywhere leaves the system unchanged """
        a, b = self.a.copy(), self.b.copy()
        n_terminal = 0
        for transition in transitions:
            da, db = self._contribution(transition)
            a += da
            b += db
            n_terminal += transition.terminated
        theta = self._solve(a, b)
        self.a, self.b, self.theta = a, b, theta

        for _ in range(n_terminal):
            self.handle_terminal()
        return self.theta

    def td_error(self, transition: Transition) -> float:
        state, new_state = transition.states
        value = self.predict_v(state)
        if transition.terminated:
            return transition.reward - value
        return transition.reward + self.gamma * self.predict_v(new_state) - value

    def parameters(self):
        return (self.gamma,)

    def predict_v(self, state) -> float:
        return float(self._project(state) @ self.theta)
