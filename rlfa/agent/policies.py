"""
Policies over a discrete action set.

Value-based policies hold the same (shared) action-value function the learner updates, so greedy choices always
reflect the latest weights.
"""
import abc
from typing import Optional

import numpy as np

from rlfa.errors import ConfigurationError
from rlfa.fa.buffers import Columnar
from rlfa.parameter import ParameterLike, as_parameter


class Policy(abc.ABC):
    """ Distribution over actions given a state """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.rng = np.random.default_rng(seed)

    @property
    @abc.abstractmethod
    def n_actions(self) -> int:
        """ Number of available actions """

    @abc.abstractmethod
    def probabilities(self, state) -> np.ndarray:
        """ pi(. | s) """

    def sample(self, state, rng: Optional[np.random.Generator] = None) -> int:
        """ Draw an action from pi(. | s) """
        rng = rng if rng is not None else self.rng
        return int(rng.choice(self.n_actions, p=self.probabilities(state)))

    def handle_terminal(self) -> None:
        """ End of episode bookkeeping, e.g. decaying exploration """


class Random(Policy):
    """ Uniform over all actions """

    def __init__(self, n_actions: int, seed: Optional[int] = None) -> None:
        super().__init__(seed)
        if n_actions < 1:
            raise ConfigurationError(f'Need at least one action, got {n_actions}')
        self._n_actions = n_actions

    @property
    def n_actions(self) -> int:
        return self._n_actions

    def probabilities(self, state) -> np.ndarray:
        return np.full(self._n_actions, 1.0 / self._n_actions)

    def sample(self, state, rng: Optional[np.random.Generator] = None) -> int:
        rng = rng if rng is not None else self.rng
        return int(rng.integers(self._n_actions))


class Greedy(Policy):
    """ Always the action with the highest value. Ties resolve to the lowest index """

    def __init__(self, q_func, seed: Optional[int] = None) -> None:
        super().__init__(seed)
        self.q_func = q_func

    @property
    def n_actions(self) -> int:
        return self.q_func.n_actions

    def probabilities(self, state) -> np.ndarray:
        probabilities = np.zeros(self.n_actions)
        probabilities[self.q_func.find_max(state)[0]] = 1.0
        return probabilities

    def sample(self, state, rng: Optional[np.random.Generator] = None) -> int:
        return self.q_func.find_max(state)[0]


class EpsilonGreedy(Policy):
    """ Uniformly random action with probability epsilon, greedy otherwise. Epsilon steps once per episode """

    def __init__(self, q_func, epsilon: ParameterLike = 0.1, seed: Optional[int] = None) -> None:
        super().__init__(seed)
        self.greedy = Greedy(q_func)
        self.random = Random(q_func.n_actions)
        self.epsilon = as_parameter(epsilon)
        if not 0.0 <= self.epsilon.value() <= 1.0:
            raise ConfigurationError(f'epsilon must be in [0, 1], got {self.epsilon.value()}')

    @property
    def q_func(self):
        return self.greedy.q_func

    @property
    def n_actions(self) -> int:
        return self.greedy.n_actions

    def probabilities(self, state) -> np.ndarray:
        epsilon = float(self.epsilon)
        return epsilon * self.random.probabilities(state) + (1.0 - epsilon) * self.greedy.probabilities(state)

    def sample(self, state, rng: Optional[np.random.Generator] = None) -> int:
        rng = rng if rng is not None else self.rng
        if rng.random() < float(self.epsilon):
            return self.random.sample(state, rng)
        return self.greedy.sample(state, rng)

    def handle_terminal(self) -> None:
        self.epsilon.step()


class Gibbs(Policy):
    """
    Softmax over the outputs of a vector approximator, pi(a | s) ~ exp(Q(s, a) / tau).
    Differentiable in the approximator's weights, so it can drive compatible features.
    """

    def __init__(self, fa, tau: float = 1.0, seed: Optional[int] = None) -> None:
        super().__init__(seed)
        if tau <= 0:
            raise ConfigurationError(f'Temperature must be positive, got {tau}')
        self.fa = fa
        self.tau = tau

    @property
    def n_actions(self) -> int:
        return self.fa.n_actions

    @property
    def weights(self) -> np.ndarray:
        return self.fa.weights

    @property
    def n_weights(self) -> int:
        return self.fa.n_weights

    def probabilities(self, state) -> np.ndarray:
        logits = np.asarray(self.fa.evaluate(state), dtype=float) / self.tau
        e = np.exp(logits - logits.max())
        return e / e.sum()

    def grad_log(self, state, action: int) -> Columnar:
        """ d/dW log pi(a | s): column b holds phi(s) * (1[a == b] - pi(b | s)) / tau """
        probabilities = self.probabilities(state)
        features = self.fa.features(state)
        columns = {}
        for col, prob in enumerate(probabilities):
            scale = ((col == action) - prob) / self.tau
            columns[col] = features.map(lambda x, k=scale: k * x)
        return Columnar(self.fa.weights.shape, columns)
