"""
Value based control. This includes
* Q-Learning
* SARSA and SARSA(lambda)
* Greedy-GQ

Each learner updates an action-value function with one output per discrete action. Pass the same Shared handle to
the learner and to the behaviour policy so that action selection sees every update immediately.
"""
import abc
from typing import Optional

import numpy as np

from rlfa.agent.base_agent import Learner, ValuePredictor
from rlfa.agent.policies import Policy
from rlfa.environment import Transition
from rlfa.errors import ConfigurationError
from rlfa.fa.traces import Trace
from rlfa.parameter import ParameterLike, as_parameter


class ValueControl(Learner, ValuePredictor):
    """ Shared structure of action-value learners """

    def __init__(self, q_func, gamma: ParameterLike = 0.99, on_error: str = 'raise') -> None:
        super().__init__(on_error)
        self.q_func = q_func
        self.gamma = as_parameter(gamma)

    def greedy_action(self, state) -> int:
        """ Target policy action """
        return self.q_func.find_max(state)[0]

    def predict_v(self, state) -> float:
        return self.q_func.find_max(state)[1]

    def predict_q(self, state) -> np.ndarray:
        return np.asarray(self.q_func.evaluate(state))

    def parameters(self):
        return (self.gamma,)

    @abc.abstractmethod
    def _bootstrap(self, transition: Transition) -> float:
        """ Value of the next state under the learner's target """

    def td_error(self, transition: Transition) -> float:
        state = transition.from_.state
        qsa = self.q_func.evaluate_action(state, transition.action)
        if transition.terminated:
            return transition.reward - qsa
        return transition.reward + self.gamma * self._bootstrap(transition) - qsa


class QLearning(ValueControl):
    """
    Off-policy TD control bootstrapping from max_a Q(s', a), regardless of the action the behaviour policy takes.
    Reference: Watkins & Dayan (1992), Q-learning
    """

    def _bootstrap(self, transition: Transition) -> float:
        return self.q_func.find_max(transition.to.state)[1]

    def _handle(self, transition: Transition) -> float:
        td_error = self.td_error(transition)
        self.q_func.update_action(transition.from_.state, transition.action, td_error)
        return td_error


class SARSA(ValueControl):
    """
    On-policy TD control bootstrapping from Q(s', a') with a' ~ policy(s')
    Reference: Rummery & Niranjan (1994), On-line Q-learning using connectionist systems
    """

    def __init__(self, q_func, policy: Policy, gamma: ParameterLike = 0.99, on_error: str = 'raise',
                 rng: Optional[np.random.Generator] = None) -> None:
        super().__init__(q_func, gamma, on_error)
        self.policy = policy
        self.rng = rng

    def sample_behaviour(self, state) -> int:
        return self.policy.sample(state, self.rng)

    def _bootstrap(self, transition: Transition) -> float:
        new_state = transition.to.state
        return self.q_func.evaluate_action(new_state, self.sample_behaviour(new_state))

    def _handle(self, transition: Transition) -> float:
        td_error = self.td_error(transition)
        self.q_func.update_action(transition.from_.state, transition.action, td_error)
        return td_error

    def predict_v(self, state) -> float:
        return self.q_func.expected_value(state, self.policy.probabilities(state))

    def handle_terminal(self) -> None:
        self.policy.handle_terminal()
        super().handle_terminal()


class SARSALambda(SARSA):
    """
    SARSA with an eligibility trace over the gradient of Q(s, a). The trace is reset at the end of each episode.
    Reference: Singh & Sutton (1996), Reinforcement learning with replacing eligibility traces
    """

    def __init__(self, q_func, policy: Policy, trace: Trace, alpha: ParameterLike = 0.1,
                 gamma: ParameterLike = 0.99, lambda_: ParameterLike = 0.9, on_error: str = 'raise',
                 rng: Optional[np.random.Generator] = None) -> None:
        super().__init__(q_func, policy, gamma, on_error, rng)
        if tuple(trace.shape) != q_func.weights.shape:
            raise ConfigurationError(f'Trace shape {trace.shape} does not match weights {q_func.weights.shape}')
        self.trace = trace
        self.alpha = as_parameter(alpha)
        self.lambda_ = as_parameter(lambda_)

    def _handle(self, transition: Transition) -> float:
        td_error = self.td_error(transition)
        grad = self.q_func.grad_action(transition.from_.state, transition.action)
        self.trace.scaled_update(self.gamma * self.lambda_, grad)
        self.q_func.update_grad_scaled(self.trace.buffer, self.alpha * td_error)
        return td_error

    def _rollback_targets(self):
        return (self.trace,)

    def parameters(self):
        return self.alpha, self.gamma, self.lambda_

    def handle_terminal(self) -> None:
        self.trace.reset()
        super().handle_terminal()


class GreedyGQ(ValueControl):
    """
    Gradient TD control. w_func estimates the expected TD error for each (s, a) and corrects the Q update:
        Q(s, a)   += lr * delta
        Q(s', a*) -= lr * gamma * w(s, a)
        w(s, a)   += lr * (delta - w(s, a))
    Reference: Maei et al. (2010), Toward off-policy learning control with function approximation
    """

    def __init__(self, q_func, w_func, gamma: ParameterLike = 0.99, on_error: str = 'raise') -> None:
        super().__init__(q_func, gamma, on_error)
        if q_func.weights.shape != w_func.weights.shape:
            raise ConfigurationError(
                f'q_func and w_func must have equal weight shapes, got {q_func.weights.shape} and '
                f'{w_func.weights.shape}'
            )
        self.w_func = w_func

    def _bootstrap(self, transition: Transition) -> float:
        return self.q_func.find_max(transition.to.state)[1]

    def _handle(self, transition: Transition) -> float:
        state, action = transition.from_.state, transition.action
        td_error = self.td_error(transition)
        td_estimate = self.w_func.evaluate_action(state, action)

        new_state = transition.to.state
        new_action = None if transition.terminated else self.greedy_action(new_state)

        self.q_func.update_action(state, action, td_error)
        if new_action is not None:
            self.q_func.update_action(new_state, new_action, -float(self.gamma) * td_estimate)
        self.w_func.update_action(state, action, td_error - td_estimate)
        return td_error

    def _rollback_targets(self):
        return (self.q_func,)
