"""
Learners interacting with a small random walk environment
"""
import numpy as np
import pytest
from numpy.testing import assert_allclose

from rlfa import Shared
from rlfa.agent import LSTD, TD, EpsilonGreedy, QLearning, Random, SARSALambda, TDLambda
from rlfa.environment import Environment, Full, Terminal, Transition
from rlfa.fa import SGD, Replacing, ScalarLFA, SparseFeatures, Tabular
from rlfa.fa.basis import Basis
from rlfa.parameter import Exponential

TRUE_VALUES = np.arange(1, 6) / 6


class Chain(Environment):
    """ Positions 0 to 6, both ends terminal. Action 0 moves left, 1 moves right; reaching 6 pays 1 """

    def __init__(self, length: int = 7) -> None:
        self.length = length
        self.position = length // 2

    def reset(self):
        self.position = self.length // 2
        return self.emit()

    def emit(self):
        if self.position in (0, self.length - 1):
            return Terminal(self.position)
        return Full(self.position)

    def transition(self, action):
        from_ = self.emit()
        self.position += 1 if action == 1 else -1
        to = self.emit()
        return Transition(from_, action, 1.0 if self.position == self.length - 1 else 0.0, to)

    @property
    def n_actions(self):
        return 2

    @property
    def state_dim(self):
        return 1


class OneHot(Basis):
    """ Inline basis with one binary feature per discrete state """

    def __init__(self, n_states):
        self.n_states = n_states

    @property
    def n_features(self):
        return self.n_states

    def project(self, state):
        return SparseFeatures(self.n_states, {state: 1.0})


def run_episode(env, learner, policy):
    env.reset()
    while not env.is_terminal():
        response = learner.handle(env.transition(policy.sample(env.emit().state)))
        assert response.ok


def collect_episodes(env, policy, n_episodes):
    transitions = []
    for _ in range(n_episodes):
        env.reset()
        while not env.is_terminal():
            transitions.append(env.transition(policy.sample(env.emit().state)))
    return transitions


def test_td_zero_random_walk():
    """ Test TD(0) recovers V(k) = k / 6 under a uniformly random policy """
    v_func = ScalarLFA(OneHot(7), SGD(0.01))
    learner = TD(v_func, gamma=1.0)
    env, policy = Chain(), Random(2, seed=0)
    for _ in range(4000):
        run_episode(env, learner, policy)

    estimates = np.array([learner.predict_v(k) for k in range(1, 6)])
    assert_allclose(estimates, TRUE_VALUES, atol=0.1)


def test_td_lambda_random_walk():
    """ Test TD(lambda) with a replacing trace on the same problem """
    v_func = ScalarLFA(OneHot(7))
    learner = TDLambda(v_func, Replacing.for_fa(v_func), alpha=0.005, gamma=1.0, lambda_=0.8)
    env, policy = Chain(), Random(2, seed=1)
    for _ in range(4000):
        run_episode(env, learner, policy)

    estimates = np.array([learner.predict_v(k) for k in range(1, 6)])
    assert_allclose(estimates, TRUE_VALUES, atol=0.1)
    assert_allclose(learner.trace.to_dense(), np.zeros(7))


def test_lstd_random_walk():
    """ Test one least-squares solve over a batch of random walk episodes """
    learner = LSTD(OneHot(7), gamma=1.0)
    transitions = collect_episodes(Chain(), Random(2, seed=2), 1000)
    learner.handle_batch(transitions)

    estimates = np.array([learner.predict_v(k) for k in range(1, 6)])
    assert_allclose(estimates, TRUE_VALUES, atol=0.1)


def test_q_learning_finds_the_rewarding_end():
    """ Test Q-learning from random behaviour learns to move right everywhere """
    learner = QLearning(Tabular(7, 2, SGD(0.5)), gamma=0.9)
    env, policy = Chain(), Random(2, seed=3)
    for _ in range(500):
        run_episode(env, learner, policy)

    assert [learner.greedy_action(k) for k in range(1, 6)] == [1] * 5
    assert_allclose(learner.predict_v(5), 1.0, atol=1e-3)


@pytest.mark.parametrize('seed', [4, 5])
def test_sarsa_lambda_on_policy_control(seed):
    """ Test SARSA(lambda) with a shared table and epsilon-greedy behaviour """
    q_func = Shared(Tabular(7, 2))
    policy = EpsilonGreedy(q_func, epsilon=Exponential(1.0, 0.05, 0.99), seed=seed)
    learner = SARSALambda(q_func, policy, Replacing.for_fa(q_func), alpha=0.2, gamma=0.9, lambda_=0.7,
                          rng=np.random.default_rng(seed))
    env = Chain()
    for _ in range(300):
        run_episode(env, learner, policy)

    assert [learner.greedy_action(k) for k in range(1, 6)] == [1] * 5
