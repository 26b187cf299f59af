"""
Environment follows an emit / transition API

Environments produce Observations, and every action taken produces one immutable Transition which learners
consume exactly once.
"""
from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Tuple, Union

import numpy as np

Numeric = Union[float, int]
StateT = Union[Tuple[Numeric, ...], np.ndarray, int]


@dataclass(frozen=True)
class Observation:
    """ A state as seen by the agent """
    state: Any

    @property
    def is_terminal(self) -> bool:
        return False


@dataclass(frozen=True)
class Full(Observation):
    """ Fully observed state """


@dataclass(frozen=True)
class Partial(Observation):
    """ Partially observed state """


@dataclass(frozen=True)
class Terminal(Observation):
    """ Final state of an episode. Its value is zero by definition """

    @property
    def is_terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class Transition:
    """ (s, a, r, s') produced by one environment step """
    from_: Observation
    action: Any
    reward: float
    to: Observation

    @property
    def terminated(self) -> bool:
        return self.to.is_terminal

    @property
    def states(self) -> Tuple[Any, Any]:
        """ Raw (from, to) states """
        return self.from_.state, self.to.state

    def negate_reward(self) -> Transition:
        return Transition(self.from_, self.action, -self.reward, self.to)


class Environment(abc.ABC):
    """ Define interface for environment subclass """

    @abc.abstractmethod
    def reset(self) -> Observation:
        """ Reset environment to the initial state """

    @abc.abstractmethod
    def emit(self) -> Observation:
        """ Current observation, without changing the environment """

    @abc.abstractmethod
    def transition(self, action) -> Transition:
        """ Take in action and return the resulting transition """

    def is_terminal(self) -> bool:
        """ Whether the current episode is over """
        return self.emit().is_terminal

    @property
    @abc.abstractmethod
    def n_actions(self) -> int:
        """ Return number of actions """

    @property
    @abc.abstractmethod
    def state_dim(self) -> int:
        """ Return state dimension """
