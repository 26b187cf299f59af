"""
Scalar hyperparameters that are either fixed or decay with a step counter.

Learners call `step()` once per terminal transition. Every schedule is floored, i.e. the value never drops below
`floor` no matter how many steps are taken.
"""
from __future__ import annotations

import abc
from typing import Union

from rlfa.errors import ConfigurationError


class Parameter(abc.ABC):
    """ Base class for scalar hyperparameters """

    count: int = 0
    # numpy defers to the reflected operators below instead of building object arrays
    __array_ufunc__ = None

    @abc.abstractmethod
    def value(self) -> float:
        """ Current value of the parameter """

    def step(self) -> Parameter:
        """ Advance the schedule by one decay step """
        self.count += 1
        return self

    def back(self) -> Parameter:
        """ Rewind the schedule by one decay step """
        self.count = max(self.count - 1, 0)
        return self

    def to_fixed(self) -> Fixed:
        """ Freeze at the current value """
        return Fixed(self.value())

    def __float__(self) -> float:
        return float(self.value())

    def __add__(self, other):
        return self.value() + other

    __radd__ = __add__

    def __sub__(self, other):
        return self.value() - other

    def __rsub__(self, other):
        return other - self.value()

    def __mul__(self, other):
        return self.value() * other

    __rmul__ = __mul__

    def __truediv__(self, other):
        return self.value() / other

    def __rtruediv__(self, other):
        return other / self.value()

    def __repr__(self) -> str:
        return f'{type(self).__name__}(value={self.value()}, count={self.count})'


class Fixed(Parameter):
    """ Constant parameter. Stepping has no effect on its value """

    def __init__(self, value: float) -> None:
        self._value = float(value)

    def value(self) -> float:
        return self._value


class _Floored(Parameter):

    def __init__(self, init: float, floor: float) -> None:
        if floor > init:
            raise ConfigurationError(f'Floor ({floor}) must not exceed initial value ({init})')
        self.init = float(init)
        self.floor = float(floor)
        self.count = 0

    def value(self) -> float:
        return max(self._decayed(), self.floor)

    @abc.abstractmethod
    def _decayed(self) -> float:
        """ Unfloored value at the current count """


class Exponential(_Floored):
    """ init * tau ** count """

    def __init__(self, init: float, floor: float, tau: float) -> None:
        super().__init__(init, floor)
        if not 0 < tau <= 1:
            raise ConfigurationError(f'Decay rate must be in (0, 1], got {tau}')
        self.tau = tau

    def _decayed(self) -> float:
        return self.init * self.tau ** self.count


class Polynomial(_Floored):
    """ init / (count + 1) ** tau """

    def __init__(self, init: float, floor: float, tau: float) -> None:
        super().__init__(init, floor)
        self.tau = tau

    def _decayed(self) -> float:
        return self.init / (self.count + 1) ** self.tau


class Boyan(_Floored):
    """ init * (n0 + 1) / (n0 + count) """

    def __init__(self, init: float, floor: float, n0: int) -> None:
        super().__init__(init, floor)
        if n0 < 1:
            raise ConfigurationError(f'n0 must be at least 1, got {n0}')
        self.n0 = n0

    def _decayed(self) -> float:
        return self.init * (self.n0 + 1) / (self.n0 + self.count)


class GHC(_Floored):
    """
    Generalised harmonic schedule, init * tau / (tau + count - 1).
    Reference: George & Powell (2006), Adaptive stepsizes for recursive estimation with applications in ADP
    """

    def __init__(self, init: float, floor: float, tau: float) -> None:
        super().__init__(init, floor)
        if tau <= 1:
            raise ConfigurationError(f'tau must exceed 1, got {tau}')
        self.tau = tau

    def _decayed(self) -> float:
        return self.init * self.tau / (self.tau + self.count - 1)


ParameterLike = Union[Parameter, float, int]


def as_parameter(value: ParameterLike) -> Parameter:
    """ Coerce a plain number into a Fixed parameter """
    if isinstance(value, Parameter):
        return value
    return Fixed(value)
