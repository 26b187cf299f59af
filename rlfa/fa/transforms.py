"""
Differentiable scalar transforms g, applied on top of an approximator's output (see Composition).

Elementwise transforms accept floats and numpy arrays alike. LogSumExp reduces a vector to a scalar.
"""
import abc

import numpy as np

from rlfa.errors import ConfigurationError


def _sigmoid(x):
    # tanh form does not overflow for large |x|
    return 0.5 * (1.0 + np.tanh(0.5 * np.asarray(x, dtype=float)))


def _unwrap(x):
    return float(x) if np.ndim(x) == 0 else x


class Transform(abc.ABC):
    """ Base class for differentiable transforms """

    @abc.abstractmethod
    def transform(self, x):
        """ g(x) """

    @abc.abstractmethod
    def grad(self, x):
        """ g'(x) """

    def grad_scaled(self, x, error):
        """ g'(x) * error """
        return _unwrap(np.multiply(self.grad(x), error))

    def __call__(self, x):
        return self.transform(x)

    def __repr__(self) -> str:
        return f'{type(self).__name__}()'


class Identity(Transform):
    """ g(x) = x """

    def transform(self, x):
        return x

    def grad(self, x):
        return _unwrap(np.ones_like(x, dtype=float))


class Tanh(Transform):
    """ g(x) = tanh(x) """

    def transform(self, x):
        return _unwrap(np.tanh(x))

    def grad(self, x):
        return _unwrap(1.0 / np.cosh(x) ** 2)


class Exp(Transform):
    """ g(x) = exp(x) """

    def transform(self, x):
        return _unwrap(np.exp(x))

    def grad(self, x):
        return _unwrap(np.exp(x))


class Softplus(Transform):
    """ g(x) = log(1 + exp(x)), strictly positive """

    def transform(self, x):
        return _unwrap(np.logaddexp(0.0, x))

    def grad(self, x):
        return _unwrap(_sigmoid(x))


class Logistic(Transform):
    """ g(x) = amplitude / (1 + exp(-growth_rate * (x - midpoint))) """

    def __init__(self, amplitude: float = 1.0, growth_rate: float = 1.0, midpoint: float = 0.0) -> None:
        self.amplitude = amplitude
        self.growth_rate = growth_rate
        self.midpoint = midpoint

    @classmethod
    def standard(cls) -> 'Logistic':
        return cls(1.0, 1.0, 0.0)

    def _sigmoid(self, x):
        return _sigmoid(self.growth_rate * (np.asarray(x, dtype=float) - self.midpoint))

    def transform(self, x):
        return _unwrap(self.amplitude * self._sigmoid(x))

    def grad(self, x):
        s = self._sigmoid(x)
        return _unwrap(self.growth_rate * self.amplitude * s * (1.0 - s))

    def __repr__(self) -> str:
        return f'Logistic(amplitude={self.amplitude}, growth_rate={self.growth_rate}, midpoint={self.midpoint})'


class LogSumExp(Transform):
    """
    g(x) = log(offset + sum_i exp(x_i)), reducing a vector (or a scalar) to a scalar.
    The gradient is the softmax of x with offset acting as an extra, fixed logit of log(offset).
    """

    def __init__(self, offset: float = 0.0) -> None:
        if offset < 0:
            raise ConfigurationError(f'Offset must be non-negative, got {offset}')
        self.offset = offset

    def _softmax_terms(self, x):
        x = np.atleast_1d(np.asarray(x, dtype=float))
        m = np.max(x)
        if self.offset > 0:
            m = max(m, np.log(self.offset))
        e = np.exp(x - m)
        return m, e, e.sum() + self.offset * np.exp(-m)

    def transform(self, x) -> float:
        m, _, z = self._softmax_terms(x)
        return float(m + np.log(z))

    def grad(self, x):
        _, e, z = self._softmax_terms(x)
        grad = e / z
        return float(grad[0]) if np.ndim(x) == 0 else grad

    def __repr__(self) -> str:
        return f'LogSumExp(offset={self.offset})'
