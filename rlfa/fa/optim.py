"""
Optimisers turn a raw gradient and an error signal into a weight increment.

Every step first computes the complete increment and only then writes it into the weights, so a failed step
(non-finite increment, shape mismatch) leaves the weights untouched.
"""
import abc

import numpy as np

from rlfa.errors import NumericalError, ShapeMismatch
from rlfa.fa.buffers import Buffer
from rlfa.parameter import ParameterLike, as_parameter


def _commit(weights: np.ndarray, increment: np.ndarray) -> None:
    if not np.all(np.isfinite(increment)):
        raise NumericalError('Optimiser produced a non-finite weight increment')
    weights += increment


class Optimiser(abc.ABC):
    """ Base class for optimisers """

    def __init__(self, learning_rate: ParameterLike) -> None:
        self.learning_rate = as_parameter(learning_rate)

    @abc.abstractmethod
    def step(self, weights: np.ndarray, grad: Buffer, error: float) -> None:
        """ Move weights along error * grad, in place """

    def step_scaled(self, weights: np.ndarray, grad: Buffer, alpha: float) -> None:
        """ weights += alpha * grad, bypassing the learning rate. Used for externally scaled gradients (traces) """
        if tuple(grad.shape) != weights.shape:
            raise ShapeMismatch(weights.shape, grad.shape, 'gradient')
        increment = np.zeros_like(weights)
        grad.scaled_addto(alpha, increment)
        _commit(weights, increment)

    def reset(self) -> None:
        """ Drop internal state such as momentum """

    def __repr__(self) -> str:
        return f'{type(self).__name__}(learning_rate={self.learning_rate!r})'


class SGD(Optimiser):
    """ weights += learning_rate * error * grad """

    def step(self, weights: np.ndarray, grad: Buffer, error: float) -> None:
        self.step_scaled(weights, grad, self.learning_rate * error)


class SGDMomentum(Optimiser):
    """ Heavy-ball momentum: v = momentum * v + learning_rate * error * grad; weights += v """

    def __init__(self, learning_rate: ParameterLike, momentum: float = 0.9) -> None:
        super().__init__(learning_rate)
        self.momentum = momentum
        self.velocity = None

    def step(self, weights: np.ndarray, grad: Buffer, error: float) -> None:
        if tuple(grad.shape) != weights.shape:
            raise ShapeMismatch(weights.shape, grad.shape, 'gradient')
        velocity = np.zeros_like(weights) if self.velocity is None else self.momentum * self.velocity
        grad.scaled_addto(self.learning_rate * error, velocity)
        _commit(weights, velocity)
        self.velocity = velocity

    def reset(self) -> None:
        self.velocity = None


class Adam(Optimiser):
    """
    Adam with bias-corrected moment estimates. The error-scaled gradient is treated as the ascent direction.
    Reference: Kingma & Ba (2014), Adam: A Method for Stochastic Optimization
    """

    def __init__(self, learning_rate: ParameterLike, beta1: float = 0.9, beta2: float = 0.999,
                 eps: float = 1e-8) -> None:
        super().__init__(learning_rate)
        self.beta1 = beta1
        self.beta2 = beta2
        self.eps = eps
        self.reset()

    def step(self, weights: np.ndarray, grad: Buffer, error: float) -> None:
        if tuple(grad.shape) != weights.shape:
            raise ShapeMismatch(weights.shape, grad.shape, 'gradient')
        g = np.zeros_like(weights)
        grad.scaled_addto(error, g)

        t = self.t + 1
        m = self.beta1 * (0.0 if self.m is None else self.m) + (1 - self.beta1) * g
        v = self.beta2 * (0.0 if self.v is None else self.v) + (1 - self.beta2) * g * g
        m_hat = m / (1 - self.beta1 ** t)
        v_hat = v / (1 - self.beta2 ** t)

        _commit(weights, float(self.learning_rate) * m_hat / (np.sqrt(v_hat) + self.eps))
        self.t, self.m, self.v = t, m, v

    def reset(self) -> None:
        self.t = 0
        self.m = None
        self.v = None
