"""
Composition of an approximator and a differentiable transform, h(s) = g(f(s)).

Gradients follow the chain rule, grad h = g'(f(s)) * grad f. Updates are forwarded to f with the error scaled by
g'(f(s)), so the weights stay owned by f.
"""
import numpy as np

from rlfa.core import Differentiable, Parameterised
from rlfa.errors import NumericalError
from rlfa.fa.buffers import Buffer, Columnar
from rlfa.fa.transforms import Transform


def _checked(g_prime, x):
    if not np.all(np.isfinite(g_prime)):
        raise NumericalError(f'Transform gradient is not finite at {x}')
    return g_prime


class Composition(Parameterised, Differentiable):
    """ g(f(s)) for an approximator f and a transform g """

    def __init__(self, fa, transform: Transform) -> None:
        self.fa = fa
        self.transform = transform

    @property
    def weights(self) -> np.ndarray:
        return self.fa.weights

    def checkpoint(self):
        return self.fa.checkpoint()

    def restore(self, state) -> None:
        self.fa.restore(state)

    @property
    def n_actions(self) -> int:
        return self.fa.n_actions

    def _outer_grad(self, x):
        return _checked(self.transform.grad(x), x)

    def evaluate(self, state):
        return self.transform.transform(self.fa.evaluate(state))

    def evaluate_action(self, state, action: int) -> float:
        return float(self.transform.transform(self.fa.evaluate_action(state, action)))

    def grad(self, state) -> Buffer:
        x = self.fa.evaluate(state)
        g_prime = self._outer_grad(x)
        grad = self.fa.grad(state)
        if np.ndim(g_prime) == 0:
            return grad.map(lambda v: g_prime * v)

        # one chain rule factor per output column
        return Columnar(grad.shape, {
            col: column.map(lambda v, k=g_prime[col]: k * v) for col, column in grad.columns.items()
        })

    def grad_action(self, state, action: int) -> Buffer:
        x = self.fa.evaluate_action(state, action)
        g_prime = self._outer_grad(x)
        return self.fa.grad_action(state, action).map(lambda v: g_prime * v)

    def grad_log(self, state) -> Buffer:
        x = self.fa.evaluate(state)
        value = self.transform.transform(x)
        if np.ndim(value) != 0:
            raise TypeError('grad_log is only defined for scalar outputs')
        if value == 0.0:
            raise NumericalError('grad_log is undefined where the function is zero')
        scale = self._outer_grad(x) / value
        return self.fa.grad(state).map(lambda v: scale * v)

    def update(self, state, error) -> None:
        """ Forward error * g'(f(s)) to the inner approximator """
        x = self.fa.evaluate(state)
        if np.ndim(x) == 0:
            self.fa.update(state, self._outer_grad(x) * error)
        else:
            self.fa.update(state, self._outer_grad(x) * np.asarray(error, dtype=float))

    def update_action(self, state, action: int, error: float) -> None:
        x = self.fa.evaluate_action(state, action)
        self.fa.update_action(state, action, self._outer_grad(x) * error)

    def update_grad_scaled(self, grad: Buffer, alpha: float) -> None:
        self.fa.update_grad_scaled(grad, alpha)

    def __repr__(self) -> str:
        return f'Composition({self.fa!r}, {self.transform!r})'
