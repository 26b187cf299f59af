"""
Eligibility traces.

A trace owns a buffer shaped like the weights it will eventually be applied to. Its state only changes through
`update`, `scale` / `scaled_update` and `reset`. The buffer is never the weight array itself; traces are applied
with `fa.update_grad_scaled(trace.buffer, alpha)`.

* Accumulating: e <- e + g
* Replacing:    e <- clip(e + g, -1, 1)
* Dutch:        e <- (1 - alpha) e + g
"""
from __future__ import annotations

import abc
import copy

import numpy as np

from rlfa.core import Parameterised
from rlfa.fa.buffers import Buffer, DenseBuffer
from rlfa.logging import get_logger

logger = get_logger(__name__)


class Trace(abc.ABC):
    """ Base class of eligibility traces """

    def __init__(self, buffer: Buffer) -> None:
        self._buffer = buffer

    @classmethod
    def zeros(cls, shape, **kwargs) -> Trace:
        """ Zero trace of a given shape """
        return cls(buffer=DenseBuffer.zeros(shape), **kwargs)

    @classmethod
    def for_fa(cls, fa: Parameterised, **kwargs) -> Trace:
        """ Zero trace shaped like the weights of fa """
        logger.debug('Creating %s trace of shape %s', cls.__name__, fa.weights.shape)
        return cls.zeros(fa.weights.shape, **kwargs)

    @property
    def buffer(self) -> Buffer:
        return self._buffer

    @property
    def shape(self):
        return self._buffer.shape

    def to_dense(self) -> np.ndarray:
        return self._buffer.to_dense()

    def checkpoint(self) -> Buffer:
        """ Copy of the trace state, see `restore` """
        return copy.deepcopy(self._buffer)

    def restore(self, buffer: Buffer) -> None:
        self._buffer = buffer

    @abc.abstractmethod
    def update(self, grad: Buffer) -> None:
        """ Accumulate a new gradient into the trace """

    def scale(self, factor: float) -> None:
        """ Multiply every component of the trace by factor """
        self._buffer = self._buffer.map(lambda x: x * factor)

    def scaled_update(self, factor: float, grad: Buffer) -> None:
        """ scale(factor) followed by update(grad) """
        self.scale(factor)
        self.update(grad)

    def reset(self) -> None:
        """ Zero the trace. Equivalent to scale(0.0) """
        self.scale(0.0)

    def _merge(self, grad: Buffer, f) -> None:
        self._buffer = self._buffer.combine_inplace(grad, f)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(shape={self.shape})'


class Accumulating(Trace):
    """ Classical accumulating trace. Unbounded by design """

    def update(self, grad: Buffer) -> None:
        self._merge(grad, lambda x, y: x + y)

    def scaled_update(self, factor: float, grad: Buffer) -> None:
        self._merge(grad, lambda x, y: factor * x + y)


class Replacing(Trace):
    """
    Trace clipped to [-1, 1] componentwise. Prevents exploding traces with binary (e.g. tile coded) features.
    Reference: Singh & Sutton (1996), Reinforcement learning with replacing eligibility traces
    """

    def update(self, grad: Buffer) -> None:
        self._merge(grad, lambda x, y: np.clip(x + y, -1.0, 1.0))

    def scaled_update(self, factor: float, grad: Buffer) -> None:
        self._merge(grad, lambda x, y: np.clip(factor * x + y, -1.0, 1.0))


class Dutch(Trace):
    """
    Dutch trace, e <- (1 - alpha) e + g. Trace magnitude stays on the scale of the feature activations.
    Reference: van Seijen & Sutton (2014), True online TD(lambda)
    """

    def __init__(self, buffer: Buffer, alpha: float) -> None:
        super().__init__(buffer)
        self.alpha = alpha

    def update(self, grad: Buffer) -> None:
        scale = 1.0 - self.alpha
        self._merge(grad, lambda x, y: scale * x + y)

    def scaled_update(self, factor: float, grad: Buffer) -> None:
        scale = factor * (1.0 - self.alpha)
        self._merge(grad, lambda x, y: scale * x + y)
