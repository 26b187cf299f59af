"""
Compatible features for natural actor-critic methods.

The input of these bases is a (state, action) pair and the features are the gradient of the policy's log density,
flattened to match the policy's weight vector. Any object exposing `grad_log(state, action)` (returning a Buffer
or an array shaped like its weights) and `n_weights` can act as the policy.
"""
import numpy as np

from rlfa.errors import ShapeMismatch
from rlfa.fa.basis.base import Basis
from rlfa.fa.buffers import Buffer
from rlfa.fa.features import DenseFeatures, Features


class CompatibleBasis(Basis):
    """ phi(s, a) = grad log pi(a | s) """

    def __init__(self, policy) -> None:
        self.policy = policy

    @property
    def n_features(self) -> int:
        return self.policy.n_weights

    def project(self, state_action) -> DenseFeatures:
        state, action = state_action
        grad_log = self.policy.grad_log(state, action)
        flat = (grad_log.to_dense() if isinstance(grad_log, Buffer) else np.asarray(grad_log, dtype=float)).ravel()
        if flat.shape[0] != self.n_features:
            raise ShapeMismatch((self.n_features,), flat.shape, 'compatible features')
        return DenseFeatures(flat)


class StableCompatibleBasis(Basis):
    """ phi(s, a) = [grad log pi(a | s), basis(s)], compatible features followed by a state-only baseline basis """

    def __init__(self, policy, basis: Basis) -> None:
        self.compatible = CompatibleBasis(policy)
        self.basis = basis

    @property
    def n_features(self) -> int:
        return self.compatible.n_features + self.basis.n_features

    def project(self, state_action) -> Features:
        state, _ = state_action
        return self.compatible.project(state_action).stack(self.basis.project(state))
