"""
Gradient TD prediction with linear approximators.

Both algorithms keep a primary weight vector theta (the value estimate) and a secondary vector w estimating the
expected TD error given the features. They are stable off-policy, unlike plain TD.

Reference: Sutton et al. (2009), Fast gradient-descent methods for temporal-difference learning with linear
function approximation
"""
from rlfa.agent.base_agent import Learner, ValuePredictor
from rlfa.environment import Transition
from rlfa.errors import ConfigurationError
from rlfa.fa.features import SparseFeatures
from rlfa.parameter import ParameterLike, as_parameter


class GradientTD(Learner, ValuePredictor):
    """ Shared construction and bookkeeping of GTD2 and TDC """

    def __init__(self, fa_theta, fa_w, alpha: ParameterLike = 0.01, beta: ParameterLike = 0.1,
                 gamma: ParameterLike = 0.99, on_error: str = 'raise') -> None:
        super().__init__(on_error)
        if fa_theta.weights_dim != fa_w.weights_dim:
            raise ConfigurationError(
                f'fa_theta and fa_w must have equal weight shapes, got {fa_theta.weights_dim} and {fa_w.weights_dim}'
            )
        self.fa_theta = fa_theta
        self.fa_w = fa_w
        self.alpha = as_parameter(alpha)
        self.beta = as_parameter(beta)
        self.gamma = as_parameter(gamma)

    def _prepare(self, transition: Transition):
        """ Features of s and s', TD error and the current estimate of the TD error """
        state, new_state = transition.states
        phi_s = self.fa_theta.features(state)
        if transition.terminated:
            phi_ns = SparseFeatures(phi_s.n_features)
        else:
            phi_ns = self.fa_theta.features(new_state)

        value = self.fa_theta.evaluate_features(phi_s)
        td_error = transition.reward + self.gamma * self.fa_theta.evaluate_features(phi_ns) - value
        td_estimate = self.fa_w.evaluate_features(phi_s)
        return phi_s, phi_ns, td_error, td_estimate

    def _rollback_targets(self):
        # fa_w moves first, fa_theta last
        return (self.fa_w,)

    def parameters(self):
        return self.alpha, self.beta, self.gamma

    def predict_v(self, state) -> float:
        return self.fa_theta.evaluate(state)


class GTD2(GradientTD):
    """
    w     <- w + beta * (delta - phi.w) * phi
    theta <- theta + alpha * (phi - gamma * phi') * (phi.w)
    """

    def _handle(self, transition: Transition) -> float:
        phi_s, phi_ns, td_error, td_estimate = self._prepare(transition)
        gamma = float(self.gamma)

        direction = phi_s.combine(phi_ns, lambda x, y: x - gamma * y)
        self.fa_w.update_grad_scaled(phi_s, self.beta * (td_error - td_estimate))
        self.fa_theta.update_grad_scaled(direction, self.alpha * td_estimate)
        return td_error


class TDC(GradientTD):
    """
    TD with gradient correction
    w     <- w + beta * (delta - phi.w) * phi
    theta <- theta + alpha * (delta * phi - gamma * phi' * (phi.w))
    """

    def _handle(self, transition: Transition) -> float:
        phi_s, phi_ns, td_error, td_estimate = self._prepare(transition)
        correction = float(self.gamma) * td_estimate

        direction = phi_s.combine(phi_ns, lambda x, y: td_error * x - correction * y)
        self.fa_w.update_grad_scaled(phi_s, self.beta * (td_error - td_estimate))
        self.fa_theta.update_grad_scaled(direction, float(self.alpha))
        return td_error
