"""
Temporal difference prediction
* TD(0): one-step bootstrapped target
* TD(lambda): credit propagated backwards through an eligibility trace
"""
from rlfa.agent.base_agent import Learner, ValuePredictor
from rlfa.environment import Transition
from rlfa.fa.traces import Trace
from rlfa.parameter import ParameterLike, as_parameter


class TD(Learner, ValuePredictor):
    """
    Update V(s) towards r + gamma * V(s'). The step size is the learning rate of v_func's optimiser.
    Reference: Sutton (1988), Learning to predict by the methods of temporal differences
    """

    def __init__(self, v_func, gamma: ParameterLike = 0.99, on_error: str = 'raise') -> None:
        super().__init__(on_error)
        self.v_func = v_func
        self.gamma = as_parameter(gamma)

    def td_error(self, transition: Transition) -> float:
        state, new_state = transition.states
        value = self.v_func.evaluate(state)
        if transition.terminated:
            return transition.reward - value
        return transition.reward + self.gamma * self.v_func.evaluate(new_state) - value

    def _handle(self, transition: Transition) -> float:
        td_error = self.td_error(transition)
        self.v_func.update(transition.from_.state, td_error)
        return td_error

    def parameters(self):
        return (self.gamma,)

    def predict_v(self, state) -> float:
        return self.v_func.evaluate(state)


class TDLambda(TD):
    """ TD(lambda) with an explicit step size alpha applied to the trace """

    def __init__(self, v_func, trace: Trace, alpha: ParameterLike = 0.1, gamma: ParameterLike = 0.99,
                 lambda_: ParameterLike = 0.9, on_error: str = 'raise') -> None:
        super().__init__(v_func, gamma, on_error)
        self.trace = trace
        self.alpha = as_parameter(alpha)
        self.lambda_ = as_parameter(lambda_)

    def _handle(self, transition: Transition) -> float:
        td_error = self.td_error(transition)
        self.trace.scaled_update(self.gamma * self.lambda_, self.v_func.grad(transition.from_.state))
        self.v_func.update_grad_scaled(self.trace.buffer, self.alpha * td_error)
        return td_error

    def _rollback_targets(self):
        return (self.trace,)

    def parameters(self):
        return self.alpha, self.gamma, self.lambda_

    def handle_terminal(self) -> None:
        self.trace.reset()
        super().handle_terminal()
