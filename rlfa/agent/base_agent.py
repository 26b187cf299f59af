""" Base class for learners """
import abc
from dataclasses import dataclass
from typing import Iterable, Optional

from rlfa.environment import Transition
from rlfa.errors import ConfigurationError, RLFAError
from rlfa.logging import get_logger
from rlfa.parameter import Parameter

logger = get_logger(__name__)

ON_ERROR_POLICIES = ('raise', 'log')


@dataclass
class Response:
    """ Outcome of handling one transition """
    td_error: Optional[float] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Learner(abc.ABC):
    """
    * Consume transitions one at a time and update the approximators it holds
    * Step decaying parameters at the end of every episode

    A transition is learnt all or nothing: if any step of the update fails with an RLFAError (shape or numerical
    problem), every component listed by `_rollback_targets` is restored to its state before the transition.
    on_error then decides what happens: 'raise' propagates the error, 'log' logs a warning and reports the error in
    the returned Response.
    """

    def __init__(self, on_error: str = 'raise') -> None:
        if on_error not in ON_ERROR_POLICIES:
            raise ConfigurationError(f'on_error must be one of {ON_ERROR_POLICIES}, got {on_error!r}')
        self.on_error = on_error

    def handle(self, transition: Transition) -> Response:
        """ Learn from a single transition """
        saved = [(target, target.checkpoint()) for target in self._rollback_targets()]
        try:
            response = Response(td_error=self._handle(transition))
        except RLFAError as exc:
            for target, state in saved:
                target.restore(state)
            if self.on_error == 'raise':
                raise
            logger.warning('%s discarded update for action %s: %s', type(self).__name__, transition.action, exc)
            response = Response(error=exc)

        if transition.terminated:
            self.handle_terminal()
        return response

    @abc.abstractmethod
    def _handle(self, transition: Transition) -> Optional[float]:
        """ Update logic. Return the TD error """

    def _rollback_targets(self) -> Iterable:
        """
        Approximators and traces (anything with checkpoint / restore) that _handle may already have changed when a
        later step of it fails. A single final update is atomic by itself and need not be listed.
        """
        return ()

    def parameters(self) -> Iterable[Parameter]:
        """ Decaying parameters owned by the learner """
        return ()

    def handle_terminal(self) -> None:
        """ End of episode bookkeeping """
        for parameter in self.parameters():
            parameter.step()


class ValuePredictor(abc.ABC):
    """ Learner with a state-value estimate """

    @abc.abstractmethod
    def predict_v(self, state) -> float:
        """ Estimated value of state """
