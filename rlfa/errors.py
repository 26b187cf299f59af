"""
Exception taxonomy.

* ShapeMismatch: buffers, features or weights with disagreeing shapes. Always raised before mutation
* DimensionError: a state or basis whose dimensionality disagrees with its consumer
* NumericalError: NaN/Inf produced by a transform, an optimiser step or a linear solve
* ConfigurationError: invalid construction arguments
"""


class RLFAError(Exception):
    """ Base class for all errors raised by rlfa """


class ShapeMismatch(RLFAError, ValueError):
    """ Shapes of two buffers / features / weight matrices disagree """

    def __init__(self, expected, actual, what: str = 'buffer') -> None:
        super().__init__(f'Incompatible {what} shape: expected {expected}, got {actual}')
        self.expected = expected
        self.actual = actual


class DimensionError(ShapeMismatch):
    """ Input dimensionality disagrees with a basis """

    def __init__(self, expected, actual, what: str = 'input') -> None:
        super().__init__(expected, actual, what)


class NumericalError(RLFAError, ArithmeticError):
    """ Non-finite value or singular system """


class ConfigurationError(RLFAError, ValueError):
    """ Invalid construction arguments """
