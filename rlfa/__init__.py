"""
Linear function approximation building blocks for reinforcement learning.

* fa: features, buffers, bases, linear approximators, traces and transforms
* agent: TD-style learners and policies built on top of fa
* environment: observation / transition types shared by environments and learners
"""
from rlfa.errors import RLFAError, ShapeMismatch, DimensionError, NumericalError, ConfigurationError
from rlfa.core import Shared
from rlfa.parameter import Parameter, as_parameter
