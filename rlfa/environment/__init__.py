"""
Interface between environments and learners
"""
from rlfa.environment.environment import (
    Observation, Full, Partial, Terminal, Transition, Environment, StateT,
)
