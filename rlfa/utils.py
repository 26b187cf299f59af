"""
Small helpers shared across modules
* argmax with tie handling
* cartesian products of integer ranges (basis coefficients)
* pickle persistence of approximators
"""
import itertools
import pickle
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union

import numpy as np


def argmax_first(values: Iterable[float], tol: float = 1e-7) -> Tuple[int, float]:
    """ Index and value of the maximum. Ties resolve to the lowest index """
    best_idx, best = 0, -np.inf
    for idx, value in enumerate(values):
        if value - best > tol:
            best_idx, best = idx, value
    return best_idx, float(best)


def argmaxima(values: Iterable[float], tol: float = 1e-7) -> Tuple[List[int], float]:
    """ All indices attaining the maximum (within tol) and the maximum """
    best = -np.inf
    indices: List[int] = []
    for idx, value in enumerate(values):
        if abs(value - best) < tol:
            indices.append(idx)
        elif value > best:
            best = value
            indices = [idx]
    return indices, float(best)


def cartesian_product(max_value: int, n_dims: int) -> List[Tuple[int, ...]]:
    """ All tuples of length n_dims with entries in 0..max_value, in lexicographic order """
    return list(itertools.product(range(max_value + 1), repeat=n_dims))


def normalise(state: Sequence[float], limits: np.ndarray) -> np.ndarray:
    """ Map each dimension of state from [low, high] onto [0, 1] """
    return (np.asarray(state, dtype=float) - limits[:, 0]) / (limits[:, 1] - limits[:, 0])


def save(obj, path: Union[str, Path]) -> None:
    """ Persist an approximator (weights, basis and optimiser state) """
    with open(path, 'wb') as f:
        pickle.dump(obj, f)


def load(path: Union[str, Path]):
    """ Load an object written by `save` """
    with open(path, 'rb') as f:
        return pickle.load(f)
