"""
Tile coding bases. Both produce binary sparse features with one active index per tiling.

* TileCoding: Sutton's hashed tile coder. Inputs are expected pre-scaled so that one unit is one tile width
* UniformTiling: non-hashed grid tilings over a bounded box, each tiling shifted by a fraction of a tile

We should use larger but more tiles so that local learning can be spread out to wider region.
If instead we use finer but less tiles, we just end up with a fancy simple table.
"""
from typing import List, Optional, Sequence, Tuple

import numpy as np

from rlfa.errors import ConfigurationError, DimensionError
from rlfa.fa.basis.base import Basis, BoundedBasis
from rlfa.fa.features import SparseFeatures

_TABLE_SIZE = 2048
_HASH_INCREMENT = 449
_MAX_LONG_INT = 2147483647


class TileCoding(Basis):
    """
    Hashed tile coding.
    Reference: Sutton, R. S. Tile coding software, http://incompleteideas.net/tiles/tiles3.html

    The same input with the same configuration (including `seed`) always hashes onto the same set of tiles.
    """

    def __init__(self, n_tilings: int, memory_size: int, n_inputs: Optional[int] = None, seed: int = 0) -> None:
        if n_tilings < 1:
            raise ConfigurationError(f'Number of tilings must be at least 1, got {n_tilings}')
        if memory_size < n_tilings:
            raise ConfigurationError(f'Memory size ({memory_size}) must be at least the number of tilings')
        self.n_tilings = n_tilings
        self.memory_size = memory_size
        self.n_inputs = n_inputs
        self.seed = seed
        self._rndseq: List[int] = np.random.RandomState(seed).randint(
            0, _MAX_LONG_INT, size=_TABLE_SIZE, dtype=np.int64).tolist()

    @property
    def n_features(self) -> int:
        return self.memory_size

    def _hash(self, coordinates: Sequence[int]) -> int:
        total = 0
        for i, coordinate in enumerate(coordinates):
            total += self._rndseq[(coordinate + _HASH_INCREMENT * i) % _TABLE_SIZE]
        return total % self.memory_size

    def tiles(self, floats: Sequence[float], ints: Sequence[int] = ()) -> List[int]:
        """ Indices of the active tile in every tiling """
        floats = np.asarray(floats, dtype=float)
        if floats.ndim != 1 or (self.n_inputs is not None and floats.shape[0] != self.n_inputs):
            raise DimensionError(self.n_inputs, floats.shape)

        n_floats = floats.shape[0]
        qstate = np.floor(floats * self.n_tilings).astype(int).tolist()
        base = [0] * n_floats
        indices = []

        for tiling in range(self.n_tilings):
            coordinates = []
            for i in range(n_floats):
                if qstate[i] >= base[i]:
                    coordinates.append(qstate[i] - ((qstate[i] - base[i]) % self.n_tilings))
                else:
                    coordinates.append(qstate[i] + 1 + ((base[i] - qstate[i] - 1) % self.n_tilings)
                                       - self.n_tilings)
                base[i] += 1 + 2 * i
            coordinates.append(tiling)
            coordinates.extend(int(v) for v in ints)
            indices.append(self._hash(coordinates))

        return indices

    def project(self, state, ints: Sequence[int] = ()) -> SparseFeatures:
        return SparseFeatures.from_indices(self.memory_size, self.tiles(state, ints))


class UniformTiling(BoundedBasis):
    """
    Offset grid tilings over a bounded box. Each dimension is cut into `granularity` bins (plus one overflow bin
    on either side) and tiling k is shifted by k / n_tilings of a bin width.
    """

    def __init__(self, limits: Sequence[Tuple[float, float]], n_tilings: int, granularity: int) -> None:
        super().__init__(limits)
        if granularity < 1:
            raise ConfigurationError('Granularity should be at least 1')
        if n_tilings < 1:
            raise ConfigurationError(f'Number of tilings must be at least 1, got {n_tilings}')

        self.n_tilings = n_tilings
        self.granularity = granularity
        self.codes_per_dimension = granularity + 2

        # bin_groups[k][j] are the bin edges of dimension j in tiling k
        base_bins = np.linspace(self.limits[:, 0], self.limits[:, 1], granularity + 1, axis=1)
        dist = base_bins[:, 1:2] - base_bins[:, 0:1]
        base_bins = base_bins - dist * (n_tilings - 1) / n_tilings / 2
        shift = dist / n_tilings
        self.bin_groups = tuple(base_bins + shift * idx for idx in range(n_tilings))

    @property
    def tiles_per_tiling(self) -> int:
        return self.codes_per_dimension ** self.n_inputs

    @property
    def n_features(self) -> int:
        return self.n_tilings * self.tiles_per_tiling

    def encode_features(self, state) -> Tuple[Tuple[int, ...], ...]:
        """ Convert continuous features into per-tiling bin codes """
        state = self._check_input(state)
        return tuple(
            tuple(int(np.digitize(value, edges)) for value, edges in zip(state, bins))
            for bins in self.bin_groups
        )

    def project(self, state) -> SparseFeatures:
        dims = (self.codes_per_dimension,) * self.n_inputs
        indices = [
            tiling * self.tiles_per_tiling + int(np.ravel_multi_index(codes, dims))
            for tiling, codes in enumerate(self.encode_features(state))
        ]
        return SparseFeatures.from_indices(self.n_features, indices)
