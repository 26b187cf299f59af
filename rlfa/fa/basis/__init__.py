"""
Bases project raw states onto Features
"""
from rlfa.fa.basis.base import Basis, BoundedBasis, Stack, Bias
from rlfa.fa.basis.fourier import Fourier
from rlfa.fa.basis.polynomial import Polynomial, Chebyshev
from rlfa.fa.basis.tile_coding import TileCoding, UniformTiling
from rlfa.fa.basis.rbf import RBFNetwork
from rlfa.fa.basis.compatible import CompatibleBasis, StableCompatibleBasis
