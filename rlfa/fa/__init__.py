"""
Function approximation: features, buffers, bases, approximators, traces and transforms
"""
from rlfa.fa.buffers import Buffer, DenseBuffer, Columnar, Tile
from rlfa.fa.features import Features, DenseFeatures, SparseFeatures
from rlfa.fa.optim import Optimiser, SGD, SGDMomentum, Adam
from rlfa.fa.linear import ScalarLFA, VectorLFA
from rlfa.fa.tabular import Tabular
from rlfa.fa.traces import Trace, Accumulating, Replacing, Dutch
from rlfa.fa.transforms import Transform, Identity, Tanh, Exp, Softplus, Logistic, LogSumExp
from rlfa.fa.composition import Composition
