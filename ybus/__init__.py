from .sparse import SparseMatrix, Element, Axis, Mode, MatrixError, InvalidCoordinate, InvalidMode
from .sparse import build, to_dense, from_dense, dense_to_triples
from .network import ybus_generator, branch_triples, sparse_ybus, YbusResult
from .case import NetworkCase, CaseOptions
