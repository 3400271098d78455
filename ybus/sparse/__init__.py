from .matrix import (
    NONE,
    DEFAULT_MODE,
    Axis,
    Mode,
    MatrixState,
    Element,
    ElementStore,
    Index,
    SparseMatrix,
    MatrixError,
    InvalidCoordinate,
    InvalidMode,
)
from .build import build, to_dense, from_dense, dense_to_triples, infer_size
