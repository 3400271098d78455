"""
Building SparseMatrices from (row, col, value) triples,
and the dense reference conversions used to check them.
"""

from logging import getLogger
from numbers import Integral
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .matrix import SparseMatrix, MatrixError, MatrixState, InvalidCoordinate, Mode, DEFAULT_MODE

logger = getLogger(__name__)

Triple = Tuple[int, int, complex]


def infer_size(triples: Sequence[Triple]) -> int:
    """ Matrix size implied by a list of triples: the largest row or column index.
    Raises `InvalidCoordinate` for the first triple that cannot index any matrix. """
    MatrixError.assert_true(len(triples) > 0)
    for position, (row, col, _) in enumerate(triples):
        if not (isinstance(row, Integral) and isinstance(col, Integral)):
            raise InvalidCoordinate(row=row, col=col, n=None, position=position)
    n = max(max(r, c) for (r, c, _) in triples)
    if n < 1:
        row, col, _ = triples[0]
        raise InvalidCoordinate(row=row, col=col, n=n, position=0)
    return n


def build(triples: Iterable[Triple], n: Optional[int] = None, mode: Union[Mode, str] = DEFAULT_MODE) -> SparseMatrix:
    """ Build a SparseMatrix by inserting each of `triples`, in order.

    Repeated (row, col) entries are resolved per `mode`:
    `Mode.REPLACE` keeps the last value, `Mode.ADD` keeps their sum.
    If `n` is not provided it is inferred from the largest index present.

    Fails fast: the first out-of-range triple raises `InvalidCoordinate`,
    with its `position` in `triples`, and no matrix is returned. """
    mode = Mode.parse(mode)
    triples = list(triples)
    if n is None:
        n = infer_size(triples)

    m = SparseMatrix(n)
    for position, (row, col, val) in enumerate(triples):
        try:
            m.insert_or_resolve(row, col, val, mode)
        except InvalidCoordinate as e:
            logger.error(f"Aborting build at triple #{position}: {e}")
            raise InvalidCoordinate(row=row, col=col, n=n, position=position) from e

    m.set_state(MatrixState.BUILT)
    logger.info(f"Built {n}x{n} sparse matrix: {len(triples)} triples, {len(m)} elements, mode={mode.value}")
    return m


def to_dense(triples: Iterable[Triple], n: Optional[int] = None) -> np.ndarray:
    """ Reference conversion of `triples` to a dense complex array.
    Each value is placed directly at [row, col]; the last write wins. """
    triples = list(triples)
    if n is None:
        n = infer_size(triples)

    m = np.zeros((n, n), dtype=complex)
    for position, (row, col, val) in enumerate(triples):
        if not (isinstance(row, Integral) and isinstance(col, Integral) and 1 <= row <= n and 1 <= col <= n):
            raise InvalidCoordinate(row=row, col=col, n=n, position=position)
        m[row - 1, col - 1] = val
    return m


def dense_to_triples(matrix, tol: float = 0.0) -> List[Triple]:
    """ Extract the (1-indexed) non-zero entries of a dense matrix, row-major.
    Entries with absolute value at or below `tol` are dropped. """
    matrix = np.asarray(matrix)
    MatrixError.assert_true(matrix.ndim == 2)

    triples = []
    for (r, c), val in np.ndenumerate(matrix):
        if abs(val) > tol:
            triples.append((r + 1, c + 1, complex(val)))
    return triples


def from_dense(matrix, mode: Union[Mode, str] = DEFAULT_MODE, tol: float = 0.0) -> SparseMatrix:
    """ Convert a dense (square) matrix into a SparseMatrix """
    matrix = np.asarray(matrix)
    MatrixError.assert_eq(matrix.shape[0], matrix.shape[1])
    return build(dense_to_triples(matrix, tol=tol), n=matrix.shape[0], mode=mode)
