from logging import getLogger
from numbers import Integral
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple, Union
from enum import Enum, IntEnum, auto

import numpy as np

logger = getLogger(__name__)

# Sentinel id for "no element", used for chain ends and empty headers
NONE = -1


class Axis(Enum):
    rows = auto()
    cols = auto()

    def __invert__(self):
        if self is Axis.rows: return Axis.cols
        if self is Axis.cols: return Axis.rows
        raise ValueError


class Mode(Enum):
    """ Collision resolution, for inserting onto an already-occupied (row, col). """
    REPLACE = "replace"
    ADD = "add"

    @classmethod
    def parse(cls, mode: Union["Mode", str]) -> "Mode":
        """ Accept either a `Mode` or its (case-insensitive) string name. """
        if isinstance(mode, cls):
            return mode
        if isinstance(mode, str):
            for m in cls:
                if m.value == mode.strip().lower():
                    return m
        raise InvalidMode(mode)


DEFAULT_MODE = Mode.REPLACE


class MatrixState(IntEnum):
    BUILDING = auto()
    BUILT = auto()


class Element(object):
    def __init__(self, id: int, row: int, col: int, val: complex):
        self.id = id
        self.row = row
        self.col = col
        self.val = val
        self.next_in_row = NONE
        self.next_in_col = NONE

    def __eq__(self, other):
        return self.row == other.row and self.col == other.col and self.val == other.val

    def __repr__(self):
        return (f"<{self.__class__.__name__}(id={self.id}, row={self.row}, col={self.col}, val={self.val}, "
                f"next_in_row={self.next_in_row}, next_in_col={self.next_in_col})>")

    def index(self, ax: Axis) -> int:
        if ax is Axis.rows: return self.row
        if ax is Axis.cols: return self.col
        raise ValueError

    def next(self, ax: Axis) -> int:
        if ax is Axis.rows: return self.next_in_row
        if ax is Axis.cols: return self.next_in_col
        raise ValueError

    def set_next(self, ax: Axis, id: int):
        if ax is Axis.rows:
            self.next_in_row = id
        elif ax is Axis.cols:
            self.next_in_col = id
        else:
            raise ValueError


class ElementStore(object):
    """ Flat, append-only arena of Elements.
    Element ids are 1-based positions in the store, and never change. """

    def __init__(self):
        self.elems: List[Element] = []

    def __len__(self):
        return len(self.elems)

    def __iter__(self) -> Iterator[Element]:
        return iter(self.elems)

    def __getitem__(self, id: int) -> Element:
        MatrixError.assert_true(1 <= id <= len(self.elems))
        return self.elems[id - 1]

    def append(self, row: int, col: int, val: complex) -> Element:
        e = Element(id=len(self.elems) + 1, row=row, col=col, val=val)
        self.elems.append(e)
        return e


class AxisData(object):
    """ Header ids and element-counts for each row (or column) of the matrix.
    Indexed externally from 1, stored from 0. """

    def __init__(self, ax: Axis, size: int):
        self.ax: Axis = ax
        self.hdrs: List[int] = [NONE] * size
        self.qtys: List[int] = [0] * size

    def __len__(self):
        return len(self.hdrs)

    def first(self, idx: int) -> int:
        return self.hdrs[idx - 1]

    def set_first(self, idx: int, id: int):
        self.hdrs[idx - 1] = id


class Index(object):
    """ First-in-row and first-in-column pointers for an `n` by `n` matrix. """

    def __init__(self, n: int):
        self.axes: Dict[Axis, AxisData] = {
            Axis.rows: AxisData(ax=Axis.rows, size=n),
            Axis.cols: AxisData(ax=Axis.cols, size=n),
        }

    def __len__(self):
        return len(self.axes[Axis.rows])

    def first(self, ax: Axis, idx: int) -> int:
        return self.axes[ax].first(idx)

    def first_in_row(self, row: int) -> int:
        return self.first(Axis.rows, row)

    def first_in_col(self, col: int) -> int:
        return self.first(Axis.cols, col)


class Slot(NamedTuple):
    """ Result of a chain search.
    Either `hit` is the id of an element already at the target cell,
    or the target belongs between `prev` and `next` (either may be NONE). """
    prev: int
    next: int
    hit: int = NONE


class SparseMatrix(object):
    def __init__(self, n: int):
        MatrixError.assert_true(isinstance(n, Integral) and n > 0)
        self.n = int(n)
        self.state = MatrixState.BUILDING
        self.index = Index(n)
        self.store = ElementStore()

    def __len__(self):
        return len(self.store)

    def __repr__(self):
        return f"<{self.__class__.__name__}(n={self.n}, nnz={len(self.store)}, state={self.state.name})>"

    def display(self) -> str:
        """ Create a string "X" versus " " display of matrix entries. """
        s = ''
        for r in range(1, self.n + 1):
            row = [' '] * self.n
            for e in self.row_elements(r):
                row[e.col - 1] = 'X'
            s += ''.join(row) + '\n'
        return s

    def hdrs(self, ax: Axis) -> List[int]:
        """ Return the axis-header array for either rows or columns. """
        MatrixError.assert_true(isinstance(ax, Axis))
        return self.index.axes[ax].hdrs

    def chain(self, ax: Axis, idx: int) -> Iterator[Element]:
        """ Walk the chain of row (or column) `idx`, in order. """
        id = self.index.first(ax, idx)
        while id != NONE:
            e = self.store[id]
            yield e
            id = e.next(ax)

    def elements(self, ax: Axis = Axis.rows) -> Iterator[Element]:
        """ Iterator of elements.  Major axis set by `ax` parameter.  Default: rows. """
        for idx in range(1, self.n + 1):
            yield from self.chain(ax, idx)

    def values(self, *args, **kwargs):
        """ Rows-first iterator of element values """
        for e in self.elements(*args, **kwargs): yield e.val

    def triples(self, *args, **kwargs) -> Iterator[Tuple[int, int, complex]]:
        for e in self.elements(*args, **kwargs): yield (e.row, e.col, e.val)

    def row_elements(self, row: int) -> Iterator[Element]:
        return self.chain(Axis.rows, row)

    def col_elements(self, col: int) -> Iterator[Element]:
        return self.chain(Axis.cols, col)

    def __eq__(self, other):
        """ Same size, same adjacency, same values. Element ids may differ. """
        if not isinstance(other, SparseMatrix): return NotImplemented
        if self.n != other.n: return False
        if len(self.store) != len(other.store): return False
        for ax in Axis:
            for idx in range(1, self.n + 1):
                s = [(e.row, e.col, e.val) for e in self.chain(ax, idx)]
                o = [(e.row, e.col, e.val) for e in other.chain(ax, idx)]
                if s != o: return False
        return True

    def get(self, row: int, col: int) -> Optional[Element]:
        """ Get the element at (row,col), or None if no element present """
        if not self.in_range(row, col): return None
        slot = self.locate(Axis.rows, row, col)
        if slot.hit == NONE:
            return None
        return self.store[slot.hit]

    def in_range(self, row: int, col: int) -> bool:
        if not (isinstance(row, Integral) and isinstance(col, Integral)): return False
        return 1 <= row <= self.n and 1 <= col <= self.n

    def locate(self, ax: Axis, row: int, col: int) -> Slot:
        """ Find the place for (row, col) in its chain along axis `ax`.
        E.g. locate(Axis.rows, 2, 5) walks row 2, comparing column-indices against 5. """
        idx = row if ax is Axis.rows else col
        key = col if ax is Axis.rows else row
        off_ax = ~ax

        prev = NONE
        id = self.index.first(ax, idx)
        while id != NONE:
            e = self.store[id]
            k = e.index(off_ax)
            if k == key:
                return Slot(prev=prev, next=e.next(ax), hit=id)
            if key < k:
                break
            prev = id
            id = e.next(ax)
        return Slot(prev=prev, next=id)

    def splice(self, ax: Axis, e: Element, slot: Slot):
        """ Link new element `e` into its `ax` chain, at `slot`. """
        idx = e.index(ax)
        if slot.prev == NONE:  # New first in row/col
            self.index.axes[ax].set_first(idx, e.id)
        else:
            self.store[slot.prev].set_next(ax, e.id)
        e.set_next(ax, slot.next)
        self.index.axes[ax].qtys[idx - 1] += 1

    def insert_or_resolve(self, row: int, col: int, val: complex, mode: Union[Mode, str] = DEFAULT_MODE) -> Element:
        """ Insert value `val` at (row, col), or resolve it against the element already there.

        Returns the newly-created Element, or the incumbent one on collision.
        Raises `InvalidMode` or `InvalidCoordinate` before making any changes. """
        mode = Mode.parse(mode)
        if not self.in_range(row, col):
            raise InvalidCoordinate(row=row, col=col, n=self.n)
        MatrixError.assert_true(self.state is MatrixState.BUILDING)
        val = complex(val)

        slots = {ax: self.locate(ax, row, col) for ax in Axis}
        for ax, slot in slots.items():
            if slot.hit != NONE:
                logger.debug(f"({row}, {col}) collides with element {slot.hit} in its {ax.name} chain")
                return self.resolve(self.store[slot.hit], val, mode)

        e = self.store.append(row, col, val)
        for ax, slot in slots.items():
            self.splice(ax, e, slot)
            logger.debug(f"Element {e.id} at ({row}, {col}) placed after {slot.prev}, before {slot.next} in {ax.name}")
        return e

    def resolve(self, e: Element, val: complex, mode: Mode) -> Element:
        """ Settle a tie between incumbent `e` and a newly-inserted value. """
        if mode is Mode.REPLACE:
            e.val = val
        elif mode is Mode.ADD:
            e.val += val
        else:
            raise InvalidMode(mode)
        return e

    def to_dense(self):
        """ Dense complex array of our contents.  Zero where no element is present. """
        m = np.zeros((self.n, self.n), dtype=complex)
        for e in self.elements():
            m[e.row - 1, e.col - 1] = e.val
        return m

    def set_state(self, state: MatrixState):
        if state is MatrixState.BUILT:
            MatrixError.assert_true(self.state is MatrixState.BUILDING)
            self.state = state
        else:
            raise ValueError

    def check(self):
        """ Internal consistency tests.  Probably pretty slow. """
        for ax in Axis:
            off_ax = ~ax
            seen = set()
            for idx in range(1, self.n + 1):
                last = None
                count = 0
                for e in self.chain(ax, idx):
                    MatrixError.assert_eq(e.index(ax), idx)
                    if last is not None:
                        MatrixError.assert_true(e.index(off_ax) > last.index(off_ax))
                    MatrixError.assert_true(e.id not in seen)
                    seen.add(e.id)
                    last = e
                    count += 1
                MatrixError.assert_eq(count, self.index.axes[ax].qtys[idx - 1])
            # Every element lives in exactly one chain per axis
            MatrixError.assert_eq(len(seen), len(self.store))

        for pos, e in enumerate(self.store, start=1):
            MatrixError.assert_eq(e.id, pos)


class MatrixError(Exception):
    @classmethod
    def assert_true(cls, cond):
        if not cond:
            raise cls

    @classmethod
    def assert_eq(cls, x, y):
        if x != y:
            raise cls


class InvalidCoordinate(MatrixError):
    """ Row or column outside of [1, n].
    `position` is set when raised from a build, indexing the offending triple. """

    def __init__(self, row: int, col: int, n: Optional[int], position: Optional[int] = None):
        self.row = row
        self.col = col
        self.n = n
        self.position = position
        msg = f"Invalid coordinate ({row}, {col})"
        if n is not None:
            msg += f" for matrix size {n}"
        if position is not None:
            msg += f", at triple #{position}"
        super().__init__(msg)


class InvalidMode(MatrixError):
    def __init__(self, mode):
        self.mode = mode
        super().__init__(f"Invalid resolution mode {mode!r}, expecting one of {[m.value for m in Mode]}")
