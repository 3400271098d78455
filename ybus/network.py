"""
Admittance Matrix (Y-bus) Assembly

For each branch from bus `i` to bus `k`, with series admittance y = 1/(R + jX),
total line-charging susceptance B, and off-nominal tap ratio `a` on the `i` side:

    Y[i,i] += y/a**2 + jB/2
    Y[k,k] += y + jB/2
    Y[i,k] += -y/a
    Y[k,i] += -y/a

And for each bus `b`, its shunt admittance:

    Y[b,b] += G + jB

Buses are numbered by position in the bus table, starting at one.
"""

from logging import getLogger
from pathlib import Path
from typing import Iterator, List

import numpy as np
import pandas as pd

from .sparse import SparseMatrix, Mode, InvalidCoordinate, build

logger = getLogger(__name__)

# IEEE CDF bus-type codes
PQ = 0
PQ_LIMITED = 1
PV = 2
SLACK = 3

# Ordering used by `sort_by="bus_types"`
TYPE_ORDER = {SLACK: 0, PV: 1, PQ_LIMITED: 2, PQ: 2}


class Stamp(object):
    """ The four admittance-matrix entries contributed by one branch. """

    def __init__(self, i: int, k: int, y: complex, a: float, b: float):
        self.i = i
        self.k = k
        self.ii = y / a ** 2 + 1j * b / 2
        self.kk = y + 1j * b / 2
        self.ik = -y / a

    def triples(self):
        return [
            (self.i, self.i, self.ii),
            (self.k, self.k, self.kk),
            (self.i, self.k, self.ik),
            (self.k, self.i, self.ik),
        ]


def tap_ratio(branch, disable_taps: bool = False) -> float:
    """ Tap ratio for `branch`.  Zero or missing entries mean nominal, i.e. one. """
    if disable_taps:
        return 1.0
    a = getattr(branch, 'a', 0)
    if pd.isna(a) or a == 0:
        return 1.0
    return float(a)


def stamps(branch_data: pd.DataFrame, disable_taps: bool = False) -> Iterator[Stamp]:
    for branch in branch_data.itertuples(index=False):
        y = 1 / complex(branch.R, branch.X)
        a = tap_ratio(branch, disable_taps=disable_taps)
        yield Stamp(i=int(branch.i), k=int(branch.j), y=y, a=a, b=float(branch.B))


def branch_triples(bus_data: pd.DataFrame, branch_data: pd.DataFrame, *, disable_taps: bool = False):
    """ Stream the Y-bus as (row, col, value) triples.
    Repeated coordinates are meant to be summed, i.e. built with `Mode.ADD`. """
    for stamp in stamps(branch_data, disable_taps=disable_taps):
        yield from stamp.triples()

    for num, bus in enumerate(bus_data.itertuples(index=False), start=1):
        shunt = complex(bus.G, bus.B)
        if shunt != 0:
            yield (num, num, shunt)


def sparse_ybus(bus_data: pd.DataFrame, branch_data: pd.DataFrame, *, disable_taps: bool = False) -> SparseMatrix:
    """ Build the Y-bus directly into a SparseMatrix """
    triples = branch_triples(bus_data, branch_data, disable_taps=disable_taps)
    return build(triples, n=len(bus_data), mode=Mode.ADD)


class YbusResult(object):
    """ Y-bus and its companion matrices """

    def __init__(self, *, ybus: np.ndarray, b_matrix: np.ndarray, b: np.ndarray, A: np.ndarray,
                 branch_names: List[str], E: List[List[int]], row_names: List[str]):
        self.ybus = ybus
        self.b_matrix = b_matrix
        self.b = b
        self.A = A
        self.branch_names = branch_names
        self.E = E
        self.row_names = row_names

    def tables(self):
        """ (Y-bus, B-matrix) as DataFrames, labelled by bus """
        ybus = pd.DataFrame(self.ybus, index=self.row_names, columns=self.row_names)
        b_matrix = pd.DataFrame(self.b_matrix, index=self.row_names, columns=self.row_names)
        return ybus, b_matrix


def bus_type_order(bus_data: pd.DataFrame) -> np.ndarray:
    """ Permutation putting buses in slack, PV, PQ order.
    Ties keep bus-number order. """
    if 'type' not in bus_data.columns:
        raise ValueError("Sorting by bus types requires a `type` column in the bus data")
    keys = [TYPE_ORDER.get(int(t), len(TYPE_ORDER)) for t in bus_data['type']]
    return np.argsort(keys, kind='stable')


def ybus_generator(bus_data: pd.DataFrame,
                   branch_data: pd.DataFrame,
                   *,
                   disable_taps: bool = False,
                   sort_by: str = "bus_numbers",
                   save_tables: bool = False,
                   save_location: str = "processedData/",
                   system_name: str = "systemNameNOTSpecified") -> YbusResult:
    """ Generate the (dense) Y-bus and related matrices for a power system.

    Arguments:
    * `bus_data`: per-bus shunt `G` and `B`, optionally `type`
    * `branch_data`: per-branch `i`, `j`, `R`, `X`, `B`, optionally tap ratio `a`
    * `disable_taps`: treat every tap ratio as one
    * `sort_by`: "bus_numbers" or "bus_types" (slack, PV, PQ)
    * `save_tables`: write the Y-bus and B-matrix as CSV, to `save_location/system_name/`

    A branch to a bus outside of [1, N] raises `InvalidCoordinate`, with the branch's `position`.
    """
    if sort_by not in ("bus_numbers", "bus_types"):
        raise ValueError(f"Invalid sort_by {sort_by!r}, expecting 'bus_numbers' or 'bus_types'")

    N = len(bus_data)
    num_branch = len(branch_data)

    ybus = np.zeros((N, N), dtype=complex)
    b = np.zeros((num_branch, num_branch))
    A = np.zeros((num_branch, N))
    E: List[List[int]] = [[] for _ in range(N)]
    branch_names = []

    for num, stamp in enumerate(stamps(branch_data, disable_taps=disable_taps)):
        i, k = stamp.i, stamp.k
        if not (1 <= i <= N and 1 <= k <= N):
            logger.error(f"Branch #{num} connects bus {i} to bus {k}, outside of buses 1 to {N}")
            raise InvalidCoordinate(row=i, col=k, n=N, position=num)
        branch_names.append(f"{i} to {k}")
        A[num, i - 1] = 1
        A[num, k - 1] = -1
        b[num, num] = branch_data['B'].iloc[num]

        for (r, c, v) in stamp.triples():
            ybus[r - 1, c - 1] += v

        E[i - 1].append(k)
        E[k - 1].append(i)

    ybus += np.diag(bus_data['G'].to_numpy() + 1j * bus_data['B'].to_numpy())
    row_names = [str(n) for n in range(1, N + 1)]
    tag = ""

    if sort_by == "bus_types":
        order = bus_type_order(bus_data)
        ybus = ybus[np.ix_(order, order)]
        row_names = [row_names[n] for n in order]
        tag = "_sortedByBusTypes"

    b_matrix = -ybus.imag

    result = YbusResult(ybus=ybus, b_matrix=b_matrix, b=b, A=A,
                        branch_names=branch_names, E=E, row_names=row_names)
    logger.debug(f"Y-bus:\n{ybus}")
    logger.debug(f"Branch names: {branch_names}")
    logger.debug(f"Adjacency list: {E}")

    if save_tables:
        save(result, save_location=save_location, system_name=system_name, tag=tag)
    return result


def save(result: YbusResult, save_location: str, system_name: str, tag: str = "") -> Path:
    """ Write the Y-bus and B-matrix tables as CSV files.  Returns their directory. """
    folder = Path(save_location) / system_name
    folder.mkdir(parents=True, exist_ok=True)

    ybus, b_matrix = result.tables()
    ybus.to_csv(folder / f"YBus{tag}.csv")
    b_matrix.to_csv(folder / f"BMatrix{tag}.csv")
    logger.info(f"Saved Y-bus and B-matrix tables to {folder}")
    return folder
