import itertools

import numpy as np
import pytest

from ..matrix import Axis, Mode, MatrixState, MatrixError, InvalidCoordinate, InvalidMode
from ..build import build, to_dense, from_dense, dense_to_triples, infer_size

EXAMPLE = [
    (1, 2, 1), (2, 1, 2), (2, 3, 3), (3, 2, 4),
    (2, 2, 5), (2, 2, 6), (3, 1, 7), (1, 1, 8),
]

# Unique-coordinate, five-by-five example
VALUES = [-1, -2, 2, 8, 1, 3, -2, -3, 2, 1, 2, -4]
ROWS = [1, 1, 2, 2, 2, 3, 3, 4, 4, 5, 5, 5]
COLS = [1, 3, 1, 2, 4, 3, 5, 2, 3, 1, 2, 5]
FIVE = list(zip(ROWS, COLS, VALUES))


def random_triples(seed: int, n: int = 8, num: int = 40, dups: bool = True):
    """ Helper function.  (Not a test!) """
    rng = np.random.default_rng(seed)
    if dups:
        rows = rng.integers(1, n + 1, size=num)
        cols = rng.integers(1, n + 1, size=num)
        coords = list(zip(rows.tolist(), cols.tolist()))
    else:
        cells = [(r, c) for r in range(1, n + 1) for c in range(1, n + 1)]
        picks = rng.choice(len(cells), size=min(num, len(cells)), replace=False)
        coords = [cells[k] for k in picks]
    # Real parts are never zero, so every entry survives a trip through a dense matrix
    vals = rng.integers(1, 10, size=len(coords)) + 1j * rng.integers(-9, 10, size=len(coords))
    return [(r, c, complex(v)) for ((r, c), v) in zip(coords, vals)]


def check_chains(m):
    """ Helper function.  (Not a test!)
    Rows strictly increase in column along each chain, and vice versa. """
    for k in range(1, m.n + 1):
        cols = [e.col for e in m.row_elements(k)]
        assert cols == sorted(set(cols))
        rows = [e.row for e in m.col_elements(k)]
        assert rows == sorted(set(rows))
    m.check()


def test_build_example_add():
    m = build(EXAMPLE, n=3, mode=Mode.ADD)
    assert m.state is MatrixState.BUILT
    assert len(m) == 7
    assert m.get(2, 2).val == 11
    assert [e.col for e in m.row_elements(2)] == [1, 2, 3]
    assert [e.val for e in m.row_elements(2)] == [2, 11, 3]
    check_chains(m)


def test_build_example_replace():
    m = build(EXAMPLE, n=3)
    assert len(m) == 7
    assert m.get(2, 2).val == 6


def test_build_infers_size():
    m = build(FIVE)
    assert m.n == 5
    assert len(m) == 12
    check_chains(m)


def test_build_larger_size():
    m = build(EXAMPLE, n=10, mode="add")
    assert m.n == 10
    assert len(m) == 7
    assert m.index.first_in_row(10) == -1


def test_build_empty():
    m = build([], n=2)
    assert len(m) == 0
    with pytest.raises(MatrixError):
        build([])


def test_build_matches_dense():
    m = build(FIVE, mode=Mode.REPLACE)
    d = to_dense(FIVE)
    assert np.array_equal(m.to_dense(), d)
    assert d[0, 0] == -1
    assert d[4, 4] == -4
    assert d[0, 1] == 0


@pytest.mark.parametrize("seed", range(5))
def test_build_matches_dense_random(seed):
    triples = random_triples(seed, dups=False)
    m = build(triples, n=8)
    check_chains(m)
    assert len(m) == len(triples)
    assert np.array_equal(m.to_dense(), to_dense(triples, n=8))


@pytest.mark.parametrize("seed", range(5))
def test_element_count(seed):
    triples = random_triples(seed, dups=True)
    unique = {(r, c) for (r, c, _) in triples}
    for mode in Mode:
        m = build(triples, n=8, mode=mode)
        check_chains(m)
        assert len(m) == len(unique)


@pytest.mark.parametrize("seed", range(5))
def test_replace_last_wins(seed):
    triples = random_triples(seed, dups=True)
    last = {}
    for (r, c, v) in triples:
        last[(r, c)] = v
    m = build(triples, n=8, mode=Mode.REPLACE)
    for (r, c), v in last.items():
        assert m.get(r, c).val == v
    # Replace-mode building matches the last-write-wins reference
    assert np.array_equal(m.to_dense(), to_dense(triples, n=8))


@pytest.mark.parametrize("seed", range(5))
def test_add_sums(seed):
    triples = random_triples(seed, dups=True)
    sums = {}
    for (r, c, v) in triples:
        sums[(r, c)] = sums.get((r, c), 0) + v
    m = build(triples, n=8, mode=Mode.ADD)
    for (r, c), v in sums.items():
        assert m.get(r, c).val == v


def test_add_order_independent():
    triples = [(1, 1, 1), (1, 1, 2j), (2, 1, 3), (1, 1, -4)]
    results = set()
    for order in itertools.permutations(triples):
        m = build(order, n=2, mode=Mode.ADD)
        check_chains(m)
        results.add(tuple(m.triples()))
    assert results == {((1, 1, -3 + 2j), (2, 1, 3))}


def test_replace_order_dependent():
    a = build([(1, 1, 1), (1, 1, 2)], n=1)
    b = build([(1, 1, 2), (1, 1, 1)], n=1)
    assert a.get(1, 1).val == 2
    assert b.get(1, 1).val == 1


def test_build_fail_fast():
    triples = [(1, 1, 1), (2, 2, 2), (4, 1, 3), (0, 0, 4)]
    with pytest.raises(InvalidCoordinate) as info:
        build(triples, n=3)
    assert info.value.position == 2
    assert info.value.row == 4
    assert info.value.col == 1
    assert "#2" in str(info.value)


def test_build_fail_fast_inferred_size():
    # With no `n`, non-positive indices leave no valid size to infer
    for triples in ([(0, 0, 1)], [(-1, 0, 1), (0, -2, 2)]):
        with pytest.raises(InvalidCoordinate) as info:
            build(triples)
        assert info.value.position == 0
        assert (info.value.row, info.value.col) == triples[0][:2]

    with pytest.raises(InvalidCoordinate) as info:
        build([(1, 1, 1), (2.5, 1, 2)])
    assert info.value.position == 1

    with pytest.raises(InvalidCoordinate) as info:
        to_dense([(0, 0, 1)])
    assert info.value.position == 0


def test_build_invalid_mode():
    with pytest.raises(InvalidMode):
        build(EXAMPLE, n=3, mode="overwrite")


def test_build_frozen():
    m = build(EXAMPLE, n=3)
    with pytest.raises(MatrixError):
        m.insert_or_resolve(1, 3, 1.0)


def test_to_dense_last_wins():
    d = to_dense([(1, 1, 1), (1, 1, 2), (2, 1, 3j)])
    assert d.shape == (2, 2)
    assert d.dtype == complex
    assert d[0, 0] == 2
    assert d[1, 0] == 3j


def test_to_dense_invalid():
    with pytest.raises(InvalidCoordinate) as info:
        to_dense([(1, 1, 1), (3, 1, 1)], n=2)
    assert info.value.position == 1


def test_infer_size():
    assert infer_size(EXAMPLE) == 3
    assert infer_size([(1, 7, 1)]) == 7


def test_dense_to_triples():
    d = np.array([[1, 0], [1e-14, 2j]])
    assert dense_to_triples(d) == [(1, 1, 1), (2, 1, 1e-14), (2, 2, 2j)]
    assert dense_to_triples(d, tol=1e-12) == [(1, 1, 1), (2, 2, 2j)]


def test_round_trip():
    m = build(EXAMPLE, n=3, mode=Mode.ADD)
    d = to_dense(list(m.triples()), n=3)
    m2 = build(dense_to_triples(d), n=3, mode=Mode.REPLACE)
    assert m2 == m
    for ax in Axis:
        for k in range(1, 4):
            s = [(e.row, e.col, e.val) for e in m.chain(ax, k)]
            o = [(e.row, e.col, e.val) for e in m2.chain(ax, k)]
            assert s == o


@pytest.mark.parametrize("seed", range(3))
def test_round_trip_random(seed):
    triples = random_triples(seed, dups=False)
    m = build(triples, n=8)
    m2 = from_dense(to_dense(triples, n=8))
    assert m2 == m


def test_from_dense():
    d = np.eye(3, dtype=complex)
    m = from_dense(d)
    assert m.n == 3
    assert len(m) == 3
    assert list(m.values()) == [1, 1, 1]

    with pytest.raises(MatrixError):
        from_dense(np.zeros((2, 3)))
