from pathlib import Path

import numpy as np
import pytest

from ..case import NetworkCase, CaseOptions

DATA = Path(__file__).resolve().parents[2] / "data"


def test_load_three_bus():
    case = NetworkCase.load(DATA / "three_bus.yaml")
    assert case.system_name == "three_bus"
    assert len(case.bus_data) == 3
    assert len(case.branch_data) == 3
    assert list(case.bus_data['type']) == [3, 0, 2]
    assert case.options.disable_taps is False
    assert case.options.sort_by == "bus_numbers"


def test_case_ybus():
    case = NetworkCase.load(DATA / "three_bus.yaml")
    r = case.ybus()
    assert r.ybus.shape == (3, 3)
    m = case.sparse_ybus()
    assert np.allclose(m.to_dense(), r.ybus)

    case.options.sort_by = "bus_types"
    r2 = case.ybus()
    assert r2.row_names == ["1", "3", "2"]
    # Keyword arguments win over the case options
    r3 = case.ybus(sort_by="bus_numbers")
    assert r3.row_names == ["1", "2", "3"]


def test_case_options():
    opts = CaseOptions.from_dict(None)
    assert opts.disable_taps is False
    assert opts.sort_by == "bus_numbers"
    opts = CaseOptions.from_dict(dict(disable_taps=True))
    assert opts.disable_taps is True
    assert opts.to_dict() == dict(disable_taps=True, sort_by="bus_numbers")


def test_missing_columns():
    d = dict(
        system_name="bad",
        buses=[dict(G=0.0)],
        branches=[dict(i=1, j=1, R=0.0, X=1.0, B=0.0)],
    )
    with pytest.raises(ValueError):
        NetworkCase.from_dict(d)


def test_dump_load(tmp_path):
    case = NetworkCase.load(DATA / "three_bus.yaml")
    case.options.disable_taps = True
    p = tmp_path / "case.yaml"
    case.dump(p)

    case2 = NetworkCase.load(p)
    assert case2.system_name == case.system_name
    assert case2.options.disable_taps is True
    assert np.allclose(case2.bus_data[['G', 'B']].to_numpy(), case.bus_data[['G', 'B']].to_numpy())
    assert np.allclose(case2.ybus().ybus, case.ybus().ybus)
