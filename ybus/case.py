"""
Network case files, in YAML

    system_name: three_bus
    buses:
      - {G: 0.0, B: 0.0, type: 3}
      - {G: 0.0, B: 0.05, type: 0}
    branches:
      - {i: 1, j: 2, R: 0.01, X: 0.1, B: 0.02, a: 0}
    options:
      disable_taps: false
      sort_by: bus_numbers
"""

from logging import getLogger
from pathlib import Path
from typing import Optional

import pandas as pd
import ruamel.yaml

from .network import ybus_generator, sparse_ybus, YbusResult
from .sparse import SparseMatrix

logger = getLogger(__name__)

yaml = ruamel.yaml.YAML()

BUS_COLUMNS = ['G', 'B']
BRANCH_COLUMNS = ['i', 'j', 'R', 'X', 'B']


class CaseOptions(object):
    """ Per-case Y-bus generation settings """

    def __init__(self, disable_taps: bool = False, sort_by: str = "bus_numbers"):
        self.disable_taps = disable_taps
        self.sort_by = sort_by

    def to_dict(self):
        return dict(disable_taps=self.disable_taps, sort_by=self.sort_by)

    @classmethod
    def from_dict(cls, d: Optional[dict]):
        d = d or {}
        return cls(
            disable_taps=bool(d.get('disable_taps', False)),
            sort_by=str(d.get('sort_by', 'bus_numbers')),
        )


class NetworkCase(object):
    def __init__(self, system_name: str, bus_data: pd.DataFrame, branch_data: pd.DataFrame,
                 options: Optional[CaseOptions] = None):
        for col in BUS_COLUMNS:
            if col not in bus_data.columns:
                raise ValueError(f"Bus data missing column {col!r}")
        for col in BRANCH_COLUMNS:
            if col not in branch_data.columns:
                raise ValueError(f"Branch data missing column {col!r}")
        self.system_name = system_name
        self.bus_data = bus_data
        self.branch_data = branch_data
        self.options = options or CaseOptions()

    def __repr__(self):
        return f"<{self.__class__.__name__}({self.system_name}, buses={len(self.bus_data)}, branches={len(self.branch_data)})>"

    def ybus(self, **kw) -> YbusResult:
        """ Dense Y-bus, per our options.  Keyword arguments are passed on to `ybus_generator`. """
        kw.setdefault('disable_taps', self.options.disable_taps)
        kw.setdefault('sort_by', self.options.sort_by)
        kw.setdefault('system_name', self.system_name)
        return ybus_generator(self.bus_data, self.branch_data, **kw)

    def sparse_ybus(self) -> SparseMatrix:
        return sparse_ybus(self.bus_data, self.branch_data, disable_taps=self.options.disable_taps)

    def to_dict(self):
        def records(df: pd.DataFrame):
            return [{k: v.item() if hasattr(v, 'item') else v for k, v in r.items()}
                    for r in df.to_dict(orient='records')]

        return dict(
            system_name=self.system_name,
            buses=records(self.bus_data),
            branches=records(self.branch_data),
            options=self.options.to_dict(),
        )

    @classmethod
    def from_dict(cls, d: dict):
        return cls(
            system_name=str(d.get('system_name', 'systemNameNOTSpecified')),
            bus_data=pd.DataFrame([dict(b) for b in d['buses']]),
            branch_data=pd.DataFrame([dict(b) for b in d['branches']]),
            options=CaseOptions.from_dict(d.get('options')),
        )

    def dump(self, file):
        p = Path(file)
        yaml.dump(self.to_dict(), p)
        logger.info(f"Wrote case {self.system_name} to {p}")

    @classmethod
    def load(cls, file):
        p = Path(file)
        y = yaml.load(p)
        case = cls.from_dict(dict(y))
        logger.info(f"Loaded {case} from {p}")
        return case
