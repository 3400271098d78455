"""
Support for storing array-of-entries form matrices to YAML
"""

from logging import getLogger
from pathlib import Path
from typing import List, Tuple

import ruamel.yaml

from .matrix import Mode, DEFAULT_MODE

logger = getLogger(__name__)

yaml = ruamel.yaml.YAML()


class MatrixYaml(object):
    """ Triples-form matrix, as saved to YAML.
    Complex values are written as `[row, col, real, imag]` entries. """

    def __init__(self):
        self.desc: str = ""
        self.size: int = 0
        self.mode: Mode = DEFAULT_MODE
        self.entries: List[Tuple[int, int, complex]] = []

    @classmethod
    def from_mat(cls, m, desc: str = ""):
        from .matrix import SparseMatrix
        if not isinstance(m, SparseMatrix):
            raise TypeError(m)

        self = cls()
        self.desc = desc
        self.size = m.n
        self.entries = list(m.triples())
        return self

    def to_dict(self):
        return dict(
            desc=self.desc,
            size=self.size,
            mode=self.mode.value,
            entries=[[int(r), int(c), float(v.real), float(v.imag)] for (r, c, v) in self.entries],
        )

    @classmethod
    def from_dict(cls, d: dict):
        self = cls()
        self.desc = str(d.get('desc', ''))
        self.size = int(d['size'])
        self.mode = Mode.parse(str(d.get('mode', DEFAULT_MODE.value)))
        self.entries = [(int(r), int(c), complex(float(re), float(im))) for (r, c, re, im) in d['entries']]
        return self

    def to_mat(self):
        from .build import build
        return build(self.entries, n=self.size, mode=self.mode)

    def dump(self, file):
        p = Path(file)
        yaml.dump(self.to_dict(), p)
        logger.info(f"Wrote {len(self.entries)} entries to {p}")

    @classmethod
    def load(cls, file):
        p = Path(file)
        y = yaml.load(p)
        return cls.from_dict(dict(y))
