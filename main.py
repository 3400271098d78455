"""
Build the Y-bus of a network case, both densely and into a SparseMatrix, and compare them.

    python main.py data/three_bus.yaml --debug
"""

import argparse
import logging

import numpy as np

from ybus import NetworkCase
from ybus.sparse.yaml import MatrixYaml

logger = logging.getLogger(__name__)


def setup_logger(debug: bool = False):
    logging.basicConfig(
        format='%(asctime)s | %(name)s | %(levelname)s :: %(message)s',
        datefmt='%d-%b-%y %H:%M:%S',
        level=logging.DEBUG if debug else logging.INFO,
    )


def get_args(argv=None):
    parser = argparse.ArgumentParser(description='Sparse admittance-matrix (Y-bus) builder')
    parser.add_argument('case', help='YAML network case file')
    parser.add_argument('--sort-by', dest='sort_by', choices=['bus_numbers', 'bus_types'],
                        help='ordering of the dense Y-bus tables; overrides the case options')
    parser.add_argument('--disable-taps', dest='disable_taps', action='store_true',
                        help='treat all tap ratios as one')
    parser.add_argument('--save-tables', dest='save_tables', action='store_true',
                        help='write the Y-bus and B-matrix as CSV')
    parser.add_argument('--save-location', dest='save_location', default='processedData/',
                        help='folder for --save-tables output')
    parser.add_argument('--dump-yaml', dest='dump_yaml', help='write the sparse Y-bus triples to this YAML file')
    parser.add_argument('--debug', action='store_true', help='set logging level to DEBUG')
    return parser.parse_args(argv)


def main(argv=None):
    args = get_args(argv)
    setup_logger(args.debug)

    case = NetworkCase.load(args.case)
    if args.disable_taps:
        case.options.disable_taps = True
    if args.sort_by:
        case.options.sort_by = args.sort_by

    dense = case.ybus(save_tables=args.save_tables, save_location=args.save_location)
    sparse = case.sparse_ybus()
    sparse.check()

    print(f'{case.system_name}: {sparse.n} buses, {len(case.branch_data)} branches, {len(sparse)} non-zeros')
    print(sparse.display())

    # The sparse build is always in bus-number order
    reference = case.ybus(sort_by='bus_numbers').ybus
    if not np.allclose(sparse.to_dense(), reference):
        raise Exception('Sparse and dense Y-bus do not match')
    print('Sparse and dense Y-bus match')

    if args.dump_yaml:
        MatrixYaml.from_mat(sparse, desc=f'{case.system_name} Y-bus').dump(args.dump_yaml)

    return dense, sparse


if __name__ == '__main__':
    main()
