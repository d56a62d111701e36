#! /usr/bin/env python

from memthick.llclib import file_rw, topology
from memthick.llclib.grid import ConfigError
from memthick.llclib.topology import EmptySelectionError
import mdtraj as md
import numpy as np
import pytest


def system():

    top = md.Topology()
    chain = top.add_chain()
    for name in ['POPC', 'CHOL', 'POPC']:
        res = top.add_residue(name, chain)
        top.add_atom('P' if name == 'POPC' else 'ROH', md.element.phosphorus, res)
        top.add_atom('C1', md.element.carbon, res)
    res = top.add_residue('NA', chain)
    top.add_atom('NA', md.element.sodium, res)

    return top


class TestSelect():

    def test_membrane_group(self):

        np.testing.assert_array_equal(topology.select(system(), '@membrane'), [0, 1, 2, 3, 4, 5])

    def test_mdtraj_query(self):

        np.testing.assert_array_equal(topology.select(system(), 'name P'), [0, 4])
        np.testing.assert_array_equal(topology.select(system(), ' name P or name ROH '), [0, 2, 4])

    def test_empty(self):

        with pytest.raises(EmptySelectionError):
            topology.select(system(), 'name PO4')

    def test_unknown_group(self):

        with pytest.raises(ConfigError):
            topology.select(system(), '@protein')

    def test_index_groups(self, tmp_path):

        ndx = tmp_path / 'index.ndx'
        ndx.write_text('[ Heads ]\n1 5\n[ Ion ]\n7\n[ Empty ]\n')
        groups = file_rw.read_ndx(str(ndx))

        np.testing.assert_array_equal(groups['Heads'], [0, 4])
        np.testing.assert_array_equal(topology.select(system(), 'Heads', groups), [0, 4])

        with pytest.raises(EmptySelectionError):
            topology.select(system(), 'Empty', groups)

        groups['Ion'] = np.array([20])
        with pytest.raises(ConfigError):
            topology.select(system(), 'Ion', groups)
