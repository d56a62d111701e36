#! /usr/bin/env python

"""
Resolve atom selections against a structure once, before any frame is read
"""

import numpy as np
from memthick.llclib.grid import ConfigError

# residue names recognized as membrane lipids by the '@membrane' group
MEMBRANE_RESIDUES = ['POPC', 'POPE', 'POPG', 'POPS', 'POPA', 'POPI', 'POP2', 'PIP2',
                     'DOPC', 'DOPE', 'DOPG', 'DOPS', 'DOPA',
                     'DPPC', 'DPPE', 'DPPG', 'DPPS',
                     'DMPC', 'DMPE', 'DMPG', 'DLPC', 'DLPE', 'DLPG',
                     'DSPC', 'DSPE', 'DAPC', 'DUPC', 'DIPC', 'SDPC', 'PAPC',
                     'PSM', 'SSM', 'DPSM', 'DPG1', 'DPG3', 'DXG1', 'DXG3',
                     'CHOL', 'CHL1', 'ERG', 'CL', 'CDL', 'TOCL']


class EmptySelectionError(Exception):
    """ Raised if an atom selection contains no atoms """

    def __init__(self, message):

        super().__init__(message)


def grps(name):
    """ Translate a special group into an mdtraj selection string.

    :param name: name of the special group. Currently only '@membrane' is defined.

    :type name: str

    :return: mdtraj selection string or None if name is not a special group
    """

    if name == '@membrane':

        return ' or '.join(['resname %s' % r for r in MEMBRANE_RESIDUES])

    return None


def select(topology, query, groups=None):
    """ Get the indices of all atoms matching a query. Queries are looked up, in order, as groups of a GROMACS
    index file, as special groups ('@membrane') and finally passed to the mdtraj selection language.

    :param topology: topology of the system
    :param query: selection query, e.g. '@membrane', 'name PO4 or name P' or the name of an index group
    :param groups: index groups read with memthick.llclib.file_rw.read_ndx

    :type topology: mdtraj.Topology
    :type query: str
    :type groups: dict

    :return: sorted array of 0-based atom indices
    """

    query = query.strip()

    if groups is not None and query in groups:
        indices = np.asarray(groups[query], dtype=np.int64)
        if indices.size > 0 and indices.max() >= topology.n_atoms:
            raise ConfigError("Index group '%s' refers to atom %d but the structure only has %d atoms"
                              % (query, indices.max() + 1, topology.n_atoms))
    else:
        expanded = grps(query)
        if expanded is None:
            if query.startswith('@'):
                raise ConfigError("Unknown special group '%s'" % query)
            expanded = query

        try:
            indices = topology.select(expanded)
        except ValueError as e:
            raise ConfigError("Could not parse the query '%s': %s" % (query, e))

    if len(indices) == 0:
        raise EmptySelectionError("The query '%s' selects no atoms." % query)

    return np.unique(indices)
