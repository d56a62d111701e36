#!/usr/bin/env python

"""
This library has all routines involving reading and writing files
"""

import numpy as np
from memthick import __version__


def write_map(out, thickness_map, command=None):
    """ Write a membrane thickness map as a text table. Every line holds the x and y coordinates of a bin center and
    the thickness in that bin. x is the outer loop, y the inner loop. The average thickness is written at the end.

    :param out: name of output file
    :param thickness_map: map to write
    :param command: command line used to generate the map, written to the header

    :type out: str
    :type thickness_map: memthick.llclib.stats.ThicknessMap
    :type command: list or str
    """

    if command is not None and not isinstance(command, str):
        command = ' '.join(command)

    with open(out, 'w') as f:

        f.write('# Generated with memthick v%s.\n' % __version__)
        if command is not None:
            f.write('# Command line: %s\n' % command)
        f.write('# See the average membrane thickness at the end of this file.\n')

        f.write('@ xlabel x-coordinate [nm]\n')
        f.write('@ ylabel y-coordinate [nm]\n')
        f.write('@ zlabel membrane thickness [nm]\n')
        f.write('@ grid --\n')
        f.write('$ type colorbar\n')
        f.write('$ colormap rainbow\n')

        for x, y, thickness in thickness_map.rows():
            f.write('{:12.6f} {:12.6f} {:12.4f}\n'.format(x, y, thickness))

        f.write('# Average membrane thickness: {:12.4f} nm\n'.format(thickness_map.average))


def read_map(filename):
    """ Read a map written by write_map

    :param filename: name of file to read

    :type filename: str

    :return: x, y and thickness columns and the average thickness (NaN if the file has no average)
    """

    data = []
    average = np.nan
    with open(filename, 'r') as f:
        for line in f:
            if line.startswith('# Average membrane thickness:'):
                average = float(line.split(':')[1].split()[0])
            elif line.strip() and line[0] not in '#@$':
                data.append([float(i) for i in line.split()])

    data = np.array(data).reshape(-1, 3)

    return data[:, 0], data[:, 1], data[:, 2], average


def read_ndx(filename):
    """ Read groups from a GROMACS index file

    :param filename: name of .ndx file

    :type filename: str

    :return: dictionary mapping group names to 0-based atom indices
    """

    groups = {}
    name = None
    with open(filename, 'r') as f:
        for line in f:
            line = line.split(';')[0].strip()
            if not line:
                continue
            if line.startswith('['):
                name = line.strip('[] \t')
                groups[name] = []
            elif name is None:
                raise ValueError('%s: atom indices found before the first group header' % filename)
            else:
                groups[name] += [int(i) - 1 for i in line.split()]  # gromacs counts from 1, mdtraj from 0

    return {k: np.array(v, dtype=np.int64) for k, v in groups.items()}
