#! /usr/bin/env python

"""
Running sums of headgroup z-coordinates on a grid, one set per leaflet
"""

import numpy as np
from memthick.llclib.grid import ConfigError
from memthick.llclib.physical import UPPER, LOWER


class StateError(Exception):
    """ Raised if an accumulator or analysis is used after it has been finalized """

    def __init__(self, message):

        super().__init__(message)


class BinAccumulator(object):

    def __init__(self, grid):
        """ Sum and count of headgroup z-coordinates in every grid bin of both leaflets. Absorbing observations is
        purely additive, so the final state does not depend on the order in which observations arrive and two
        accumulators built on the same grid can be merged exactly.

        :param grid: grid over which observations are binned

        :type grid: memthick.llclib.grid.GridSpec
        """

        self.grid = grid
        self.sum_z = np.zeros([2, grid.nx, grid.ny], dtype=np.float64)  # [leaflet, i, j]
        self.count = np.zeros([2, grid.nx, grid.ny], dtype=np.int64)
        self.frozen = False

    def _check_open(self):

        if self.frozen:
            raise StateError('This accumulator has been finalized and cannot absorb further observations.')

    def absorb(self, x, y, z, tag):
        """ Add a single classified headgroup. Points outside of the grid are ignored.

        :param x: x-coordinate of the headgroup
        :param y: y-coordinate of the headgroup
        :param z: z-coordinate of the headgroup
        :param tag: leaflet of the headgroup (UPPER or LOWER)

        :type x: float
        :type y: float
        :type z: float
        :type tag: int
        """

        self._check_open()

        ndx = self.grid.index(x, y)
        if ndx is None:
            return

        self.sum_z[tag, ndx[0], ndx[1]] += z
        self.count[tag, ndx[0], ndx[1]] += 1

    def absorb_frame(self, xyz, tags):
        """ Add all classified headgroups of one frame at once. Equivalent to calling absorb() for each headgroup.

        :param xyz: (n, 3) headgroup coordinates
        :param tags: (n,) leaflet tag of each headgroup

        :type xyz: numpy.ndarray
        :type tags: numpy.ndarray
        """

        self._check_open()

        xyz = np.asarray(xyz, dtype=np.float64).reshape(-1, 3)
        tags = np.asarray(tags, dtype=np.int64).ravel()

        if tags.size != xyz.shape[0]:
            raise ValueError('Got %d leaflet tags for %d headgroups' % (tags.size, xyz.shape[0]))

        i, j, inside = self.grid.indices(xyz[:, :2])

        ndx = (tags[inside], i[inside], j[inside])
        np.add.at(self.sum_z, ndx, xyz[inside, 2])
        np.add.at(self.count, ndx, 1)

    def merge(self, other):
        """ Add the sums and counts of another accumulator built on the same grid to this one.

        :param other: accumulator to merge into this one. It is left unchanged.

        :type other: BinAccumulator
        """

        self._check_open()

        if other.grid != self.grid:
            raise ConfigError('Cannot merge accumulators built on different grids: %s and %s' % (self.grid, other.grid))

        self.sum_z += other.sum_z
        self.count += other.count

        return self

    __iadd__ = merge

    def freeze(self):

        self.frozen = True

    @property
    def upper(self):
        """ (sum_z, count) grids of the upper leaflet """

        return self.sum_z[UPPER], self.count[UPPER]

    @property
    def lower(self):
        """ (sum_z, count) grids of the lower leaflet """

        return self.sum_z[LOWER], self.count[LOWER]
