#! /usr/bin/env python

"""
Reduction of accumulated headgroup positions to a membrane thickness map
"""

import numbers
import numpy as np
from memthick.llclib.grid import ConfigError


def check_nan_limit(nan_limit):
    """ Raise ConfigError unless nan_limit is a non-negative integer """

    if isinstance(nan_limit, bool) or not isinstance(nan_limit, numbers.Integral) or nan_limit < 0:
        raise ConfigError('NaN limit must be a non-negative integer, not %s' % (nan_limit,))

    return int(nan_limit)


class ThicknessMap(object):

    def __init__(self, grid, thickness):
        """ Final membrane thickness map. Bins without enough samples in either leaflet hold NaN.

        :param grid: grid the map was calculated on
        :param thickness: (nx, ny) membrane thickness in each bin (nm)

        :type grid: memthick.llclib.grid.GridSpec
        :type thickness: numpy.ndarray
        """

        self.grid = grid
        self.thickness = np.array(thickness, dtype=np.float64)
        self.thickness.setflags(write=False)

        finite = self.thickness[np.isfinite(self.thickness)]
        if finite.size > 0:
            self.average = float(finite.mean())
        else:
            self.average = np.nan  # nothing to average, reported as NaN rather than zero

    @property
    def n_defined(self):
        """ number of bins with a reported thickness """

        return int(np.isfinite(self.thickness).sum())

    def rows(self):
        """ Iterate over (x, y, thickness) of every bin, x in the outer loop and y in the inner loop """

        xs = self.grid.x_centers
        ys = self.grid.y_centers
        for i in range(self.grid.nx):
            for j in range(self.grid.ny):
                yield xs[i], ys[j], self.thickness[i, j]


def leaflet_average(sum_z, count, nan_limit):
    """ Average z-coordinate in every bin of one leaflet.

    :param sum_z: (nx, ny) summed z-coordinates
    :param count: (nx, ny) number of samples
    :param nan_limit: minimum number of samples required to report an average

    :type sum_z: numpy.ndarray
    :type count: numpy.ndarray
    :type nan_limit: int

    :return: (nx, ny) average z-coordinate, NaN where count < nan_limit or count is zero
    """

    avg = np.full(sum_z.shape, np.nan)
    enough = (count >= nan_limit) & (count > 0)
    avg[enough] = sum_z[enough] / count[enough]

    return avg


def reduce_thickness(accumulator, nan_limit=30):
    """ Convert leaflet-resolved sums to a thickness map. A bin is reported only if both leaflets independently have
    at least nan_limit samples in it.

    :param accumulator: accumulator holding the sums and counts of all analyzed frames
    :param nan_limit: minimum number of samples per leaflet and bin

    :type accumulator: memthick.llclib.accumulate.BinAccumulator
    :type nan_limit: int

    :return: ThicknessMap
    """

    nan_limit = check_nan_limit(nan_limit)

    upper = leaflet_average(*accumulator.upper, nan_limit)
    lower = leaflet_average(*accumulator.lower, nan_limit)

    return ThicknessMap(accumulator.grid, upper - lower)  # NaN in either leaflet propagates
