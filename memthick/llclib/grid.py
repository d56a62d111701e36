#! /usr/bin/env python

"""
Geometry of the (x, y) grid over which membrane thickness is averaged
"""

import math
import numpy as np


class ConfigError(Exception):
    """ Raised if the analysis is configured with invalid grid bounds, bin size or NaN limit """

    def __init__(self, message):

        super().__init__(message)


class GridSpec(object):

    def __init__(self, xmin, xmax, ymin, ymax, bin_size=0.1):
        """ Rectangular grid in the xy plane made of square bins. The number of bins along each axis is rounded up, so
        the last bin may stick out past the maximum. Points in that partial bin are still counted.

        :param xmin: lower bound of the grid along x (nm)
        :param xmax: upper bound of the grid along x (nm)
        :param ymin: lower bound of the grid along y (nm)
        :param ymax: upper bound of the grid along y (nm)
        :param bin_size: edge length of a single bin (nm)

        :type xmin: float
        :type xmax: float
        :type ymin: float
        :type ymax: float
        :type bin_size: float
        """

        for name, value in zip(['xmin', 'xmax', 'ymin', 'ymax', 'bin_size'], [xmin, xmax, ymin, ymax, bin_size]):
            if value is None or not np.isfinite(value):
                raise ConfigError('%s must be a finite number, not %s' % (name, value))

        if bin_size <= 0:
            raise ConfigError('Bin size must be positive, not %s' % bin_size)

        if xmin >= xmax:
            raise ConfigError('Minimum grid x-value (%s) must be lower than the maximum grid x-value (%s).'
                              % (xmin, xmax))

        if ymin >= ymax:
            raise ConfigError('Minimum grid y-value (%s) must be lower than the maximum grid y-value (%s).'
                              % (ymin, ymax))

        self._xmin = float(xmin)
        self._xmax = float(xmax)
        self._ymin = float(ymin)
        self._ymax = float(ymax)
        self._bin_size = float(bin_size)

        # rounding guards against spans like 1.1 / 0.1 = 11.000000000000002 producing an extra bin. A genuine partial bin
        # narrower than ~1e-8 bin sizes is dropped with it, and points in that sliver fall outside the grid
        self._nx = max(1, int(math.ceil(round((self._xmax - self._xmin) / self._bin_size, 8))))
        self._ny = max(1, int(math.ceil(round((self._ymax - self._ymin) / self._bin_size, 8))))

    xmin = property(lambda self: self._xmin)
    xmax = property(lambda self: self._xmax)
    ymin = property(lambda self: self._ymin)
    ymax = property(lambda self: self._ymax)
    bin_size = property(lambda self: self._bin_size)
    nx = property(lambda self: self._nx)
    ny = property(lambda self: self._ny)

    @property
    def shape(self):

        return self._nx, self._ny

    @property
    def x_centers(self):
        """ x-coordinate of the center of each bin """

        return self._xmin + (np.arange(self._nx) + 0.5) * self._bin_size

    @property
    def y_centers(self):
        """ y-coordinate of the center of each bin """

        return self._ymin + (np.arange(self._ny) + 0.5) * self._bin_size

    def index(self, x, y):
        """ Find the bin containing the point (x, y)

        :param x: x-coordinate of the point
        :param y: y-coordinate of the point

        :type x: float
        :type y: float

        :return: (i, j) bin index or None if the point is outside of the grid
        """

        if not (math.isfinite(x) and math.isfinite(y)):
            return None

        i = math.floor((x - self._xmin) / self._bin_size)
        j = math.floor((y - self._ymin) / self._bin_size)

        if 0 <= i < self._nx and 0 <= j < self._ny:
            return i, j

        return None

    def indices(self, xy):
        """ Vectorised version of index()

        :param xy: (n, 2) array of xy coordinates

        :type xy: numpy.ndarray

        :return: i and j bin indices of every point plus a boolean mask which is True for points inside the grid. \
        Indices of points outside of the grid are meaningless.
        """

        xy = np.asarray(xy, dtype=float).reshape(-1, 2)

        i = np.floor((xy[:, 0] - self._xmin) / self._bin_size)
        j = np.floor((xy[:, 1] - self._ymin) / self._bin_size)

        inside = (i >= 0) & (i < self._nx) & (j >= 0) & (j < self._ny)

        return i.astype(np.int64), j.astype(np.int64), inside

    def __eq__(self, other):

        if not isinstance(other, GridSpec):
            return NotImplemented

        return (self._xmin, self._xmax, self._ymin, self._ymax, self._bin_size) == \
               (other.xmin, other.xmax, other.ymin, other.ymax, other.bin_size)

    def __hash__(self):

        return hash((self._xmin, self._xmax, self._ymin, self._ymax, self._bin_size))

    def __repr__(self):

        return 'GridSpec(xmin=%g, xmax=%g, ymin=%g, ymax=%g, bin_size=%g, nx=%d, ny=%d)' % \
               (self._xmin, self._xmax, self._ymin, self._ymax, self._bin_size, self._nx, self._ny)


def build_grid(box, xmin=None, xmax=None, ymin=None, ymax=None, bin_size=0.1):
    """ Construct the grid for an analysis. Any bound that is not given explicitly is taken from the simulation box of
    the first frame, i.e. the grid spans 0 to the box length along that axis.

    :param box: box lengths (x, y, z) of the first frame (nm)
    :param xmin: lower bound along x or None
    :param xmax: upper bound along x or None
    :param ymin: lower bound along y or None
    :param ymax: upper bound along y or None
    :param bin_size: edge length of a single bin (nm)

    :type box: array-like
    :type xmin: float or None
    :type xmax: float or None
    :type ymin: float or None
    :type ymax: float or None
    :type bin_size: float

    :return: GridSpec
    """

    xmin = 0.0 if xmin is None else xmin
    xmax = float(box[0]) if xmax is None else xmax
    ymin = 0.0 if ymin is None else ymin
    ymax = float(box[1]) if ymax is None else ymax

    return GridSpec(xmin, xmax, ymin, ymax, bin_size=bin_size)
