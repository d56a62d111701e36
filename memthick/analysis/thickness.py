#! /usr/bin/env python

import os
import sys
import argparse
from collections import namedtuple
import numpy as np
import mdtraj as md
import matplotlib.pyplot as plt
import tqdm
from memthick import __version__
from memthick.llclib import file_rw, topology
from memthick.llclib.accumulate import BinAccumulator, StateError
from memthick.llclib.grid import ConfigError, build_grid
from memthick.llclib.physical import LeafletClassifier
from memthick.llclib.stats import check_nan_limit, reduce_thickness
from memthick.llclib.topology import EmptySelectionError

CONFIGURING = 'configuring'
ACCUMULATING = 'accumulating'
FINALIZED = 'finalized'

# one trajectory frame restricted to the two selections. box holds the box lengths (nm) or None
Frame = namedtuple('Frame', ['index', 'lipids', 'heads', 'box'])


def initialize():

    parser = argparse.ArgumentParser(description='Calculate a 2D map of membrane thickness.')

    parser.add_argument('-s', '--structure', required=True, help='Path to a gro or pdb file containing the system '
                        'structure')
    parser.add_argument('-f', '--trajectory', required=True, help='Path to a trajectory file (.xtc, .trr, ...) to '
                        'analyze')
    parser.add_argument('-o', '--output', default='membrane_thickness.dat', help='Path to the output file where the '
                        'thickness map will be written')
    parser.add_argument('-n', '--index', help='Path to an ndx file containing groups associated with the system')
    parser.add_argument('-l', '--lipids', default='@membrane', help='Specify atoms corresponding to membrane lipids')
    parser.add_argument('-p', '--phosphates', default='name PO4 or name P', help='Specify atoms identifying lipid '
                        'headgroups. Use only one atom per lipid molecule!')
    parser.add_argument('-a', '--nan', dest='nan_limit', default=30, type=int, help='How many phosphates must be '
                        'detected in a grid bin of each leaflet to calculate membrane thickness for this bin')
    parser.add_argument('--xmin', type=float, help='Minimum coordinate for the x-dimension of the grid')
    parser.add_argument('--xmax', type=float, help='Maximum coordinate for the x-dimension of the grid')
    parser.add_argument('--ymin', type=float, help='Minimum coordinate for the y-dimension of the grid')
    parser.add_argument('--ymax', type=float, help='Maximum coordinate for the y-dimension of the grid')
    parser.add_argument('--bin', dest='bin_size', default=0.1, type=float, help='Size of a grid bin in each '
                        'dimension (in nm)')
    parser.add_argument('-b', '--begin', default=0, type=int, help='Frame to begin calculations')
    parser.add_argument('-e', '--end', default=None, type=int, help='Frame to stop doing calculations (exclusive)')
    parser.add_argument('-skip', '--skip', default=1, type=int, help='Only analyze every nth frame')
    parser.add_argument('--plot', action="store_true", help='Save an image of the thickness map next to the output')
    parser.add_argument('--show', action="store_true", help='Show the thickness map')

    return parser


class FrameSourceError(Exception):
    """ Raised if frames cannot be read from the trajectory """

    def __init__(self, message, frame=None):

        if frame is not None:
            message = '%s (frame %d)' % (message, frame)

        super().__init__(message)

        self.frame = frame


def check_box(lengths, angles=None, frame=None):
    """ Make sure the simulation box exists, is not zero and is orthogonal

    :param lengths: box lengths (nm)
    :param angles: box angles (degrees)
    :param frame: index of the frame the box belongs to, used for error messages

    :type lengths: array-like or None
    :type angles: array-like or None
    :type frame: int
    """

    if lengths is None:
        raise FrameSourceError('Simulation box does not exist.', frame=frame)

    if np.any(np.asarray(lengths[:2]) <= 0):
        raise FrameSourceError('Simulation box is zero.', frame=frame)

    if angles is not None and not np.allclose(angles, 90, atol=1e-3):
        raise FrameSourceError('Simulation box is not orthogonal.', frame=frame)


def frames(traj, top, lipids, heads, begin=0, end=None, skip=1, chunk=100):
    """ Stream frames from a trajectory. Only the atoms of the two selections are loaded and frames are read in chunks,
    so memory does not grow with trajectory length. The sequence can only be consumed once.

    :param traj: name of trajectory file
    :param top: name of coordinate file with the same topology as traj
    :param lipids: indices of lipid atoms
    :param heads: indices of headgroup atoms
    :param begin: first frame to analyze
    :param end: frame at which to stop analyzing (exclusive). None analyzes until the end of the trajectory
    :param skip: only analyze every skip'th frame
    :param chunk: number of frames read from disk at once. A read error is reported with the index of the first frame
    of the chunk that failed, so use chunk=1 to locate a damaged frame exactly

    :type traj: str
    :type top: str
    :type lipids: numpy.ndarray
    :type heads: numpy.ndarray
    :type begin: int
    :type end: int or None
    :type skip: int
    :type chunk: int

    :return: generator of Frame
    """

    atoms = np.union1d(lipids, heads)
    lipid_ndx = np.searchsorted(atoms, lipids)  # position of each selection in the sliced trajectory
    head_ndx = np.searchsorted(atoms, heads)

    chunks = md.iterload(traj, top=top, chunk=chunk, atom_indices=atoms)

    index = 0
    while end is None or index < end:

        try:
            t = next(chunks)
        except StopIteration:
            return
        except (IOError, ValueError, RuntimeError) as e:
            raise FrameSourceError('Could not read %s: %s' % (traj, e), frame=index)

        for f in range(t.n_frames):

            if end is not None and index >= end:
                return

            if index >= begin and (index - begin) % skip == 0:

                if t.unitcell_lengths is None:
                    box, angles = None, None
                else:
                    box, angles = t.unitcell_lengths[f], t.unitcell_angles[f]

                check_box(box, angles, frame=index)

                yield Frame(index, t.xyz[f, lipid_ndx, :], t.xyz[f, head_ndx, :], box)

            index += 1


class MembraneThickness(object):

    def __init__(self, nan_limit=30, bin_size=0.1, xmin=None, xmax=None, ymin=None, ymax=None):
        """ Average the separation between headgroups of the upper and lower leaflet of a bilayer on a grid.

        Frames are absorbed one by one with add_frame() or run(). The grid is built from the first frame, any bound
        that is not given is taken from its simulation box. finalize() reduces everything to a thickness map and may
        only be called once, after which no more frames can be added.

        :param nan_limit: minimum number of headgroups per leaflet in a bin required to report its thickness
        :param bin_size: edge length of a grid bin (nm)
        :param xmin: lower bound of the grid along x (nm). Defaults to 0
        :param xmax: upper bound of the grid along x (nm). Defaults to the box length
        :param ymin: lower bound of the grid along y (nm). Defaults to 0
        :param ymax: upper bound of the grid along y (nm). Defaults to the box length

        :type nan_limit: int
        :type bin_size: float
        :type xmin: float
        :type xmax: float
        :type ymin: float
        :type ymax: float
        """

        self.nan_limit = check_nan_limit(nan_limit)

        if bin_size is None or not np.isfinite(bin_size) or bin_size <= 0:
            raise ConfigError('Bin size must be positive, not %s' % bin_size)

        for name, value in zip(['xmin', 'xmax', 'ymin', 'ymax'], [xmin, xmax, ymin, ymax]):
            if value is not None and not np.isfinite(value):
                raise ConfigError('%s must be a finite number, not %s' % (name, value))

        if xmin is not None and xmax is not None and xmin >= xmax:
            raise ConfigError('Minimum grid x-value must be lower than the maximum grid x-value.')

        if ymin is not None and ymax is not None and ymin >= ymax:
            raise ConfigError('Minimum grid y-value must be lower than the maximum grid y-value.')

        self.bin_size = bin_size
        self.bounds = dict(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)

        self.state = CONFIGURING
        self.grid = None
        self.accumulator = None
        self.classifier = LeafletClassifier()
        self.n_frames = 0
        self.result = None

    def _configure(self, frame):

        if None in (self.bounds['xmax'], self.bounds['ymax']):
            check_box(frame.box, frame=frame.index)

        box = frame.box if frame.box is not None else [np.nan, np.nan, np.nan]

        self.grid = build_grid(box, bin_size=self.bin_size, **self.bounds)
        self.accumulator = BinAccumulator(self.grid)
        self.state = ACCUMULATING

    def add_frame(self, frame):
        """ Classify the headgroups of a frame and add them to the grid

        :param frame: frame to add

        :type frame: Frame
        """

        if self.state == FINALIZED:
            raise StateError('The analysis has been finalized. No more frames can be added.')

        if self.state == CONFIGURING:
            self._configure(frame)

        xyz, tags = self.classifier.classify_frame(frame.lipids, frame.heads)
        self.accumulator.absorb_frame(xyz, tags)

        self.n_frames += 1

    def run(self, trajectory, progress=True):
        """ Add every frame of a trajectory

        :param trajectory: iterable of Frame, for example from frames()
        :param progress: show a progress bar

        :type trajectory: iterable
        :type progress: bool
        """

        for frame in tqdm.tqdm(trajectory, disable=not progress, unit=' frames'):
            self.add_frame(frame)

        return self

    def merge(self, other):
        """ Add the frames absorbed by another analysis, e.g. one run on a different part of the same trajectory

        :param other: analysis built on the same grid

        :type other: MembraneThickness
        """

        if self.state == FINALIZED:
            raise StateError('The analysis has been finalized. Nothing can be merged into it.')

        if other.accumulator is None:
            return self

        if self.accumulator is None:
            if other.grid.bin_size != self.bin_size:
                raise ConfigError('Cannot merge an analysis with bin size %s into one configured with bin size %s'
                                  % (other.grid.bin_size, self.bin_size))
            for name, value in self.bounds.items():
                if value is not None and getattr(other.grid, name) != value:
                    raise ConfigError('Cannot merge an analysis with %s = %s into one configured with %s = %s'
                                      % (name, getattr(other.grid, name), name, value))
            self.grid = other.grid
            self.accumulator = BinAccumulator(self.grid)
            self.state = ACCUMULATING

        self.accumulator.merge(other.accumulator)
        self.n_frames += other.n_frames

        return self

    def finalize(self):
        """ Reduce the accumulated headgroup positions to a thickness map

        :return: memthick.llclib.stats.ThicknessMap
        """

        if self.state == FINALIZED:
            raise StateError('The analysis has already been finalized.')

        if self.state == CONFIGURING:
            raise StateError('No frames were analyzed.')

        self.accumulator.freeze()
        self.result = reduce_thickness(self.accumulator, self.nan_limit)
        self.state = FINALIZED

        return self.result


def plot_map(thickness_map, out=None, show=False, colormap='rainbow'):
    """ Plot a thickness map. Bins without a thickness are left blank.

    :param thickness_map: map to plot
    :param out: if not None, name of the image file to save
    :param show: show the plot
    :param colormap: name of matplotlib color map

    :type thickness_map: memthick.llclib.stats.ThicknessMap
    :type out: str
    :type show: bool
    :type colormap: str
    """

    grid = thickness_map.grid
    xedges = grid.xmin + np.arange(grid.nx + 1) * grid.bin_size
    yedges = grid.ymin + np.arange(grid.ny + 1) * grid.bin_size

    fig, ax = plt.subplots()

    # pcolormesh wants (rows, columns) = (y, x)
    mesh = ax.pcolormesh(xedges, yedges, np.ma.masked_invalid(thickness_map.thickness.T), cmap=colormap)

    cbar = plt.colorbar(mesh, ax=ax)
    cbar.set_label('Membrane thickness (nm)', rotation=90, fontsize=14)
    cbar.ax.tick_params(labelsize=14)

    ax.set_xlabel('x-coordinate (nm)', fontsize=14)
    ax.set_ylabel('y-coordinate (nm)', fontsize=14)
    ax.set_aspect('equal')
    ax.set_title('Average thickness: %.4f nm' % thickness_map.average)
    plt.tick_params(axis='both', labelsize=14)
    plt.tight_layout()

    if out is not None:
        plt.savefig(out)

    if show:
        plt.show()

    return fig


def print_options(args):

    print('[STRUCTURE]     %s' % args.structure)
    print('[TRAJECTORY]    %s' % args.trajectory)
    print('[OUTPUT]        %s' % args.output)

    if args.index is not None:
        print('[INDEX]         %s' % args.index)

    print('[LIPIDS]        %s' % args.lipids)
    print('[PHOSPHATES]    %s' % args.phosphates)
    print('[NAN LIMIT]     %d' % args.nan_limit)

    # unset maxima are taken from the box of the first analyzed frame, not from the structure
    xmax = args.xmax if args.xmax is not None else 'box'
    ymax = args.ymax if args.ymax is not None else 'box'
    print('[X-RANGE]       %s-%s nm' % (args.xmin if args.xmin is not None else 0.0, xmax))
    print('[Y-RANGE]       %s-%s nm' % (args.ymin if args.ymin is not None else 0.0, ymax))

    print('[BIN SIZE]      %s nm' % args.bin_size)
    print('\n')


def calculate(args, command=None):
    """ Run the full analysis described by parsed command line arguments and write the thickness map """

    if args.skip < 1:
        raise ConfigError('skip must be at least 1, not %d' % args.skip)

    # validate before reading any trajectory data
    analysis = MembraneThickness(nan_limit=args.nan_limit, bin_size=args.bin_size, xmin=args.xmin, xmax=args.xmax,
                                 ymin=args.ymin, ymax=args.ymax)

    print('Loading structure...', end='', flush=True)
    structure = md.load(args.structure)
    print('Done!')

    if structure.unitcell_lengths is None:
        check_box(None)
    check_box(structure.unitcell_lengths[0], structure.unitcell_angles[0])

    print_options(args)

    groups = file_rw.read_ndx(args.index) if args.index is not None else None

    lipids = topology.select(structure.topology, args.lipids, groups)
    heads = topology.select(structure.topology, args.phosphates, groups)

    print('Selected %d lipid atoms and %d headgroups' % (lipids.size, heads.size))

    analysis.run(frames(args.trajectory, args.structure, lipids, heads, begin=args.begin, end=args.end,
                        skip=args.skip))

    thickness_map = analysis.finalize()

    file_rw.write_map(args.output, thickness_map, command=command)

    print('Analyzed %d frames' % analysis.n_frames)
    print('Grid: %g-%g nm x %g-%g nm in %d x %d bins' % (analysis.grid.xmin, analysis.grid.xmax, analysis.grid.ymin,
                                                          analysis.grid.ymax, analysis.grid.nx, analysis.grid.ny))
    print('Average membrane thickness: %.4f nm' % thickness_map.average)

    if args.plot or args.show:
        out = '%s.png' % os.path.splitext(args.output)[0] if args.plot else None
        plot_map(thickness_map, out=out, show=args.show)

    return thickness_map


def main(argv=None):

    args = initialize().parse_args(argv)

    command = sys.argv if argv is None else ['memthick'] + list(argv)

    print('\n>> memthick %s <<\n' % __version__)

    try:
        calculate(args, command=command)
    except (ConfigError, EmptySelectionError, FrameSourceError, StateError, IOError, ValueError) as e:
        print(e, file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":

    sys.exit(main())
