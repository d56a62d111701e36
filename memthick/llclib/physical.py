#! /usr/bin/env python

"""
Per-frame leaflet assignment of lipid headgroups
"""

import numpy as np
from memthick.llclib.topology import EmptySelectionError

UPPER = 0
LOWER = 1
LEAFLETS = {UPPER: 'upper', LOWER: 'lower'}


def membrane_center(lipid_z):
    """ Location of the membrane center along z, defined as the mean z-coordinate of all lipid atoms. The sum is
    carried out in double precision since trajectories are usually stored in single precision.

    :param lipid_z: z-coordinates of every atom in the lipid selection for a single frame

    :type lipid_z: numpy.ndarray

    :return: z-coordinate of the membrane center
    """

    lipid_z = np.asarray(lipid_z, dtype=np.float64).ravel()

    if lipid_z.size == 0:
        raise EmptySelectionError('The lipid selection contains no atoms. The membrane center is undefined.')

    return lipid_z.sum() / lipid_z.size


def classify(head_z, center):
    """ Assign headgroups to the upper or lower leaflet. A headgroup lying exactly at the membrane center is assigned
    to the upper leaflet.

    :param head_z: z-coordinate(s) of headgroup atoms
    :param center: z-coordinate of the membrane center

    :type head_z: float or numpy.ndarray
    :type center: float

    :return: UPPER or LOWER for a scalar input, otherwise an integer array of tags
    """

    upper = np.asarray(head_z, dtype=np.float64) >= center

    if upper.ndim == 0:
        return UPPER if upper else LOWER

    return np.where(upper, UPPER, LOWER).astype(np.int64)


class LeafletClassifier(object):

    def __init__(self):
        """ Split a bilayer into its two leaflets one frame at a time.

        The z-coordinates are used as they are. No periodic unwrapping is done, so the bilayer must not be split
        across the periodic boundary in z (center the membrane in the box beforehand, e.g. gmx trjconv -center).
        The headgroup selection should contain exactly one atom per lipid molecule. Neither condition is checked.
        """

        self.center = None  # membrane center of the last classified frame

    def classify_frame(self, lipid_xyz, head_xyz):
        """
        :param lipid_xyz: (n_lipid_atoms, 3) coordinates of the lipid selection
        :param head_xyz: (n_heads, 3) coordinates of the headgroup selection

        :type lipid_xyz: numpy.ndarray
        :type head_xyz: numpy.ndarray

        :return: (n_heads, 3) headgroup coordinates in double precision and the leaflet tag of each headgroup
        """

        lipid_xyz = np.asarray(lipid_xyz).reshape(-1, 3)
        head_xyz = np.asarray(head_xyz, dtype=np.float64).reshape(-1, 3)

        if head_xyz.shape[0] == 0:
            raise EmptySelectionError('The headgroup selection contains no atoms.')

        self.center = membrane_center(lipid_xyz[:, 2])

        return head_xyz, classify(head_xyz[:, 2], self.center)
