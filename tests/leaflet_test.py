#! /usr/bin/env python

from memthick.llclib.physical import UPPER, LOWER, membrane_center, classify, LeafletClassifier
from memthick.llclib.topology import EmptySelectionError
import numpy as np
import pytest


class TestLeafletClassifier():

    def test_center(self):

        assert membrane_center([2.0, 4.0, 3.0, 3.0]) == 3.0

        z = np.full(50000, 3.1, dtype=np.float32)
        np.testing.assert_almost_equal(membrane_center(z), 3.1, decimal=6)

        with pytest.raises(EmptySelectionError):
            membrane_center([])

    def test_classify(self):

        assert classify(4.0, 3.0) == UPPER
        assert classify(2.0, 3.0) == LOWER
        assert classify(3.0, 3.0) == UPPER  # ties go to the upper leaflet
        assert classify(-1e-12, 0.0) == LOWER

        np.testing.assert_array_equal(classify(np.array([1, 3, 5]), 3), [LOWER, UPPER, UPPER])

    def test_classify_frame(self):

        lipids = np.array([[0, 0, 4.0], [0, 0, 3.2], [1, 1, 2.0], [1, 1, 2.8]])
        heads = np.array([[0.5, 0.5, 4.0], [0.5, 0.5, 2.0]], dtype=np.float32)

        classifier = LeafletClassifier()
        xyz, tags = classifier.classify_frame(lipids, heads)

        assert classifier.center == pytest.approx(3.0)
        assert xyz.dtype == np.float64
        np.testing.assert_array_equal(tags, [UPPER, LOWER])

    def test_empty_selections(self):

        classifier = LeafletClassifier()

        with pytest.raises(EmptySelectionError):
            classifier.classify_frame(np.zeros([0, 3]), np.ones([2, 3]))

        with pytest.raises(EmptySelectionError):
            classifier.classify_frame(np.ones([2, 3]), np.zeros([0, 3]))
