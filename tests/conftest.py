import os
import sys

import numpy as np
import pytest
import SimpleITK as sitk

# Make the repository root importable when running without installation
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture
def plate_image():
    """Bright plate across a dark volume, with mild noise"""
    rng = np.random.RandomState(42)
    array = rng.normal(0.0, 1.0, size=(24, 20, 20))
    array[10:14, :, :] += 100.0
    return sitk.GetImageFromArray(array)

