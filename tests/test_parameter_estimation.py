import numpy as np
import pytest
import SimpleITK as sitk

from bone_enhancement.data_structures import EigenValueField
from bone_enhancement.exceptions import DimensionMismatchError, DomainError, InvalidParameterError
from bone_enhancement.parameter_estimation import (DescoteauxParameterEstimator, KrcahParameterEstimator,
                                                   frobenius_norm)

BACKGROUND = 1
FOREGROUND = 2


def label_image(array, origin=None):
    mask = sitk.GetImageFromArray(np.asarray(array, dtype=np.uint32))
    if origin is not None:
        mask.SetOrigin(origin)
    return mask


@pytest.fixture
def uniform_field():
    """Every voxel has eigenvalues (-1, -1, -1)"""
    return EigenValueField.from_array(np.full((10, 10, 10, 3), -1.0))


@pytest.fixture
def inset_field():
    """(-1, -1, -1) everywhere except (3, 3, 3) in the block [2, 10)^3"""
    values = np.full((10, 10, 10, 3), -1.0)
    values[2:10, 2:10, 2:10] = 3.0
    return EigenValueField.from_array(values)


@pytest.fixture
def inset_mask():
    """Background label everywhere except the foreground block [2, 10)^3"""
    labels = np.full((10, 10, 10), BACKGROUND)
    labels[2:10, 2:10, 2:10] = FOREGROUND
    return label_image(labels)


class TestDescoteauxParameterEstimator:
    """Test cases for Frobenius norm based estimation"""

    def test_defaults(self):
        estimator = DescoteauxParameterEstimator()
        assert estimator.alpha == pytest.approx(0.5)
        assert estimator.beta == pytest.approx(0.5)
        assert estimator.c == pytest.approx(0.5)
        assert estimator.frobenius_norm_weight == 0.5

    def test_uniform_field(self, uniform_field):
        estimator = DescoteauxParameterEstimator()
        parameters = estimator.estimate(uniform_field)
        assert estimator.alpha == pytest.approx(0.5)
        assert estimator.beta == pytest.approx(0.5)
        assert estimator.c == pytest.approx(np.sqrt(3) * 1 * 0.5)
        assert parameters.c == estimator.c

    def test_weight(self, uniform_field):
        estimator = DescoteauxParameterEstimator(frobenius_norm_weight=0.25)
        estimator.estimate(uniform_field)
        assert estimator.alpha == pytest.approx(0.5)
        assert estimator.beta == pytest.approx(0.5)
        assert estimator.c == pytest.approx(np.sqrt(3) * 1 * 0.25)

    def test_mask_with_inner_block_as_background(self, inset_field, inset_mask):
        estimator = DescoteauxParameterEstimator(mask=inset_mask, background_value=FOREGROUND)
        estimator.estimate(inset_field)
        assert estimator.c == pytest.approx(np.sqrt(3) * 1 * 0.5)

    def test_mask_with_inner_block_as_foreground(self, inset_field, inset_mask):
        estimator = DescoteauxParameterEstimator(mask=inset_mask, background_value=BACKGROUND)
        estimator.estimate(inset_field)
        assert estimator.alpha == pytest.approx(0.5)
        assert estimator.beta == pytest.approx(0.5)
        assert estimator.c == pytest.approx(np.sqrt(3) * 3 * 0.5)

    def test_swapping_background_label_changes_c(self, inset_field, inset_mask):
        estimator = DescoteauxParameterEstimator()
        outer = estimator.estimate(inset_field, mask=inset_mask, background_value=FOREGROUND).c
        inner = estimator.estimate(inset_field, mask=inset_mask, background_value=BACKGROUND).c
        assert inner == pytest.approx(3 * outer)

    def test_mask_on_sub_grid(self, uniform_field):
        mask = label_image(np.full((8, 8, 8), FOREGROUND), origin=(2.0, 2.0, 2.0))
        estimator = DescoteauxParameterEstimator(mask=mask, background_value=BACKGROUND)
        estimator.estimate(uniform_field)
        assert estimator.c == pytest.approx(np.sqrt(3) * 1 * 0.5)

    def test_sub_grid_only_scans_inside_mask(self, inset_field):
        # Sub-grid over the (3, 3, 3) block labelled as background: only (-1, -1, -1) voxels
        # would remain, but those lie outside the mask grid
        mask = label_image(np.full((8, 8, 8), BACKGROUND), origin=(2.0, 2.0, 2.0))
        estimator = DescoteauxParameterEstimator(mask=mask, background_value=BACKGROUND)
        assert estimator.estimate(inset_field).c == 0.0

    def test_empty_foreground_gives_zero(self, uniform_field):
        mask = label_image(np.zeros((10, 10, 10)))
        estimator = DescoteauxParameterEstimator(mask=mask, background_value=0)
        parameters = estimator.estimate(uniform_field)
        assert parameters.c == 0.0
        assert parameters.alpha == 0.5
        assert parameters.beta == 0.5

    def test_zero_field_gives_zero(self):
        estimator = DescoteauxParameterEstimator()
        assert estimator.estimate(EigenValueField.from_array(np.zeros((4, 4, 4, 3)))).c == 0.0

    @pytest.mark.parametrize("workers", [1, 2, 3, 16])
    def test_partition_count_does_not_change_result(self, workers):
        rng = np.random.RandomState(0)
        field = EigenValueField.from_array(rng.normal(size=(9, 5, 6, 3)))
        expected = 0.5 * np.max(np.sqrt(np.sum(field.values ** 2, axis=-1)))
        estimator = DescoteauxParameterEstimator(number_of_workers=workers)
        assert estimator.estimate(field).c == pytest.approx(expected)

    def test_mask_outside_image_raises(self, uniform_field):
        mask = label_image(np.full((8, 8, 8), FOREGROUND), origin=(5.0, 5.0, 5.0))
        with pytest.raises(DomainError):
            DescoteauxParameterEstimator(mask=mask).estimate(uniform_field)

    def test_mask_with_other_spacing_raises(self, uniform_field):
        mask = label_image(np.full((5, 5, 5), FOREGROUND))
        mask.SetSpacing((2.0, 2.0, 2.0))
        with pytest.raises(DomainError):
            DescoteauxParameterEstimator(mask=mask).estimate(uniform_field)

    def test_mask_between_voxels_raises(self, uniform_field):
        mask = label_image(np.full((4, 4, 4), FOREGROUND), origin=(0.5, 0.0, 0.0))
        with pytest.raises(DomainError):
            DescoteauxParameterEstimator(mask=mask).estimate(uniform_field)

    def test_requires_three_eigenvalues(self):
        field = EigenValueField.from_array(np.ones((4, 4, 4, 2)))
        with pytest.raises(DimensionMismatchError):
            DescoteauxParameterEstimator().estimate(field)


class TestKrcahParameterEstimator:
    """Test cases for trace based estimation"""

    def test_implementation_parameters(self, uniform_field):
        estimator = KrcahParameterEstimator()
        estimator.estimate(uniform_field)
        assert estimator.alpha == pytest.approx(np.sqrt(2) * 0.5)
        assert estimator.beta == pytest.approx(np.sqrt(2) * 0.5)
        assert estimator.c == pytest.approx(np.sqrt(2) * 0.25 * 3)

    def test_journal_parameters(self, uniform_field):
        estimator = KrcahParameterEstimator(parameter_set='journal')
        estimator.estimate(uniform_field)
        assert estimator.alpha == pytest.approx(0.5)
        assert estimator.beta == pytest.approx(0.5)
        assert estimator.c == pytest.approx(0.25 * 3)

    def test_masked_average(self, inset_field, inset_mask):
        estimator = KrcahParameterEstimator(parameter_set='journal', mask=inset_mask, background_value=BACKGROUND)
        assert estimator.estimate(inset_field).c == pytest.approx(0.25 * 9)

    def test_average_over_mixed_field(self, inset_field):
        inner = 8 ** 3
        expected = (inner * 9 + (1000 - inner) * 3) / 1000
        estimator = KrcahParameterEstimator(parameter_set='journal', number_of_workers=4)
        assert estimator.estimate(inset_field).c == pytest.approx(0.25 * expected)

    def test_empty_foreground_gives_zero(self, uniform_field):
        mask = label_image(np.zeros((10, 10, 10)))
        assert KrcahParameterEstimator(mask=mask).estimate(uniform_field).c == 0.0

    def test_unknown_parameter_set_raises(self):
        with pytest.raises(InvalidParameterError):
            KrcahParameterEstimator(parameter_set='unknown')


def test_frobenius_norm():
    np.testing.assert_allclose(frobenius_norm(np.array([[1.0, 2.0, 2.0], [-3.0, 0.0, 4.0]])), [3.0, 5.0])
