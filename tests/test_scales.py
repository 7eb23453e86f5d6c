import numpy as np
import pytest

from bone_enhancement.exceptions import InvalidParameterError
from bone_enhancement.scales import (SigmaStepMethod, generate_equispaced_sigma_array,
                                     generate_logarithmic_sigma_array, generate_sigma_array)


class TestSigmaArray:
    """Test cases for scale schedule generation"""

    @pytest.mark.parametrize("method", list(SigmaStepMethod))
    def test_minimum_first_and_non_decreasing(self, method):
        sigmas = generate_sigma_array(0.5, 4.0, 7, method)
        assert len(sigmas) == 7
        assert sigmas[0] == 0.5
        assert np.all(np.diff(sigmas) >= 0)
        assert sigmas[-1] == pytest.approx(4.0)

    def test_equispaced_values(self):
        sigmas = generate_equispaced_sigma_array(1.0, 3.0, 5)
        np.testing.assert_allclose(sigmas, [1.0, 1.5, 2.0, 2.5, 3.0])

    def test_logarithmic_values(self):
        sigmas = generate_logarithmic_sigma_array(1.0, 8.0, 4)
        np.testing.assert_allclose(sigmas, [1.0, 2.0, 4.0, 8.0])

    @pytest.mark.parametrize("method", list(SigmaStepMethod))
    def test_swapped_bounds_give_same_schedule(self, method):
        np.testing.assert_array_equal(
            generate_sigma_array(3.0, 0.5, 6, method),
            generate_sigma_array(0.5, 3.0, 6, method)
        )

    @pytest.mark.parametrize("count", [1, 2, 10])
    def test_equal_bounds_give_single_scale(self, count):
        sigmas = generate_sigma_array(2.0, 2.0, count)
        assert sigmas.tolist() == [2.0]

    def test_single_step(self):
        assert generate_sigma_array(1.0, 5.0, 1).tolist() == [1.0]
        assert generate_logarithmic_sigma_array(1.0, 5.0, 1).tolist() == [1.0]

    @pytest.mark.parametrize("count", [0, -3])
    def test_non_positive_count_raises(self, count):
        with pytest.raises(InvalidParameterError):
            generate_sigma_array(1.0, 2.0, count)

    def test_logarithmic_requires_positive_minimum(self):
        with pytest.raises(InvalidParameterError):
            generate_logarithmic_sigma_array(0.0, 2.0, 3)

    def test_method_given_as_string(self):
        np.testing.assert_array_equal(
            generate_sigma_array(1.0, 8.0, 4, 'logarithmic'),
            generate_logarithmic_sigma_array(1.0, 8.0, 4)
        )

    def test_schedule_is_read_only(self):
        sigmas = generate_sigma_array(1.0, 2.0, 3)
        with pytest.raises(ValueError):
            sigmas[0] = 5.0
