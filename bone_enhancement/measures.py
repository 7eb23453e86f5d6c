"""
Eigenvalue-to-measure functions.

A measure maps the eigenvalue triple of a voxel to one enhancement value. Each
measure declares the eigenvalue ordering it expects and, optionally, the
estimator that derives its constants from the data.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional
import numpy as np
import SimpleITK as sitk

from .data_structures import EigenValueField, EigenValueOrder, EnhanceType, EstimatedParameters
from .exceptions import ConfigurationError, DimensionMismatchError
from .masking import foreground_mask
from .parallel import default_number_of_workers, run_partitioned, split_regions
from .parameter_estimation import DescoteauxParameterEstimator, KrcahParameterEstimator, ParameterEstimator

logger = logging.getLogger(__name__)

EPSILON = 1e-10

class EigenToMeasure(ABC):
    """Base class of the measure family.

    Args:
        alpha, beta, c: Formula constants used when no estimation is done
        enhance_type: Enhance bright (default) or dark structures
        estimator: Optional estimator providing alpha, beta and c per image
    """

    eigenvalue_order = EigenValueOrder.BY_MAGNITUDE

    def __init__(
        self,
        alpha: float = 0.5,
        beta: float = 0.5,
        c: float = 0.5,
        enhance_type: EnhanceType = EnhanceType.BRIGHT,
        estimator: Optional[ParameterEstimator] = None
    ):
        self.alpha = alpha
        self.beta = beta
        self.c = c
        self.enhance_type = enhance_type
        self.estimator = estimator

    @property
    def parameters(self) -> EstimatedParameters:
        """User-set constants"""
        return EstimatedParameters(self.alpha, self.beta, self.c)

    @abstractmethod
    def evaluate(self, eigenvalues: np.ndarray, parameters: EstimatedParameters) -> np.ndarray:
        """Compute the measure for an array of eigenvalue triples (..., 3)"""
        pass

    def __repr__(self):
        return (f"{type(self).__name__}(alpha={self.alpha}, beta={self.beta}, c={self.c}, "
                f"enhance_type={self.enhance_type.name}, estimator={type(self.estimator).__name__ if self.estimator else None})")

def _magnitudes(eigenvalues: np.ndarray):
    a1, a2, a3 = eigenvalues[..., 0], eigenvalues[..., 1], eigenvalues[..., 2]
    return a1, a2, a3, np.abs(a1), np.abs(a2), np.abs(a3)

def _safe_divide(numerator, denominator, valid):
    return np.divide(numerator, denominator, out=np.zeros_like(numerator, dtype=np.float64), where=valid)

def _one_minus_exp(x_squared, scale_squared):
    # 1 - exp(-x^2 / s^2), taken as 1 when the scale is zero
    if scale_squared <= 0:
        return np.where(x_squared > 0, 1.0, 0.0)
    return 1.0 - np.exp(-x_squared / scale_squared)

class DescoteauxSheetness(EigenToMeasure):
    """Sheetness measure of Descoteaux et al.

    With l_i = |λ_i| ordered by magnitude:

        Rsheet = l2 / l3
        Rblob  = |2 l3 - l2 - l1| / l3
        Rnoise = sqrt(λ1^2 + λ2^2 + λ3^2)
        S = exp(-Rsheet^2 / 2α^2) (1 - exp(-Rblob^2 / 2β^2)) (1 - exp(-Rnoise^2 / 2c^2))

    Voxels whose λ3 has the wrong polarity, or with l3 close to zero, are 0.
    """

    def evaluate(self, eigenvalues, parameters):
        a1, a2, a3, l1, l2, l3 = _magnitudes(eigenvalues)
        valid = (self.enhance_type.value * a3 >= 0) & (l3 >= EPSILON)

        r_sheet = _safe_divide(l2, l3, valid)
        r_blob = _safe_divide(np.abs(2 * l3 - l2 - l1), l3, valid)
        r_noise_squared = a1 ** 2 + a2 ** 2 + a3 ** 2

        sheetness = (
            np.exp(-r_sheet ** 2 / (2 * parameters.alpha ** 2)) *
            _one_minus_exp(r_blob ** 2, 2 * parameters.beta ** 2) *
            _one_minus_exp(r_noise_squared, 2 * parameters.c ** 2)
        )
        return np.where(valid, sheetness, 0.0)

class KrcahBoneEnhancement(EigenToMeasure):
    """Bone enhancement measure of Krcah et al.

    With l_i = |λ_i| ordered by magnitude and e the enhance polarity:

        Rsheet = l2 / l3
        Rtube  = l1 / (l2 l3)
        Rnoise = l1 + l2 + l3
        S = e sign(λ3) exp(-Rsheet^2 / α^2) exp(-Rtube^2 / β^2) (1 - exp(-Rnoise^2 / c^2))

    The sign makes structures of the wrong polarity negative rather than zero.
    Rtube is 0 when l1 is close to zero; otherwise l2 l3 close to zero gives 0.
    """

    def evaluate(self, eigenvalues, parameters):
        a1, a2, a3, l1, l2, l3 = _magnitudes(eigenvalues)
        flat = l1 < EPSILON
        valid = (l3 >= EPSILON) & (flat | (l2 * l3 >= EPSILON))

        r_sheet = _safe_divide(l2, l3, valid)
        r_tube = _safe_divide(l1, l2 * l3, valid & ~flat)
        r_noise = l1 + l2 + l3

        sheetness = (
            self.enhance_type.value * np.sign(a3) *
            np.exp(-r_sheet ** 2 / parameters.alpha ** 2) *
            np.exp(-r_tube ** 2 / parameters.beta ** 2) *
            _one_minus_exp(r_noise ** 2, parameters.c ** 2)
        )
        return np.where(valid, sheetness, 0.0)

class FrangiVesselness(EigenToMeasure):
    """Vesselness measure of Frangi et al.

    With l_i = |λ_i| ordered by magnitude:

        Ra = l2 / l3
        Rb = l1 / sqrt(l2 l3)
        S  = sqrt(λ1^2 + λ2^2 + λ3^2)
        V = (1 - exp(-Ra^2 / 2α^2)) exp(-Rb^2 / 2β^2) (1 - exp(-S^2 / 2c^2))

    Only voxels where λ2 and λ3 both have the enhanced polarity respond.
    """

    def evaluate(self, eigenvalues, parameters):
        a1, a2, a3, l1, l2, l3 = _magnitudes(eigenvalues)
        polarity = self.enhance_type.value
        valid = (polarity * a2 >= 0) & (polarity * a3 >= 0) & (l3 >= EPSILON) & (l2 * l3 >= EPSILON)

        ra = _safe_divide(l2, l3, valid)
        rb = _safe_divide(l1, np.sqrt(l2 * l3), valid)
        s_squared = a1 ** 2 + a2 ** 2 + a3 ** 2

        vesselness = (
            _one_minus_exp(ra ** 2, 2 * parameters.alpha ** 2) *
            np.exp(-rb ** 2 / (2 * parameters.beta ** 2)) *
            _one_minus_exp(s_squared, 2 * parameters.c ** 2)
        )
        return np.where(valid, vesselness, 0.0)

def default_estimator(measure_type, **kwargs) -> Optional[ParameterEstimator]:
    """Estimator normally paired with a measure class"""
    if measure_type is KrcahBoneEnhancement:
        return KrcahParameterEstimator(**kwargs)
    if measure_type in (DescoteauxSheetness, FrangiVesselness):
        return DescoteauxParameterEstimator(**kwargs)
    return None

def apply_measure(
    field: EigenValueField,
    measure: EigenToMeasure,
    parameters: Optional[EstimatedParameters] = None,
    mask: Optional[sitk.Image] = None,
    background_value=None,
    number_of_workers: Optional[int] = None
) -> sitk.Image:
    """Evaluate a measure at every voxel of an eigenvalue field.

    Args:
        field: Eigenvalue field with three eigenvalues per voxel
        measure: Measure to evaluate
        parameters: Constants for the formula (defaults to the measure's own)
        mask: Optional label image; voxels outside it or labelled
            background_value are set to 0 without evaluating the formula
        background_value: Mask label treated as outside (None means 0)
        number_of_workers: Threads used over slabs of the grid

    Returns:
        Response image (sitkFloat64) with the field's geometry
    """
    if field.number_of_eigenvalues != 3:
        raise DimensionMismatchError(
            f"Measures require 3 eigenvalues per voxel, got {field.number_of_eigenvalues}"
        )
    if field.order != measure.eigenvalue_order:
        raise ConfigurationError(
            f"{type(measure).__name__} expects eigenvalues ordered {measure.eigenvalue_order.name}, "
            f"got {field.order.name}"
        )

    if parameters is None:
        parameters = measure.parameters
    if background_value is None:
        background_value = 0
    foreground = foreground_mask(field.geometry, mask, background_value)

    if number_of_workers is None:
        number_of_workers = default_number_of_workers()

    response = np.zeros(field.values.shape[:-1], dtype=np.float64)
    regions = split_regions(response.shape, number_of_workers)

    def evaluate_region(index, region):
        values = field.values[region]
        if foreground is None:
            response[region] = measure.evaluate(values, parameters)
        else:
            inside = foreground[region]
            region_response = np.zeros(inside.shape, dtype=np.float64)
            region_response[inside] = measure.evaluate(values[inside], parameters)
            response[region] = region_response

    run_partitioned(evaluate_region, regions, number_of_workers)

    return field.geometry.image_from_array(response)
