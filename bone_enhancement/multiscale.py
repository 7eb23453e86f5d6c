"""
Multi-scale Hessian enhancement.
"""

import gc
import logging
from typing import List, Optional, Sequence
import numpy as np
import SimpleITK as sitk
from tqdm import tqdm

from .data_structures import EigenValueOrder, EstimatedParameters, ImageGeometry
from .eigen_analysis import compute_eigenvalues
from .exceptions import ConfigurationError, DimensionMismatchError, InvalidParameterError
from .hessian import compute_hessian
from .masking import mask_region
from .measures import EigenToMeasure, apply_measure

logger = logging.getLogger(__name__)

IMAGE_DIMENSION = 3

def maximum_absolute_value(running: sitk.Image, candidate: sitk.Image) -> sitk.Image:
    """Voxel-wise value of larger magnitude; ties keep the running value"""
    running_array = sitk.GetArrayViewFromImage(running)
    candidate_array = sitk.GetArrayViewFromImage(candidate)
    if running_array.shape != candidate_array.shape:
        raise DimensionMismatchError(
            f"Cannot combine responses of shapes {running_array.shape} and {candidate_array.shape}"
        )
    combined = np.where(np.abs(running_array) >= np.abs(candidate_array), running_array, candidate_array)
    result = sitk.GetImageFromArray(combined)
    result.CopyInformation(running)
    return result

def response_at_scale(
    image: sitk.Image,
    sigma: float,
    measure: EigenToMeasure,
    mask: Optional[sitk.Image] = None,
    background_value=None,
    number_of_workers: Optional[int] = None,
    show_progress: bool = False
):
    """Run Hessian, eigen-analysis, estimation and measure at one scale.

    When a mask is given it replaces the estimator's own mask, and a
    background_value of None keeps the estimator's own background label.
    Without a mask the estimator runs with its own configuration.

    Returns:
        (response image, parameters used by the measure)
    """
    hessian = compute_hessian(image, sigma, number_of_threads=number_of_workers, show_progress=show_progress)
    eigenvalues = compute_eigenvalues(
        hessian,
        order=measure.eigenvalue_order,
        dimension=IMAGE_DIMENSION,
        number_of_workers=number_of_workers,
        show_progress=show_progress
    )
    # The Hessian is not needed once decomposed
    del hessian

    if measure.estimator is None:
        parameters = measure.parameters
    elif mask is not None:
        parameters = measure.estimator.estimate(eigenvalues, mask=mask, background_value=background_value)
    else:
        parameters = measure.estimator.estimate(eigenvalues)

    response = apply_measure(
        eigenvalues,
        measure,
        parameters,
        mask=mask,
        background_value=background_value,
        number_of_workers=number_of_workers
    )
    del eigenvalues
    return response, parameters

class MultiScaleHessianEnhancementFilter:
    """Multi-scale enhancement from the eigenvalues of the Hessian.

    The image is analysed at every scale of the schedule; the per-scale
    responses are combined by keeping, at each voxel, the response with the
    largest absolute value.
    """

    def __init__(
        self,
        measure: Optional[EigenToMeasure] = None,
        sigmas: Optional[Sequence[float]] = None,
        mask: Optional[sitk.Image] = None,
        background_value=None,
        number_of_workers: Optional[int] = None,
        show_progress: bool = True
    ):
        """Initialize filter.

        Args:
            measure: Eigenvalue-to-measure function, required before execute
            sigmas: Scale schedule (see scales.generate_sigma_array)
            mask: Optional label image restricting estimation and response
            background_value: Mask label treated as outside; None uses the
                estimator's own label for estimation and 0 for the response
            number_of_workers: Threads used within one scale
            show_progress: Show a progress bar over the scales
        """
        self.measure = measure
        self.sigmas = sigmas
        self.mask = mask
        self.background_value = background_value
        self.number_of_workers = number_of_workers
        self.show_progress = show_progress
        self.last_parameters: List[EstimatedParameters] = []

    def _check_inputs(self, image: sitk.Image) -> np.ndarray:
        if self.measure is None:
            raise ConfigurationError("An eigenvalue-to-measure function must be set")
        if not isinstance(self.measure.eigenvalue_order, EigenValueOrder):
            raise ConfigurationError(f"Bad eigenvalue order {self.measure.eigenvalue_order!r}")

        sigmas = np.asarray(self.sigmas if self.sigmas is not None else [], dtype=np.float64).ravel()
        if len(sigmas) < 1:
            raise ConfigurationError(
                f"Sigma array must have at least one sigma value. Given array of size {len(sigmas)}"
            )
        if np.any(~(sigmas > 0)):
            raise InvalidParameterError(f"All sigma values must be positive, got {sigmas.tolist()}")

        if image.GetDimension() != IMAGE_DIMENSION:
            raise DimensionMismatchError(
                f"Enhancement requires a {IMAGE_DIMENSION}-D image, got {image.GetDimension()}-D"
            )

        if self.mask is not None:
            mask_region(ImageGeometry.from_image(image), self.mask)

        return sigmas

    def execute(self, image: sitk.Image) -> sitk.Image:
        """Apply the enhancement.

        Args:
            image: Input image

        Returns:
            Response image with the geometry of the input
        """
        sigmas = self._check_inputs(image)
        self.last_parameters = []

        logger.info(
            f"Enhancing with {type(self.measure).__name__} over {len(sigmas)} scales "
            f"({sigmas[0]:.3f} to {sigmas[-1]:.3f})"
        )

        max_response = None
        for i, sigma in enumerate(tqdm(sigmas, desc="Processing scales", disable=not self.show_progress)):
            logger.info(f"Scale {i + 1}/{len(sigmas)}: sigma={sigma:.3f}")
            response, parameters = response_at_scale(
                image,
                sigma,
                self.measure,
                mask=self.mask,
                background_value=self.background_value,
                number_of_workers=self.number_of_workers
            )
            self.last_parameters.append(parameters)

            if max_response is None:
                max_response = response
            else:
                max_response = maximum_absolute_value(max_response, response)
            del response
            gc.collect()

        if len(sigmas) == 1:
            logger.debug("Single scale, no maximum taken across scales")

        return max_response
