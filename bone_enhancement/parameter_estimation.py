"""
Automatic estimation of measure constants from an eigenvalue field.

Both estimators scan the foreground of the field in disjoint partitions. Each
partition fills its own slot of an accumulator array; the slots are merged
only after every partition has finished, and the merged constants are then
fixed for the response evaluation that follows.
"""

import logging
from typing import Optional, Tuple
import numpy as np
import SimpleITK as sitk

from .data_structures import EigenValueField, EstimatedParameters
from .exceptions import DimensionMismatchError, InvalidParameterError
from .masking import foreground_mask
from .parallel import default_number_of_workers, run_partitioned, split_regions

logger = logging.getLogger(__name__)

DEFAULT_PARAMETER = 0.5

def frobenius_norm(eigenvalues: np.ndarray) -> np.ndarray:
    """Frobenius norm of symmetric matrices given their eigenvalues (last axis)"""
    return np.sqrt(np.sum(np.square(eigenvalues), axis=-1))

class ParameterEstimator:
    """Shared scan logic for the estimators.

    Subclasses implement _scan (statistics of the foreground eigenvalues of
    one partition) and _merge (combine the per-partition statistics).
    """

    NUMBER_OF_STATISTICS = 1

    def __init__(
        self,
        mask: Optional[sitk.Image] = None,
        background_value=0,
        number_of_workers: Optional[int] = None
    ):
        self.mask = mask
        self.background_value = background_value
        self.number_of_workers = number_of_workers
        self._parameters = EstimatedParameters(DEFAULT_PARAMETER, DEFAULT_PARAMETER, DEFAULT_PARAMETER)

    @property
    def alpha(self) -> float:
        return self._parameters.alpha

    @property
    def beta(self) -> float:
        return self._parameters.beta

    @property
    def c(self) -> float:
        return self._parameters.c

    @property
    def parameters(self) -> EstimatedParameters:
        return EstimatedParameters(self.alpha, self.beta, self.c)

    def estimate(
        self,
        field: EigenValueField,
        mask: Optional[sitk.Image] = None,
        background_value=None
    ) -> EstimatedParameters:
        """Estimate the constants over the foreground of the field.

        Args:
            field: Eigenvalue field with three eigenvalues per voxel
            mask: Label image overriding self.mask
            background_value: Label overriding self.background_value

        Returns:
            The estimated parameters, also available through the accessors
        """
        if field.number_of_eigenvalues != 3:
            raise DimensionMismatchError(
                f"Parameter estimation requires 3 eigenvalues per voxel, got {field.number_of_eigenvalues}"
            )

        mask = self.mask if mask is None else mask
        background_value = self.background_value if background_value is None else background_value
        foreground = foreground_mask(field.geometry, mask, background_value)

        number_of_workers = self.number_of_workers or default_number_of_workers()
        regions = split_regions(field.values.shape[:-1], number_of_workers)
        accumulators = np.zeros((len(regions), self.NUMBER_OF_STATISTICS), dtype=np.float64)

        def scan_region(index, region):
            values = field.values[region]
            if foreground is not None:
                values = values[foreground[region]]
            else:
                values = values.reshape(-1, values.shape[-1])
            accumulators[index] = self._scan(values)

        run_partitioned(scan_region, regions, number_of_workers)

        self._parameters = self._merge(accumulators)
        logger.info(
            f"{type(self).__name__}: alpha={self.alpha:.4f}, beta={self.beta:.4f}, c={self.c:.6g}"
        )
        return self.parameters

    def _scan(self, values: np.ndarray) -> Tuple[float, ...]:
        raise NotImplementedError

    def _merge(self, accumulators: np.ndarray) -> EstimatedParameters:
        raise NotImplementedError

class DescoteauxParameterEstimator(ParameterEstimator):
    """Parameter estimation for the Descoteaux sheetness measure.

    The defaults are

        alpha = 0.5
        beta = 0.5
        c = w * max(Frobenius norm)

    where w is the Frobenius norm weight (0.5 by default) and the maximum runs
    over foreground voxels. Only c depends on the data. Until the first call
    to estimate, all three accessors return 0.5.
    """

    def __init__(
        self,
        frobenius_norm_weight: float = 0.5,
        mask: Optional[sitk.Image] = None,
        background_value=0,
        number_of_workers: Optional[int] = None
    ):
        super().__init__(mask=mask, background_value=background_value, number_of_workers=number_of_workers)
        self.frobenius_norm_weight = frobenius_norm_weight

    def _scan(self, values):
        if len(values) == 0:
            return (0.0,)
        return (float(np.max(frobenius_norm(values))),)

    def _merge(self, accumulators):
        max_norm = float(np.max(accumulators[:, 0])) if len(accumulators) else 0.0
        return EstimatedParameters(
            alpha=DEFAULT_PARAMETER,
            beta=DEFAULT_PARAMETER,
            c=self.frobenius_norm_weight * max_norm
        )

class KrcahParameterEstimator(ParameterEstimator):
    """Parameter estimation for the Krcah bone enhancement measure.

    c (gamma in Krcah et al.) is a factor times the average of
    |λ1| + |λ2| + |λ3| over the foreground. Two parameter sets exist:

        'implementation': alpha = beta = sqrt(2) * 0.5, factor = sqrt(2) * 0.25
        'journal':        alpha = beta = 0.5,           factor = 0.25
    """

    NUMBER_OF_STATISTICS = 2

    PARAMETER_SETS = {
        'implementation': (np.sqrt(2.0) * 0.5, np.sqrt(2.0) * 0.5, np.sqrt(2.0) * 0.25),
        'journal': (0.5, 0.5, 0.25),
    }

    def __init__(
        self,
        parameter_set: str = 'implementation',
        mask: Optional[sitk.Image] = None,
        background_value=0,
        number_of_workers: Optional[int] = None
    ):
        if parameter_set not in self.PARAMETER_SETS:
            raise InvalidParameterError(
                f"Unknown Krcah parameter set '{parameter_set}', expected one of {sorted(self.PARAMETER_SETS)}"
            )
        super().__init__(mask=mask, background_value=background_value, number_of_workers=number_of_workers)
        self.parameter_set = parameter_set

    def _scan(self, values):
        # (sum of absolute traces, voxel count)
        return (float(np.sum(np.abs(values))), float(len(values)))

    def _merge(self, accumulators):
        total = float(np.sum(accumulators[:, 0]))
        count = float(np.sum(accumulators[:, 1]))
        average_trace = total / count if count > 0 else 0.0
        alpha, beta, factor = self.PARAMETER_SETS[self.parameter_set]
        return EstimatedParameters(alpha=float(alpha), beta=float(beta), c=float(factor * average_trace))
