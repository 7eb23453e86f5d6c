"""Multi-scale Hessian-based enhancement of bone, sheet and vessel structures"""

__version__ = "0.1.0"

from .config import EnhancementParameters
from .data_structures import (EigenValueField, EigenValueOrder, EnhanceType, EstimatedParameters, HessianField,
                              ImageGeometry)
from .eigen_analysis import compute_eigenvalues
from .exceptions import (ConfigurationError, DimensionMismatchError, DomainError, EnhancementError,
                         InvalidParameterError)
from .hessian import compute_hessian
from .measures import DescoteauxSheetness, EigenToMeasure, FrangiVesselness, KrcahBoneEnhancement, apply_measure
from .multiscale import MultiScaleHessianEnhancementFilter, maximum_absolute_value, response_at_scale
from .parameter_estimation import DescoteauxParameterEstimator, KrcahParameterEstimator, frobenius_norm
from .scales import (SigmaStepMethod, generate_equispaced_sigma_array, generate_logarithmic_sigma_array,
                     generate_sigma_array)

__all__ = [
    'EnhancementParameters',
    'EigenValueField', 'EigenValueOrder', 'EnhanceType', 'EstimatedParameters', 'HessianField', 'ImageGeometry',
    'compute_eigenvalues', 'compute_hessian',
    'ConfigurationError', 'DimensionMismatchError', 'DomainError', 'EnhancementError', 'InvalidParameterError',
    'DescoteauxSheetness', 'EigenToMeasure', 'FrangiVesselness', 'KrcahBoneEnhancement', 'apply_measure',
    'MultiScaleHessianEnhancementFilter', 'maximum_absolute_value', 'response_at_scale',
    'DescoteauxParameterEstimator', 'KrcahParameterEstimator', 'frobenius_norm',
    'SigmaStepMethod', 'generate_equispaced_sigma_array', 'generate_logarithmic_sigma_array', 'generate_sigma_array',
]
