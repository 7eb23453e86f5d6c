import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Optional

import numpy as np

from . import parameter_summary as defaults
from .data_structures import EnhanceType
from .exceptions import InvalidParameterError
from .measures import (DescoteauxSheetness, EigenToMeasure, FrangiVesselness, KrcahBoneEnhancement,
                       default_estimator)
from .parameter_estimation import KrcahParameterEstimator
from .scales import SigmaStepMethod, generate_sigma_array

logger = logging.getLogger(__name__)

MEASURES = {
    'krcah': KrcahBoneEnhancement,
    'descoteaux': DescoteauxSheetness,
    'frangi': FrangiVesselness,
}

@dataclass
class EnhancementParameters:
    """Parameters for multi-scale enhancement

    Parameters:
        measure: str = 'krcah'
            Eigenvalue-to-measure function: 'krcah', 'descoteaux' or 'frangi'.

        sigma_minimum, sigma_maximum: float = 0.5, 1.0 (mm)
            Range of scales. Swapped if given in the wrong order.

        number_of_sigma_steps: int = 2
            Number of scales. Forced to 1 when minimum equals maximum.

        sigma_step_method: str = 'equispaced'
            'equispaced' or 'logarithmic' spacing of the scales.

        alpha, beta, c: float = 0.5
            Formula constants, used only when estimate_parameters is False.

        frobenius_norm_weight: float = 0.5
            Weight of the maximum Frobenius norm in the estimated c
            (descoteaux, frangi).

        krcah_parameter_set: str = 'implementation'
            'implementation' or 'journal' constants for the krcah estimator.

        estimate_parameters: bool = True
            Estimate the constants from each scale's eigenvalues.

        enhance_type: str = 'bright'
            'bright' structures on dark background, or 'dark'.

        background_value: int = 0
            Mask label treated as outside the region of interest.

        number_of_workers: Optional[int] = None
            Threads used within one scale (None uses every core).
    """
    measure: str = defaults.MEASURE
    sigma_minimum: float = defaults.SIGMA_MINIMUM
    sigma_maximum: float = defaults.SIGMA_MAXIMUM
    number_of_sigma_steps: int = defaults.NUMBER_OF_SIGMA_STEPS
    sigma_step_method: str = defaults.SIGMA_STEP_METHOD
    alpha: float = defaults.ALPHA
    beta: float = defaults.BETA
    c: float = defaults.C
    frobenius_norm_weight: float = defaults.FROBENIUS_NORM_WEIGHT
    krcah_parameter_set: str = defaults.KRCAH_PARAMETER_SET
    estimate_parameters: bool = True
    enhance_type: str = defaults.ENHANCE_TYPE
    background_value: int = defaults.BACKGROUND_VALUE
    number_of_workers: Optional[int] = None

    @classmethod
    def get_parameter_sets(cls):
        """Get the predefined parameter sets"""
        return {
            'default': cls(),
            'krcah_bone': cls(
                measure='krcah',
                sigma_minimum=0.5,   # Thin cortical shell
                sigma_maximum=1.0,
                number_of_sigma_steps=2
            ),
            'descoteaux_sheet': cls(
                measure='descoteaux',
                sigma_minimum=0.5,
                sigma_maximum=3.0,   # Thicker plates
                number_of_sigma_steps=5,
                sigma_step_method='logarithmic'
            ),
            'frangi_vessel': cls(
                measure='frangi',
                sigma_minimum=0.6,   # Smallest vessels at isotropic voxel size
                sigma_maximum=6.0,   # Largest vessels
                number_of_sigma_steps=10,
                sigma_step_method='logarithmic'
            ),
        }

    @classmethod
    def from_dict(cls, params_dict, base: Optional['EnhancementParameters'] = None):
        """Create parameters from dictionary of overrides"""
        params = cls(**asdict(base)) if base is not None else cls()
        known = {f.name for f in fields(cls)}
        for key, value in params_dict.items():
            if key in known:
                setattr(params, key, value)
            else:
                logger.warning(f"Ignoring unknown enhancement parameter '{key}'")
        return params

    @classmethod
    def from_json(cls, path, base: Optional['EnhancementParameters'] = None):
        """Create parameters from a JSON file of overrides"""
        with open(path, 'r') as f:
            return cls.from_dict(json.load(f), base=base)

    def to_dict(self):
        return asdict(self)

    def validate(self):
        """Check values that would only fail deep inside the pipeline"""
        if self.measure not in MEASURES:
            raise InvalidParameterError(f"Unknown measure '{self.measure}', expected one of {sorted(MEASURES)}")
        if self.enhance_type not in ('bright', 'dark'):
            raise InvalidParameterError(f"enhance_type must be 'bright' or 'dark', got '{self.enhance_type}'")
        if self.krcah_parameter_set not in KrcahParameterEstimator.PARAMETER_SETS:
            raise InvalidParameterError(f"Unknown Krcah parameter set '{self.krcah_parameter_set}'")
        for name in ('alpha', 'beta'):
            if not getattr(self, name) > 0:
                raise InvalidParameterError(f"{name} must be positive, got {getattr(self, name)}")
        if self.c < 0:
            raise InvalidParameterError(f"c must not be negative, got {self.c}")
        if self.sigma_minimum <= 0 or self.sigma_maximum <= 0:
            raise InvalidParameterError(
                f"Sigma bounds must be positive, got {self.sigma_minimum} and {self.sigma_maximum}"
            )
        if self.sigma_step_method not in [m.value for m in SigmaStepMethod]:
            raise InvalidParameterError(f"Unknown sigma step method '{self.sigma_step_method}'")

    def sigmas(self) -> np.ndarray:
        """Scale schedule described by these parameters"""
        return generate_sigma_array(
            self.sigma_minimum,
            self.sigma_maximum,
            int(self.number_of_sigma_steps),
            SigmaStepMethod(self.sigma_step_method)
        )

    def build_measure(self) -> EigenToMeasure:
        """Configured measure, with its estimator when estimation is enabled"""
        self.validate()
        measure_type = MEASURES[self.measure]

        estimator = None
        if self.estimate_parameters:
            if measure_type is KrcahBoneEnhancement:
                estimator = default_estimator(
                    measure_type,
                    parameter_set=self.krcah_parameter_set,
                    background_value=self.background_value,
                    number_of_workers=self.number_of_workers
                )
            else:
                estimator = default_estimator(
                    measure_type,
                    frobenius_norm_weight=self.frobenius_norm_weight,
                    background_value=self.background_value,
                    number_of_workers=self.number_of_workers
                )

        return measure_type(
            alpha=self.alpha,
            beta=self.beta,
            c=self.c,
            enhance_type=EnhanceType.BRIGHT if self.enhance_type == 'bright' else EnhanceType.DARK,
            estimator=estimator
        )
