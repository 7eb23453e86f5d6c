"""
Scale schedule generation.
"""

from enum import Enum
import numpy as np

from .exceptions import InvalidParameterError

MINIMUM_STEP = 1e-10

class SigmaStepMethod(Enum):
    EQUISPACED = 'equispaced'
    LOGARITHMIC = 'logarithmic'

def generate_sigma_array(
    sigma_minimum: float,
    sigma_maximum: float,
    number_of_sigma_steps: int,
    sigma_step_method: SigmaStepMethod = SigmaStepMethod.EQUISPACED
) -> np.ndarray:
    """Generate the scales to process.

    Bounds given in the wrong order are swapped, and equal bounds give a single
    scale whatever the requested count. The first scale is always exactly the
    minimum.

    Args:
        sigma_minimum: Smallest scale
        sigma_maximum: Largest scale
        number_of_sigma_steps: Number of scales, at least 1
        sigma_step_method: Equispaced or logarithmic spacing

    Returns:
        Read-only array of scales in non-decreasing order

    Raises:
        InvalidParameterError: If fewer than one step is requested
    """
    if number_of_sigma_steps < 1:
        raise InvalidParameterError(
            f"Number of sigma values requested is less than 1: {number_of_sigma_steps}"
        )
    sigma_step_method = SigmaStepMethod(sigma_step_method)

    if sigma_minimum > sigma_maximum:
        sigma_minimum, sigma_maximum = sigma_maximum, sigma_minimum

    if sigma_minimum == sigma_maximum:
        number_of_sigma_steps = 1

    levels = np.arange(1, int(number_of_sigma_steps))
    if sigma_step_method == SigmaStepMethod.EQUISPACED:
        step = max(MINIMUM_STEP, (sigma_maximum - sigma_minimum) / (number_of_sigma_steps - 1)) if len(levels) else 0.0
        rest = sigma_minimum + step * levels
    else:
        if sigma_minimum <= 0:
            raise InvalidParameterError(f"Logarithmic steps require a positive minimum sigma, got {sigma_minimum}")
        log_minimum = np.log(sigma_minimum)
        step = max(MINIMUM_STEP, (np.log(sigma_maximum) - log_minimum) / (number_of_sigma_steps - 1)) if len(levels) else 0.0
        rest = np.exp(log_minimum + step * levels)

    sigmas = np.concatenate(([float(sigma_minimum)], rest.astype(np.float64)))
    sigmas.setflags(write=False)
    return sigmas

def generate_equispaced_sigma_array(sigma_minimum: float, sigma_maximum: float, number_of_sigma_steps: int) -> np.ndarray:
    return generate_sigma_array(sigma_minimum, sigma_maximum, number_of_sigma_steps, SigmaStepMethod.EQUISPACED)

def generate_logarithmic_sigma_array(sigma_minimum: float, sigma_maximum: float, number_of_sigma_steps: int) -> np.ndarray:
    return generate_sigma_array(sigma_minimum, sigma_maximum, number_of_sigma_steps, SigmaStepMethod.LOGARITHMIC)
