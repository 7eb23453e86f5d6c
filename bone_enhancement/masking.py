"""
Region-of-interest masks.

A mask is a label image whose grid is contained in the image grid: same
dimension, spacing and direction, with its origin on a voxel of the image.
Voxels are foreground when they lie inside the mask grid and their label
differs from the background value.
"""

import numpy as np
import SimpleITK as sitk
from typing import Optional, Tuple

from .data_structures import ImageGeometry
from .exceptions import DomainError

# Tolerance when matching mask and image grids
GRID_TOLERANCE = 1e-4

def mask_region(geometry: ImageGeometry, mask: sitk.Image) -> Tuple[slice, ...]:
    """Locate the mask grid inside the image grid

    Args:
        geometry: Image grid
        mask: Label image

    Returns:
        Slices (numpy order) selecting the mask grid in image arrays

    Raises:
        DomainError: If the mask grid is not contained in the image grid
    """
    if mask.GetDimension() != geometry.dimension:
        raise DomainError(
            f"Mask dimension {mask.GetDimension()} does not match image dimension {geometry.dimension}"
        )

    if not np.allclose(mask.GetSpacing(), geometry.spacing, atol=GRID_TOLERANCE):
        raise DomainError(f"Mask spacing {mask.GetSpacing()} differs from image spacing {geometry.spacing}")
    if not np.allclose(mask.GetDirection(), geometry.direction, atol=GRID_TOLERANCE):
        raise DomainError("Mask direction differs from image direction")

    continuous_start = geometry.physical_point_to_continuous_index(mask.GetOrigin())
    start = np.round(continuous_start).astype(int)
    if not np.allclose(continuous_start, start, atol=GRID_TOLERANCE):
        raise DomainError(f"Mask origin {mask.GetOrigin()} does not lie on an image voxel")

    stop = start + np.array(mask.GetSize(), dtype=int)
    if np.any(start < 0) or np.any(stop > np.array(geometry.size)):
        raise DomainError(
            f"Mask region [{start.tolist()}, {stop.tolist()}) is not contained in image region "
            f"[{[0] * geometry.dimension}, {list(geometry.size)})"
        )

    return tuple(slice(int(a), int(b)) for a, b in zip(reversed(start), reversed(stop)))

def foreground_mask(
    geometry: ImageGeometry,
    mask: Optional[sitk.Image],
    background_value=0
) -> Optional[np.ndarray]:
    """Boolean array over the image grid marking foreground voxels

    Returns None when no mask is given, meaning every voxel is foreground.
    """
    if mask is None:
        return None

    region = mask_region(geometry, mask)
    foreground = np.zeros(geometry.shape, dtype=bool)
    foreground[region] = sitk.GetArrayViewFromImage(mask) != background_value
    return foreground
