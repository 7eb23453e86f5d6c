"""
Per-voxel eigen-decomposition of a Hessian field.
"""

import logging
from typing import Optional
import numpy as np
from tqdm import tqdm

from .data_structures import EigenValueField, EigenValueOrder, HessianField
from .exceptions import DimensionMismatchError
from .parallel import default_number_of_workers, run_partitioned, split_regions

logger = logging.getLogger(__name__)

def order_eigenvalues(eigenvalues: np.ndarray, order: EigenValueOrder) -> np.ndarray:
    """Reorder eigenvalues along the last axis.

    Args:
        eigenvalues: Array (..., d) in ascending signed order, as returned by eigvalsh
        order: Requested ordering policy

    Returns:
        Array (..., d) ordered according to the policy
    """
    if order == EigenValueOrder.BY_MAGNITUDE:
        # Stable sort keeps the signed order for equal magnitudes
        idx = np.argsort(np.abs(eigenvalues), axis=-1, kind='stable')
        return np.take_along_axis(eigenvalues, idx, axis=-1)
    if order == EigenValueOrder.BY_VALUE:
        return np.sort(eigenvalues, axis=-1)
    if order == EigenValueOrder.DO_NOT_ORDER:
        return eigenvalues
    raise ValueError(f"Unknown eigenvalue order {order}")

def compute_eigenvalues(
    hessian: HessianField,
    order: EigenValueOrder = EigenValueOrder.BY_MAGNITUDE,
    dimension: int = 3,
    number_of_workers: Optional[int] = None,
    show_progress: bool = False
) -> EigenValueField:
    """Compute the ordered eigenvalues of every voxel tensor.

    Args:
        hessian: Hessian field to decompose
        order: Ordering policy requested by the consumer
        dimension: Expected tensor dimension
        number_of_workers: Threads used over slabs of the grid
        show_progress: Show a progress bar over the slabs

    Returns:
        EigenValueField with values of shape grid shape + (dimension,)

    Raises:
        DimensionMismatchError: If the tensors are not dimension x dimension
            or do not match the grid dimensionality
    """
    tensors = hessian.tensors
    if tensors.shape[-2:] != (dimension, dimension):
        raise DimensionMismatchError(
            f"Expected {dimension}x{dimension} tensors, got {tensors.shape[-2]}x{tensors.shape[-1]}"
        )
    if hessian.geometry.dimension != dimension:
        raise DimensionMismatchError(
            f"Grid dimension {hessian.geometry.dimension} does not match tensor dimension {dimension}"
        )

    if number_of_workers is None:
        number_of_workers = default_number_of_workers()

    shape = tensors.shape[:-2]
    eigenvalues = np.zeros(shape + (dimension,), dtype=np.float64)
    regions = split_regions(shape, number_of_workers)
    progress = tqdm(total=len(regions), desc="Computing eigenvalues", leave=False, disable=not show_progress)

    def decompose_region(index, region):
        # Every worker writes only its own slab
        eigenvalues[region] = order_eigenvalues(np.linalg.eigvalsh(tensors[region]), order)
        progress.update(1)

    try:
        run_partitioned(decompose_region, regions, number_of_workers)
    finally:
        progress.close()

    logger.debug(f"Eigenvalues computed over {len(regions)} partitions ordered {order.name}")
    return EigenValueField(values=eigenvalues, order=order, geometry=hessian.geometry)
