from enum import Enum
from dataclasses import dataclass
from typing import Sequence, Tuple
import numpy as np
import SimpleITK as sitk

class EigenValueOrder(Enum):
    """Ordering policy for the eigenvalues of each voxel"""
    BY_VALUE = 1  # λ1 <= λ2 <= λ3
    BY_MAGNITUDE = 2  # |λ1| <= |λ2| <= |λ3|, sign kept
    DO_NOT_ORDER = 3  # Solver order

class EnhanceType(Enum):
    """Polarity of the structures to enhance"""
    BRIGHT = -1
    DARK = 1

@dataclass(frozen=True)
class ImageGeometry:
    """Index to physical point transform of a grid

    Attributes:
        size: Number of voxels along each image axis (x, y, z order)
        origin: Physical position of the first voxel
        spacing: Physical voxel size along each axis
        direction: Row-major direction cosine matrix
    """
    size: Tuple[int, ...]
    origin: Tuple[float, ...]
    spacing: Tuple[float, ...]
    direction: Tuple[float, ...]

    @classmethod
    def from_image(cls, image: sitk.Image) -> 'ImageGeometry':
        return cls(
            size=tuple(int(s) for s in image.GetSize()),
            origin=tuple(float(o) for o in image.GetOrigin()),
            spacing=tuple(float(s) for s in image.GetSpacing()),
            direction=tuple(float(d) for d in image.GetDirection())
        )

    @classmethod
    def default(cls, size: Sequence[int]) -> 'ImageGeometry':
        """Unit spacing, zero origin and identity direction for the given size"""
        dimension = len(size)
        return cls(
            size=tuple(int(s) for s in size),
            origin=(0.0,) * dimension,
            spacing=(1.0,) * dimension,
            direction=tuple(float(v) for v in np.eye(dimension).ravel())
        )

    @property
    def dimension(self) -> int:
        return len(self.size)

    @property
    def shape(self) -> Tuple[int, ...]:
        """Array shape in numpy (z, y, x) order"""
        return tuple(reversed(self.size))

    def direction_matrix(self) -> np.ndarray:
        return np.array(self.direction, dtype=float).reshape(self.dimension, self.dimension)

    def physical_point_to_continuous_index(self, point: Sequence[float]) -> np.ndarray:
        """Map a physical point to a (possibly fractional) index in x, y, z order"""
        offset = np.asarray(point, dtype=float) - np.asarray(self.origin, dtype=float)
        index_to_physical = self.direction_matrix() @ np.diag(self.spacing)
        return np.linalg.solve(index_to_physical, offset)

    def image_from_array(self, array: np.ndarray) -> sitk.Image:
        """Wrap an array shaped like this grid into an image carrying this geometry"""
        image = sitk.GetImageFromArray(array)
        image.SetOrigin(self.origin)
        image.SetSpacing(self.spacing)
        image.SetDirection(self.direction)
        return image

@dataclass
class HessianField:
    """Scale-normalized second derivative tensor at every voxel

    Attributes:
        tensors: Array of shape geometry.shape + (d, d); tensor indices follow
            image axis order (x, y, z)
        sigma: Scale the tensors were computed at
        geometry: Grid the tensors live on
    """
    tensors: np.ndarray
    sigma: float
    geometry: ImageGeometry

    @property
    def tensor_dimension(self) -> int:
        return self.tensors.shape[-1]

@dataclass
class EigenValueField:
    """Eigenvalues of every voxel tensor, tagged with the ordering used

    Attributes:
        values: Array of shape geometry.shape + (d,)
        order: Ordering policy applied to the last axis
        geometry: Grid the eigenvalues live on
    """
    values: np.ndarray
    order: EigenValueOrder
    geometry: ImageGeometry

    @classmethod
    def from_array(cls, values: np.ndarray, order: EigenValueOrder = EigenValueOrder.BY_MAGNITUDE) -> 'EigenValueField':
        """Build a field on a default geometry from an array shaped (z, y, x, d)"""
        geometry = ImageGeometry.default(tuple(reversed(values.shape[:-1])))
        return cls(values=values, order=order, geometry=geometry)

    @property
    def number_of_eigenvalues(self) -> int:
        return self.values.shape[-1]

@dataclass
class EstimatedParameters:
    """Constants consumed by an eigenvalue-to-measure formula"""
    alpha: float = 0.5
    beta: float = 0.5
    c: float = 0.5
