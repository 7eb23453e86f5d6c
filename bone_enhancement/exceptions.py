"""
Errors raised by the enhancement pipeline.

All of them are raised from precondition checks before any voxel is processed.
"""


class EnhancementError(Exception):
    """Base class for enhancement pipeline errors."""
    pass


class ConfigurationError(EnhancementError):
    """Raised when a required collaborator or the scale schedule is missing."""
    pass


class InvalidParameterError(EnhancementError, ValueError):
    """Raised for non-positive scales or step counts."""
    pass


class DomainError(EnhancementError, ValueError):
    """Raised when a mask is not contained in the image domain."""
    pass


class DimensionMismatchError(EnhancementError, ValueError):
    """Raised when tensor or eigenvalue dimensionality is not the expected one."""
    pass
