"""
Exception types raised by csvgrid.
"""


class GridError(Exception):
    """Base exception for csvgrid errors."""
    pass


class GridValidationError(GridError, ValueError):
    """Raised when input validation fails."""
    pass


class GridNotFoundError(GridError, FileNotFoundError):
    """Raised when a CSV source path does not exist."""
    pass


class GridAllocError(GridError, MemoryError):
    """Raised when growing or shrinking grid storage fails."""
    pass


class GridWriteError(GridError, OSError):
    """Raised when a grid cannot be written to its destination."""
    pass


class GridIndexError(GridError, IndexError):
    """Raised when a row or field that must exist does not."""
    pass


class GridStateError(GridError):
    """Raised when a row is found without any fields."""
    pass
