"""Exception types raised by matstack."""

from numpy import array2string as np_array2string


class MatStackError(Exception):
    """Base exception for all matstack errors."""


class UnderflowError(MatStackError, IndexError):
    """Raised when a pop or unwind would remove the identity at the bottom of the stack."""


class OutOfBoundsError(MatStackError, IndexError):
    """Raised when a rebase index lies outside ``[1, len(stack) - 1]``."""


class SingularMatrixError(MatStackError, ZeroDivisionError):
    """Raised by ``Mat4.inverse`` when the determinant is within tolerance of zero."""

    def __init__(self, matrix, det: float, tol: float):
        self.matrix = matrix
        self.det = det
        self.tol = tol
        super().__init__(
            f"matrix is singular (determinant {det:g}, tolerance {tol:g})")


class NoInverseError(MatStackError, ArithmeticError):
    """
    Raised when a rebase is aborted because a cumulative matrix along the
    affected chain has no inverse. The stack has been restored by the time
    this is raised.

    Attributes:
        matrix (Mat4): the singular cumulative matrix.
        index (int): the stack index that matrix was stored at.
    """

    def __init__(self, matrix, index: int, det: float):
        self.matrix = matrix
        self.index = index
        self.det = det
        mat = np_array2string(matrix.matrix, precision=6, separator=', ')
        super().__init__(
            f"cannot find inverse of matrix at index {index} of the matrix stack "
            f"(determinant {det:g}); rebase aborted\n{mat}")


__all__ = [
    "MatStackError",
    "UnderflowError",
    "OutOfBoundsError",
    "SingularMatrixError",
    "NoInverseError",
]
