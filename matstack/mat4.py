from numpy import asarray as np_asarray
from numpy import array as np_array
from numpy import allclose as np_allclose
from numpy import array_equal as np_array_equal
from numpy import array2string as np_array2string
from numpy import isfinite as np_isfinite
from numpy import eye as np_eye
from numpy import float64 as np_float64
from numpy import shape as np_shape
from numpy import ndarray

from typing import Union, Optional, List, Tuple
from matstack.math import det4, inv4
from matstack.errors import SingularMatrixError

# absolute tolerance on the determinant; abs(det) <= tol counts as singular
SINGULAR_TOLERANCE = 1e-12


def _frozen(matrix) -> ndarray:
    m = np_array(matrix, dtype=np_float64, copy=True, order="C")
    m.flags.writeable = False
    return m


def _as_operand(other) -> Optional[ndarray]:
    """A (4, 4) float64 view of `other`, or None if it cannot be one."""
    try:
        other = np_asarray(other, dtype=np_float64)
    except (TypeError, ValueError):
        return None
    if other.shape != (4, 4):
        return None
    return other


class Mat4:
    """
    An immutable 4x4 homogeneous matrix.

    The backing array is copied on construction and marked read-only, so a
    Mat4 can be shared freely between stacks without aliasing. Building
    rotations, translations and the like is left to the caller; hand the
    finished 4x4 array to the constructor.

    Attributes:
        matrix (ndarray): read-only 4x4 float64 array.
    """
    __slots__ = ("_matrix",)

    def __init__(self, matrix: Optional[Union[ndarray, List, Tuple]] = None):
        if matrix is None:
            self._matrix = _IDENTITY
            return
        if isinstance(matrix, Mat4):
            self._matrix = matrix._matrix
            return
        shape = np_shape(matrix)
        if shape != (4, 4):
            raise ValueError(f"Invalid matrix shape: {shape}")
        self._matrix = _frozen(matrix)

    @classmethod
    def _wrap(cls, matrix: ndarray) -> "Mat4":
        """Adopt a freshly computed array without copying it."""
        instance = object.__new__(cls)
        matrix.flags.writeable = False
        instance._matrix = matrix
        return instance

    @classmethod
    def identity(cls) -> "Mat4":
        """
        Create an identity Mat4.

        Returns:
            A new Mat4 whose `matrix` is the identity matrix.
        """
        return cls()

    @property
    def matrix(self) -> ndarray:
        """The read-only 4x4 array."""
        return self._matrix

    def to_array(self) -> ndarray:
        """Return a writable copy of the underlying array."""
        return self._matrix.copy()

    def det(self) -> float:
        return float(det4(self._matrix))

    def inverse(self, tol: float = SINGULAR_TOLERANCE) -> "Mat4":
        """
        Analytic inverse of this matrix.

        Args:
            tol: absolute tolerance on the determinant. A matrix whose
                determinant satisfies ``abs(det) <= tol``, or is not finite,
                has no inverse.

        Raises:
            SingularMatrixError: if the matrix has no inverse.
        """
        try:
            return Mat4._wrap(inv4(self._matrix, tol))
        except ZeroDivisionError:
            raise SingularMatrixError(self, self.det(), tol) from None

    def is_invertible(self, tol: float = SINGULAR_TOLERANCE) -> bool:
        det = det4(self._matrix)
        return bool(abs(det) > tol and np_isfinite(det))

    def equals_exactly(self, other: "Mat4") -> bool:
        """Bit-for-bit equality, without any tolerance."""
        return isinstance(other, Mat4) and np_array_equal(self._matrix, other._matrix)

    def __matmul__(self, other: Union["Mat4", ndarray]) -> "Mat4":
        """
        Matrix product ``self @ other``: `other` is applied first, then `self`.
        """
        if isinstance(other, Mat4):
            return Mat4._wrap(self._matrix @ other._matrix)
        other = _as_operand(other)
        if other is None:
            return NotImplemented
        return Mat4._wrap(self._matrix @ other)

    def __rmatmul__(self, other: ndarray) -> "Mat4":
        other = _as_operand(other)
        if other is None:
            return NotImplemented
        return Mat4._wrap(other @ self._matrix)

    def __mul__(self, other: Union["Mat4", ndarray]) -> "Mat4":
        """
        Alias for the @ operator.
        """
        return self.__matmul__(other)

    def __eq__(self, other: object) -> bool:
        """
        True if `other` is a Mat4 and the matrices are equal within a small tolerance.
        """
        if not isinstance(other, Mat4):
            return False
        return bool(np_allclose(self._matrix, other._matrix))

    __hash__ = None

    # make ndarray @ Mat4 defer to __rmatmul__
    __array_ufunc__ = None

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        mat = np_array2string(self._matrix, precision=6, separator=', ')
        return f"{cls}(matrix=\n{mat}\n)"

    def __str__(self) -> str:
        return self.__repr__()

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self._matrix.copy()
        return self._matrix.astype(dtype)

    def __copy__(self) -> "Mat4":
        # immutable, so sharing is safe
        return self

    def __deepcopy__(self, memo) -> "Mat4":
        return self

    def __reduce__(self):
        return (self.__class__, (self._matrix.copy(),))


_IDENTITY = _frozen(np_eye(4, dtype=np_float64))


def as_mat4(value: Union[Mat4, ndarray, List, Tuple]) -> Mat4:
    """Coerce a Mat4 or 4x4 array-like to a Mat4, copying arrays."""
    if isinstance(value, Mat4):
        return value
    return Mat4(value)
