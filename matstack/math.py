from numba import njit
import numpy as np
from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


@njit(fastmath=False, cache=True)
def det4(m):
    """
    Determinant of a 4x4 matrix using the 12-subfactor scheme
    (fewer multiplies than Laplace expansion; zero temporaries).

    Parameters
    ----------
    m : (4,4) float64 array

    Returns
    -------
    float64
        det(m)
    """
    # sub-factors from the first two rows (s-vector)
    s0 = m[0, 0] * m[1, 1] - m[1, 0] * m[0, 1]
    s1 = m[0, 0] * m[1, 2] - m[1, 0] * m[0, 2]
    s2 = m[0, 0] * m[1, 3] - m[1, 0] * m[0, 3]
    s3 = m[0, 1] * m[1, 2] - m[1, 1] * m[0, 2]
    s4 = m[0, 1] * m[1, 3] - m[1, 1] * m[0, 3]
    s5 = m[0, 2] * m[1, 3] - m[1, 2] * m[0, 3]

    # complementary sub-factors from the last two rows (c-vector)
    c5 = m[2, 2] * m[3, 3] - m[3, 2] * m[2, 3]
    c4 = m[2, 1] * m[3, 3] - m[3, 1] * m[2, 3]
    c3 = m[2, 1] * m[3, 2] - m[3, 1] * m[2, 2]
    c2 = m[2, 0] * m[3, 3] - m[3, 0] * m[2, 3]
    c1 = m[2, 0] * m[3, 2] - m[3, 0] * m[2, 2]
    c0 = m[2, 0] * m[3, 1] - m[3, 0] * m[2, 1]

    return (
        s0 * c5 - s1 * c4 + s2 * c3
        + s3 * c2 - s4 * c1 + s5 * c0
    )


# -------------------------------------------------------------------------
# analytic inverse for a 4x4 matrix
# -------------------------------------------------------------------------
@njit(fastmath=False, cache=True)
def inv4(m, tol):
    """
    Analytic inverse of a 4x4 matrix.
    Raises ZeroDivisionError if abs(det) <= tol or det is not finite.
    """

    # ---- step 1: the 12 sub-factors (exactly as det4) --------------------
    s0 = m[0, 0]*m[1, 1] - m[1, 0]*m[0, 1]
    s1 = m[0, 0]*m[1, 2] - m[1, 0]*m[0, 2]
    s2 = m[0, 0]*m[1, 3] - m[1, 0]*m[0, 3]
    s3 = m[0, 1]*m[1, 2] - m[1, 1]*m[0, 2]
    s4 = m[0, 1]*m[1, 3] - m[1, 1]*m[0, 3]
    s5 = m[0, 2]*m[1, 3] - m[1, 2]*m[0, 3]

    c5 = m[2, 2]*m[3, 3] - m[3, 2]*m[2, 3]
    c4 = m[2, 1]*m[3, 3] - m[3, 1]*m[2, 3]
    c3 = m[2, 1]*m[3, 2] - m[3, 1]*m[2, 2]
    c2 = m[2, 0]*m[3, 3] - m[3, 0]*m[2, 3]
    c1 = m[2, 0]*m[3, 2] - m[3, 0]*m[2, 2]
    c0 = m[2, 0]*m[3, 1] - m[3, 0]*m[2, 1]

    # ---- step 2: determinant & reciprocal --------------------------------
    det = (s0*c5 - s1*c4 + s2*c3 + s3*c2 - s4*c1 + s5*c0)
    # NaN fails the comparison, so it lands here too
    if not abs(det) > tol or not np.isfinite(det):
        raise ZeroDivisionError("Matrix is singular and cannot be inverted")
    inv_det = 1.0 / det

    # ---- step 3: build the adjugate (transposed cofactor matrix) ---------
    out = np.empty((4, 4), dtype=np.float64)

    out[0, 0] = (m[1, 1]*c5 - m[1, 2]*c4 + m[1, 3]*c3) * inv_det
    out[0, 1] = (-m[0, 1]*c5 + m[0, 2]*c4 - m[0, 3]*c3) * inv_det
    out[0, 2] = (m[3, 1]*s5 - m[3, 2]*s4 + m[3, 3]*s3) * inv_det
    out[0, 3] = (-m[2, 1]*s5 + m[2, 2]*s4 - m[2, 3]*s3) * inv_det

    out[1, 0] = (-m[1, 0]*c5 + m[1, 2]*c2 - m[1, 3]*c1) * inv_det
    out[1, 1] = (m[0, 0]*c5 - m[0, 2]*c2 + m[0, 3]*c1) * inv_det
    out[1, 2] = (-m[3, 0]*s5 + m[3, 2]*s2 - m[3, 3]*s1) * inv_det
    out[1, 3] = (m[2, 0]*s5 - m[2, 2]*s2 + m[2, 3]*s1) * inv_det

    out[2, 0] = (m[1, 0]*c4 - m[1, 1]*c2 + m[1, 3]*c0) * inv_det
    out[2, 1] = (-m[0, 0]*c4 + m[0, 1]*c2 - m[0, 3]*c0) * inv_det
    out[2, 2] = (m[3, 0]*s4 - m[3, 1]*s2 + m[3, 3]*s0) * inv_det
    out[2, 3] = (-m[2, 0]*s4 + m[2, 1]*s2 - m[2, 3]*s0) * inv_det

    out[3, 0] = (-m[1, 0]*c3 + m[1, 1]*c1 - m[1, 2]*c0) * inv_det
    out[3, 1] = (m[0, 0]*c3 - m[0, 1]*c1 + m[0, 2]*c0) * inv_det
    out[3, 2] = (-m[3, 0]*s3 + m[3, 1]*s1 - m[3, 2]*s0) * inv_det
    out[3, 3] = (m[2, 0]*s3 - m[2, 1]*s1 + m[2, 2]*s0) * inv_det

    return out
