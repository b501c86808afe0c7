"""
Brown-Conrady lens distortion on the normalized camera plane.

Distortion equations for a normalized point (x, y), r^2 = x^2 + y^2:
    radial = k1*r^2 + k2*r^4 + k3*r^6
    dx = x*radial + t2*(r^2 + 2*x^2) + 2*t1*x*y
    dy = y*radial + t1*(r^2 + 2*y^2) + 2*t2*x*y
    distort(p) = p + (dx, dy)

The inverse has no closed form and is solved by fixed-point iteration
(Heikkila, "Geometric Camera Calibration Using Circular Control Points",
2000), bounded by a maximum number of iterations.
"""

from enum import IntEnum
from typing import Sequence
import logging

import numpy as np

logger = logging.getLogger(__name__)

# Convergence threshold on the L1 distance in the normalized plane
UNDISTORT_EPSILON = 1e-10
UNDISTORT_MAX_ITERATIONS = 50

NUM_BROWN_COEFFS = 5


class DistortionParamsIdx(IntEnum):
    """Position of each distortion coefficient in the Brown parameter vector."""
    IDX_DISTORTION_K1 = 4
    IDX_DISTORTION_K2 = 5
    IDX_DISTORTION_K3 = 6
    IDX_DISTORTION_T1 = 7
    IDX_DISTORTION_T2 = 8


class UndistortionError(RuntimeError):
    """Raised when the distortion inverse does not converge."""

    def __init__(self, max_iterations: int, residual: float):
        self.max_iterations = max_iterations
        self.residual = residual
        super().__init__(
            f"Distortion inverse did not converge within {max_iterations} iterations "
            f"(L1 residual {residual:.3e})"
        )


def _padded_coeffs(coeffs: Sequence[float]) -> np.ndarray:
    """Coefficients as [k1, k2, k3, t1, t2], missing trailing terms set to zero."""
    coeffs = np.asarray(coeffs, dtype=np.float64).ravel()
    if coeffs.size > NUM_BROWN_COEFFS:
        raise ValueError(f"Expected at most {NUM_BROWN_COEFFS} distortion coefficients, got {coeffs.size}")
    padded = np.zeros(NUM_BROWN_COEFFS)
    padded[:coeffs.size] = coeffs
    return padded


def brown_conrady_displacement(coeffs: Sequence[float], points: np.ndarray) -> np.ndarray:
    """
    Displacement added to a normalized point by the lens.

    Args:
        coeffs: [k1, k2, k3, t1, t2]; shorter lists are zero padded so
            radial-only models ([k1] or [k1, k2, k3]) use the same kernel
        points: Normalized point (2,) or batch of points (N, 2)

    Returns:
        Displacement with the same shape as ``points``
    """
    k1, k2, k3, t1, t2 = _padded_coeffs(coeffs)
    points = np.asarray(points, dtype=np.float64)
    x = points[..., 0]
    y = points[..., 1]

    r2 = x * x + y * y
    r4 = r2 * r2
    r6 = r4 * r2

    radial = k1 * r2 + k2 * r4 + k3 * r6
    t_x = t2 * (r2 + 2 * x * x) + 2 * t1 * x * y
    t_y = t1 * (r2 + 2 * y * y) + 2 * t2 * x * y

    return np.stack([x * radial + t_x, y * radial + t_y], axis=-1)


def distort(coeffs: Sequence[float], points: np.ndarray) -> np.ndarray:
    """Apply lens distortion to normalized point(s)."""
    points = np.asarray(points, dtype=np.float64)
    return points + brown_conrady_displacement(coeffs, points)


def undistort(
    coeffs: Sequence[float],
    points: np.ndarray,
    epsilon: float = UNDISTORT_EPSILON,
    max_iterations: int = UNDISTORT_MAX_ITERATIONS,
) -> np.ndarray:
    """
    Remove lens distortion from normalized point(s).

    Starting from p_u = p_d, iterate p_u = p_d - displacement(p_u) until
    |p_u + displacement(p_u) - p_d|_1 < epsilon for every point.

    Args:
        coeffs: Distortion coefficients, see brown_conrady_displacement
        points: Distorted normalized point (2,) or batch (N, 2)
        epsilon: Convergence threshold (L1 norm per point)
        max_iterations: Maximum number of fixed-point updates

    Returns:
        Undistorted normalized point(s), same shape as ``points``

    Raises:
        UndistortionError: If the iteration does not converge, which happens
            for coefficients outside the convergence radius of the fixed point
    """
    points_distorted = np.asarray(points, dtype=np.float64)
    points_undistorted = points_distorted.copy()
    if points_undistorted.size == 0:
        return points_undistorted

    displacement = brown_conrady_displacement(coeffs, points_undistorted)
    residual = _l1_residual(points_undistorted + displacement - points_distorted)

    iteration = 0
    while not residual < epsilon:
        if iteration >= max_iterations or not np.isfinite(residual):
            raise UndistortionError(max_iterations, residual)
        points_undistorted = points_distorted - displacement
        displacement = brown_conrady_displacement(coeffs, points_undistorted)
        residual = _l1_residual(points_undistorted + displacement - points_distorted)
        iteration += 1

    logger.debug(f"Undistortion converged after {iteration} iterations (residual {residual:.3e})")
    return points_undistorted


def _l1_residual(error: np.ndarray) -> float:
    """Largest per-point L1 norm of the error."""
    return float(np.max(np.sum(np.abs(np.atleast_2d(error)), axis=-1)))
