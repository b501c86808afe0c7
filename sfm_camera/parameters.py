"""
Camera parameter containers.

Intrinsic parameters describe the optics and sensor (focal length,
principal point, distortion) and are shared by every image taken with the
same camera. Extrinsic parameters describe where the camera is for one
image, as a rotation R and a camera center C in world coordinates.

Conventions:
    - Camera frame looks along +Z, X right, Y down
    - World -> camera: x = R @ (X - C) = R @ X + t, with t = -R @ C
    - Camera -> world: X = R.T @ x + C
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging

import numpy as np
from scipy.spatial.transform import Rotation

from .camera_type import CameraModelType, is_pinhole

logger = logging.getLogger(__name__)


@dataclass
class CameraParams:
    """Tagged parameter bundle consumed by ``init_camera``."""
    type: CameraModelType


@dataclass
class PinholeCameraInitParams(CameraParams):
    """
    Initial values for any pinhole-family camera.

    The distortion list is model specific: empty for the undistorted
    pinhole, [k1] for radial1, [k1, k2, k3] for radial3 and
    [k1, k2, k3, t1, t2] for Brown-Conrady.
    """
    fx: float = 0.0
    fy: float = 0.0
    cx: float = 0.0
    cy: float = 0.0
    distortion: List[float] = field(default_factory=list)


class PinholeIntrinsicParams:
    """
    Focal length, principal point and distortion coefficients of a pinhole camera.

    Starts empty and is populated once through ``init_camera``. After that
    the values are mutated in place, typically by an optimizer pushing a new
    parameter vector every iteration.
    """

    def __init__(self):
        self._fx = 0.0
        self._fy = 0.0
        self._cx = 0.0
        self._cy = 0.0
        self._distortion: List[float] = []

    def init_camera(self, params: CameraParams) -> bool:
        """
        Populate from a parameter bundle.

        The bundle is only read, never stored, so the caller keeps no
        aliasing to the live parameters whatever the outcome.

        Args:
            params: Tagged parameter bundle

        Returns:
            True if the bundle belongs to the pinhole family and was applied,
            False otherwise (parameters left untouched)

        Raises:
            ValueError: If a value is not numeric (parameters left untouched)
        """
        if not isinstance(params, PinholeCameraInitParams) or not is_pinhole(params.type):
            logger.debug(f"Rejected camera parameters of type {params.type!r}")
            return False

        # Convert before assigning; a bad value leaves the parameters untouched
        values = [float(params.fx), float(params.fy), float(params.cx), float(params.cy)]
        distortion = [float(d) for d in params.distortion]

        self._fx, self._fy, self._cx, self._cy = values
        self._distortion = distortion
        return True

    @property
    def mean_focal_length(self) -> float:
        return (self._fx + self._fy) / 2.0

    @property
    def fx(self) -> float:
        return self._fx

    @property
    def fy(self) -> float:
        return self._fy

    @property
    def cx(self) -> float:
        return self._cx

    @property
    def cy(self) -> float:
        return self._cy

    def set_focal_length(self, focal_length: float) -> None:
        self._fx = self._fy = float(focal_length)

    def set_focal_length_x(self, focal_length_x: float) -> None:
        self._fx = float(focal_length_x)

    def set_focal_length_y(self, focal_length_y: float) -> None:
        self._fy = float(focal_length_y)

    def set_principal_point(self, cx: float, cy: float) -> None:
        self._cx = float(cx)
        self._cy = float(cy)

    def set_principal_point_x(self, cx: float) -> None:
        self._cx = float(cx)

    def set_principal_point_y(self, cy: float) -> None:
        self._cy = float(cy)

    def set_distortion(self, distortion: Sequence[float]) -> None:
        self._distortion = [float(d) for d in distortion]

    @property
    def distortion(self) -> List[float]:
        """Copy of the distortion coefficients."""
        return list(self._distortion)

    @property
    def intrinsic_matrix(self) -> np.ndarray:
        """
        3x3 camera matrix.

        Returns:
            K = [[fx, 0, cx], [0, fy, cy], [0, 0, 1]]
        """
        return np.array([
            [self._fx, 0, self._cx],
            [0, self._fy, self._cy],
            [0, 0, 1]
        ], dtype=np.float64)

    def check_focal_length(self) -> None:
        """
        Ensure K is invertible.

        Raises:
            ValueError: If either focal length is zero, e.g. before init_camera
        """
        if self._fx == 0.0 or self._fy == 0.0:
            raise ValueError(f"Focal length must be non-zero, got (fx:{self._fx:g}, fy:{self._fy:g})")

    @property
    def inverse_intrinsic_matrix(self) -> np.ndarray:
        """
        Closed-form inverse of K.

        Returns:
            K^-1 = [[1/fx, 0, -cx/fx], [0, 1/fy, -cy/fy], [0, 0, 1]]

        Raises:
            ValueError: If either focal length is zero
        """
        self.check_focal_length()
        return np.array([
            [1.0 / self._fx, 0, -self._cx / self._fx],
            [0, 1.0 / self._fy, -self._cy / self._fy],
            [0, 0, 1]
        ], dtype=np.float64)

    def params_info(self) -> str:
        """Human readable focal length and principal point."""
        return (
            f"Focal Length: (fx:{self._fx:g}, fy:{self._fy:g})\n"
            f"Principal Point: (cx:{self._cx:g}, cy:{self._cy:g})\n"
        )


def validate_rotation_matrix(R: np.ndarray, tol: float = 1e-6) -> bool:
    """True if R is a 3x3 orthonormal matrix with determinant +1, within tol."""
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        return False
    orthonormal = np.max(np.abs(R.T @ R - np.eye(3))) <= tol
    return bool(orthonormal and abs(np.linalg.det(R) - 1.0) <= tol)


class ExtrinsicParams:
    """
    Camera pose as a rotation and a camera center.

    The rotation maps world directions to camera directions and must be a
    proper rotation. This is not enforced, a warning is logged otherwise.

    Two poses compose as
        (R1, C1) * (R2, C2) = (R1 @ R2, R1 @ C2 + C1)
    which is associative but not commutative.
    """

    def __init__(
        self,
        rotation: Optional[np.ndarray] = None,
        center: Optional[np.ndarray] = None,
    ):
        """
        Args:
            rotation: 3x3 world-to-camera rotation (identity if omitted)
            center: Camera center in world coordinates (origin if omitted)
        """
        self.rotation = np.eye(3) if rotation is None else np.asarray(rotation, dtype=np.float64)
        self.center = np.zeros(3) if center is None else np.asarray(center, dtype=np.float64).reshape(3)

        if self.rotation.shape != (3, 3):
            raise ValueError(f"rotation must be 3x3, got {self.rotation.shape}")
        if not validate_rotation_matrix(self.rotation):
            logger.warning(f"rotation is not a proper rotation matrix: {self.rotation.tolist()}")

    @classmethod
    def from_rotation_vector(
        cls, rotation_vector: Sequence[float], center: Optional[Sequence[float]] = None
    ) -> "ExtrinsicParams":
        """
        Build a pose from an angle-axis rotation vector.

        Args:
            rotation_vector: Rotation axis scaled by the angle in radians
            center: Camera center in world coordinates

        Returns:
            ExtrinsicParams instance
        """
        R = Rotation.from_rotvec(np.asarray(rotation_vector, dtype=np.float64)).as_matrix()
        return cls(R, center)

    @classmethod
    def from_vector(cls, pose_vector: Sequence[float]) -> "ExtrinsicParams":
        """
        Build a pose from the 6-entry vector [rx, ry, rz, Cx, Cy, Cz].

        Raises:
            ValueError: If the vector does not have 6 entries
        """
        pose_vector = np.asarray(pose_vector, dtype=np.float64)
        if pose_vector.shape != (6,):
            raise ValueError(f"Pose vector must have 6 entries, got {pose_vector.size}")
        return cls.from_rotation_vector(pose_vector[:3], pose_vector[3:])

    def to_vector(self) -> np.ndarray:
        """Angle-axis rotation followed by the camera center, 6 entries."""
        rotation_vector = Rotation.from_matrix(self.rotation).as_rotvec()
        return np.concatenate([rotation_vector, self.center])

    @property
    def translation(self) -> np.ndarray:
        """Translation t = -R @ C."""
        return -self.rotation @ self.center

    @property
    def extrinsic_matrix(self) -> np.ndarray:
        """3x4 world-to-camera matrix [R | t]."""
        return np.hstack([self.rotation, self.translation.reshape(3, 1)])

    @property
    def inverse_matrix(self) -> np.ndarray:
        """3x4 camera-to-world matrix [R.T | C]."""
        return np.hstack([self.rotation.T, self.center.reshape(3, 1)])

    def __mul__(self, other: "ExtrinsicParams") -> "ExtrinsicParams":
        if not isinstance(other, ExtrinsicParams):
            return NotImplemented
        return ExtrinsicParams(
            self.rotation @ other.rotation,
            self.rotation @ other.center + self.center,
        )

    def world_to_camera(self, points_world: np.ndarray) -> np.ndarray:
        """
        Transform world points into the camera frame: R @ (X - C).

        Args:
            points_world: A 3-vector or a 3xN array of column points

        Returns:
            Camera frame points with the same shape as the input
        """
        points_world = np.asarray(points_world, dtype=np.float64)
        if points_world.ndim == 1:
            return self.rotation @ (points_world - self.center)
        return self.rotation @ (points_world - self.center.reshape(3, 1))

    def camera_to_world(self, points_camera: np.ndarray) -> np.ndarray:
        """
        Transform camera frame points into world coordinates: R.T @ x + C.

        Args:
            points_camera: A 3-vector or a 3xN array of column points

        Returns:
            World points with the same shape as the input
        """
        points_camera = np.asarray(points_camera, dtype=np.float64)
        if points_camera.ndim == 1:
            return self.rotation.T @ points_camera + self.center
        return self.rotation.T @ points_camera + self.center.reshape(3, 1)

    def __repr__(self) -> str:
        return f"ExtrinsicParams(rotation={self.rotation.tolist()}, center={self.center.tolist()})"
