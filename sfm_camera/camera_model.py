"""
Camera model interface.

A camera model maps points in the camera frame to pixels and back. Every
concrete model implements the same operations; what differs between them
is the lens distortion applied on the normalized camera plane and the
layout of the parameter vector handed to nonlinear optimizers.

Projection Model:
    1. Perspective division: x' = X/Z, y' = Y/Z
    2. Distortion (model specific): (x'', y'') = distort(x', y')
    3. Pixel mapping: u = fx*x'' + cx, v = fy*y'' + cy

A model owns its intrinsic parameters but not the camera pose: the same
model is shared by every image taken with that camera, and extrinsic
parameters are passed in per call.

Thread safety:
    Models do no locking. Updating the parameters (for instance from an
    optimizer step) while other threads project with the same model is a
    data race; callers must serialize writers against readers.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
import logging

import numpy as np

from .camera_type import CameraModelType, IntrinsicParameterType
from .distortion import UNDISTORT_EPSILON, UNDISTORT_MAX_ITERATIONS
from .identifiers import UINVALID_CAMERA_ID, camera_t
from .parameters import CameraParams, ExtrinsicParams, PinholeIntrinsicParams

logger = logging.getLogger(__name__)


class CameraModel(ABC):
    """
    Base class of all camera models.

    Subclasses provide the model specific pieces (normalized plane
    distortion, parameter vector layout, type tag); projection, residuals
    and bearing vectors are shared.
    """

    def __init__(
        self,
        camera_id: camera_t = UINVALID_CAMERA_ID,
        width: int = 0,
        height: int = 0,
        params: Optional[CameraParams] = None,
    ):
        """
        Initialize a camera model.

        Args:
            camera_id: Camera identifier (UINVALID_CAMERA_ID if unassigned)
            width: Image width in pixels
            height: Image height in pixels
            params: Optional parameter bundle applied with init_camera
        """
        self._camera_id = camera_id
        self._width = int(width)
        self._height = int(height)
        self._intrinsic_params = PinholeIntrinsicParams()

        # Bounds of the undistortion fixed-point iteration
        self.undistort_epsilon = UNDISTORT_EPSILON
        self.undistort_max_iterations = UNDISTORT_MAX_ITERATIONS

        if params is not None and not self.init_camera(params):
            logger.warning(
                f"{type(self).__name__}: ignoring parameters of type {params.type!r}"
            )

    def init_camera(self, params: CameraParams) -> bool:
        """
        Apply a parameter bundle.

        Args:
            params: Tagged parameter bundle

        Returns:
            True on success; False if the bundle's type is not compatible,
            in which case the intrinsics are left untouched
        """
        if not self._intrinsic_params.init_camera(params):
            return False
        logger.debug(f"Camera {self._camera_id} initialized as {self.get_type().name}")
        return True

    @property
    def camera_id(self) -> camera_t:
        return self._camera_id

    def set_camera_id(self, camera_id: camera_t) -> None:
        self._camera_id = camera_id

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def set_width(self, width: int) -> None:
        self._width = int(width)

    def set_height(self, height: int) -> None:
        self._height = int(height)

    @property
    def intrinsic_params(self) -> PinholeIntrinsicParams:
        return self._intrinsic_params

    @property
    def intrinsics_matrix(self) -> np.ndarray:
        return self._intrinsic_params.intrinsic_matrix

    @property
    def inverse_intrinsics_matrix(self) -> np.ndarray:
        return self._intrinsic_params.inverse_intrinsic_matrix

    @property
    def distortion_params(self) -> List[float]:
        return self._intrinsic_params.distortion

    def project(self, point_camera: np.ndarray, ignore_distortion: bool = False) -> np.ndarray:
        """
        Project a 3D point in the camera frame to pixel coordinates.

        Args:
            point_camera: 3D point (X, Y, Z) in the camera frame
            ignore_distortion: Skip lens distortion even if the model has it

        Returns:
            Pixel coordinates (u, v)
        """
        point_camera = np.asarray(point_camera, dtype=np.float64)
        point_normalized = point_camera[:2] / point_camera[2]

        if self.have_distortion() and not ignore_distortion:
            return self.cam2ima(self.distort(point_normalized))
        return self.cam2ima(point_normalized)

    def project_points(self, points_camera: np.ndarray, ignore_distortion: bool = False) -> np.ndarray:
        """
        Project multiple 3D points to pixel coordinates.

        Args:
            points_camera: Nx3 array of camera frame coordinates
            ignore_distortion: Skip lens distortion even if the model has it

        Returns:
            Nx2 array of pixel coordinates
        """
        points_camera = np.asarray(points_camera, dtype=np.float64).reshape(-1, 3)
        points_normalized = points_camera[:, :2] / points_camera[:, 2:3]

        if self.have_distortion() and not ignore_distortion:
            points_normalized = self.distort(points_normalized)
        return self.cam2ima(points_normalized)

    def residual(
        self,
        point_camera: np.ndarray,
        point_image: np.ndarray,
        ignore_distortion: bool = False,
    ) -> np.ndarray:
        """
        Observed minus projected pixel coordinates.

        Args:
            point_camera: 3D point in the camera frame
            point_image: Observed pixel coordinates (u, v)
            ignore_distortion: Skip lens distortion in the projection

        Returns:
            2-vector residual in pixels
        """
        return np.asarray(point_image, dtype=np.float64) - self.project(point_camera, ignore_distortion)

    def ima2cam(self, point_image: np.ndarray) -> np.ndarray:
        """
        Pixel coordinates to the normalized camera plane (no distortion involved).

        Args:
            point_image: Pixel point (2,) or batch (N, 2)

        Returns:
            Normalized point(s), same shape

        Raises:
            ValueError: If a focal length is zero
        """
        point_image = np.asarray(point_image, dtype=np.float64)
        params = self._intrinsic_params
        params.check_focal_length()
        return np.stack([
            (point_image[..., 0] - params.cx) / params.fx,
            (point_image[..., 1] - params.cy) / params.fy,
        ], axis=-1)

    def cam2ima(self, point_normalized: np.ndarray) -> np.ndarray:
        """
        Normalized camera plane to pixel coordinates (no distortion involved).

        Args:
            point_normalized: Normalized point (2,) or batch (N, 2)

        Returns:
            Pixel point(s), same shape
        """
        point_normalized = np.asarray(point_normalized, dtype=np.float64)
        params = self._intrinsic_params
        return np.stack([
            params.fx * point_normalized[..., 0] + params.cx,
            params.fy * point_normalized[..., 1] + params.cy,
        ], axis=-1)

    def projection_matrix(self, extrinsic_params: ExtrinsicParams) -> np.ndarray:
        """
        3x4 projection matrix K @ [R | t].

        The matrix is linear and cannot represent lens distortion. For
        models with distortion it is only an approximation and must not be
        used where the distortion coefficients are significant.

        Args:
            extrinsic_params: Camera pose for the image

        Returns:
            3x4 projection matrix
        """
        return self.intrinsics_matrix @ extrinsic_params.extrinsic_matrix

    def __call__(self, points_image: np.ndarray) -> np.ndarray:
        """
        Bearing vectors for a batch of pixels.

        Each column is normalize(K^-1 @ [u, v, 1]). Lens distortion is not
        removed; undistort the points first if needed.

        Args:
            points_image: 2xN array of pixel coordinates

        Returns:
            3xN array of unit vectors in the camera frame, same column order

        Raises:
            ValueError: If the input is not 2xN or a focal length is zero
        """
        points_image = np.asarray(points_image, dtype=np.float64)
        if points_image.ndim != 2 or points_image.shape[0] != 2:
            raise ValueError(f"Expected a 2xN array of pixels, got shape {points_image.shape}")

        # K^-1 @ [u, v, 1] is the normalized point with unit depth
        rays = np.vstack([self.ima2cam(points_image.T).T, np.ones((1, points_image.shape[1]))])
        return rays / np.linalg.norm(rays, axis=0, keepdims=True)

    def variable_params_mask(
        self, flags: IntrinsicParameterType = IntrinsicParameterType.ADJUST_ALL
    ) -> np.ndarray:
        """
        Which entries of the parameter vector an optimizer may change.

        Args:
            flags: Combination of IntrinsicParameterType values

        Returns:
            Boolean array aligned with get_variable_params()
        """
        mask = np.zeros(self.num_variable_params, dtype=bool)
        if flags & IntrinsicParameterType.ADJUST_FOCAL_LENGTH:
            mask[0:2] = True
        if flags & IntrinsicParameterType.ADJUST_PRINCIPAL_POINT:
            mask[2:4] = True
        if flags & IntrinsicParameterType.ADJUST_DISTORTION:
            mask[4:] = True
        return mask

    def verify_model_specific_params(self) -> bool:
        """True if the live parameter count matches the model's arity."""
        return len(self.get_variable_params()) == self.num_variable_params

    def update_from_variable_params(self, variable_params: Sequence[float]) -> bool:
        """
        Apply a parameter vector, typically produced by an optimizer.

        The update is all or nothing: on failure no parameter is changed.

        Args:
            variable_params: Vector laid out as get_variable_params()

        Returns:
            True if applied, False if the vector length (or the live
            parameter count) does not match the model's arity
        """
        variable_params = [float(v) for v in variable_params]
        if len(variable_params) != self.num_variable_params:
            logger.error(
                f"{type(self).__name__} update_from_variable_params failed: "
                f"variable params size {len(variable_params)} is not equal to {self.num_variable_params}"
            )
            return False
        if not self.verify_model_specific_params():
            logger.error(
                f"{type(self).__name__} update_from_variable_params failed: "
                f"camera holds {len(self.get_variable_params())} params, expected {self.num_variable_params}"
            )
            return False

        self._apply_variable_params(variable_params)
        return True

    def __str__(self) -> str:
        return self.params_info()

    @property
    @abstractmethod
    def num_variable_params(self) -> int:
        """Fixed length of the model's parameter vector."""

    @abstractmethod
    def get_type(self) -> CameraModelType:
        """Type tag of the model."""

    @abstractmethod
    def have_distortion(self) -> bool:
        """True if the model applies lens distortion."""

    @abstractmethod
    def distort(self, point_undistorted: np.ndarray) -> np.ndarray:
        """Apply lens distortion on the normalized camera plane."""

    @abstractmethod
    def undistort(self, point_distorted: np.ndarray) -> np.ndarray:
        """Remove lens distortion on the normalized camera plane."""

    @abstractmethod
    def get_variable_params(self) -> List[float]:
        """Parameters eligible for nonlinear refinement, in a stable order."""

    @abstractmethod
    def _apply_variable_params(self, variable_params: List[float]) -> None:
        """Store an already validated parameter vector."""

    @abstractmethod
    def params_info(self) -> str:
        """Human readable parameter report."""
