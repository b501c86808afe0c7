"""
Pinhole camera models.

    Model                   Type tag                 Parameter vector
    PinholeCameraModel      PINHOLE_CAMERA           fx, fy, cx, cy
    PinholeCameraRadial1    PINHOLE_CAMERA_RADIAL1   fx, fy, cx, cy, k1
    PinholeCameraRadial3    PINHOLE_CAMERA_RADIAL3   fx, fy, cx, cy, k1, k2, k3
    PinholeCameraBrown      PINHOLE_CAMERA_BROWN     fx, fy, cx, cy, k1, k2, k3, t1, t2

All distorted variants share the Brown-Conrady kernel; the radial ones
simply have no tangential (or higher order) terms.
"""

from typing import Dict, List, Tuple, Type
import logging

import numpy as np

from . import distortion
from .distortion import DistortionParamsIdx
from .camera_model import CameraModel
from .camera_type import CameraModelType
from .identifiers import camera_t
from .parameters import CameraParams

logger = logging.getLogger(__name__)

NUM_PINHOLE_PARAMS = 4


class PinholeCameraModel(CameraModel):
    """Ideal pinhole camera without lens distortion."""

    @property
    def num_variable_params(self) -> int:
        return NUM_PINHOLE_PARAMS

    def get_type(self) -> CameraModelType:
        return CameraModelType.PINHOLE_CAMERA

    def have_distortion(self) -> bool:
        return False

    def distort(self, point_undistorted: np.ndarray) -> np.ndarray:
        return np.asarray(point_undistorted, dtype=np.float64)

    def undistort(self, point_distorted: np.ndarray) -> np.ndarray:
        return np.asarray(point_distorted, dtype=np.float64)

    def get_variable_params(self) -> List[float]:
        params = self._intrinsic_params
        return [params.fx, params.fy, params.cx, params.cy]

    def _apply_variable_params(self, variable_params: List[float]) -> None:
        params = self._intrinsic_params
        params.set_focal_length_x(variable_params[0])
        params.set_focal_length_y(variable_params[1])
        params.set_principal_point_x(variable_params[2])
        params.set_principal_point_y(variable_params[3])

    def params_info(self) -> str:
        return self._intrinsic_params.params_info()


class _DistortedPinholeModel(PinholeCameraModel):
    """
    Pinhole camera with Brown-Conrady style distortion.

    Subclasses only name their coefficients; the parameter vector is the
    pinhole vector followed by the coefficients in that order.
    """

    COEFF_NAMES: Tuple[str, ...] = ()
    MODEL_TYPE = CameraModelType.NONE

    @property
    def num_variable_params(self) -> int:
        return NUM_PINHOLE_PARAMS + len(self.COEFF_NAMES)

    def get_type(self) -> CameraModelType:
        return self.MODEL_TYPE

    def have_distortion(self) -> bool:
        return True

    def distort(self, point_undistorted: np.ndarray) -> np.ndarray:
        return distortion.distort(self._coeffs(), point_undistorted)

    def undistort(self, point_distorted: np.ndarray) -> np.ndarray:
        """
        Remove lens distortion on the normalized camera plane.

        Raises:
            UndistortionError: If the fixed-point iteration does not
                converge within ``undistort_max_iterations``
        """
        return distortion.undistort(
            self._coeffs(),
            point_distorted,
            epsilon=self.undistort_epsilon,
            max_iterations=self.undistort_max_iterations,
        )

    def get_variable_params(self) -> List[float]:
        return super().get_variable_params() + self.distortion_params

    def _apply_variable_params(self, variable_params: List[float]) -> None:
        super()._apply_variable_params(variable_params)
        self._intrinsic_params.set_distortion(variable_params[DistortionParamsIdx.IDX_DISTORTION_K1:])

    def _coeffs(self) -> List[float]:
        coeffs = self._intrinsic_params.distortion
        if len(coeffs) != len(self.COEFF_NAMES):
            raise ValueError(
                f"{type(self).__name__} expects {len(self.COEFF_NAMES)} distortion "
                f"coefficients, got {len(coeffs)}"
            )
        return coeffs

    def params_info(self) -> str:
        coeffs = self.distortion_params
        terms = ", ".join(
            f"{name}: {value:g}" for name, value in zip(self.COEFF_NAMES, coeffs)
        )
        return f"{super().params_info()}Distortion: {terms}\n"


class PinholeCameraRadial1(_DistortedPinholeModel):
    """Pinhole camera with one radial distortion coefficient."""
    COEFF_NAMES = ("k1",)
    MODEL_TYPE = CameraModelType.PINHOLE_CAMERA_RADIAL1


class PinholeCameraRadial3(_DistortedPinholeModel):
    """Pinhole camera with three radial distortion coefficients."""
    COEFF_NAMES = ("k1", "k2", "k3")
    MODEL_TYPE = CameraModelType.PINHOLE_CAMERA_RADIAL3


class PinholeCameraBrown(_DistortedPinholeModel):
    """
    Pinhole camera with Brown-Conrady distortion.

    Radial k1, k2, k3 and tangential t1, t2 coefficients. The last five
    entries of the parameter vector are stored verbatim as the distortion
    coefficients; no physical plausibility check is made.
    """
    COEFF_NAMES = ("k1", "k2", "k3", "t1", "t2")
    MODEL_TYPE = CameraModelType.PINHOLE_CAMERA_BROWN


CAMERA_MODELS: Dict[CameraModelType, Type[CameraModel]] = {
    CameraModelType.PINHOLE_CAMERA: PinholeCameraModel,
    CameraModelType.PINHOLE_CAMERA_RADIAL1: PinholeCameraRadial1,
    CameraModelType.PINHOLE_CAMERA_RADIAL3: PinholeCameraRadial3,
    CameraModelType.PINHOLE_CAMERA_BROWN: PinholeCameraBrown,
}


def create_camera_model(
    camera_id: camera_t,
    width: int,
    height: int,
    params: CameraParams,
) -> CameraModel:
    """
    Build the camera model matching a parameter bundle's type.

    Args:
        camera_id: Camera identifier
        width: Image width in pixels
        height: Image height in pixels
        params: Tagged parameter bundle

    Returns:
        Initialized camera model

    Raises:
        ValueError: If no model is registered for the bundle's type or the
            bundle could not be applied
    """
    model_cls = CAMERA_MODELS.get(params.type)
    if model_cls is None:
        raise ValueError(f"No camera model registered for type {params.type!r}")

    model = model_cls(camera_id, width, height)
    if not model.init_camera(params):
        raise ValueError(f"Could not initialize {model_cls.__name__} from {params!r}")

    logger.debug(f"Created {model_cls.__name__} for camera {camera_id} ({width}x{height})")
    return model
