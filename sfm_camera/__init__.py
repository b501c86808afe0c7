"""
Camera models for structure-from-motion pipelines.

Maps 3D points in the camera frame to pixels and pixels back to bearing
vectors, for pinhole cameras with and without lens distortion.

Coordinate System Chain:
    World → Camera (ExtrinsicParams) → Normalized plane → Distortion → Image (u,v)

Conventions:
    - Camera frame: X-right, Y-down, Z-forward (looking along +Z)
    - Image frame: u-right, v-down (origin at top-left corner)
    - Pose: rotation R (world to camera) and camera center C, t = -R @ C

Supported Models:
    - Pinhole without distortion
    - Pinhole with radial distortion (k1, or k1, k2, k3)
    - Pinhole with Brown-Conrady distortion (k1, k2, k3, t1, t2)
"""

from .identifiers import (
    Pair,
    HashMap,
    UINVALID_CAMERA_ID,
    UINVALID_IMAGE_ID,
    UINVALID_IMAGE_PAIR_ID,
    UINVALID_POINT2D_ID,
    UINVALID_POINT3D_ID,
)
from .enum_names import get_enum_name, enum_from_name
from .camera_type import (
    CameraModelType,
    CameraType,
    IntrinsicParameterType,
    is_pinhole,
    get_camera_type_name,
    get_camera_type_from_camera_model_name,
)
from .parameters import (
    CameraParams,
    PinholeCameraInitParams,
    PinholeIntrinsicParams,
    ExtrinsicParams,
    validate_rotation_matrix,
)
from .distortion import UndistortionError, DistortionParamsIdx
from .camera_model import CameraModel
from .pinhole import (
    PinholeCameraModel,
    PinholeCameraRadial1,
    PinholeCameraRadial3,
    PinholeCameraBrown,
    create_camera_model,
)
from .config import Config, CameraConfig, UndistortConfig

__version__ = "0.1.0"
__all__ = [
    "Pair",
    "HashMap",
    "UINVALID_CAMERA_ID",
    "UINVALID_IMAGE_ID",
    "UINVALID_IMAGE_PAIR_ID",
    "UINVALID_POINT2D_ID",
    "UINVALID_POINT3D_ID",
    "get_enum_name",
    "enum_from_name",
    "CameraModelType",
    "CameraType",
    "IntrinsicParameterType",
    "is_pinhole",
    "get_camera_type_name",
    "get_camera_type_from_camera_model_name",
    "CameraParams",
    "PinholeCameraInitParams",
    "PinholeIntrinsicParams",
    "ExtrinsicParams",
    "validate_rotation_matrix",
    "UndistortionError",
    "DistortionParamsIdx",
    "CameraModel",
    "PinholeCameraModel",
    "PinholeCameraRadial1",
    "PinholeCameraRadial3",
    "PinholeCameraBrown",
    "create_camera_model",
    "Config",
    "CameraConfig",
    "UndistortConfig",
]
