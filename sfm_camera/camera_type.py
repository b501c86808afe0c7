"""
Camera model type tags.

CameraModelType tags the mathematical family of a camera model. The
PINHOLE_CAMERA_START and PINHOLE_CAMERA_END markers bound the pinhole
family and never tag a real model:

    NONE                    0
    PINHOLE_CAMERA_START    1   (marker)
    PINHOLE_CAMERA          2   no distortion
    PINHOLE_CAMERA_RADIAL1  3   radial k1
    PINHOLE_CAMERA_RADIAL3  4   radial k1, k2, k3
    PINHOLE_CAMERA_BROWN    5   radial k1, k2, k3 + tangential t1, t2
    PINHOLE_CAMERA_END      6   (marker)

CameraType is the catalogue of camera model names used when a model is
selected by name (configuration files, command line).
"""

from enum import IntEnum, IntFlag

from .enum_names import enum_from_name, get_enum_name


class CameraModelType(IntEnum):
    """Mathematical family of a camera model."""
    NONE = 0
    PINHOLE_CAMERA_START = 1
    PINHOLE_CAMERA = 2
    PINHOLE_CAMERA_RADIAL1 = 3
    PINHOLE_CAMERA_RADIAL3 = 4
    PINHOLE_CAMERA_BROWN = 5
    PINHOLE_CAMERA_END = 6


def is_pinhole(model_type: CameraModelType) -> bool:
    """True for the pinhole family, excluding the range markers themselves."""
    return CameraModelType.PINHOLE_CAMERA_START < model_type < CameraModelType.PINHOLE_CAMERA_END


class IntrinsicParameterType(IntFlag):
    """
    Which intrinsic parameters an optimizer may refine.

    Anything not selected is held constant during nonlinear refinement.
    """
    NONE = 1
    ADJUST_FOCAL_LENGTH = 2
    ADJUST_PRINCIPAL_POINT = 4
    ADJUST_DISTORTION = 8
    ADJUST_ALL = ADJUST_FOCAL_LENGTH | ADJUST_PRINCIPAL_POINT | ADJUST_DISTORTION


class CameraType(IntEnum):
    """Camera model names."""
    CameraSimplePinholeModel = 0
    CameraSimpleRadialDistortionPinholeModel = 1
    CameraRadialDistortionPinholeModel = 2
    CameraRadialTangentialDistortionPinholeModel = 3
    CameraBrownConradyDistortionPinholeModel = 4
    CameraFisheyeModel = 5


# Model family behind each camera name. Fisheye has no implementation yet.
CAMERA_TYPE_TO_MODEL_TYPE = {
    CameraType.CameraSimplePinholeModel: CameraModelType.PINHOLE_CAMERA,
    CameraType.CameraSimpleRadialDistortionPinholeModel: CameraModelType.PINHOLE_CAMERA_RADIAL1,
    CameraType.CameraRadialDistortionPinholeModel: CameraModelType.PINHOLE_CAMERA_RADIAL3,
    CameraType.CameraRadialTangentialDistortionPinholeModel: CameraModelType.PINHOLE_CAMERA_BROWN,
    CameraType.CameraBrownConradyDistortionPinholeModel: CameraModelType.PINHOLE_CAMERA_BROWN,
    CameraType.CameraFisheyeModel: CameraModelType.NONE,
}


def is_camera_type_valid(camera_type: CameraType) -> bool:
    """True if the value lies within the CameraType catalogue."""
    return CameraType.CameraSimplePinholeModel <= camera_type <= CameraType.CameraFisheyeModel


def get_camera_type_name(camera_type: CameraType) -> str:
    """Name of a camera type, e.g. 'CameraSimplePinholeModel'."""
    return get_enum_name(camera_type)


def is_camera_model_name_valid(camera_model_name: str) -> bool:
    """True if the name is a known camera type."""
    try:
        camera_type = enum_from_name(CameraType, camera_model_name)
    except ValueError:
        return False
    return is_camera_type_valid(camera_type)


def get_camera_type_from_camera_model_name(camera_model_name: str) -> CameraType:
    """
    Look up a camera type by name.

    Raises:
        ValueError: If the name is not a known camera type
    """
    return enum_from_name(CameraType, camera_model_name)


def model_type_from_camera_model_name(camera_model_name: str) -> CameraModelType:
    """
    Resolve a camera model name to the model family implementing it.

    Accepts both CameraType names ('CameraSimplePinholeModel') and
    CameraModelType names ('PINHOLE_CAMERA_BROWN').

    Raises:
        ValueError: If the name is unknown or has no implemented model family
    """
    if is_camera_model_name_valid(camera_model_name):
        model_type = CAMERA_TYPE_TO_MODEL_TYPE[get_camera_type_from_camera_model_name(camera_model_name)]
    else:
        model_type = enum_from_name(CameraModelType, camera_model_name)

    if not is_pinhole(model_type):
        raise ValueError(f"No camera model implements '{camera_model_name}'")
    return model_type
