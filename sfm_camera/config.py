"""
Configuration module for camera models.

Handles loading and validation of camera definitions from YAML files.
"""

import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import List
import logging

from .camera_model import CameraModel
from .camera_type import model_type_from_camera_model_name
from .distortion import UNDISTORT_EPSILON, UNDISTORT_MAX_ITERATIONS
from .identifiers import UINVALID_CAMERA_ID
from .parameters import PinholeCameraInitParams
from .pinhole import create_camera_model

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    """Camera definition."""
    model: str  # CameraType or CameraModelType name
    fx: float  # Focal length in x (pixels)
    fy: float  # Focal length in y (pixels)
    cx: float  # Principal point x (pixels)
    cy: float  # Principal point y (pixels)
    distortion: List[float] = field(default_factory=list)  # Model specific coefficients
    camera_id: int = UINVALID_CAMERA_ID
    image_width: int = 0  # Image width in pixels
    image_height: int = 0  # Image height in pixels


@dataclass
class UndistortConfig:
    """Bounds of the iterative distortion inverse."""
    epsilon: float = UNDISTORT_EPSILON  # L1 convergence threshold, normalized plane
    max_iterations: int = UNDISTORT_MAX_ITERATIONS


@dataclass
class Config:
    """
    Camera configuration.

    Attributes:
        camera: Camera definition
        undistort: Settings for the distortion inverse
    """
    camera: CameraConfig
    undistort: UndistortConfig = field(default_factory=UndistortConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> "Config":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Config object with loaded parameters

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If a section is not a mapping, a required key is
                missing or the model is unknown

        Example YAML structure:
            camera:
              model: CameraBrownConradyDistortionPinholeModel
              camera_id: 0
              fx: 1000.0
              fy: 1000.0
              cx: 320.0
              cy: 240.0
              distortion: [-0.1, 0.0, 0.0, 0.0, 0.0]
              image_width: 640
              image_height: 480
            undistort:
              epsilon: 1.0e-10
              max_iterations: 50
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        logger.info(f"Loading configuration from {config_path}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {config_path} must be a mapping")

        cam_data = data.get('camera')
        if not cam_data:
            raise ValueError(f"Missing 'camera' section in {config_path}")
        if not isinstance(cam_data, dict):
            raise ValueError(f"'camera' section in {config_path} must be a mapping")

        try:
            camera = CameraConfig(
                model=cam_data['model'],
                fx=float(cam_data['fx']),
                fy=float(cam_data['fy']),
                cx=float(cam_data['cx']),
                cy=float(cam_data['cy']),
                distortion=[float(d) for d in cam_data.get('distortion') or []],
                camera_id=int(cam_data.get('camera_id', UINVALID_CAMERA_ID)),
                image_width=int(cam_data.get('image_width', 0)),
                image_height=int(cam_data.get('image_height', 0)),
            )
        except KeyError as e:
            raise ValueError(f"Missing camera parameter {e} in {config_path}") from e

        # Fail early on unknown model names
        model_type_from_camera_model_name(camera.model)

        # An empty 'undistort:' key loads as None
        undist_data = data.get('undistort') or {}
        if not isinstance(undist_data, dict):
            raise ValueError(f"'undistort' section in {config_path} must be a mapping")
        undistort = UndistortConfig(
            epsilon=float(undist_data.get('epsilon', UNDISTORT_EPSILON)),
            max_iterations=int(undist_data.get('max_iterations', UNDISTORT_MAX_ITERATIONS)),
        )

        return cls(camera=camera, undistort=undistort)

    def to_yaml(self, config_path: str) -> None:
        """Save configuration to a YAML file."""
        data = {
            'camera': {
                'model': self.camera.model,
                'camera_id': self.camera.camera_id,
                'fx': self.camera.fx,
                'fy': self.camera.fy,
                'cx': self.camera.cx,
                'cy': self.camera.cy,
                'distortion': list(self.camera.distortion),
                'image_width': self.camera.image_width,
                'image_height': self.camera.image_height,
            },
            'undistort': {
                'epsilon': self.undistort.epsilon,
                'max_iterations': self.undistort.max_iterations,
            },
        }

        with open(config_path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {config_path}")

    def to_init_params(self) -> PinholeCameraInitParams:
        """Parameter bundle describing the configured camera."""
        return PinholeCameraInitParams(
            type=model_type_from_camera_model_name(self.camera.model),
            fx=self.camera.fx,
            fy=self.camera.fy,
            cx=self.camera.cx,
            cy=self.camera.cy,
            distortion=list(self.camera.distortion),
        )

    def build_camera(self) -> CameraModel:
        """
        Build the configured camera model.

        Raises:
            ValueError: If the distortion list does not fit the model
        """
        model = create_camera_model(
            self.camera.camera_id,
            self.camera.image_width,
            self.camera.image_height,
            self.to_init_params(),
        )
        if not model.verify_model_specific_params():
            raise ValueError(
                f"{type(model).__name__} expects {model.num_variable_params} parameters, "
                f"configuration gives {len(model.get_variable_params())}"
            )

        model.undistort_epsilon = self.undistort.epsilon
        model.undistort_max_iterations = self.undistort.max_iterations
        return model
