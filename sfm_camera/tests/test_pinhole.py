"""
Tests for the pinhole camera models.

These tests verify the correctness of:
    - Projection and back-projection
    - Pixel <-> normalized plane mapping
    - Distortion handling per model
    - Parameter vector marshaling for optimizers
    - Factory dispatch on the parameter bundle type
"""

import logging

import pytest
import numpy as np
from numpy.testing import assert_allclose

from sfm_camera.camera_type import CameraModelType, IntrinsicParameterType
from sfm_camera.distortion import UndistortionError
from sfm_camera.identifiers import UINVALID_CAMERA_ID
from sfm_camera.parameters import ExtrinsicParams, PinholeCameraInitParams
from sfm_camera.pinhole import (
    PinholeCameraBrown,
    PinholeCameraModel,
    PinholeCameraRadial1,
    PinholeCameraRadial3,
    create_camera_model,
)

BROWN_COEFFS = [-0.1, 0.0, 0.0, 0.0, 0.0]


def make_params(model_type, distortion=()):
    return PinholeCameraInitParams(
        type=model_type, fx=1000.0, fy=1000.0, cx=320.0, cy=240.0, distortion=list(distortion)
    )


@pytest.fixture
def pinhole():
    return PinholeCameraModel(1, 640, 480, make_params(CameraModelType.PINHOLE_CAMERA))


@pytest.fixture
def brown():
    return PinholeCameraBrown(2, 640, 480, make_params(CameraModelType.PINHOLE_CAMERA_BROWN, BROWN_COEFFS))


@pytest.fixture
def brown_full():
    return PinholeCameraBrown(
        3, 640, 480,
        make_params(CameraModelType.PINHOLE_CAMERA_BROWN, [-0.2, 0.05, -0.01, 0.001, -0.002]),
    )


class TestCameraModelBase:
    """Tests for identifiers and image size."""

    def test_defaults(self):
        camera = PinholeCameraModel()
        assert camera.camera_id == UINVALID_CAMERA_ID
        assert camera.width == 0
        assert camera.height == 0

    def test_setters(self, pinhole):
        pinhole.set_camera_id(42)
        pinhole.set_width(1920)
        pinhole.set_height(1080)
        assert (pinhole.camera_id, pinhole.width, pinhole.height) == (42, 1920, 1080)

    def test_init_camera_mismatch_keeps_intrinsics(self, pinhole):
        bundle = PinholeCameraInitParams(type=CameraModelType.NONE, fx=1.0, fy=1.0)
        assert not pinhole.init_camera(bundle)
        assert pinhole.get_variable_params() == [1000.0, 1000.0, 320.0, 240.0]

    def test_constructor_ignores_mismatched_bundle(self, caplog):
        with caplog.at_level(logging.WARNING):
            camera = PinholeCameraModel(0, 10, 10, PinholeCameraInitParams(type=CameraModelType.NONE))
        assert camera.get_variable_params() == [0.0, 0.0, 0.0, 0.0]
        assert "ignoring parameters" in caplog.text

    def test_type_tags(self, pinhole, brown):
        assert pinhole.get_type() is CameraModelType.PINHOLE_CAMERA
        assert brown.get_type() is CameraModelType.PINHOLE_CAMERA_BROWN


class TestScenarioNoDistortion:
    """fx=fy=1000, cx=320, cy=240, no distortion."""

    def test_project_on_axis(self, pinhole):
        assert_allclose(pinhole.project(np.array([0.0, 0.0, 5.0])), [320.0, 240.0])

    def test_back_project_principal_point(self, pinhole):
        bearing = pinhole(np.array([[320.0], [240.0]]))
        assert bearing.shape == (3, 1)
        assert_allclose(bearing[:, 0], [0.0, 0.0, 1.0], atol=1e-12)

    def test_project_off_axis(self, pinhole):
        # x' = 1/4, y' = -1/2
        assert_allclose(pinhole.project(np.array([1.0, -2.0, 4.0])), [570.0, -260.0])

    def test_projection_scale_invariant(self, pinhole):
        point = np.array([0.3, -0.2, 2.0])
        assert_allclose(pinhole.project(point), pinhole.project(7.5 * point))


class TestImageCameraMapping:
    """ima2cam and cam2ima are exact inverses for every model."""

    @pytest.mark.parametrize("camera_name", ["pinhole", "brown", "brown_full"])
    def test_round_trip(self, request, camera_name):
        camera = request.getfixturevalue(camera_name)
        pixels = np.array([[0.0, 0.0], [320.0, 240.0], [639.5, 12.25], [-50.0, 900.0]])
        assert_allclose(camera.cam2ima(camera.ima2cam(pixels)), pixels, atol=1e-9)

        normalized = np.array([[0.0, 0.0], [0.1, -0.2], [-0.5, 0.4]])
        assert_allclose(camera.ima2cam(camera.cam2ima(normalized)), normalized, atol=1e-12)

    def test_cam2ima_formula(self, pinhole):
        assert_allclose(pinhole.cam2ima(np.array([0.1, 0.2])), [420.0, 440.0])

    def test_ima2cam_formula(self, pinhole):
        assert_allclose(pinhole.ima2cam(np.array([420.0, 440.0])), [0.1, 0.2])


class TestPinholeCameraModel:
    """Tests for the undistorted pinhole model."""

    def test_no_distortion(self, pinhole):
        assert not pinhole.have_distortion()

    @pytest.mark.parametrize("point", [[0.0, 0.0], [0.3, -0.7], [5.0, 2.0]])
    def test_distortion_is_identity(self, pinhole, point):
        assert_allclose(pinhole.distort(np.array(point)), point)
        assert_allclose(pinhole.undistort(np.array(point)), point)

    def test_variable_params(self, pinhole):
        assert pinhole.get_variable_params() == [1000.0, 1000.0, 320.0, 240.0]
        assert pinhole.verify_model_specific_params()

    def test_update_from_variable_params(self, pinhole):
        assert pinhole.update_from_variable_params([1100.0, 1050.0, 330.0, 250.0])
        assert pinhole.get_variable_params() == [1100.0, 1050.0, 330.0, 250.0]
        assert_allclose(pinhole.intrinsics_matrix, [[1100, 0, 330], [0, 1050, 250], [0, 0, 1]])

    @pytest.mark.parametrize("size", [0, 3, 5, 9])
    def test_update_wrong_arity(self, pinhole, size, caplog):
        before = pinhole.get_variable_params()
        with caplog.at_level(logging.ERROR):
            assert not pinhole.update_from_variable_params([1.0] * size)
        assert pinhole.get_variable_params() == before
        assert "update_from_variable_params failed" in caplog.text

    def test_params_info(self, pinhole):
        info = str(pinhole)
        assert "Focal Length" in info
        assert "Distortion" not in info


class TestPinholeCameraBrown:
    """Tests for the Brown-Conrady model."""

    def test_has_distortion(self, brown):
        assert brown.have_distortion()

    def test_scenario_round_trip(self, brown):
        """Distorting (0.1, 0.1) with k1=-0.1 and undistorting returns the point."""
        point = np.array([0.1, 0.1])
        assert_allclose(brown.undistort(brown.distort(point)), point, atol=1e-8)

    @pytest.mark.parametrize("point", [[0.0, 0.0], [0.2, -0.1], [-0.35, 0.3]])
    def test_distortion_round_trip(self, brown_full, point):
        point = np.array(point)
        assert np.abs(brown_full.undistort(brown_full.distort(point)) - point).sum() < 1e-9
        assert np.abs(brown_full.distort(brown_full.undistort(point)) - point).sum() < 1e-9

    def test_principal_point_unaffected(self, brown_full):
        assert_allclose(brown_full.project(np.array([0.0, 0.0, 3.0])), [320.0, 240.0])

    def test_project_applies_distortion(self, brown):
        point = np.array([0.5, 0.5, 5.0])
        distorted = brown.project(point)
        ideal = brown.project(point, ignore_distortion=True)

        assert_allclose(ideal, [420.0, 340.0])
        # Barrel distortion (k1 < 0) pulls points toward the center
        assert distorted[0] < ideal[0]
        assert_allclose(distorted, brown.cam2ima(brown.distort(np.array([0.1, 0.1]))))

    def test_zero_coefficients_match_pinhole(self, pinhole):
        camera = PinholeCameraBrown(0, 640, 480, make_params(CameraModelType.PINHOLE_CAMERA_BROWN, [0.0] * 5))
        point = np.array([0.4, -0.3, 2.0])
        assert_allclose(camera.project(point), pinhole.project(point))

    def test_residual(self, brown):
        point = np.array([0.5, 0.5, 5.0])
        observed = brown.project(point) + np.array([1.5, -2.0])
        assert_allclose(brown.residual(point, observed), [1.5, -2.0], atol=1e-9)

    def test_residual_ignoring_distortion(self, brown):
        point = np.array([0.5, 0.5, 5.0])
        assert_allclose(brown.residual(point, [420.0, 340.0], ignore_distortion=True), [0.0, 0.0])

    def test_variable_params_layout(self, brown_full):
        params = brown_full.get_variable_params()
        assert len(params) == 9
        assert params == [1000.0, 1000.0, 320.0, 240.0, -0.2, 0.05, -0.01, 0.001, -0.002]

    def test_update_from_variable_params(self, brown):
        new_params = [900.0, 950.0, 300.0, 200.0, 0.1, 0.2, 0.3, 0.4, 0.5]
        assert brown.update_from_variable_params(new_params)
        assert brown.get_variable_params() == new_params
        assert brown.distortion_params == [0.1, 0.2, 0.3, 0.4, 0.5]

    def test_update_accepts_numpy(self, brown):
        assert brown.update_from_variable_params(np.arange(9, dtype=float) + 1.0)
        assert brown.distortion_params == [5.0, 6.0, 7.0, 8.0, 9.0]

    @pytest.mark.parametrize("size", [4, 8, 10])
    def test_update_wrong_arity(self, brown, size):
        before = brown.get_variable_params()
        assert not brown.update_from_variable_params([0.5] * size)
        assert brown.get_variable_params() == before

    def test_wrong_coefficient_count_surfaces_at_update(self):
        camera = PinholeCameraBrown(0, 640, 480, make_params(CameraModelType.PINHOLE_CAMERA_BROWN, [0.1, 0.0, 0.0]))
        assert not camera.verify_model_specific_params()
        assert not camera.update_from_variable_params([1.0] * 9)
        assert camera.distortion_params == [0.1, 0.0, 0.0]

    def test_undistort_non_convergence(self):
        camera = PinholeCameraBrown(0, 640, 480, make_params(CameraModelType.PINHOLE_CAMERA_BROWN, [5.0, 5.0, 5.0, 0.0, 0.0]))
        camera.undistort_max_iterations = 20
        with pytest.raises(UndistortionError):
            camera.undistort(np.array([1.0, 1.0]))

    def test_params_info(self, brown_full):
        info = brown_full.params_info()
        assert "Principal Point: (cx:320, cy:240)" in info
        assert "k1: -0.2" in info
        assert "t2: -0.002" in info


class TestRadialModels:
    """Tests for the radial-only models."""

    def test_radial1(self):
        camera = PinholeCameraRadial1(0, 640, 480, make_params(CameraModelType.PINHOLE_CAMERA_RADIAL1, [-0.1]))
        assert camera.get_type() is CameraModelType.PINHOLE_CAMERA_RADIAL1
        assert camera.get_variable_params() == [1000.0, 1000.0, 320.0, 240.0, -0.1]
        assert camera.verify_model_specific_params()

    def test_radial1_matches_brown_with_k1(self, brown):
        camera = PinholeCameraRadial1(0, 640, 480, make_params(CameraModelType.PINHOLE_CAMERA_RADIAL1, [-0.1]))
        point = np.array([0.3, -0.2, 1.5])
        assert_allclose(camera.project(point), brown.project(point))

    def test_radial3(self):
        camera = PinholeCameraRadial3(
            0, 640, 480, make_params(CameraModelType.PINHOLE_CAMERA_RADIAL3, [-0.1, 0.01, 0.001])
        )
        assert len(camera.get_variable_params()) == 7
        point = np.array([0.25, 0.2])
        assert_allclose(camera.undistort(camera.distort(point)), point, atol=1e-9)

    def test_radial3_update(self):
        camera = PinholeCameraRadial3(
            0, 640, 480, make_params(CameraModelType.PINHOLE_CAMERA_RADIAL3, [0.0, 0.0, 0.0])
        )
        assert not camera.update_from_variable_params([1.0] * 9)
        assert camera.update_from_variable_params([1.0] * 7)
        assert camera.distortion_params == [1.0, 1.0, 1.0]


class TestProjectionMatrix:
    """Tests for K @ [R | t]."""

    def test_identity_pose(self, pinhole):
        P = pinhole.projection_matrix(ExtrinsicParams())
        assert P.shape == (3, 4)
        assert_allclose(P[:, :3], pinhole.intrinsics_matrix)
        assert_allclose(P[:, 3], [0.0, 0.0, 0.0])

    def test_matches_project(self, pinhole):
        pose = ExtrinsicParams.from_rotation_vector([0.05, -0.1, 0.2], [0.5, -0.5, -4.0])
        point_world = np.array([0.2, 0.1, 1.0])

        projected = pinhole.projection_matrix(pose) @ np.append(point_world, 1.0)
        expected = pinhole.project(pose.world_to_camera(point_world))
        assert_allclose(projected[:2] / projected[2], expected, atol=1e-9)

    def test_ignores_distortion(self, brown):
        pose = ExtrinsicParams()
        point = np.array([0.5, 0.5, 5.0])
        projected = brown.projection_matrix(pose) @ np.append(point, 1.0)
        assert_allclose(projected[:2] / projected[2], brown.project(point, ignore_distortion=True))


class TestBearingVectors:
    """Tests for back-projection of pixel batches."""

    def test_unit_length(self, pinhole):
        pixels = np.array([[0.0, 640.0, 320.0, 100.0], [0.0, 480.0, 240.0, 400.0]])
        bearings = pinhole(pixels)
        assert bearings.shape == (3, 4)
        assert_allclose(np.linalg.norm(bearings, axis=0), np.ones(4))

    def test_column_order_preserved(self, pinhole):
        pixels = np.array([[420.0, 320.0], [240.0, 340.0]])
        bearings = pinhole(pixels)
        assert_allclose(bearings[:, 0], np.array([0.1, 0.0, 1.0]) / np.linalg.norm([0.1, 0.0, 1.0]))
        assert_allclose(bearings[:, 1], np.array([0.0, 0.1, 1.0]) / np.linalg.norm([0.0, 0.1, 1.0]))

    def test_matches_inverse_intrinsics(self, brown_full):
        pixels = np.array([[10.0, 500.0, 320.0], [470.0, 20.0, 240.0]])
        rays = brown_full.inverse_intrinsics_matrix @ np.vstack([pixels, np.ones((1, 3))])
        expected = rays / np.linalg.norm(rays, axis=0)
        assert_allclose(brown_full(pixels), expected, atol=1e-12)

    def test_reprojects_to_pixel(self, pinhole):
        pixels = np.array([[12.0, 600.0], [33.0, 470.0]])
        bearings = pinhole(pixels)
        for i in range(2):
            assert_allclose(pinhole.project(bearings[:, i]), pixels[:, i], atol=1e-9)

    def test_rejects_bad_shape(self, pinhole):
        with pytest.raises(ValueError):
            pinhole(np.array([320.0, 240.0]))

    def test_uninitialized_camera_rejected(self):
        camera = PinholeCameraModel()
        with pytest.raises(ValueError, match="Focal length"):
            camera(np.array([[320.0], [240.0]]))
        with pytest.raises(ValueError, match="Focal length"):
            camera.ima2cam(np.array([320.0, 240.0]))


class TestBatchProjection:
    def test_matches_single(self, brown_full):
        points = np.array([[0.1, 0.2, 2.0], [-0.5, 0.3, 4.0], [0.0, 0.0, 1.0]])
        batch = brown_full.project_points(points)
        assert batch.shape == (3, 2)
        for i, point in enumerate(points):
            assert_allclose(batch[i], brown_full.project(point))


class TestVariableParamsMask:
    def test_all(self, brown):
        assert brown.variable_params_mask().all()
        assert brown.variable_params_mask().shape == (9,)

    def test_focal_only(self, brown):
        mask = brown.variable_params_mask(IntrinsicParameterType.ADJUST_FOCAL_LENGTH)
        assert mask.tolist() == [True, True] + [False] * 7

    def test_distortion_only(self, brown):
        mask = brown.variable_params_mask(IntrinsicParameterType.ADJUST_DISTORTION)
        assert mask.tolist() == [False] * 4 + [True] * 5

    def test_none(self, pinhole):
        assert not pinhole.variable_params_mask(IntrinsicParameterType.NONE).any()

    def test_pinhole_ignores_distortion_flag(self, pinhole):
        mask = pinhole.variable_params_mask(
            IntrinsicParameterType.ADJUST_PRINCIPAL_POINT | IntrinsicParameterType.ADJUST_DISTORTION
        )
        assert mask.tolist() == [False, False, True, True]


class TestCreateCameraModel:
    """Tests for the model factory."""

    @pytest.mark.parametrize("model_type, distortion, expected_cls", [
        (CameraModelType.PINHOLE_CAMERA, [], PinholeCameraModel),
        (CameraModelType.PINHOLE_CAMERA_RADIAL1, [0.1], PinholeCameraRadial1),
        (CameraModelType.PINHOLE_CAMERA_RADIAL3, [0.1, 0.0, 0.0], PinholeCameraRadial3),
        (CameraModelType.PINHOLE_CAMERA_BROWN, BROWN_COEFFS, PinholeCameraBrown),
    ])
    def test_dispatch(self, model_type, distortion, expected_cls):
        camera = create_camera_model(7, 640, 480, make_params(model_type, distortion))
        assert type(camera) is expected_cls
        assert camera.camera_id == 7
        assert camera.get_type() is model_type
        assert camera.verify_model_specific_params()

    @pytest.mark.parametrize("model_type", [
        CameraModelType.NONE,
        CameraModelType.PINHOLE_CAMERA_START,
        CameraModelType.PINHOLE_CAMERA_END,
    ])
    def test_unregistered_type(self, model_type):
        with pytest.raises(ValueError):
            create_camera_model(0, 640, 480, make_params(model_type))
