"""
Command-line interface for camera models.

Usage:
    sfm-camera config.yaml [--point X Y Z]... [--pixel U V]... [-v]
"""

import argparse
import logging
import sys

import numpy as np

from .config import Config
from .distortion import UndistortionError


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Project camera frame points to pixels and pixels to bearing vectors',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
    # Show the camera parameters
    sfm-camera camera.yaml

    # Project a point 5 m in front of the camera
    sfm-camera camera.yaml --point 0 0 5

    # Bearing vector and undistorted normalized point of a pixel
    sfm-camera camera.yaml --pixel 320 240
'''
    )

    parser.add_argument(
        'config',
        type=str,
        help='Path to YAML camera configuration file'
    )

    parser.add_argument(
        '--point', '-p',
        type=float,
        nargs=3,
        action='append',
        default=[],
        metavar=('X', 'Y', 'Z'),
        help='Camera frame point to project (repeatable)'
    )

    parser.add_argument(
        '--pixel', '-x',
        type=float,
        nargs=2,
        action='append',
        default=[],
        metavar=('U', 'V'),
        help='Pixel to back-project (repeatable)'
    )

    parser.add_argument(
        '--ignore-distortion',
        action='store_true',
        help='Project without lens distortion'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    return parser


def main(argv=None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)

    # Setup logging
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        config = Config.from_yaml(args.config)
        camera = config.build_camera()

        print(f"Camera {camera.camera_id}: {camera.get_type().name} "
              f"({camera.width}x{camera.height})")
        print(camera.params_info(), end='')

        for point in args.point:
            if point[2] <= 0:
                logger.warning(f"Point {point} is behind the camera")
            u, v = camera.project(np.array(point), ignore_distortion=args.ignore_distortion)
            print(f"point ({point[0]:g}, {point[1]:g}, {point[2]:g}) -> pixel ({u:.4f}, {v:.4f})")

        for pixel in args.pixel:
            bearing = camera(np.array(pixel).reshape(2, 1))[:, 0]
            x, y = camera.undistort(camera.ima2cam(np.array(pixel)))
            print(f"pixel ({pixel[0]:g}, {pixel[1]:g}) -> bearing "
                  f"({bearing[0]:.6f}, {bearing[1]:.6f}, {bearing[2]:.6f}), "
                  f"undistorted ({x:.6f}, {y:.6f})")

        return 0

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except UndistortionError as e:
        logger.error(f"Undistortion failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
