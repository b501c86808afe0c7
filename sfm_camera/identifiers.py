"""
Identifier types shared across the reconstruction pipeline.

Cameras, images and points are referred to by plain unsigned integers.
The maximum value of each width is reserved as the "invalid" sentinel,
used for anything that has not been assigned an identifier yet.

    camera_t      uint32
    image_t       uint32
    image_pair_t  uint64
    point2D_t     uint32
    point3D_t     uint64
"""

from dataclasses import dataclass
from typing import Dict, TypeVar

import numpy as np

# Unique identifier for cameras
camera_t = int
# Unique identifier for images
image_t = int
# Each image pair gets a unique ID
image_pair_t = int
# Unique identifier for 2D points
point2D_t = int
# Unique identifier for 3D points
point3D_t = int

UINT32_MAX = int(np.iinfo(np.uint32).max)
UINT64_MAX = int(np.iinfo(np.uint64).max)

UINVALID_CAMERA_ID: camera_t = UINT32_MAX
UINVALID_IMAGE_ID: image_t = UINT32_MAX
UINVALID_IMAGE_PAIR_ID: image_pair_t = UINT64_MAX
UINVALID_POINT2D_ID: point2D_t = UINT32_MAX
UINVALID_POINT3D_ID: point3D_t = UINT64_MAX


@dataclass(frozen=True)
class Pair:
    """
    Ordered pair of camera identifiers, used as a dictionary key.

    Equality keeps the order, (a, b) != (b, a), and a Pair never equals a
    plain tuple. The hash XORs both members so the two orientations land in
    the same bucket.
    """
    first: camera_t
    second: camera_t

    def __eq__(self, other):
        if not isinstance(other, Pair):
            return NotImplemented
        return self.first == other.first and self.second == other.second

    def __hash__(self) -> int:
        return hash(self.first) ^ hash(self.second)


K = TypeVar("K")
V = TypeVar("V")

# Standard hash map keyed by identifiers or pairs
HashMap = Dict[K, V]


def is_valid_id(value: int, sentinel: int = UINVALID_CAMERA_ID) -> bool:
    """
    Check that an identifier is assigned and fits its integer width.

    Args:
        value: Identifier to check
        sentinel: Invalid sentinel of the identifier's type (its max value)

    Returns:
        True if 0 <= value < sentinel
    """
    return 0 <= value < sentinel
