"""
Tests for identifier types and sentinels.
"""

import pytest
import numpy as np

from sfm_camera.identifiers import (
    HashMap,
    Pair,
    UINVALID_CAMERA_ID,
    UINVALID_IMAGE_ID,
    UINVALID_IMAGE_PAIR_ID,
    UINVALID_POINT2D_ID,
    UINVALID_POINT3D_ID,
    is_valid_id,
)


class TestSentinels:
    def test_widths(self):
        assert UINVALID_CAMERA_ID == 2 ** 32 - 1
        assert UINVALID_IMAGE_ID == 2 ** 32 - 1
        assert UINVALID_POINT2D_ID == 2 ** 32 - 1
        assert UINVALID_IMAGE_PAIR_ID == 2 ** 64 - 1
        assert UINVALID_POINT3D_ID == 2 ** 64 - 1

    def test_fits_unsigned_dtype(self):
        assert np.uint32(UINVALID_CAMERA_ID) == UINVALID_CAMERA_ID
        assert np.uint64(UINVALID_POINT3D_ID) == UINVALID_POINT3D_ID

    def test_is_valid_id(self):
        assert is_valid_id(0)
        assert is_valid_id(UINVALID_CAMERA_ID - 1)
        assert not is_valid_id(UINVALID_CAMERA_ID)
        assert not is_valid_id(-1)
        assert is_valid_id(2 ** 40, UINVALID_POINT3D_ID)


class TestPair:
    def test_fields(self):
        pair = Pair(3, 7)
        assert pair.first == 3
        assert pair.second == 7

    def test_order_matters_for_equality(self):
        assert Pair(1, 2) == Pair(1, 2)
        assert Pair(1, 2) != Pair(2, 1)

    def test_hash_is_xor(self):
        assert hash(Pair(5, 9)) == hash(5) ^ hash(9)
        assert hash(Pair(1, 2)) == hash(Pair(2, 1))

    def test_dictionary_key(self):
        matches: HashMap[Pair, int] = {}
        matches[Pair(0, 1)] = 120
        matches[Pair(1, 0)] = 80
        assert len(matches) == 2
        assert matches[Pair(0, 1)] == 120
        assert matches[Pair(1, 0)] == 80

    def test_not_equal_to_tuple(self):
        assert Pair(1, 2) != (1, 2)
        assert (1, 2) not in {Pair(1, 2): 'a'}

    def test_immutable(self):
        pair = Pair(1, 2)
        with pytest.raises(AttributeError):
            pair.first = 5
