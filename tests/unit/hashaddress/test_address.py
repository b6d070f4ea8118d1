"""
HashAddress Unit Tests
======================

[UNIT] Tests for hashaddress/address.py: XOR distance, dist_bit and
prefix-preserving randomisation.
"""

import dataclasses
import math
import os

import pytest

from hashaddress import (
    HashAddress,
    INFINITE_DISTANCE_BIT,
    RandomSourceUnavailable,
    dist_bit,
    distance,
    first_differing_bit,
    flip_bit_randomise,
)


class TestValue:
    """Test HashAddress value semantics."""

    def test_equality_and_hash(self):
        raw = os.urandom(32)
        a = HashAddress(raw)
        b = HashAddress(bytearray(raw))
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_not_equal_to_bytes(self):
        raw = os.urandom(32)
        assert HashAddress(raw) != raw

    def test_frozen(self, zero_address):
        with pytest.raises(dataclasses.FrozenInstanceError):
            zero_address.data = b"\x01" * 32

    def test_views(self, make_address):
        address = make_address(b0=0x80, b31=0x01)
        assert bytes(address) == address.to_bytes()
        assert len(address) == 32
        assert str(address) == address.hex()
        assert address.to_int() == (1 << 255) | 1
        assert repr(address).startswith("HashAddress(80000000")

    def test_bit(self, make_address):
        address = make_address(b0=0x80, b1=0x01)
        assert address.bit(0) == 1
        assert address.bit(1) == 0
        assert address.bit(15) == 1
        assert address.bit(255) == 0
        with pytest.raises(ValueError):
            address.bit(256)

    def test_random(self, fixed_random):
        assert HashAddress.random(fixed_random).to_bytes() == b"\xff" * 32
        assert fixed_random.requests == [32]

    def test_random_default_source(self):
        assert HashAddress.random() != HashAddress.random()


class TestDistance:
    """Test the float XOR distance."""

    def test_same_address(self, zero_address):
        assert distance(zero_address, zero_address) == 0
        address = HashAddress(os.urandom(32))
        assert address.distance(address) == 0

    def test_top_bit(self, zero_address, make_address):
        d = distance(make_address(b0=0x80), zero_address)
        assert d == 2 ** 123
        assert dist_bit(d) == 0

    def test_last_bit(self, zero_address, make_address):
        d = distance(zero_address, make_address(b31=0x01))
        assert d == 2 ** -132
        assert dist_bit(d) == 255

    def test_unit_distance(self, zero_address, make_address):
        # Bit 123: byte 15, mask 0x10
        other = make_address(b15=0x10)
        assert first_differing_bit(zero_address, other) == 123
        assert distance(zero_address, other) == 1
        assert zero_address.dist_bit(other) == 123

    def test_symmetric(self):
        a = HashAddress(os.urandom(32))
        b = HashAddress(os.urandom(32))
        assert distance(a, b) == distance(b, a)

    def test_window_drops_lowest_bit_of_fourth_byte(self, zero_address, make_address):
        base = distance(zero_address, make_address(b0=0x01))
        assert distance(zero_address, make_address(b0=0x01, b3=0x01)) == base
        assert distance(zero_address, make_address(b0=0x01, b3=0x02)) == base + 2 ** 93
        # Bytes beyond the window are ignored
        assert distance(zero_address, make_address(b0=0x01, b4=0xFF)) == base

    def test_window_packing(self, zero_address, make_address):
        other = make_address(b0=0xAB, b1=0xCD, b2=0xEF, b3=0x13)
        expected = ((0xAB << 23) | (0xCD << 15) | (0xEF << 7) | (0x13 >> 1)) * 2.0 ** 93
        assert distance(zero_address, other) == expected

    def test_window_zero_extends_past_end(self, zero_address, make_address):
        other = make_address(b30=0xFF, b31=0xFF)
        expected = math.ldexp((0xFF << 23) | (0xFF << 15), 93 - 8 * 30)
        assert distance(zero_address, other) == expected
        assert dist_bit(expected) == 240

    def test_fits_single_precision_exponent_range(self, zero_address):
        for pos in (0, 100, 200, 255):
            d = distance(zero_address, flip_bit_randomise(zero_address, pos))
            assert 2 ** -132 <= d < 2 ** 124


class TestDistBit:
    """Test the inverse mapping distance -> bit index."""

    def test_zero_distance(self):
        assert dist_bit(0) == INFINITE_DISTANCE_BIT
        assert dist_bit(0.0) == math.inf

    def test_same_address_method(self, zero_address):
        assert zero_address.dist_bit(zero_address) == math.inf

    @pytest.mark.parametrize("value", [-1.0, float("nan"), float("inf")])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            dist_bit(value)

    def test_powers_of_two(self):
        assert dist_bit(2.0 ** 123) == 0
        assert dist_bit(2.0 ** 123 * 1.999) == 0
        assert dist_bit(1.0) == 123
        assert dist_bit(2.0 ** -132) == 255

    def test_matches_first_differing_bit_random_pairs(self):
        for _ in range(200):
            a = HashAddress(os.urandom(32))
            b = HashAddress(os.urandom(32))
            if a == b:
                continue
            assert dist_bit(distance(a, b)) == first_differing_bit(a, b)

    def test_matches_every_position(self):
        reference = HashAddress(os.urandom(32))
        for pos in range(256):
            other = reference.randomise(pos)
            assert first_differing_bit(reference, other) == pos
            assert reference.dist_bit(other) == pos

    def test_first_differing_bit_equal(self, zero_address):
        assert first_differing_bit(zero_address, zero_address) == math.inf


class TestFlipBitRandomise:
    """Test prefix-preserving randomisation."""

    def test_prefix_vectors(self, zero_address):
        assert flip_bit_randomise(zero_address, 3).hex().startswith("1")
        assert flip_bit_randomise(zero_address, 7).hex().startswith("01")
        assert flip_bit_randomise(zero_address, 15).hex().startswith("0001")

    def test_fill_from_source(self, zero_address, fixed_random, zero_random):
        assert flip_bit_randomise(zero_address, 3, fixed_random).hex() == "1f" + "ff" * 31
        assert flip_bit_randomise(zero_address, 3, zero_random).hex() == "10" + "00" * 31

    def test_requests_only_needed_bytes(self, zero_address, fixed_random):
        flip_bit_randomise(zero_address, 3, fixed_random)
        flip_bit_randomise(zero_address, 15, fixed_random)
        flip_bit_randomise(zero_address, 255, fixed_random)
        assert fixed_random.requests == [32, 31, 1]

    def test_preserves_prefix_and_flips(self, make_address, fixed_random, zero_random):
        address = make_address(b0=0xAB, b1=0xCD)
        # Bit 12 is 0x08 of byte 1, set in 0xCD
        assert flip_bit_randomise(address, 12, zero_random).to_bytes()[:2] == b"\xab\xc0"
        assert flip_bit_randomise(address, 12, fixed_random).to_bytes()[:2] == b"\xab\xc7"

    def test_flip_set_bit(self, fixed_random):
        ones = HashAddress(b"\xff" * 32)
        result = flip_bit_randomise(ones, 0, fixed_random)
        assert result.to_bytes() == b"\x7f" + b"\xff" * 31

    def test_last_bit(self, zero_address, zero_random):
        result = zero_address.randomise(255, zero_random)
        assert result.to_bytes() == bytes(31) + b"\x01"

    def test_original_unchanged(self, zero_address):
        zero_address.randomise(0)
        assert zero_address.to_bytes() == bytes(32)

    @pytest.mark.parametrize("pos", [-1, 256, 1000])
    def test_out_of_range(self, zero_address, pos):
        with pytest.raises(ValueError):
            flip_bit_randomise(zero_address, pos)

    def test_failing_source(self, zero_address, failing_random):
        with pytest.raises(RandomSourceUnavailable) as exc_info:
            flip_bit_randomise(zero_address, 10, failing_random)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_short_source(self, zero_address):
        with pytest.raises(RandomSourceUnavailable):
            flip_bit_randomise(zero_address, 10, lambda n: b"\x00")
