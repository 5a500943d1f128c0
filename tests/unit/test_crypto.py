"""
Tests for cryptographic primitives.

Tests cover:
1. Domain-separated hashing
2. Randomness sources
3. Ed25519 scalar and point helpers
4. Process-wide parameters
"""

import pytest

from broadcast_dra.crypto import (
    L,
    IDENTITY,
    SeededRandomSource,
    SystemRandomSource,
    RandomSource,
    get_crypto_params,
    hash_to_scalar,
    hex_to_bytes,
    bytes_to_hex,
    is_valid_point,
    multi_mul,
    point_add,
    point_from_bytes,
    point_mul,
    point_mul_base,
    point_neg,
    point_sub,
    random_scalar,
    scalar_from_bytes,
    scalar_inverse,
    scalar_reduce,
    scalar_to_bytes,
    sha256,
    tagged_hash,
)


# =============================================================================
# Hashing Tests
# =============================================================================


class TestHashing:
    """Tests for hash helpers."""

    def test_sha256_length(self):
        assert len(sha256(b"bid")) == 32

    def test_tagged_hash_domain_separation(self):
        """Different tags give different digests for the same parts."""
        assert tagged_hash(b"A", b"x") != tagged_hash(b"B", b"x")

    def test_tagged_hash_length_prefix(self):
        """Moving a byte between parts changes the digest."""
        assert tagged_hash(b"T", b"ab", b"c") != tagged_hash(b"T", b"a", b"bc")

    def test_tagged_hash_rejects_non_bytes(self):
        with pytest.raises(TypeError):
            tagged_hash(b"T", "text")

    def test_hash_to_scalar_in_range(self):
        for i in range(20):
            s = hash_to_scalar(b"T", bytes([i]))
            assert 0 <= s < L

    def test_hex_roundtrip(self):
        data = b"\x00\x01\xff"
        assert bytes_to_hex(data) == "0x0001ff"
        assert hex_to_bytes("0x0001ff") == data
        assert hex_to_bytes("0001ff") == data


# =============================================================================
# Randomness Tests
# =============================================================================


class TestRandomness:
    """Tests for randomness sources."""

    def test_seeded_source_deterministic(self):
        a = SeededRandomSource(42)
        b = SeededRandomSource(42)
        assert a.random_bytes(32) == b.random_bytes(32)
        assert a.random_bytes(16) == b.random_bytes(16)

    def test_seeded_source_different_seeds(self):
        assert SeededRandomSource(1).random_bytes(32) != SeededRandomSource(2).random_bytes(32)

    def test_system_source_length(self):
        assert len(SystemRandomSource().random_bytes(48)) == 48

    def test_sources_satisfy_protocol(self):
        assert isinstance(SeededRandomSource(0), RandomSource)
        assert isinstance(SystemRandomSource(), RandomSource)

    def test_random_scalar_nonzero(self):
        rng = SeededRandomSource(3)
        for _ in range(10):
            assert 1 <= random_scalar(rng) < L


# =============================================================================
# Ed25519 Tests
# =============================================================================


class TestScalars:
    """Tests for scalar encoding."""

    def test_scalar_roundtrip(self):
        s = scalar_reduce(123456789 * 2**200)
        assert scalar_from_bytes(scalar_to_bytes(s)) == s

    def test_scalar_encoding_little_endian(self):
        assert scalar_to_bytes(1) == b"\x01" + b"\x00" * 31

    def test_scalar_from_bytes_rejects_non_canonical(self):
        with pytest.raises(ValueError):
            scalar_from_bytes(L.to_bytes(32, "little"))

    def test_scalar_from_bytes_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            scalar_from_bytes(b"\x01" * 31)

    def test_scalar_inverse(self):
        s = 987654321
        assert scalar_reduce(s * scalar_inverse(s)) == 1

    def test_scalar_inverse_of_zero(self):
        with pytest.raises(ZeroDivisionError):
            scalar_inverse(L)


class TestPoints:
    """Tests for group arithmetic."""

    def test_base_point_valid(self):
        assert is_valid_point(point_mul_base(1))

    def test_mul_base_matches_mul(self):
        g = point_mul_base(1)
        assert point_mul(g, 7) == point_mul_base(7)

    def test_zero_scalar_gives_identity(self):
        assert point_mul_base(0) == IDENTITY
        assert point_mul(point_mul_base(1), L) == IDENTITY

    def test_identity_is_neutral(self):
        p = point_mul_base(5)
        assert point_add(p, IDENTITY) == p
        assert point_add(IDENTITY, p) == p
        assert point_sub(p, IDENTITY) == p

    def test_add_sub_inverse(self):
        p = point_mul_base(11)
        q = point_mul_base(29)
        assert point_sub(point_add(p, q), q) == p

    def test_negation(self):
        p = point_mul_base(9)
        assert point_add(p, point_neg(p)) == IDENTITY

    def test_multi_mul_linear(self):
        g = point_mul_base(1)
        h = get_crypto_params().h
        assert multi_mul((g, 3), (h, 4)) == point_add(point_mul(g, 3), point_mul(h, 4))

    def test_point_from_bytes_rejects_garbage(self):
        with pytest.raises(ValueError):
            point_from_bytes(b"\xff" * 32)

    def test_point_from_bytes_accepts_identity(self):
        assert point_from_bytes(IDENTITY) == IDENTITY


class TestParams:
    """Tests for the shared parameter set."""

    def test_params_cached(self):
        assert get_crypto_params() is get_crypto_params()

    def test_generators_independent(self):
        params = get_crypto_params()
        assert params.g != params.h
        assert is_valid_point(params.h)

    def test_params_frozen(self):
        params = get_crypto_params()
        with pytest.raises(Exception):
            params.scale = 1

    def test_fixed_point_scale(self):
        assert get_crypto_params().scale == 10**6
