"""
Tests for password hashing and token primitives.
"""
import re
import pytest

from clinic.core.security import (
    TOKEN_PLAINTEXT_LENGTH,
    generate_token_plaintext,
    hash_password,
    hash_token,
    verify_password,
)


def test_password_hash_verifies():
    hashed = hash_password("longenough1")
    assert hashed != "longenough1"
    assert verify_password("longenough1", hashed)


def test_password_mismatch_is_false_not_error():
    hashed = hash_password("longenough1")
    assert verify_password("wrong-password", hashed) is False


def test_password_over_72_bytes_is_rejected():
    """
    Test that the hash refuses passwords bcrypt would silently truncate.
    """
    with pytest.raises(ValueError):
        hash_password("é" * 37)


def test_corrupt_hash_raises():
    with pytest.raises(ValueError):
        verify_password("longenough1", "not-a-hash")


def test_token_plaintext_shape():
    """
    Test that tokens are 26 unpadded base32 characters and differ per call.
    """
    first = generate_token_plaintext()
    second = generate_token_plaintext()
    assert len(first) == TOKEN_PLAINTEXT_LENGTH == 26
    assert re.fullmatch(r"[A-Z2-7]{26}", first)
    assert first != second


def test_token_hash_is_stable_sha256():
    plaintext = generate_token_plaintext()
    assert hash_token(plaintext) == hash_token(plaintext)
    assert re.fullmatch(r"[0-9a-f]{64}", hash_token(plaintext))
