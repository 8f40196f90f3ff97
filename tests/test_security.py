"""
Tests for password hashing and signed tokens.
"""

from datetime import timedelta

import pytest
from jose import jwt

from carquote.core.errors import InvalidTokenError, UnauthenticatedError
from carquote.core.security import (
    ALGORITHM,
    create_token,
    decode_token,
    get_password_hash,
    verify_password,
)


SECRET = "a" * 32


class TestPasswordHashing:
    """Test password hashing utilities."""

    def test_hash_is_bcrypt(self):
        # Act
        hashed = get_password_hash("test_password_123", rounds=4)

        # Assert
        assert hashed != "test_password_123"
        assert hashed.startswith("$2b$04$")

    def test_verify_password_success(self):
        hashed = get_password_hash("test_password_123", rounds=4)
        assert verify_password("test_password_123", hashed) is True

    def test_verify_password_failure(self):
        hashed = get_password_hash("test_password_123", rounds=4)
        assert verify_password("wrong_password", hashed) is False

    def test_empty_or_garbage_hash_never_verifies(self):
        assert verify_password("anything", "") is False
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_long_passwords_are_truncated_consistently(self):
        """bcrypt only looks at the first 72 bytes."""
        # Arrange
        long_password = "x" * 100
        hashed = get_password_hash(long_password, rounds=4)

        # Act / Assert
        assert verify_password(long_password, hashed) is True
        assert verify_password("x" * 72 + "different-tail", hashed) is True


class TestTokens:
    """Test JWT creation and verification."""

    def test_round_trip_adds_iat_and_exp(self):
        # Act
        token = create_token({"adminId": "abc"}, SECRET, timedelta(hours=1))
        claims = decode_token(token, SECRET)

        # Assert
        assert claims["adminId"] == "abc"
        assert claims["exp"] - claims["iat"] == 3600

    def test_token_is_hs256(self):
        token = create_token({"sub": "abc"}, SECRET, timedelta(minutes=5))
        assert jwt.get_unverified_header(token)["alg"] == ALGORITHM

    def test_wrong_secret_is_rejected(self):
        """A token signed with S does not verify with S' != S."""
        token = create_token({"sub": "abc"}, SECRET, timedelta(hours=1))

        with pytest.raises(InvalidTokenError):
            decode_token(token, "b" * 32)

    def test_expired_token_is_rejected(self):
        token = create_token({"sub": "abc"}, SECRET, timedelta(seconds=-10))

        with pytest.raises(InvalidTokenError):
            decode_token(token, SECRET)

    def test_malformed_token_is_rejected(self):
        with pytest.raises(InvalidTokenError):
            decode_token("not.a.jwt", SECRET)

    def test_empty_token_is_rejected(self):
        with pytest.raises(InvalidTokenError, match="No token provided"):
            decode_token("", SECRET)

    def test_invalid_token_is_an_authentication_failure(self):
        assert issubclass(InvalidTokenError, UnauthenticatedError)
        assert InvalidTokenError().status_code == 401
