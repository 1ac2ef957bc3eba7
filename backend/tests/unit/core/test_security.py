"""
Unit Tests for Security Module
Tests for: password hashing, JWT tokens, token decoding
"""
import pytest
from datetime import datetime, timedelta
from jose import jwt

from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    decode_token,
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
)
from app.core.config import settings
from app.core.exceptions import InvalidTokenError


CLAIMS = {"sub": "user-1", "sid": "session-1", "email": "user@example.com"}


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        """Test that hashing returns a different value than input"""
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert len(hashed) > 0

    def test_hash_password_different_each_time(self):
        """Test that hashing same password returns different hashes"""
        hash1 = get_password_hash("testpassword123")
        hash2 = get_password_hash("testpassword123")

        # Bcrypt generates different salts
        assert hash1 != hash2

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")
        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")
        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_without_hash(self):
        """Credentials without a stored hash never verify"""
        assert verify_password("anything", "") is False

    def test_hash_long_password_truncated(self):
        """Test that long passwords are truncated to bcrypt limit"""
        long_password = "a" * 100
        hashed = get_password_hash(long_password)

        assert verify_password(long_password, hashed) is True


class TestTokens:
    """Test JWT creation and decoding"""

    def test_access_token_carries_claims_and_type(self):
        token = create_access_token(CLAIMS)
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])

        assert payload["sub"] == "user-1"
        assert payload["sid"] == "session-1"
        assert payload["type"] == ACCESS_TOKEN_TYPE
        assert "exp" in payload

    def test_access_token_custom_expiry(self):
        token = create_access_token(CLAIMS, expires_delta=timedelta(minutes=5))
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])

        expires = datetime.utcfromtimestamp(payload["exp"])
        assert expires - datetime.utcnow() <= timedelta(minutes=5, seconds=5)

    def test_refresh_token_type(self):
        payload = decode_token(create_refresh_token(CLAIMS), expected_type=REFRESH_TOKEN_TYPE)
        assert payload["type"] == REFRESH_TOKEN_TYPE

    def test_decode_rejects_wrong_type(self):
        """A refresh token cannot be used where an access token is expected"""
        with pytest.raises(InvalidTokenError):
            decode_token(create_refresh_token(CLAIMS), expected_type=ACCESS_TOKEN_TYPE)

    def test_decode_rejects_expired_token(self):
        token = create_access_token(CLAIMS, expires_delta=timedelta(seconds=-1))
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_decode_rejects_bad_signature(self):
        token = jwt.encode(
            {**CLAIMS, "type": ACCESS_TOKEN_TYPE, "exp": datetime.utcnow() + timedelta(minutes=5)},
            "some-other-secret",
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_decode_requires_session_claim(self):
        token = create_access_token({"sub": "user-1"})
        with pytest.raises(InvalidTokenError, match="payload"):
            decode_token(token)

    def test_decode_garbage(self):
        with pytest.raises(InvalidTokenError):
            decode_token("not-a-jwt")
