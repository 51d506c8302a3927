"""
Unit Tests for Security Utilities.

Tests password hashing, access tokens, and role checks.
"""

from datetime import timedelta

import pytest
from jose import jwt

from notekeeper.backend.core.exceptions import AuthenticationError, AuthorizationError
from notekeeper.backend.core.security import (
    Identity,
    create_access_token,
    decode_token,
    ensure_role,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    """Tests for bcrypt hashing."""

    def test_hash_is_not_plaintext(self):
        """Should never return the password itself."""
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert hashed.startswith("$2")

    def test_verify_correct_password(self):
        """Should accept the original password."""
        hashed = hash_password("correct horse")
        assert verify_password("correct horse", hashed) is True

    def test_verify_wrong_password(self):
        """Should reject a different password."""
        hashed = hash_password("correct horse")
        assert verify_password("battery staple", hashed) is False

    def test_long_password_is_accepted(self):
        """Should hash passwords longer than bcrypt's 72 byte window."""
        password = "p" * 128
        hashed = hash_password(password)
        assert verify_password(password, hashed) is True


class TestAccessTokens:
    """Tests for JWT creation and validation."""

    def test_round_trip_keeps_subject(self):
        """Should decode the subject that was encoded."""
        token = create_access_token({"sub": "user-1", "role": "user"})
        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["role"] == "user"
        assert payload["type"] == "access"
        assert "iat" in payload
        assert "exp" in payload

    def test_expired_token_rejected(self):
        """Should reject a token whose expiry has passed."""
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-5))
        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_tampered_token_rejected(self):
        """Should reject a token signed with another secret."""
        token = jwt.encode(
            {"sub": "user-1", "type": "access", "aud": "notekeeper-api"},
            "some-other-secret-that-is-long-enough",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_wrong_audience_rejected(self, test_settings):
        """Should reject a token issued for another audience."""
        token = jwt.encode(
            {"sub": "user-1", "type": "access", "aud": "someone-else"},
            test_settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_non_access_token_rejected(self, test_settings):
        """Should reject tokens whose type is not access."""
        token = jwt.encode(
            {"sub": "user-1", "type": "refresh", "aud": "notekeeper-api"},
            test_settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_token_without_subject_rejected(self):
        """Should reject a token that names no user."""
        token = create_access_token({"role": "user"})
        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_garbage_rejected(self):
        """Should reject strings that are not JWTs at all."""
        with pytest.raises(AuthenticationError):
            decode_token("not-a-token")


class TestEnsureRole:
    """Tests for the role gate."""

    def test_allowed_role_passes(self):
        """Should return silently when the role is allowed."""
        ensure_role(Identity(user_id="u", role="admin"), {"admin"})

    def test_disallowed_role_forbidden(self):
        """Should raise AuthorizationError for a role outside the set."""
        with pytest.raises(AuthorizationError):
            ensure_role(Identity(user_id="u", role="user"), {"admin"})

    def test_any_of_several_roles(self):
        """Should accept any role in the set."""
        ensure_role(Identity(user_id="u", role="user"), ["user", "admin"])

    def test_empty_role_set_is_a_programming_error(self):
        """Should refuse an empty allowed set."""
        with pytest.raises(ValueError):
            ensure_role(Identity(user_id="u", role="admin"), set())

    def test_identity_admin_flag(self):
        """Should expose is_admin only for the admin role."""
        assert Identity(user_id="u", role="admin").is_admin is True
        assert Identity(user_id="u", role="user").is_admin is False
