"""
Tienda Services: Password & Token Unit Tests
==============================================

What:  Tests for bcrypt hashing, legacy plaintext upgrade detection and the
       bearer token helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from tienda.config import settings
from tienda.exceptions import AuthenticationError, ValidationError
from tienda.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    is_bcrypt_hash,
    verify_password,
)


class TestPasswords:

    def test_hash_is_bcrypt_and_not_plaintext(self):
        hashed = hash_password("secreta123")
        assert is_bcrypt_hash(hashed)
        assert "secreta123" not in hashed

    def test_verify_hashed_password(self):
        hashed = hash_password("secreta123")
        assert verify_password("secreta123", hashed) == (True, False)
        assert verify_password("otra", hashed) == (False, False)

    def test_legacy_plaintext_matches_and_needs_rehash(self):
        assert verify_password("secreta123", "secreta123") == (True, True)

    def test_legacy_plaintext_mismatch(self):
        assert verify_password("secreta", "secreta123") == (False, False)

    def test_overlong_password_rejected_at_registration(self):
        with pytest.raises(ValidationError, match="72 bytes"):
            hash_password("x" * 73)

    def test_overlong_password_never_matches(self):
        hashed = hash_password("x" * 72)
        assert verify_password("x" * 73, hashed) == (False, False)


class TestTokens:

    def test_round_trip(self):
        token = create_access_token("ana@correo.cl")
        assert decode_access_token(token) == "ana@correo.cl"

    def test_claims_expire_after_configured_hours(self):
        issued = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)
        token = create_access_token("ana@correo.cl", now=issued)

        claims = jwt.get_unverified_claims(token)

        assert claims["usuario"] == "ana@correo.cl"
        assert claims["exp"] - claims["iat"] == settings.jwt_expire_hours * 3600

    def test_expired_token_rejected(self):
        issued = datetime.now(timezone.utc) - timedelta(hours=settings.jwt_expire_hours + 1)
        token = create_access_token("ana@correo.cl", now=issued)

        with pytest.raises(AuthenticationError, match="Token inválido") as exc_info:
            decode_access_token(token)
        assert exc_info.value.context["reason"] == "expired"

    def test_token_signed_with_other_secret_rejected(self):
        forged = jwt.encode({"usuario": "ana@correo.cl"}, "otra-clave", algorithm="HS256")
        with pytest.raises(AuthenticationError, match="Token inválido"):
            decode_access_token(forged)

    def test_token_without_user_claim_rejected(self):
        token = jwt.encode({"sub": "ana"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            decode_access_token("no-es-un-token")
