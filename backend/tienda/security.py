"""
Tienda Services: Password Hashing & Bearer Tokens
===================================================

What:  Password hashing/verification for the Users service and the JWT
       helpers behind its login and protected routes.
How:   bcrypt for passwords, python-jose for HS256 tokens.

Passwords:
    New passwords are stored as bcrypt hashes. Rows written by earlier
    deployments may still hold plaintext; verify_password() compares those
    with hmac.compare_digest and reports that the row needs rehashing, so the
    caller can upgrade it on the first successful login.

    bcrypt only looks at the first 72 bytes of a password. Longer passwords
    are refused at registration and can never match at login.

Tokens:
    Claims: {"usuario": <correo>, "iat": ..., "exp": now + JWT_EXPIRE_HOURS}.
    A missing Authorization header is a 403, anything wrong with the token
    itself (malformed, expired, bad signature) is a 401.
"""

import hmac
import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional, Tuple

import bcrypt
from fastapi import Header, Request
from jose import ExpiredSignatureError, JWTError, jwt

from tienda.config import settings
from tienda.exceptions import AuthenticationError, TokenMissingError, ValidationError

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
TOKEN_CLAIM = "usuario"


# ── Passwords ─────────────────────────────────────────────────────────────

def is_bcrypt_hash(stored: str) -> bool:
    return len(stored) == 60 and stored.startswith(BCRYPT_PREFIXES)


def hash_password(password: str) -> str:
    """
    Hash a new password with the configured work factor.

    Raises:
        ValidationError if the password is longer than bcrypt accepts.
    """
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        raise ValidationError(
            message=f"La contraseña no puede superar {BCRYPT_MAX_BYTES} bytes",
            field="password",
        )
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(raw, salt).decode("ascii")


@lru_cache(maxsize=1)
def _dummy_hash() -> bytes:
    return bcrypt.hashpw(b"tienda-dummy-password", bcrypt.gensalt(rounds=settings.bcrypt_rounds))


def burn_password_check() -> None:
    """Spend one bcrypt check so a login for an unknown email takes as long as a real one."""
    bcrypt.checkpw(b"tienda-not-a-password", _dummy_hash())


def verify_password(password: str, stored: str) -> Tuple[bool, bool]:
    """
    Check a login attempt against the stored value.

    Returns:
        (matches, needs_rehash). needs_rehash is True only for a matching
        legacy plaintext password.
    """
    raw = password.encode("utf-8")
    if is_bcrypt_hash(stored):
        if len(raw) > BCRYPT_MAX_BYTES:
            burn_password_check()
            return False, False
        return bcrypt.checkpw(raw, stored.encode("ascii")), False

    # Legacy plaintext row
    burn_password_check()
    matches = hmac.compare_digest(raw, stored.encode("utf-8"))
    return matches, matches and len(raw) <= BCRYPT_MAX_BYTES


# ── Tokens ────────────────────────────────────────────────────────────────

def create_access_token(correo: str, now: Optional[datetime] = None) -> str:
    issued = now or datetime.now(timezone.utc)
    claims = {
        TOKEN_CLAIM: correo,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(hours=settings.jwt_expire_hours)).timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """
    Validate a token and return the email it was issued to.

    Raises:
        AuthenticationError("Token inválido") for any invalid token.
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise AuthenticationError(message="Token inválido", context={"reason": "expired"})
    except JWTError as e:
        logger.info("Rejected token: %s", str(e))
        raise AuthenticationError(message="Token inválido", context={"reason": "invalid"})

    correo = claims.get(TOKEN_CLAIM)
    if not isinstance(correo, str) or not correo:
        raise AuthenticationError(message="Token inválido", context={"reason": "claims"})
    return correo


async def require_token(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> str:
    """
    FastAPI dependency guarding the user listing routes.

    Accepts "Bearer <token>". On success the email is stored on
    request.state.usuario and returned to the handler.
    """
    if not authorization:
        raise TokenMissingError()

    parts = authorization.split()
    token = parts[1] if len(parts) > 1 else ""
    correo = decode_access_token(token)
    request.state.usuario = correo
    return correo
