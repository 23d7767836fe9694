"""Password hashing and signed JWT issue/verify."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from mentorhub.core.config import get_settings
from mentorhub.shared.exceptions import AuthenticationException
from mentorhub.shared.utils import utc_now

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

settings = get_settings()
password_hasher = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/identity/auth/login")


def hash_password(password: str) -> str:
    return password_hasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return password_hasher.verify(plain_password, hashed_password)


def _sign(subject: str, token_type: str, lifetime: timedelta, claims: dict[str, Any]) -> str:
    issued_at = utc_now()
    payload = {**claims, "sub": subject, "type": token_type, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(subject: str, **claims: Any) -> str:
    """Short-lived bearer token; carries the user's role as a claim."""
    lifetime = timedelta(minutes=settings.access_token_expire_minutes)
    return _sign(subject, ACCESS_TOKEN_TYPE, lifetime, claims)


def create_refresh_token(subject: str, token_id: str, **claims: Any) -> str:
    """Long-lived token; `jti` points at the revocable refresh_tokens row."""
    lifetime = timedelta(days=settings.refresh_token_expire_days)
    return _sign(subject, REFRESH_TOKEN_TYPE, lifetime, {**claims, "jti": token_id})


def decode_token(token: str, expected_type: str | None = None) -> dict[str, Any]:
    """Verify signature and expiry, optionally pinning the token type."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise AuthenticationException("Token has expired") from exc
    except JWTError as exc:
        raise AuthenticationException("Invalid token") from exc

    if expected_type is not None and claims.get("type") != expected_type:
        raise AuthenticationException(f"Expected {expected_type} token")
    if not claims.get("sub"):
        raise AuthenticationException("Token subject is missing")
    return claims
