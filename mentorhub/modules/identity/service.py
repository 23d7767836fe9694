"""Identity business logic layer."""

from __future__ import annotations

from datetime import timedelta
from uuid import UUID, uuid4

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mentorhub.core.config import get_settings
from mentorhub.core.database import get_db_session
from mentorhub.core.enums import RoleEnum
from mentorhub.core.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    oauth2_scheme,
    verify_password,
)
from mentorhub.modules.identity.models import User
from mentorhub.modules.identity.repository import IdentityRepository
from mentorhub.modules.identity.schemas import LoginRequest, TokenPair, UserCreate, UserUpdate
from mentorhub.shared.exceptions import AuthenticationException, ConflictException, UnauthorizedException
from mentorhub.shared.utils import utc_now

settings = get_settings()


class IdentityService:
    """Sign-up, sign-in, sign-out and token resolution."""

    def __init__(self, repository: IdentityRepository) -> None:
        self.repository = repository

    async def register(self, payload: UserCreate) -> User:
        existing_user = await self.repository.get_user_by_email(payload.email)
        if existing_user is not None:
            raise ConflictException("User with this email already exists")

        return await self.repository.create_user(
            email=payload.email,
            name=payload.name,
            password_hash=hash_password(payload.password),
            role=payload.role,
        )

    async def login(self, payload: LoginRequest) -> TokenPair:
        user = await self.repository.get_user_by_email(payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            raise AuthenticationException("Invalid credentials")
        if not user.is_active:
            raise AuthenticationException("User is inactive")
        return await self._issue_tokens(user)

    async def refresh_tokens(self, refresh_token_value: str) -> TokenPair:
        """Rotate refresh token and issue new token pair."""
        token_id, subject = self._read_refresh_claims(refresh_token_value)

        db_token = await self.repository.get_refresh_token_by_id(token_id)
        if db_token is None or db_token.revoked_at is not None or db_token.expires_at <= utc_now():
            raise AuthenticationException("Refresh token is not valid")
        if not await self.repository.revoke_refresh_token(token_id, utc_now()):
            raise AuthenticationException("Refresh token is not valid")

        user = await self.repository.get_user_by_id(UUID(subject))
        if user is None or not user.is_active:
            raise AuthenticationException("User is not valid")
        return await self._issue_tokens(user)

    async def logout(self, refresh_token_value: str) -> None:
        """Sign out by revoking the presented refresh token."""
        token_id, _ = self._read_refresh_claims(refresh_token_value)
        await self.repository.revoke_refresh_token(token_id, utc_now())

    async def update_account(self, user: User, payload: UserUpdate) -> User:
        """Apply the display fields the caller sent; email and role stay fixed."""
        changes = payload.model_dump(mode="json", exclude_none=True)
        return await self.repository.update_user(user, **changes)

    async def get_user_from_access_token(self, token: str) -> User:
        claims = decode_token(token, ACCESS_TOKEN_TYPE)
        user = await self.repository.get_user_by_id(UUID(claims["sub"]))
        if user is None or not user.is_active:
            raise AuthenticationException("User is not valid")
        return user

    async def _issue_tokens(self, user: User) -> TokenPair:
        token_id = str(uuid4())
        access_token = create_access_token(subject=str(user.id), role=str(user.role))
        refresh_token = create_refresh_token(subject=str(user.id), token_id=token_id, role=str(user.role))
        expires_at = utc_now() + timedelta(days=settings.refresh_token_expire_days)
        await self.repository.create_refresh_token(user.id, token_id, expires_at)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    @staticmethod
    def _read_refresh_claims(refresh_token_value: str) -> tuple[str, str]:
        claims = decode_token(refresh_token_value, REFRESH_TOKEN_TYPE)
        token_id = claims.get("jti")
        if not token_id:
            raise AuthenticationException("Refresh token has no id")
        return token_id, claims["sub"]


async def get_identity_service(session: AsyncSession = Depends(get_db_session)) -> IdentityService:
    """Dependency to provide identity service."""
    return IdentityService(IdentityRepository(session))


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    service: IdentityService = Depends(get_identity_service),
) -> User:
    """Resolve currently authenticated user from bearer token."""
    return await service.get_user_from_access_token(token)


def require_roles(*roles: RoleEnum):
    """Dependency factory for role-based access."""

    async def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise UnauthorizedException(f"Operation requires one of roles: {', '.join(roles)}")
        return current_user

    return _checker
