"""Account endpoints: sign-up, token lifecycle and the caller's own record."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from mentorhub.modules.identity.models import User
from mentorhub.modules.identity.schemas import LoginRequest, RefreshRequest, TokenPair, UserCreate, UserRead, UserUpdate
from mentorhub.modules.identity.service import IdentityService, get_current_user, get_identity_service

router = APIRouter(prefix="/identity", tags=["identity"])


@router.post("/auth/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, service: IdentityService = Depends(get_identity_service)) -> User:
    return await service.register(payload)


@router.post("/auth/login", response_model=TokenPair)
async def login(payload: LoginRequest, service: IdentityService = Depends(get_identity_service)) -> TokenPair:
    return await service.login(payload)


@router.post("/auth/refresh", response_model=TokenPair)
async def refresh(payload: RefreshRequest, service: IdentityService = Depends(get_identity_service)) -> TokenPair:
    """Exchange a live refresh token for a new pair; the old one is revoked."""
    return await service.refresh_tokens(payload.refresh_token)


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(payload: RefreshRequest, service: IdentityService = Depends(get_identity_service)) -> None:
    await service.logout(payload.refresh_token)


@router.get("/users/me", response_model=UserRead)
async def read_me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.patch("/users/me", response_model=UserRead)
async def update_me(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: IdentityService = Depends(get_identity_service),
) -> User:
    return await service.update_account(current_user, payload)
