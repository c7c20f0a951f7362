"""Authentication routes: sign up, log in and resolve the current profile."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import AuthResponse, LoginRequest, ProfileResponse, SignUpRequest
from ..services import authenticate_user, create_access_token, ensure_profile, get_current_user, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup_endpoint(
    payload: SignUpRequest,
    db: Session = Depends(get_session),
) -> AuthResponse:
    user, token = register_user(db, payload)
    return AuthResponse(access_token=token, user_id=user.id)


@router.post("/login", response_model=AuthResponse)
async def login_endpoint(
    payload: LoginRequest,
    db: Session = Depends(get_session),
) -> AuthResponse:
    user = authenticate_user(db, str(payload.email), payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid login credentials")
    return AuthResponse(access_token=create_access_token(user.id), user_id=user.id)


@router.get("/me", response_model=ProfileResponse)
async def me_endpoint(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ProfileResponse:
    """Return the caller's profile, provisioning a default one on first use."""

    return ProfileResponse.model_validate(ensure_profile(db, current_user))


__all__ = ["router"]
