"""Business logic for authentication and profile provisioning."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_session
from ..models import Profile, User
from ..schemas import SignUpRequest

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)
_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

AVATAR_URL_TEMPLATE = "https://picsum.photos/seed/{seed}/80"


def _get_jwt_secret() -> str:
    return get_settings().require_jwt_secret()


def normalize_handle(handle: str) -> str:
    """Return ``handle`` trimmed and prefixed with ``@``."""

    text = handle.strip()
    return text if text.startswith("@") else f"@{text}"


def hash_password(password: str) -> str:
    """Hash a plain-text password using bcrypt."""

    return _pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify that ``password`` matches ``hashed_password``."""

    try:
        return _pwd_context.verify(password, hashed_password)
    except Exception:  # pragma: no cover - passlib internal errors are rare
        logger.exception("Password verification failed due to an unexpected error")
        return False


def create_access_token(subject: UUID, *, expires_minutes: Optional[int] = None) -> str:
    """Create a signed JWT holding the provided ``subject``."""

    settings = get_settings()
    expire_delta = timedelta(minutes=expires_minutes or settings.jwt_expires_minutes)
    now = datetime.now(timezone.utc)
    payload = {"sub": str(subject), "exp": now + expire_delta, "iat": now}
    return jwt.encode(payload, _get_jwt_secret(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID:
    """Decode and validate a JWT, returning the embedded subject UUID."""

    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[get_settings().jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    try:
        return UUID(subject)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload") from exc


def register_user(db: Session, payload: SignUpRequest) -> Tuple[User, str]:
    """Persist a new user together with its profile and return an access token."""

    email = str(payload.email).lower()
    handle = normalize_handle(payload.handle)

    if db.scalar(select(User).where(User.email == email)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    if db.scalar(select(Profile).where(Profile.handle == handle)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Handle already in use")

    user = User(email=email, hashed_password=hash_password(payload.password))
    user.profile = Profile(
        name=payload.name.strip(),
        handle=handle,
        avatar=AVATAR_URL_TEMPLATE.format(seed=handle.lstrip("@")),
    )

    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email or handle already in use") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to register user")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to register user") from exc

    return user, create_access_token(user.id)


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user against stored credentials."""

    user = db.scalar(select(User).where(User.email == email.lower()))
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def ensure_profile(db: Session, user: User) -> Profile:
    """Return the user's profile, creating a default one derived from the email when missing."""

    profile = db.get(Profile, user.id)
    if profile is not None:
        return profile

    default_name = (user.email or "").split("@")[0] or "user"
    handle = f"@{default_name}"
    if db.scalar(select(Profile).where(Profile.handle == handle)):
        handle = f"@{default_name}-{user.id.hex[:6]}"

    profile = Profile(
        id=user.id,
        name=default_name,
        handle=handle,
        avatar=AVATAR_URL_TEMPLATE.format(seed=default_name),
    )
    try:
        db.add(profile)
        db.commit()
        db.refresh(profile)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to provision profile for user %s", user.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to load profile") from exc

    logger.info("Provisioned default profile %s for user %s", handle, user.id)
    return profile


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(_security),
    db: Session = Depends(get_session),
) -> User:
    """Resolve the authenticated user from the provided bearer token."""

    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    user_id = decode_access_token(credentials.credentials)

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
    db: Session = Depends(get_session),
) -> User | None:
    """Return the authenticated user when a valid bearer token is provided."""

    if not credentials or credentials.scheme.lower() != "bearer":
        return None

    try:
        user_id = decode_access_token(credentials.credentials)
    except HTTPException:
        return None

    return db.get(User, user_id)


__all__ = [
    "authenticate_user",
    "create_access_token",
    "decode_access_token",
    "ensure_profile",
    "get_current_user",
    "get_optional_user",
    "hash_password",
    "normalize_handle",
    "register_user",
    "verify_password",
]
