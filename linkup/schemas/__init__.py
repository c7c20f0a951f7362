"""Convenience exports for schema layer."""
from .activities import ActivityCreate, ActivityEngagementResponse, ActivityRow, JoinRequest
from .auth import AuthResponse, LoginRequest, SignUpRequest
from .profiles import ProfileListResponse, ProfileResponse

__all__ = [
    "ActivityCreate",
    "ActivityEngagementResponse",
    "ActivityRow",
    "JoinRequest",
    "AuthResponse",
    "LoginRequest",
    "SignUpRequest",
    "ProfileListResponse",
    "ProfileResponse",
]
