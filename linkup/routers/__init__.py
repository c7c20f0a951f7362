"""Aggregate router exports."""
from .activities import router as activities_router
from .auth import router as auth_router
from .join import router as join_router
from .profiles import router as profiles_router
from .realtime import router as realtime_router

__all__ = [
    "activities_router",
    "auth_router",
    "join_router",
    "profiles_router",
    "realtime_router",
]
