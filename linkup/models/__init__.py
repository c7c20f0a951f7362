"""Convenience exports for ORM models."""
from .activity import Activity, ActivityLike, ActivityParticipant
from .profile import Profile
from .user import User

__all__ = [
    "Activity",
    "ActivityLike",
    "ActivityParticipant",
    "Profile",
    "User",
]
