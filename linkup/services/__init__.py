"""Convenience exports for service layer."""
from .activity_service import (
    ActivityJoinError,
    create_activity_row,
    delete_activity_row,
    get_activity_row,
    join_activity,
    list_activity_rows,
    set_activity_like_state,
)
from .auth_service import (
    authenticate_user,
    create_access_token,
    decode_access_token,
    ensure_profile,
    get_current_user,
    get_optional_user,
    normalize_handle,
    register_user,
)
from .profile_service import list_profiles, parse_profile_ids

__all__ = [
    "ActivityJoinError",
    "create_activity_row",
    "delete_activity_row",
    "get_activity_row",
    "join_activity",
    "list_activity_rows",
    "set_activity_like_state",
    "authenticate_user",
    "create_access_token",
    "decode_access_token",
    "ensure_profile",
    "get_current_user",
    "get_optional_user",
    "normalize_handle",
    "register_user",
    "list_profiles",
    "parse_profile_ids",
]
