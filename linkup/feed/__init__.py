"""Client feed layer: post mapping, feed store, composer and auth session."""
from .composer import Composer
from .mapping import map_post, map_posts
from .models import AuthResult, Author, Draft, FeedScope, Location, Post, Profile
from .session import AuthSession
from .store import FeedStore

__all__ = [
    "AuthResult",
    "AuthSession",
    "Author",
    "Composer",
    "Draft",
    "FeedScope",
    "FeedStore",
    "Location",
    "Post",
    "Profile",
    "map_post",
    "map_posts",
]
